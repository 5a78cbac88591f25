"""Application-wide configuration with typed fields and sane defaults."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional

from domain.session import progress_increment
from vision.quality import QualityThresholds

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("config.json")


@dataclass
class Config:
    # Camera
    camera_index: int = 0
    camera_width: int = 640
    camera_height: int = 480
    camera_fps: int = 30
    max_frame_age_ms: int = 1000  # older frames count as missing
    use_synthetic_camera: bool = False

    # Scan timing
    scan_duration_ms: int = 35000
    progress_tick_ms: int = 100     # progress accrual cadence
    sample_interval_ms: int = 500   # frame-quality sampling cadence
    tip_interval_ms: int = 5000     # awareness tip rotation
    completion_delay_ms: int = 500  # pause on 100 % before results

    # Frame quality gate
    pixel_stride: int = 10
    poor_light_threshold: float = 50.0
    good_light_threshold: float = 100.0
    motion_threshold: float = 25.0
    good_detection_probability: float = 0.9

    # Metrics
    metric_variance: float = 0.02
    random_seed: Optional[int] = None  # None = fresh entropy per run

    # UI
    window_width: int = 960
    window_height: int = 760
    preview_interval_ms: int = 33

    @property
    def progress_increment(self) -> float:
        return progress_increment(self.scan_duration_ms, self.progress_tick_ms)

    def quality_thresholds(self) -> QualityThresholds:
        return QualityThresholds(
            pixel_stride=self.pixel_stride,
            poor_light_threshold=self.poor_light_threshold,
            good_light_threshold=self.good_light_threshold,
            motion_threshold=self.motion_threshold,
            good_detection_probability=self.good_detection_probability,
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self, path: Path = CONFIG_PATH) -> None:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(asdict(self), fh, indent=2)
        logger.debug("Config saved.")

    @classmethod
    def load(cls, path: Path = CONFIG_PATH) -> "Config":
        if not path.exists():
            return cls()
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
            cfg = cls()
            known = {f.name for f in fields(cls)}
            for k, v in data.items():
                if k in known:
                    setattr(cfg, k, v)
                else:
                    logger.warning("Ignoring unknown config key '%s'.", k)
            logger.debug("Config loaded from %s", path)
            return cfg
        except (OSError, json.JSONDecodeError, AttributeError) as exc:
            logger.warning("Could not load config (%s); using defaults.", exc)
            return cls()
