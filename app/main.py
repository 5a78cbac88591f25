"""Application entry point.

Usage:
    wellness-scan [--config PATH] [--synthetic] [--seed N] [-v]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

# Ensure project root is on the path when running as `python app/main.py`
_ROOT = Path(__file__).parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.config import CONFIG_PATH, Config


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="wellness-scan",
        description="Guided camera wellness scan (estimates only, not a medical device).",
    )
    parser.add_argument("--config", type=Path, default=CONFIG_PATH, help="Config file (JSON)")
    parser.add_argument("--synthetic", action="store_true", help="Use the synthetic camera")
    parser.add_argument("--seed", type=int, default=None, help="Fixed random seed")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-tick details")
    return parser.parse_args(argv)


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Layer launch options over the loaded config (not written back)."""
    if args.synthetic:
        config.use_synthetic_camera = True
    if args.seed is not None:
        config.random_seed = args.seed
    return config


def _configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)
    logger = logging.getLogger(__name__)
    logger.info("Wellness Scan – starting up.")

    config = apply_overrides(Config.load(args.config), args)
    if config.use_synthetic_camera:
        logger.info("Using the synthetic camera.")

    # Qt is only needed once we actually open a window
    from PySide6.QtWidgets import QApplication

    from ui.main_window import MainWindow

    app = QApplication(sys.argv[:1])
    app.setApplicationName("WellnessScan")

    window = MainWindow(config, args.config)
    window.show()

    ret = app.exec()
    logger.info("Exiting with code %d.", ret)
    sys.exit(ret)


if __name__ == "__main__":
    main()
