"""Exceptions raised by the scan core."""

from __future__ import annotations


class ScanError(RuntimeError):
    """Base class for scan session failures."""


class CaptureUnavailable(ScanError):
    """The capture device could not be opened (permission denied, no hardware)."""


class PreconditionFailed(ScanError):
    """A command was issued in a state that does not allow it."""


class InternalFault(ScanError):
    """A session invariant was violated; the session cannot continue."""
