"""Normalized error signals for browser detection.

Probes and the orchestrator map failures into these signals so that the
expected outcome (a browser is simply not installed) is never confused with
a structural fault.
"""
from enum import Enum


class DetectSignal(Enum):
    """Normalized outcomes that are not a found browser."""
    PROBE_FAILED = "probe_failed"              # a probe could not read its source
    CANDIDATE_REJECTED = "candidate_rejected"  # filtered out, not an error
    FATAL = "fatal"                            # configuration or internal fault


class DetectError(Exception):
    """Exception carrying a normalized DetectSignal."""

    def __init__(self, signal: DetectSignal, message: str = ""):
        self.signal = signal
        super().__init__(message or signal.value)


class UnknownBrowserError(DetectError):
    """An unknown browser identifier was explicitly requested."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(DetectSignal.FATAL, f"Unknown browser: {name}")


class BarrierError(DetectError):
    """The counting barrier was consumed past its reservations."""

    def __init__(self, message: str):
        super().__init__(DetectSignal.FATAL, message)
