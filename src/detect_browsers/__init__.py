"""detect-browsers: find installed web browsers on Windows.

Runs several independent discovery probes per browser (environment,
filesystem, registry, PATH, package resolution) concurrently, then merges,
deduplicates and enriches the results with version, architecture and
release-channel metadata.
"""
from .engine.errors import DetectSignal, DetectError, UnknownBrowserError  # noqa: F401
from .engine.records import ExecutableInfo  # noqa: F401
from .engine.registry import get_definition, known_browsers  # noqa: F401
from .engine.orchestrator import detect, detect_async  # noqa: F401
