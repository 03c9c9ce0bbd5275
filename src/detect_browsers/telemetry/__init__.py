"""telemetry: structured JSONL event logging for detection runs."""
from .logger import DetectionEventLogger  # noqa: F401
