"""engine: probe orchestration, counting barrier, dedup and enrichment."""
from .errors import DetectSignal, DetectError, UnknownBrowserError, BarrierError  # noqa: F401
from .records import Candidate, ExecutableInfo  # noqa: F401
from .waitgroup import WaitGroup  # noqa: F401
from .registry import DEFINITIONS, BrowserDefinition, get_definition, known_browsers  # noqa: F401
from .orchestrator import detect, detect_async  # noqa: F401
