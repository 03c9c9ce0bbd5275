"""system: read-only OS collaborators (environment, filesystem, registry, PE metadata)."""
from .host import Host, AsyncHost  # noqa: F401
from .commands import parse_command  # noqa: F401
from .registry import RegistryReader, RegistryRoot, RegistryHit, HKLM, HKCU  # noqa: F401
from .pe import ExeMetadata, read_metadata  # noqa: F401
