"""Detection records: transient candidates and final executable info."""
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Mapping

# PE machine codes -> short names
ARCH_NAMES = {
    0x014C: "x86",
    0x8664: "x64",
    0xAA64: "arm64",
    0x01C4: "arm",
}

# Fields a probe may report alongside a path.
EXTRA_FIELDS = ("channel", "bitness", "guid", "uninstall")


@dataclass(frozen=True)
class Candidate:
    """An unverified path reported by a probe during one detection run.

    ``order`` is ``(browser_rank, probe_index)`` and is the deterministic
    tiebreak used when several candidates share a path.
    """
    browser: str
    path: str
    origin: str
    order: tuple[int, int] = (0, 0)
    extra: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExecutableInfo:
    """A verified browser executable. Never mutated after construction."""
    name: str
    path: str
    version: str
    arch: int
    info: Mapping[str, str] = field(default_factory=dict)
    channel: str | None = None
    bitness: int | None = None
    guid: str | None = None
    uninstall: Mapping[str, str] | None = None

    def __post_init__(self):
        object.__setattr__(self, "info", MappingProxyType(dict(self.info)))
        if self.uninstall is not None:
            object.__setattr__(self, "uninstall", MappingProxyType(dict(self.uninstall)))

    @property
    def arch_name(self) -> str:
        return ARCH_NAMES.get(self.arch, "unknown")

    def to_dict(self) -> dict:
        out = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, MappingProxyType):
                value = dict(value)
            if value is None and f.name in EXTRA_FIELDS:
                continue
            out[f.name] = value
        return out
