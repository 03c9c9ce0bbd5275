"""Strategy registry: which probes find which browser.

Each browser is described by data, not code: an ordered tuple of probe
descriptors plus optional pre/post hooks. The table is built once at import
and exposed read-only.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Awaitable, Callable

from ..browser import chrome, firefox, opera, phantomjs
from .errors import UnknownBrowserError

# ── Probe descriptors ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Env:
    """Environment variable whose value is the executable path."""
    var: str
    kind = "env"


@dataclass(frozen=True)
class Dir:
    """Directory read from an environment variable, joined with *path*.

    *env* may be a tuple of variable names; the first one set wins.
    """
    env: str | tuple[str, ...]
    path: str
    kind = "dir"


@dataclass(frozen=True)
class ProgramFiles:
    """Shorthand for two Dir probes: native and 32-bit Program Files."""
    path: str
    kind = "programFiles"

    def expand(self) -> tuple[Dir, Dir]:
        return (
            Dir(("ProgramW6432", "ProgramFiles"), self.path),
            Dir("ProgramFiles(x86)", self.path),
        )


@dataclass(frozen=True)
class Registry:
    """Registry value (relative to ``Software\\``) holding a path or command.

    With *parent_dir*, the value is the containing directory.
    """
    key: str
    value: str | None = None
    parent_dir: bool = False
    kind = "registry"


@dataclass(frozen=True)
class VersionRegistry:
    """Read a version, substitute it into *template_key*, read the path there."""
    version_key: str
    version_value: str
    template_key: str
    value: str
    kind = "versionRegistry"


@dataclass(frozen=True)
class StartMenu:
    """Start Menu "Internet" client registrations, optionally name-matched."""
    pattern: str | None = None
    kind = "startMenu"


@dataclass(frozen=True)
class InPath:
    """Search PATH for the browser's binary name."""
    kind = "inPath"


@dataclass(frozen=True)
class Custom:
    """An arbitrary coroutine ``fn(ctx)`` reporting through a ProbeContext."""
    fn: Callable[..., Awaitable[None]]
    label: str = ""
    kind = "custom"


ProbeDescriptor = Env | Dir | ProgramFiles | Registry | VersionRegistry | StartMenu | InPath | Custom


@dataclass(frozen=True)
class BrowserDefinition:
    name: str
    probes: tuple[ProbeDescriptor, ...]
    bin: str = ""
    pre: Callable | None = None
    post: Callable | None = None

    def __post_init__(self):
        if not self.bin:
            object.__setattr__(self, "bin", f"{self.name}.exe")


# ── Definitions ────────────────────────────────────────────────────────────


def _opera_probes() -> tuple[ProbeDescriptor, ...]:
    probes: list[ProbeDescriptor] = []
    for folder, variant in (("Opera", "Stable"), ("Opera beta", "Beta"),
                            ("Opera developer", "Developer")):
        probes.append(ProgramFiles(folder))
        probes.append(Registry(f"Clients\\StartMenuInternet\\Opera{variant}\\shell\\open\\command"))
        probes.append(Registry(f"Classes\\Opera{variant}\\shell\\open\\command"))
    probes.append(InPath())
    return tuple(probes)


_DEFINITIONS = (
    BrowserDefinition(
        name="chrome",
        probes=(
            Dir("LOCALAPPDATA", "Google\\Chrome\\Application"),
            Dir("LOCALAPPDATA", "Google\\Chrome SxS\\Application"),
            ProgramFiles("Google\\Chrome\\Application"),
            Registry("Google\\Update", "LastInstallerSuccessLaunchCmdLine"),
            Registry("Microsoft\\Windows\\CurrentVersion\\App Paths\\chrome.exe", None, True),
            StartMenu("Google Chrome"),
            InPath(),
            Env("CHROME_BIN"),
            Custom(chrome.find_update_clients, "updateClients"),
            Custom(chrome.find_progids, "progIds"),
        ),
        post=chrome.post,
    ),
    BrowserDefinition(
        name="chromium",
        bin="chrome.exe",
        # No InPath(): the binary name collides with chrome's
        probes=(
            Dir("LOCALAPPDATA", "Chromium\\Application"),
            Registry("Chromium", "InstallerSuccessLaunchCmdLine"),
            Env("CHROMIUM_BIN"),
        ),
    ),
    BrowserDefinition(
        name="firefox",
        probes=(
            ProgramFiles("Mozilla Firefox"),
            ProgramFiles("Firefox Developer Edition"),
            ProgramFiles("Firefox Nightly"),
            StartMenu(),
            Registry("Mozilla\\Mozilla Firefox", "PathToExe"),
            VersionRegistry("Mozilla\\Mozilla Firefox", "CurrentVersion",
                            "Mozilla\\Mozilla Firefox\\%s\\Main", "PathToExe"),
            InPath(),
        ),
        post=firefox.post,
    ),
    BrowserDefinition(
        name="ie",
        bin="iexplore.exe",
        probes=(ProgramFiles("Internet Explorer"), StartMenu(), InPath()),
    ),
    BrowserDefinition(
        name="maxthon",
        bin="Maxthon.exe",
        probes=(
            ProgramFiles("Maxthon\\Bin"),
            StartMenu(),
            Registry("Classes\\MaxthonAddonFile\\shell\\open\\command"),
            InPath(),
        ),
    ),
    BrowserDefinition(
        name="phantomjs",
        # No extension, so a phantomjs.cmd shim in PATH is found too
        bin="phantomjs",
        probes=(
            InPath(),
            Env("PHANTOMJS_BIN"),
            Custom(phantomjs.find_package, "package"),
        ),
        pre=phantomjs.pre,
    ),
    BrowserDefinition(
        name="opera",
        bin="Launcher.exe",
        probes=_opera_probes(),
        post=opera.post,
    ),
    # Incomplete; Safari for Windows is discontinued
    BrowserDefinition(
        name="safari",
        probes=(
            StartMenu(),
            Registry("Apple Computer, Inc.\\Safari", "BrowserExe"),
            InPath(),
        ),
    ),
    BrowserDefinition(
        name="yandex",
        bin="browser.exe",
        probes=(
            Dir("LOCALAPPDATA", "Yandex\\YandexBrowser\\Application"),
            Registry("YandexBrowser", "InstallerSuccessLaunchCmdLine"),
            StartMenu(),
            InPath(),
        ),
    ),
)

DEFINITIONS = MappingProxyType({d.name: d for d in _DEFINITIONS})


def known_browsers() -> tuple[str, ...]:
    return tuple(DEFINITIONS)


def get_definition(name: str) -> BrowserDefinition:
    """Look up a definition by case-insensitive identifier."""
    try:
        return DEFINITIONS[name.lower()]
    except KeyError:
        raise UnknownBrowserError(name) from None
