"""Read-only Windows registry access across hives and views.

Every key path is relative to ``Software\\``. On a 64-bit system each hive
is read through both the 64-bit and the 32-bit (WOW6432Node) view. Off
Windows the reader has no roots and every query is empty.
"""
import logging
import sys
from dataclasses import dataclass

log = logging.getLogger(__name__)

HKLM = "HKLM"
HKCU = "HKCU"


@dataclass(frozen=True)
class RegistryRoot:
    hive: str           # "HKLM" or "HKCU"
    view: int | None    # 64, 32, or None on a 32-bit system


@dataclass(frozen=True)
class RegistryHit:
    root: RegistryRoot
    key: str
    value: str


def roots_for(is_64bit: bool) -> tuple[RegistryRoot, ...]:
    views = (64, 32) if is_64bit else (None,)
    return tuple(RegistryRoot(hive, view) for hive in (HKLM, HKCU) for view in views)


class RegistryReader:
    """Base reader. Subclasses implement ``value`` and ``subkeys``."""

    def __init__(self, is_64bit: bool):
        self.roots = roots_for(is_64bit)

    def value(self, root: RegistryRoot, key: str, name: str | None = None) -> str | None:
        raise NotImplementedError

    def subkeys(self, root: RegistryRoot, key: str) -> list[str]:
        raise NotImplementedError

    def query(self, key: str, name: str | None = None) -> list[RegistryHit]:
        """Read one value from every root. Missing keys are skipped."""
        hits = []
        for root in self.roots:
            try:
                value = self.value(root, key, name)
            except OSError as e:
                log.debug("Registry %s\\%s unreadable: %s", root.hive, key, e)
                continue
            if value:
                hits.append(RegistryHit(root, key, value))
        return hits

    def list_subkeys(self, key: str) -> list[tuple[RegistryRoot, str]]:
        """Subkey names of *key* under every root. Unreadable roots are skipped."""
        found = []
        for root in self.roots:
            try:
                names = self.subkeys(root, key)
            except OSError as e:
                log.debug("Registry %s\\%s not enumerable: %s", root.hive, key, e)
                continue
            found.extend((root, name) for name in names)
        return found


class WinRegistry(RegistryReader):
    """winreg-backed reader."""

    def __init__(self, is_64bit: bool):
        super().__init__(is_64bit)
        import winreg
        self._winreg = winreg
        self._hives = {HKLM: winreg.HKEY_LOCAL_MACHINE, HKCU: winreg.HKEY_CURRENT_USER}

    def _open(self, root: RegistryRoot, key: str):
        access = self._winreg.KEY_READ
        if root.view == 64:
            access |= self._winreg.KEY_WOW64_64KEY
        elif root.view == 32:
            access |= self._winreg.KEY_WOW64_32KEY
        return self._winreg.OpenKey(self._hives[root.hive], "Software\\" + key, 0, access)

    def value(self, root, key, name=None):
        try:
            with self._open(root, key) as handle:
                data, kind = self._winreg.QueryValueEx(handle, name or "")
        except FileNotFoundError:
            return None
        if kind == self._winreg.REG_EXPAND_SZ:
            data = self._winreg.ExpandEnvironmentStrings(data)
        return data if isinstance(data, str) else None

    def subkeys(self, root, key):
        names = []
        try:
            with self._open(root, key) as handle:
                i = 0
                while True:
                    try:
                        names.append(self._winreg.EnumKey(handle, i))
                    except OSError:
                        break
                    i += 1
        except FileNotFoundError:
            pass
        return names


class EmptyRegistry(RegistryReader):
    """Reader for systems without a registry."""

    def __init__(self, is_64bit: bool = False):
        self.roots = ()

    def value(self, root, key, name=None):
        return None

    def subkeys(self, root, key):
        return []


def default_registry(is_64bit: bool) -> RegistryReader:
    if sys.platform == "win32":
        return WinRegistry(is_64bit)
    log.debug("No registry on %s", sys.platform)
    return EmptyRegistry()
