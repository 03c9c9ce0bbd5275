"""In-memory OS fakes so detection runs on any platform."""
import ntpath

import pytest

from detect_browsers.system.host import Host
from detect_browsers.system.pe import ExeMetadata
from detect_browsers.system.registry import RegistryReader


class FakeRegistry(RegistryReader):
    """Dict-backed registry. Keys are relative to Software\\, case-insensitive."""

    def __init__(self, is_64bit: bool = True):
        super().__init__(is_64bit)
        self._values: dict[tuple, dict[str, str]] = {}
        self._names: dict[tuple, str] = {}
        self.denied: set[tuple] = set()

    def set(self, hive, view, key, name, value):
        parts = key.split("\\")
        for i in range(1, len(parts) + 1):
            sub = "\\".join(parts[:i])
            self._names.setdefault((hive, view, sub.lower()), sub)
            self._values.setdefault((hive, view, sub.lower()), {})
        self._values[(hive, view, key.lower())][(name or "").lower()] = value
        return self

    def value(self, root, key, name=None):
        if (root.hive, root.view, key.lower()) in self.denied:
            raise PermissionError(f"access denied: {key}")
        values = self._values.get((root.hive, root.view, key.lower()))
        if values is None:
            return None
        return values.get((name or "").lower())

    def subkeys(self, root, key):
        if (root.hive, root.view, key.lower()) in self.denied:
            raise PermissionError(f"access denied: {key}")
        prefix = key.lower() + "\\"
        out = []
        for (hive, view, k), original in self._names.items():
            if (hive, view) != (root.hive, root.view) or not k.startswith(prefix):
                continue
            rest = original[len(prefix):]
            if "\\" not in rest:
                out.append(rest)
        return out


def exe(version="1.0.0.0", arch=0x8664, **info):
    return ExeMetadata(version=version, arch=arch, info=info)


def make_host(files=None, env=None, registry=None, modules=None, packages=None,
              cwd="C:\\work", is_64bit=True, pathsep=";"):
    """Build a Host over in-memory data.

    files: path -> ExeMetadata (or an Exception to raise, or None for a
    non-PE file). modules: module file -> binary path it points at.
    packages: npm package name -> resolved module file.
    """
    files = {ntpath.normcase(k): v for k, v in (files or {}).items()}
    modules = {ntpath.normcase(k): v for k, v in (modules or {}).items()}
    packages = dict(packages or {})
    metadata_calls = []

    def is_file(path):
        key = ntpath.normcase(path)
        return key in files or key in modules

    def read_metadata(path):
        metadata_calls.append(ntpath.normcase(path))
        value = files.get(ntpath.normcase(path))
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise ValueError(f"{path}: not a PE file")
        return value

    host = Host(
        environ=dict(env or {}),
        cwd=cwd,
        is_64bit=is_64bit,
        registry=registry if registry is not None else FakeRegistry(is_64bit),
        is_file=is_file,
        read_metadata=read_metadata,
        resolve_package=lambda name, basedir: packages.get(name),
        module_binary=lambda module: modules.get(ntpath.normcase(module)),
        pathsep=pathsep,
    )
    host.metadata_calls = metadata_calls
    return host


@pytest.fixture
def registry():
    return FakeRegistry()
