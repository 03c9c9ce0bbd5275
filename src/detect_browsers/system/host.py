"""The operating-system collaborators a detection run reads from.

``Host`` bundles the blocking, read-only primitives (environment,
filesystem, registry, executable metadata, package resolution).
``AsyncHost`` exposes the same primitives as coroutines by running each
blocking call in a worker thread, so probes never block one another.
"""
import asyncio
import os
import platform
from dataclasses import dataclass, field
from typing import Callable, Mapping

from . import node, pe
from .registry import RegistryReader, default_registry


def _is_64bit_os(environ: Mapping[str, str]) -> bool:
    # A 32-bit process on 64-bit Windows only sees its real arch here
    if environ.get("PROCESSOR_ARCHITEW6432"):
        return True
    return platform.machine().lower().endswith("64")


@dataclass
class Host:
    environ: Mapping[str, str]
    cwd: str
    is_64bit: bool
    registry: RegistryReader
    is_file: Callable[[str], bool] = os.path.isfile
    read_metadata: Callable[[str], pe.ExeMetadata] = pe.read_metadata
    resolve_package: Callable[[str, str], str | None] = node.resolve_package
    module_binary: Callable[[str], str | None] = node.module_binary
    pathsep: str = field(default=";")

    @classmethod
    def default(cls) -> "Host":
        environ = dict(os.environ)
        is_64bit = _is_64bit_os(environ)
        return cls(
            environ=environ,
            cwd=os.getcwd(),
            is_64bit=is_64bit,
            registry=default_registry(is_64bit),
            pathsep=os.pathsep,
        )

    def env(self, name: str) -> str | None:
        """Read an environment variable; empty values count as unset."""
        value = self.environ.get(name)
        if value is None:
            # Windows environment names are case-insensitive
            lowered = name.lower()
            for key, val in self.environ.items():
                if key.lower() == lowered:
                    value = val
                    break
        return value or None


class AsyncHost:
    """Coroutine view of a Host."""

    def __init__(self, host: Host):
        self.host = host

    @property
    def cwd(self) -> str:
        return self.host.cwd

    @property
    def pathsep(self) -> str:
        return self.host.pathsep

    def env(self, name: str) -> str | None:
        return self.host.env(name)

    async def is_file(self, path: str) -> bool:
        return await asyncio.to_thread(self.host.is_file, path)

    async def read_metadata(self, path: str) -> pe.ExeMetadata:
        return await asyncio.to_thread(self.host.read_metadata, path)

    async def resolve_package(self, name: str, basedir: str) -> str | None:
        return await asyncio.to_thread(self.host.resolve_package, name, basedir)

    async def module_binary(self, module_file: str) -> str | None:
        return await asyncio.to_thread(self.host.module_binary, module_file)

    async def registry_query(self, key: str, name: str | None = None):
        return await asyncio.to_thread(self.host.registry.query, key, name)

    async def registry_value(self, root, key: str, name: str | None = None) -> str | None:
        return await asyncio.to_thread(self.host.registry.value, root, key, name)

    async def registry_subkeys(self, key: str):
        return await asyncio.to_thread(self.host.registry.list_subkeys, key)
