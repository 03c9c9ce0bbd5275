"""Probe executor: interprets probe descriptors and reports candidates.

Every probe runs as its own task and holds one registration slot in the
browser's WaitGroup until it (and anything it spawned) has finished. A
probe that knows it will report K paths reserves K more slots first, and
each ``found()``/``skip()`` consumes one.
"""
import asyncio
import logging
import ntpath
from typing import Any, Awaitable, Callable

from ..system.commands import parse_command
from ..system.host import AsyncHost
from .records import Candidate
from .registry import (
    BrowserDefinition, Custom, Dir, Env, InPath, ProbeDescriptor, ProgramFiles,
    Registry, StartMenu, VersionRegistry,
)
from .waitgroup import Slots, WaitGroup

log = logging.getLogger(__name__)

EXE_EXTENSION = ".exe"
_DEFAULT_PATHEXT = ".COM;.EXE;.BAT;.CMD"
_START_MENU_KEY = "Clients\\StartMenuInternet"

# Failures that mean "this source could not be read", not a bug.
PROBE_ERRORS = (OSError, ValueError, LookupError, asyncio.TimeoutError)


def has_exe_extension(path: str) -> bool:
    return ntpath.splitext(path)[1].lower() == EXE_EXTENSION


def _clean(value: str) -> str:
    return value.strip().strip('"').strip()


class ProbeContext:
    """What a probe sees: the host, its browser, and its completion slots."""

    def __init__(self, definition: BrowserDefinition, host: AsyncHost, slots: Slots,
                 sink: list[Candidate], order: tuple[int, int], origin: str,
                 timeout: float | None = None):
        self.definition = definition
        self.host = host
        self.origin = origin
        self._slots = slots
        self._sink = sink
        self._order = order
        self._timeout = timeout
        self._children: list[asyncio.Task] = []
        self.failures = 0

    @property
    def bin(self) -> str:
        return self.definition.bin

    def plan(self, n: int = 1) -> None:
        """Reserve *n* completion slots for results still to come."""
        self._slots.reserve(n)

    def found(self, path: str | None, origin: str = "", **extra: Any) -> None:
        """Report a candidate path, consuming one slot. Empty paths count as nothing found."""
        if path:
            self._sink.append(Candidate(
                browser=self.definition.name,
                path=path,
                origin=origin or self.origin,
                order=self._order,
                extra={k: v for k, v in extra.items() if v is not None},
            ))
            log.debug("%s: %s found %s", self.definition.name, origin or self.origin, path)
        self._slots.consume()

    def skip(self) -> None:
        """Consume one slot without reporting anything."""
        self._slots.consume()

    def spawn(self, coro: Awaitable[None]) -> None:
        """Run a sub-lookup concurrently; the probe finishes after it does."""
        self._children.append(asyncio.ensure_future(self._guard(coro)))

    async def _guard(self, coro: Awaitable[None]) -> None:
        try:
            await asyncio.wait_for(coro, self._timeout)
        except PROBE_ERRORS as e:
            self.failures += 1
            log.debug("%s: %s sub-lookup failed: %s", self.definition.name, self.origin, e)

    async def join(self) -> None:
        while self._children:
            children, self._children = self._children, []
            await asyncio.gather(*children)

    def cancel(self) -> None:
        for child in self._children:
            child.cancel()
        self._children = []


# ── Built-in probe kinds ───────────────────────────────────────────────────


async def _probe_env(probe: Env, ctx: ProbeContext) -> list[str]:
    value = ctx.host.env(probe.var)
    return [_clean(value)] if value else []


async def _probe_dir(probe: Dir, ctx: ProbeContext) -> list[str]:
    names = (probe.env,) if isinstance(probe.env, str) else probe.env
    base = next((v for v in map(ctx.host.env, names) if v), None)
    if not base:
        return []
    path = ntpath.join(_clean(base), probe.path)
    if not has_exe_extension(path):
        path = ntpath.join(path, ctx.bin)
    return [path]


async def _probe_registry(probe: Registry, ctx: ProbeContext) -> list[str]:
    hits = await ctx.host.registry_query(probe.key, probe.value)
    if probe.parent_dir:
        return [ntpath.join(_clean(hit.value), ctx.bin) for hit in hits]
    return [parse_command(hit.value) for hit in hits]


async def _probe_version_registry(probe: VersionRegistry, ctx: ProbeContext) -> list[str]:
    paths = []
    for hit in await ctx.host.registry_query(probe.version_key, probe.version_value):
        key = probe.template_key.replace("%s", hit.value.strip())
        value = await ctx.host.registry_value(hit.root, key, probe.value)
        if value:
            paths.append(parse_command(value))
    return paths


async def _start_menu_entry(ctx: ProbeContext, root, name: str) -> tuple[str, str, str] | None:
    key = f"{_START_MENU_KEY}\\{name}"
    try:
        command = await ctx.host.registry_value(root, key + "\\shell\\open\\command")
        if not command:
            return None
        display = await ctx.host.registry_value(root, key) or name
    except OSError as e:
        log.debug("%s: start menu entry %s unreadable: %s", ctx.definition.name, name, e)
        return None
    return name, display, parse_command(command)


async def _probe_start_menu(probe: StartMenu, ctx: ProbeContext) -> list[str]:
    entries = await asyncio.gather(*(
        _start_menu_entry(ctx, root, name)
        for root, name in await ctx.host.registry_subkeys(_START_MENU_KEY)
    ))
    paths = []
    for name, display, exe in (e for e in entries if e):
        if probe.pattern:
            pattern = probe.pattern.lower()
            if pattern in display.lower() or pattern in name.lower():
                paths.append(exe)
        elif ntpath.basename(exe).lower() == ctx.bin.lower():
            paths.append(exe)
    return paths


async def _probe_in_path(probe: InPath, ctx: ProbeContext) -> list[str]:
    search = ctx.host.env("PATH")
    if not search:
        return []
    if ntpath.splitext(ctx.bin)[1]:
        names = [ctx.bin]
    else:
        pathext = ctx.host.env("PATHEXT") or _DEFAULT_PATHEXT
        names = [ctx.bin + ext.lower() for ext in pathext.split(";") if ext]
    dirs = [_clean(d) for d in search.split(ctx.host.pathsep) if _clean(d)]
    candidates = [ntpath.join(d, n) for d in dirs for n in names]
    exists = await asyncio.gather(*(ctx.host.is_file(c) for c in candidates))
    return [c for c, ok in zip(candidates, exists) if ok]


_PROBES: dict[type, Callable[[Any, ProbeContext], Awaitable[list[str]]]] = {
    Env: _probe_env,
    Dir: _probe_dir,
    Registry: _probe_registry,
    VersionRegistry: _probe_version_registry,
    StartMenu: _probe_start_menu,
    InPath: _probe_in_path,
}


async def run_probe(probe: ProbeDescriptor, ctx: ProbeContext) -> None:
    """Run one probe to completion, reporting through *ctx*."""
    if isinstance(probe, Custom):
        await probe.fn(ctx)
        return
    paths = await _PROBES[type(probe)](probe, ctx)
    ctx.plan(len(paths))
    for path in paths:
        ctx.found(path)


def expand_probes(definition: BrowserDefinition) -> list[tuple[int, ProbeDescriptor]]:
    """Flatten shorthand probes, keeping each one's declaration index."""
    expanded = []
    for index, probe in enumerate(definition.probes):
        if isinstance(probe, ProgramFiles):
            expanded.extend((index, p) for p in probe.expand())
        else:
            expanded.append((index, probe))
    return expanded


async def _run_one(probe: ProbeDescriptor, ctx: ProbeContext, slots: Slots,
                   timeout: float | None, event_logger=None) -> None:
    failed = False
    try:
        await asyncio.wait_for(run_probe(probe, ctx), timeout)
        await ctx.join()
    except PROBE_ERRORS as e:
        failed = True
        reason = "timeout" if isinstance(e, asyncio.TimeoutError) else f"{type(e).__name__}: {e}"
        log.debug("%s: probe %s failed: %s", ctx.definition.name, ctx.origin, reason)
        if event_logger:
            event_logger.log_probe_failed(ctx.definition.name, ctx.origin, reason)
    finally:
        ctx.cancel()
        # One slot is the probe's own registration; a result reported without
        # plan() eats it instead.
        leaked = slots.release() - 1
        if leaked < 0:
            log.warning("%s: probe %s reported a result it never planned for",
                        ctx.definition.name, ctx.origin)
        elif leaked and not failed and not ctx.failures:
            log.warning("%s: probe %s left %d reserved slot(s) unconsumed",
                        ctx.definition.name, ctx.origin, leaked)


def launch_probes(definition: BrowserDefinition, rank: int, host: AsyncHost,
                  group: WaitGroup, sink: list[Candidate],
                  timeout: float | None = None, event_logger=None) -> list[asyncio.Task]:
    """Start every probe of *definition* as a task registered in *group*."""
    tasks = []
    for index, probe in expand_probes(definition):
        slots = Slots(group)
        slots.reserve(1)
        origin = getattr(probe, "label", "") or probe.kind
        ctx = ProbeContext(definition, host, slots, sink, (rank, index), origin, timeout)
        tasks.append(asyncio.ensure_future(_run_one(probe, ctx, slots, timeout, event_logger)))
    return tasks
