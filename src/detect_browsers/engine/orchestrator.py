"""Orchestrator: entry point for browser detection.

Runs every requested browser's probes concurrently on one event loop. Each
browser's phase ends when its WaitGroup drains; its candidates are then
resolved, deduplicated, enriched and classified. The run ends when the
batch WaitGroup (one slot per browser) drains.
"""
import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from ..system.host import AsyncHost, Host
from .enrich import MetadataCache, Provisional, enrich
from .errors import UnknownBrowserError
from .probes import launch_probes
from .records import Candidate, ExecutableInfo
from .registry import DEFINITIONS, BrowserDefinition
from .resolve import apply_pre_hook, normalize
from .waitgroup import WaitGroup

log = logging.getLogger(__name__)

DEFAULT_PROBE_TIMEOUT = 10.0


def select_definitions(names=None, strict: bool = False) -> list[BrowserDefinition]:
    """Map requested identifiers to definitions, in request order.

    No names (None or empty) selects every known browser. Unknown names are
    skipped with a warning, or raise UnknownBrowserError when *strict*.
    """
    if not names:
        return list(DEFINITIONS.values())
    if isinstance(names, str):
        names = [names]
    selected = []
    for name in names:
        definition = DEFINITIONS.get(name.lower())
        if definition is None:
            if strict:
                raise UnknownBrowserError(name)
            log.warning(f"Unknown browser '{name}', skipping")
            continue
        if definition not in selected:
            selected.append(definition)
    return selected


async def _resolve_candidates(definition: BrowserDefinition, candidates: list[Candidate],
                              host: AsyncHost, event_logger=None) -> list[Candidate]:
    async def one(c: Candidate) -> Candidate | None:
        path = normalize(c.path, host.cwd)
        resolved = await apply_pre_hook(definition, path, host)
        if resolved is None:
            log.debug("%s: pre-hook dropped %s", definition.name, path)
            if event_logger:
                event_logger.log_candidate_rejected(definition.name, path, "pre_hook")
            return None
        return Candidate(c.browser, resolved, c.origin, c.order, c.extra)

    resolved = await asyncio.gather(*(one(c) for c in candidates))
    return [c for c in resolved if c is not None]


async def _run_browser(definition: BrowserDefinition, rank: int, host: AsyncHost,
                       cache: MetadataCache, batch: WaitGroup, probe_timeout: float | None,
                       event_logger=None) -> list[Provisional]:
    try:
        started = time.monotonic()
        group = WaitGroup(definition.name)
        sink: list[Candidate] = []
        tasks = launch_probes(definition, rank, host, group, sink, probe_timeout, event_logger)
        group.seal()
        await group.wait()
        # Surfaces faults that are not probe failures
        await asyncio.gather(*tasks)

        candidates = await _resolve_candidates(definition, sink, host, event_logger)
        records = await enrich(candidates, cache, event_logger)
        if definition.post is not None:
            records = [Provisional(r.order, r.key, definition.post(r.info)) for r in records]

        log.debug("%s: %d candidate(s), %d found in %.2fs", definition.name,
                  len(sink), len(records), time.monotonic() - started)
        if event_logger:
            event_logger.log_browser_done(definition.name, len(sink), len(records),
                                          time.monotonic() - started)
        return records
    finally:
        batch.done()


def assemble(records: list[Provisional]) -> list[ExecutableInfo]:
    """Stable order and one record per path across all browsers."""
    seen = set()
    out = []
    for r in sorted(records, key=lambda r: (r.order, r.key)):
        if r.key in seen:
            continue
        seen.add(r.key)
        out.append(r.info)
    return out


async def detect_async(names=None, *, host: Host | None = None,
                       probe_timeout: float | None = DEFAULT_PROBE_TIMEOUT,
                       strict: bool = False, event_logger=None) -> list[ExecutableInfo]:
    """Find installed browsers.

    Args:
        names: Browser identifiers, case-insensitive. None or empty means all.
        host: OS collaborators; defaults to the real system.
        probe_timeout: Seconds each probe, and each metadata read, may take
            before it counts as failed.
        strict: Raise UnknownBrowserError for unknown names instead of skipping.
        event_logger: Optional DetectionEventLogger for telemetry.

    Returns:
        ExecutableInfo records, unique by path, ordered by requested browser,
        then probe declaration order, then path.
    """
    definitions = select_definitions(names, strict)
    started = time.monotonic()
    async_host = AsyncHost(host or Host.default())
    cache = MetadataCache(async_host, probe_timeout)
    if event_logger:
        event_logger.log_run_start([d.name for d in definitions], probe_timeout)

    batch = WaitGroup("batch")
    batch.reserve(len(definitions))
    batch.seal()
    tasks = [
        asyncio.ensure_future(_run_browser(d, rank, async_host, cache, batch,
                                           probe_timeout, event_logger))
        for rank, d in enumerate(definitions)
    ]
    await batch.wait()
    per_browser = await asyncio.gather(*tasks)

    results = assemble([r for records in per_browser for r in records])
    duration = time.monotonic() - started
    log.info("Detected %d browser executable(s) in %.2fs", len(results), duration)
    if event_logger:
        event_logger.log_run_end(len(results), duration)
    return results


def detect(names=None, **kwargs) -> list[ExecutableInfo]:
    """Synchronous wrapper around detect_async.

    Blocking OS calls run on a private thread pool that is not joined on
    return, so a call abandoned by a timeout cannot hold the caller.
    """
    loop = asyncio.new_event_loop()
    executor = ThreadPoolExecutor(thread_name_prefix="detect-browsers")
    loop.set_default_executor(executor)
    try:
        return loop.run_until_complete(detect_async(names, **kwargs))
    finally:
        try:
            pending = asyncio.all_tasks(loop)
            for task in pending:
                task.cancel()
            if pending:
                loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            executor.shutdown(wait=False)
            loop.close()
