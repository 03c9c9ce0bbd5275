"""Deduplication and metadata enrichment of resolved candidates.

Candidates are grouped by case-folded path. Each unique path is checked
once: executable extension, existence, PE metadata, non-empty version.
Anything failing a check is dropped quietly.
"""
import asyncio
import logging
from dataclasses import dataclass

from .probes import has_exe_extension
from .records import EXTRA_FIELDS, Candidate, ExecutableInfo
from .resolve import path_key

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Provisional:
    """An ExecutableInfo plus the ordering data result assembly needs."""
    order: tuple[int, int]
    key: str
    info: ExecutableInfo


class MetadataCache:
    """Per-run cache so each unique path is read at most once, even across browsers."""

    def __init__(self, host, timeout: float | None = None):
        self._host = host
        self._timeout = timeout
        self._tasks: dict[str, asyncio.Task] = {}

    def get(self, key: str, path: str) -> asyncio.Task:
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(self._read(path))
            self._tasks[key] = task
        return task

    async def _read(self, path: str):
        try:
            return await asyncio.wait_for(self._check(path), self._timeout)
        except asyncio.TimeoutError:
            log.debug("Metadata lookup timed out for %s", path)
            return None, "metadata"

    async def _check(self, path: str):
        if not await self._host.is_file(path):
            return None, "missing"
        try:
            meta = await self._host.read_metadata(path)
        except (OSError, ValueError) as e:
            log.debug("Metadata lookup failed for %s: %s", path, e)
            return None, "metadata"
        if not meta or not (meta.version or "").strip():
            return None, "version"
        return meta, ""


def group_candidates(candidates: list[Candidate]) -> dict[str, list[Candidate]]:
    """Group by path key; each group sorted so the earliest-declared probe comes first."""
    groups: dict[str, list[Candidate]] = {}
    for c in candidates:
        groups.setdefault(path_key(c.path), []).append(c)
    for group in groups.values():
        group.sort(key=lambda c: (c.order, c.origin, c.path, tuple(sorted(c.extra))))
    return groups


def merge_extra(group: list[Candidate]) -> dict:
    extra = {}
    for c in group:
        for name in EXTRA_FIELDS:
            if name not in extra and c.extra.get(name) is not None:
                extra[name] = c.extra[name]
    return extra


async def enrich(candidates: list[Candidate], cache: MetadataCache,
                 event_logger=None) -> list[Provisional]:
    """Turn candidates into provisional records, one per unique path."""
    groups = group_candidates(candidates)
    keys = []
    for key, group in groups.items():
        if has_exe_extension(group[0].path):
            keys.append(key)
        else:
            _rejected(group[0], "extension", event_logger)

    results = await asyncio.gather(*(cache.get(k, groups[k][0].path) for k in keys))

    out = []
    for key, (meta, reason) in zip(keys, results):
        head = groups[key][0]
        if meta is None:
            _rejected(head, reason, event_logger)
            continue
        info = ExecutableInfo(
            name=head.browser,
            path=head.path,
            version=meta.version.strip(),
            arch=meta.arch,
            info=meta.info,
            **merge_extra(groups[key]),
        )
        out.append(Provisional(head.order, key, info))
    return out


def _rejected(candidate: Candidate, reason: str, event_logger=None) -> None:
    log.debug("%s: rejected %s (%s)", candidate.browser, candidate.path, reason)
    if event_logger:
        event_logger.log_candidate_rejected(candidate.browser, candidate.path, reason)
