"""Candidate path normalization and pre-hook resolution.

Paths use Windows semantics regardless of the interpreter's platform:
``normalize`` makes a path absolute and tidy, ``path_key`` is the
case-folded form used for deduplication.
"""
import logging
import ntpath
from dataclasses import dataclass

log = logging.getLogger(__name__)

# A pre-hook may redirect at most this many times before the candidate is dropped.
MAX_PRE_HOOK_DEPTH = 2


@dataclass(frozen=True)
class Resolution:
    """Outcome of one pre-hook step.

    ``path`` None drops the candidate. A non-final resolution asks the
    executor to run the hook again on the new path.
    """
    path: str | None
    final: bool = True


def accept(path: str) -> Resolution:
    return Resolution(path, True)


def redirect(path: str) -> Resolution:
    return Resolution(path, False)


def drop() -> Resolution:
    return Resolution(None)


def normalize(path: str, cwd: str = "") -> str:
    path = path.strip().strip('"')
    if cwd and not ntpath.isabs(path):
        path = ntpath.join(cwd, path)
    return ntpath.normpath(path)


def path_key(path: str) -> str:
    return ntpath.normcase(path)


async def apply_pre_hook(definition, path: str, host,
                         max_depth: int = MAX_PRE_HOOK_DEPTH) -> str | None:
    """Pass *path* through the definition's pre-hook, if any.

    Returns the resolved, normalized path, or None when the candidate is to
    be dropped (the hook said so, or it kept redirecting past *max_depth*).
    """
    if definition.pre is None:
        return path
    current = path
    for _ in range(max_depth):
        result = await definition.pre(current, host)
        if result.path is None:
            return None
        current = normalize(result.path, host.cwd)
        if result.final:
            return current
    log.debug("%s: %s still unresolved after %d step(s), dropping",
              definition.name, path, max_depth)
    return None
