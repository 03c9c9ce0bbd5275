"""Counting barrier for work whose size is discovered while it runs.

A probe that expects to report K results reserves K slots up front; every
reported result (or an explicit "nothing found") consumes one slot. The
group is finished when the slot count is back at zero *and* the owner has
sealed it, meaning no more probes will register. Everything runs on one
event loop, so plain counters need no lock.
"""
import asyncio
import logging

from .errors import BarrierError

log = logging.getLogger(__name__)


class WaitGroup:
    """Reserve-then-consume barrier with an explicit completion predicate."""

    def __init__(self, name: str = ""):
        self.name = name
        self._pending = 0
        self._sealed = False
        self._finished = asyncio.Event()

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def is_done(self) -> bool:
        """True once sealed and every reserved slot has been consumed."""
        return self._sealed and self._pending == 0

    def reserve(self, n: int = 1) -> None:
        if n < 0:
            raise BarrierError(f"{self.name}: cannot reserve {n} slots")
        if self.is_done:
            raise BarrierError(f"{self.name}: reserve after completion")
        self._pending += n

    def done(self, n: int = 1) -> None:
        if n > self._pending:
            raise BarrierError(
                f"{self.name}: consumed {n} slot(s) with only {self._pending} reserved"
            )
        self._pending -= n
        self._check()

    def seal(self) -> None:
        """Declare that no new top-level work will be registered."""
        self._sealed = True
        self._check()

    async def wait(self) -> None:
        await self._finished.wait()

    def _check(self) -> None:
        if self.is_done and not self._finished.is_set():
            log.debug("WaitGroup %s finished", self.name)
            self._finished.set()


class Slots:
    """A probe's own share of a WaitGroup.

    Tracks how many of the group's slots this probe holds so that a probe
    which fails or times out can give back exactly what it still owes.
    """

    def __init__(self, group: WaitGroup):
        self._group = group
        self._held = 0

    @property
    def held(self) -> int:
        return self._held

    def reserve(self, n: int = 1) -> None:
        self._group.reserve(n)
        self._held += n

    def consume(self, n: int = 1) -> None:
        if n > self._held:
            raise BarrierError(
                f"{self._group.name}: probe consumed {n} slot(s) but holds {self._held}"
            )
        self._held -= n
        self._group.done(n)

    def release(self) -> int:
        """Consume all remaining slots. Returns how many were still held."""
        leftover = self._held
        if leftover:
            self.consume(leftover)
        return leftover
