"""
"Last request wins" sequencing for overlapping provider calls.

Every call through a gate gets a monotonically increasing ticket. When the
call resolves, its result is only handed back if no newer call has been
issued (or the gate invalidated) in the meantime; otherwise
StaleResultDiscarded is raised so the caller can drop it quietly.
"""
from __future__ import annotations

import logging
from typing import Awaitable, Callable, TypeVar

from domain.errors import StaleResultDiscarded

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LatestRequestGate:
    def __init__(self, name: str = "request") -> None:
        self.name = name
        self._seq = 0

    @property
    def latest(self) -> int:
        return self._seq

    def issue(self) -> int:
        self._seq += 1
        return self._seq

    def invalidate(self) -> None:
        """Make every in-flight call stale without issuing a new one."""
        self._seq += 1

    def is_current(self, ticket: int) -> bool:
        return ticket == self._seq

    async def run(self, call: Callable[[], Awaitable[T]]) -> T:
        """
        Await `call()` and return its result if it is still the latest request.

        Errors from a superseded call are swallowed into StaleResultDiscarded
        as well; only the latest request may surface an error.
        """
        ticket = self.issue()
        try:
            result = await call()
        except Exception:
            if not self.is_current(ticket):
                logger.debug("%s #%d failed after being superseded", self.name, ticket)
                raise StaleResultDiscarded(f"{self.name} #{ticket} superseded")
            raise
        if not self.is_current(ticket):
            logger.debug("%s #%d resolved after #%d; discarding", self.name, ticket, self._seq)
            raise StaleResultDiscarded(f"{self.name} #{ticket} superseded")
        return result
