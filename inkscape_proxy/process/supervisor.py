"""Retry supervisor: keeps a long-running coroutine alive across failures."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

from inkscape_proxy.errors import RetriesExhaustedError

log = logging.getLogger(__name__)


class SupervisorState(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    EXITED = "exited"
    RETRYING = "retrying"
    EXHAUSTED = "exhausted"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ExponentialBackoff:
    """Delay before retry ``n`` (1-based): ``initial * factor ** (n - 1)``, capped."""

    initial: float = 0.5
    factor: float = 2.0
    maximum: float = 30.0

    def delay(self, failures: int) -> float:
        if failures < 1:
            return 0.0
        return min(self.maximum, self.initial * self.factor ** (failures - 1))


class RetrySupervisor:
    """Invoke ``target`` until it returns cleanly or the failure budget is spent.

    A normal return from ``target`` is a final stop.  An exception counts as
    a failure; after ``max_attempts`` consecutive failures ``run`` raises
    ``RetriesExhaustedError``.  Cancelling ``run`` stops it at once, also
    while it is sleeping between attempts.
    """

    def __init__(
        self,
        target: Callable[[], Awaitable[None]],
        max_attempts: int,
        backoff: ExponentialBackoff | None = None,
        name: str = "supervised",
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._target = target
        self.max_attempts = max_attempts
        self.backoff = backoff or ExponentialBackoff()
        self.name = name
        self.state = SupervisorState.STARTING
        self.attempts = 0
        self.failures = 0
        self.last_error: BaseException | None = None
        self._stopping = False

    @property
    def finished(self) -> bool:
        return self.state in (SupervisorState.EXHAUSTED, SupervisorState.STOPPED)

    def reset(self) -> None:
        """Forget earlier failures; the target proved healthy again."""
        self.failures = 0

    def stop(self) -> None:
        """Do not retry after the next exit."""
        self._stopping = True

    async def run(self) -> None:
        try:
            while True:
                self.attempts += 1
                self.state = SupervisorState.RUNNING
                try:
                    await self._target()
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    self.failures += 1
                    self.last_error = exc
                    self.state = SupervisorState.EXITED
                    log.warning(
                        "%s exited (failure %d/%d): %s",
                        self.name, self.failures, self.max_attempts, exc,
                    )
                else:
                    log.info("%s stopped", self.name)
                    self.state = SupervisorState.STOPPED
                    return

                if self._stopping:
                    self.state = SupervisorState.STOPPED
                    return

                if self.failures >= self.max_attempts:
                    self.state = SupervisorState.EXHAUSTED
                    raise RetriesExhaustedError(
                        self.name, self.failures, self.last_error
                    ) from self.last_error

                delay = self.backoff.delay(self.failures)
                self.state = SupervisorState.RETRYING
                log.info("restarting %s in %.2fs", self.name, delay)
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.state = SupervisorState.STOPPED
            raise
