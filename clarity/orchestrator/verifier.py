"""Verification pipeline — sequences progress messages before finalize."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable, Sequence

logger = logging.getLogger(__name__)

DEFAULT_STEPS = (
    "Initiating consistency check...",
    "Analyzing semantic vectors...",
    "Verifying temporal coherence...",
    "Updating knowledge graph indices...",
    "Generating audit trail hash...",
)

Sleep = Callable[[float], Awaitable[None]]
Listener = Callable[[str], Awaitable[None]]


def random_delay(low: float = 0.4, high: float = 1.2) -> Callable[[], float]:
    """Return a delay sampler drawing uniformly from [low, high]."""
    return lambda: random.uniform(low, high)


class Verification:
    """A single, non-restartable verification run.

    Emits each step to the log and to every listener in order, waits
    ``settle_delay`` after the last one, then calls ``on_complete`` once.
    The steps are fixed at construction; nothing can alter them once the
    run has started.
    """

    def __init__(
        self,
        steps: Sequence[str] = DEFAULT_STEPS,
        sleep: Sleep = asyncio.sleep,
        delay: Callable[[], float] | None = None,
        settle_delay: float = 0.8,
    ) -> None:
        if not steps:
            raise ValueError("A verification needs at least one step")
        self.steps = tuple(steps)
        self._sleep = sleep
        self._delay = delay or random_delay()
        self._settle_delay = settle_delay
        self._log: list[str] = []
        self._listeners: list[Listener] = []
        self._started = False
        self._completed = False

    @property
    def log(self) -> tuple[str, ...]:
        return tuple(self._log)

    @property
    def started(self) -> bool:
        return self._started

    @property
    def completed(self) -> bool:
        return self._completed

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def run(self, on_complete: Callable[[], None]) -> tuple[str, ...]:
        if self._started:
            raise RuntimeError("Verification already started; runs cannot be restarted")
        self._started = True

        for step in self.steps:
            await self._sleep(self._delay())
            self._log.append(step)
            logger.debug("Verification step: %s", step)
            await self._notify(step)

        await self._sleep(self._settle_delay)
        self._completed = True
        on_complete()
        return self.log

    async def _notify(self, message: str) -> None:
        """Forward a message to all listeners; a failing listener is dropped."""
        for listener in list(self._listeners):
            try:
                await listener(message)
            except Exception as exc:
                logger.warning("Dropping verification listener: %s", exc)
                self.unsubscribe(listener)
