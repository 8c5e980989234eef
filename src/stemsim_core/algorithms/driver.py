# src/stemsim_core/algorithms/driver.py
"""
Asynchronous pacing of step sequences for animation.

The driver pulls one step, waits the configured delay, and only then hands the step to
the consumer. A cancellation token is checked before every pull and again after every
wait: a cancel that lands during a wait lets the sleep finish but the pending step is
dropped, and no further steps are requested.
"""

import asyncio
import logging
from typing import Callable, Iterable, Optional, TypeVar

from ..constants import DEFAULT_STEP_DELAY_S

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CancellationToken:
    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self):
        self._cancelled = True


async def run_steps(
    steps: Iterable[T],
    on_step: Callable[[T], None],
    delay: float = DEFAULT_STEP_DELAY_S,
    token: Optional[CancellationToken] = None,
) -> int:
    """Feeds `steps` to `on_step` one per `delay` seconds. Returns the number delivered."""
    token = token if token is not None else CancellationToken()
    iterator = iter(steps)
    delivered = 0
    try:
        while not token.cancelled:
            try:
                step = next(iterator)
            except StopIteration:
                break
            await asyncio.sleep(delay)
            if token.cancelled:
                logger.debug(f"Dropped a pending step after cancellation ({delivered} delivered).")
                break
            on_step(step)
            delivered += 1
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()
    return delivered


class StepDriver:
    """
    Owns the token of the current run. Starting a new run cancels the previous one,
    so at most one sequence feeds the consumer at a time.
    """

    def __init__(self, delay: float = DEFAULT_STEP_DELAY_S):
        if delay < 0:
            raise ValueError(f"Delay must be non-negative, got {delay}.")
        self.delay = delay
        self._token: Optional[CancellationToken] = None

    @property
    def running(self) -> bool:
        return self._token is not None and not self._token.cancelled

    async def run(self, steps: Iterable[T], on_step: Callable[[T], None]) -> int:
        self.cancel()
        token = CancellationToken()
        self._token = token
        try:
            return await run_steps(steps, on_step, self.delay, token)
        finally:
            if self._token is token:
                self._token = None

    def cancel(self):
        if self._token is not None:
            self._token.cancel()
            self._token = None
