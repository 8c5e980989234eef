# src/stemsim_core/simulation/scheduler.py
"""
Timer-driven run loops.

A loop never owns a clock directly; it asks a `TimerBackend` for the current time and
for one-shot callbacks. `ManualTimer` is advanced by hand and makes every loop fully
deterministic (headless use and tests); `AsyncioTimer` binds the same loops to a
running asyncio event loop.

Two loop flavours share the same lifecycle:

* `FrameScheduler` calls back once per refresh with the measured time since the
  previous callback, clamped to `[0, max_dt]` so that a stalled host cannot make a
  model take one huge, unstable step.
* `GenerationStepper` fires at a fixed interval and always reports that interval.

Every callback carries the loop's epoch. Pausing or stopping bumps the epoch, so a
callback that was already queued when the loop stopped arrives as a no-op.
"""

import asyncio
import heapq
import itertools
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple
from typing import runtime_checkable

from ..constants import DEFAULT_FRAME_INTERVAL_S, DEFAULT_GENERATION_INTERVAL_S
from ..errors import SimulationRunError, report_for

logger = logging.getLogger(__name__)

TimerCallback = Callable[[float], None]


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"

    def __str__(self):
        return self.value


# --- Timer Backends ---

@runtime_checkable
class TimerBackend(Protocol):
    """The host clock: a monotonic time source plus one-shot delayed callbacks."""

    def now(self) -> float:
        ...

    def call_later(self, delay: float, callback: TimerCallback) -> Any:
        """Schedules `callback(timestamp)` after `delay` seconds. Returns a cancel handle."""
        ...

    def cancel(self, handle: Any) -> None:
        ...


class ManualTimer:
    """
    A deterministic timer whose clock only moves when `advance()` is called.

    Callbacks fire in due-time order (insertion order for equal times), each seeing
    `now()` equal to its own due time. Callbacks scheduled while advancing fire within
    the same call if they fall inside the advanced window.
    """

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._queue: List[Tuple[float, int, TimerCallback]] = []
        self._cancelled = set()
        self._counter = itertools.count()

    def now(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: TimerCallback) -> int:
        handle = next(self._counter)
        heapq.heappush(self._queue, (self._now + max(0.0, delay), handle, callback))
        return handle

    def cancel(self, handle: int) -> None:
        self._cancelled.add(handle)

    @property
    def pending(self) -> int:
        return sum(1 for _, h, _ in self._queue if h not in self._cancelled)

    def advance(self, seconds: float) -> int:
        """Moves the clock forward, firing everything due. Returns the number of callbacks fired."""
        target = self._now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            self._now = due
            callback(due)
            fired += 1
        self._now = target
        return fired


class AsyncioTimer:
    """Binds loops to an asyncio event loop. Must be used from inside that loop."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: TimerCallback) -> asyncio.TimerHandle:
        loop = self.loop
        return loop.call_later(max(0.0, delay), lambda: callback(loop.time()))

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


# --- Run Loops ---

class _TimerLoop(ABC):
    """Shared start/pause/resume/stop lifecycle for timer-driven loops."""

    def __init__(self, timer: TimerBackend, interval: float, name: str):
        if interval <= 0:
            raise ValueError(f"Loop interval must be positive, got {interval}.")
        self._timer = timer
        self._interval = interval
        self._name = name
        self._state = RunState.IDLE
        self._handle = None
        self._epoch = 0
        self._last_time: Optional[float] = None
        self._tick_count = 0
        self._disposed = False

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is RunState.RUNNING

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def timer(self) -> TimerBackend:
        return self._timer

    def start(self):
        if self._disposed:
            logger.warning(f"Ignoring start() on disposed loop '{self._name}'.")
            return
        if self._state is RunState.RUNNING:
            return
        self._state = RunState.RUNNING
        self._last_time = self._timer.now()
        logger.info(f"Loop '{self._name}' started.")
        self._request()

    def pause(self):
        if self._state is not RunState.RUNNING:
            return
        self._cancel_pending()
        self._state = RunState.PAUSED
        logger.info(f"Loop '{self._name}' paused after {self._tick_count} ticks.")

    def resume(self):
        if self._state is RunState.PAUSED:
            self.start()

    def stop(self):
        self._cancel_pending()
        if self._state is not RunState.IDLE:
            logger.info(f"Loop '{self._name}' stopped.")
        self._state = RunState.IDLE

    def dispose(self):
        self.stop()
        self._disposed = True

    def _request(self):
        epoch = self._epoch
        self._handle = self._timer.call_later(self._interval, lambda now: self._on_timer(epoch, now))

    def _cancel_pending(self):
        self._epoch += 1
        if self._handle is not None:
            self._timer.cancel(self._handle)
            self._handle = None

    def _on_timer(self, epoch: int, now: float):
        if epoch != self._epoch or self._state is not RunState.RUNNING:
            return
        self._handle = None
        self._tick_count += 1
        try:
            self._fire(now)
        except Exception as e:
            self._fail(e)
        if self._state is RunState.RUNNING and self._handle is None:
            self._request()

    def _fail(self, error: Exception):
        self._cancel_pending()
        self._state = RunState.PAUSED
        report = report_for(
            error, suggestion="This may indicate a bug in a model. Resume or reset the session to continue.")
        logger.error(f"Loop '{self._name}' paused after a failing callback at tick {self._tick_count}.")
        raise SimulationRunError(report) from error

    @abstractmethod
    def _fire(self, now: float):
        pass


class FrameScheduler(_TimerLoop):
    """Calls `on_frame(dt)` once per display refresh while running."""

    def __init__(
        self,
        on_frame: Callable[[float], None],
        timer: TimerBackend,
        max_dt: float,
        frame_interval: float = DEFAULT_FRAME_INTERVAL_S,
        name: str = "frame",
    ):
        super().__init__(timer, frame_interval, name)
        if max_dt <= 0:
            raise ValueError(f"max_dt must be positive, got {max_dt}.")
        self._on_frame = on_frame
        self._max_dt = max_dt

    @property
    def max_dt(self) -> float:
        return self._max_dt

    def _fire(self, now: float):
        elapsed = now - self._last_time
        self._last_time = now
        dt = min(self._max_dt, max(0.0, elapsed))
        if elapsed > self._max_dt:
            logger.debug(f"Frame gap of {elapsed:.4f} s clamped to {dt:.4f} s.")
        self._on_frame(dt)


class GenerationStepper(_TimerLoop):
    """Calls `on_step(interval)` at a fixed wall-clock interval while running."""

    def __init__(
        self,
        on_step: Callable[[float], None],
        timer: TimerBackend,
        interval: float = DEFAULT_GENERATION_INTERVAL_S,
        name: str = "generation",
    ):
        super().__init__(timer, interval, name)
        self._on_step = on_step

    @property
    def interval(self) -> float:
        return self._interval

    def _fire(self, now: float):
        self._last_time = now
        self._on_step(self._interval)


# --- Host Events ---

class EventSource:
    """A minimal host event bus (window resize and similar), keyed by event name."""

    def __init__(self):
        self._listeners: Dict[str, List[Callable[..., None]]] = {}

    def add_listener(self, event: str, listener: Callable[..., None]) -> Callable[[], None]:
        self._listeners.setdefault(event, []).append(listener)

        def remove():
            self.remove_listener(event, listener)
        return remove

    def remove_listener(self, event: str, listener: Callable[..., None]):
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def emit(self, event: str, *args: Any):
        for listener in list(self._listeners.get(event, [])):
            listener(*args)

    def listener_count(self, event: Optional[str] = None) -> int:
        if event is not None:
            return len(self._listeners.get(event, []))
        return sum(len(v) for v in self._listeners.values())


class ResizeRegistry:
    """
    Tracks the resize listeners one session registers on a shared `EventSource` so they
    can all be removed when the session unmounts.
    """
    EVENT = "resize"

    def __init__(self, events: EventSource):
        self._events = events
        self._removers: List[Callable[[], None]] = []

    def bind(self, handler: Callable[..., None]) -> Callable[[], None]:
        remove = self._events.add_listener(self.EVENT, handler)
        self._removers.append(remove)
        return remove

    def __len__(self) -> int:
        return len(self._removers)

    def dispose(self):
        for remove in self._removers:
            remove()
        logger.debug(f"Removed {len(self._removers)} resize listener(s).")
        self._removers.clear()
