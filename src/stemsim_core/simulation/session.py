# src/stemsim_core/simulation/session.py
"""
The per-visualization owner of parameters, state, history and run loop.

A `SimulationSession` is the only writer of its state. Each tick of its loop calls
`advance(dt)`, which performs exactly one model step, samples the result into the
history buffer when the model asks for it and notifies renderers, all within the same
call. Nothing outside the session mutates these pieces, and nothing is shared between
sessions.
"""

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

import numpy as np

from ..constants import DEFAULT_FRAME_INTERVAL_S
from ..models import DemoPreset, SimulationModel, SimulationState, StepStatus, get_model_class
from ..models.thermo import PVDiagramModel, WorkSummary, net_work
from ..parameters import ChangePolicy, ParameterSet, ParameterSpec, ParameterStore
from .exceptions import SessionStateError, StepFailure
from .history import HistoryBuffer
from .scheduler import (
    EventSource,
    FrameScheduler,
    GenerationStepper,
    ManualTimer,
    ResizeRegistry,
    RunState,
    TimerBackend,
)

logger = logging.getLogger(__name__)

Renderer = Callable[["SimulationSession"], None]


class SimulationSession:
    """
    Runs one model.

    Args:
        model: A `SimulationModel` instance or class.
        timer: The host clock. Defaults to a `ManualTimer`, i.e. nothing runs until
            the caller advances it.
        seed: Seed of the session's random generator. When omitted a fresh seed is
            drawn once, so `reset()` still replays the same run.
        history_capacity: Overrides the model's history capacity.
        max_dt: Overrides the model's frame step clamp.
        events: Host event bus for resize listeners. A private one is created when omitted.
    """

    def __init__(
        self,
        model: Union[SimulationModel, type],
        timer: Optional[TimerBackend] = None,
        seed: Optional[int] = None,
        history_capacity: Optional[int] = None,
        max_dt: Optional[float] = None,
        events: Optional[EventSource] = None,
        frame_interval: float = DEFAULT_FRAME_INTERVAL_S,
    ):
        self._model: SimulationModel = model() if isinstance(model, type) else model
        self._store = ParameterStore(self._model.declare_parameters())
        self._seed = int(seed) if seed is not None else int(np.random.SeedSequence().entropy % (2 ** 63))
        self._rng = np.random.default_rng(self._seed)
        self._history = HistoryBuffer(
            history_capacity if history_capacity is not None else self._model.history_capacity)
        self._timer = timer if timer is not None else ManualTimer()

        if self._model.driver == "interval":
            self._loop = GenerationStepper(
                self._on_tick, self._timer, self._model.step_interval, name=self._model.model_type_str)
        else:
            self._loop = FrameScheduler(
                self._on_tick, self._timer, max_dt if max_dt is not None else self._model.max_dt,
                frame_interval=frame_interval, name=self._model.model_type_str)

        self._events = events if events is not None else EventSource()
        self._resize = ResizeRegistry(self._events)
        self._renderers: List[Renderer] = []
        self._unsubscribe = self._store.subscribe(self._on_parameter_change)
        self._steps = 0
        self._unmounted = False

        self._state: SimulationState = self._model.initial_state(self._store.snapshot(), self._rng)
        self._record(self._state, self._store.snapshot())
        logger.info(
            f"Session created for model '{self.model_type}' (seed={self._seed}, "
            f"history={self._history.capacity}, driver={self._model.driver})."
        )

    # --- Read-only surface ---

    @property
    def model(self) -> SimulationModel:
        return self._model

    @property
    def model_type(self) -> str:
        return self._model.model_type_str

    @property
    def state(self) -> SimulationState:
        return self._state

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def parameters(self) -> ParameterStore:
        return self._store

    @property
    def params(self) -> ParameterSet:
        return self._store.snapshot()

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def timer(self) -> TimerBackend:
        return self._timer

    @property
    def loop(self):
        return self._loop

    @property
    def run_state(self) -> RunState:
        return self._loop.state

    @property
    def is_running(self) -> bool:
        return self._loop.is_running

    @property
    def steps_taken(self) -> int:
        return self._steps

    def readouts(self) -> Dict[str, Any]:
        return self._model.readouts(self._state, self._store.snapshot())

    def equations(self):
        return self._model.equations()

    def demo_presets(self) -> List[DemoPreset]:
        return self._model.demo_presets()

    # --- Lifecycle ---

    def start(self):
        self._ensure_mounted("start")
        self._loop.start()

    def pause(self):
        self._loop.pause()

    def resume(self):
        self._ensure_mounted("resume")
        self._loop.resume()

    def toggle(self):
        """Play/pause button semantics."""
        if self._loop.is_running:
            self.pause()
        else:
            self.start()

    def reset(self):
        """
        Stops the loop and rebuilds the state from the current parameters with a freshly
        re-seeded generator, so the result equals a new session with the same seed and
        parameters. Does not resume.
        """
        self._ensure_mounted("reset")
        self._loop.stop()
        self._rng = np.random.default_rng(self._seed)
        params = self._store.snapshot()
        self._state = self._model.initial_state(params, self._rng)
        self._steps = 0
        self._history.clear()
        self._record(self._state, params)
        logger.info(f"Session '{self.model_type}' reset.")
        self._notify()

    def unmount(self):
        """Releases the loop, host listeners and renderers. The session cannot run afterwards."""
        if self._unmounted:
            return
        self._loop.dispose()
        self._resize.dispose()
        self._unsubscribe()
        self._renderers.clear()
        self._unmounted = True
        logger.info(f"Session '{self.model_type}' unmounted.")

    # --- Stepping ---

    def advance(self, dt: float) -> SimulationState:
        """Performs one integration step of `dt` seconds, samples history and notifies renderers."""
        params = self._store.snapshot()
        previous = self._state
        try:
            new_state = self._model.step(previous, params, dt, self._rng)
        except Exception as e:
            raise StepFailure(self.model_type, self._steps + 1, previous.t, e) from e

        self._state = new_state
        self._steps += 1
        if new_state.status is StepStatus.DEGENERATE and previous.status is not StepStatus.DEGENERATE:
            logger.warning(f"Session '{self.model_type}' is degenerate: {new_state.status_reason}")
        self._record(new_state, params)
        self._notify()
        return new_state

    def _on_tick(self, dt: float):
        self.advance(dt)

    def _record(self, state: SimulationState, params: ParameterSet):
        if self._model.should_record(state, self._history.latest):
            self._history.append(state.t, self._model.sample(state, params))

    # --- Parameters ---

    def set_parameter(self, name: str, value: Any) -> Any:
        return self._store.set(name, value)

    def update_parameters(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        return self._store.update(values)

    def apply_preset(self, preset: DemoPreset):
        """Snaps to a tutorial step: parameters first, then a reset, then an optional start."""
        logger.info(f"Applying preset '{preset.title}' to session '{self.model_type}'.")
        self._store.update(preset.parameters)
        self.reset()
        if preset.autostart:
            self.start()

    def _on_parameter_change(self, spec: ParameterSpec, old: Any, new: Any):
        if spec.on_change is ChangePolicy.REQUIRES_RESET:
            logger.debug(f"Parameter '{spec.name}' requires a reset; resetting session '{self.model_type}'.")
            self.reset()

    # --- Renderers & host events ---

    def add_renderer(self, renderer: Renderer) -> Callable[[], None]:
        self._renderers.append(renderer)

        def remove():
            if renderer in self._renderers:
                self._renderers.remove(renderer)
        return remove

    def bind_resize(self, handler: Callable[..., None]) -> Callable[[], None]:
        self._ensure_mounted("bind_resize")
        return self._resize.bind(handler)

    def _notify(self):
        for renderer in list(self._renderers):
            renderer(self)

    def _ensure_mounted(self, operation: str):
        if self._unmounted:
            raise SessionStateError(self.model_type, operation, "the session has been unmounted.")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model='{self.model_type}', t={self._state.t:.4f}, state={self.run_state})"


class PVDiagramSession(SimulationSession):
    """Adds the process controls of the P-V diagram to the plain session surface."""

    def __init__(self, model: Union[SimulationModel, type] = PVDiagramModel, **kwargs):
        super().__init__(model, **kwargs)
        if not isinstance(self._model, PVDiagramModel):
            raise SessionStateError(self.model_type, "create PVDiagramSession", "the model is not a P-V diagram.")

    def begin_process(self, kind, direction: int) -> bool:
        """
        Starts an isobaric, isochoric or isothermal process and the loop that animates
        it. Returns False when the request was rejected.
        """
        self._ensure_mounted("begin_process")
        new_state = self._model.begin_process(self._state, self._store.snapshot(), kind, direction)
        if new_state is None:
            return False
        self._state = new_state
        if not self._loop.is_running:
            self._loop.start()
        return True

    def clear_path(self):
        """Forgets the drawn path; the current point stays and starts the new path."""
        self._history.clear()
        self._record(self._state, self._store.snapshot())
        self._notify()

    def path(self) -> List[Tuple[float, float]]:
        return [(e["P"], e["V"]) for e in self._history]

    def net_work(self) -> WorkSummary:
        """Signed work along the retained path; evicted points no longer contribute."""
        return net_work(self.path())


SESSION_CLASSES: Dict[str, type] = {
    "pv_diagram": PVDiagramSession,
}


def create_session(model_type: str, **kwargs) -> SimulationSession:
    """Creates the right session class for a registered model type. Raises UnknownModelError."""
    model_cls = get_model_class(model_type)
    session_cls = SESSION_CLASSES.get(model_type, SimulationSession)
    return session_cls(model_cls, **kwargs)
