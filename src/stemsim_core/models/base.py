# src/stemsim_core/models/base.py

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Protocol

import numpy as np
import sympy

from ..constants import DEFAULT_HISTORY_CAPACITY, DEFAULT_MAX_DT_S, DEFAULT_GENERATION_INTERVAL_S
from ..parameters import ParameterSpec, ParameterSet
from .exceptions import ModelError


logger = logging.getLogger(__name__)


class StepStatus(Enum):
    """Outcome tag carried by every state produced by an integrator."""
    OK = "ok"
    DEGENERATE = "degenerate"  # Inputs outside the model's domain; values held at the last finite state.

    def __str__(self):
        return self.value


class SimulationState(Protocol):
    """
    The structural contract shared by all model states.

    Concrete states are frozen dataclasses owned by exactly one session. They are
    replaced wholesale on every step and on reset, never mutated in place.
    """
    t: float
    status: StepStatus
    status_reason: Optional[str]


class HistoryRecord(Protocol):
    t: float
    values: Mapping[str, float]


@dataclass(frozen=True)
class DemoPreset:
    """
    A tutorial step: a known parameter configuration the session snaps into.

    Applying a preset updates the parameters, resets the state and optionally starts
    the loop, in that order.
    """
    title: str
    description: str
    parameters: Mapping[str, Any] = field(default_factory=dict)
    autostart: bool = False
    highlight: Optional[str] = None


class SimulationModel(ABC):
    """
    The abstract base class for every simulation model.

    A model is a stateless service: it declares its parameters, builds an initial
    state from a `ParameterSet`, and advances a state by `dt` with a pure `step()`.
    All mutable data lives in the state objects and in the session that owns them.
    """
    model_type_str: ClassVar[str] = "BaseModel"

    #: How the session drives the model: "frame" (once per display refresh with a
    #: measured, clamped dt) or "interval" (fixed wall-clock period, fixed step).
    driver: ClassVar[str] = "frame"
    max_dt: ClassVar[float] = DEFAULT_MAX_DT_S
    step_interval: ClassVar[float] = DEFAULT_GENERATION_INTERVAL_S

    history_capacity: ClassVar[int] = DEFAULT_HISTORY_CAPACITY
    #: Minimum simulated time between two recorded history entries.
    history_interval: ClassVar[float] = 0.0

    @classmethod
    @abstractmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        """Declare the model's parameters keyed by name."""
        pass

    @abstractmethod
    def initial_state(self, params: ParameterSet, rng: np.random.Generator) -> SimulationState:
        """Builds the state at t = 0 from the current parameters."""
        pass

    @abstractmethod
    def step(self, state: SimulationState, params: ParameterSet, dt: float, rng: np.random.Generator) -> SimulationState:
        """Returns the state advanced by `dt` seconds. Must not mutate `state`."""
        pass

    @abstractmethod
    def sample(self, state: SimulationState, params: ParameterSet) -> Dict[str, float]:
        """Derived quantities recorded into the history buffer for plotting."""
        pass

    def should_record(self, state: SimulationState, last: Optional[HistoryRecord]) -> bool:
        """Decides whether `state` is appended to the history after a step."""
        if last is None:
            return True
        return state.t - last.t > self.history_interval

    def readouts(self, state: SimulationState, params: ParameterSet) -> Dict[str, Any]:
        """Label -> value pairs for the read-only info display."""
        return {"Time": state.t}

    @classmethod
    def equations(cls) -> Dict[str, sympy.Basic]:
        """Symbolic equations shown next to the visualization."""
        return {}

    @classmethod
    def demo_presets(cls) -> List[DemoPreset]:
        return []

    def _check_dt(self, state: SimulationState, dt: float):
        if not math.isfinite(dt) or dt < 0:
            raise ModelError(
                model_type=self.model_type_str,
                details=f"Time delta must be finite and non-negative, got {dt!r}.",
                sim_time=state.t,
            )

    def _check_state_type(self, state: Any, expected: type):
        if not isinstance(state, expected):
            raise ModelError(
                model_type=self.model_type_str,
                details=f"Expected a {expected.__name__}, got {type(state).__name__}.",
                sim_time=getattr(state, 't', None),
            )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(type='{self.model_type_str}')"


# --- Global Model Registry and Decorator ---

MODEL_REGISTRY: Dict[str, type[SimulationModel]] = {}


def register_model(type_str: str):
    """
    A class decorator registering a model class under `type_str`, making it available
    to scenario files and the session builder.
    """
    def decorator(cls: type[SimulationModel]):
        if not issubclass(cls, SimulationModel):
            raise TypeError(f"Class {cls.__name__} must inherit from SimulationModel.")

        try:
            params = cls.declare_parameters()
            if not isinstance(params, dict) or not all(
                isinstance(k, str) and isinstance(v, ParameterSpec) and k == v.name for k, v in params.items()
            ):
                raise TypeError(
                    f"declare_parameters() must return a Dict[str, ParameterSpec] keyed by spec name, "
                    f"but returned: {params!r}."
                )
            for spec in params.values():
                spec.validate_declaration()
        except Exception as e:
            raise TypeError(
                f"A failure occurred while validating the API contract of model class "
                f"'{cls.__name__}': {e}"
            ) from e

        if cls.driver not in ("frame", "interval"):
            raise TypeError(f"Model class '{cls.__name__}' declares unknown driver '{cls.driver}'.")
        if cls.history_capacity < 1:
            raise TypeError(f"Model class '{cls.__name__}' must declare a positive history_capacity.")

        if type_str in MODEL_REGISTRY:
            logger.warning(f"Model type '{type_str}' is being redefined/overwritten.")
        cls.model_type_str = type_str
        MODEL_REGISTRY[type_str] = cls
        logger.info(f"Registered model type '{type_str}' -> {cls.__name__}")
        return cls
    return decorator
