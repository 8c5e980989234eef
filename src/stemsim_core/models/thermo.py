# src/stemsim_core/models/thermo.py
"""
Ideal-gas pressure-volume diagram driven by discrete thermodynamic processes.

The state is a single point (P in atm, V in litres). A process request creates a
`ProcessSegment` that moves the point from where it is to a target over a fixed
duration; while it is active every frame lands on the path, and the signed area under
that path is the work done by the gas.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import numpy as np
import sympy
from scipy.integrate import trapezoid

from ..constants import ATM_LITER_TO_JOULE
from ..parameters import ChangePolicy, ParameterSpec, ParameterSet
from ..units import Quantity
from .base import HistoryRecord, SimulationModel, StepStatus, register_model
from .exceptions import ModelDomainError

logger = logging.getLogger(__name__)

DIAGRAM_MIN = 0.5
DIAGRAM_MAX = 5.0


class ProcessKind(Enum):
    ISOBARIC = "isobaric"
    ISOCHORIC = "isochoric"
    ISOTHERMAL = "isothermal"

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class ProcessSegment:
    """A process in flight: linear in its driving variable from start to target."""
    kind: ProcessKind
    start_pressure: float
    start_volume: float
    target_pressure: float
    target_volume: float
    start_time: float
    duration: float

    def point_at(self, t: float) -> Tuple[float, float, bool]:
        """Returns (P, V, finished) at simulated time `t`."""
        fraction = (t - self.start_time) / self.duration
        if fraction >= 1.0:
            return self.target_pressure, self.target_volume, True
        fraction = max(0.0, fraction)

        if self.kind is ProcessKind.ISOCHORIC:
            p = self.start_pressure + (self.target_pressure - self.start_pressure) * fraction
            return p, self.start_volume, False

        v = self.start_volume + (self.target_volume - self.start_volume) * fraction
        if self.kind is ProcessKind.ISOTHERMAL:
            return self.start_pressure * self.start_volume / v, v, False
        return self.start_pressure, v, False


@dataclass(frozen=True)
class PVState:
    t: float
    pressure: float
    volume: float
    process: Optional[ProcessSegment] = None
    status: StepStatus = StepStatus.OK
    status_reason: Optional[str] = None

    @property
    def is_processing(self) -> bool:
        return self.process is not None


@dataclass(frozen=True)
class WorkSummary:
    atm_liters: float
    joules: float


def _clamp(value: float) -> float:
    return min(DIAGRAM_MAX, max(DIAGRAM_MIN, value))


def net_work(points: Iterable[Tuple[float, float]]) -> WorkSummary:
    """
    Signed work done by the gas along a path of (P, V) points in traversal order.

    Expansion contributes positive work, compression negative; a closed clockwise
    cycle therefore yields its enclosed area.
    """
    pts = list(points)
    if len(pts) < 2:
        return WorkSummary(0.0, 0.0)
    pressures = np.array([p for p, _ in pts], dtype=float)
    volumes = np.array([v for _, v in pts], dtype=float)
    w = float(trapezoid(pressures, volumes))
    return WorkSummary(atm_liters=w, joules=w * ATM_LITER_TO_JOULE)


def internal_energy(pressure: float, volume: float) -> float:
    """Monatomic ideal gas, U = 3/2 PV, in joules."""
    return 1.5 * pressure * volume * ATM_LITER_TO_JOULE


@register_model("pv_diagram")
class PVDiagramModel(SimulationModel):
    """Isobaric, isochoric and isothermal processes on a bounded P-V diagram."""

    max_dt = 0.05
    history_capacity = 500

    @classmethod
    def declare_parameters(cls):
        return {
            "initial_pressure": ParameterSpec(
                "initial_pressure", "Initial Pressure", 2.0, minimum=DIAGRAM_MIN, maximum=DIAGRAM_MAX, step=0.1,
                unit="atm", on_change=ChangePolicy.REQUIRES_RESET),
            "initial_volume": ParameterSpec(
                "initial_volume", "Initial Volume", 2.0, minimum=DIAGRAM_MIN, maximum=DIAGRAM_MAX, step=0.1,
                unit="L", on_change=ChangePolicy.REQUIRES_RESET),
            "pressure_step": ParameterSpec(
                "pressure_step", "Pressure Step", 1.0, minimum=0.1, maximum=2.0, step=0.1, unit="atm"),
            "volume_step": ParameterSpec(
                "volume_step", "Volume Step", 1.0, minimum=0.1, maximum=2.0, step=0.1, unit="L"),
            "duration": ParameterSpec(
                "duration", "Process Duration", 0.5, minimum=0.1, maximum=3.0, step=0.1, unit="s"),
        }

    def initial_state(self, params: ParameterSet, rng: np.random.Generator) -> PVState:
        return PVState(t=0.0, pressure=params["initial_pressure"], volume=params["initial_volume"])

    def step(self, state: PVState, params: ParameterSet, dt: float, rng: np.random.Generator) -> PVState:
        self._check_state_type(state, PVState)
        self._check_dt(state, dt)
        t = state.t + dt
        if state.process is None:
            return replace(state, t=t)

        p, v, finished = state.process.point_at(t)
        if finished:
            logger.debug(f"{state.process.kind} process finished at P={p:.3f} atm, V={v:.3f} L")
        return PVState(t=t, pressure=p, volume=v, process=None if finished else state.process)

    def begin_process(self, state: PVState, params: ParameterSet, kind, direction: int) -> Optional[PVState]:
        """
        Starts a process from the current point. `direction` is +1 or -1 and applies to
        the driving variable (volume for isobaric and isothermal, pressure for
        isochoric). Returns the new state, or None when the request is rejected because
        a process is already running or the target equals the current point.
        """
        try:
            kind = ProcessKind(kind)
        except ValueError:
            raise ModelDomainError(
                self.model_type_str,
                f"Unknown process kind. Valid kinds: {[k.value for k in ProcessKind]}.",
                user_input=str(kind),
            ) from None
        if direction not in (1, -1):
            raise ModelDomainError(self.model_type_str, "Direction must be +1 or -1.", user_input=str(direction))

        if state.process is not None:
            logger.warning(f"Rejected {kind} request: a {state.process.kind} process is still running.")
            return None

        p0, v0 = state.pressure, state.volume
        if kind is ProcessKind.ISOCHORIC:
            p1, v1 = _clamp(p0 + direction * params["pressure_step"]), v0
        elif kind is ProcessKind.ISOBARIC:
            p1, v1 = p0, _clamp(v0 + direction * params["volume_step"])
        else:
            # The pressure along PV = const must also stay on the diagram.
            product = p0 * v0
            v_lo = max(DIAGRAM_MIN, product / DIAGRAM_MAX)
            v_hi = min(DIAGRAM_MAX, product / DIAGRAM_MIN)
            v1 = min(v_hi, max(v_lo, v0 + direction * params["volume_step"]))
            p1 = product / v1

        if (p1, v1) == (p0, v0):
            logger.info(f"Rejected {kind} request: the point is already at the diagram bound.")
            return None

        segment = ProcessSegment(
            kind=kind, start_pressure=p0, start_volume=v0, target_pressure=p1, target_volume=v1,
            start_time=state.t, duration=params.si("duration"),
        )
        logger.info(f"Starting {kind} process ({p0:.2f} atm, {v0:.2f} L) -> ({p1:.2f} atm, {v1:.2f} L)")
        return replace(state, process=segment)

    def sample(self, state: PVState, params: ParameterSet) -> Dict[str, float]:
        return {"P": state.pressure, "V": state.volume}

    def should_record(self, state: PVState, last: Optional[HistoryRecord]) -> bool:
        if last is None:
            return True
        return (last.values["P"], last.values["V"]) != (state.pressure, state.volume)

    def readouts(self, state: PVState, params: ParameterSet) -> Dict[str, Any]:
        return {
            "Pressure": Quantity(state.pressure, "atm"),
            "Volume": Quantity(state.volume, "L"),
            "Temperature (PV)": Quantity(state.pressure * state.volume, "atm * L"),
            "Internal Energy": Quantity(internal_energy(state.pressure, state.volume), "J"),
            "Process": str(state.process.kind) if state.process else "idle",
        }

    @classmethod
    def equations(cls) -> Dict[str, sympy.Basic]:
        P, V, n, R, T, W, U = sympy.symbols("P V n R T W U", positive=True)
        V1, V2 = sympy.symbols("V_1 V_2", positive=True)
        return {
            "Ideal gas": sympy.Eq(P * V, n * R * T),
            "Work": sympy.Eq(W, sympy.Integral(P, (V, V1, V2))),
            "Internal energy": sympy.Eq(U, sympy.Rational(3, 2) * n * R * T),
        }
