# src/stemsim_core/models/spring.py

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np
import sympy

from ..parameters import ChangePolicy, ParameterSpec, ParameterSet
from ..units import Quantity
from .base import SimulationModel, StepStatus, register_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpringState:
    """Displacement `y` is measured from the unstretched length, positive downward."""
    t: float
    y: float
    v: float
    status: StepStatus = StepStatus.OK
    status_reason: Optional[str] = None


def equilibrium_offset(mass: float, spring_constant: float, gravity: float) -> float:
    return mass * gravity / spring_constant


@register_model("spring_mass")
class SpringMassModel(SimulationModel):
    """A damped vertical mass on a spring under gravity, integrated with semi-implicit Euler."""

    max_dt = 0.02
    history_capacity = 200
    history_interval = 0.05

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "mass": ParameterSpec(
                "mass", "Mass", 2.0, minimum=1.0, maximum=10.0, step=0.5, unit="kg"),
            "spring_constant": ParameterSpec(
                "spring_constant", "Spring Constant", 50.0, minimum=10.0, maximum=200.0, step=5.0, unit="N / m"),
            "damping": ParameterSpec(
                "damping", "Damping", 0.5, minimum=0.0, maximum=5.0, step=0.1, unit="N * s / m"),
            "gravity": ParameterSpec(
                "gravity", "Gravity", 9.8, minimum=0.0, maximum=20.0, step=0.1, unit="m / s ** 2"),
            "initial_extension": ParameterSpec(
                "initial_extension", "Initial Extension", 1.0, minimum=0.0, maximum=3.0, step=0.05, unit="m",
                on_change=ChangePolicy.REQUIRES_RESET),
        }

    def initial_state(self, params: ParameterSet, rng: np.random.Generator) -> SpringState:
        return SpringState(t=0.0, y=params.si("initial_extension"), v=0.0)

    def step(self, state: SpringState, params: ParameterSet, dt: float, rng: np.random.Generator) -> SpringState:
        self._check_state_type(state, SpringState)
        self._check_dt(state, dt)

        m = params.si("mass")
        force = m * params.si("gravity") - params.si("spring_constant") * state.y - params.si("damping") * state.v
        v = state.v + (force / m) * dt
        y = state.y + v * dt
        return SpringState(t=state.t + dt, y=y, v=v)

    def sample(self, state: SpringState, params: ParameterSet) -> Dict[str, float]:
        y_eq = equilibrium_offset(params.si("mass"), params.si("spring_constant"), params.si("gravity"))
        return {"y": state.y, "offset": state.y - y_eq}

    def energies(self, state: SpringState, params: ParameterSet) -> Dict[str, float]:
        """
        Kinetic and spring energies. The effective potential measures the spring
        energy about the equilibrium point, where gravity and spring force cancel.
        """
        m, k = params.si("mass"), params.si("spring_constant")
        y_eq = equilibrium_offset(m, k, params.si("gravity"))
        kinetic = 0.5 * m * state.v ** 2
        effective = 0.5 * k * (state.y - y_eq) ** 2
        return {
            "kinetic": kinetic,
            "spring": 0.5 * k * state.y ** 2,
            "effective_potential": effective,
            "total": kinetic + effective,
        }

    def readouts(self, state: SpringState, params: ParameterSet) -> Dict[str, Any]:
        energy = self.energies(state, params)
        y_eq = equilibrium_offset(params.si("mass"), params.si("spring_constant"), params.si("gravity"))
        return {
            "Time": Quantity(state.t, "s"),
            "Displacement": Quantity(state.y, "m"),
            "Velocity": Quantity(state.v, "m / s"),
            "Equilibrium": Quantity(y_eq, "m"),
            "Kinetic Energy": Quantity(energy["kinetic"], "J"),
            "Potential Energy": Quantity(energy["effective_potential"], "J"),
            "Total Energy": Quantity(energy["total"], "J"),
        }

    @classmethod
    def equations(cls) -> Dict[str, sympy.Basic]:
        m, g, k, c, y, v, F, T = sympy.symbols("m g k c y v F T")
        return {
            "Net force": sympy.Eq(F, m * g - k * y - c * v),
            "Equilibrium": sympy.Eq(y, m * g / k),
            "Period": sympy.Eq(T, 2 * sympy.pi * sympy.sqrt(m / k)),
        }
