# src/stemsim_core/models/pendulum.py
"""
Simple and physical (uniform rod) pendulum integrated with semi-implicit Euler.

The angle is measured from the downward vertical in radians; degrees only appear in
the parameter declaration and the readouts. Energies are per unit mass and are
recomputed from (theta, omega) after every step rather than integrated, so they can
never drift away from the motion they describe.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import sympy
from scipy.special import ellipk

from ..parameters import ChangePolicy, ParameterKind, ParameterSpec, ParameterSet
from ..units import Quantity
from .base import DemoPreset, SimulationModel, StepStatus, register_model

logger = logging.getLogger(__name__)

SUBSTEPS = 4


@dataclass(frozen=True)
class PendulumState:
    t: float
    theta: float
    omega: float
    kinetic_energy: float
    potential_energy: float
    status: StepStatus = StepStatus.OK
    status_reason: Optional[str] = None

    @property
    def total_energy(self) -> float:
        return self.kinetic_energy + self.potential_energy


@dataclass(frozen=True)
class PendulumPeriods:
    """Periods in seconds for the current length, gravity and release angle."""
    small_angle: float
    large_angle_series: float
    exact: float
    physical: float


def angular_acceleration(theta: float, length_m: float, gravity: float, mode: str, large_angle: bool) -> float:
    """alpha = -(g/L) f(theta) for a point mass, -(3g/2L) f(theta) for a rod pivoted at one end."""
    restoring = math.sin(theta) if large_angle else theta
    if mode == "physical":
        return (-3.0 * gravity / (2.0 * length_m)) * restoring
    return (-gravity / length_m) * restoring


def pendulum_energies(theta: float, omega: float, length_m: float, gravity: float):
    """KE = 0.5 (L omega)^2 and PE = g L (1 - cos theta), per unit mass."""
    kinetic = 0.5 * (length_m * omega) ** 2
    potential = gravity * length_m * (1.0 - math.cos(theta))
    return kinetic, potential


def pendulum_periods(length_m: float, gravity: float, theta0: float) -> PendulumPeriods:
    """
    Computes the small-angle period, its series correction for larger amplitudes, the
    exact period via the complete elliptic integral of the first kind, and the period
    of a uniform rod of the same length.
    """
    t0 = 2.0 * math.pi * math.sqrt(length_m / gravity)
    series = t0 * (1.0 + theta0 ** 2 / 16.0 + (11.0 / 3072.0) * theta0 ** 4)
    # scipy's ellipk takes the parameter m = k^2.
    exact = 4.0 * math.sqrt(length_m / gravity) * float(ellipk(math.sin(theta0 / 2.0) ** 2))
    physical = 2.0 * math.pi * math.sqrt(2.0 * length_m / (3.0 * gravity))
    return PendulumPeriods(small_angle=t0, large_angle_series=series, exact=exact, physical=physical)


@register_model("pendulum")
class PendulumModel(SimulationModel):
    """Simple or physical pendulum with optional small-angle linearization and damping."""

    max_dt = 0.02
    history_capacity = 300
    history_interval = 0.1

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "mode": ParameterSpec(
                "mode", "Mode", "simple", kind=ParameterKind.CHOICE, choices=("simple", "physical")),
            "length": ParameterSpec(
                "length", "Length", 200.0, minimum=80.0, maximum=300.0, step=5.0, unit="cm"),
            "gravity": ParameterSpec(
                "gravity", "Gravity", 9.8, minimum=1.0, maximum=25.0, step=0.5, unit="m / s ** 2"),
            "damping": ParameterSpec(
                "damping", "Damping", 0.999, minimum=0.98, maximum=1.0, step=0.001),
            "initial_angle": ParameterSpec(
                "initial_angle", "Initial Angle", 45.0, minimum=5.0, maximum=170.0, step=1.0, unit="degree",
                on_change=ChangePolicy.REQUIRES_RESET),
            "large_angle": ParameterSpec(
                "large_angle", "Large Angle", True, kind=ParameterKind.TOGGLE),
        }

    def initial_state(self, params: ParameterSet, rng: np.random.Generator) -> PendulumState:
        theta0 = params.si("initial_angle")
        kinetic, potential = pendulum_energies(theta0, 0.0, params.si("length"), params.si("gravity"))
        return PendulumState(t=0.0, theta=theta0, omega=0.0, kinetic_energy=kinetic, potential_energy=potential)

    def step(self, state: PendulumState, params: ParameterSet, dt: float, rng: np.random.Generator) -> PendulumState:
        self._check_state_type(state, PendulumState)
        self._check_dt(state, dt)

        length_m = params.si("length")
        gravity = params.si("gravity")
        mode = params["mode"]
        large_angle = params["large_angle"]
        damping_per_substep = params["damping"] ** (1.0 / SUBSTEPS)
        h = dt / SUBSTEPS

        theta, omega = state.theta, state.omega
        for _ in range(SUBSTEPS):
            # Semi-implicit Euler: velocity first, position from the updated velocity.
            omega += angular_acceleration(theta, length_m, gravity, mode, large_angle) * h
            omega *= damping_per_substep
            theta += omega * h

        kinetic, potential = pendulum_energies(theta, omega, length_m, gravity)
        return PendulumState(
            t=state.t + dt, theta=theta, omega=omega,
            kinetic_energy=kinetic, potential_energy=potential,
        )

    def sample(self, state: PendulumState, params: ParameterSet) -> Dict[str, float]:
        return {"theta": state.theta, "omega": state.omega, "energy": state.total_energy}

    def periods(self, params: ParameterSet) -> PendulumPeriods:
        return pendulum_periods(params.si("length"), params.si("gravity"), params.si("initial_angle"))

    def readouts(self, state: PendulumState, params: ParameterSet) -> Dict[str, Any]:
        length_m = params.si("length")
        periods = self.periods(params)
        period = periods.physical if params["mode"] == "physical" else (
            periods.exact if params["large_angle"] else periods.small_angle)
        return {
            "Time": Quantity(state.t, "s"),
            "Angle": Quantity(math.degrees(state.theta), "degree"),
            "Angular Velocity": Quantity(state.omega, "rad / s"),
            "Kinetic Energy": Quantity(state.kinetic_energy, "J / kg"),
            "Potential Energy": Quantity(state.potential_energy, "J / kg"),
            "Total Energy": Quantity(state.total_energy, "J / kg"),
            "Bob X": Quantity(length_m * math.sin(state.theta), "m"),
            "Bob Y": Quantity(length_m * math.cos(state.theta), "m"),
            "Period": Quantity(period, "s"),
        }

    @classmethod
    def equations(cls) -> Dict[str, sympy.Basic]:
        theta, g, L, T, alpha = sympy.symbols("theta g L T alpha", positive=True)
        return {
            "Equation of motion": sympy.Eq(alpha, -(g / L) * sympy.sin(theta)),
            "Small-angle period": sympy.Eq(T, 2 * sympy.pi * sympy.sqrt(L / g)),
            "Physical pendulum": sympy.Eq(T, 2 * sympy.pi * sympy.sqrt(2 * L / (3 * g))),
        }

    @classmethod
    def demo_presets(cls) -> List[DemoPreset]:
        return [
            DemoPreset(
                "Pendulum Motion",
                "A pendulum swings back and forth under gravity. For small angles it approximates simple harmonic motion.",
                {"mode": "simple", "initial_angle": 15, "large_angle": False},
            ),
            DemoPreset(
                "Small Angle Approx.",
                "For small angles sin(theta) ~ theta, so the period T = 2pi*sqrt(L/g) does not depend on amplitude.",
                {"initial_angle": 10, "large_angle": False},
            ),
            DemoPreset(
                "Large Angle Effects",
                "Beyond ~15 deg the approximation breaks down and the true period grows with amplitude.",
                {"initial_angle": 60, "large_angle": True},
                highlight='Enable the "Large Angle" toggle.',
            ),
            DemoPreset(
                "Energy Conservation",
                "At the top PE is maximal and KE is zero; at the bottom the reverse. Without damping the total is conserved.",
                {"initial_angle": 45, "damping": 1.0},
            ),
            DemoPreset(
                "Damping",
                "Friction and air resistance remove energy, so the amplitude decays exponentially.",
                {"initial_angle": 45, "damping": 0.995},
            ),
            DemoPreset(
                "Physical Pendulum",
                "A uniform rod pivoted at one end has T = 2pi*sqrt(2L/3g); its inertia shortens the effective length to 2L/3.",
                {"mode": "physical", "initial_angle": 30},
            ),
        ]
