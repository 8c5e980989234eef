# src/stemsim_core/models/circuits.py
"""
Transient RL charging and ideal LC oscillation.

Both circuits have exact solutions, so they are evaluated at the cumulative elapsed
time instead of being integrated. Step size then only affects how densely the curves
are sampled, never their accuracy.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import sympy

from ..constants import MIN_CAPACITANCE_FARAD, MIN_INDUCTANCE_HENRY, MIN_RESISTANCE_OHM
from ..parameters import ChangePolicy, ParameterKind, ParameterSpec, ParameterSet
from ..units import Quantity
from .base import DemoPreset, SimulationModel, StepStatus, register_model

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CircuitState:
    t: float
    current: float
    voltage: float  # V_R = I*R for RL, V_C for LC.
    inductor_voltage: float
    status: StepStatus = StepStatus.OK
    status_reason: Optional[str] = None


def rl_current(t: float, voltage: float, resistance: float, inductance: float) -> float:
    tau = inductance / resistance
    return (voltage / resistance) * (1.0 - math.exp(-t / tau))


def lc_solution(t: float, voltage: float, inductance: float, capacitance: float):
    """Returns (current, capacitor voltage) for a capacitor charged to `voltage` at t = 0."""
    omega = 1.0 / math.sqrt(inductance * capacitance)
    q0 = capacitance * voltage
    charge = q0 * math.cos(omega * t)
    current = q0 * omega * math.sin(omega * t)
    return current, charge / capacitance


def lc_period(inductance: float, capacitance: float) -> float:
    return 2.0 * math.pi * math.sqrt(inductance * capacitance)


@register_model("rl_lc")
class TransientCircuitModel(SimulationModel):
    """RL step response or LC oscillator driven by a source of `voltage` volts."""

    max_dt = 0.02
    history_capacity = 400
    history_interval = 0.002

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "circuit_type": ParameterSpec(
                "circuit_type", "Circuit", "RL", kind=ParameterKind.CHOICE, choices=("RL", "LC"),
                on_change=ChangePolicy.REQUIRES_RESET),
            "resistance": ParameterSpec(
                "resistance", "Resistance", 100.0, minimum=10.0, maximum=500.0, step=10.0, unit="ohm"),
            "inductance": ParameterSpec(
                "inductance", "Inductance", 0.5, minimum=0.01, maximum=2.0, step=0.01, unit="henry"),
            "capacitance": ParameterSpec(
                "capacitance", "Capacitance", 100.0, minimum=1.0, maximum=500.0, step=1.0, unit="uF"),
            "voltage": ParameterSpec(
                "voltage", "Voltage", 12.0, minimum=1.0, maximum=24.0, step=1.0, unit="volt",
                on_change=ChangePolicy.REQUIRES_RESET),
        }

    def initial_state(self, params: ParameterSet, rng: np.random.Generator) -> CircuitState:
        if params["circuit_type"] == "LC":
            v = params.si("voltage")
            return CircuitState(t=0.0, current=0.0, voltage=v, inductor_voltage=-v)
        return CircuitState(t=0.0, current=0.0, voltage=0.0, inductor_voltage=params.si("voltage"))

    def _degenerate_reason(self, params: ParameterSet) -> Optional[str]:
        if params.si("inductance") < MIN_INDUCTANCE_HENRY:
            return f"Inductance {params.si('inductance')!r} H is below {MIN_INDUCTANCE_HENRY} H."
        if params["circuit_type"] == "RL":
            if params.si("resistance") < MIN_RESISTANCE_OHM:
                return f"Resistance {params.si('resistance')!r} ohm is below {MIN_RESISTANCE_OHM} ohm."
        elif params.si("capacitance") < MIN_CAPACITANCE_FARAD:
            return f"Capacitance {params.si('capacitance')!r} F is below {MIN_CAPACITANCE_FARAD} F."
        return None

    def step(self, state: CircuitState, params: ParameterSet, dt: float, rng: np.random.Generator) -> CircuitState:
        self._check_state_type(state, CircuitState)
        self._check_dt(state, dt)
        t = state.t + dt

        reason = self._degenerate_reason(params)
        if reason is not None:
            if state.status is not StepStatus.DEGENERATE:
                logger.warning(f"Circuit model entered a degenerate region at t={t:.4f} s: {reason}")
            return CircuitState(
                t=t, current=state.current, voltage=state.voltage, inductor_voltage=state.inductor_voltage,
                status=StepStatus.DEGENERATE, status_reason=reason,
            )

        v_source = params.si("voltage")
        inductance = params.si("inductance")
        if params["circuit_type"] == "LC":
            current, v_c = lc_solution(t, v_source, inductance, params.si("capacitance"))
            # Ideal loop: V_L = -V_C.
            return CircuitState(t=t, current=current, voltage=v_c, inductor_voltage=-v_c)

        resistance = params.si("resistance")
        current = rl_current(t, v_source, resistance, inductance)
        v_r = current * resistance
        return CircuitState(t=t, current=current, voltage=v_r, inductor_voltage=v_source - v_r)

    def sample(self, state: CircuitState, params: ParameterSet) -> Dict[str, float]:
        return {"I": state.current, "V": state.voltage}

    def stored_energy(self, state: CircuitState, params: ParameterSet) -> Dict[str, float]:
        u_l = 0.5 * params.si("inductance") * state.current ** 2
        u_c = 0.5 * params.si("capacitance") * state.voltage ** 2 if params["circuit_type"] == "LC" else 0.0
        return {"inductor": u_l, "capacitor": u_c, "total": u_l + u_c}

    def readouts(self, state: CircuitState, params: ParameterSet) -> Dict[str, Any]:
        energy = self.stored_energy(state, params)
        out = {
            "Time": Quantity(state.t, "s"),
            "Current": Quantity(state.current, "A"),
            "Inductor Voltage": Quantity(state.inductor_voltage, "V"),
            "Inductor Energy": Quantity(energy["inductor"], "J"),
        }
        if params["circuit_type"] == "LC":
            out["Capacitor Voltage"] = Quantity(state.voltage, "V")
            out["Capacitor Energy"] = Quantity(energy["capacitor"], "J")
            out["Total Energy"] = Quantity(energy["total"], "J")
            out["Period"] = Quantity(lc_period(params.si("inductance"), params.si("capacitance")), "s")
        else:
            out["Resistor Voltage"] = Quantity(state.voltage, "V")
            out["Time Constant"] = Quantity(params.si("inductance") / params.si("resistance"), "s")
            out["Final Current"] = Quantity(params.si("voltage") / params.si("resistance"), "A")
        return out

    @classmethod
    def equations(cls) -> Dict[str, sympy.Basic]:
        t, V, R, L, C, I, tau, omega, q, Q0 = sympy.symbols("t V R L C I tau omega q Q_0", positive=True)
        return {
            "RL current": sympy.Eq(I, (V / R) * (1 - sympy.exp(-t / tau))),
            "Time constant": sympy.Eq(tau, L / R),
            "LC frequency": sympy.Eq(omega, 1 / sympy.sqrt(L * C)),
            "LC charge": sympy.Eq(q, Q0 * sympy.cos(omega * t)),
        }

    @classmethod
    def demo_presets(cls) -> List[DemoPreset]:
        return [
            DemoPreset(
                "Transient Circuits",
                "RL and LC circuits exhibit transient behavior: currents and voltages change over time as energy "
                "is stored in the inductor's magnetic field and the capacitor's electric field.",
                {"circuit_type": "RL"},
            ),
            DemoPreset(
                "RL Circuit Charging",
                "Current rises exponentially, I(t) = (V/R)(1 - e^(-t/tau)) with tau = L/R. The inductor resists "
                "sudden changes in current.",
                {"circuit_type": "RL", "resistance": 100, "inductance": 0.5, "voltage": 12},
                autostart=True,
            ),
            DemoPreset(
                "RL Time Constant",
                "After one tau the current reaches 63% of its final value; after 5 tau it is essentially steady.",
                {"circuit_type": "RL", "resistance": 50, "inductance": 0.5},
                autostart=True,
            ),
            DemoPreset(
                "Inductor Voltage",
                "V_L = L dI/dt. Initially all voltage drops across L; as the current settles it moves to R.",
                {"circuit_type": "RL"},
                autostart=True,
            ),
            DemoPreset(
                "LC Oscillation",
                "Energy bounces between the capacitor and the inductor at w = 1/sqrt(LC).",
                {"circuit_type": "LC", "inductance": 0.5, "capacitance": 100},
                autostart=True,
            ),
            DemoPreset(
                "LC Frequency",
                "w = 1/sqrt(LC) is the analogue of w = sqrt(k/m); the charge oscillates as q(t) = Q0 cos(wt).",
                {"circuit_type": "LC", "capacitance": 50},
                autostart=True,
            ),
            DemoPreset(
                "Energy Conservation",
                "In an ideal LC circuit the total energy (1/2)CV^2 + (1/2)LI^2 is constant.",
                {"circuit_type": "LC"},
                autostart=True,
            ),
        ]
