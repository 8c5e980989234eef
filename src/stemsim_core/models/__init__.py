# src/stemsim_core/models/__init__.py
"""
Makes the models subpackage importable and registers all built-in models.

Importing the concrete model modules triggers their @register_model decorators.
"""
from .exceptions import ModelError, ModelDomainError, UnknownModelError
from .base import (
    SimulationModel,
    SimulationState,
    StepStatus,
    DemoPreset,
    MODEL_REGISTRY,
    register_model,
)
from .pendulum import PendulumModel, PendulumState, PendulumPeriods, pendulum_periods
from .circuits import TransientCircuitModel, CircuitState, lc_period, rl_current
from .spring import SpringMassModel, SpringState, equilibrium_offset
from .thermo import PVDiagramModel, PVState, ProcessKind, ProcessSegment, WorkSummary, net_work
from .population import SelectionModel, PopulationState, allele_frequencies, fitness


def get_model_class(type_str: str) -> type[SimulationModel]:
    """Looks up a registered model class. Raises UnknownModelError."""
    try:
        return MODEL_REGISTRY[type_str]
    except KeyError:
        raise UnknownModelError(type_str, tuple(sorted(MODEL_REGISTRY))) from None


__all__ = [
    # Exceptions
    "ModelError",
    "ModelDomainError",
    "UnknownModelError",
    # Framework
    "SimulationModel",
    "SimulationState",
    "StepStatus",
    "DemoPreset",
    "MODEL_REGISTRY",
    "register_model",
    "get_model_class",
    # Pendulum
    "PendulumModel",
    "PendulumState",
    "PendulumPeriods",
    "pendulum_periods",
    # Circuits
    "TransientCircuitModel",
    "CircuitState",
    "lc_period",
    "rl_current",
    # Spring
    "SpringMassModel",
    "SpringState",
    "equilibrium_offset",
    # Thermodynamics
    "PVDiagramModel",
    "PVState",
    "ProcessKind",
    "ProcessSegment",
    "WorkSummary",
    "net_work",
    # Population genetics
    "SelectionModel",
    "PopulationState",
    "allele_frequencies",
    "fitness",
]
