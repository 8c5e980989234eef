# src/stemsim_core/__init__.py
import logging
from .log_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
logger.info("STEMSim Core package initialized.")

from .units import ureg, pint, Quantity
from .parameters import ChangePolicy, ParameterSpec, ParameterStore, ParameterSet
from .models import MODEL_REGISTRY, SimulationModel, DemoPreset, StepStatus, register_model, get_model_class
from .simulation import (
    SimulationSession,
    PVDiagramSession,
    create_session,
    ManualTimer,
    AsyncioTimer,
    RunState,
)
from .scenario import ScenarioParser, SessionBuilder, load_session
from .display import format_readouts, render_equations
from .errors import StemSimError, ScenarioBuildError, SimulationRunError

__all__ = [
    # Units
    "ureg", "pint", "Quantity",
    # Parameters
    "ChangePolicy", "ParameterSpec", "ParameterStore", "ParameterSet",
    # Models
    "MODEL_REGISTRY", "SimulationModel", "DemoPreset", "StepStatus", "register_model", "get_model_class",
    # Sessions & loops
    "SimulationSession", "PVDiagramSession", "create_session", "ManualTimer", "AsyncioTimer", "RunState",
    # Scenarios
    "ScenarioParser", "SessionBuilder", "load_session",
    # Display
    "format_readouts", "render_equations",
    # Top-Level Errors (Actionable Diagnostics)
    "StemSimError", "ScenarioBuildError", "SimulationRunError",
]
