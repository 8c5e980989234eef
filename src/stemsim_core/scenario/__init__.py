# src/stemsim_core/scenario/__init__.py
from .exceptions import BaseScenarioError, ScenarioParsingError, ScenarioSchemaError
from .raw_data import ParsedPreset, ParsedRunConfig, ParsedScenario
from .parser import EnhancedValidator, ScenarioParser
from .builder import SessionBuilder, load_session

__all__ = [
    # Exceptions
    "BaseScenarioError",
    "ScenarioParsingError",
    "ScenarioSchemaError",
    # Intermediate records
    "ParsedPreset",
    "ParsedRunConfig",
    "ParsedScenario",
    # Parsing & building
    "EnhancedValidator",
    "ScenarioParser",
    "SessionBuilder",
    "load_session",
]
