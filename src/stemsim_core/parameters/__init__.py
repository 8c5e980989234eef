# src/stemsim_core/parameters/__init__.py
from .exceptions import (
    ParameterError,
    ParameterDefinitionError,
    UnknownParameterError,
    ParameterValueError,
)
from .parameters import (
    ChangePolicy,
    ParameterKind,
    ParameterSpec,
    ParameterSet,
    ParameterStore,
)

__all__ = [
    # Exceptions
    "ParameterError",
    "ParameterDefinitionError",
    "UnknownParameterError",
    "ParameterValueError",
    # Core Classes
    "ChangePolicy",
    "ParameterKind",
    "ParameterSpec",
    "ParameterSet",
    "ParameterStore",
]
