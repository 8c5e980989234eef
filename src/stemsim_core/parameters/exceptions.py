# src/stemsim_core/parameters/exceptions.py
"""
Defines the diagnosable exceptions for the parameter subsystem.

All errors derive from `ParameterError`, which itself derives from
`DiagnosableError`, so a caller can catch the whole family with a single
`except ParameterError:` and still rely on `get_diagnostic_report()`.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from ..errors import DiagnosableError, format_diagnostic_report


class ParameterError(DiagnosableError):
    """
    A concrete base class for all parameter-related errors.
    """
    def get_diagnostic_report(self) -> str:
        """Fallback report for the base class."""
        return format_diagnostic_report(
            error_type="Generic Parameter Error",
            details=str(self),
            suggestion="Review the parameter names and values supplied to the simulation.",
            context={}
        )


@dataclass(frozen=True)
class ParameterDefinitionError(ParameterError):
    """Raised when a model declares an inconsistent `ParameterSpec`."""
    name: str
    details: str

    def __str__(self):
        return f"Invalid declaration for parameter '{self.name}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Parameter Declaration",
            details=self.details,
            suggestion="Fix the model's declare_parameters(): min must not exceed max, the step must be positive and the default must be a valid value.",
            context={'parameter': self.name}
        )


@dataclass(frozen=True)
class UnknownParameterError(ParameterError):
    """Raised when a name is not declared by the model owning the store."""
    name: str
    available: Tuple[str, ...]

    def __str__(self):
        return f"Unknown parameter '{self.name}'. Available parameters: {list(self.available)}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Parameter",
            details=f"Parameter '{self.name}' is not declared.\nDeclared parameters are: {', '.join(self.available)}.",
            suggestion="Check the spelling of the parameter name against the model's declared parameters.",
            context={'parameter': self.name}
        )


@dataclass(frozen=True)
class ParameterValueError(ParameterError):
    """Raised when a value cannot be interpreted for a parameter (wrong type, unit or choice)."""
    name: str
    user_input: Any
    details: str

    def __str__(self):
        return f"Parameter '{self.name}': {self.details} (input: '{self.user_input}')"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Parameter Value",
            details=self.details,
            suggestion="Supply a number in the declared unit, a quantity string with compatible units (e.g. '150 cm'), or one of the declared choices.",
            context={'parameter': self.name, 'user_input': self.user_input}
        )
