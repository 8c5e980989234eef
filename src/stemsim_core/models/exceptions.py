# src/stemsim_core/models/exceptions.py
"""
Defines the diagnosable exceptions for the models subsystem.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class ModelError(DiagnosableError):
    """
    Raised when a model cannot produce a state from the inputs it was given,
    e.g. a state of the wrong type handed to `step()` or a negative time delta.
    """
    model_type: str
    details: str
    sim_time: Optional[float] = None

    def __str__(self):
        return f"Model '{self.model_type}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Model Step Error",
            details=self.details,
            suggestion="Check that the state passed to step() was produced by the same model and that the time delta is finite and non-negative.",
            context={
                'model': self.model_type,
                'sim_time': f"{self.sim_time:.4f} s" if self.sim_time is not None else None,
            }
        )


@dataclass()
class UnknownModelError(DiagnosableError):
    """Raised when a model type string is not present in the registry."""
    model_type: str
    available: Tuple[str, ...]

    def __str__(self):
        return f"Unknown model type '{self.model_type}'. Available: {list(self.available)}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Unknown Model Type",
            details=f"No model is registered under '{self.model_type}'.\nRegistered models: {', '.join(self.available)}.",
            suggestion="Use one of the registered model type names.",
            context={'model': self.model_type}
        )


@dataclass()
class ModelDomainError(DiagnosableError):
    """
    Raised when a request to a model names something outside its domain, e.g. an
    unknown process kind or direction.
    """
    model_type: str
    details: str
    user_input: Optional[str] = None

    def __str__(self):
        return f"Model '{self.model_type}': {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Model Input",
            details=self.details,
            suggestion="Use one of the values listed above.",
            context={'model': self.model_type, 'user_input': self.user_input}
        )
