# src/stemsim_core/simulation/exceptions.py
"""
Diagnosable exceptions raised by the run loop and the session that owns it.

Errors raised inside a model step are not wrapped here; the scheduler catches any
`Diagnosable` error from its callback and reports it through `SimulationRunError`.
`StepFailure` adds the loop context (model, sim time, frame number) around the
original report so the user sees where in the run the failure happened.
"""
from dataclasses import dataclass
from typing import Optional

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class StepFailure(DiagnosableError):
    """Wraps an exception raised by a step callback with the loop context it happened in."""
    model_type: str
    frame_index: int
    sim_time: Optional[float]
    original_error: Exception

    def __str__(self):
        return f"Step {self.frame_index} of model '{self.model_type}' failed: {self.original_error}"

    def get_diagnostic_report(self) -> str:
        if isinstance(self.original_error, DiagnosableError):
            root_cause = self.original_error.get_diagnostic_report()
        else:
            root_cause = f"{type(self.original_error).__name__}: {self.original_error}"
        return format_diagnostic_report(
            error_type="Simulation Step Failure",
            details=(
                f"Frame {self.frame_index} could not be advanced. The loop was paused and the last good state kept.\n\n"
                f"--- Details of the Root Cause ---\n{root_cause}"
            ),
            suggestion="Address the root cause above, then resume or reset the session.",
            context={
                'model': self.model_type,
                'sim_time': f"{self.sim_time:.4f} s" if self.sim_time is not None else None,
            }
        )


@dataclass()
class SessionStateError(DiagnosableError):
    """Raised when an operation is not valid for the session's model or lifecycle state."""
    model_type: str
    operation: str
    details: str

    def __str__(self):
        return f"Cannot {self.operation} on '{self.model_type}' session: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Session Operation",
            details=f"Operation '{self.operation}' is not available: {self.details}",
            suggestion="Check that the session was built for the model that provides this operation and has not been unmounted.",
            context={'model': self.model_type}
        )
