# src/stemsim_core/algorithms/exceptions.py
from dataclasses import dataclass
from typing import Any

from ..errors import DiagnosableError, format_diagnostic_report


@dataclass()
class AlgorithmInputError(DiagnosableError):
    """Raised when an algorithm is asked to run on input it cannot accept."""
    algorithm: str
    details: str
    user_input: Any = None

    def __str__(self):
        return f"{self.algorithm}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Invalid Algorithm Input",
            details=self.details,
            suggestion="Check the start/goal nodes, the algorithm name and that the input sequence is sorted.",
            context={'model': self.algorithm, 'user_input': self.user_input}
        )
