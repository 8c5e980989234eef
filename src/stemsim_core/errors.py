# src/stemsim_core/errors.py
import logging
from abc import abstractmethod
from typing import Any, Dict, Protocol
from typing import runtime_checkable

logger = logging.getLogger(__name__)

# --- User-Facing Exception Hierarchy ---

class StemSimError(Exception):
    """Base class for all custom, user-facing errors in STEMSim Core."""
    pass

class ScenarioBuildError(StemSimError):
    """
    Raised when turning a scenario (file or parsed record) into a live session fails,
    from YAML loading to parameter application. The message is a pre-formatted
    diagnostic report.
    """
    pass

class SimulationRunError(StemSimError):
    """
    Raised when a running session fails inside a step, for example when a model
    rejects its inputs or produces an unusable state. The loop is stopped before
    this is raised and the last good state is kept.
    """
    pass


# --- Diagnostic Protocol & Base Exception ---

@runtime_checkable
class Diagnosable(Protocol):
    """
    A protocol for exceptions that can generate their own diagnostic report.
    Facades check against it with isinstance() before wrapping an error.
    """
    def get_diagnostic_report(self) -> str:
        """Generates a complete, user-friendly, multi-line report string."""
        ...

class DiagnosableError(Exception, Diagnosable):
    """
    Concrete base class for internal exceptions that carry a diagnostic report.

    Subclasses must implement `get_diagnostic_report`; the abstract declaration
    makes an incomplete subclass fail at instantiation time.
    """
    @abstractmethod
    def get_diagnostic_report(self) -> str:
        """
        Abstract method to generate the diagnostic report.
        Subclasses MUST implement this.
        """
        raise NotImplementedError


# --- Stateless Formatting Utility ---

def format_diagnostic_report(
    error_type: str,
    details: str,
    suggestion: str,
    context: Dict[str, Any]
) -> str:
    """
    Formats the final multi-line report string shared by all diagnostics.

    Args:
        error_type: The high-level category of the error (e.g., "Unknown Parameter").
        details: A detailed, potentially multi-line description of the problem.
        suggestion: Advice for the user to resolve the issue.
        context: Contextual information. Recognised keys are 'model', 'parameter',
                 'source_file', 'user_input' and 'sim_time'.

    Returns:
        A formatted report string ready for display.
    """
    lines = [
        "\n",
        "============== STEMSim Core: Actionable Diagnostic Report ==============",
        f"Error Type:     {error_type}",
    ]
    if model := context.get('model'):
        lines.append(f"Model:          {model}")
    if parameter := context.get('parameter'):
        lines.append(f"Parameter:      {parameter}")
    if source_file := context.get('source_file'):
        lines.append(f"Source File:    {source_file}")
    if (user_input := context.get('user_input')) is not None:
        lines.append(f"User Input:     '{user_input}'")
    if (sim_time := context.get('sim_time')) is not None:
        lines.append(f"Sim Time:       {sim_time}")

    lines.append("\nDetails:")
    for line in details.splitlines():
        lines.append(f"  {line}")

    if suggestion:
        lines.append("\nSuggestion:")
        for line in suggestion.splitlines():
            lines.append(f"  {line}")

    lines.append("========================================================================")
    return "\n".join(lines)


def report_for(error: BaseException, details: str = "", suggestion: str = "", context: Dict[str, Any] = None) -> str:
    """
    The diagnostic report of any exception caught at a facade. Diagnosable errors
    report themselves; anything else is framed as an unexpected internal error,
    with `details` prefixed to its message.
    """
    if isinstance(error, Diagnosable):
        return error.get_diagnostic_report()
    message = f"{details}: {error}" if details else str(error)
    return format_diagnostic_report(
        error_type=f"An Unexpected Error Occurred ({type(error).__name__})",
        details=message,
        suggestion=suggestion,
        context=context or {},
    )
