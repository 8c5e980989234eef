# src/stemsim_core/scenario/exceptions.py
"""
Diagnosable exceptions for loading and validating scenario files.

`ScenarioParsingError` covers everything that stops a file from being read as a YAML
mapping; `ScenarioSchemaError` covers well-formed YAML whose structure does not match
the scenario schema. Both are caught by `SessionBuilder` and re-raised as a single
`ScenarioBuildError`.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import DiagnosableError, format_diagnostic_report


class BaseScenarioError(DiagnosableError):
    """Common base for scenario loading errors."""
    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="Generic Scenario Error",
            details=str(self),
            suggestion="Please check the format and content of the scenario file.",
            context={}
        )


@dataclass(frozen=True)
class ScenarioParsingError(BaseScenarioError):
    """The file is missing, unreadable, not valid YAML or not a mapping at its root."""
    details: str
    file_path: Optional[Path] = None

    def __str__(self):
        where = f" in file '{self.file_path}'" if self.file_path else ""
        return f"Scenario parsing error{where}: {self.details}"

    def get_diagnostic_report(self) -> str:
        return format_diagnostic_report(
            error_type="YAML Parsing or File Error",
            details=self.details,
            suggestion="Ensure the file exists, is readable and contains a valid YAML mapping.",
            context={'source_file': self.file_path}
        )


def _format_errors(errors: Dict[str, Any], indent: str = "  - ") -> str:
    lines = []
    for field_name, messages in sorted(errors.items(), key=lambda kv: str(kv[0])):
        for message in messages:
            if isinstance(message, dict):
                nested = _format_errors(message, indent)
                lines.extend(f"{indent}In '{field_name}': {line[len(indent):]}" for line in nested.splitlines())
            else:
                lines.append(f"{indent}Field '{field_name}': {message}")
    return "\n".join(lines)


@dataclass(frozen=True)
class ScenarioSchemaError(BaseScenarioError):
    """The YAML loaded but does not conform to the scenario schema."""
    errors: Dict[str, Any]
    file_path: Optional[Path] = None

    def __str__(self):
        return f"Scenario schema validation failed for '{self.file_path or '<string>'}':\n{_format_errors(self.errors)}"

    def get_diagnostic_report(self) -> str:
        details = (
            "The structure of the scenario does not conform to the required schema.\n"
            f"See details for {len(self.errors)} issue(s) below:\n\n{_format_errors(self.errors)}"
        )
        return format_diagnostic_report(
            error_type="Scenario Schema Validation Error",
            details=details,
            suggestion="Correct the listed fields. 'name' and 'model' are required, names must be identifiers and preset titles must be unique.",
            context={'source_file': self.file_path}
        )
