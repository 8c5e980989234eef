# src/stemsim_core/scenario/builder.py
"""
Turns a `ParsedScenario` into a live `SimulationSession`.

The builder is the top-level error facade of the configuration stage: any diagnosable
error raised while parsing, resolving the model or applying parameters is re-raised as
one `ScenarioBuildError` whose message is the full diagnostic report.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..errors import DiagnosableError, ScenarioBuildError, report_for
from ..models import DemoPreset, get_model_class
from ..simulation import SimulationSession, TimerBackend, create_session
from .parser import ScenarioParser
from .raw_data import ParsedScenario

logger = logging.getLogger(__name__)


class SessionBuilder:
    def build(self, parsed: ParsedScenario, timer: Optional[TimerBackend] = None) -> SimulationSession:
        logger.info(f"--- Building session for scenario '{parsed.name}' (model '{parsed.model_type}') ---")
        try:
            get_model_class(parsed.model_type)
            session = create_session(
                parsed.model_type,
                timer=timer,
                seed=parsed.seed,
                history_capacity=parsed.run.history_capacity,
                max_dt=parsed.run.max_dt,
            )
            # Validate every preset against the model before anything is applied.
            for preset in parsed.presets:
                for name, value in preset.parameters.items():
                    session.parameters.spec(name).coerce(value)

            session.update_parameters(parsed.parameters)
            session.reset()
            if parsed.run.autostart:
                session.start()

            logger.info(f"--- Session for scenario '{parsed.name}' built successfully. ---")
            return session

        except DiagnosableError as e:
            report = e.get_diagnostic_report()
            if parsed.source_path is not None:
                report = f"{report}\n(while building scenario '{parsed.name}' from {parsed.source_path})"
            raise ScenarioBuildError(report) from e

        except Exception as e:
            report = report_for(
                e, details="The session builder encountered an unexpected internal error",
                suggestion="This may indicate a bug in STEMSim Core. Please review the traceback.",
                context={'source_file': parsed.source_path, 'model': parsed.model_type})
            raise ScenarioBuildError(report) from e

    @staticmethod
    def presets_of(parsed: ParsedScenario) -> List[DemoPreset]:
        """Scenario presets as `DemoPreset`s, ready for `SimulationSession.apply_preset`."""
        return [
            DemoPreset(title=p.title, description=p.description, parameters=dict(p.parameters), autostart=p.autostart)
            for p in parsed.presets
        ]


def load_session(path: Union[str, Path], timer: Optional[TimerBackend] = None) -> SimulationSession:
    """Parses a scenario file and builds its session. Raises ScenarioBuildError on any failure."""
    try:
        parsed = ScenarioParser().parse_file(path)
    except DiagnosableError as e:
        raise ScenarioBuildError(e.get_diagnostic_report()) from e
    return SessionBuilder().build(parsed, timer=timer)
