# src/stemsim_core/scenario/raw_data.py

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

# Intermediate records passed from the parser to the builder. Values are still raw
# (numbers, quantity strings, booleans); the parameter store validates them.


@dataclass(frozen=True)
class ParsedPreset:
    title: str
    description: str
    parameters: Dict[str, Any]
    autostart: bool = False


@dataclass(frozen=True)
class ParsedRunConfig:
    max_dt: Optional[float] = None
    history_capacity: Optional[int] = None
    autostart: bool = False


@dataclass(frozen=True)
class ParsedScenario:
    name: str
    model_type: str
    parameters: Dict[str, Any]
    seed: Optional[int] = None
    run: ParsedRunConfig = field(default_factory=ParsedRunConfig)
    presets: Tuple[ParsedPreset, ...] = ()
    source_path: Optional[Path] = None
