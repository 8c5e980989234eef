# src/stemsim_core/scenario/parser.py
import logging
import re
import string
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import cerberus
import yaml

from .exceptions import ScenarioParsingError, ScenarioSchemaError
from .raw_data import ParsedPreset, ParsedRunConfig, ParsedScenario

logger = logging.getLogger(__name__)

ID_REGEX = r"^[a-zA-Z_][a-zA-Z0-9_]*$"
ALLOWED_ID_CHARS = set(string.ascii_letters + string.digits + "_")


class EnhancedValidator(cerberus.Validator):
    """Cerberus validator with the project's identifier and uniqueness rules."""
    def __init__(self, *args, **kwargs):
        super(EnhancedValidator, self).__init__(*args, **kwargs)
        self.rules['id_regex'] = {'schema': {'type': 'boolean'}}
        self.rules['unique_elements_by_key'] = {'schema': {'type': 'string'}}

    def _validate_id_regex(self, constraint: bool, field: str, value: Any):
        """
        Validates that a value is a plain identifier (no '.', '-' or spaces).
        The rule's arguments are validated against this schema:
        {'type': 'boolean'}
        """
        if not constraint:
            return
        if not isinstance(value, str):
            self._error(field, "must be a string to be validated by id_regex.")
            return
        if not re.match(ID_REGEX, value):
            invalid_chars = sorted(set(value) - ALLOWED_ID_CHARS)
            self._error(
                field,
                f"Identifier '{value}' is invalid. Identifiers must start with a letter or underscore "
                f"and contain only letters, numbers and underscores. Forbidden character(s): {invalid_chars}",
            )

    def _validate_unique_elements_by_key(self, key_for_uniqueness: str, field: str, value: List[Dict]):
        """
        Validates that all dictionaries in a list have a unique value for a given key.
        The rule's arguments are validated against this schema:
        {'type': 'string'}
        """
        if not isinstance(value, list):
            return

        seen, duplicates = set(), set()
        for item in value:
            if not isinstance(item, dict):
                continue
            item_key = item.get(key_for_uniqueness)
            if item_key is None:
                continue
            if item_key in seen:
                duplicates.add(item_key)
            seen.add(item_key)
        if duplicates:
            self._error(field, f"Duplicate values found for key '{key_for_uniqueness}': {sorted(duplicates)}")


class ScenarioParser:
    """
    Loads a scenario YAML document and validates its structure.

    Only structure is checked here. Whether the model type is registered and whether
    each parameter exists and accepts its value is decided by the builder, which knows
    the model's declarations.
    """
    _param_key_rule = {"type": "string", "empty": False, "id_regex": True}
    _param_value_rule = {"type": ["boolean", "number", "string"]}
    _parameters_rule = {
        "type": "dict", "required": False, "default": {},
        "keysrules": _param_key_rule, "valuesrules": _param_value_rule,
    }

    _preset_schema = {
        "title": {"type": "string", "required": True, "empty": False},
        "description": {"type": "string", "required": False, "default": ""},
        "parameters": _parameters_rule,
        "autostart": {"type": "boolean", "required": False, "default": False},
    }

    _schema = {
        "name": {"type": "string", "required": True, "id_regex": True},
        "model": {"type": "string", "required": True, "id_regex": True},
        "seed": {"type": "integer", "required": False, "nullable": True, "min": 0},
        "parameters": _parameters_rule,
        "run": {
            "type": "dict", "required": False, "default": {}, "schema": {
                "max_dt": {"type": "number", "required": False, "min": 0.0001, "max": 1.0},
                "history_capacity": {"type": "integer", "required": False, "min": 1},
                "autostart": {"type": "boolean", "required": False, "default": False},
            },
        },
        "presets": {
            "type": "list", "required": False, "default": [], "unique_elements_by_key": "title",
            "schema": {"type": "dict", "schema": _preset_schema},
        },
    }

    def __init__(self):
        self._validator = EnhancedValidator(self._schema)
        self._validator.allow_unknown = False
        logger.info("ScenarioParser initialized.")

    def parse_file(self, path: Union[str, Path]) -> ParsedScenario:
        source = Path(path).resolve()
        logger.info(f"Parsing scenario file: {source}")
        return self._parse_content(self._load_yaml(source), source)

    def parse_string(self, text: str) -> ParsedScenario:
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ScenarioParsingError(details=f"Invalid YAML syntax: {e}") from e
        return self._parse_content(self._check_root(content, None), None)

    def _parse_content(self, content: Dict[str, Any], source: Optional[Path]) -> ParsedScenario:
        if not self._validator.validate(content):
            raise ScenarioSchemaError(self._validator.errors, source)
        doc = self._validator.document

        run = doc.get("run", {})
        presets = tuple(
            ParsedPreset(
                title=p["title"],
                description=p.get("description", ""),
                parameters=dict(p.get("parameters", {})),
                autostart=p.get("autostart", False),
            )
            for p in doc.get("presets", [])
        )
        parsed = ParsedScenario(
            name=doc["name"],
            model_type=doc["model"],
            parameters=dict(doc.get("parameters", {})),
            seed=doc.get("seed"),
            run=ParsedRunConfig(
                max_dt=run.get("max_dt"),
                history_capacity=run.get("history_capacity"),
                autostart=run.get("autostart", False),
            ),
            presets=presets,
            source_path=source,
        )
        logger.debug(f"Parsed scenario '{parsed.name}' for model '{parsed.model_type}' with {len(presets)} preset(s).")
        return parsed

    def _load_yaml(self, source: Path) -> Dict[str, Any]:
        if not source.is_file():
            raise ScenarioParsingError(details=f"Scenario file not found at path: {source}", file_path=source)
        try:
            with source.open("r", encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except PermissionError as e:
            raise ScenarioParsingError(details=f"Permission denied when trying to read file: {e}", file_path=source) from e
        except yaml.YAMLError as e:
            raise ScenarioParsingError(details=f"Invalid YAML syntax: {e}", file_path=source) from e
        return self._check_root(content, source)

    @staticmethod
    def _check_root(content: Any, source: Optional[Path]) -> Dict[str, Any]:
        if content is None:
            raise ScenarioParsingError(details="The YAML document is empty.", file_path=source)
        if not isinstance(content, dict):
            raise ScenarioParsingError(details="The root of the YAML document must be a mapping.", file_path=source)
        return content
