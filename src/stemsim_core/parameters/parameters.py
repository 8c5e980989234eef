# src/stemsim_core/parameters/parameters.py

"""
Owns the user-tunable inputs of a simulation.

Every model declares its inputs as `ParameterSpec` objects. A `ParameterStore` holds
the current values for one session and is the only place where values are validated:
quantities are converted to the declared unit, then clamped and snapped to the step
grid. Integrators never clamp; they receive an immutable `ParameterSet` snapshot.

Whether a change takes effect immediately or requires a reset is declared once per
parameter (`ChangePolicy`) and acted upon by the session, never inferred at call sites.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

import pint

from ..units import Quantity, to_magnitude, to_si
from .exceptions import ParameterDefinitionError, UnknownParameterError, ParameterValueError

logger = logging.getLogger(__name__)


class ChangePolicy(Enum):
    """How a running session reacts to a change of this parameter."""
    LIVE = "live"
    REQUIRES_RESET = "requires-reset"

    def __str__(self):
        return self.value


class ParameterKind(Enum):
    FLOAT = "float"
    INTEGER = "integer"
    CHOICE = "choice"
    TOGGLE = "toggle"


@dataclass(frozen=True)
class ParameterSpec:
    """The declaration of a single named control: its range, step, unit and change policy."""
    name: str
    label: str
    default: Any
    kind: ParameterKind = ParameterKind.FLOAT
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    step: Optional[float] = None
    unit: str = "dimensionless"
    choices: Tuple[str, ...] = ()
    on_change: ChangePolicy = ChangePolicy.LIVE

    @property
    def is_numeric(self) -> bool:
        return self.kind in (ParameterKind.FLOAT, ParameterKind.INTEGER)

    def validate_declaration(self):
        """Checks the declaration for internal consistency. Raises ParameterDefinitionError."""
        if self.is_numeric:
            if self.minimum is None or self.maximum is None:
                raise ParameterDefinitionError(self.name, "Numeric parameters must declare both minimum and maximum.")
            if self.minimum > self.maximum:
                raise ParameterDefinitionError(self.name, f"Minimum {self.minimum} exceeds maximum {self.maximum}.")
            if self.step is not None and self.step <= 0:
                raise ParameterDefinitionError(self.name, f"Step must be positive, got {self.step}.")
            if not (self.minimum <= self.default <= self.maximum):
                raise ParameterDefinitionError(
                    self.name, f"Default {self.default} lies outside [{self.minimum}, {self.maximum}]."
                )
        elif self.kind is ParameterKind.CHOICE:
            if not self.choices:
                raise ParameterDefinitionError(self.name, "Choice parameters must declare at least one choice.")
            if self.default not in self.choices:
                raise ParameterDefinitionError(
                    self.name, f"Default '{self.default}' is not one of {list(self.choices)}."
                )
        elif self.kind is ParameterKind.TOGGLE and not isinstance(self.default, bool):
            raise ParameterDefinitionError(self.name, "Toggle parameters must have a boolean default.")

    def coerce(self, value: Any) -> Any:
        """
        Converts raw input into a valid stored value for this parameter.

        Numeric input is converted into the declared unit, clamped to [minimum, maximum]
        and snapped to the nearest step measured from the minimum. Input at or beyond a
        bound reads back as exactly that bound.
        """
        if self.kind is ParameterKind.CHOICE:
            if value not in self.choices:
                raise ParameterValueError(self.name, value, f"Value must be one of {list(self.choices)}.")
            return value

        if self.kind is ParameterKind.TOGGLE:
            if not isinstance(value, bool):
                raise ParameterValueError(self.name, value, "Toggle parameters only accept True or False.")
            return value

        try:
            magnitude = to_magnitude(value, self.unit)
        except (pint.PintError, ValueError, TypeError, AttributeError, SyntaxError) as e:
            raise ParameterValueError(self.name, value, f"Could not interpret value in unit '{self.unit}': {e}") from e

        if math.isnan(magnitude):
            raise ParameterValueError(self.name, value, "NaN is not a valid parameter value.")

        if magnitude >= self.maximum:
            snapped = self.maximum
        elif magnitude <= self.minimum:
            snapped = self.minimum
        elif self.step is not None:
            n_steps = math.floor((magnitude - self.minimum) / self.step + 0.5)
            # Rounding strips float noise such as 9.8000000000000007 off the grid value.
            on_grid = round(self.minimum + n_steps * self.step, 10)
            snapped = min(self.maximum, max(self.minimum, on_grid))
        else:
            snapped = magnitude

        if self.kind is ParameterKind.INTEGER:
            return int(math.floor(snapped + 0.5))
        return float(snapped)


class ParameterSet(Mapping[str, Any]):
    """
    An immutable snapshot of parameter values handed to integrators.

    `params[name]` returns the value in its declared unit (as the user sees it);
    `params.si(name)` returns the magnitude in SI base units, which is what the
    physical models compute with.
    """

    def __init__(self, values: Mapping[str, Any], specs: Mapping[str, ParameterSpec]):
        self._values = MappingProxyType(dict(values))
        self._specs = specs
        self._si_values = MappingProxyType({
            name: to_si(val, specs[name].unit)
            for name, val in values.items() if specs[name].is_numeric
        })

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def si(self, name: str) -> float:
        """The magnitude of a numeric parameter in SI base units."""
        return self._si_values[name]

    def quantity(self, name: str) -> Quantity:
        """The value of a numeric parameter as a pint Quantity in its declared unit."""
        return Quantity(self._values[name], self._specs[name].unit)

    def __repr__(self) -> str:
        return f"ParameterSet({dict(self._values)!r})"


ChangeListener = Callable[[ParameterSpec, Any, Any], None]


class ParameterStore:
    """
    The mutable, per-session owner of parameter values.

    Values are validated on every `set`; listeners are notified only when the stored
    value actually changes, so repeated identical sets are silent no-ops.
    """

    def __init__(self, specs: Mapping[str, ParameterSpec]):
        for spec in specs.values():
            spec.validate_declaration()
        self._specs: Dict[str, ParameterSpec] = dict(specs)
        self._values: Dict[str, Any] = {name: spec.default for name, spec in self._specs.items()}
        self._listeners: List[ChangeListener] = []
        logger.debug(f"ParameterStore initialized with {len(self._specs)} parameters: {list(self._specs)}")

    @property
    def specs(self) -> Mapping[str, ParameterSpec]:
        return MappingProxyType(self._specs)

    def spec(self, name: str) -> ParameterSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise UnknownParameterError(name, tuple(self._specs)) from None

    def get(self, name: str) -> Any:
        self.spec(name)
        return self._values[name]

    def set(self, name: str, value: Any) -> Any:
        """Validates and stores a value. Returns the value actually stored."""
        return self.update({name: value})[name]

    def update(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Sets several parameters at once. Returns the stored values.

        Every value is validated before any is stored, so a rejected value leaves the
        store untouched and no listener fires. Listeners are then notified in mapping
        order, each seeing the complete new set of values.
        """
        coerced = {name: self.spec(name).coerce(value) for name, value in values.items()}

        changes = []
        for name, new_value in coerced.items():
            old_value = self._values[name]
            if new_value == old_value:
                continue
            self._values[name] = new_value
            changes.append((self._specs[name], old_value, new_value))

        for spec, old_value, new_value in changes:
            logger.debug(
                f"Parameter '{spec.name}' changed: {old_value!r} -> {new_value!r} (policy: {spec.on_change})")
            for listener in list(self._listeners):
                listener(spec, old_value, new_value)
        return coerced

    def reset_to_defaults(self):
        """
        Restores every declared default as-is. Defaults are not snapped, since a model may
        declare one that lies between two steps of its control.
        """
        for name, spec in self._specs.items():
            old_value = self._values[name]
            if old_value == spec.default:
                continue
            self._values[name] = spec.default
            for listener in list(self._listeners):
                listener(spec, old_value, spec.default)

    def snapshot(self) -> ParameterSet:
        return ParameterSet(self._values, self._specs)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Registers a change listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return unsubscribe
