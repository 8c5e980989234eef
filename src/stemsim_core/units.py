# --- src/stemsim_core/units.py ---
import numbers

import pint
import logging

logger = logging.getLogger(__name__)
ureg = pint.UnitRegistry()
Quantity = ureg.Quantity
logger.info("Pint Unit Registry initialized.")


def to_magnitude(value, unit: str) -> float:
    """
    Converts a plain number, a quantity string ("150 cm") or a pint Quantity into a
    float magnitude expressed in `unit`. Plain numbers are taken to already be in `unit`.

    Raises:
        pint.DimensionalityError: If a quantity with an incompatible dimension is given.
        pint.UndefinedUnitError: If a quantity string names an unknown unit.
        ValueError: If a string cannot be parsed as a quantity.
    """
    if isinstance(value, bool):
        raise ValueError(f"Boolean '{value}' is not a numeric quantity.")
    if isinstance(value, numbers.Real):
        return float(value)
    if isinstance(value, str):
        value = ureg.Quantity(value)
    if isinstance(value, Quantity):
        # A bare number ("12") carries no units and is read in the declared unit.
        if value.unitless:
            return float(value.magnitude)
        return float(value.to(unit).magnitude)
    raise ValueError(f"Cannot interpret value of type '{type(value).__name__}' as a quantity.")


def to_si(magnitude: float, unit: str) -> float:
    """Converts a magnitude in `unit` to SI base units."""
    if unit == "dimensionless":
        return float(magnitude)
    return float(Quantity(magnitude, unit).to_base_units().magnitude)
