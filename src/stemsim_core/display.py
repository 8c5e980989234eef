# src/stemsim_core/display.py
"""
Text surfaces for the read-only info and equation panels.

Renderers draw from session state and history themselves; these helpers only turn
readouts and symbolic equations into display strings.
"""

import logging
import numbers
from typing import Any, List, Mapping, Tuple, Union

import sympy

from .models import SimulationModel
from .units import Quantity, ureg

logger = logging.getLogger(__name__)

# Units kept as declared; rescaling an angle or a per-mass energy to an SI prefix reads badly.
_FIXED_UNITS = {ureg.degree, ureg.radian / ureg.second, ureg.joule / ureg.kilogram}


def format_value(value: Any, precision: int = 4) -> str:
    if isinstance(value, Quantity):
        q = value
        if q.units not in _FIXED_UNITS and q.magnitude != 0:
            q = q.to_compact()
        return f"{q:.{precision}g~P}"
    if isinstance(value, bool):
        return "on" if value else "off"
    if isinstance(value, numbers.Integral):
        return str(value)
    if isinstance(value, numbers.Real):
        return f"{value:.{precision}g}"
    return str(value)


def format_readouts(readouts: Mapping[str, Any], precision: int = 4) -> List[Tuple[str, str]]:
    """Label/text pairs in the model's readout order."""
    return [(label, format_value(value, precision)) for label, value in readouts.items()]


def render_equations(model: Union[SimulationModel, type]) -> List[Tuple[str, str]]:
    """The model's symbolic equations as (label, LaTeX) pairs."""
    equations = model.equations()
    rendered = [(label, sympy.latex(expr)) for label, expr in equations.items()]
    logger.debug(f"Rendered {len(rendered)} equation(s) for {getattr(model, 'model_type_str', model)}.")
    return rendered
