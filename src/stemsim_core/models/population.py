# src/stemsim_core/models/population.py
"""
Natural selection on a single continuous trait in [0, 1].

Each generation parents are drawn with a fitness bias, offspring inherit the parental
mean and occasionally mutate. The trait is read as a two-allele locus (trait >= 0.5 is
the `p` allele) to report allele frequencies. All randomness comes from the numpy
Generator owned by the session, so a given seed always replays the same history.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np
import sympy

from ..parameters import ChangePolicy, ParameterKind, ParameterSpec, ParameterSet
from .base import DemoPreset, SimulationModel, StepStatus, register_model

logger = logging.getLogger(__name__)

PARENT_ATTEMPTS = 5
MUTATION_SPAN = 0.2


@dataclass(frozen=True, eq=False)
class PopulationState:
    t: float
    generation: int
    traits: np.ndarray
    x: np.ndarray
    y: np.ndarray
    status: StepStatus = StepStatus.OK
    status_reason: Optional[str] = None

    def __post_init__(self):
        for arr in (self.traits, self.x, self.y):
            arr.flags.writeable = False

    def __eq__(self, other):
        if not isinstance(other, PopulationState):
            return NotImplemented
        return (
            self.t == other.t
            and self.generation == other.generation
            and self.status == other.status
            and np.array_equal(self.traits, other.traits)
            and np.array_equal(self.x, other.x)
            and np.array_equal(self.y, other.y)
        )

    @property
    def size(self) -> int:
        return int(self.traits.size)


def fitness(traits: np.ndarray, selection_type: str, pressure: float) -> np.ndarray:
    if selection_type == "directional":
        return 0.3 + traits * pressure * 2.0
    if selection_type == "stabilizing":
        return np.maximum(0.1, 1.0 - np.abs(traits - 0.5) * pressure * 4.0)
    if selection_type == "disruptive":
        return 0.3 + np.abs(traits - 0.5) * pressure * 3.0
    return np.full_like(traits, 0.5)


def allele_frequencies(traits: np.ndarray):
    """Returns (p, q) where p is the share of individuals with trait >= 0.5."""
    if traits.size == 0:
        return 0.5, 0.5
    p = float(np.count_nonzero(traits >= 0.5)) / traits.size
    return p, 1.0 - p


def _choose_parents(rng: np.random.Generator, normalized: np.ndarray, n_offspring: int) -> np.ndarray:
    """
    Fitness-biased parent indices: each starts as a uniform pick and is replaced by
    the first of up to PARENT_ATTEMPTS candidates whose normalized fitness beats a
    uniform draw.
    """
    n = normalized.size
    parents = rng.integers(0, n, size=n_offspring)
    candidates = rng.integers(0, n, size=(n_offspring, PARENT_ATTEMPTS))
    accepted = normalized[candidates] > rng.random((n_offspring, PARENT_ATTEMPTS))
    any_accepted = accepted.any(axis=1)
    first = accepted.argmax(axis=1)
    parents[any_accepted] = candidates[any_accepted, first[any_accepted]]
    return parents


@register_model("selection")
class SelectionModel(SimulationModel):
    """Directional, stabilizing or disruptive selection stepped once per generation."""

    driver = "interval"
    step_interval = 0.5
    history_capacity = 100

    @classmethod
    def declare_parameters(cls) -> Dict[str, ParameterSpec]:
        return {
            "population_size": ParameterSpec(
                "population_size", "Population Size", 200, kind=ParameterKind.INTEGER,
                minimum=50, maximum=500, step=50, on_change=ChangePolicy.REQUIRES_RESET),
            "selection_pressure": ParameterSpec(
                "selection_pressure", "Selection Pressure", 0.3, minimum=0.0, maximum=1.0, step=0.05),
            "mutation_rate": ParameterSpec(
                "mutation_rate", "Mutation Rate", 0.02, minimum=0.0, maximum=0.1, step=0.005),
            "selection_type": ParameterSpec(
                "selection_type", "Selection Type", "directional", kind=ParameterKind.CHOICE,
                choices=("directional", "stabilizing", "disruptive")),
        }

    def initial_state(self, params: ParameterSet, rng: np.random.Generator) -> PopulationState:
        n = params["population_size"]
        return PopulationState(t=0.0, generation=0, traits=rng.random(n), x=rng.random(n), y=rng.random(n))

    def step(self, state: PopulationState, params: ParameterSet, dt: float, rng: np.random.Generator) -> PopulationState:
        self._check_state_type(state, PopulationState)
        self._check_dt(state, dt)
        if state.size == 0:
            return PopulationState(
                t=state.t + dt, generation=state.generation, traits=state.traits, x=state.x, y=state.y,
                status=StepStatus.DEGENERATE, status_reason="Population is empty.",
            )

        n = params["population_size"]
        fit = fitness(state.traits, params["selection_type"], params["selection_pressure"])
        normalized = fit / fit.max()

        mothers = _choose_parents(rng, normalized, n)
        fathers = _choose_parents(rng, normalized, n)
        traits = (state.traits[mothers] + state.traits[fathers]) / 2.0

        mutates = rng.random(n) < params["mutation_rate"]
        traits = traits + np.where(mutates, (rng.random(n) - 0.5) * MUTATION_SPAN, 0.0)
        traits = np.clip(traits, 0.0, 1.0)

        generation = state.generation + 1
        logger.debug(f"Generation {generation}: mean trait {traits.mean():.4f}, {int(mutates.sum())} mutations")
        return PopulationState(
            t=state.t + dt, generation=generation, traits=traits, x=rng.random(n), y=rng.random(n),
        )

    def sample(self, state: PopulationState, params: ParameterSet) -> Dict[str, float]:
        p, q = allele_frequencies(state.traits)
        mean = float(state.traits.mean()) if state.size else 0.5
        return {"p": p, "q": q, "mean_trait": mean, "generation": float(state.generation)}

    def should_record(self, state: PopulationState, last) -> bool:
        return last is None or state.generation != int(last.values["generation"])

    def readouts(self, state: PopulationState, params: ParameterSet) -> Dict[str, Any]:
        p, q = allele_frequencies(state.traits)
        return {
            "Generation": state.generation,
            "Population": state.size,
            "p": p,
            "q": q,
            "Mean Trait": float(state.traits.mean()) if state.size else 0.5,
            "p^2": p * p,
            "2pq": 2 * p * q,
            "q^2": q * q,
        }

    @classmethod
    def equations(cls) -> Dict[str, sympy.Basic]:
        p, q = sympy.symbols("p q", nonnegative=True)
        return {
            "Allele frequencies": sympy.Eq(p + q, 1),
            "Hardy-Weinberg": sympy.Eq(p ** 2 + 2 * p * q + q ** 2, 1),
        }

    @classmethod
    def demo_presets(cls) -> List[DemoPreset]:
        return [
            DemoPreset(
                "Natural Selection",
                "Organisms with traits better suited to their environment reproduce more. Over generations "
                "favorable alleles increase in frequency.",
                {"selection_type": "directional"},
            ),
            DemoPreset(
                "Directional Selection",
                "Favors one extreme phenotype, so the population mean shifts in one direction.",
                {"selection_type": "directional", "selection_pressure": 0.5},
                autostart=True,
            ),
            DemoPreset(
                "Stabilizing Selection",
                "Favors the intermediate phenotype and selects against extremes, reducing variation.",
                {"selection_type": "stabilizing", "selection_pressure": 0.5},
                autostart=True,
            ),
            DemoPreset(
                "Disruptive Selection",
                "Favors both extremes and selects against the middle. Can lead to speciation.",
                {"selection_type": "disruptive", "selection_pressure": 0.5},
                autostart=True,
            ),
            DemoPreset(
                "Hardy-Weinberg Equilibrium",
                "Without selection or mutation, p^2 + 2pq + q^2 = 1 holds and allele frequencies only drift.",
                {"selection_pressure": 0, "mutation_rate": 0},
            ),
        ]
