# tests/conftest.py
import pytest
import numpy as np

from stemsim_core.models import (
    PendulumModel,
    TransientCircuitModel,
    SpringMassModel,
    PVDiagramModel,
    SelectionModel,
)
from stemsim_core.parameters import ParameterSet, ParameterStore
from stemsim_core.simulation import ManualTimer, SimulationSession, PVDiagramSession


def make_params(model_cls, **overrides) -> ParameterSet:
    """A validated ParameterSet for `model_cls` with `overrides` applied through the store."""
    store = ParameterStore(model_cls.declare_parameters())
    store.update(overrides)
    return store.snapshot()


def raw_params(model_cls, **values) -> ParameterSet:
    """
    A ParameterSet that bypasses the store's clamping. Only used to drive integrators
    with inputs the store would never produce.
    """
    specs = model_cls.declare_parameters()
    merged = {name: spec.default for name, spec in specs.items()}
    merged.update(values)
    return ParameterSet(merged, specs)


def run_steps(model, params, dt, n, state=None, rng=None):
    """Steps `model` n times with a fixed dt and returns the list of states, initial included."""
    rng = rng if rng is not None else np.random.default_rng(0)
    state = state if state is not None else model.initial_state(params, rng)
    states = [state]
    for _ in range(n):
        state = model.step(state, params, dt, rng)
        states.append(state)
    return states


@pytest.fixture
def manual_timer():
    return ManualTimer()


@pytest.fixture
def pendulum_session(manual_timer):
    session = SimulationSession(PendulumModel, timer=manual_timer, seed=1)
    yield session
    session.unmount()


@pytest.fixture
def circuit_session(manual_timer):
    session = SimulationSession(TransientCircuitModel, timer=manual_timer, seed=1)
    yield session
    session.unmount()


@pytest.fixture
def selection_session(manual_timer):
    session = SimulationSession(SelectionModel, timer=manual_timer, seed=42)
    yield session
    session.unmount()


@pytest.fixture
def pv_session(manual_timer):
    session = PVDiagramSession(timer=manual_timer, seed=1)
    yield session
    session.unmount()


@pytest.fixture
def spring_model():
    return SpringMassModel()


@pytest.fixture
def pv_model():
    return PVDiagramModel()
