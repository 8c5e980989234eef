# tests/test_circuits.py
import math

import numpy as np
import pytest

from stemsim_core.models import CircuitState, StepStatus, TransientCircuitModel, lc_period, rl_current

from conftest import make_params, raw_params, run_steps


@pytest.fixture
def model():
    return TransientCircuitModel()


class TestRLCircuit:

    def test_initial_state(self, model):
        params = make_params(TransientCircuitModel, circuit_type="RL")
        state = model.initial_state(params, np.random.default_rng(0))
        assert state.current == 0.0
        assert state.voltage == 0.0
        assert state.inductor_voltage == 12.0

    def test_one_time_constant_reaches_63_percent(self, model):
        params = make_params(TransientCircuitModel, resistance=100, inductance=0.5, voltage=12)
        # tau = L/R = 5 ms.
        state = run_steps(model, params, 0.005, 1)[-1]
        assert state.current == pytest.approx(0.12 * (1 - math.exp(-1)), rel=1e-9)
        assert state.current == pytest.approx(0.0758545, rel=1e-5)

    def test_kirchhoff_voltage_law_holds(self, model):
        params = make_params(TransientCircuitModel)
        for state in run_steps(model, params, 0.001, 30)[1:]:
            assert state.voltage + state.inductor_voltage == pytest.approx(12.0)
            assert state.voltage == pytest.approx(state.current * 100.0)

    def test_current_approaches_v_over_r(self, model):
        params = make_params(TransientCircuitModel)
        state = run_steps(model, params, 0.01, 10)[-1]
        assert state.current == pytest.approx(0.12, rel=1e-6)

    def test_result_is_independent_of_step_size(self, model):
        params = make_params(TransientCircuitModel)
        coarse = run_steps(model, params, 0.004, 5)[-1]
        fine = run_steps(model, params, 0.001, 20)[-1]
        assert coarse.current == pytest.approx(fine.current, rel=1e-9)
        assert coarse.current == pytest.approx(rl_current(0.02, 12.0, 100.0, 0.5))


class TestLCCircuit:

    def test_initial_state_charges_capacitor(self, model):
        params = make_params(TransientCircuitModel, circuit_type="LC")
        state = model.initial_state(params, np.random.default_rng(0))
        assert state.current == 0.0
        assert state.voltage == 12.0
        assert state.inductor_voltage == -12.0

    def test_oscillation_period(self, model):
        params = make_params(TransientCircuitModel, circuit_type="LC", inductance=0.5, capacitance=100)
        expected = 2 * math.pi * math.sqrt(0.5 * 100e-6)
        assert lc_period(0.5, 100e-6) == pytest.approx(expected)
        assert expected == pytest.approx(0.04443, rel=1e-3)

        states = run_steps(model, params, 0.001, 200)
        t = np.array([s.t for s in states])
        v = np.array([s.voltage for s in states])
        rising = np.where((v[:-1] < 0) & (v[1:] >= 0))[0]
        crossings = t[rising] - v[rising] * (t[rising + 1] - t[rising]) / (v[rising + 1] - v[rising])
        assert len(crossings) >= 3
        np.testing.assert_allclose(np.diff(crossings), expected, atol=0.001)

        i = np.array([s.current for s in states])
        rising = np.where((i[:-1] < 0) & (i[1:] >= 0))[0]
        crossings = t[rising] - i[rising] * (t[rising + 1] - t[rising]) / (i[rising + 1] - i[rising])
        assert len(crossings) >= 3
        np.testing.assert_allclose(np.diff(crossings), expected, atol=0.001)

    def test_energy_is_conserved(self, model):
        params = make_params(TransientCircuitModel, circuit_type="LC", inductance=0.5, capacitance=100)
        for state in run_steps(model, params, 0.0013, 150):
            energy = model.stored_energy(state, params)
            assert energy["total"] == pytest.approx(0.5 * 100e-6 * 12.0 ** 2, rel=1e-9)

    def test_inductor_voltage_mirrors_capacitor(self, model):
        params = make_params(TransientCircuitModel, circuit_type="LC")
        for state in run_steps(model, params, 0.003, 20):
            assert state.inductor_voltage == -state.voltage


class TestDegenerateInputs:

    def test_zero_resistance_holds_previous_values(self, model):
        params = raw_params(TransientCircuitModel, resistance=0.0)
        s0 = CircuitState(t=0.1, current=0.05, voltage=5.0, inductor_voltage=7.0)
        s1 = model.step(s0, params, 0.01, np.random.default_rng(0))
        assert s1.status is StepStatus.DEGENERATE
        assert "Resistance" in s1.status_reason
        assert s1.t == pytest.approx(0.11)
        assert (s1.current, s1.voltage, s1.inductor_voltage) == (0.05, 5.0, 7.0)

    def test_zero_capacitance_is_degenerate_only_for_lc(self, model):
        lc = raw_params(TransientCircuitModel, circuit_type="LC", capacitance=0.0)
        rl = raw_params(TransientCircuitModel, circuit_type="RL", capacitance=0.0)
        state = CircuitState(t=0.0, current=0.0, voltage=12.0, inductor_voltage=-12.0)
        assert model.step(state, lc, 0.01, np.random.default_rng(0)).status is StepStatus.DEGENERATE
        assert model.step(state, rl, 0.01, np.random.default_rng(0)).status is StepStatus.OK

    def test_warning_logged_once_on_entering_degenerate_region(self, model, caplog):
        params = raw_params(TransientCircuitModel, inductance=0.0)
        with caplog.at_level("WARNING", logger="stemsim_core.models.circuits"):
            run_steps(model, params, 0.01, 5)
        assert len([r for r in caplog.records if "degenerate" in r.getMessage()]) == 1

    def test_store_never_produces_degenerate_values(self, model):
        params = make_params(TransientCircuitModel, resistance=0, inductance=0, capacitance=0)
        assert params["resistance"] == 10.0
        assert params.si("capacitance") == pytest.approx(1e-6)
        state = run_steps(model, params, 0.01, 3)[-1]
        assert state.status is StepStatus.OK


def test_readouts_depend_on_circuit_type(model):
    rl = make_params(TransientCircuitModel, circuit_type="RL")
    lc = make_params(TransientCircuitModel, circuit_type="LC")
    rl_state = model.initial_state(rl, np.random.default_rng(0))
    lc_state = model.initial_state(lc, np.random.default_rng(0))
    assert "Time Constant" in model.readouts(rl_state, rl)
    assert model.readouts(rl_state, rl)["Time Constant"].magnitude == pytest.approx(0.005)
    assert "Period" in model.readouts(lc_state, lc)
    assert "Time Constant" not in model.readouts(lc_state, lc)
