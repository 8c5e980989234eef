# tests/test_thermo.py
import numpy as np
import pytest

from stemsim_core.models import ModelDomainError, PVDiagramModel, PVState, ProcessKind, net_work
from stemsim_core.models.thermo import DIAGRAM_MAX, DIAGRAM_MIN

from conftest import make_params, run_steps


def begin(model, params, kind, direction, state=None):
    state = state if state is not None else model.initial_state(params, np.random.default_rng(0))
    return model.begin_process(state, params, kind, direction)


class TestProcesses:

    def test_isobaric_expansion_reaches_target(self, pv_model):
        params = make_params(PVDiagramModel)
        started = begin(pv_model, params, "isobaric", +1)
        assert started.is_processing
        assert started.process.target_volume == pytest.approx(3.0)

        states = run_steps(pv_model, params, 0.1, 6, state=started)
        assert states[3].is_processing
        assert states[3].pressure == 2.0
        assert 2.0 < states[3].volume < 3.0
        final = states[-1]
        assert not final.is_processing
        assert (final.pressure, final.volume) == (2.0, pytest.approx(3.0))

    def test_isochoric_keeps_volume(self, pv_model):
        params = make_params(PVDiagramModel)
        started = begin(pv_model, params, ProcessKind.ISOCHORIC, -1)
        for state in run_steps(pv_model, params, 0.05, 12, state=started):
            assert state.volume == 2.0
        assert state.pressure == pytest.approx(1.0)

    def test_isothermal_keeps_pv_constant(self, pv_model):
        params = make_params(PVDiagramModel)
        started = begin(pv_model, params, "isothermal", +1)
        for state in run_steps(pv_model, params, 0.05, 12, state=started):
            assert state.pressure * state.volume == pytest.approx(4.0)
        assert state.volume == pytest.approx(3.0)

    def test_isothermal_target_clamped_so_pressure_stays_on_diagram(self, pv_model):
        params = make_params(PVDiagramModel, initial_pressure=4.0, initial_volume=1.5, volume_step=2.0)
        started = begin(pv_model, params, "isothermal", -1)
        # PV = 6 and P <= 5 forces V >= 1.2.
        assert started.process.target_volume == pytest.approx(1.2)
        assert started.process.target_pressure == pytest.approx(DIAGRAM_MAX)

    def test_request_while_active_is_rejected(self, pv_model):
        params = make_params(PVDiagramModel)
        started = begin(pv_model, params, "isobaric", +1)
        mid = pv_model.step(started, params, 0.1, np.random.default_rng(0))
        assert pv_model.begin_process(mid, params, "isochoric", +1) is None

    def test_step_at_diagram_bound_is_a_no_op(self, pv_model):
        params = make_params(PVDiagramModel, initial_pressure=5.0)
        assert begin(pv_model, params, "isochoric", +1) is None
        params = make_params(PVDiagramModel, initial_volume=DIAGRAM_MIN)
        assert begin(pv_model, params, "isobaric", -1) is None

    def test_targets_are_clamped_to_diagram(self, pv_model):
        params = make_params(PVDiagramModel, initial_volume=4.5, volume_step=2.0)
        started = begin(pv_model, params, "isobaric", +1)
        assert started.process.target_volume == DIAGRAM_MAX

    @pytest.mark.parametrize("kind, direction", [("adiabatic", 1), ("isobaric", 0), ("isobaric", 2)])
    def test_invalid_requests_raise(self, pv_model, kind, direction):
        params = make_params(PVDiagramModel)
        with pytest.raises(ModelDomainError):
            begin(pv_model, params, kind, direction)

    def test_idle_step_only_advances_time(self, pv_model):
        params = make_params(PVDiagramModel)
        s0 = pv_model.initial_state(params, np.random.default_rng(0))
        s1 = pv_model.step(s0, params, 0.25, np.random.default_rng(0))
        assert s1 == PVState(t=0.25, pressure=2.0, volume=2.0)


class TestWork:

    def test_isobaric_work(self):
        summary = net_work([(2.0, 2.0), (2.0, 3.0)])
        assert summary.atm_liters == pytest.approx(2.0)
        assert summary.joules == pytest.approx(202.65)

    def test_compression_is_negative(self):
        assert net_work([(2.0, 3.0), (2.0, 2.0)]).atm_liters == pytest.approx(-2.0)

    def test_short_paths_do_no_work(self):
        assert net_work([]).atm_liters == 0.0
        assert net_work([(1.0, 1.0)]).joules == 0.0


class TestPVSession:

    def test_begin_process_starts_loop_and_draws_path(self, pv_session, manual_timer):
        assert pv_session.begin_process("isobaric", +1) is True
        assert pv_session.is_running
        manual_timer.advance(1.0)
        assert pv_session.state.volume == pytest.approx(3.0)
        assert not pv_session.state.is_processing
        assert pv_session.path()[0] == (2.0, 2.0)
        assert pv_session.path()[-1] == (2.0, pytest.approx(3.0))
        assert pv_session.net_work().atm_liters == pytest.approx(2.0)

    def test_idle_frames_do_not_grow_the_path(self, pv_session, manual_timer):
        pv_session.start()
        manual_timer.advance(1.0)
        assert len(pv_session.path()) == 1

    def test_closed_cycle_net_work(self, pv_session, manual_timer):
        for kind, direction in [("isobaric", 1), ("isochoric", 1), ("isobaric", -1), ("isochoric", -1)]:
            assert pv_session.begin_process(kind, direction)
            manual_timer.advance(1.0)
        assert (pv_session.state.pressure, pv_session.state.volume) == (pytest.approx(2.0), pytest.approx(2.0))
        work = pv_session.net_work()
        # Expansion at 2 atm, compression at 3 atm.
        assert work.atm_liters == pytest.approx(-1.0)
        assert work.joules == pytest.approx(-101.325)

    def test_rejected_request_returns_false(self, pv_session, manual_timer):
        assert pv_session.begin_process("isobaric", 1)
        manual_timer.advance(0.1)
        assert pv_session.begin_process("isochoric", 1) is False

    def test_clear_path_keeps_current_point(self, pv_session, manual_timer):
        pv_session.begin_process("isobaric", 1)
        manual_timer.advance(1.0)
        pv_session.clear_path()
        assert pv_session.path() == [(2.0, pytest.approx(3.0))]
        assert pv_session.net_work().atm_liters == 0.0

    def test_changing_initial_point_resets(self, pv_session, manual_timer):
        pv_session.begin_process("isobaric", 1)
        manual_timer.advance(0.2)
        pv_session.set_parameter("initial_volume", 4.0)
        assert not pv_session.state.is_processing
        assert (pv_session.state.pressure, pv_session.state.volume) == (2.0, 4.0)
        assert not pv_session.is_running
