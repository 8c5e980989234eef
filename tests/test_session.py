# tests/test_session.py
import pytest

from stemsim_core.errors import SimulationRunError
from stemsim_core.parameters import ParameterValueError
from stemsim_core.models import (
    DemoPreset,
    ModelError,
    PendulumModel,
    PendulumState,
    SpringMassModel,
    TransientCircuitModel,
    UnknownModelError,
)
from stemsim_core.simulation import (
    EventSource,
    PVDiagramSession,
    RunState,
    SessionStateError,
    SimulationSession,
    StepFailure,
    create_session,
)

FRAME = 1.0 / 60.0


class FaultyPendulum(PendulumModel):
    """Fails on its third step."""

    def __init__(self):
        self.calls = 0

    def step(self, state, params, dt, rng):
        self.calls += 1
        if self.calls == 3:
            raise ModelError(model_type="pendulum", details="integrator blew up", sim_time=state.t)
        return super().step(state, params, dt, rng)


class TestLifecycle:

    def test_new_session_is_idle_with_initial_state_recorded(self, pendulum_session):
        assert pendulum_session.run_state is RunState.IDLE
        assert pendulum_session.state.t == 0.0
        assert len(pendulum_session.history) == 1
        assert pendulum_session.history.latest.t == 0.0

    def test_timer_drives_steps_while_running(self, pendulum_session, manual_timer):
        pendulum_session.start()
        manual_timer.advance(30 * FRAME + 1e-9)
        assert pendulum_session.steps_taken == 30
        assert pendulum_session.state.t == pytest.approx(0.5)

    def test_toggle_switches_between_running_and_paused(self, pendulum_session, manual_timer):
        pendulum_session.toggle()
        assert pendulum_session.is_running
        manual_timer.advance(0.1)
        pendulum_session.toggle()
        assert pendulum_session.run_state is RunState.PAUSED
        steps = pendulum_session.steps_taken
        manual_timer.advance(1.0)
        assert pendulum_session.steps_taken == steps
        pendulum_session.toggle()
        assert pendulum_session.is_running

    def test_reset_restores_initial_state_and_stops(self, pendulum_session, manual_timer):
        initial = pendulum_session.state
        pendulum_session.start()
        manual_timer.advance(1.0)
        pendulum_session.reset()
        assert pendulum_session.state == initial
        assert pendulum_session.run_state is RunState.IDLE
        assert pendulum_session.steps_taken == 0
        assert len(pendulum_session.history) == 1

    def test_unmount_releases_everything(self, manual_timer):
        events = EventSource()
        session = SimulationSession(PendulumModel, timer=manual_timer, events=events, seed=0)
        session.bind_resize(lambda w, h: None)
        rendered = []
        session.add_renderer(rendered.append)
        session.start()
        session.unmount()

        assert events.listener_count("resize") == 0
        assert manual_timer.pending == 0
        manual_timer.advance(1.0)
        assert session.steps_taken == 0
        with pytest.raises(SessionStateError):
            session.start()
        with pytest.raises(SessionStateError):
            session.reset()
        # Parameter changes no longer reach the unmounted session.
        session.set_parameter("initial_angle", 20)
        assert rendered == []

    def test_unmount_is_idempotent(self, pendulum_session):
        pendulum_session.unmount()
        pendulum_session.unmount()

    def test_history_capacity_override(self, manual_timer):
        session = SimulationSession(SpringMassModel, timer=manual_timer, history_capacity=3)
        for _ in range(10):
            session.advance(0.1)
        assert len(session.history) == 3

    def test_zero_history_capacity_is_rejected(self, manual_timer):
        with pytest.raises(ValueError):
            SimulationSession(SpringMassModel, timer=manual_timer, history_capacity=0)


class TestStepping:

    def test_advance_notifies_renderers_after_each_step(self, pendulum_session):
        seen = []
        pendulum_session.add_renderer(lambda s: seen.append(s.state.t))
        pendulum_session.advance(0.01)
        pendulum_session.advance(0.01)
        assert seen == [pytest.approx(0.01), pytest.approx(0.02)]

    def test_removed_renderer_is_not_called(self, pendulum_session):
        seen = []
        remove = pendulum_session.add_renderer(lambda s: seen.append(1))
        remove()
        pendulum_session.advance(0.01)
        assert seen == []

    def test_history_respects_sampling_interval(self, pendulum_session):
        for _ in range(100):
            pendulum_session.advance(0.01)
        # One entry per 0.1 s of simulated time plus the initial state.
        assert 9 <= len(pendulum_session.history) <= 11

    def test_frame_clamp_is_applied(self, manual_timer):
        session = SimulationSession(PendulumModel, timer=manual_timer, max_dt=0.01, frame_interval=0.05)
        session.start()
        manual_timer.advance(0.2 + 1e-9)
        assert session.steps_taken == 4
        assert session.state.t == pytest.approx(0.04)

    def test_failing_step_pauses_and_keeps_last_good_state(self, manual_timer):
        session = SimulationSession(FaultyPendulum(), timer=manual_timer, seed=1)
        session.start()
        with pytest.raises(SimulationRunError) as excinfo:
            manual_timer.advance(1.0)
        assert session.run_state is RunState.PAUSED
        assert session.steps_taken == 2
        assert isinstance(session.state, PendulumState)
        assert session.state.t == pytest.approx(2 * FRAME)
        assert isinstance(excinfo.value.__cause__, StepFailure)
        report = str(excinfo.value)
        assert "integrator blew up" in report
        assert "Frame 3" in report

    def test_direct_advance_failure_raises_step_failure(self, manual_timer):
        session = SimulationSession(PendulumModel, timer=manual_timer)
        with pytest.raises(StepFailure) as excinfo:
            session.advance(-1.0)
        assert isinstance(excinfo.value.original_error, ModelError)
        assert session.state.t == 0.0


class TestParameters:

    def test_requires_reset_change_resets_state(self, pendulum_session, manual_timer):
        pendulum_session.start()
        manual_timer.advance(0.5)
        pendulum_session.set_parameter("initial_angle", 30)
        assert pendulum_session.state.t == 0.0
        assert pendulum_session.state.theta == pytest.approx(0.5235987755982988)
        assert pendulum_session.run_state is RunState.IDLE

    def test_live_change_applies_without_reset(self, pendulum_session, manual_timer):
        pendulum_session.start()
        manual_timer.advance(0.5)
        t_before = pendulum_session.state.t
        pendulum_session.set_parameter("gravity", 20)
        assert pendulum_session.state.t == t_before
        assert pendulum_session.is_running
        assert pendulum_session.params["gravity"] == 20.0

    def test_identical_set_is_a_no_op(self, pendulum_session):
        pendulum_session.advance(0.1)
        pendulum_session.set_parameter("initial_angle", 45)
        assert pendulum_session.state.t == pytest.approx(0.1)

    def test_apply_preset_updates_resets_and_starts(self, circuit_session, manual_timer):
        circuit_session.advance(0.01)
        preset = DemoPreset("LC", "oscillate", {"circuit_type": "LC", "capacitance": 50}, autostart=True)
        circuit_session.apply_preset(preset)
        assert circuit_session.params["circuit_type"] == "LC"
        assert circuit_session.params["capacitance"] == 50.0
        assert circuit_session.state.t == 0.0
        assert circuit_session.state.voltage == 12.0
        assert circuit_session.is_running

    def test_apply_preset_without_autostart_stays_idle(self, circuit_session):
        circuit_session.apply_preset(circuit_session.demo_presets()[0])
        assert circuit_session.run_state is RunState.IDLE

    def test_rejected_preset_leaves_running_session_untouched(self, pendulum_session, manual_timer):
        pendulum_session.start()
        manual_timer.advance(0.5)
        t_before = pendulum_session.state.t
        bad = DemoPreset("bad", "", {"length": 100, "initial_angle": 30, "gravity": "abc"})
        with pytest.raises(ParameterValueError):
            pendulum_session.apply_preset(bad)
        assert pendulum_session.params["length"] == 200.0
        assert pendulum_session.params["initial_angle"] == 45.0
        assert pendulum_session.is_running
        assert pendulum_session.state.t == t_before

    def test_reset_after_changes_matches_fresh_session(self, pendulum_session, manual_timer):
        pendulum_session.start()
        manual_timer.advance(1.0)
        pendulum_session.pause()
        pendulum_session.set_parameter("gravity", 20)
        pendulum_session.set_parameter("initial_angle", 30)
        pendulum_session.reset()

        fresh = SimulationSession(PendulumModel, seed=1)
        fresh.update_parameters({"gravity": 20, "initial_angle": 30})
        assert dict(pendulum_session.params) == dict(fresh.params)
        assert pendulum_session.state == fresh.state
        assert list(pendulum_session.history.column("theta")) == list(fresh.history.column("theta"))
        assert pendulum_session.advance(0.01) == fresh.advance(0.01)
        fresh.unmount()

    def test_every_builtin_preset_applies(self, manual_timer):
        for model_type in ("pendulum", "rl_lc", "spring_mass", "pv_diagram", "selection"):
            session = create_session(model_type, timer=manual_timer, seed=3)
            for preset in session.demo_presets():
                session.apply_preset(preset)
            session.unmount()


class TestFactory:

    def test_create_session_picks_session_class(self, manual_timer):
        assert isinstance(create_session("pv_diagram", timer=manual_timer), PVDiagramSession)
        session = create_session("rl_lc", timer=manual_timer)
        assert type(session) is SimulationSession
        assert isinstance(session.model, TransientCircuitModel)

    def test_unknown_model_type(self):
        with pytest.raises(UnknownModelError):
            create_session("double_pendulum")

    def test_pv_session_rejects_other_models(self, manual_timer):
        with pytest.raises(SessionStateError):
            PVDiagramSession(PendulumModel, timer=manual_timer)

    def test_seed_is_drawn_once_when_omitted(self, manual_timer):
        session = create_session("selection", timer=manual_timer)
        first = session.state
        session.advance(0.5)
        session.reset()
        assert isinstance(session.seed, int)
        assert session.state == first
