"""Alert state machine transitions and their side effects."""

from __future__ import annotations

from drowsy_guard.alerter import AlertEngine, evaluate
from drowsy_guard.config import DetectorSettings
from drowsy_guard.data_structures import AlertKind, AlertState, Lane
from drowsy_guard.vehicle import VehicleSimulator
from conftest import FakeSiren


class _RecordingDispatcher:
    def __init__(self):
        self.calls = []

    def dispatch(self, kind, metadata=None):
        self.calls.append((kind, metadata))


def _engine(**overrides):
    settings = DetectorSettings(**overrides)
    engine = AlertEngine(settings, FakeSiren(), _RecordingDispatcher(), VehicleSimulator())
    return engine


# ── Transition table ──────────────────────────────────────────

def test_inactive_stays_inactive_below_thresholds():
    assert evaluate(AlertState.INACTIVE, 999, 14999, 1000, 15000, 0) is None


def test_drowsiness_activates_at_threshold():
    t = evaluate(AlertState.INACTIVE, 1000, 0, 1000, 15000, 5.0)
    assert t.current is AlertState.DROWSINESS_ACTIVE
    assert t.kind is AlertKind.DROWSINESS
    assert t.timestamp_ms == 5.0


def test_faint_activates_at_threshold():
    t = evaluate(AlertState.INACTIVE, 0, 15000, 1000, 15000, 0)
    assert t.current is AlertState.FAINT_ACTIVE


def test_active_states_clear_only_when_their_duration_is_zero():
    assert evaluate(AlertState.DROWSINESS_ACTIVE, 1, 0, 1000, 15000, 0) is None
    assert evaluate(AlertState.DROWSINESS_ACTIVE, 0, 0, 1000, 15000, 0).current is AlertState.INACTIVE
    assert evaluate(AlertState.FAINT_ACTIVE, 0, 1, 1000, 15000, 0) is None
    assert evaluate(AlertState.FAINT_ACTIVE, 0, 0, 1000, 15000, 0).current is AlertState.INACTIVE


def test_no_direct_switch_between_alert_kinds():
    assert evaluate(AlertState.FAINT_ACTIVE, 5000, 20000, 1000, 15000, 0) is None


# ── Engine side effects ───────────────────────────────────────

def test_activation_starts_siren_and_dispatches_once():
    engine = _engine()
    engine.process(1000, 0, 1000.0, ear=0.18)
    engine.process(1020, 0, 1020.0, ear=0.18)

    assert engine.state is AlertState.DROWSINESS_ACTIVE
    assert engine.siren.sounding
    assert len(engine.dispatcher.calls) == 1
    kind, metadata = engine.dispatcher.calls[0]
    assert kind is AlertKind.DROWSINESS
    assert metadata == {"ear": 0.18, "closedForMs": 1000}


def test_faint_metadata():
    engine = _engine()
    engine.process(0, 15000, 15000.0)
    assert engine.dispatcher.calls == [(AlertKind.FAINT, {"noFaceDetectedForMs": 15000})]


def test_auto_dispatch_disabled():
    engine = _engine(auto_dispatch=False)
    engine.process(1500, 0, 1500.0, ear=0.1)
    assert engine.state is AlertState.DROWSINESS_ACTIVE
    assert engine.siren.sounding
    assert engine.dispatcher.calls == []


def test_deactivation_stops_siren_and_resets_vehicle():
    engine = _engine()
    engine.process(1000, 0, 1000.0)
    for _ in range(200):
        engine.vehicle.step()
    assert engine.vehicle.state.lane is Lane.EMERGENCY

    t = engine.process(0, 0, 5000.0)
    assert t.current is AlertState.INACTIVE
    assert not engine.siren.sounding
    assert engine.vehicle.state.speed == 80.0
    assert engine.vehicle.state.lane is Lane.CENTRAL


def test_reactivation_dispatches_again_without_engine_cooldown():
    engine = _engine()
    engine.process(1000, 0, 1000.0)
    engine.process(0, 0, 1100.0)
    engine.process(1000, 0, 2100.0)
    assert len(engine.dispatcher.calls) == 2
    assert engine.activation_counts[AlertKind.DROWSINESS] == 2


def test_manual_reset():
    engine = _engine()
    engine.process(0, 16000, 16000.0)
    t = engine.manual_reset(16500.0)
    assert t.previous is AlertState.FAINT_ACTIVE
    assert engine.state is AlertState.INACTIVE
    assert not engine.siren.sounding
    assert engine.get_last_alert_info() == ("driver confirmed awake", AlertKind.FAINT)


def test_manual_reset_when_inactive_is_noop():
    engine = _engine()
    assert engine.manual_reset(0.0) is None
    assert engine.get_last_alert_info() == (None, None)
