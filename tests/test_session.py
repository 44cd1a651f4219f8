"""End-to-end detection ticks through the session."""

from __future__ import annotations

from drowsy_guard.data_structures import AlertKind, AlertState, DispatchStatus, FrameObservation, Lane
from drowsy_guard.dispatcher import AlertDispatcher
from drowsy_guard.session import DetectionSession
from conftest import DeferredRunner, FakeSiren, empty_frame, face_frame, make_face


def _feed_closed(session, start, count, step=20.0, ear=0.18):
    return [session.tick(face_frame(start + i * step, ear)) for i in range(count)]


def test_drowsiness_end_to_end(session, siren, transport):
    # 50 ticks 20ms apart cover 0..980ms: not long enough yet
    results = _feed_closed(session, 0.0, 50)
    assert all(r.alert_state is AlertState.INACTIVE for r in results)
    assert results[-1].closure_ms == 980.0

    r = session.tick(face_frame(1000.0, 0.18))
    assert r.closure_ms == 1000.0
    assert r.alert_state is AlertState.DROWSINESS_ACTIVE
    assert r.transition.kind is AlertKind.DROWSINESS
    assert siren.sounding

    # more closed ticks: still one dispatch, vehicle keeps stepping
    _feed_closed(session, 1020.0, 10)
    assert len(transport.sent) == 1
    assert transport.sent[0].kind is AlertKind.DROWSINESS
    assert session.vehicle.state.speed < 80.0

    r = session.tick(face_frame(1300.0, 0.30))
    assert r.alert_state is AlertState.INACTIVE
    assert r.closure_ms == 0.0
    assert not siren.sounding
    assert r.vehicle.speed == 80.0
    assert r.vehicle.lane is Lane.CENTRAL


def test_dispatch_outcome_reported_on_next_tick(session):
    _feed_closed(session, 0.0, 51)
    r = session.tick(face_frame(1020.0, 0.18))
    assert [o.status for o in r.dispatch_outcomes] == [DispatchStatus.SENT]


def test_open_eye_tick_resets_closure(session):
    _feed_closed(session, 0.0, 40)
    r = session.tick(face_frame(800.0, 0.31))
    assert r.closure_ms == 0.0
    r = session.tick(face_frame(820.0, 0.18))
    assert r.closure_ms == 0.0
    assert session.tick(face_frame(1800.0, 0.18)).alert_state is AlertState.INACTIVE
    assert session.tick(face_frame(1820.0, 0.18)).alert_state is AlertState.DROWSINESS_ACTIVE


def test_faint_end_to_end(session, transport):
    state_at = {}
    for t in range(0, 16001, 100):
        r = session.tick(empty_frame(float(t)))
        state_at[t] = r.alert_state
    assert state_at[14900] is AlertState.INACTIVE
    assert state_at[15000] is AlertState.FAINT_ACTIVE
    assert state_at[16000] is AlertState.FAINT_ACTIVE
    assert [rec.kind for rec in transport.sent] == [AlertKind.FAINT]

    r = session.tick(face_frame(16100.0, 0.3))
    assert r.absence_ms == 0.0
    assert r.alert_state is AlertState.INACTIVE


def test_losing_the_face_clears_drowsiness(session):
    _feed_closed(session, 0.0, 60)
    assert session.alert_state is AlertState.DROWSINESS_ACTIVE
    r = session.tick(empty_frame(1300.0))
    assert r.alert_state is AlertState.INACTIVE
    assert r.absence_ms == 0.0


def test_malformed_landmarks_skip_the_tick(session):
    _feed_closed(session, 0.0, 10)
    bad = FrameObservation(timestamp_ms=200.0, landmarks=make_face(0.18)[:50])
    assert session.tick(bad) is None
    assert session.skipped_ticks == 1
    # debounce state untouched by the skipped tick
    r = session.tick(face_frame(220.0, 0.18))
    assert r.closure_ms == 220.0


def test_manual_override_requires_fresh_crossing(session, siren):
    _feed_closed(session, 0.0, 60)
    assert session.alert_state is AlertState.DROWSINESS_ACTIVE

    t = session.manual_override(1250.0)
    assert t.current is AlertState.INACTIVE
    assert not siren.sounding
    assert session.vehicle.state.speed == 80.0

    # eyes still closed: timer restarts from zero
    r = session.tick(face_frame(1260.0, 0.18))
    assert r.closure_ms == 0.0
    assert session.tick(face_frame(2200.0, 0.18)).alert_state is AlertState.INACTIVE
    assert session.tick(face_frame(2260.0, 0.18)).alert_state is AlertState.DROWSINESS_ACTIVE


def test_stopped_session_ignores_ticks(session, siren):
    _feed_closed(session, 0.0, 60)
    session.stop()
    assert not siren.sounding
    assert session.alert_state is AlertState.INACTIVE
    assert session.tick(face_frame(2000.0, 0.18)) is None
    assert session.closure.elapsed_ms == 0.0


def test_late_dispatch_outcome_after_stop(settings, transport, geolocation, clock):
    runner = DeferredRunner()
    dispatcher = AlertDispatcher(settings, transport, geolocation, clock=clock, run_async=runner)
    siren = FakeSiren()
    session = DetectionSession(settings, siren, dispatcher)
    session.start()
    _feed_closed(session, 0.0, 60)
    session.stop()

    runner.run_all()
    session.start()
    r = session.tick(face_frame(5000.0, 0.3))
    assert [o.status for o in r.dispatch_outcomes] == [DispatchStatus.SENT]
    assert r.alert_state is AlertState.INACTIVE
    assert not siren.sounding
    assert dispatcher.in_cooldown(AlertKind.FAINT)
