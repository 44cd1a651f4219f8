"""Shared fakes and landmark builders for the drowsy_guard test suite."""

from __future__ import annotations

import pytest

from drowsy_guard.config import FACE_LANDMARK_COUNT, LEFT_EYE, RIGHT_EYE, DetectorSettings
from drowsy_guard.data_structures import FrameObservation, GeoLocation, TransportResponse
from drowsy_guard.dispatcher import AlertDispatcher
from drowsy_guard.session import DetectionSession


# ── Helpers ───────────────────────────────────────────────────

def make_eye(ear: float, cx: float = 0.5, cy: float = 0.5) -> list[tuple[float, float]]:
    """Six contour points whose EAR is exactly `ear` (horizontal width 0.1)."""
    v_half = 0.1 * ear / 2.0
    return [
        (cx - 0.05, cy),           # p0 -- outer corner
        (cx - 0.02, cy - v_half),  # p1 -- upper
        (cx + 0.02, cy - v_half),  # p2 -- upper
        (cx + 0.05, cy),           # p3 -- inner corner
        (cx + 0.02, cy + v_half),  # p4 -- lower
        (cx - 0.02, cy + v_half),  # p5 -- lower
    ]


def make_face(ear: float) -> list[tuple[float, float]]:
    """A full 478-point mesh with both eyes at the given EAR."""
    points = [(0.5, 0.5)] * FACE_LANDMARK_COUNT
    for indices, cx in ((LEFT_EYE, 0.65), (RIGHT_EYE, 0.35)):
        for idx, point in zip(indices, make_eye(ear, cx=cx, cy=0.4)):
            points[idx] = point
    return points


def face_frame(t: float, ear: float) -> FrameObservation:
    return FrameObservation(timestamp_ms=t, landmarks=make_face(ear))


def empty_frame(t: float) -> FrameObservation:
    return FrameObservation(timestamp_ms=t, landmarks=None)


class FakeSiren:
    def __init__(self):
        self.sounding = False
        self.starts = 0
        self.stops = 0

    def start(self):
        self.starts += 1
        self.sounding = True

    def stop(self):
        self.stops += 1
        self.sounding = False


class FakeTransport:
    def __init__(self, success=True, error=None, authority="City North Police Station"):
        self.success = success
        self.error = error
        self.authority = authority
        self.sent = []

    def send(self, record):
        self.sent.append(record)
        if self.error is not None:
            raise self.error
        return TransportResponse(success=self.success, authority=self.authority,
                                 contacts_count=len(record.contacts))


class FakeGeolocation:
    def __init__(self, location=None):
        self.location = location
        self.calls = 0

    def locate(self):
        self.calls += 1
        return self.location


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class DeferredRunner:
    """Collects background jobs so a test decides when they finish."""

    def __init__(self):
        self.jobs = []

    def __call__(self, fn):
        self.jobs.append(fn)

    def run_all(self):
        jobs, self.jobs = self.jobs, []
        for job in jobs:
            job()


def run_now(fn):
    fn()


# ── Fixtures ──────────────────────────────────────────────────

@pytest.fixture
def settings():
    return DetectorSettings(emergency_contacts="+15550001, +15550002; \n+15550003")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def geolocation():
    return FakeGeolocation(GeoLocation(latitude=13.0827, longitude=80.2707, accuracy=25.0))


@pytest.fixture
def dispatcher(settings, transport, geolocation, clock):
    return AlertDispatcher(settings, transport, geolocation, clock=clock, run_async=run_now)


@pytest.fixture
def siren():
    return FakeSiren()


@pytest.fixture
def session(settings, siren, dispatcher):
    s = DetectionSession(settings, siren, dispatcher)
    s.start()
    return s


