"""Siren controller against pygame's dummy audio driver."""

from __future__ import annotations

import os

os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import numpy as np
import pytest

from drowsy_guard.siren import SirenController, _sawtooth_tone


@pytest.fixture
def siren():
    controller = SirenController()
    yield controller
    controller.close()


def test_tone_shape_and_range():
    mono = _sawtooth_tone(880, 22050, 1)
    stereo = _sawtooth_tone(880, 22050, 2)
    assert mono.shape == (22050,)
    assert stereo.shape == (22050, 2)
    assert mono.dtype == np.int16
    assert np.abs(mono.astype(np.int32)).max() <= 32767 * 0.5 + 1


def test_start_and_stop_are_idempotent(siren):
    if not siren.audio_available:
        pytest.skip("no audio mixer available")
    siren.start()
    first = siren._thread
    siren.start()
    assert siren._thread is first
    assert siren.is_sounding

    siren.stop()
    siren.stop()
    assert not siren.is_sounding


def test_start_and_stop_are_idempotent_without_mixer(siren):
    # stand-in loop: holds the tone until stop() sets the event
    siren.audio_available = True
    siren.sound_enabled = True
    siren._siren_loop = lambda: siren._stop_event.wait(5)

    siren.start()
    first = siren._thread
    siren.start()
    assert siren._thread is first
    assert siren.is_sounding

    siren.stop()
    assert not siren.is_sounding
    siren.stop()
    assert siren._thread is None

    siren.start()
    assert siren.is_sounding
    siren.set_sound_enabled(False)
    assert not siren.is_sounding
    siren.start()
    assert not siren.is_sounding


def test_muted_siren_never_sounds(siren):
    siren.set_sound_enabled(False)
    siren.start()
    assert not siren.is_sounding


def test_disabling_sound_stops_tone(siren):
    if not siren.audio_available:
        pytest.skip("no audio mixer available")
    siren.start()
    siren.set_sound_enabled(False)
    assert not siren.is_sounding
