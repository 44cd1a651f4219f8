"""
Siren Module
Continuous warning tone that wobbles between two pitches while an alert is active
"""

import logging
import threading

import numpy as np
import pygame

from .config import (
    AUDIO_SAMPLE_RATE,
    SIREN_HIGH_HZ,
    SIREN_LOW_HZ,
    SIREN_SWITCH_SECONDS,
    SIREN_VOLUME,
)

logger = logging.getLogger(__name__)


def _sawtooth_tone(frequency_hz, sample_rate, channels, volume=SIREN_VOLUME):
    """
    One second of sawtooth wave as an int16 array shaped for the mixer.
    A whole second keeps the loop seamless for integer frequencies.
    """
    t = np.arange(sample_rate) / sample_rate
    wave = 2.0 * (t * frequency_hz - np.floor(0.5 + t * frequency_hz))
    samples = (wave * volume * 32767).astype(np.int16)
    if channels > 1:
        samples = np.repeat(samples[:, None], channels, axis=1)
    return np.ascontiguousarray(samples)


class SirenController:
    """
    Plays the siren through pygame's mixer.

    start() and stop() are idempotent. If the mixer cannot be initialised the
    controller stays silent and logs a warning.
    """

    def __init__(self, sound_enabled=True):
        self.sound_enabled = sound_enabled
        self.audio_available = False
        self._tones = None
        self._channel = None
        self._thread = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()

        try:
            pygame.mixer.init(frequency=AUDIO_SAMPLE_RATE, size=-16, channels=1)
            self.audio_available = True
        except pygame.error as e:
            logger.warning("Audio alerts disabled (pygame mixer not available): %s", e)

    @property
    def is_sounding(self):
        return self._thread is not None and self._thread.is_alive()

    def set_sound_enabled(self, enabled):
        self.sound_enabled = enabled
        if not enabled:
            self.stop()

    def start(self):
        """Start the siren unless it is already sounding or sound is off."""
        with self._lock:
            if not self.sound_enabled or not self.audio_available:
                return
            if self.is_sounding:
                return

            self._stop_event.clear()
            self._thread = threading.Thread(target=self._siren_loop, daemon=True)
            self._thread.start()

    def stop(self):
        """Halt the siren and release the mixer channel."""
        with self._lock:
            thread = self._thread
            if thread is None:
                return
            self._stop_event.set()
            thread.join(timeout=1.0)
            self._thread = None

    def _load_tones(self):
        if self._tones is None:
            sample_rate, _, channels = pygame.mixer.get_init()
            self._tones = [
                pygame.sndarray.make_sound(_sawtooth_tone(hz, sample_rate, channels))
                for hz in (SIREN_LOW_HZ, SIREN_HIGH_HZ)
            ]
        return self._tones

    def _siren_loop(self):
        """Alternate the two pitches every SIREN_SWITCH_SECONDS until stopped."""
        try:
            tones = self._load_tones()
            channel = tones[0].play(loops=-1)
            index = 0
            while not self._stop_event.wait(SIREN_SWITCH_SECONDS):
                index = 1 - index
                if channel is not None:
                    channel.play(tones[index], loops=-1)
            if channel is not None:
                channel.stop()
        except pygame.error as e:
            logger.error("Siren audio error: %s", e)

    def close(self):
        self.stop()
        if self.audio_available:
            pygame.mixer.quit()
            self.audio_available = False
