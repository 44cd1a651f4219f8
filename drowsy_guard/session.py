"""
Detection Session Module

Runs one detection tick per frame in a fixed order:
debounce update -> alert evaluation -> siren/dispatch/vehicle step.
All state lives here for the duration of a session and is reset on start/stop.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .alerter import AlertEngine
from .data_structures import AlertState, AlertTransition, DispatchOutcome, EyeSample, VehicleState
from .debouncer import Debouncer
from .ear_detector import calculate_eye_sample
from .vehicle import VehicleSimulator

logger = logging.getLogger(__name__)


@dataclass
class TickResult:
    """Everything the display layer needs about one processed tick."""
    timestamp_ms: float
    eye_sample: Optional[EyeSample]
    closure_ms: float
    absence_ms: float
    alert_state: AlertState
    vehicle: VehicleState
    transition: Optional[AlertTransition] = None
    vehicle_changed: bool = False
    dispatch_outcomes: List[DispatchOutcome] = field(default_factory=list)


class DetectionSession:
    def __init__(self, settings, siren, dispatcher, vehicle=None):
        self.settings = settings
        self.siren = siren
        self.dispatcher = dispatcher
        self.vehicle = vehicle or VehicleSimulator()
        self.closure = Debouncer("eye-closure")
        self.absence = Debouncer("subject-absence")
        self.engine = AlertEngine(settings, siren, dispatcher, self.vehicle)
        self.active = False
        self.skipped_ticks = 0

    @property
    def alert_state(self):
        return self.engine.state

    def start(self):
        self._reset()
        self.active = True
        logger.info("Detection started (EAR threshold %.2f, drowsiness delay %dms, faint timeout %dms)",
                    self.settings.ear_threshold, self.settings.drowsiness_delay_ms,
                    self.settings.faint_timeout_ms)

    def stop(self):
        """Stop detection. In-flight dispatches are left to finish on their own."""
        self._reset()
        self.active = False
        self.dispatcher.poll()
        logger.info("Detection stopped")

    def _reset(self):
        self.engine.reset()
        self.closure.reset()
        self.absence.reset()
        self.skipped_ticks = 0

    def tick(self, observation):
        """
        Process one FrameObservation.

        Returns a TickResult, or None when the session is stopped or the frame
        could not be processed (the error is logged and the next tick proceeds).
        """
        if not self.active:
            return None
        outcomes = self.dispatcher.poll()
        try:
            result = self._advance(observation)
        except Exception:
            self.skipped_ticks += 1
            logger.exception("Detection error; skipping frame at %.0fms", observation.timestamp_ms)
            return None
        result.dispatch_outcomes = outcomes
        return result

    def _advance(self, observation):
        now = observation.timestamp_ms
        present = observation.subject_present

        sample = calculate_eye_sample(observation.landmarks) if present else None
        eyes_closed = sample is not None and sample.combined < self.settings.ear_threshold

        closure_ms = self.closure.update(eyes_closed, now)
        absence_ms = self.absence.update(not present, now)

        transition = self.engine.process(
            closure_ms, absence_ms, now,
            ear=sample.combined if sample is not None else None,
        )

        vehicle_changed = False
        if self.engine.state.is_active:
            vehicle_changed = self.vehicle.step() is not None
        elif transition is not None:
            vehicle_changed = True

        return TickResult(
            timestamp_ms=now,
            eye_sample=sample,
            closure_ms=closure_ms,
            absence_ms=absence_ms,
            alert_state=self.engine.state,
            vehicle=self.vehicle.state,
            transition=transition,
            vehicle_changed=vehicle_changed,
        )

    def manual_override(self, now):
        """
        "I'm awake" / manual takeover: clear the alert and the timers behind it
        so a new alert needs a fresh threshold crossing.
        """
        transition = self.engine.manual_reset(now)
        self.closure.reset()
        self.absence.reset()
        return transition
