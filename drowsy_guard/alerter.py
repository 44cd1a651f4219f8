"""
Alert State Machine Module
Turns debounced eye-closure and face-absence durations into alert transitions

Drowsiness: eyes closed continuously for the configured delay
Faint: no face in view continuously for the configured timeout
"""

import logging

from .data_structures import AlertKind, AlertState, AlertTransition

logger = logging.getLogger(__name__)


def evaluate(state, closure_ms, absence_ms, drowsiness_delay_ms, faint_timeout_ms, now):
    """
    Transition table for the alert state machine.

    Args:
        state: Current AlertState
        closure_ms: Debounced continuous eye-closure duration
        absence_ms: Debounced continuous no-face duration
        drowsiness_delay_ms: Closure needed to raise a drowsiness alert
        faint_timeout_ms: Absence needed to raise a faint alert
        now: Tick timestamp in milliseconds

    Returns:
        AlertTransition, or None when the state does not change
    """
    if state is AlertState.INACTIVE:
        if absence_ms >= faint_timeout_ms:
            return AlertTransition(state, AlertState.FAINT_ACTIVE, now, "no face detected")
        if closure_ms >= drowsiness_delay_ms:
            return AlertTransition(state, AlertState.DROWSINESS_ACTIVE, now, "eyes closed")
        return None

    if state is AlertState.DROWSINESS_ACTIVE and closure_ms == 0:
        return AlertTransition(state, AlertState.INACTIVE, now, "eyes reopened")
    if state is AlertState.FAINT_ACTIVE and absence_ms == 0:
        return AlertTransition(state, AlertState.INACTIVE, now, "face detected again")
    return None


class AlertEngine:
    """
    Owns the alert state and applies the side effects of each transition.

    Activation starts the siren and, with auto-dispatch on, sends exactly one
    remote alert. Deactivation stops the siren and puts the vehicle back to
    baseline.
    """

    def __init__(self, settings, siren, dispatcher, vehicle):
        self.settings = settings
        self.siren = siren
        self.dispatcher = dispatcher
        self.vehicle = vehicle
        self.state = AlertState.INACTIVE
        self.last_transition = None
        self.activation_counts = {kind: 0 for kind in AlertKind}

    def process(self, closure_ms, absence_ms, now, ear=None):
        """
        Evaluate one tick. Returns the AlertTransition applied, if any.
        """
        transition = evaluate(
            self.state,
            closure_ms,
            absence_ms,
            self.settings.drowsiness_delay_ms,
            self.settings.faint_timeout_ms,
            now,
        )
        if transition is None:
            return None

        self._apply(transition)
        if transition.activated:
            if transition.kind is AlertKind.FAINT:
                metadata = {"noFaceDetectedForMs": absence_ms}
            else:
                metadata = {"ear": ear, "closedForMs": closure_ms}
            if self.settings.auto_dispatch:
                self.dispatcher.dispatch(transition.kind, metadata)
        return transition

    def manual_reset(self, now, reason="driver confirmed awake"):
        """Force the engine back to INACTIVE ("I'm awake" / manual takeover)."""
        if not self.state.is_active:
            self.vehicle.reset()
            return None
        transition = AlertTransition(self.state, AlertState.INACTIVE, now, reason)
        self._apply(transition)
        return transition

    def reset(self):
        """Silence everything and return to the initial state (session start/stop)."""
        self.siren.stop()
        self.vehicle.reset()
        self.state = AlertState.INACTIVE
        self.last_transition = None

    def _apply(self, transition):
        self.state = transition.current
        self.last_transition = transition

        if transition.activated:
            self.activation_counts[transition.kind] += 1
            logger.warning(
                "[%s ALERT] Triggered at %.0fms - Reason: %s",
                transition.kind.value.upper(), transition.timestamp_ms, transition.reason,
            )
            self.siren.start()
        else:
            logger.info(
                "[ALERT RESET] %s alert cleared - %s",
                transition.previous.kind.value, transition.reason,
            )
            self.siren.stop()
            self.vehicle.reset()

    def get_alert_state(self):
        return self.state

    def get_last_alert_info(self):
        """
        Returns:
            Tuple of (reason, kind) for the last transition, or (None, None)
        """
        if self.last_transition is None:
            return None, None
        return self.last_transition.reason, self.last_transition.kind
