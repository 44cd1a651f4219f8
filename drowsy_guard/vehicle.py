"""
Vehicle Response Simulator Module

While an alert is active the simulated car brakes gently, signals left,
swerves into the emergency lane, brakes hard and finally comes to rest.
"""

import logging
from dataclasses import replace

from .config import (
    VEHICLE_MAX_SPEED,
    VEHICLE_INITIAL_DECREMENT,
    VEHICLE_EMERGENCY_DECREMENT,
    VEHICLE_SIGNAL_SPEED,
    VEHICLE_SWERVE_SPEED,
)
from .data_structures import BASELINE_VEHICLE, Indicator, Lane

logger = logging.getLogger(__name__)


def _clamp_speed(speed):
    return min(VEHICLE_MAX_SPEED, max(0.0, speed))


def step_vehicle(state):
    """
    Advance the maneuver by one detection tick.

    Stages are checked in order against the state as it evolves within the
    tick, so several may fire together; the last one to fire names the action.
    """
    speed = state.speed
    lane = state.lane
    indicator = state.indicator
    steering = state.steering
    action = state.action

    if speed > 0:
        speed = _clamp_speed(speed - VEHICLE_INITIAL_DECREMENT)
        action = "initial braking"

    if speed < VEHICLE_SIGNAL_SPEED and indicator is Indicator.NONE:
        indicator = Indicator.LEFT
        action = "activating turn signal"

    if speed < VEHICLE_SWERVE_SPEED and lane is Lane.CENTRAL and indicator is Indicator.LEFT:
        lane = Lane.EMERGENCY
        steering = -1
        action = "swerving to safety lane"

    if lane is Lane.EMERGENCY and speed > 0:
        speed = _clamp_speed(speed - VEHICLE_EMERGENCY_DECREMENT)
        action = "emergency braking"

    if speed == 0 and lane is Lane.EMERGENCY:
        indicator = Indicator.NONE
        action = "vehicle secured"

    return replace(
        state,
        speed=speed,
        lane=lane,
        indicator=indicator,
        steering=steering,
        braking=speed < state.speed,
        action=action,
    )


class VehicleSimulator:
    """Holds the current VehicleState and notifies listeners when it changes."""

    def __init__(self):
        self.state = BASELINE_VEHICLE
        self._listeners = []

    def subscribe(self, listener):
        self._listeners.append(listener)

    def step(self):
        """Advance one tick. Returns the new snapshot, or None when nothing changed."""
        new_state = step_vehicle(self.state)
        return self._publish(new_state)

    def reset(self):
        return self._publish(BASELINE_VEHICLE)

    def _publish(self, new_state):
        if new_state == self.state:
            return None
        if new_state.action != self.state.action:
            logger.info("[VEHICLE] %s (%.1f km/h, lane %s)",
                        new_state.action, new_state.speed, new_state.lane.value)
        self.state = new_state
        for listener in self._listeners:
            listener(new_state)
        return new_state
