# Shared dataclasses that flow between the detector, the alert engine,
# the dispatcher and the vehicle simulator.

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .config import VEHICLE_MAX_SPEED

Point = Tuple[float, float]


# ── Per-frame input ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class FrameObservation:
    """One detection tick: a timestamp and the landmarks, or None when no face was found."""
    timestamp_ms: float
    landmarks: Optional[Sequence[Point]] = None

    @property
    def subject_present(self) -> bool:
        return bool(self.landmarks)


@dataclass(frozen=True)
class EyeSample:
    """Eye openness ratios for one frame."""
    left: float
    right: float

    @property
    def combined(self) -> float:
        return (self.left + self.right) / 2.0


# ── Alert state ───────────────────────────────────────────────────────────────

class AlertKind(Enum):
    DROWSINESS = "Drowsiness"
    FAINT = "Faint"


class AlertState(Enum):
    INACTIVE = "INACTIVE"
    DROWSINESS_ACTIVE = "DROWSINESS_ACTIVE"
    FAINT_ACTIVE = "FAINT_ACTIVE"

    @property
    def kind(self) -> Optional[AlertKind]:
        return _STATE_KINDS.get(self)

    @property
    def is_active(self) -> bool:
        return self is not AlertState.INACTIVE


_STATE_KINDS = {
    AlertState.DROWSINESS_ACTIVE: AlertKind.DROWSINESS,
    AlertState.FAINT_ACTIVE: AlertKind.FAINT,
}


@dataclass(frozen=True)
class AlertTransition:
    """A change of alert state, produced at most once per tick."""
    previous: AlertState
    current: AlertState
    timestamp_ms: float
    reason: str

    @property
    def activated(self) -> bool:
        return self.current.is_active

    @property
    def kind(self) -> Optional[AlertKind]:
        return self.current.kind if self.activated else self.previous.kind


# ── Dispatch ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float
    # Metres; None when the provider does not report it
    accuracy: Optional[float] = None

    def describe(self) -> str:
        return f"{self.latitude:.4f}, {self.longitude:.4f}"


@dataclass
class DispatchRecord:
    """Outbound alert request, built once per dispatch attempt."""
    kind: AlertKind
    contacts: List[str]
    police_contact: str
    message: str
    timestamp: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    location: Optional[GeoLocation] = None

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            "type": self.kind.value,
            "contacts": list(self.contacts),
            "policeNumber": self.police_contact,
            "message": self.message,
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp,
        }
        if self.location is not None:
            payload["location"] = {
                "lat": self.location.latitude,
                "lon": self.location.longitude,
                "accuracy": self.location.accuracy,
            }
        return payload


@dataclass(frozen=True)
class TransportResponse:
    """What the alert transport reported back."""
    success: bool
    authority: Optional[str] = None
    contacts_count: int = 0
    status: str = ""


class DispatchStatus(Enum):
    SENDING = "sending"
    SENT = "sent"
    ERROR = "error"
    SUPPRESSED = "suppressed"


@dataclass(frozen=True)
class DispatchOutcome:
    kind: AlertKind
    status: DispatchStatus
    details: str
    # Monotonic milliseconds at which the attempt was made
    attempted_at_ms: float
    authority: Optional[str] = None
    contacts_count: int = 0


# ── Vehicle ───────────────────────────────────────────────────────────────────

class Lane(Enum):
    CENTRAL = "Central"
    EMERGENCY = "Emergency"


class Indicator(Enum):
    NONE = "None"
    LEFT = "Left"
    RIGHT = "Right"


@dataclass(frozen=True)
class VehicleState:
    """Snapshot of the simulated vehicle."""
    # km/h, always within [0, VEHICLE_MAX_SPEED]
    speed: float = VEHICLE_MAX_SPEED
    lane: Lane = Lane.CENTRAL
    indicator: Indicator = Indicator.NONE
    # -1 = steering left, 0 = straight, 1 = steering right
    steering: int = 0
    braking: bool = False
    action: str = "cruising"


BASELINE_VEHICLE = VehicleState()
