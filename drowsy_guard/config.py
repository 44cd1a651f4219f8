"""
Configuration file for all detection thresholds, alert and vehicle settings
"""

from dataclasses import dataclass

# Eye Aspect Ratio (EAR) threshold
EAR_THRESHOLD_DEFAULT = 0.25
EAR_THRESHOLD_RANGE = (0.15, 0.35)

# Continuous closure before a drowsiness alert (milliseconds)
DROWSINESS_DELAY_MS_DEFAULT = 1000
DROWSINESS_DELAY_MS_RANGE = (500, 3000)

# No face in view for this long => faint alert (milliseconds)
FAINT_TIMEOUT_MS_DEFAULT = 15000
FAINT_TIMEOUT_MS_RANGE = (5000, 60000)

# MediaPipe Face Landmarker
FACE_LANDMARKER_MODEL_PATH = "face_landmarker.task"
FACE_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_landmarker/"
    "face_landmarker/float16/1/face_landmarker.task"
)
FACE_LANDMARK_COUNT = 478
MIN_FACE_DETECTION_CONFIDENCE = 0.5
MIN_FACE_PRESENCE_CONFIDENCE = 0.5
MIN_TRACKING_CONFIDENCE = 0.5

# EAR landmark indices (6 points per eye: corner, upper, upper, corner, lower, lower)
LEFT_EYE = [362, 385, 387, 263, 373, 380]
RIGHT_EYE = [33, 160, 158, 133, 153, 144]

# Alert dispatch
DISPATCH_COOLDOWN_MS = 2 * 60 * 1000  # one alert per 2 minutes, across alert kinds
DISPATCH_SHARED_COOLDOWN = True       # False => separate cooldown per alert kind
GEOLOCATION_TIMEOUT_SECONDS = 5.0
TRANSPORT_TIMEOUT_SECONDS = 10.0
DEFAULT_POLICE_CONTACT = "100"
UNKNOWN_LOCATION = "Unknown Location"
GEOLOCATION_URL = "https://ipinfo.io/json"

# Siren (two alternating pitches => wobble)
SIREN_LOW_HZ = 880
SIREN_HIGH_HZ = 1760
SIREN_SWITCH_SECONDS = 0.2
SIREN_VOLUME = 0.5
AUDIO_SAMPLE_RATE = 22050

# Vehicle response simulation (km/h, per detection tick)
VEHICLE_MAX_SPEED = 80.0
VEHICLE_INITIAL_DECREMENT = 0.3
VEHICLE_EMERGENCY_DECREMENT = 0.6
VEHICLE_SIGNAL_SPEED = 75.0
VEHICLE_SWERVE_SPEED = 55.0

# Low-light enhancement defaults
LOW_LIGHT_BRIGHTNESS = 0.08  # additive [-1..1]
LOW_LIGHT_CONTRAST = 1.2     # multiplicative
LOW_LIGHT_GAMMA = 0.9        # gamma correction

# Camera settings
CAMERA_INDEX = 0
FRAME_WIDTH = 640
FRAME_HEIGHT = 480
TARGET_FPS = 30

# Camera backend (mainly for Windows reliability)
# Options: "AUTO", "DSHOW", "MSMF"
CAMERA_BACKEND = "AUTO"

# How many camera indices to probe if CAMERA_INDEX fails (0..N-1)
CAMERA_PROBE_COUNT = 4

# Visualization settings
DRAW_STATUS_OVERLAY = True  # Set to False to show the raw camera feed only

# Print a status line every N frames
STATUS_PRINT_INTERVAL_FRAMES = 30


def _check_range(name, value, bounds):
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"{name} must be between {low} and {high}, got {value}")


@dataclass
class DetectorSettings:
    """
    Runtime configuration surface for a detection session.

    Values outside the allowed ranges raise ValueError on construction.
    """
    ear_threshold: float = EAR_THRESHOLD_DEFAULT
    drowsiness_delay_ms: float = DROWSINESS_DELAY_MS_DEFAULT
    faint_timeout_ms: float = FAINT_TIMEOUT_MS_DEFAULT
    auto_dispatch: bool = True
    sound_enabled: bool = True
    emergency_contacts: str = ""
    police_contact: str = DEFAULT_POLICE_CONTACT
    low_light_mode: bool = False
    brightness: float = LOW_LIGHT_BRIGHTNESS
    contrast: float = LOW_LIGHT_CONTRAST
    gamma: float = LOW_LIGHT_GAMMA

    def __post_init__(self):
        _check_range("ear_threshold", self.ear_threshold, EAR_THRESHOLD_RANGE)
        _check_range("drowsiness_delay_ms", self.drowsiness_delay_ms, DROWSINESS_DELAY_MS_RANGE)
        _check_range("faint_timeout_ms", self.faint_timeout_ms, FAINT_TIMEOUT_MS_RANGE)
        _check_range("brightness", self.brightness, (-1.0, 1.0))
        if self.contrast < 0:
            raise ValueError(f"contrast must be non-negative, got {self.contrast}")
        if self.gamma <= 0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
