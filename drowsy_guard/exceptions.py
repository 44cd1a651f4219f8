"""Exception types raised by the detection engine and its adapters."""


class DrowsyGuardError(Exception):
    """Base class for all drowsy_guard errors."""


class LandmarkerInitError(DrowsyGuardError):
    """The face landmark model could not be loaded; detection cannot start."""


class CameraError(DrowsyGuardError):
    """No capture source could be opened."""


class TransportError(DrowsyGuardError):
    """The alert transport failed to deliver a dispatch."""
