"""
Camera handling: webcam (with backend choice and index probing) or IP camera URL
"""

import logging
import sys

import cv2

from .config import (
    CAMERA_BACKEND,
    CAMERA_INDEX,
    CAMERA_PROBE_COUNT,
    FRAME_HEIGHT,
    FRAME_WIDTH,
    TARGET_FPS,
)
from .exceptions import CameraError

logger = logging.getLogger(__name__)

_BACKENDS = {
    "DSHOW": cv2.CAP_DSHOW,
    "MSMF": cv2.CAP_MSMF,
}


def _backend_flag(backend):
    if backend == "AUTO" or not sys.platform.startswith("win"):
        return cv2.CAP_ANY
    return _BACKENDS.get(backend, cv2.CAP_ANY)


def _try_open(source, api):
    cap = cv2.VideoCapture(source, api)
    if not cap.isOpened():
        cap.release()
        return None
    ok, frame = cap.read()
    if not ok or frame is None:
        cap.release()
        return None
    return cap


def open_camera(source=None, backend=CAMERA_BACKEND):
    """
    Open a capture source.

    Args:
        source: Camera index or IP camera URL; None probes indices starting at CAMERA_INDEX

    Raises:
        CameraError: if nothing could be opened
    """
    if isinstance(source, str):
        cap = _try_open(source, cv2.CAP_ANY)
        if cap is None:
            raise CameraError(f"Failed to connect to IP camera at {source}")
        logger.info("Connected to IP camera %s", source)
        return cap

    api = _backend_flag(backend)
    if source is None:
        candidates = [CAMERA_INDEX] + [i for i in range(CAMERA_PROBE_COUNT) if i != CAMERA_INDEX]
    else:
        candidates = [source]

    for index in candidates:
        cap = _try_open(index, api)
        if cap is None:
            logger.debug("Camera index %d unavailable", index)
            continue
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, FRAME_WIDTH)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, FRAME_HEIGHT)
        cap.set(cv2.CAP_PROP_FPS, TARGET_FPS)
        logger.info("Opened camera index %d", index)
        return cap

    raise CameraError(
        f"Cannot access camera (tried indices {candidates}). Check camera index or permissions."
    )
