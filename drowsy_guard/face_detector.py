"""
Face landmark detection using the MediaPipe Face Landmarker (478-point mesh)
"""

import logging
import os
import urllib.request

import cv2
import mediapipe as mp
from mediapipe.tasks.python import vision

from .config import (
    FACE_LANDMARKER_MODEL_PATH,
    FACE_LANDMARKER_MODEL_URL,
    MIN_FACE_DETECTION_CONFIDENCE,
    MIN_FACE_PRESENCE_CONFIDENCE,
    MIN_TRACKING_CONFIDENCE,
)
from .data_structures import FrameObservation
from .exceptions import LandmarkerInitError

logger = logging.getLogger(__name__)


def ensure_model(model_path=FACE_LANDMARKER_MODEL_PATH, url=FACE_LANDMARKER_MODEL_URL):
    """Download the face landmarker model if not present."""
    if os.path.exists(model_path):
        return model_path
    logger.info("Downloading face landmarker model...")
    try:
        urllib.request.urlretrieve(url, model_path)
    except OSError as e:
        raise LandmarkerInitError(f"Error downloading model: {e}") from e
    logger.info("Model downloaded to %s", model_path)
    return model_path


class FaceDetector:
    """Wraps FaceLandmarker in VIDEO mode and turns its results into FrameObservations."""

    def __init__(self, model_path=FACE_LANDMARKER_MODEL_PATH):
        model_path = ensure_model(model_path)
        options = vision.FaceLandmarkerOptions(
            base_options=mp.tasks.BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=1,
            min_face_detection_confidence=MIN_FACE_DETECTION_CONFIDENCE,
            min_face_presence_confidence=MIN_FACE_PRESENCE_CONFIDENCE,
            min_tracking_confidence=MIN_TRACKING_CONFIDENCE,
        )
        try:
            self.landmarker = vision.FaceLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            raise LandmarkerInitError(f"Failed to load face detection model: {e}") from e
        self._last_timestamp = -1

    def detect(self, frame_bgr, timestamp_ms):
        """
        Run the landmarker on one BGR frame.

        Returns:
            FrameObservation with normalised (x, y) points, or landmarks=None if no face
        """
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)

        # VIDEO mode needs strictly increasing integer timestamps
        ts = max(int(timestamp_ms), self._last_timestamp + 1)
        self._last_timestamp = ts
        results = self.landmarker.detect_for_video(mp_image, ts)

        if not results.face_landmarks:
            return FrameObservation(timestamp_ms=timestamp_ms, landmarks=None)
        points = [(lm.x, lm.y) for lm in results.face_landmarks[0]]
        return FrameObservation(timestamp_ms=timestamp_ms, landmarks=points)

    def close(self):
        self.landmarker.close()
