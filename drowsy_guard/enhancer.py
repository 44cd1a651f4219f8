"""
Low-light enhancement applied to frames before landmark detection.
"""

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def build_lut(brightness, contrast, gamma):
    """Lookup table: contrast around mid-grey, additive brightness, then gamma."""
    v = np.arange(256, dtype=np.float64) / 255.0
    v = (v - 0.5) * contrast + 0.5 + brightness
    v = np.clip(v, 0.0, 1.0)
    v = np.power(v, 1.0 / max(0.01, gamma))
    return np.round(v * 255.0).astype(np.uint8)


def enhance_frame(frame, brightness, contrast, gamma):
    """
    Brighten a colour frame. Falls back to the raw frame if the frame cannot be
    processed, so detection always gets an image.
    """
    try:
        return cv2.LUT(frame, build_lut(brightness, contrast, gamma))
    except cv2.error as e:
        logger.warning("Enhancement failed, using raw video frame: %s", e)
        return frame
