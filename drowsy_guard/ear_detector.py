"""
Eye Aspect Ratio (EAR) Module
Converts the six-point eye contours of a face mesh into openness ratios
"""

import numpy as np

from .config import LEFT_EYE, RIGHT_EYE
from .data_structures import EyeSample


def eye_aspect_ratio(eye):
    """
    Calculate the Eye Aspect Ratio.

    Args:
        eye: Six (x, y) points in canonical order: outer corner, two upper-lid
             points, inner corner, two lower-lid points

    Returns:
        (|p1-p5| + |p2-p4|) / (2 * |p0-p3|), or 0 for malformed or degenerate input
    """
    if eye is None or len(eye) != 6:
        return 0.0
    pts = np.asarray(eye, dtype=float)
    A = np.linalg.norm(pts[1] - pts[5])
    B = np.linalg.norm(pts[2] - pts[4])
    C = np.linalg.norm(pts[0] - pts[3])
    return float((A + B) / (2.0 * C)) if C != 0 else 0.0


def get_eye_landmarks(landmarks, indices):
    """Pick the eye contour points out of a full landmark set."""
    return [landmarks[idx] for idx in indices]


def calculate_eye_sample(landmarks):
    """Compute left/right EAR for a full face mesh."""
    left = eye_aspect_ratio(get_eye_landmarks(landmarks, LEFT_EYE))
    right = eye_aspect_ratio(get_eye_landmarks(landmarks, RIGHT_EYE))
    return EyeSample(left=left, right=right)
