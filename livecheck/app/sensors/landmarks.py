"""Face-mesh landmark math producing liveness observations."""
from __future__ import annotations

import math
from typing import Optional, Tuple

import numpy as np

from ..liveness.geometry import Rect
from ..liveness.observation import FaceObservation

# MediaPipe Face Mesh indices as (top, bottom, outer, inner)
RIGHT_EYE = (159, 145, 33, 133)
LEFT_EYE = (386, 374, 263, 362)
MOUTH_CORNERS = (78, 308)
NOSE_TIP = 1

EAR_CLOSED = 0.10
EAR_OPEN = 0.28
# mouth width over outer eye-corner span; a relaxed mouth sits near half the span
SMILE_NEUTRAL_RATIO = 0.50
SMILE_FULL_RATIO = 0.70
YAW_RANGE_DEG = 45.0


def clamp(val: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, val))


def _ramp(value: float, lo: float, hi: float) -> float:
    return clamp((value - lo) / (hi - lo), 0.0, 1.0)


def eye_aspect_ratio(points: np.ndarray, indices: Tuple[int, int, int, int]) -> Optional[float]:
    top, bottom, outer, inner = indices
    horizontal = float(np.linalg.norm(points[outer] - points[inner]))
    vertical = float(np.linalg.norm(points[top] - points[bottom]))
    if horizontal < 1e-6:
        return None
    return vertical / horizontal


def eye_open_probability(points: np.ndarray, indices: Tuple[int, int, int, int]) -> float:
    ratio = eye_aspect_ratio(points, indices)
    if ratio is None:
        return 1.0
    return _ramp(ratio, EAR_CLOSED, EAR_OPEN)


def smiling_probability(points: np.ndarray) -> float:
    """Mouth width relative to the distance between the outer eye corners."""

    eye_span = float(np.linalg.norm(points[RIGHT_EYE[2]] - points[LEFT_EYE[2]]))
    if eye_span < 1e-6:
        return 0.0
    left, right = MOUTH_CORNERS
    mouth_width = float(np.linalg.norm(points[left] - points[right]))
    return _ramp(mouth_width / eye_span, SMILE_NEUTRAL_RATIO, SMILE_FULL_RATIO)


def roll_angle(points: np.ndarray) -> float:
    """Tilt of the line through the outer eye corners, in degrees."""

    dx, dy = points[LEFT_EYE[2]] - points[RIGHT_EYE[2]]
    return math.degrees(math.atan2(float(dy), float(dx)))


def yaw_angle(points: np.ndarray) -> float:
    """Signed head turn estimated from the nose position between the eyes.

    Expects an unmirrored camera image. Negative when the subject turns to
    their left.
    """

    right_x = float(points[RIGHT_EYE[2]][0])
    left_x = float(points[LEFT_EYE[2]][0])
    span = left_x - right_x
    if abs(span) < 1e-6:
        return 0.0
    position = (float(points[NOSE_TIP][0]) - right_x) / span
    return clamp((0.5 - position) * 2.0 * YAW_RANGE_DEG, -90.0, 90.0)


def bounding_box(
    points: np.ndarray,
    frame_width: int,
    *,
    viewport_width: float,
    mirror: bool = True,
) -> Rect:
    """Landmark extents scaled from camera pixels into preview coordinates."""

    scale = viewport_width / float(frame_width)
    x0, y0 = points.min(axis=0)
    x1, y1 = points.max(axis=0)
    x0 = clamp(float(x0), 0.0, float(frame_width))
    x1 = clamp(float(x1), 0.0, float(frame_width))
    y0 = max(float(y0), 0.0)
    y1 = max(float(y1), y0)
    if mirror:
        x0, x1 = frame_width - x1, frame_width - x0
    return Rect(min_x=x0 * scale, min_y=y0 * scale, width=(x1 - x0) * scale, height=(y1 - y0) * scale)


def observation_from_points(
    points: np.ndarray,
    frame_width: int,
    *,
    viewport_width: float,
    mirror: bool = True,
) -> FaceObservation:
    """Build a :class:`FaceObservation` from pixel-space landmarks of one face."""

    return FaceObservation(
        roll_angle=roll_angle(points),
        yaw_angle=yaw_angle(points),
        smiling_probability=smiling_probability(points),
        left_eye_open_probability=eye_open_probability(points, LEFT_EYE),
        right_eye_open_probability=eye_open_probability(points, RIGHT_EYE),
        bounding_box=bounding_box(points, frame_width, viewport_width=viewport_width, mirror=mirror),
    )


__all__ = [
    "bounding_box",
    "eye_aspect_ratio",
    "eye_open_probability",
    "observation_from_points",
    "roll_angle",
    "smiling_probability",
    "yaw_angle",
]
