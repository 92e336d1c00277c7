"""Per-frame face observation consumed by the liveness state machine."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from .geometry import Rect


@dataclass(frozen=True)
class FaceObservation:
    """Detection output for exactly one face.

    Angles are signed degrees; a negative yaw means the subject turned to
    their left. Probabilities are in ``[0, 1]``.
    """

    roll_angle: float
    yaw_angle: float
    smiling_probability: float
    left_eye_open_probability: float
    right_eye_open_probability: float
    bounding_box: Rect


def single_face(faces: Sequence[FaceObservation]) -> Optional[FaceObservation]:
    """Return the only face of a frame, or ``None`` for empty or crowded frames."""

    if len(faces) != 1:
        return None
    return faces[0]


__all__ = ["FaceObservation", "single_face"]
