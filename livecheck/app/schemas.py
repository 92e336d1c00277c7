"""Request and response models for the controller HTTP API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .liveness.geometry import Rect
from .liveness.observation import FaceObservation


class RectModel(BaseModel):
    min_x: float
    min_y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)

    def to_rect(self) -> Rect:
        return Rect(min_x=self.min_x, min_y=self.min_y, width=self.width, height=self.height)


class FaceObservationModel(BaseModel):
    roll_angle: float
    yaw_angle: float
    smiling_probability: float = Field(..., ge=0, le=1)
    left_eye_open_probability: float = Field(..., ge=0, le=1)
    right_eye_open_probability: float = Field(..., ge=0, le=1)
    bounding_box: RectModel

    def to_observation(self) -> FaceObservation:
        return FaceObservation(
            roll_angle=self.roll_angle,
            yaw_angle=self.yaw_angle,
            smiling_probability=self.smiling_probability,
            left_eye_open_probability=self.left_eye_open_probability,
            right_eye_open_probability=self.right_eye_open_probability,
            bounding_box=self.bounding_box.to_rect(),
        )


class FrameRequest(BaseModel):
    """Faces detected in one camera frame; empty when no face was found."""

    faces: List[FaceObservationModel] = Field(default_factory=list)


class SessionSnapshot(BaseModel):
    session_id: str
    phase: str
    face_detected: bool
    face_too_close: bool
    current_challenge: Optional[str]
    challenge_order: List[str]
    progress: float
    complete: bool
    prompt: str
    instruction: Optional[str]


class FrameResponse(SessionSnapshot):
    accepted: bool


__all__ = ["FaceObservationModel", "FrameRequest", "FrameResponse", "RectModel", "SessionSnapshot"]
