"""MediaPipe Face Mesh bridge producing per-frame face observations."""
from __future__ import annotations

import logging
from typing import List, Optional

import cv2
import mediapipe as mp
import numpy as np

from ..liveness.observation import FaceObservation
from .landmarks import observation_from_points

logger = logging.getLogger(__name__)


class MediaPipeFaceDetector:
    """Runs Face Mesh on BGR frames and converts every face to an observation.

    Up to two faces are tracked so that a crowded frame is reported as such
    instead of silently picking one face.
    """

    def __init__(
        self,
        *,
        viewport_width: float,
        mirror: bool = True,
        confidence: float = 0.6,
        max_faces: int = 2,
    ) -> None:
        self.viewport_width = viewport_width
        self.mirror = mirror
        self.face_mesh: Optional[mp.solutions.face_mesh.FaceMesh] = mp.solutions.face_mesh.FaceMesh(
            max_num_faces=max_faces,
            refine_landmarks=False,
            min_detection_confidence=confidence,
            min_tracking_confidence=confidence,
        )

    def detect(self, color_image: np.ndarray) -> List[FaceObservation]:
        if self.face_mesh is None:
            raise RuntimeError("MediaPipeFaceDetector already closed")
        height, width = color_image.shape[:2]
        rgb_image = cv2.cvtColor(color_image, cv2.COLOR_BGR2RGB)
        result = self.face_mesh.process(rgb_image)
        faces = result.multi_face_landmarks or []

        observations: List[FaceObservation] = []
        for landmarks in faces:
            points = np.array(
                [[lm.x * width, lm.y * height] for lm in landmarks.landmark],
                dtype=np.float32,
            )
            observations.append(
                observation_from_points(
                    points,
                    width,
                    viewport_width=self.viewport_width,
                    mirror=self.mirror,
                )
            )
        logger.debug("Detected %s face(s)", len(observations))
        return observations

    def close(self) -> None:
        if self.face_mesh:
            self.face_mesh.close()
            self.face_mesh = None

    def __enter__(self) -> "MediaPipeFaceDetector":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["MediaPipeFaceDetector"]
