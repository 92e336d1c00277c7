"""Shared controller state definitions for the liveness service."""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class SessionPhase(str, enum.Enum):
    IDLE = "idle"
    NO_FACE = "no_face"
    FACE_TOO_CLOSE = "face_too_close"
    DETECTING = "detecting"
    COMPLETE = "complete"


@dataclass
class ControllerEvent:
    """Event payload distributed to UI clients over the local WebSocket."""

    type: str
    data: Dict[str, Any]
    phase: SessionPhase
    error: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.type,
            "phase": self.phase.value,
            "data": self.data,
        }
        if self.error:
            payload["error"] = self.error
        return payload


__all__ = ["SessionPhase", "ControllerEvent"]
