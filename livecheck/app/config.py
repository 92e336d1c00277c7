"""Central configuration for the liveness controller service."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .liveness.challenges import DEFAULT_ORDER, ChallengeKind

ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = ROOT_DIR / ".env"


class Settings(BaseSettings):
    """Environment-driven settings for controller subsystems."""

    model_config = SettingsConfigDict(
        env_file=str(DEFAULT_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    controller_host: str = Field("0.0.0.0", description="Host interface for local FastAPI server")
    controller_port: int = Field(5000, description="Port for FastAPI server")

    preview_size: float = Field(325.0, gt=0, description="Side of the square target region")
    preview_margin_top: float = Field(50.0, ge=0, description="Top offset of the target region")
    viewport_width: float = Field(390.0, gt=0, description="Width of the preview coordinate space")

    framing_strategy: Literal["contain", "center"] = Field(
        "contain", description="'contain' checks the inset face box, 'center' only the face center"
    )
    framing_edge_offset: float = Field(50.0, ge=0, description="Amount the face box shrinks before containment")
    too_close_margin: Optional[float] = Field(
        90.0, description="Face larger than preview_size minus this margin is too close; unset disables"
    )

    blink_max_open_probability: float = Field(0.3, ge=0, le=1, description="Eye-open probability treated as closed")
    turn_left_max_yaw: float = Field(-15.0, description="Yaw at or below which a left turn passes")
    turn_right_min_yaw: float = Field(15.0, description="Yaw at or above which a right turn passes")
    nod_min_deviation: float = Field(1.5, gt=0, description="Roll deviation from baseline that counts as a nod")
    smile_min_probability: float = Field(0.7, ge=0, le=1, description="Smiling probability that passes")

    challenge_order: List[ChallengeKind] = Field(
        default_factory=lambda: list(DEFAULT_ORDER), description="Challenges issued per session"
    )
    shuffle_challenges: bool = Field(False, description="Shuffle challenge order for every new session")
    completion_delay_s: float = Field(0.5, ge=0, description="Delay before a completed session is closed")

    camera_enable_hardware: bool = Field(False, description="Capture frames from a local camera")
    camera_index: int = Field(0, description="OpenCV VideoCapture device index")
    camera_mirror: bool = Field(True, description="Mirror frames like a front-facing preview")
    min_detection_interval_ms: int = Field(125, ge=0, description="Minimum time between detector runs")
    mediapipe_confidence: float = Field(0.6, description="Minimum face detector confidence")

    log_level: str = Field("INFO", description="Logging level for controller")

    @field_validator("challenge_order")
    @classmethod
    def _unique_order(cls, value: List[ChallengeKind]) -> List[ChallengeKind]:
        if not value:
            raise ValueError("challenge_order must name at least one challenge")
        if len(set(value)) != len(value):
            raise ValueError("challenge_order must not repeat challenges")
        return value


@lru_cache()
def get_settings(override_env_file: Optional[Path] = None) -> Settings:
    """Cached Settings instance; accepts optional env override for tests."""

    if override_env_file:
        return Settings(_env_file=str(override_env_file))
    return Settings()


__all__ = ["Settings", "get_settings"]
