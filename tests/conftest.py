"""Shared fixtures for liveness tests."""
from __future__ import annotations

from typing import Callable, Iterator, List

import pytest

from livecheck.app.config import Settings, get_settings
from livecheck.app.liveness.geometry import Rect
from livecheck.app.liveness.observation import FaceObservation
from livecheck.app.liveness.session import LivenessMachine

# Default preview region is Rect(32.5, 50, 325, 325)
CENTERED_BOX = Rect(min_x=95.0, min_y=112.5, width=200.0, height=200.0)
TOO_CLOSE_BOX = Rect(min_x=70.0, min_y=90.0, width=250.0, height=250.0)
OFF_CENTER_BOX = Rect(min_x=300.0, min_y=112.5, width=200.0, height=200.0)

FaceFactory = Callable[..., FaceObservation]


def _make_face(**overrides) -> FaceObservation:
    values = dict(
        roll_angle=0.0,
        yaw_angle=0.0,
        smiling_probability=0.0,
        left_eye_open_probability=0.9,
        right_eye_open_probability=0.9,
        bounding_box=CENTERED_BOX,
    )
    values.update(overrides)
    return FaceObservation(**values)


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, completion_delay_s=0.0)


@pytest.fixture
def machine(settings: Settings) -> LivenessMachine:
    return LivenessMachine.from_settings(settings)


@pytest.fixture
def face() -> FaceFactory:
    return _make_face


@pytest.fixture
def passing_frames() -> Callable[[str], List[FaceObservation]]:
    """Frames that pass a given challenge when it is the active one."""

    def frames_for(kind: str) -> List[FaceObservation]:
        if kind == "blink":
            return [_make_face(left_eye_open_probability=0.1, right_eye_open_probability=0.1)]
        if kind == "turn_head_left":
            return [_make_face(yaw_angle=-20.0)]
        if kind == "turn_head_right":
            return [_make_face(yaw_angle=20.0)]
        if kind == "nod":
            return [_make_face(roll_angle=0.2)] * 9 + [_make_face(roll_angle=6.0)]
        if kind == "smile":
            return [_make_face(smiling_probability=0.9)]
        raise ValueError(kind)

    return frames_for
