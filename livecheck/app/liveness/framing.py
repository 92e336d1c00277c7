"""Strategies deciding whether a detected face sits inside the preview region."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from .geometry import Rect, contains
from .observation import FaceObservation

if TYPE_CHECKING:  # pragma: no cover
    from ..config import Settings

logger = logging.getLogger(__name__)


class FramingStrategy(Protocol):
    def is_face_well_framed(self, observation: FaceObservation) -> bool:
        ...


class ContainmentFraming:
    """Face box, shrunk by ``edge_offset``, must fit inside the preview."""

    def __init__(self, preview: Rect, *, edge_offset: float = 50.0) -> None:
        self.preview = preview
        self.edge_offset = edge_offset

    def is_face_well_framed(self, observation: FaceObservation) -> bool:
        return contains(self.preview, observation.bounding_box.inset(self.edge_offset))


class CenterFraming:
    """Center of the face box must lie strictly inside the preview."""

    def __init__(self, preview: Rect) -> None:
        self.preview = preview

    def is_face_well_framed(self, observation: FaceObservation) -> bool:
        cx, cy = observation.bounding_box.center
        if cy <= self.preview.min_y or cy >= self.preview.max_y:
            return False
        if cx <= self.preview.min_x or cx >= self.preview.max_x:
            return False
        return True


def preview_rect(settings: "Settings") -> Rect:
    """Square target region, horizontally centered in the viewport."""

    size = settings.preview_size
    return Rect(
        min_x=(settings.viewport_width - size) / 2.0,
        min_y=settings.preview_margin_top,
        width=size,
        height=size,
    )


def framing_from_settings(settings: "Settings") -> FramingStrategy:
    preview = preview_rect(settings)
    name = settings.framing_strategy
    logger.debug("Using %s framing with preview=%s", name, preview)
    if name == "contain":
        return ContainmentFraming(preview, edge_offset=settings.framing_edge_offset)
    if name == "center":
        return CenterFraming(preview)
    raise ValueError(f"Unknown framing strategy: {name!r}")


__all__ = ["CenterFraming", "ContainmentFraming", "FramingStrategy", "framing_from_settings", "preview_rect"]
