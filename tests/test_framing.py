"""Tests for face framing strategies."""

from types import SimpleNamespace

import pytest

from livecheck.app.liveness.framing import (
    CenterFraming,
    ContainmentFraming,
    framing_from_settings,
    preview_rect,
)
from livecheck.app.liveness.geometry import Rect

PREVIEW = Rect(min_x=32.5, min_y=50.0, width=325.0, height=325.0)


class TestPreviewRect:
    def test_centered_in_viewport(self, settings):
        assert preview_rect(settings) == PREVIEW


class TestContainmentFraming:
    def test_centered_face(self, face):
        assert ContainmentFraming(PREVIEW).is_face_well_framed(face())

    def test_face_slightly_over_edge_is_tolerated(self, face):
        # 20 units past the left edge, inside the 25-unit inset
        box = Rect(min_x=12.5, min_y=100.0, width=200.0, height=200.0)
        assert ContainmentFraming(PREVIEW, edge_offset=50.0).is_face_well_framed(face(bounding_box=box))
        assert not ContainmentFraming(PREVIEW, edge_offset=0.0).is_face_well_framed(face(bounding_box=box))

    def test_face_far_outside(self, face):
        box = Rect(min_x=300.0, min_y=112.5, width=200.0, height=200.0)
        assert not ContainmentFraming(PREVIEW).is_face_well_framed(face(bounding_box=box))


class TestCenterFraming:
    def test_center_inside(self, face):
        box = Rect(min_x=250.0, min_y=100.0, width=200.0, height=200.0)
        # center x 350 < 357.5
        assert CenterFraming(PREVIEW).is_face_well_framed(face(bounding_box=box))

    @pytest.mark.parametrize(
        "box",
        [
            Rect(min_x=300.0, min_y=100.0, width=200.0, height=200.0),
            Rect(min_x=-100.0, min_y=100.0, width=200.0, height=200.0),
            Rect(min_x=100.0, min_y=-100.0, width=200.0, height=200.0),
            Rect(min_x=100.0, min_y=300.0, width=200.0, height=200.0),
        ],
    )
    def test_center_outside(self, face, box):
        assert not CenterFraming(PREVIEW).is_face_well_framed(face(bounding_box=box))

    def test_center_on_edge_is_outside(self, face):
        box = Rect(min_x=-67.5, min_y=100.0, width=200.0, height=200.0)
        assert not CenterFraming(PREVIEW).is_face_well_framed(face(bounding_box=box))


class TestFramingFromSettings:
    def _settings(self, name):
        return SimpleNamespace(
            preview_size=325.0,
            preview_margin_top=50.0,
            viewport_width=390.0,
            framing_strategy=name,
            framing_edge_offset=50.0,
        )

    def test_contain(self):
        strategy = framing_from_settings(self._settings("contain"))
        assert isinstance(strategy, ContainmentFraming)
        assert strategy.preview == PREVIEW

    def test_center(self):
        assert isinstance(framing_from_settings(self._settings("center")), CenterFraming)

    def test_unknown(self):
        with pytest.raises(ValueError):
            framing_from_settings(self._settings("ellipse"))
