"""Tests for annotation model serialization."""

import pytest

from flowaudit.annotations import (
    ArrowAnnotation,
    FreehandAnnotation,
    RectAnnotation,
    TextAnnotation,
    annotation_from_dict,
    annotation_to_dict,
    annotations_from_list,
)


class TestAnnotationShapes:
    """Tests for the annotation variants."""

    def test_kind_is_fixed_per_variant(self) -> None:
        assert RectAnnotation(x=0, y=0).kind == "rect"
        assert ArrowAnnotation(points=(0, 0, 1, 1)).kind == "arrow"
        assert FreehandAnnotation(points=(0, 0)).kind == "freehand"
        assert TextAnnotation(x=0, y=0, text="note").kind == "text"

    def test_ids_are_unique(self) -> None:
        ids = {RectAnnotation(x=0, y=0).id for _ in range(50)}

        assert len(ids) == 50

    def test_freehand_needs_two_points(self) -> None:
        assert not FreehandAnnotation(points=(5, 5)).is_drawable
        assert FreehandAnnotation(points=(5, 5, 6, 6)).is_drawable
        assert FreehandAnnotation(points=(1, 2, 3, 4)).pairs() == [(1, 2), (3, 4)]


class TestAnnotationDicts:
    """Tests for the persisted JSON shape."""

    def test_rect_keeps_negative_extent(self) -> None:
        """Rects dragged up-left survive a save and load unchanged."""
        rect = RectAnnotation(x=50, y=50, width=-40, height=-40, color="#00ff00")

        data = annotation_to_dict(rect)

        assert data["type"] == "rect"
        assert data["width"] == -40
        assert annotation_from_dict(data) == rect

    def test_arrow_dict_carries_first_point(self) -> None:
        data = annotation_to_dict(ArrowAnnotation(points=(1, 2, 3, 4)))

        assert data["x"] == 1
        assert data["y"] == 2
        assert data["points"] == [1, 2, 3, 4]

    def test_unknown_type_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown annotation type"):
            annotation_from_dict({"type": "circle", "x": 1, "y": 1})

    def test_arrow_without_four_coordinates_raises(self) -> None:
        with pytest.raises(ValueError):
            annotation_from_dict({"type": "arrow", "points": [1, 2, 3]})

    def test_empty_text_raises(self) -> None:
        with pytest.raises(ValueError):
            annotation_from_dict({"type": "text", "x": 1, "y": 1, "text": ""})

    def test_defaults_fill_missing_fields(self) -> None:
        """Missing color and thickness fall back to defaults."""
        (ann,) = annotations_from_list([{"type": "freehand", "points": [0, 0, 10, 10]}])

        assert isinstance(ann, FreehandAnnotation)
        assert ann.color == "#ef4444"
        assert ann.thickness == 3
