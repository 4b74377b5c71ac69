"""
Unit Tests for Core Models

Tests for Point/Rect geometry, Slot/Template layouts, SourceImage and
CompositionJob invariants and serialization.
"""

import pytest
from dataclasses import FrozenInstanceError

from compai.core.models import (
    CompositionJob,
    HeroRule,
    ImageCategory,
    Point,
    Rect,
    Slot,
    SlotAssignment,
    SourceImage,
    Template,
)


class TestRect:
    """Tests for Rect geometry."""

    def test_rect_when_zero_width_then_raises(self):
        with pytest.raises(ValueError, match="w must be > 0"):
            Rect(0, 0, 0, 1)

    def test_rect_when_negative_height_then_raises(self):
        with pytest.raises(ValueError, match="h must be > 0"):
            Rect(0, 0, 1, -1)

    def test_rect_when_nan_size_then_raises(self):
        with pytest.raises(ValueError, match="w must be > 0"):
            Rect(0, 0, float("nan"), 1)
        with pytest.raises(ValueError, match="h must be > 0"):
            Rect(0, 0, 800, float("nan"))

    def test_edges_and_aspect_ratio(self):
        r = Rect(10, 20, 300, 150)

        assert r.right == 310
        assert r.bottom == 170
        assert r.aspect_ratio == 2.0
        assert r.to_box() == (10, 20, 310, 170)

    def test_scaled_multiplies_each_axis(self):
        r = Rect(0.25, 0.5, 0.5, 0.25)

        scaled = r.scaled(800, 400)

        assert scaled == Rect(200, 200, 400, 100)

    def test_rect_is_frozen(self):
        r = Rect(0, 0, 1, 1)
        with pytest.raises(FrozenInstanceError):
            r.x = 5

    def test_round_trip(self):
        r = Rect(1.5, 2.5, 3.0, 4.0)
        assert Rect.from_dict(r.to_dict()) == r


class TestPoint:
    """Tests for Point."""

    def test_center(self):
        assert Point.center() == Point(0.5, 0.5)

    def test_out_of_range_is_allowed(self):
        """Focal points are not clamped on construction."""
        p = Point(-0.5, 1.7)
        assert p.x == -0.5
        assert p.y == 1.7


class TestSlot:
    """Tests for Slot."""

    def test_effective_aspect_ratio_depends_on_canvas(self):
        # Arrange
        slot = Slot("s", Rect(0.0, 0.0, 0.5, 0.5))

        # Act / Assert
        assert slot.effective_aspect_ratio(1.0) == pytest.approx(1.0)
        assert slot.effective_aspect_ratio(16 / 9) == pytest.approx(16 / 9)

    def test_corner_radius_out_of_range_raises(self):
        with pytest.raises(ValueError, match="corner_radius"):
            Slot("s", Rect(0, 0, 1, 1), corner_radius=1.5)

    def test_from_dict_reads_flat_geometry(self):
        slot = Slot.from_dict(
            {"id": "d1", "x": 0.67, "y": 0.0, "w": 0.33, "h": 0.32, "radius": 0.02, "z_index": 2}
        )

        assert slot.rect == Rect(0.67, 0.0, 0.33, 0.32)
        assert slot.corner_radius == 0.02
        assert slot.stack_order == 2

    def test_defaults_when_optional_keys_missing(self):
        slot = Slot.from_dict({"id": "a", "x": 0, "y": 0, "w": 1, "h": 1})

        assert slot.corner_radius == 0.0
        assert slot.stack_order == 1


class TestTemplate:
    """Tests for Template."""

    @pytest.fixture
    def slots(self):
        return (
            Slot("a", Rect(0, 0, 0.5, 1), stack_order=2),
            Slot("b", Rect(0.5, 0, 0.5, 1), stack_order=1),
            Slot("c", Rect(0.25, 0.25, 0.5, 0.5), stack_order=2),
        )

    def test_duplicate_slot_ids_raise(self):
        with pytest.raises(ValueError, match="Duplicate slot id"):
            Template("t", "T", "", (Slot("a", Rect(0, 0, 1, 1)), Slot("a", Rect(0, 0, 1, 1))))

    def test_hero_slot_defaults_to_first_declared(self, slots):
        t = Template("t", "T", "", slots)

        assert t.hero_slot_id == "a"
        assert t.preferred_category is None

    def test_hero_slot_from_rule(self, slots):
        t = Template("t", "T", "", slots, HeroRule("b", ImageCategory.KITCHEN))

        assert t.hero_slot_id == "b"
        assert t.preferred_category == ImageCategory.KITCHEN

    def test_hero_slot_none_without_slots(self):
        assert Template("t", "T", "", ()).hero_slot_id is None

    def test_slots_by_stack_order_is_stable(self, slots):
        t = Template("t", "T", "", slots)

        ordered = [s.id for s in t.slots_by_stack_order()]

        assert ordered == ["b", "a", "c"]

    def test_get_slot(self, slots):
        t = Template("t", "T", "", slots)

        assert t.get_slot("c") is slots[2]
        assert t.get_slot("zzz") is None

    def test_round_trip_with_hero(self, slots):
        t = Template("t", "T", "desc", slots, HeroRule("a", ImageCategory.HOUSE))

        restored = Template.from_dict(t.to_dict())

        assert restored == t


class TestSourceImage:
    """Tests for SourceImage."""

    def test_defaults(self):
        img = SourceImage("a", 400, 300)

        assert img.focal_point == Point.center()
        assert img.category == ImageCategory.OTHER
        assert img.aspect_ratio == pytest.approx(4 / 3)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-1, 10)])
    def test_non_positive_dimensions_raise(self, width, height):
        with pytest.raises(ValueError, match="dimensions must be positive"):
            SourceImage("a", width, height)

    def test_round_trip(self):
        img = SourceImage("a", 40, 30, Point(0.1, 0.9), ImageCategory.BEDROOM, "A bed")

        assert SourceImage.from_dict(img.to_dict()) == img

    def test_category_str_is_value(self):
        assert str(ImageCategory.LIVING_ROOM) == "living_room"


class TestCompositionJob:
    """Tests for CompositionJob invariants."""

    def test_same_image_twice_raises(self):
        crop = Rect(0, 0, 10, 10)
        with pytest.raises(ValueError, match="more than once"):
            CompositionJob(
                "j", "t", 1.0,
                (SlotAssignment("a", "img", crop), SlotAssignment("b", "img", crop)),
            )

    def test_same_slot_twice_raises(self):
        crop = Rect(0, 0, 10, 10)
        with pytest.raises(ValueError, match="fills a slot more than once"):
            CompositionJob(
                "j", "t", 1.0,
                (SlotAssignment("a", "x", crop), SlotAssignment("a", "y", crop)),
            )

    @pytest.mark.parametrize("aspect", [0.0, float("nan"), float("inf")])
    def test_invalid_aspect_raises(self, aspect):
        with pytest.raises(ValueError, match="aspect_ratio"):
            CompositionJob("j", "t", aspect)

    def test_accessors(self):
        crop = Rect(0, 0, 10, 10)
        job = CompositionJob(
            "j", "t", 1.0,
            (SlotAssignment("a", "x", crop), SlotAssignment("b", "y", crop)),
        )

        assert job.filled_slot_count == 2
        assert job.image_ids == ("x", "y")
        assert job.assignment_for("b").image_id == "y"
        assert job.assignment_for("c") is None

    def test_round_trip(self):
        job = CompositionJob(
            "j", "t", 16 / 9, (SlotAssignment("a", "x", Rect(1, 2, 3, 4)),)
        )

        assert CompositionJob.from_dict(job.to_dict()) == job
