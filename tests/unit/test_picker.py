"""Tests for pointer to focal point mapping and the picker session."""

import itertools

import pytest

from image_focus.core.focus import Fit, FocusDescriptor
from image_focus.core.picker import (
    FocusPicker,
    PickerBox,
    focus_to_pointer,
    pointer_to_focus,
)


# Square image shown whole in a 200x100 box at (10, 20): content spans
# x in [60, 160] and the full box height.
SQUARE_IN_WIDE_BOX = (10, 20, 200, 100, 100, 100)


class TestPointerToFocus:
    """Test the pointer mapping."""

    def test_center(self):
        """Test the box centre maps to the image centre."""
        assert pointer_to_focus(110, 70, *SQUARE_IN_WIDE_BOX) == (0.0, 0.0)

    def test_letterbox_margin_is_excluded(self):
        """Test content edges map to +/-1 rather than the box edges."""
        assert pointer_to_focus(160, 70, *SQUARE_IN_WIDE_BOX) == pytest.approx((1.0, 0.0))
        assert pointer_to_focus(60, 70, *SQUARE_IN_WIDE_BOX) == pytest.approx((-1.0, 0.0))

    def test_vertical_axis_points_up(self):
        """Test moving the pointer down decreases y."""
        top = pointer_to_focus(110, 20, *SQUARE_IN_WIDE_BOX)
        bottom = pointer_to_focus(110, 120, *SQUARE_IN_WIDE_BOX)
        assert top == pytest.approx((0.0, 1.0))
        assert bottom == pytest.approx((0.0, -1.0))

    def test_outside_box_saturates(self):
        """Test positions outside the box are clamped."""
        assert pointer_to_focus(500, -300, *SQUARE_IN_WIDE_BOX) == (1.0, 1.0)
        assert pointer_to_focus(65, 70, *SQUARE_IN_WIDE_BOX)[0] == pytest.approx(-0.9)
        assert pointer_to_focus(15, 70, *SQUARE_IN_WIDE_BOX)[0] == -1.0

    def test_tall_box(self):
        """Test a wide image letterboxed top and bottom."""
        # 200x100 image in a 100x200 box: content spans y in [75, 125].
        assert pointer_to_focus(50, 75, 0, 0, 100, 200, 200, 100) == pytest.approx((0.0, 1.0))
        assert pointer_to_focus(100, 112.5, 0, 0, 100, 200, 200, 100) == pytest.approx((1.0, -0.5))

    @pytest.mark.parametrize(
        "box_and_image",
        [(0, 0, 0, 100, 100, 100), (0, 0, 100, 100, 0, 100), (0, 0, 100, 100, 100, 0)],
    )
    def test_unknown_sizes(self, box_and_image):
        """Test mapping is deferred while sizes are unknown."""
        assert pointer_to_focus(10, 10, *box_and_image) is None


class TestFocusToPointer:
    """Test the inverse mapping."""

    def test_known_point(self):
        """Test a focal point lands where the pointer must be."""
        assert focus_to_pointer(0.5, -0.5, *SQUARE_IN_WIDE_BOX) == pytest.approx((135, 95))

    @pytest.mark.parametrize(
        "geometry",
        [
            SQUARE_IN_WIDE_BOX,
            (0, 0, 100, 200, 200, 100),
            (-30, 45, 320, 180, 1920, 1080),
            (5, 5, 333, 250, 1234, 4321),
        ],
    )
    def test_inverse_of_pointer_to_focus(self, geometry):
        """Test mapping a focal point out and back gives the same point."""
        for fx, fy in itertools.product([-1, -0.4, 0, 0.25, 1], repeat=2):
            px, py = focus_to_pointer(fx, fy, *geometry)
            assert pointer_to_focus(px, py, *geometry) == pytest.approx((fx, fy))

    def test_unknown_sizes(self):
        """Test None while sizes are unknown."""
        assert focus_to_pointer(0, 0, 0, 0, 100, 100, 0, 0) is None


class TestFocusPicker:
    """Test the drag session."""

    def setup_method(self):
        """Set up a picker over a letterboxed square image."""
        self.changes = []
        self.focus = FocusDescriptor(
            x=0.1, y=0.1, width=100, height=100, fit=Fit.CONTAIN, blurhash="abc"
        )
        self.picker = FocusPicker(
            self.focus,
            box=PickerBox(10, 20, 200, 100),
            on_change=self.changes.append,
        )

    def test_move_without_drag_is_ignored(self):
        """Test pointer motion outside a drag does nothing."""
        assert self.picker.move(135, 95) is None
        assert self.picker.focus == self.focus
        assert self.changes == []

    def test_drag(self):
        """Test a drag gesture produces descriptors for each sample."""
        first = self.picker.start(135, 95)
        second = self.picker.move(110, 70)
        self.picker.stop()
        after = self.picker.move(160, 20)

        assert (first.x, first.y) == pytest.approx((0.5, -0.5))
        assert (second.x, second.y) == (0.0, 0.0)
        assert after is None
        assert self.changes == [first, second]
        assert self.picker.focus == second

    def test_metadata_is_preserved(self):
        """Test picking only changes the focal point."""
        picked = self.picker.start(160, 20)
        assert (picked.x, picked.y) == (1.0, 1.0)
        assert picked.width == 100
        assert picked.height == 100
        assert picked.fit is Fit.CONTAIN
        assert picked.blurhash == "abc"

    def test_disable(self):
        """Test a disabled picker ignores input and ends any drag."""
        self.picker.start(135, 95)
        self.picker.disable()

        assert not self.picker.enabled
        assert not self.picker.dragging
        assert self.picker.start(110, 70) is None
        assert len(self.changes) == 1

    def test_enable_with_focus(self):
        """Test re-enabling with a new descriptor reports it."""
        self.picker.disable()
        replacement = FocusDescriptor(x=-0.3, width=100, height=100)
        self.picker.enable(replacement)

        assert self.picker.enabled
        assert self.picker.focus == replacement
        assert self.changes == [replacement]

    def test_intrinsic_size_overrides_descriptor(self):
        """Test a measured intrinsic size is used over descriptor dimensions."""
        picker = FocusPicker(
            FocusDescriptor(),
            box=PickerBox(0, 0, 100, 200),
            intrinsic_size=(200, 100),
        )
        picked = picker.start(100, 112.5)
        assert (picked.x, picked.y) == pytest.approx((1.0, -0.5))

    def test_no_size_yet(self):
        """Test picking is a no-op until a size is known."""
        picker = FocusPicker(FocusDescriptor(), box=PickerBox(0, 0, 100, 100))
        assert picker.start(10, 10) is None
        assert picker.focus == FocusDescriptor()

    def test_handle_position(self):
        """Test the handle is drawn at the focal point."""
        self.picker.start(135, 95)
        assert self.picker.handle_position() == pytest.approx((135, 95))
