"""Interactive focal point picking.

The picker shows the whole image (``object-fit: contain``) inside a box, so
part of the box may be letterbox margin. Pointer positions are mapped back to
a focal point relative to the visible image content, not the box.
"""

import logging
from typing import Callable, Optional, Tuple

from .focus import FocusDescriptor
from .shift import overflow_ratios
from ..exceptions import NotYetComputable
from ..utils.math import clamp_value

logger = logging.getLogger(__name__)

OnFocusChange = Callable[[FocusDescriptor], None]


def _content_scale(
    box_width: float, box_height: float, intrinsic_width: float, intrinsic_height: float
) -> Tuple[float, float]:
    """Box size divided by visible content size, per axis.

    The overflowing axis fills the box and gets 1; the letterboxed axis gets
    the factor that converts box-relative offsets to content-relative ones.
    """
    w_ratio, h_ratio = overflow_ratios(
        intrinsic_width, intrinsic_height, box_width, box_height
    )
    is_wide = w_ratio > h_ratio
    if is_wide:
        real_height = box_width * (intrinsic_height / intrinsic_width)
        return 1.0, box_height / real_height
    real_width = box_height * (intrinsic_width / intrinsic_height)
    return box_width / real_width, 1.0


def pointer_to_focus(
    pointer_x: float,
    pointer_y: float,
    box_left: float,
    box_top: float,
    box_width: float,
    box_height: float,
    intrinsic_width: float,
    intrinsic_height: float,
) -> Optional[Tuple[float, float]]:
    """Convert a pointer position to a focal point in [-1, 1].

    Moving the pointer down the screen decreases ``y``. Positions outside the
    box saturate at the edges. Returns None while dimensions are unknown.
    """
    try:
        scale_x, scale_y = _content_scale(
            box_width, box_height, intrinsic_width, intrinsic_height
        )
    except NotYetComputable as e:
        logger.debug(f"Pointer position not mappable yet: {e}")
        return None

    offset_x = pointer_x - box_left
    offset_y = pointer_y - box_top
    x = (offset_x / box_width - 0.5) * 2 * scale_x
    y = (offset_y / box_height - 0.5) * -2 * scale_y
    return clamp_value(x, -1.0, 1.0), clamp_value(y, -1.0, 1.0)


def focus_to_pointer(
    focus_x: float,
    focus_y: float,
    box_left: float,
    box_top: float,
    box_width: float,
    box_height: float,
    intrinsic_width: float,
    intrinsic_height: float,
) -> Optional[Tuple[float, float]]:
    """Page position of a focal point inside a contain-rendered box."""
    try:
        scale_x, scale_y = _content_scale(
            box_width, box_height, intrinsic_width, intrinsic_height
        )
    except NotYetComputable:
        return None

    offset_x = box_width * (focus_x / (2 * scale_x) + 0.5)
    offset_y = box_height * (focus_y / (-2 * scale_y) + 0.5)
    return box_left + offset_x, box_top + offset_y


class PickerBox:
    """Rendered box of the picker image, in page coordinates."""

    def __init__(self, left: float = 0, top: float = 0, width: float = 0, height: float = 0):
        self.left = left
        self.top = top
        self.width = width
        self.height = height

    def __repr__(self) -> str:
        return f"PickerBox({self.left}, {self.top}, {self.width}x{self.height})"


class FocusPicker:
    """Drag session that turns pointer samples into focus descriptors.

    The host forwards pointer-down, pointer-move and pointer-up events; each
    sample taken while dragging produces a new descriptor that keeps every
    field except the focal point, and passes it to ``on_change``.
    """

    def __init__(
        self,
        focus: FocusDescriptor,
        box: Optional[PickerBox] = None,
        on_change: Optional[OnFocusChange] = None,
        intrinsic_size: Optional[Tuple[float, float]] = None,
    ):
        self.focus = focus
        self.box = box or PickerBox()
        self.on_change = on_change
        self.intrinsic_size = intrinsic_size
        self.dragging = False
        self._enabled = True

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self, focus: Optional[FocusDescriptor] = None) -> None:
        """Accept pointer input again, optionally resetting the focus."""
        if self._enabled:
            return
        self._enabled = True
        if focus is not None:
            self.set_focus(focus)

    def disable(self) -> None:
        if not self._enabled:
            return
        self._enabled = False
        self.stop()

    def _intrinsic(self) -> Tuple[float, float]:
        if self.intrinsic_size and all(v > 0 for v in self.intrinsic_size):
            return self.intrinsic_size
        return self.focus.width, self.focus.height

    def set_focus(self, focus: FocusDescriptor) -> None:
        self.focus = focus
        if self.on_change is not None:
            self.on_change(focus)

    def start(self, pointer_x: float, pointer_y: float) -> Optional[FocusDescriptor]:
        """Begin a drag gesture at the given pointer position."""
        if not self._enabled:
            return None
        self.dragging = True
        return self.move(pointer_x, pointer_y)

    def move(self, pointer_x: float, pointer_y: float) -> Optional[FocusDescriptor]:
        """Handle one pointer sample; ignored unless a drag is active."""
        if not self.dragging:
            return None

        intrinsic_width, intrinsic_height = self._intrinsic()
        point = pointer_to_focus(
            pointer_x,
            pointer_y,
            self.box.left,
            self.box.top,
            self.box.width,
            self.box.height,
            intrinsic_width,
            intrinsic_height,
        )
        if point is None:
            return None

        focus = self.focus.with_point(*point)
        self.set_focus(focus)
        return focus

    def stop(self) -> None:
        self.dragging = False

    def handle_position(self) -> Optional[Tuple[float, float]]:
        """Where the focal point handle should be drawn, in page coordinates."""
        intrinsic_width, intrinsic_height = self._intrinsic()
        return focus_to_pointer(
            self.focus.x,
            self.focus.y,
            self.box.left,
            self.box.top,
            self.box.width,
            self.box.height,
            intrinsic_width,
            intrinsic_height,
        )
