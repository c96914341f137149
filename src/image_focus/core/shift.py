"""Crop-position math for focused images.

Given a focal point, the intrinsic image size and a container size, compute
the ``object-position`` / ``background-position`` percentages that keep the
focal point in view for the requested fit mode.
"""

import logging
from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from .focus import Fit, FocusDescriptor
from ..exceptions import NotYetComputable
from ..utils.math import clamp_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Shift:
    """Horizontal and vertical position percentages in [0, 100]."""

    x: float = 50.0
    y: float = 50.0

    CENTER: ClassVar["Shift"]

    def css(self) -> str:
        """Render as a CSS position value, e.g. ``"62.5% 50%"``."""
        return f"{_format_percent(self.x)}% {_format_percent(self.y)}%"

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)


Shift.CENTER = Shift(50.0, 50.0)


def _format_percent(value: float) -> str:
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def overflow_ratios(
    image_width: float,
    image_height: float,
    container_width: float,
    container_height: float,
) -> Tuple[float, float]:
    """Return (width ratio, height ratio) of image to container.

    Raises:
        NotYetComputable: If any dimension is not strictly positive
    """
    if not (
        container_width > 0
        and container_height > 0
        and image_width > 0
        and image_height > 0
    ):
        raise NotYetComputable(
            f"Need positive sizes, got image {image_width}x{image_height} "
            f"in container {container_width}x{container_height}"
        )
    return image_width / container_width, image_height / container_height


def _crop_shift(
    container_size: float, rendered_size: float, focus: float, invert: bool = False
) -> float:
    """Position along an overflowing axis that centres the focal point.

    ``rendered_size`` is the scaled image size along the axis. The further
    the image overflows, the smaller the shift needed to bring the focal
    point to the container centre; the result saturates at the edges.
    """
    overflow = rendered_size - container_size
    if overflow <= 0:
        return 50.0
    res = 50 * focus + (container_size / overflow) * 50 * focus
    return clamp_value(50 + (-1 if invert else 1) * res, 0.0, 100.0)


def compute_shift(
    focus: FocusDescriptor, container_width: float, container_height: float
) -> Optional[Shift]:
    """Compute crop position percentages for a container.

    Returns None while any dimension is still unknown; callers retry on the
    next layout signal.
    """
    try:
        w_ratio, h_ratio = overflow_ratios(
            focus.width, focus.height, container_width, container_height
        )
    except NotYetComputable as e:
        logger.debug(f"Shift not computable yet: {e}")
        return None

    h_shift = 50.0
    v_shift = 50.0

    if focus.fit is Fit.COVER:
        # The axis with the larger ratio is cropped, the other is filled.
        if w_ratio > h_ratio:
            h_shift = _crop_shift(container_width, focus.width / h_ratio, focus.x)
        elif w_ratio < h_ratio:
            v_shift = _crop_shift(
                container_height, focus.height / w_ratio, focus.y, invert=True
            )
    elif w_ratio < h_ratio:
        h_shift = focus.x * 50 + 50
    elif w_ratio > h_ratio:
        v_shift = 100 - (focus.y * 50 + 50)

    return Shift(
        clamp_value(h_shift, 0.0, 100.0),
        clamp_value(v_shift, 0.0, 100.0),
    )


def rendered_size(
    focus: FocusDescriptor, container_width: float, container_height: float
) -> Optional[Tuple[float, float]]:
    """Size the image is scaled to inside the container for its fit mode."""
    try:
        w_ratio, h_ratio = overflow_ratios(
            focus.width, focus.height, container_width, container_height
        )
    except NotYetComputable:
        return None

    if focus.fit is Fit.COVER:
        ratio = min(w_ratio, h_ratio)
    else:
        ratio = max(w_ratio, h_ratio)
    return focus.width / ratio, focus.height / ratio


def locate_focus(
    focus: FocusDescriptor, container_width: float, container_height: float
) -> Optional[Tuple[float, float]]:
    """Pixel position of the focal point inside the container after shifting.

    For cover, an unclamped shift puts the focal point exactly at the
    container centre; a clamped one pins the image edge to the container edge.
    """
    shift = compute_shift(focus, container_width, container_height)
    size = rendered_size(focus, container_width, container_height)
    if shift is None or size is None:
        return None

    width, height = size
    left = (container_width - width) * shift.x / 100
    top = (container_height - height) * shift.y / 100
    return (
        left + (focus.x + 1) / 2 * width,
        top + (1 - focus.y) / 2 * height,
    )
