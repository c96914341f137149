"""Focus descriptor: the focal point of an image plus the metadata needed to render it."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..utils.math import clamp_value, finite_or_zero


class Fit(Enum):
    """Cropping discipline applied to an image inside its container."""

    COVER = "cover"
    CONTAIN = "contain"

    @classmethod
    def parse(cls, value) -> "Fit":
        """Map a fit value to a Fit member, defaulting to cover."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.COVER


@dataclass(frozen=True)
class FocusDescriptor:
    """Focal point and intrinsic image metadata.

    ``x`` and ``y`` live in [-1, 1] with (0, 0) at the image centre. Positive
    ``x`` is right of centre and positive ``y`` is *above* centre, which is the
    opposite of screen coordinates.

    ``width`` and ``height`` are the intrinsic pixel size of the image when the
    descriptor was captured. They are 0 while the image has not been measured
    yet, and shift computation refuses to run in that state.
    """

    x: float = 0.0
    y: float = 0.0
    width: float = 0
    height: float = 0
    fit: Fit = Fit.COVER
    blurhash: Optional[str] = None

    def __post_init__(self):
        """Clamp the focal point and normalise the remaining fields."""
        object.__setattr__(self, "x", clamp_value(finite_or_zero(self.x), -1.0, 1.0))
        object.__setattr__(self, "y", clamp_value(finite_or_zero(self.y), -1.0, 1.0))
        object.__setattr__(self, "fit", Fit.parse(self.fit))
        object.__setattr__(self, "blurhash", self.blurhash or None)

        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Invalid image dimensions: width={self.width}, height={self.height}"
            )

    @property
    def has_dimensions(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def aspect_ratio(self) -> Optional[float]:
        """Intrinsic width / height, or None before the image is measured."""
        if not self.has_dimensions:
            return None
        return self.width / self.height

    def with_point(self, x: float, y: float) -> "FocusDescriptor":
        """Create a copy with a new focal point, keeping all metadata."""
        return replace(self, x=x, y=y)

    def with_dimensions(self, width: float, height: float) -> "FocusDescriptor":
        """Create a copy with new intrinsic dimensions."""
        return replace(self, width=width, height=height)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "fit": self.fit.value,
            "blurhash": self.blurhash,
        }


def stamp(**fields) -> FocusDescriptor:
    """Build a descriptor from defaults overridden by ``fields``."""
    return FocusDescriptor(**fields)
