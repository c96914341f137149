"""image-focus - Focal point cropping and progressive reveal for images."""

__version__ = "0.1.0"
__description__ = "Focal point descriptors, crop math and blurhash reveal for images"

from .core.focus import Fit, FocusDescriptor, stamp
from .core.codec import encode, decode
from .core.shift import Shift, compute_shift
from .core.picker import FocusPicker, pointer_to_focus
from .core.placeholder import decode_hash
from .core.reveal import RevealController, RevealState
from .exceptions import (
    FocusError,
    InvalidHashError,
    MalformedInputError,
    UnsupportedVersionError,
)
from .runtime import FocusRuntime, ImageElement

__all__ = [
    "Fit",
    "FocusDescriptor",
    "stamp",
    "encode",
    "decode",
    "Shift",
    "compute_shift",
    "FocusPicker",
    "pointer_to_focus",
    "decode_hash",
    "RevealController",
    "RevealState",
    "FocusError",
    "InvalidHashError",
    "MalformedInputError",
    "UnsupportedVersionError",
    "FocusRuntime",
    "ImageElement",
]
