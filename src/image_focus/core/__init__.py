"""Core focus modules: descriptor, codec, geometry, placeholders and reveal."""

from .focus import Fit, FocusDescriptor, stamp
from .codec import encode, decode, decode_or_default, FORMAT_VERSION, FOCUS_ATTRIBUTE
from .shift import Shift, compute_shift, locate_focus
from .picker import FocusPicker, PickerBox, pointer_to_focus, focus_to_pointer
from .placeholder import (
    PlaceholderConfig,
    RasterCanvas,
    decode_hash,
    encode_hash,
    placeholder_background,
    placeholder_size,
)
from .reveal import RevealController, RevealState
from .scheduler import AsyncioScheduler, FrameCoalescer, ManualScheduler, Scheduler

__all__ = [
    "Fit",
    "FocusDescriptor",
    "stamp",
    "encode",
    "decode",
    "decode_or_default",
    "FORMAT_VERSION",
    "FOCUS_ATTRIBUTE",
    "Shift",
    "compute_shift",
    "locate_focus",
    "FocusPicker",
    "PickerBox",
    "pointer_to_focus",
    "focus_to_pointer",
    "PlaceholderConfig",
    "RasterCanvas",
    "decode_hash",
    "encode_hash",
    "placeholder_background",
    "placeholder_size",
    "RevealController",
    "RevealState",
    "AsyncioScheduler",
    "FrameCoalescer",
    "ManualScheduler",
    "Scheduler",
]
