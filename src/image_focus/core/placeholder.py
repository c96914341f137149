"""Blurhash placeholders for images that are still loading.

A blurhash is decoded into a small RGBA raster, painted into a scratch
canvas and exported as a data URI that can be used as a CSS background.
"""

import base64
import io
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Tuple

import blurhash
import numpy as np
from PIL import Image

from .focus import FocusDescriptor
from ..exceptions import InvalidHashError

logger = logging.getLogger(__name__)

MAX_PLACEHOLDER_SIZE = 100
TRANSPARENT_PIXEL = (
    "data:image/gif;base64,R0lGODlhAQABAIAAAAAAAP///yH5BAEAAAAALAAAAAABAAEAAAIBRAA7"
)

_MIME_TYPES = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


@dataclass
class PlaceholderConfig:
    """Configuration for placeholder generation."""

    max_size: int = MAX_PLACEHOLDER_SIZE  # Long side of the decoded raster
    image_format: str = "JPEG"            # Export format for the data URI
    quality: int = 92                     # JPEG/WEBP quality
    punch: float = 1.0                    # Blurhash contrast multiplier

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.max_size <= 0:
            raise ValueError(f"max_size must be positive, got {self.max_size}")
        self.image_format = self.image_format.upper()
        if self.image_format not in _MIME_TYPES:
            supported = ", ".join(sorted(_MIME_TYPES))
            raise ValueError(
                f"Unsupported placeholder format '{self.image_format}'. "
                f"Supported formats: {supported}"
            )
        if not (1 <= self.quality <= 100):
            raise ValueError(f"quality must be in [1, 100], got {self.quality}")
        if self.punch <= 0:
            raise ValueError(f"punch must be positive, got {self.punch}")


def placeholder_size(
    width: float, height: float, max_size: int = MAX_PLACEHOLDER_SIZE
) -> Tuple[int, int]:
    """Raster size for a placeholder: long side ``max_size``, aspect kept."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image dimensions: {width}x{height}")

    small_w = max_size if width > height else round(max_size * (width / height))
    small_h = max_size if height > width else round(max_size * (height / width))
    return max(1, small_w), max(1, small_h)


def decode_hash(
    hash_value: str, width: int, height: int, punch: float = 1.0
) -> np.ndarray:
    """Decode a blurhash into an RGBA uint8 array of shape (height, width, 4).

    Raises:
        InvalidHashError: If the hash cannot be decoded
    """
    if not isinstance(hash_value, str) or not hash_value:
        raise InvalidHashError(f"Blurhash must be a non-empty string, got {hash_value!r}")
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid raster size: {width}x{height}")

    try:
        rows = blurhash.decode(hash_value, width, height, punch=punch)
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise InvalidHashError(f"Cannot decode blurhash {hash_value!r}: {e}") from e

    rgb = np.clip(np.asarray(rows, dtype=np.float64), 0, 255).astype(np.uint8)
    if rgb.shape != (height, width, 3):
        raise InvalidHashError(
            f"Blurhash {hash_value!r} decoded to shape {rgb.shape}, "
            f"expected {(height, width, 3)}"
        )

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[..., :3] = rgb
    pixels[..., 3] = 255
    return pixels


class RasterCanvas:
    """Reusable scratch raster for placeholder export.

    One canvas has one owner. The buffer is overwritten by every paint, so
    paint and export happen together under a lock; concurrent callers are
    serialised instead of interleaving on the same pixels.
    """

    def __init__(self, config: Optional[PlaceholderConfig] = None):
        self.config = config or PlaceholderConfig()
        self._buffer = np.zeros((0, 0, 4), dtype=np.uint8)
        self._lock = threading.Lock()
        self.width = 0
        self.height = 0

    def _paint(self, pixels: np.ndarray) -> np.ndarray:
        height, width = pixels.shape[:2]
        if self._buffer.shape[0] < height or self._buffer.shape[1] < width:
            self._buffer = np.zeros(
                (max(height, self._buffer.shape[0]), max(width, self._buffer.shape[1]), 4),
                dtype=np.uint8,
            )
            logger.debug(f"Grew scratch raster to {self._buffer.shape[1]}x{self._buffer.shape[0]}")

        view = self._buffer[:height, :width]
        view[...] = pixels
        self.width = width
        self.height = height
        return view

    def _export(self, view: np.ndarray) -> str:
        image_format = self.config.image_format
        if image_format == "JPEG":
            image = Image.fromarray(np.ascontiguousarray(view[..., :3]))
        else:
            image = Image.fromarray(np.ascontiguousarray(view))

        buffer = io.BytesIO()
        save_kwargs = {}
        if image_format in ("JPEG", "WEBP"):
            save_kwargs["quality"] = self.config.quality
        image.save(buffer, format=image_format, **save_kwargs)

        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:{_MIME_TYPES[image_format]};base64,{encoded}"

    def to_data_uri(self, pixels: np.ndarray) -> str:
        """Paint an RGBA raster and export it as a data URI."""
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Expected RGBA raster, got shape {pixels.shape}")

        with self._lock:
            view = self._paint(pixels)
            return self._export(view)


def placeholder_background(
    focus: FocusDescriptor,
    canvas: Optional[RasterCanvas] = None,
    config: Optional[PlaceholderConfig] = None,
) -> str:
    """CSS ``url(...)`` value showing the descriptor's placeholder.

    Descriptors without a hash or without dimensions get a transparent pixel.

    Raises:
        InvalidHashError: If the descriptor carries a hash that does not decode
    """
    if not focus.blurhash or not focus.has_dimensions:
        return f"url({TRANSPARENT_PIXEL})"

    canvas = canvas or RasterCanvas(config)
    config = config or canvas.config
    small_w, small_h = placeholder_size(focus.width, focus.height, config.max_size)
    pixels = decode_hash(focus.blurhash, small_w, small_h, punch=config.punch)
    return f'url("{canvas.to_data_uri(pixels)}")'


def encode_hash(
    image: np.ndarray, components_x: int = 4, components_y: int = 3, max_size: int = 64
) -> str:
    """Compute a blurhash for an RGB image array.

    The image is thumbnailed to at most ``max_size`` pixels before encoding.
    """
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected RGB image, got shape {image.shape}")
    if not (1 <= components_x <= 9 and 1 <= components_y <= 9):
        raise ValueError(
            f"Component counts must be in [1, 9], got {components_x}x{components_y}"
        )

    thumb = Image.fromarray(image.astype(np.uint8))
    thumb.thumbnail((max_size, max_size))
    return blurhash.encode(np.asarray(thumb).tolist(), components_x, components_y)
