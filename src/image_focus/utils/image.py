"""Image file loading for authoring focus descriptors."""

from PIL import Image, ImageOps
import numpy as np
from pathlib import Path
from typing import Tuple
import logging

from ..core.focus import Fit, FocusDescriptor
from ..core.placeholder import encode_hash

logger = logging.getLogger(__name__)


class ImageLoader:
    """Handle loading and validation of source images."""

    SUPPORTED_FORMATS = {".png", ".jpg", ".jpeg", ".gif", ".webp"}

    def __init__(self, path: Path):
        self.path = Path(path)
        self._validate_format()

    def _validate_format(self) -> None:
        """Validate image format is supported."""
        if not self.path.exists():
            raise FileNotFoundError(f"Image file not found: {self.path}")

        if not self.path.is_file():
            raise ValueError(f"Path is not a file: {self.path}")

        suffix = self.path.suffix.lower()
        if suffix not in self.SUPPORTED_FORMATS:
            supported = ", ".join(sorted(self.SUPPORTED_FORMATS))
            raise ValueError(
                f"Unsupported format '{suffix}'. Supported formats: {supported}"
            )

    def size(self) -> Tuple[int, int]:
        """Return (width, height) after EXIF orientation, without decoding pixels."""
        try:
            with Image.open(self.path) as img:
                width, height = img.size
                orientation = img.getexif().get(0x0112, 1)
        except OSError as e:
            raise RuntimeError(f"Failed to read image {self.path}: {e}") from e

        # Orientations 5-8 rotate by 90 degrees.
        if orientation in (5, 6, 7, 8):
            width, height = height, width
        return width, height

    def load(self) -> np.ndarray:
        """Load image as RGB numpy array."""
        try:
            with Image.open(self.path) as img:
                logger.debug(f"Loaded image: {img.format} {img.mode} {img.size}")
                img.verify()

            # verify() leaves the file unusable, so reopen for decoding
            with Image.open(self.path) as img:
                return self._to_rgb_array(img)
        except OSError as e:
            raise RuntimeError(f"Failed to load image {self.path}: {e}") from e

    def _to_rgb_array(self, img: Image.Image) -> np.ndarray:
        """Convert PIL image to RGB numpy array."""
        img = ImageOps.exif_transpose(img)

        original_mode = img.mode
        if img.mode != "RGB":
            if img.mode in ("RGBA", "LA", "P"):
                rgba = img.convert("RGBA")
                # Composite transparency onto white
                background = Image.new("RGB", rgba.size, (255, 255, 255))
                background.paste(rgba, mask=rgba.split()[-1])
                img = background
            else:
                img = img.convert("RGB")
            logger.debug(f"Converted image from {original_mode} to RGB")

        array = np.array(img)
        if array.ndim != 3 or array.shape[2] != 3:
            raise RuntimeError(f"Expected RGB array, got shape {array.shape}")
        return array


def describe_image(
    path: Path,
    x: float = 0.0,
    y: float = 0.0,
    fit: Fit = Fit.COVER,
    components: Tuple[int, int] = (4, 3),
    with_hash: bool = True,
) -> FocusDescriptor:
    """Build a focus descriptor for an image file.

    Reads the intrinsic size and, unless ``with_hash`` is False, computes a
    blurhash placeholder from the pixels.
    """
    loader = ImageLoader(path)
    blurhash = None
    if with_hash:
        array = loader.load()
        height, width = array.shape[:2]
        blurhash = encode_hash(array, *components)
    else:
        width, height = loader.size()

    logger.debug(f"Described {path}: {width}x{height}, blurhash={blurhash}")
    return FocusDescriptor(
        x=x, y=y, width=width, height=height, fit=fit, blurhash=blurhash
    )
