"""Error types raised by image-focus."""


class FocusError(Exception):
    """Base class for all image-focus errors."""


class UnsupportedVersionError(FocusError, ValueError):
    """Encoded focus data uses a format version this package does not know."""

    def __init__(self, version):
        self.version = version
        super().__init__(f"Unknown focus encoding version: {version!r}")


class MalformedInputError(FocusError, ValueError):
    """Encoded focus data cannot be parsed into a focus tuple."""


class InvalidHashError(FocusError, ValueError):
    """A blurhash string could not be decoded."""


class NotYetComputable(FocusError):
    """Dimensions needed for a geometry computation are not available yet."""
