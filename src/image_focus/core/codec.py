"""Compact, versioned string encoding of focus descriptors.

Version 1 layout, before the binary-to-text step::

    [version, round(x * 100), round(y * 100), width, height, fit, blurhash]

``fit`` is 1 for cover and 0 for contain. The JSON text is base64 encoded
with the URL-safe alphabet and the ``=`` padding removed, so the token can be
stored verbatim in an element attribute. Focal points are stored with two
decimal digits of precision.
"""

import base64
import json
import logging
from typing import Union

from .focus import Fit, FocusDescriptor, stamp
from ..exceptions import MalformedInputError, UnsupportedVersionError
from ..utils.math import finite_or_zero, round_half_up

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
FOCUS_ATTRIBUTE = "data-focus"


def _is_supported_version(version) -> bool:
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        return False
    return version == FORMAT_VERSION


def _compact_number(value: float) -> Union[int, float]:
    """Write integral floats as ints so 2400.0 encodes as 2400."""
    value = finite_or_zero(value)
    if value.is_integer():
        return int(value)
    return value


def encode(focus: FocusDescriptor, version: int = FORMAT_VERSION) -> str:
    """Encode a focus descriptor into an attribute-safe token."""
    if not _is_supported_version(version):
        raise UnsupportedVersionError(version)

    payload = [
        FORMAT_VERSION,
        round_half_up(focus.x * 100),
        round_half_up(focus.y * 100),
        _compact_number(focus.width),
        _compact_number(focus.height),
        1 if focus.fit is Fit.COVER else 0,
        focus.blurhash,
    ]
    text = json.dumps(payload, separators=(",", ":"), ensure_ascii=True)
    token = base64.urlsafe_b64encode(text.encode("ascii")).decode("ascii")
    return token.rstrip("=")


def _parse_payload(data: str) -> list:
    if not isinstance(data, str):
        raise MalformedInputError(
            f"Encoded focus must be a string, got {type(data).__name__}"
        )

    token = data.strip()
    if not token:
        raise MalformedInputError("Encoded focus is empty")

    padded = token + "=" * (-len(token) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        payload = json.loads(raw.decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise MalformedInputError(f"Cannot parse encoded focus {data!r}: {e}") from e

    if not isinstance(payload, list):
        raise MalformedInputError(
            f"Encoded focus must hold a tuple, got {type(payload).__name__}"
        )
    return payload


def _dimension(value) -> Union[int, float]:
    value = finite_or_zero(value)
    return _compact_number(value) if value > 0 else 0


def decode(data: str) -> FocusDescriptor:
    """Decode a token produced by :func:`encode`.

    Missing or falsy fields inside a well-formed tuple fall back to their
    defaults. A token that does not parse into a tuple at all raises
    MalformedInputError, and any version other than 1 raises
    UnsupportedVersionError before the other fields are looked at.
    """
    payload = _parse_payload(data)
    fields = payload + [None] * (7 - len(payload))
    version, x, y, width, height, fit, blurhash = fields[:7]

    if not _is_supported_version(version):
        raise UnsupportedVersionError(version)

    return FocusDescriptor(
        x=finite_or_zero(x) / 100,
        y=finite_or_zero(y) / 100,
        width=_dimension(width),
        height=_dimension(height),
        fit=Fit.CONTAIN if fit == 0 and not isinstance(fit, bool) else Fit.COVER,
        blurhash=blurhash if isinstance(blurhash, str) and blurhash else None,
    )


def decode_or_default(data) -> FocusDescriptor:
    """Decode a token, treating any codec failure as "no focus data"."""
    if data is None:
        return stamp()
    try:
        return decode(data)
    except (MalformedInputError, UnsupportedVersionError) as e:
        logger.warning(f"Ignoring unusable focus data: {e}")
        return stamp()
