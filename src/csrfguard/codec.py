"""Text codec for secrets and tokens.

URL-safe base64 with the padding stripped. The output never needs escaping
inside a cookie value or a header value.
"""

import base64
import binascii
import re

from .errors import MalformedEncodingError

_ALPHABET_RE = re.compile(r"[A-Za-z0-9_-]*")


def encode(data: bytes) -> str:
    """Encode raw bytes as unpadded URL-safe base64."""
    return base64.urlsafe_b64encode(bytes(data)).decode("ascii").rstrip("=")


def decode(text: str) -> bytes:
    """Decode text produced by :func:`encode`.

    Raises:
        MalformedEncodingError: If ``text`` has characters outside the
            alphabet, a length no byte count encodes to, or non-zero
            trailing bits.
    """
    if not isinstance(text, str):
        raise MalformedEncodingError(f"expected str, got {type(text).__name__}")
    if not _ALPHABET_RE.fullmatch(text):
        raise MalformedEncodingError("invalid character in encoded value")
    if len(text) % 4 == 1:
        raise MalformedEncodingError(f"invalid encoded length: {len(text)}")

    padded = text + "=" * (-len(text) % 4)
    try:
        data = base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as e:
        raise MalformedEncodingError(str(e)) from e

    # Reject inputs that only differ from a canonical encoding in unused bits
    if encode(data) != text:
        raise MalformedEncodingError("non-canonical encoded value")
    return data
