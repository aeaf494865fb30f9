"""Secret and token engine.

A token is ``salt || HMAC(secret, salt)``. Nothing about issued tokens is
stored server side; a token is valid iff its digest matches the one
recomputed from the session secret.
"""

import hashlib
import hmac
import logging
from typing import Optional

from .errors import ConfigError
from .random_source import RandomSource, SystemRandomSource, generate, system_source

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "sha256"
DEFAULT_SECRET_BYTE_LENGTH = 18
DEFAULT_SALT_BYTE_LENGTH = 8
MAX_BYTE_LENGTH = 255


def digest_size(algorithm: str) -> int:
    """Return the digest size in bytes for a hashlib algorithm name.

    Raises:
        ConfigError: If the algorithm is unknown or has a variable-length digest.
    """
    try:
        size = hashlib.new(algorithm).digest_size
    except (ValueError, TypeError) as e:
        raise ConfigError(f"Unsupported hash algorithm: {algorithm}") from e
    if not size:
        raise ConfigError(f"Hash algorithm has no fixed digest size: {algorithm}")
    return size


def constant_time_equals(a: bytes, b: bytes) -> bool:
    """Compare two byte strings in time independent of their contents."""
    return hmac.compare_digest(a, b)


def bind_token(secret: bytes, salt: bytes, algorithm: str = DEFAULT_ALGORITHM) -> bytes:
    """Return ``salt || HMAC(secret, salt)``. Pure and deterministic."""
    digest = hmac.new(secret, salt, algorithm).digest()
    return bytes(salt) + digest


def create_token(
    secret: bytes,
    salt_length: int,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
    source: Optional[RandomSource] = None,
) -> bytes:
    """Create a token bound to ``secret`` with a fresh random salt."""
    salt = generate(salt_length, source)
    return bind_token(secret, salt, algorithm)


def verify_token(
    token: bytes,
    secret: bytes,
    salt_length: int,
    *,
    algorithm: str = DEFAULT_ALGORITHM,
) -> bool:
    """Check that ``token`` was created from ``secret``.

    Never raises for bad input; a short or non-bytes token is simply invalid.
    """
    if not isinstance(token, (bytes, bytearray)) or not isinstance(secret, (bytes, bytearray)):
        return False
    if len(token) < salt_length + digest_size(algorithm):
        return False

    salt = bytes(token[:salt_length])
    provided = bytes(token[salt_length:])
    expected = hmac.new(bytes(secret), salt, algorithm).digest()
    return constant_time_equals(provided, expected)


class TokenEngine:
    """Secret/token operations with lengths and algorithm fixed at construction.

    Holds no mutable state and may be shared across concurrent requests.
    """

    def __init__(
        self,
        secret_byte_length: int = DEFAULT_SECRET_BYTE_LENGTH,
        salt_byte_length: int = DEFAULT_SALT_BYTE_LENGTH,
        algorithm: str = DEFAULT_ALGORITHM,
        random_source: Optional[RandomSource] = None,
    ) -> None:
        for name, value in (
            ("secret_byte_length", secret_byte_length),
            ("salt_byte_length", salt_byte_length),
        ):
            if not 1 <= value <= MAX_BYTE_LENGTH:
                raise ConfigError(f"{name} must be between 1 and {MAX_BYTE_LENGTH}, got {value}")

        self.secret_byte_length = secret_byte_length
        self.salt_byte_length = salt_byte_length
        self.algorithm = algorithm.lower()
        self.digest_size = digest_size(self.algorithm)
        self.random_source = random_source or system_source()

        # Fail at startup, not on the first request
        if isinstance(self.random_source, SystemRandomSource):
            self.random_source.check()

    @property
    def token_length(self) -> int:
        return self.salt_byte_length + self.digest_size

    def create_secret(self) -> bytes:
        return generate(self.secret_byte_length, self.random_source)

    def is_valid_secret(self, secret: bytes) -> bool:
        return len(secret) == self.secret_byte_length

    def create_token(self, secret: bytes) -> bytes:
        return create_token(
            secret,
            self.salt_byte_length,
            algorithm=self.algorithm,
            source=self.random_source,
        )

    def verify_token(self, token: bytes, secret: bytes) -> bool:
        return verify_token(token, secret, self.salt_byte_length, algorithm=self.algorithm)

    def __repr__(self) -> str:
        return (
            f"TokenEngine(secret_byte_length={self.secret_byte_length}, "
            f"salt_byte_length={self.salt_byte_length}, algorithm={self.algorithm!r})"
        )
