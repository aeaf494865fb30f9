"""Cryptographically secure random bytes.

The random source is an injected capability. Production code uses
:class:`SystemRandomSource`; tests pass any object with a ``fill`` method.
"""

import logging
import os
from typing import Optional, Protocol

from .errors import SecureRandomUnavailableError

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Anything that can fill a buffer with random bytes."""

    def fill(self, buffer: bytearray) -> None:
        ...


class SystemRandomSource:
    """Operating system CSPRNG (``os.urandom``).

    Stateless, so a single instance can be shared by concurrent requests.
    """

    def fill(self, buffer: bytearray) -> None:
        try:
            buffer[:] = os.urandom(len(buffer))
        except (NotImplementedError, OSError) as e:
            logger.critical("Secure random source unavailable: %s", e)
            raise SecureRandomUnavailableError(str(e)) from e

    def check(self) -> None:
        """Probe the source once; raises SecureRandomUnavailableError if unusable."""
        self.fill(bytearray(1))


_system_source = SystemRandomSource()


def system_source() -> SystemRandomSource:
    """Return the process-wide system random source."""
    return _system_source


def generate(n: int, source: Optional[RandomSource] = None) -> bytes:
    """Return ``n`` fresh random bytes from ``source`` (default: the OS CSPRNG).

    Raises:
        ValueError: If ``n`` is less than 1.
        SecureRandomUnavailableError: If the system source cannot be used.
    """
    if n < 1:
        raise ValueError(f"random byte length must be >= 1, got {n}")
    buffer = bytearray(n)
    (source or _system_source).fill(buffer)
    if len(buffer) != n:
        raise SecureRandomUnavailableError(
            f"random source returned {len(buffer)} bytes, expected {n}"
        )
    return bytes(buffer)
