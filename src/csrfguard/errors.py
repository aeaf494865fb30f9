"""Exception types raised by csrfguard."""

from typing import Optional


class CSRFError(Exception):
    """Base class for all csrfguard errors."""


class ConfigError(CSRFError, ValueError):
    """Invalid csrfguard configuration."""


class MalformedEncodingError(CSRFError, ValueError):
    """Text is not a valid encoding produced by :func:`csrfguard.codec.encode`."""


class SecureRandomUnavailableError(CSRFError, RuntimeError):
    """The operating system CSPRNG cannot be used.

    This is fatal. There is no fallback to a weaker source.
    """


class VerificationFailed(CSRFError):
    """A state-changing request did not present a valid token.

    Returned by the engine as a value, not raised.
    """

    MISSING = "missing"
    MALFORMED = "malformed"
    MISMATCH = "mismatch"

    def __init__(self, reason: str, detail: Optional[str] = None) -> None:
        self.reason = reason
        self.detail = detail or "CSRF token invalid"
        super().__init__(f"csrf validation error ({reason})")
