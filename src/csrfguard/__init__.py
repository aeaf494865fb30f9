"""csrfguard - stateless double-submit cookie CSRF protection."""

from .codec import decode, encode
from .config import (
    CookieConfig,
    CookieTransport,
    CSRFConfig,
    HeaderTransport,
    TokenConfig,
    get_config,
    load_config,
)
from .errors import (
    ConfigError,
    CSRFError,
    MalformedEncodingError,
    SecureRandomUnavailableError,
    VerificationFailed,
)
from .middleware import CSRFMiddleware, get_csrf_token
from .policy import RequestPolicy, TokenExtractor
from .protect import CSRFProtect, CSRFResult
from .random_source import RandomSource, SystemRandomSource, generate
from .tokens import TokenEngine, bind_token, constant_time_equals, create_token, verify_token

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "CookieConfig",
    "CookieTransport",
    "CSRFConfig",
    "CSRFError",
    "CSRFMiddleware",
    "CSRFProtect",
    "CSRFResult",
    "HeaderTransport",
    "MalformedEncodingError",
    "RandomSource",
    "RequestPolicy",
    "SecureRandomUnavailableError",
    "SystemRandomSource",
    "TokenConfig",
    "TokenEngine",
    "TokenExtractor",
    "VerificationFailed",
    "bind_token",
    "constant_time_equals",
    "create_token",
    "decode",
    "encode",
    "generate",
    "get_config",
    "get_csrf_token",
    "load_config",
    "verify_token",
]
