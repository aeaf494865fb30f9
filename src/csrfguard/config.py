"""Configuration management for csrfguard."""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from dotenv import load_dotenv

from .errors import ConfigError
from .tokens import DEFAULT_ALGORITHM, MAX_BYTE_LENGTH, digest_size

# Load environment variables
load_dotenv()

SAMESITE_VALUES = ("strict", "lax", "none")

# Callable that pulls the submitted token out of a request
TokenValueFunction = Callable[[Any], Union[str, Awaitable[str]]]


def _env_bool(name: str, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: Optional[List[str]] = None) -> List[str]:
    """Parse comma-separated list from environment variable."""
    value = os.getenv(name)
    if value is None:
        return list(default or [])
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_int(name: str, default: int) -> int:
    """Parse integer from environment variable."""
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def _env_optional_int(name: str) -> Optional[int]:
    """Parse optional integer; empty or invalid values mean unset."""
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


@dataclass(frozen=True)
class CookieConfig:
    """Attributes of the secret cookie."""

    name: str = "_csrfSecret"
    path: str = "/"
    domain: Optional[str] = None
    secure: bool = True
    httponly: bool = True
    samesite: str = "strict"
    max_age: Optional[int] = None  # None = session cookie

    def __post_init__(self):
        """Validate cookie attributes."""
        if not self.name:
            raise ConfigError("Cookie name must not be empty")
        samesite = self.samesite.lower()
        if samesite not in SAMESITE_VALUES:
            raise ConfigError(f"Unsupported SameSite value: {self.samesite}")
        object.__setattr__(self, "samesite", samesite)
        if self.max_age is not None and self.max_age < 0:
            raise ConfigError("Cookie max_age must be >= 0")


@dataclass(frozen=True)
class TokenConfig:
    """Where tokens are sent to and read from."""

    response_header: str = "X-CSRF-Token"
    field_name: str = "csrf_token"
    value: Optional[TokenValueFunction] = None


@dataclass(frozen=True)
class HeaderTransport:
    """Response token is sent in a header."""

    name: str


@dataclass(frozen=True)
class CookieTransport:
    """Response token is sent in a readable (non-HttpOnly) cookie."""

    name: str
    cookie: CookieConfig


TokenTransport = Union[HeaderTransport, CookieTransport]


@dataclass(frozen=True)
class CSRFConfig:
    """Complete csrfguard configuration."""

    cookie: CookieConfig = field(default_factory=CookieConfig)
    token: TokenConfig = field(default_factory=TokenConfig)

    # Engine settings, fixed for the lifetime of the engine
    secret_byte_length: int = 18
    salt_byte_length: int = 8
    algorithm: str = DEFAULT_ALGORITHM

    # Verification applicability
    ignore_methods: Tuple[str, ...] = ("GET", "HEAD", "OPTIONS")
    exclude_path_prefixes: Tuple[str, ...] = ()

    # Send the response token as a cookie instead of a header
    use_static: bool = False

    # Mint a new secret when verification fails
    rotate_secret_on_failure: bool = False

    # Logging
    log_level: str = "INFO"
    audit_log_path: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize configuration."""
        for name in ("secret_byte_length", "salt_byte_length"):
            value = getattr(self, name)
            if not isinstance(value, int) or not 1 <= value <= MAX_BYTE_LENGTH:
                raise ConfigError(f"{name} must be between 1 and {MAX_BYTE_LENGTH}, got {value!r}")

        algorithm = self.algorithm.strip().lower()
        digest_size(algorithm)
        object.__setattr__(self, "algorithm", algorithm)

        object.__setattr__(
            self, "ignore_methods", tuple(m.strip().upper() for m in self.ignore_methods)
        )
        object.__setattr__(self, "exclude_path_prefixes", tuple(self.exclude_path_prefixes))
        object.__setattr__(self, "log_level", self.log_level.upper())

        if self.use_static and self.token.response_header.lower() == self.cookie.name.lower():
            raise ConfigError("Token cookie name must differ from the secret cookie name")

    @property
    def transport(self) -> TokenTransport:
        """Response token transport selected by ``use_static``."""
        if self.use_static:
            token_cookie = replace(self.cookie, name=self.token.response_header, httponly=False)
            return CookieTransport(name=self.token.response_header, cookie=token_cookie)
        return HeaderTransport(name=self.token.response_header)


def load_config() -> CSRFConfig:
    """Load configuration from environment variables.

    Returns:
        CSRFConfig: Complete csrfguard configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    cookie_config = CookieConfig(
        name=os.getenv("CSRF_COOKIE_NAME", "_csrfSecret").strip(),
        path=os.getenv("CSRF_COOKIE_PATH", "/").strip(),
        domain=os.getenv("CSRF_COOKIE_DOMAIN", "").strip() or None,
        secure=_env_bool("CSRF_COOKIE_SECURE", True),
        httponly=_env_bool("CSRF_COOKIE_HTTPONLY", True),
        samesite=os.getenv("CSRF_COOKIE_SAMESITE", "strict").strip(),
        max_age=_env_optional_int("CSRF_COOKIE_MAX_AGE"),
    )

    token_config = TokenConfig(
        response_header=os.getenv("CSRF_RESPONSE_HEADER", "X-CSRF-Token").strip(),
        field_name=os.getenv("CSRF_FIELD_NAME", "csrf_token").strip(),
    )

    config = CSRFConfig(
        cookie=cookie_config,
        token=token_config,
        secret_byte_length=_env_int("CSRF_SECRET_BYTE_LENGTH", 18),
        salt_byte_length=_env_int("CSRF_SALT_BYTE_LENGTH", 8),
        algorithm=os.getenv("CSRF_HASH_ALGORITHM", DEFAULT_ALGORITHM),
        ignore_methods=tuple(_env_list("CSRF_IGNORE_METHODS", ["GET", "HEAD", "OPTIONS"])),
        exclude_path_prefixes=tuple(_env_list("CSRF_EXCLUDE_PATH_PREFIXES")),
        use_static=_env_bool("CSRF_USE_STATIC", False),
        rotate_secret_on_failure=_env_bool("CSRF_ROTATE_SECRET_ON_FAILURE", False),
        log_level=os.getenv("CSRF_LOG_LEVEL", os.getenv("LOG_LEVEL", "INFO")),
        audit_log_path=os.getenv("CSRF_AUDIT_LOG_PATH", "").strip() or None,
    )

    logging.getLogger(__name__).debug("Loaded CSRF configuration: %s", config)
    return config


# Global config instance (loaded on first use)
_config_instance: Optional[CSRFConfig] = None


def get_config() -> CSRFConfig:
    """Get the global configuration instance.

    Returns:
        CSRFConfig: The csrfguard configuration
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached configuration so the next get_config() reloads it."""
    global _config_instance
    _config_instance = None
