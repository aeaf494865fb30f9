"""Tests for configuration loading."""

import pytest

from csrfguard import config as config_module
from csrfguard.config import (
    CookieConfig,
    CookieTransport,
    CSRFConfig,
    HeaderTransport,
    TokenConfig,
    get_config,
    load_config,
    reset_config,
)
from csrfguard.errors import ConfigError

_ENV_VARS = [
    "CSRF_COOKIE_NAME",
    "CSRF_COOKIE_PATH",
    "CSRF_COOKIE_DOMAIN",
    "CSRF_COOKIE_SECURE",
    "CSRF_COOKIE_HTTPONLY",
    "CSRF_COOKIE_SAMESITE",
    "CSRF_COOKIE_MAX_AGE",
    "CSRF_RESPONSE_HEADER",
    "CSRF_FIELD_NAME",
    "CSRF_SECRET_BYTE_LENGTH",
    "CSRF_SALT_BYTE_LENGTH",
    "CSRF_HASH_ALGORITHM",
    "CSRF_IGNORE_METHODS",
    "CSRF_EXCLUDE_PATH_PREFIXES",
    "CSRF_USE_STATIC",
    "CSRF_ROTATE_SECRET_ON_FAILURE",
    "CSRF_LOG_LEVEL",
    "CSRF_AUDIT_LOG_PATH",
    "LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


def test_defaults():
    cfg = load_config()
    assert cfg.cookie.name == "_csrfSecret"
    assert cfg.cookie.path == "/"
    assert cfg.cookie.domain is None
    assert cfg.cookie.secure is True
    assert cfg.cookie.httponly is True
    assert cfg.cookie.samesite == "strict"
    assert cfg.cookie.max_age is None
    assert cfg.token.response_header == "X-CSRF-Token"
    assert cfg.token.field_name == "csrf_token"
    assert cfg.secret_byte_length == 18
    assert cfg.salt_byte_length == 8
    assert cfg.algorithm == "sha256"
    assert cfg.ignore_methods == ("GET", "HEAD", "OPTIONS")
    assert cfg.exclude_path_prefixes == ()
    assert cfg.use_static is False
    assert cfg.rotate_secret_on_failure is False
    assert cfg.audit_log_path is None
    assert cfg.transport == HeaderTransport(name="X-CSRF-Token")


def test_load_from_environment(monkeypatch):
    monkeypatch.setenv("CSRF_COOKIE_NAME", "sid_csrf")
    monkeypatch.setenv("CSRF_COOKIE_DOMAIN", "example.com")
    monkeypatch.setenv("CSRF_COOKIE_SECURE", "false")
    monkeypatch.setenv("CSRF_COOKIE_SAMESITE", "Lax")
    monkeypatch.setenv("CSRF_COOKIE_MAX_AGE", "3600")
    monkeypatch.setenv("CSRF_SECRET_BYTE_LENGTH", "32")
    monkeypatch.setenv("CSRF_SALT_BYTE_LENGTH", "16")
    monkeypatch.setenv("CSRF_HASH_ALGORITHM", "SHA512")
    monkeypatch.setenv("CSRF_IGNORE_METHODS", "get, head")
    monkeypatch.setenv("CSRF_EXCLUDE_PATH_PREFIXES", "/static/, /webhooks/")
    monkeypatch.setenv("CSRF_ROTATE_SECRET_ON_FAILURE", "yes")
    monkeypatch.setenv("CSRF_AUDIT_LOG_PATH", "/tmp/csrf.log")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    cfg = load_config()
    assert cfg.cookie.name == "sid_csrf"
    assert cfg.cookie.domain == "example.com"
    assert cfg.cookie.secure is False
    assert cfg.cookie.samesite == "lax"
    assert cfg.cookie.max_age == 3600
    assert cfg.secret_byte_length == 32
    assert cfg.salt_byte_length == 16
    assert cfg.algorithm == "sha512"
    assert cfg.ignore_methods == ("GET", "HEAD")
    assert cfg.exclude_path_prefixes == ("/static/", "/webhooks/")
    assert cfg.rotate_secret_on_failure is True
    assert cfg.audit_log_path == "/tmp/csrf.log"
    assert cfg.log_level == "DEBUG"


def test_invalid_integers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("CSRF_SECRET_BYTE_LENGTH", "lots")
    monkeypatch.setenv("CSRF_COOKIE_MAX_AGE", "soon")
    cfg = load_config()
    assert cfg.secret_byte_length == 18
    assert cfg.cookie.max_age is None


def test_empty_ignore_methods(monkeypatch):
    monkeypatch.setenv("CSRF_IGNORE_METHODS", "")
    assert load_config().ignore_methods == ()


def test_static_transport(monkeypatch):
    monkeypatch.setenv("CSRF_USE_STATIC", "1")
    cfg = load_config()
    transport = cfg.transport
    assert isinstance(transport, CookieTransport)
    assert transport.name == "X-CSRF-Token"
    assert transport.cookie.name == "X-CSRF-Token"
    assert transport.cookie.httponly is False
    assert transport.cookie.samesite == cfg.cookie.samesite


@pytest.mark.parametrize(
    "kwargs",
    [
        {"secret_byte_length": 0},
        {"salt_byte_length": 0},
        {"salt_byte_length": 256},
        {"algorithm": "md6"},
    ],
)
def test_invalid_config(kwargs):
    with pytest.raises(ConfigError):
        CSRFConfig(**kwargs)


def test_invalid_cookie_config():
    with pytest.raises(ConfigError):
        CookieConfig(samesite="sometimes")
    with pytest.raises(ConfigError):
        CookieConfig(max_age=-1)
    with pytest.raises(ConfigError):
        CookieConfig(name="")


def test_static_cookie_name_must_differ():
    with pytest.raises(ConfigError):
        CSRFConfig(
            cookie=CookieConfig(name="csrf"),
            token=TokenConfig(response_header="csrf"),
            use_static=True,
        )


def test_invalid_environment_raises(monkeypatch):
    monkeypatch.setenv("CSRF_COOKIE_SAMESITE", "sometimes")
    with pytest.raises(ConfigError):
        load_config()


def test_get_config_is_cached(monkeypatch):
    first = get_config()
    monkeypatch.setenv("CSRF_COOKIE_NAME", "changed")
    assert get_config() is first
    reset_config()
    assert get_config().cookie.name == "changed"
    assert config_module._config_instance is not None
