import pytest

from csrfguard.config import CookieConfig, CSRFConfig


@pytest.fixture
def config() -> CSRFConfig:
    return CSRFConfig(cookie=CookieConfig(secure=False))
