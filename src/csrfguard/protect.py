"""Per-request CSRF flow: provision the secret, verify, issue a fresh token."""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from starlette.requests import Request
from starlette.responses import Response

from .codec import decode, encode
from .config import CookieConfig, CookieTransport, CSRFConfig, TokenTransport, get_config
from .errors import MalformedEncodingError, VerificationFailed
from .policy import RequestPolicy, TokenExtractor
from .random_source import RandomSource
from .tokens import TokenEngine

logger = logging.getLogger(__name__)


def _set_cookie(response: Response, cookie: CookieConfig, value: str) -> None:
    response.set_cookie(
        cookie.name,
        value,
        max_age=cookie.max_age,
        path=cookie.path,
        domain=cookie.domain,
        secure=cookie.secure,
        httponly=cookie.httponly,
        samesite=cookie.samesite,
    )


@dataclass
class CSRFResult:
    """Outcome of :meth:`CSRFProtect.protect` for one request.

    ``error`` is None when the request may proceed. ``verified`` is None when
    verification did not apply. ``secret_cookie`` is set only when a new
    secret was minted and must be stored; ``token`` is always present.
    """

    error: Optional[VerificationFailed]
    verified: Optional[bool]
    token: str
    secret_cookie: Optional[str]
    cookie: CookieConfig
    transport: TokenTransport

    @property
    def ok(self) -> bool:
        return self.error is None

    def apply(self, response: Response) -> Response:
        """Set the secret cookie (if new) and the response token on ``response``."""
        if self.secret_cookie is not None:
            _set_cookie(response, self.cookie, self.secret_cookie)

        if isinstance(self.transport, CookieTransport):
            _set_cookie(response, self.transport.cookie, self.token)
        else:
            response.headers[self.transport.name] = self.token
        return response

    def header_items(self) -> List[Tuple[bytes, bytes]]:
        """Raw ASGI header pairs equivalent to :meth:`apply`."""
        carrier = self.apply(Response())
        wanted = {b"set-cookie"}
        if not isinstance(self.transport, CookieTransport):
            wanted.add(self.transport.name.lower().encode("latin-1"))
        return [(k, v) for k, v in carrier.raw_headers if k in wanted]


class CSRFProtect:
    """Framework-facing CSRF engine.

    Holds only configuration, so one instance serves all requests.

    Args:
        config: Optional CSRFConfig. If None, loads from environment.
        random_source: Optional random source override (tests).
        policy: Optional RequestPolicy override.
        extractor: Optional TokenExtractor override.
    """

    def __init__(
        self,
        config: Optional[CSRFConfig] = None,
        random_source: Optional[RandomSource] = None,
        policy: Optional[RequestPolicy] = None,
        extractor: Optional[TokenExtractor] = None,
    ) -> None:
        self.config = config or get_config()
        self.engine = TokenEngine(
            secret_byte_length=self.config.secret_byte_length,
            salt_byte_length=self.config.salt_byte_length,
            algorithm=self.config.algorithm,
            random_source=random_source,
        )
        self.policy = policy or RequestPolicy.from_config(self.config)
        self.extractor = extractor or TokenExtractor.from_config(self.config)
        self.transport = self.config.transport

    def load_secret(self, secret_str: Optional[str]) -> Optional[bytes]:
        """Decode the secret cookie value; None means "no usable secret"."""
        if secret_str is None:
            return None
        try:
            secret = decode(secret_str)
        except MalformedEncodingError as e:
            logger.info("Discarding malformed CSRF secret cookie: %s", e)
            return None
        if not self.engine.is_valid_secret(secret):
            logger.info(
                "Discarding CSRF secret cookie with wrong length: %d bytes", len(secret)
            )
            return None
        return secret

    def check_token(self, token_str: str, secret: bytes) -> Optional[VerificationFailed]:
        """Verify a submitted token string against ``secret``.

        Returns:
            None if the token is valid, otherwise a VerificationFailed value
        """
        if not token_str:
            return VerificationFailed(VerificationFailed.MISSING, "CSRF token missing")
        try:
            token = decode(token_str)
        except MalformedEncodingError:
            return VerificationFailed(VerificationFailed.MALFORMED, "CSRF token malformed")
        if len(token) != self.engine.token_length:
            return VerificationFailed(VerificationFailed.MALFORMED, "CSRF token malformed")
        if not self.engine.verify_token(token, secret):
            return VerificationFailed(VerificationFailed.MISMATCH, "CSRF token invalid")
        return None

    def issue_token(self, secret: bytes) -> str:
        return encode(self.engine.create_token(secret))

    async def protect(self, request: Request) -> CSRFResult:
        """Run the CSRF flow for one request.

        The secret is provisioned and a fresh token issued whether or not
        verification ran or passed.
        """
        secret = self.load_secret(request.cookies.get(self.config.cookie.name))
        secret_cookie = None
        if secret is None:
            secret = self.engine.create_secret()
            secret_cookie = encode(secret)
            logger.debug("Minted new CSRF secret for %s", request.url.path)

        error = None
        verified = None
        if self.policy.should_verify(request.method, request.url.path):
            token_str = await self.extractor.get_token_string(request)
            error = self.check_token(token_str, secret)
            verified = error is None

            if error is not None and self.config.rotate_secret_on_failure:
                secret = self.engine.create_secret()
                secret_cookie = encode(secret)
                logger.debug("Rotated CSRF secret after failed verification")

        return CSRFResult(
            error=error,
            verified=verified,
            token=self.issue_token(secret),
            secret_cookie=secret_cookie,
            cookie=self.config.cookie,
            transport=self.transport,
        )
