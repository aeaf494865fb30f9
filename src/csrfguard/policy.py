"""Request policy: when to verify and where the submitted token comes from."""

import inspect
import json
import logging
from typing import Iterable, Optional, Sequence
from urllib.parse import unquote

from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from .config import CookieTransport, CSRFConfig, TokenValueFunction

logger = logging.getLogger(__name__)

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")
JSON_CONTENT_TYPES = ("application/json", "application/ld+json")


class RequestPolicy:
    """Decides whether a request needs token verification.

    Args:
        ignore_methods: HTTP methods that never need verification
        exclude_path_prefixes: Path prefixes that never need verification,
            checked in order
    """

    def __init__(self, ignore_methods: Iterable[str], exclude_path_prefixes: Sequence[str] = ()):
        self.ignore_methods = frozenset(m.upper() for m in ignore_methods)
        self.exclude_path_prefixes = tuple(exclude_path_prefixes)

    @classmethod
    def from_config(cls, config: CSRFConfig) -> "RequestPolicy":
        return cls(config.ignore_methods, config.exclude_path_prefixes)

    def is_excluded_path(self, path: str) -> bool:
        for prefix in self.exclude_path_prefixes:
            if path.startswith(prefix):
                return True
        return False

    def should_verify(self, method: str, path: str) -> bool:
        if method.upper() in self.ignore_methods:
            return False
        return not self.is_excluded_path(path)


def _media_type(request: Request) -> str:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower()


class TokenExtractor:
    """Reads the submitted token string from a request.

    Lookup order:
    1) custom ``value`` callable, if configured
    2) request header
    3) form field (urlencoded / multipart bodies)
    4) JSON body field
    5) query parameter

    The token cookie itself is never a source: browsers attach it to
    cross-site requests too. With cookie transport the client copies the
    cookie value into one of the sources above, so the result is
    percent-decoded.

    Returns an empty string when nothing is found.
    """

    def __init__(
        self,
        header_name: str,
        field_name: str,
        percent_decode: bool = False,
        value: Optional[TokenValueFunction] = None,
    ):
        self.header_name = header_name
        self.field_name = field_name
        self.percent_decode = percent_decode
        self.value = value

    @classmethod
    def from_config(cls, config: CSRFConfig) -> "TokenExtractor":
        return cls(
            header_name=config.token.response_header,
            field_name=config.token.field_name,
            percent_decode=isinstance(config.transport, CookieTransport),
            value=config.token.value,
        )

    async def get_token_string(self, request: Request) -> str:
        token = await self._lookup(request)
        if token and self.percent_decode:
            token = unquote(token)
        return token

    async def _lookup(self, request: Request) -> str:
        if self.value is not None:
            result = self.value(request)
            if inspect.isawaitable(result):
                result = await result
            return result or ""

        header_value = request.headers.get(self.header_name)
        if header_value:
            return header_value

        if not self.field_name:
            return ""

        media_type = _media_type(request)
        if media_type in FORM_CONTENT_TYPES:
            try:
                form = await request.form()
            except (HTTPException, MultiPartException) as e:
                logger.debug("Could not parse form body for CSRF token: %s", e)
            else:
                form_value = form.get(self.field_name)
                if isinstance(form_value, str) and form_value:
                    return form_value
        elif media_type in JSON_CONTENT_TYPES:
            body = await request.body()
            try:
                payload = json.loads(body.decode("utf-8") or "{}")
            except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
                logger.debug("Could not parse JSON body for CSRF token: %s", e)
                payload = {}
            if isinstance(payload, dict):
                json_value = payload.get(self.field_name)
                if isinstance(json_value, str) and json_value:
                    return json_value

        return request.query_params.get(self.field_name, "")
