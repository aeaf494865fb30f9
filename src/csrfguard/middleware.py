"""CSRF protection middleware using the double-submit cookie pattern."""

import logging
from typing import Optional

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .config import CSRFConfig
from .logging_config import get_audit_logger, log_csrf_event_to_file
from .protect import CSRFProtect
from .random_source import RandomSource

logger = logging.getLogger(__name__)

# Key under scope["state"] holding the token issued for the current response
STATE_KEY = "csrf_token"


def _client_ip(request: Request) -> Optional[str]:
    """First hop of X-Forwarded-For, then X-Real-IP, then the socket peer."""
    for header in ("x-forwarded-for", "x-real-ip"):
        value = request.headers.get(header, "")
        candidates = [part.strip() for part in value.split(",")]
        for ip in candidates:
            if ip and ip.lower() != "unknown":
                return ip
    return request.client.host if request.client else None


def get_csrf_token(request: Request) -> Optional[str]:
    """Return the token issued for this request's response, for templates/JSON."""
    return getattr(request.state, STATE_KEY, None)


class CSRFMiddleware:
    """Double-submit cookie CSRF protection.

    - Every response gets the secret cookie (when missing or unreadable)
      and a fresh token, in a header or a readable cookie.
    - Methods and paths excluded by the policy skip verification only.
    - Other requests must submit a token bound to the secret cookie;
      failures get a 403 JSON response.
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Optional[CSRFConfig] = None,
        csrf: Optional[CSRFProtect] = None,
        random_source: Optional[RandomSource] = None,
    ) -> None:
        self.app = app
        self.csrf = csrf or CSRFProtect(config, random_source=random_source)
        audit_log_path = self.csrf.config.audit_log_path
        self.audit_logger = get_audit_logger(audit_log_path) if audit_log_path else None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        downstream_receive = receive

        if self.csrf.policy.should_verify(request.method, request.url.path):
            # Token extraction may read the body; buffer it to replay downstream
            body = await request.body()
            body_sent = False

            async def replay_receive() -> Message:
                nonlocal body_sent
                if not body_sent:
                    body_sent = True
                    return {"type": "http.request", "body": body, "more_body": False}
                return await receive()

            downstream_receive = replay_receive

        try:
            result = await self.csrf.protect(request)
        finally:
            # Release temp files from a parsed multipart form
            await request.close()
        csrf_headers = result.header_items()

        async def send_with_csrf(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.extend(csrf_headers)
                message = {**message, "headers": headers}
            await send(message)

        if result.error is not None:
            path = request.url.path
            ip_address = _client_ip(request)
            logger.warning(
                "CSRF validation failed. reason=%s path=%s method=%s ip=%s",
                result.error.reason,
                path,
                request.method,
                ip_address,
            )
            if self.audit_logger is not None:
                log_csrf_event_to_file(
                    self.audit_logger,
                    event_type="csrf_rejected",
                    method=request.method,
                    path=path,
                    ip_address=ip_address,
                    user_agent=request.headers.get("user-agent"),
                    reason=result.error.reason,
                )
            response = JSONResponse(
                {
                    "detail": result.error.detail,
                    "error": "csrf_validation_failed",
                    "reason": result.error.reason,
                },
                status_code=403,
            )
            await response(scope, downstream_receive, send_with_csrf)
            return

        scope.setdefault("state", {})[STATE_KEY] = result.token
        await self.app(scope, downstream_receive, send_with_csrf)
