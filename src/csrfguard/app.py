"""csrfguard demo application.

Run with ``uvicorn csrfguard.app:app``.
"""

import logging
from typing import Optional

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .config import CSRFConfig, get_config
from .middleware import CSRFMiddleware, get_csrf_token
from .random_source import RandomSource

logger = logging.getLogger("csrfguard")


async def health(_: Request) -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok"})


async def index(request: Request) -> JSONResponse:
    """Return the token issued for this response."""
    return JSONResponse({"csrf_token": get_csrf_token(request)})


async def submit(request: Request) -> JSONResponse:
    """State-changing endpoint; only reached with a valid token."""
    return JSONResponse({"status": "accepted", "csrf_token": get_csrf_token(request)})


def create_app(
    config: Optional[CSRFConfig] = None, random_source: Optional[RandomSource] = None
) -> Starlette:
    """Create the demo application.

    Args:
        config: Optional CSRFConfig instance. If None, loads from environment.
        random_source: Optional random source override (tests).

    Returns:
        Configured Starlette app
    """
    if config is None:
        config = get_config()

    logging.basicConfig(level=config.log_level)

    app = Starlette(
        debug=False,
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/", index, methods=["GET"]),
            Route("/submit", submit, methods=["POST", "PUT", "PATCH", "DELETE"]),
        ],
    )
    app.add_middleware(CSRFMiddleware, config=config, random_source=random_source)

    logger.info(
        "CSRF protection enabled (transport=%s, ignore_methods=%s)",
        type(config.transport).__name__,
        ",".join(config.ignore_methods),
    )
    return app


# Create application instance
app = create_app()

# Export app for uvicorn
__all__ = ["app", "create_app"]
