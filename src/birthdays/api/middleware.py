"""Error handling — every failed request becomes an HTML error page.

Status code mapping:
- ``404`` from routing → HTML "Page not found"
- ``BirthdaysError`` escaping a route → 500 Internal Server Error
- Any other ``Exception`` → 500 Internal Server Error

Routes handle ``TokenExchangeError`` / ``UpstreamFetchError`` themselves;
the handlers here stop anything they miss from reaching the user as a
bare traceback or taking the process down.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from birthdays.api.render import render_error
from birthdays.errors import BirthdaysError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Something went wrong on our side. Please try again."


def internal_error_response(message: str = INTERNAL_ERROR_MESSAGE) -> HTMLResponse:
    return HTMLResponse(render_error("Something went wrong", message), status_code=500)


async def _handle_http_exception(
    request: Request,
    exc: StarletteHTTPException,
) -> HTMLResponse:
    """Render routing errors (404, 405, ...) as HTML pages."""
    if exc.status_code == 404:
        logger.info("Not found: %s", request.url.path)
        return HTMLResponse(
            render_error("Page not found", f"There is nothing at {request.url.path}."),
            status_code=404,
        )
    return HTMLResponse(
        render_error("Request failed", str(exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


async def _handle_birthdays_error(
    request: Request,
    exc: BirthdaysError,
) -> HTMLResponse:
    """Return 500 for domain errors a route did not handle."""
    logger.error(
        "Unhandled %s on %s %s: %s",
        type(exc).__name__,
        request.method,
        request.url.path,
        exc,
    )
    return internal_error_response()


class CatchAllErrorMiddleware(BaseHTTPMiddleware):
    """ASGI middleware that catches any unhandled exception and returns a 500.

    This sits above the Starlette exception handler layer, ensuring that
    even exceptions not caught by ``add_exception_handler`` are converted
    to the error page rather than bubbling up as raw 500s.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.error(
                "Unhandled exception on %s %s",
                request.method,
                request.url.path,
                exc_info=True,
            )
            return internal_error_response()


def register_error_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI application.

    Call this from ``create_app()`` after constructing the ``FastAPI`` instance.
    """
    app.add_exception_handler(StarletteHTTPException, _handle_http_exception)  # type: ignore[arg-type]
    app.add_exception_handler(BirthdaysError, _handle_birthdays_error)  # type: ignore[arg-type]
    app.add_middleware(CatchAllErrorMiddleware)
