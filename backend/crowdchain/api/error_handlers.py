"""Error Handlers — every failure leaves the API as a CrowdChainError envelope.

Invariants:
    - CrowdChainError → its own http_status and to_response() body
    - RequestValidationError → MalformedRequestError (400 VALIDATION_ERROR, per-field issues)
    - Any other exception → InternalError (500 INTERNAL_ERROR); the cause is logged, never returned
    - Log level follows status: WARNING below 500, ERROR from 500 up

Design Decisions:
    - Framework and unexpected errors are converted into the domain hierarchy first, so
      one responder owns logging and serialization (ADR: uniform error shape)
    - Kept out of main.py (ADR: ExMA import fan-out < 10)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from crowdchain.core.errors import CrowdChainError, InternalError, MalformedRequestError

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(CrowdChainError, _domain_error)
    app.add_exception_handler(RequestValidationError, _malformed_request)
    app.add_exception_handler(Exception, _unexpected_error)


def field_issues(exc: RequestValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors to {field, message, type}; "body.amount" style paths."""
    return [
        {
            "field": ".".join(str(loc) for loc in e["loc"]),
            "message": e["msg"],
            "type": e["type"],
        }
        for e in exc.errors()
    ]


def _respond(
    request: Request, error: CrowdChainError, exc_info: BaseException | bool = False,
) -> JSONResponse:
    level = logging.ERROR if error.http_status >= 500 else logging.WARNING
    logger.log(
        level, "%s on %s: %s", error.code, request.url.path, error.message,
        exc_info=exc_info,
        extra={
            "error_code": error.code, "path": request.url.path,
            "user_id": error.context.user_id,
        },
    )
    return JSONResponse(status_code=error.http_status, content=error.to_response())


async def _domain_error(request: Request, exc: CrowdChainError) -> JSONResponse:
    return _respond(request, exc)


async def _malformed_request(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _respond(request, MalformedRequestError(field_issues(exc)))


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    return _respond(request, InternalError(), exc_info=exc)
