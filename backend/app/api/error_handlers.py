"""Error Handlers — map exceptions to the JSON error envelope.

Invariants:
    - BookPorterError → its own http_status and to_response() body
    - Retryable errors (gateway, database) carry a Retry-After header
    - RequestValidationError → 400 VALIDATION_ERROR with per-field details
    - Anything else → 500 INTERNAL_ERROR, no exception text in the body

Design Decisions:
    - Kept out of main.py so the app module only wires things together
    - 4xx logged at warning (caller's problem), 5xx at error (ours)
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.errors import BookPorterError, ErrorCategory, ErrorSeverity

logger = logging.getLogger(__name__)

DEFAULT_RETRY_AFTER_SECONDS = 5


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookPorterError, handle_book_porter_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


async def handle_book_porter_error(request: Request, exc: BookPorterError):
    logger.log(
        logging.ERROR if exc.http_status >= 500 else logging.WARNING,
        f"{exc.code}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "order_id": exc.context.order_id,
            "book_id": exc.context.book_id,
            "provider_txn_id": exc.context.provider_txn_id,
        },
    )
    headers = {}
    if exc.retryable:
        headers["Retry-After"] = str(_retry_after_seconds(exc))
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


def _retry_after_seconds(exc: BookPorterError) -> int:
    if exc.context.retry_after_ms:
        return max(1, exc.context.retry_after_ms // 1000)
    return DEFAULT_RETRY_AFTER_SECONDS


async def handle_validation_error(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Rejected request body: {[d['field'] for d in details]}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "category": ErrorCategory.VALIDATION.value,
                "severity": ErrorSeverity.ERROR.value,
                "retryable": False,
                "details": details,
            },
        },
    )


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        exc_info=exc,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "category": ErrorCategory.INTERNAL.value,
                "severity": ErrorSeverity.CRITICAL.value,
                "retryable": False,
            },
        },
    )
