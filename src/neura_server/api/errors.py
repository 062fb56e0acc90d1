"""Map ledger and store exceptions to HTTP responses.

Every error body has the shape ``{"error": <message>, "code": <key>}``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from neura_server.ledger.errors import (
    AlreadyCompletedError,
    InsufficientBalanceError,
    InvalidInputError,
    LedgerError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: dict[type[LedgerError], int] = {
    NotFoundError: 404,
    UnauthorizedError: 403,
    InvalidInputError: 400,
    InsufficientBalanceError: 400,
    AlreadyCompletedError: 409,
}


def status_for(exc: LedgerError) -> int:
    for error_type, status in STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return status
    return 400


def error_body(message: str, code: str) -> dict[str, str]:
    return {"error": message, "code": code}


async def _ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=error_body(str(exc), exc.code))


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=503,
        content=error_body("Storage temporarily unavailable", "storage_unavailable"),
    )


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    missing = [
        ".".join(str(part) for part in err["loc"] if part != "body") or "body"
        for err in exc.errors()
        if err.get("type") == "missing"
    ]
    if missing:
        message = f"Missing required field(s): {', '.join(missing)}"
    else:
        message = "Invalid request body"
    return JSONResponse(status_code=400, content=error_body(message, InvalidInputError.code))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LedgerError, _ledger_error_handler)
    app.add_exception_handler(StoreError, _store_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
