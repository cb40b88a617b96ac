"""Ledger error taxonomy and FastAPI handlers.

Every failure a ledger operation can report maps to exactly one of five
kinds: invalid_argument, already_exists, not_found, insufficient_funds,
expired. None of them is transient, so nothing here retries.
"""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.requests import Request

from subledger.core.logging import get_request_id


class ErrorKind:
    INVALID_ARGUMENT = "invalid_argument"
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    EXPIRED = "expired"
    UNAUTHORIZED = "unauthorized"


class AppError(Exception):
    code = "app_error"
    kind = "internal"
    status_code = 500

    def __init__(self, message: str, *, code: Optional[str] = None, status_code: Optional[int] = None, request_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        if status_code:
            self.status_code = status_code
        self.request_id = request_id


class InvalidArgumentError(AppError, ValueError):
    code = "invalid_argument"
    kind = ErrorKind.INVALID_ARGUMENT
    status_code = 400


class AlreadyExistsError(AppError):
    code = "already_exists"
    kind = ErrorKind.ALREADY_EXISTS
    status_code = 409


class NotFoundError(AppError, LookupError):
    code = "not_found"
    kind = ErrorKind.NOT_FOUND
    status_code = 404


class InsufficientFundsError(AppError):
    code = "insufficient_funds"
    kind = ErrorKind.INSUFFICIENT_FUNDS
    status_code = 402


class ExpiredError(AppError):
    """Raised when a subscription is checked at or after its expiry."""
    code = "subscription_expired"
    kind = ErrorKind.EXPIRED
    status_code = 410


class UnauthorizedError(AppError):
    code = "unauthorized"
    kind = ErrorKind.UNAUTHORIZED
    status_code = 401


def _extract_request_id(request: Request, fallback: Optional[str] = None) -> str:
    return (
        getattr(request.state, "request_id", None)
        or get_request_id()
        or fallback
        or str(uuid4())
    )


def _error_payload(code: str, kind: str, message: str, request_id: str) -> dict:
    return {
        "error": {"code": code, "kind": kind, "message": message, "request_id": request_id},
        "detail": message,
    }


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _extract_request_id(request)
    payload = _error_payload(exc.code, exc.kind, exc.message, rid)
    logger = logging.getLogger("subledger")
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "error_message": exc.message, "status": exc.status_code},
    )
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _extract_request_id(request)
    code = "not_found" if exc.status_code == 404 else "http_error"
    message = exc.detail if exc.detail else "HTTP error"
    payload = _error_payload(code, code, message, rid)
    logger = logging.getLogger("subledger")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    response = JSONResponse(status_code=exc.status_code, content=payload)
    response.headers["x-request-id"] = rid
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _extract_request_id(request)
    logger = logging.getLogger("subledger")
    logger.error("unhandled.exception", exc_info=True, extra={"request_id": rid, "error_code": "internal_error"})
    payload = _error_payload("internal_error", "internal", "Unexpected error", rid)
    response = JSONResponse(status_code=500, content=payload)
    response.headers["x-request-id"] = rid
    return response


def _describe_validation_errors(errors) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request input is an invalid_argument, not a bare 422."""
    rid = _extract_request_id(request)
    message = _describe_validation_errors(exc.errors())
    payload = _error_payload(ErrorKind.INVALID_ARGUMENT, ErrorKind.INVALID_ARGUMENT, message, rid)
    logger = logging.getLogger("subledger")
    logger.warning("request.invalid", extra={"request_id": rid, "error_code": ErrorKind.INVALID_ARGUMENT, "status": 400})
    response = JSONResponse(status_code=400, content=payload)
    response.headers["x-request-id"] = rid
    return response
