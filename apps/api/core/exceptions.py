"""
API error types and the handler that renders them.

Every error leaves the API in one envelope:
    {"error": {"code": "...", "message": "..."}}
"""
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)


def error_response(status_code: int, code: str, message: str, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
        headers=headers,
    )


class APIException(HTTPException):
    """HTTPException carrying a machine-readable error code."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code or "ERROR"


class NotFoundError(APIException):

    def __init__(self, resource: str, identifier: str):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found: {identifier}", "NOT_FOUND")


class ValidationError(APIException):
    """Input parsed but could not be interpreted. Code names the field when given."""

    def __init__(self, detail: str, field: Optional[str] = None):
        code = f"VALIDATION_ERROR_{field.upper()}" if field else "VALIDATION_ERROR"
        super().__init__(status.HTTP_422_UNPROCESSABLE_ENTITY, detail, code)


class ConflictError(APIException):
    """Request is valid but the current state does not allow it (e.g. badge not certifiable)."""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(status.HTTP_409_CONFLICT, detail, error_code)


class ExpansionTimeoutError(APIException):
    """Daily plan expansion ran past its deadline."""

    def __init__(self, detail: str, completed_days: int):
        super().__init__(
            status.HTTP_504_GATEWAY_TIMEOUT,
            detail,
            "PLAN_EXPANSION_TIMEOUT",
            headers={"X-Completed-Days": str(completed_days)},
        )


async def api_exception_handler(request: Request, exc: APIException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: [{exc.error_code}] {exc.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: [{exc.error_code}] {exc.detail}")
    return error_response(exc.status_code, exc.error_code, exc.detail, exc.headers)
