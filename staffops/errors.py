from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class ValidationError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=422, code="VALIDATION_ERROR", message=message)


class NotFoundError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=404, code="NOT_FOUND", message=message)


class ForbiddenError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=403, code="FORBIDDEN", message=message)


class InvalidStateError(ApiError):
    def __init__(self, message: str):
        super().__init__(status_code=409, code="INVALID_STATE", message=message)


class ConflictError(ApiError):
    """A concurrent mutation won the race for the same row."""

    def __init__(self, message: str):
        super().__init__(status_code=409, code="CONFLICT", message=message)


def get_request_id(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        return str(request_id)
    return "unknown"


def error_response(request: Request, *, status_code: int, code: str, message: str) -> JSONResponse:
    payload = {
        "error": {
            "code": code,
            "message": message,
            "request_id": get_request_id(request),
        }
    }
    return JSONResponse(status_code=status_code, content=payload)
