"""HULLWORKS MES — {data, error, meta} envelope builders."""
from typing import Any

from hullworks.schemas.common import ErrorBody

ERROR_CODES: dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    429: "RATE_LIMITED",
}


def error_code_for(status_code: int) -> str:
    """Machine-readable error code for an HTTP status."""
    if status_code >= 500:
        return "INTERNAL_ERROR"
    return ERROR_CODES.get(status_code, "ERROR")


def success_response(data: Any, meta: dict | None = None) -> dict:
    """Envelope for endpoints that return plain dicts instead of ApiResponse models."""
    return {"data": data, "error": None, "meta": meta}


def error_response(
    code: str,
    message: str,
    field_errors: list[dict] | None = None,
    meta: dict | None = None,
) -> dict:
    return {
        "data": None,
        "error": ErrorBody(code=code, message=message, field_errors=field_errors or []).model_dump(),
        "meta": meta,
    }
