"""Utility helpers for standardized error responses."""
from typing import Any

from fastapi import HTTPException, status


def error_response(code: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return a standardized error payload."""

    payload: dict[str, Any] = {"error": {"code": code, "message": message}}
    if details:
        payload["error"]["details"] = details
    return payload


def not_found(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error_response(code, message))


def forbidden(code: str, message: str) -> HTTPException:
    """Caller is authenticated but is not the party this action requires."""

    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=error_response(code, message))


def conflict(code: str, message: str, details: dict[str, Any] | None = None) -> HTTPException:
    """Requested transition is not valid from the current state."""

    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=error_response(code, message, details),
    )


def unprocessable(code: str, message: str, details: dict[str, Any] | None = None) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=error_response(code, message, details),
    )


__all__ = ["error_response", "not_found", "forbidden", "conflict", "unprocessable"]
