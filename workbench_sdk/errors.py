"""Structured exceptions for the Workbench SDK."""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence


class WorkbenchError(Exception):
    """Base exception for everything raised by the Workbench SDK."""


class ValidationError(WorkbenchError, ValueError):
    """Invalid caller input, raised before any request is made."""

    def __init__(
        self,
        field: str,
        value: Any,
        allowed: Optional[Sequence[Any]] = None,
        message: Optional[str] = None,
    ) -> None:
        self.field = field
        self.value = value
        self.allowed = tuple(allowed) if allowed is not None else None
        if message is None:
            message = f"Invalid {field}: {value!r}"
            if self.allowed:
                message += f" (expected one of: {', '.join(map(repr, self.allowed))})"
        self.message = message
        super().__init__(message)


class ApiError(WorkbenchError):
    """A request failed: bad status, transport error or unreadable body."""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.message = message
        self.detail = detail
        self.request_id = request_id
        if status_code:
            super().__init__(f"[{status_code}] {message}")
        else:
            super().__init__(message)


class AuthError(ApiError):
    """401 Unauthorized, a rejected login, or no session token held."""
    pass


class ForbiddenError(ApiError):
    """403 Forbidden: insufficient permissions."""
    pass


class NotFoundError(ApiError):
    """404 Not Found, or a record missing from a fetched collection."""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(status_code, message, detail, request_id)
        self.context = dict(context or {})


class ServerError(ApiError):
    """500+: server-side error."""
    pass


class RemoteError(ApiError):
    """A successful response whose body carries an embedded error code."""

    def __init__(
        self,
        status_code: Optional[int],
        message: str,
        detail: Any = None,
        request_id: Optional[str] = None,
        code: Any = None,
    ) -> None:
        super().__init__(status_code, message, detail, request_id)
        self.code = code
