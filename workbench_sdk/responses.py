"""Response handling shared by the sync and async clients."""

from __future__ import annotations

from typing import Any, List, Type, TypeVar

import httpx
import pydantic

from workbench_sdk.errors import (
    ApiError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
    ServerError,
)

M = TypeVar("M", bound=pydantic.BaseModel)


def _error_message(body: Any) -> str:
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            return err.get("message", str(body))
        return body.get("message") or body.get("detail") or str(body)
    return str(body)


def raise_for_status(resp: httpx.Response, endpoint: str) -> None:
    """Raise the ApiError subclass matching a non-2xx status."""
    if resp.status_code < 400:
        return

    request_id = resp.headers.get("x-request-id")
    try:
        body = resp.json()
    except ValueError:
        body = resp.text

    # Include endpoint info in error
    message = f"{_error_message(body)} (endpoint: {endpoint})"

    if resp.status_code == 401:
        raise AuthError(resp.status_code, message, body, request_id)
    if resp.status_code == 403:
        raise ForbiddenError(resp.status_code, message, body, request_id)
    if resp.status_code == 404:
        raise NotFoundError(resp.status_code, message, body, request_id)
    if resp.status_code >= 500:
        raise ServerError(resp.status_code, message, body, request_id)
    raise ApiError(resp.status_code, message, body, request_id)


def decode_json(resp: httpx.Response, endpoint: str) -> Any:
    """Response body as JSON, or ApiError if it is not valid JSON."""
    try:
        return resp.json()
    except ValueError as e:
        raise ApiError(
            resp.status_code,
            f"Malformed JSON response (endpoint: {endpoint})",
            resp.text,
            resp.headers.get("x-request-id"),
        ) from e


def parse(model: Type[M], data: Any, endpoint: str) -> M:
    """Validate one record, turning a schema mismatch into ApiError."""
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ApiError(None, f"Unexpected {model.__name__} record (endpoint: {endpoint}): {e}", data) from e


def parse_list(model: Type[M], data: Any, endpoint: str) -> List[M]:
    if not isinstance(data, list):
        raise ApiError(None, f"Expected a list of {model.__name__} records (endpoint: {endpoint})", data)
    return [parse(model, item, endpoint) for item in data]


def check_embedded_error(body: Any, status_code: int, endpoint: str) -> None:
    """Raise RemoteError if a successful body carries an error ``code``."""
    if isinstance(body, dict) and "code" in body:
        message = body.get("message") or str(body)
        raise RemoteError(status_code, f"{message} (endpoint: {endpoint})", body, code=body["code"])
