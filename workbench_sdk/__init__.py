"""Workbench Python SDK: typed client for the Service Workbench admin API."""

from workbench_sdk.client import WorkbenchClient
from workbench_sdk.async_client import AsyncWorkbenchClient
from workbench_sdk.config import ClientSettings
from workbench_sdk.errors import (
    ApiError,
    AuthError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
    ServerError,
    ValidationError,
    WorkbenchError,
)

__version__ = "1.0.0"

__all__ = [
    "WorkbenchClient",
    "AsyncWorkbenchClient",
    "ClientSettings",
    "WorkbenchError",
    "ApiError",
    "AuthError",
    "ForbiddenError",
    "NotFoundError",
    "RemoteError",
    "ServerError",
    "ValidationError",
]
