"""Client settings for the Workbench SDK.

Constructor arguments are the primary interface; ClientSettings bundles the
same values and can be read from the environment. The password is masked in
repr so settings are safe to log.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from workbench_sdk.errors import ValidationError


def _bool_env(key: str, default: bool) -> bool:
    """Parse a 0/1 env var to bool."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip() in ("1", "true", "yes", "True", "TRUE")


def _float_env(key: str, default: Optional[float]) -> Optional[float]:
    """Parse a float env var with fallback."""
    val = os.environ.get(key)
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _required_env(key: str) -> str:
    val = os.environ.get(key, "").strip()
    if not val:
        raise ValidationError(key, None, message=f"Environment variable {key} is not set")
    return val


@dataclass(frozen=True)
class ClientSettings:
    """Immutable connection settings. Safe to log; the password is masked."""

    api: str
    username: str
    password: str = field(repr=False)
    dry_run: bool = False
    timeout: Optional[float] = None

    def __repr__(self) -> str:
        return (
            f"ClientSettings(api={self.api!r}, username={self.username!r}, "
            f"password='***', dry_run={self.dry_run!r}, timeout={self.timeout!r})"
        )

    @classmethod
    def from_env(cls) -> "ClientSettings":
        """Build settings from SWB_* environment variables.

        SWB_API_URL, SWB_USERNAME and SWB_PASSWORD are required;
        SWB_DRY_RUN (0/1) and SWB_TIMEOUT (seconds) are optional.
        """
        return cls(
            api=_required_env("SWB_API_URL"),
            username=_required_env("SWB_USERNAME"),
            password=_required_env("SWB_PASSWORD"),
            dry_run=_bool_env("SWB_DRY_RUN", False),
            timeout=_float_env("SWB_TIMEOUT", None),
        )
