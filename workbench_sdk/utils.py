"""Small helpers shared by the sync and async clients."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterable, Optional, Sequence

from workbench_sdk.errors import ValidationError


def check_choice(field: str, value: Any, allowed: Sequence[Any]) -> Any:
    """Return value if it is one of allowed, else raise ValidationError."""
    if value not in allowed:
        raise ValidationError(field, value, allowed)
    return value


def ref_id(obj: Any, key: str = "id", field: str = "record") -> str:
    """Reduce a record reference to its id.

    Accepts a bare id string, a mapping, or a model exposing ``key`` as an
    attribute (snake_case attributes are the same as the wire key for the
    ids used here: ``id`` and ``uid``).
    """
    if isinstance(obj, str):
        return obj
    if isinstance(obj, Mapping):
        value = obj.get(key)
    else:
        value = getattr(obj, key, None)
    if not value:
        raise ValidationError(field, obj, message=f"Invalid {field}: no {key!r} in {obj!r}")
    return value


def strip_fields(data: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Return a copy of data without the given keys."""
    drop = set(fields)
    return {k: v for k, v in data.items() if k not in drop}


def same_members(a: Optional[Iterable[Any]], b: Optional[Iterable[Any]]) -> bool:
    """True if both iterables hold the same set of ids."""
    return set(a or ()) == set(b or ())
