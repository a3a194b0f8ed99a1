"""Request payload validation helpers with consistent 400 semantics."""
from __future__ import annotations
from typing import Iterable, Mapping
from flask import abort


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or aborts with 400.
    """
    if new_status not in allowed:
        abort(400, description=f"{field_name} invalid")
    return new_status


def require_fields(data: Mapping, *fields: str):
    missing = [f for f in fields if not data.get(f)]
    if missing:
        abort(400, description=f"{', '.join(missing)} required")


def validate_permission_list(value, field_name: str = 'permissions') -> list:
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        abort(400, description=f"{field_name} must be list[str]")
    return value

__all__ = ['validate_status', 'require_fields', 'validate_permission_list']
