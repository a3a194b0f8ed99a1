"""Typed outcomes for authentication, authorization and role management.

Every denial is one of these classes so callers can tell "access denied" apart
from "system broken" (the latter surfaces as a plain exception and a generic 500).
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class BackofficeError(Exception):
    status_code = 500
    message = 'Internal error'

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, **details: Any):
        if message is not None:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details: Dict[str, Any] = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {'message': self.message, **self.details}


# --- Authentication ---
class AuthenticationError(BackofficeError):
    status_code = 401
    message = 'Authentication required'


class MissingCredential(AuthenticationError):
    message = 'No token provided'


class InvalidCredential(AuthenticationError):
    message = 'Invalid token'


class RoleNotFound(AuthenticationError):
    message = 'Role not found'


class UserNotFound(AuthenticationError):
    message = 'User not found'


class AccountInactive(AuthenticationError):
    message = 'Account is inactive'


# --- Authorization ---
class AuthorizationError(BackofficeError):
    status_code = 403
    message = 'Authorization failed'


class InsufficientPermission(AuthorizationError):
    message = 'Insufficient permissions'

    def __init__(self, required: str, role: Optional[str]):
        super().__init__(required=required, role=role)
        self.required = required
        self.role = role


# --- Role store ---
class RoleStoreError(BackofficeError):
    status_code = 400


class NotFound(RoleStoreError):
    status_code = 404
    message = 'Role not found'


class DuplicateName(RoleStoreError):
    status_code = 409
    message = 'Role already exists'


class ImmutableName(RoleStoreError):
    message = 'Default role names cannot be changed'


class ProtectedRole(RoleStoreError):
    message = 'Default roles cannot be deleted'


class InvalidRoleName(RoleStoreError):
    message = 'name required'


class UnknownPermission(RoleStoreError):
    message = 'Unknown permissions'


class StoreUnavailable(BackofficeError):
    status_code = 503
    message = 'Role store unavailable'


__all__ = [
    'BackofficeError', 'AuthenticationError', 'MissingCredential', 'InvalidCredential', 'RoleNotFound',
    'UserNotFound', 'AccountInactive', 'AuthorizationError', 'InsufficientPermission', 'RoleStoreError',
    'NotFound', 'DuplicateName', 'ImmutableName', 'ProtectedRole', 'InvalidRoleName', 'UnknownPermission',
    'StoreUnavailable',
]
