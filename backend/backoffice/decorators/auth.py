from functools import wraps
from flask import g, request
from backoffice import get_db
from backoffice.errors import AuthenticationError
from backoffice.services import policy
from backoffice.services.identity import resolve_identity
from backoffice.services.roles import RoleStore


def authenticate(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.identity = resolve_identity(request.headers.get('Authorization'), get_db())
        return fn(*args, **kwargs)
    return wrapper


def authorize(permission: str):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = g.get('identity')
            if identity is None:
                raise AuthenticationError()
            policy.authorize(identity, permission, store=RoleStore(get_db()))
            return fn(*args, **kwargs)
        return wrapper
    return outer


def require_permission(permission: str):
    """authenticate, then authorize(permission)."""
    def outer(fn):
        return authenticate(authorize(permission)(fn))
    return outer


def current_identity():
    return g.identity
