"""Durable Role records backed by the SQLAlchemy session."""
from __future__ import annotations
from functools import wraps
from typing import Iterable, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError, OperationalError

from backoffice.constants.permissions import BUILTIN_ROLE_NAMES, default_permissions_for, is_known_permission
from backoffice.errors import (
    DuplicateName, ImmutableName, InvalidRoleName, NotFound, ProtectedRole, StoreUnavailable, UnknownPermission,
)
from backoffice.models.authz import Role


def normalize_role_name(name: Optional[str]) -> str:
    return (name or '').strip().lower()


def normalize_permissions(codes: Iterable[str]) -> List[str]:
    """Validate against the catalog and drop duplicates, keeping first-seen order."""
    codes = list(codes or [])
    unknown = sorted({c for c in codes if not isinstance(c, str) or not is_known_permission(c)}, key=str)
    if unknown:
        raise UnknownPermission(f'Unknown permissions: {unknown}', unknown=unknown)
    seen = set()
    out: List[str] = []
    for c in codes:
        if c not in seen:
            seen.add(c)
            out.append(c)
    return out


def _store_call(fn):
    """Translate connectivity failures into StoreUnavailable."""
    @wraps(fn)
    def wrapper(self, *args, **kwargs):
        try:
            return fn(self, *args, **kwargs)
        except OperationalError as e:
            self.session.rollback()
            raise StoreUnavailable() from e
    return wrapper


class RoleStore:
    def __init__(self, session):
        self.session = session

    @_store_call
    def find_by_id(self, role_id: int) -> Optional[Role]:
        # populate_existing: a role edited elsewhere must not be masked by the identity map
        stmt = select(Role).where(Role.id == role_id).execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    @_store_call
    def find_by_name(self, name: str) -> Optional[Role]:
        """Exact match against the stored (already normalized) name."""
        stmt = select(Role).where(Role.name == name).execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    @_store_call
    def list_roles(self, limit: int, offset: int) -> Tuple[List[Role], int]:
        total = self.session.execute(select(func.count(Role.id))).scalar_one()
        rows = self.session.execute(select(Role).order_by(Role.id.asc()).offset(offset).limit(limit)).scalars().all()
        return list(rows), total

    @_store_call
    def create(self, name: str, is_default: bool = False, permissions: Iterable[str] = ()) -> Role:
        norm = self._valid_name(name)
        perms = normalize_permissions(permissions)
        if self.find_by_name(norm) is not None:
            raise DuplicateName(name=norm)
        role = Role(name=norm, is_default=bool(is_default), permissions=perms)
        self.session.add(role)
        self._commit(norm)
        return role

    @_store_call
    def update(self, role_id: int, permissions: Optional[Iterable[str]] = None, name: Optional[str] = None) -> Role:
        role = self.find_by_id(role_id)
        if role is None:
            raise NotFound()
        if name is not None:
            norm = self._valid_name(name)
            if norm != role.name:
                if role.is_default:
                    raise ImmutableName(name=role.name)
                clash = self.find_by_name(norm)
                if clash is not None and clash.id != role.id:
                    raise DuplicateName(name=norm)
                role.name = norm
        if permissions is not None:
            # assign a fresh list so the JSON column registers the change
            role.permissions = normalize_permissions(permissions)
        self._commit(role.name)
        return role

    @_store_call
    def delete(self, role_id: int) -> None:
        role = self.find_by_id(role_id)
        if role is None:
            raise NotFound()
        if role.is_default:
            raise ProtectedRole(name=role.name)
        self.session.delete(role)
        self.session.commit()

    @_store_call
    def ensure_default_roles(self) -> List[Role]:
        """Idempotently create the built-in roles. Existing rows are left untouched."""
        roles: List[Role] = []
        for name in BUILTIN_ROLE_NAMES:
            role = self.find_by_name(name)
            if role is None:
                role = Role(name=name, is_default=True, permissions=[])
                self.session.add(role)
                self._commit(name)
            roles.append(role)
        return roles

    @staticmethod
    def _valid_name(name) -> str:
        norm = normalize_role_name(name)
        if not norm:
            raise InvalidRoleName()
        # all-digit strings are read back as role ids, never as names
        if norm.isdecimal():
            raise InvalidRoleName('Role name cannot be numeric', name=norm)
        return norm

    def _commit(self, name: str):
        try:
            self.session.commit()
        except IntegrityError as e:
            # concurrent insert won the race; the constraint is the authority
            self.session.rollback()
            raise DuplicateName(name=name) from e


def describe_role(role: Role) -> dict:
    return {
        'id': role.id,
        'name': role.name,
        'is_default': role.is_default,
        'permissions': list(role.permissions or []),
        'default_permissions': list(default_permissions_for(role.name)) if role.is_default else [],
    }


__all__ = ['RoleStore', 'normalize_role_name', 'normalize_permissions', 'describe_role']
