"""Bearer credential -> Identity.

This is the only place a token is parsed. Downstream code receives the resolved
Identity and never looks at raw claims.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional, Union

from flask import current_app
from flask_jwt_extended import decode_token
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from backoffice.errors import AccountInactive, InvalidCredential, MissingCredential, RoleNotFound, UserNotFound
from backoffice.models.authz import Role
from backoffice.services.accounts import UserStore
from backoffice.services.roles import RoleStore, normalize_role_name

ROLE_CLAIM = 'role'
BEARER_SCHEME = 'Bearer'


@dataclass(frozen=True)
class RoleById:
    id: int


@dataclass(frozen=True)
class RoleByName:
    name: str


RoleRef = Union[RoleById, RoleByName]


@dataclass(frozen=True)
class Identity:
    subject_id: str
    role_ref: RoleRef
    role: Role
    account_status: str = 'active'

    @property
    def user_id(self) -> int:
        return int(self.subject_id)

    @property
    def is_active(self) -> bool:
        return self.account_status == 'active'


def parse_role_ref(claim: Any) -> Optional[RoleRef]:
    """Tag a role claim as an id or a name.

    Accepts an int, an all-digit string (id), any other non-empty string (name),
    or an embedded object carrying ``id`` and/or ``name`` (id wins).
    """
    if isinstance(claim, bool):
        return None
    if isinstance(claim, int):
        return RoleById(claim)
    if isinstance(claim, str):
        value = claim.strip()
        if not value:
            return None
        if value.isdecimal():
            return RoleById(int(value))
        return RoleByName(normalize_role_name(value))
    if isinstance(claim, dict):
        ref = parse_role_ref(claim.get('id'))
        if isinstance(ref, RoleById):
            return ref
        name = claim.get('name')
        if isinstance(name, str) and name.strip():
            return RoleByName(normalize_role_name(name))
    return None


def resolve_role(store: RoleStore, ref: RoleRef) -> Role:
    if isinstance(ref, RoleById):
        role = store.find_by_id(ref.id)
    else:
        role = store.find_by_name(ref.name)
    if role is None:
        raise RoleNotFound()
    return role


def extract_token(authorization: Optional[str]) -> str:
    if not authorization or not authorization.strip():
        raise MissingCredential()
    token = authorization.strip()
    scheme, _, rest = token.partition(' ')
    if scheme == BEARER_SCHEME:
        token = rest.strip()
    if not token:
        raise MissingCredential()
    return token


def decode_claims(token: str) -> dict:
    try:
        return decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        current_app.logger.info('Token verification failed: %s', e)
        raise InvalidCredential('Token error') from e


def resolve_identity(authorization: Optional[str], session) -> Identity:
    token = extract_token(authorization)
    claims = decode_claims(token)

    subject = claims.get(current_app.config.get('JWT_IDENTITY_CLAIM', 'sub'))
    ref = parse_role_ref(claims.get(ROLE_CLAIM))
    if subject is None or ref is None or not str(subject).isdecimal():
        raise InvalidCredential()

    role = resolve_role(RoleStore(session), ref)

    user = UserStore(session).find_by_id(int(subject))
    if user is None:
        raise UserNotFound()
    if not user.is_active:
        current_app.logger.info('Rejected token for inactive user %s', subject)
        raise AccountInactive()

    current_app.logger.debug('Authenticated user %s with role %s', subject, role.name)
    return Identity(subject_id=str(subject), role_ref=ref, role=role, account_status=user.status)


__all__ = [
    'RoleById', 'RoleByName', 'RoleRef', 'Identity', 'parse_role_ref', 'resolve_role', 'extract_token',
    'decode_claims', 'resolve_identity',
]
