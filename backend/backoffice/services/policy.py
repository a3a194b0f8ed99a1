"""Permission decisions as an ordered list of small evaluators.

Each evaluator looks at (role, permission, account_status) and returns ALLOW, DENY
or ABSTAIN. The first ALLOW or DENY wins; if every evaluator abstains the request
is denied with InsufficientPermission.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from flask import current_app, has_app_context

from backoffice.constants.permissions import SUPERUSER_ROLE, all_permissions, default_permissions_for, is_builtin_role
from backoffice.errors import AccountInactive, BackofficeError, InsufficientPermission, RoleNotFound, UserNotFound
from backoffice.services.accounts import UserStore

ALLOW = 'allow'
DENY = 'deny'
ABSTAIN = 'abstain'

ACTIVE = 'active'


@dataclass(frozen=True)
class Decision:
    outcome: str
    reason: Optional[BackofficeError] = None
    evaluator: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.outcome == ALLOW


_ABSTAIN = Decision(ABSTAIN)


def account_status_gate(role, permission: str, account_status: str) -> Decision:
    if account_status != ACTIVE:
        return Decision(DENY, AccountInactive(status_code=403), 'account_status_gate')
    return _ABSTAIN


def superuser(role, permission: str, account_status: str) -> Decision:
    if role.name == SUPERUSER_ROLE:
        return Decision(ALLOW, evaluator='superuser')
    return _ABSTAIN


def default_role_table(role, permission: str, account_status: str) -> Decision:
    # keyed by name only: custom roles get no fallback to the built-in tables
    if is_builtin_role(role.name) and permission in default_permissions_for(role.name):
        return Decision(ALLOW, evaluator='default_role_table')
    return _ABSTAIN


def stored_permissions(role, permission: str, account_status: str) -> Decision:
    # additive with the default table: built-in roles may carry extra stored grants
    if permission in (role.permissions or ()):
        return Decision(ALLOW, evaluator='stored_permissions')
    return _ABSTAIN


Evaluator = Callable[[object, str, str], Decision]

EVALUATORS: Sequence[Evaluator] = (
    account_status_gate,
    superuser,
    default_role_table,
    stored_permissions,
)


def evaluate(role, permission: str, account_status: str = ACTIVE, evaluators: Sequence[Evaluator] = EVALUATORS) -> Decision:
    for ev in evaluators:
        decision = ev(role, permission, account_status)
        if decision.outcome != ABSTAIN:
            return decision
    return Decision(DENY, InsufficientPermission(required=permission, role=role.name))


def authorize(identity, permission: str, store=None) -> Decision:
    """Allow or raise the typed denial for ``identity`` requesting ``permission``.

    With a ``store`` the role and the account status are re-read so edits made
    since authentication apply; a role or user deleted in between denies.
    """
    role = identity.role
    account_status = identity.account_status
    if store is not None:
        role = store.find_by_id(role.id)
        if role is None:
            _log_denial(identity.role.name, permission, 'role vanished')
            raise RoleNotFound(status_code=403)
        account_status = UserStore(store.session).status_of(identity.user_id)
        if account_status is None:
            _log_denial(role.name, permission, 'user vanished')
            raise UserNotFound(status_code=403)
    decision = evaluate(role, permission, account_status)
    if not decision.allowed:
        _log_denial(role.name, permission, type(decision.reason).__name__)
        raise decision.reason
    return decision


def effective_permissions(role, account_status: str = ACTIVE):
    """Catalog permissions the role would be allowed, sorted."""
    return sorted(p for p in all_permissions() if evaluate(role, p, account_status).allowed)


def _log_denial(role_name: str, permission: str, reason: str):
    if has_app_context():
        current_app.logger.warning('Denied %s for role %s (%s)', permission, role_name, reason)


__all__ = [
    'ALLOW', 'DENY', 'ABSTAIN', 'Decision', 'EVALUATORS', 'account_status_gate', 'superuser',
    'default_role_table', 'stored_permissions', 'evaluate', 'authorize', 'effective_permissions',
]
