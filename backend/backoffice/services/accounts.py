"""Account lookups used while authenticating and authorizing."""
from __future__ import annotations
from typing import Optional
from sqlalchemy import select

from backoffice.models.authz import User
from backoffice.services.roles import _store_call


class UserStore:
    def __init__(self, session):
        self.session = session

    @_store_call
    def find_by_id(self, user_id: int) -> Optional[User]:
        # status changes committed by other sessions must win over the identity map
        stmt = select(User).where(User.id == user_id).execution_options(populate_existing=True)
        return self.session.execute(stmt).scalar_one_or_none()

    def status_of(self, user_id: int) -> Optional[str]:
        user = self.find_by_id(user_id)
        return user.status if user is not None else None


__all__ = ['UserStore']
