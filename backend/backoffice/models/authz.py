from __future__ import annotations
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, Boolean, ForeignKey, JSON, DateTime, text
from typing import List, Optional

Base = declarative_base()

USER_STATUSES = ('active', 'inactive')


class Role(Base):
    __tablename__ = 'roles'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # stored lowercase & trimmed; UNIQUE is the authority for duplicate detection
    name: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    permissions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    users = relationship('User', back_populates='role')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    def __repr__(self):
        return f"<Role id={self.id} name={self.name!r} default={self.is_default}>"


class User(Base):
    __tablename__ = 'users'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    lastname: Mapped[Optional[str]] = mapped_column(String(128))
    contact_number: Mapped[Optional[str]] = mapped_column(String(32))
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role_id: Mapped[Optional[int]] = mapped_column(ForeignKey('roles.id', ondelete='SET NULL'), nullable=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default='active')
    role = relationship('Role', back_populates='users')
    updated_at: Mapped[str] = mapped_column(DateTime(timezone=True), server_default=text('CURRENT_TIMESTAMP'), server_onupdate=text('CURRENT_TIMESTAMP'))

    @property
    def is_active(self) -> bool:
        return self.status == 'active'

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        from werkzeug.security import check_password_hash
        return check_password_hash(self.password_hash, raw)
