"""
Declarative base and the audit columns shared by every tenant table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, MetaData, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shared.utils.dates import utcnow

# BIGINT in PostgreSQL; INTEGER on SQLite so the rowid alias autoincrements
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def _actor_id() -> Mapped[Optional[int]]:
    # Plain column: a FK to app_user would make users reference themselves
    return mapped_column(BigInteger, nullable=True)


def _actor_email() -> Mapped[Optional[str]]:
    return mapped_column(String(255), nullable=True)


class AuditMixin:
    """
    `is_active` doubles as the soft-delete flag: customers, users, plans and
    companies are never removed, only deactivated. Who created, last changed
    and deactivated a row is kept next to it, by id and email, so the trail
    survives the user being deactivated.
    """

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    created_by_id: Mapped[Optional[int]] = _actor_id()
    created_by_email: Mapped[Optional[str]] = _actor_email()
    updated_by_id: Mapped[Optional[int]] = _actor_id()
    updated_by_email: Mapped[Optional[str]] = _actor_email()
    deleted_by_id: Mapped[Optional[int]] = _actor_id()
    deleted_by_email: Mapped[Optional[str]] = _actor_email()

    def set_created_by(self, user_id: int | None, user_email: str | None) -> None:
        self.created_by_id, self.created_by_email = user_id, user_email

    def set_updated_by(self, user_id: int | None, user_email: str | None) -> None:
        self.updated_by_id, self.updated_by_email = user_id, user_email
        self.updated_at = utcnow()

    def soft_delete(self, user_id: int | None, user_email: str | None) -> None:
        self.is_active = False
        self.deleted_at = utcnow()
        self.deleted_by_id, self.deleted_by_email = user_id, user_email

    def restore(self, user_id: int | None, user_email: str | None) -> None:
        self.is_active = True
        self.deleted_at = None
        self.deleted_by_id = self.deleted_by_email = None
        self.set_updated_by(user_id, user_email)

    def __repr__(self) -> str:
        state = "" if self.is_active else ", inactive"
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}{state}>"
