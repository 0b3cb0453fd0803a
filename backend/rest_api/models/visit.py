"""
Visit and ScheduledVisit Models.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Float, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .customer import Customer
    from .order import Order
    from .user import User


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Visit(AuditMixin, Base):
    """
    A vendor's visit to a customer.

    Created at check-in with no result; checkout records the result,
    sets check_out_at and may create an Order.
    """

    __tablename__ = "visit"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=False, index=True
    )
    vendor_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )
    visited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    check_in_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    check_out_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    result: Mapped[Optional[str]] = mapped_column(Text)  # ORDER_TAKEN, NOT_HOME, REFUSED
    reason: Mapped[Optional[str]] = mapped_column(Text)
    order_amount: Mapped[Optional[int]] = mapped_column(BigInteger)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    lat: Mapped[Optional[float]] = mapped_column(Float)
    lng: Mapped[Optional[float]] = mapped_column(Float)

    __table_args__ = (
        Index("ix_visit_vendor_visited_at", "vendor_id", "visited_at"),
    )

    customer: Mapped["Customer"] = relationship(back_populates="visits")
    vendor: Mapped["User"] = relationship()
    order: Mapped[Optional["Order"]] = relationship(back_populates="visit", uselist=False)

    def __repr__(self) -> str:
        return f"<Visit(id={self.id}, customer_id={self.customer_id}, result={self.result})>"


class ScheduledVisit(AuditMixin, Base):
    """A planned visit; completed when a checkout happens on or after scheduled_for."""

    __tablename__ = "scheduled_visit"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=False, index=True
    )
    vendor_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )
    scheduled_for: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    visit_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("visit.id"), nullable=True
    )

    customer: Mapped["Customer"] = relationship()
    vendor: Mapped["User"] = relationship()

    def __repr__(self) -> str:
        return f"<ScheduledVisit(id={self.id}, customer_id={self.customer_id}, for={self.scheduled_for})>"
