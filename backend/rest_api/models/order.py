"""
Order and Delivery Models.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import DeliveryStatus, OrderStatus
from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .company import Company
    from .customer import Customer
    from .user import User
    from .visit import Visit


class Order(AuditMixin, Base):
    """
    An order taken from a customer, usually during a visit.
    Status changes go through ORDER_TRANSITIONS.
    """

    __tablename__ = "customer_order"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    company_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("company.id"), nullable=False, index=True
    )
    customer_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer.id"), nullable=False, index=True
    )
    # At most one order per visit
    visit_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("visit.id"), nullable=True, unique=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)  # COP
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=OrderStatus.PENDING, index=True
    )
    delivery_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # Electronic invoice references (populated by the invoicing integration)
    invoice_number: Mapped[Optional[str]] = mapped_column(Text)
    invoice_cufe: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_order_company_status", "company_id", "status"),
    )

    company: Mapped["Company"] = relationship(back_populates="orders")
    customer: Mapped["Customer"] = relationship()
    visit: Mapped[Optional["Visit"]] = relationship(back_populates="order")
    delivery: Mapped[Optional["Delivery"]] = relationship(
        back_populates="order", uselist=False, cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, status='{self.status}', amount={self.amount})>"


class Delivery(AuditMixin, Base):
    """Assignment of an order to a delivery person. One per order."""

    __tablename__ = "delivery"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("customer_order.id"), nullable=False, unique=True
    )
    delivery_person_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default=DeliveryStatus.PENDING)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    order: Mapped["Order"] = relationship(back_populates="delivery")
    delivery_person: Mapped["User"] = relationship()

    def __repr__(self) -> str:
        return f"<Delivery(id={self.id}, order_id={self.order_id}, status='{self.status}')>"
