"""
Company (tenant), Plan and Subscription Models.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.config.constants import BillingPeriod, SubscriptionStatus
from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .customer import Customer
    from .order import Order
    from .user import User


class Company(AuditMixin, Base):
    """
    A distributor business account. All tenant data is scoped by company_id.
    Inherits: is_active, created_at, updated_at, deleted_at, *_by_id/email from AuditMixin.
    """

    __tablename__ = "company"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(Text)

    # Fiscal data used for electronic invoicing
    nit: Mapped[Optional[str]] = mapped_column(Text)
    legal_name: Mapped[Optional[str]] = mapped_column(Text)
    trade_name: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    city: Mapped[Optional[str]] = mapped_column(Text)
    department: Mapped[Optional[str]] = mapped_column(Text)
    postal_code: Mapped[Optional[str]] = mapped_column(Text)
    email: Mapped[Optional[str]] = mapped_column(Text)
    tax_regime: Mapped[Optional[str]] = mapped_column(Text)
    economic_activity: Mapped[Optional[str]] = mapped_column(Text)

    # Weekly visit goal shown on vendor performance charts
    weekly_visit_goal: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    users: Mapped[list["User"]] = relationship(back_populates="company")
    customers: Mapped[list["Customer"]] = relationship(back_populates="company")
    orders: Mapped[list["Order"]] = relationship(back_populates="company")
    subscription: Mapped[Optional["Subscription"]] = relationship(
        back_populates="company", uselist=False
    )

    def __repr__(self) -> str:
        return f"<Company(id={self.id}, name='{self.name}')>"


class Plan(AuditMixin, Base):
    """
    Commercial plan: numeric limits (-1 = unlimited) and feature flags.
    The `active` switch hides a plan from new subscriptions; is_active is the soft delete flag.
    """

    __tablename__ = "plan"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)  # BASICO, PROFESIONAL...
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    price: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)  # COP per period

    max_vendors: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    max_customers: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)
    max_delivery: Mapped[int] = mapped_column(Integer, nullable=False, default=-1)

    dian_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    reports_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    api_access: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    history_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 0 = unlimited
    # Fixed subscription length; when null the billing period decides
    duration_days: Mapped[Optional[int]] = mapped_column(Integer)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    subscriptions: Mapped[list["Subscription"]] = relationship(back_populates="plan")

    def __repr__(self) -> str:
        return f"<Plan(id={self.id}, name='{self.name}', price={self.price})>"


class Subscription(AuditMixin, Base):
    """
    One subscription per company. Its derived read-only status gates every write.
    """

    __tablename__ = "subscription"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    company_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("company.id"), nullable=False, unique=True, index=True
    )
    plan_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("plan.id"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(Text, nullable=False, default=SubscriptionStatus.TRIAL)
    billing_period: Mapped[str] = mapped_column(
        Text, nullable=False, default=BillingPeriod.MONTHLY
    )
    trial_ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    current_period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    company: Mapped["Company"] = relationship(back_populates="subscription")
    plan: Mapped["Plan"] = relationship(back_populates="subscriptions")

    def __repr__(self) -> str:
        return (
            f"<Subscription(id={self.id}, company_id={self.company_id}, "
            f"status='{self.status}', ends={self.current_period_end})>"
        )
