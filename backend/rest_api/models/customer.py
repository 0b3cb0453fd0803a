"""
Customer Model (the distributor's points of sale).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import BigInteger, Boolean, DateTime, Float, ForeignKey, Index, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import AuditMixin, Base, BigIntPK

if TYPE_CHECKING:
    from .company import Company
    from .user import User
    from .visit import Visit


class Customer(AuditMixin, Base):
    """
    A shop visited by vendors. Its temperature (HOT/WARM/COLD/FROZEN) is derived
    from last_visit_at on every read and never stored.
    """

    __tablename__ = "customer"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    company_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("company.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_name: Mapped[Optional[str]] = mapped_column(Text)
    phone: Mapped[Optional[str]] = mapped_column(Text)
    address: Mapped[Optional[str]] = mapped_column(Text)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    photo_url: Mapped[Optional[str]] = mapped_column(Text)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    last_visit_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    assigned_vendor_id: Mapped[Optional[int]] = mapped_column(
        BigInteger, ForeignKey("app_user.id"), nullable=True, index=True
    )

    # Electronic invoicing data
    requires_invoice: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    billing_id: Mapped[Optional[str]] = mapped_column(Text)
    billing_id_type: Mapped[Optional[str]] = mapped_column(Text)
    billing_legal_org: Mapped[Optional[str]] = mapped_column(Text)
    billing_tribute: Mapped[Optional[str]] = mapped_column(Text)
    billing_municipality_id: Mapped[Optional[str]] = mapped_column(Text)
    billing_email: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_customer_company_last_visit", "company_id", "last_visit_at"),
    )

    company: Mapped["Company"] = relationship(back_populates="customers")
    assigned_vendor: Mapped[Optional["User"]] = relationship()
    visits: Mapped[list["Visit"]] = relationship(back_populates="customer")

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name='{self.name}', company_id={self.company_id})>"
