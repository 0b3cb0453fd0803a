"""
SQLAlchemy ORM Models Package.

All models are organized into domain-specific modules:
- base: Base class and AuditMixin
- company: Company, Plan, Subscription
- user: User
- customer: Customer
- visit: Visit, ScheduledVisit
- order: Order, Delivery
"""

# Base classes
from .base import Base, AuditMixin

# Tenant and billing
from .company import Company, Plan, Subscription

# Users
from .user import User

# Customers and field work
from .customer import Customer
from .visit import Visit, ScheduledVisit

# Orders and deliveries
from .order import Order, Delivery

__all__ = [
    "Base",
    "AuditMixin",
    "Company",
    "Plan",
    "Subscription",
    "User",
    "Customer",
    "Visit",
    "ScheduledVisit",
    "Order",
    "Delivery",
]
