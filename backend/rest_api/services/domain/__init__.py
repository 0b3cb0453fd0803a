"""
Domain Services - Application Layer.

Services contain the business rules and own the transaction; routers stay thin.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import CustomerService

    # In router
    service = CustomerService(db, notifier)
    customers = service.list_all(principal.tenant_id())
"""

from .auth_service import AuthService
from .company_service import CompanyService
from .customer_service import CustomerService
from .delivery_service import DeliveryService
from .order_service import OrderService
from .stats_service import StatsService
from .superadmin_service import SuperadminService
from .user_service import UserService
from .visit_service import VisitService

__all__ = [
    "AuthService",
    "CompanyService",
    "CustomerService",
    "DeliveryService",
    "OrderService",
    "StatsService",
    "SuperadminService",
    "UserService",
    "VisitService",
]
