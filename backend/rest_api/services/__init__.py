"""
Services module for business logic.

- domain/: Application services, one per aggregate - USE THESE from routers
- notifications/: Expo push delivery
- location/: Per-tenant live location fan-out (Redis or in-process)
- recency, subscription_guard, plan_limits: pure rules shared by domain services

Usage:
    from rest_api.services.domain import OrderService
    service = OrderService(db, notifier)
    orders = service.list_all(company_id, status="PENDING")
"""

from .domain import (
    AuthService,
    CompanyService,
    CustomerService,
    DeliveryService,
    OrderService,
    StatsService,
    SuperadminService,
    UserService,
    VisitService,
)
from .location import LocationBroadcaster, get_location_broadcaster, location_broadcaster
from .notifications import ExpoPushClient, PushNotifier, get_push_notifier
from .plan_limits import enforce_customer_limit, enforce_user_limit
from .recency import classify_recency, count_by_temperature, days_since
from .subscription_guard import ensure_writable, get_subscription_status, write_roles

__all__ = [
    # Domain services
    "AuthService",
    "CompanyService",
    "CustomerService",
    "DeliveryService",
    "OrderService",
    "StatsService",
    "SuperadminService",
    "UserService",
    "VisitService",
    # Collaborators
    "LocationBroadcaster",
    "get_location_broadcaster",
    "location_broadcaster",
    "ExpoPushClient",
    "PushNotifier",
    "get_push_notifier",
    # Rules
    "enforce_customer_limit",
    "enforce_user_limit",
    "classify_recency",
    "count_by_temperature",
    "days_since",
    "ensure_writable",
    "get_subscription_status",
    "write_roles",
]
