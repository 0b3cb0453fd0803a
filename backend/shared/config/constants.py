"""
Centralized constants for the backend application.
Avoids magic strings and repeated thresholds across services and routers.

Usage:
    from shared.config.constants import Roles, OrderStatus, validate_order_transition

    if role in TENANT_ROLES:
        ...

    if not validate_order_transition(order.status, OrderStatus.PENDING):
        ...
"""

from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class Roles:
    """User role constants."""

    SUPER_ADMIN: Final[str] = "SUPER_ADMIN"
    ADMIN: Final[str] = "ADMIN"
    VENDOR: Final[str] = "VENDOR"
    DELIVERY: Final[str] = "DELIVERY"

    ALL: Final[list[str]] = [SUPER_ADMIN, ADMIN, VENDOR, DELIVERY]


# Role groups for common access patterns
TENANT_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.VENDOR, Roles.DELIVERY})
FIELD_ROLES: Final[frozenset[str]] = frozenset({Roles.VENDOR, Roles.DELIVERY})
CUSTOMER_EDITOR_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.VENDOR})
MOBILE_ROLES: Final[frozenset[str]] = FIELD_ROLES
DASHBOARD_ROLES: Final[frozenset[str]] = frozenset({Roles.ADMIN, Roles.SUPER_ADMIN})


# =============================================================================
# Customer temperature (recency of last visit)
# =============================================================================


class Temperature:
    """Customer temperature buckets, hottest first."""

    HOT: Final[str] = "HOT"
    WARM: Final[str] = "WARM"
    COLD: Final[str] = "COLD"
    FROZEN: Final[str] = "FROZEN"

    ALL: Final[list[str]] = [HOT, WARM, COLD, FROZEN]


# Upper bounds (inclusive) in whole days since the last visit
HOT_DAYS: Final[int] = 3
WARM_DAYS: Final[int] = 7
FROZEN_DAYS: Final[int] = 14

# Vendor dashboards alert on customers at or beyond this many days.
# Kept separate from FROZEN_DAYS: a customer at exactly 15 days is FROZEN
# and alerted, one at 14 days is COLD and not alerted.
VENDOR_ALERT_DAYS: Final[int] = 15


# =============================================================================
# Entity Status Constants
# =============================================================================


class SubscriptionStatus:
    """Subscription lifecycle states."""

    TRIAL: Final[str] = "TRIAL"
    ACTIVE: Final[str] = "ACTIVE"
    PAST_DUE: Final[str] = "PAST_DUE"
    CANCELLED: Final[str] = "CANCELLED"
    SUSPENDED: Final[str] = "SUSPENDED"

    ALL: Final[list[str]] = [TRIAL, ACTIVE, PAST_DUE, CANCELLED, SUSPENDED]
    # Any of these makes the tenant read-only regardless of dates
    BLOCKED: Final[frozenset[str]] = frozenset({PAST_DUE, CANCELLED, SUSPENDED})


class BillingPeriod:
    """Subscription billing period constants."""

    MONTHLY: Final[str] = "MONTHLY"
    YEARLY: Final[str] = "YEARLY"

    ALL: Final[list[str]] = [MONTHLY, YEARLY]


class VisitResult:
    """Outcome recorded at visit checkout."""

    ORDER_TAKEN: Final[str] = "ORDER_TAKEN"
    NOT_HOME: Final[str] = "NOT_HOME"
    REFUSED: Final[str] = "REFUSED"

    ALL: Final[list[str]] = [ORDER_TAKEN, NOT_HOME, REFUSED]


class OrderStatus:
    """Order status constants."""

    PENDING_REVIEW: Final[str] = "PENDING_REVIEW"  # Taken by a vendor, awaiting admin approval
    PENDING: Final[str] = "PENDING"
    IN_DELIVERY: Final[str] = "IN_DELIVERY"
    DELIVERED: Final[str] = "DELIVERED"
    CANCELLED: Final[str] = "CANCELLED"

    ALL: Final[list[str]] = [PENDING_REVIEW, PENDING, IN_DELIVERY, DELIVERED, CANCELLED]
    # Counted as revenue on the dashboard
    REVENUE: Final[list[str]] = [DELIVERED, IN_DELIVERY]
    # Shown on the delivery person's daily list
    DELIVERABLE: Final[list[str]] = [PENDING, IN_DELIVERY]


class DeliveryStatus:
    """Delivery record status constants."""

    PENDING: Final[str] = "PENDING"
    DELIVERED: Final[str] = "DELIVERED"
    FAILED: Final[str] = "FAILED"

    ALL: Final[list[str]] = [PENDING, DELIVERED, FAILED]


# =============================================================================
# Status Transitions
# =============================================================================

# Valid order status transitions (from -> [allowed to states])
# Flow: PENDING_REVIEW → PENDING → IN_DELIVERY → DELIVERED
ORDER_TRANSITIONS: Final[dict[str, list[str]]] = {
    OrderStatus.PENDING_REVIEW: [OrderStatus.PENDING, OrderStatus.CANCELLED],  # Admin approves
    OrderStatus.PENDING: [OrderStatus.IN_DELIVERY, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    # Unassigning or a failed delivery sends the order back to PENDING
    OrderStatus.IN_DELIVERY: [OrderStatus.PENDING, OrderStatus.DELIVERED, OrderStatus.CANCELLED],
    # Reactivation by rescheduling or assigning a delivery person
    OrderStatus.CANCELLED: [OrderStatus.PENDING, OrderStatus.IN_DELIVERY],
    OrderStatus.DELIVERED: [],  # Terminal state
}


def validate_order_transition(current_status: str, new_status: str) -> bool:
    """
    Validate that an order status transition is allowed.

    Returns True if transition is valid, False otherwise.
    """
    allowed = ORDER_TRANSITIONS.get(current_status, [])
    return new_status in allowed


# =============================================================================
# Business constants
# =============================================================================


class Limits:
    """Validation and business limits."""

    UNLIMITED: Final[int] = -1  # Plan max_* sentinel

    TRIAL_DAYS: Final[int] = 14
    TRIAL_PLAN_NAME: Final[str] = "PROFESIONAL"

    CUSTOMER_DETAIL_VISITS: Final[int] = 10
    DEFAULT_NEARBY_RADIUS_KM: Final[float] = 5.0
    EARTH_RADIUS_KM: Final[float] = 6371.0

    DEFAULT_STATS_DAYS: Final[int] = 7
    DAILY_VISITS_WINDOW_DAYS: Final[int] = 30

    MIN_PASSWORD_LENGTH: Final[int] = 6
    MIN_NAME_LENGTH: Final[int] = 2
    MAX_NAME_LENGTH: Final[int] = 200


class PushType:
    """Data payload types sent with push notifications."""

    DELIVERY_ASSIGNED: Final[str] = "DELIVERY_ASSIGNED"
    DELIVERIES_ASSIGNED: Final[str] = "DELIVERIES_ASSIGNED"
    CUSTOMERS_ASSIGNED: Final[str] = "CUSTOMERS_ASSIGNED"
    VISIT_REMINDER: Final[str] = "VISIT_REMINDER"


class EventType:
    """Redis event type constants."""

    LOCATION_UPDATED: Final[str] = "LOCATION_UPDATED"


# =============================================================================
# Error Messages (Spanish)
# =============================================================================


class ErrorMessages:
    """Standardized error messages in Spanish."""

    # Auth errors
    NOT_AUTHENTICATED: Final[str] = "No autenticado"
    INVALID_TOKEN: Final[str] = "Token inválido"
    TOKEN_EXPIRED: Final[str] = "Token expirado"
    INVALID_CREDENTIALS: Final[str] = "Credenciales inválidas"
    ACCESS_NOT_ALLOWED: Final[str] = "Acceso no permitido"
    INSUFFICIENT_PERMISSIONS: Final[str] = "No autorizado"
    NO_COMPANY: Final[str] = "El usuario no pertenece a ninguna empresa"

    # Subscription and plan
    SUBSCRIPTION_EXPIRED: Final[str] = (
        "Tu suscripción ha vencido o está inactiva. Solo puedes consultar información. "
        "Contacta a DistriApp para renovar."
    )
    PLAN_MAX_CUSTOMERS: Final[str] = (
        "Tu plan permite máximo {limit} clientes activos. Actualiza tu plan para agregar más."
    )
    PLAN_MAX_VENDORS: Final[str] = (
        "Tu plan permite máximo {limit} vendedor(es). Actualiza tu plan para agregar más."
    )
    PLAN_MAX_DELIVERY: Final[str] = (
        "Tu plan permite máximo {limit} repartidor(es). Actualiza tu plan para agregar más."
    )
    NO_PLANS_CONFIGURED: Final[str] = "No hay planes configurados. Contacta al administrador."

    # Not found errors
    CUSTOMER_NOT_FOUND: Final[str] = "Cliente no encontrado"
    VISIT_NOT_FOUND: Final[str] = "Visita no encontrada"
    ORDER_NOT_FOUND: Final[str] = "Pedido no encontrado"
    USER_NOT_FOUND: Final[str] = "Usuario no encontrado"
    VENDOR_NOT_FOUND: Final[str] = "Vendedor no encontrado"
    DELIVERY_PERSON_NOT_FOUND: Final[str] = "Repartidor no encontrado"
    COMPANY_NOT_FOUND: Final[str] = "Empresa no encontrada"
    PLAN_NOT_FOUND: Final[str] = "Plan no encontrado"

    # Conflicts
    ACCOUNT_EMAIL_EXISTS: Final[str] = "Ya existe una cuenta con ese correo"
    USER_EMAIL_EXISTS: Final[str] = "Ya existe un usuario con ese correo"
    ORDER_ALREADY_ASSIGNED: Final[str] = "La orden ya tiene entrega asignada"
    PLAN_NAME_EXISTS: Final[str] = "Ya existe un plan con ese nombre"
    DUPLICATE_RECORD: Final[str] = "El registro ya existe o fue modificado por otro usuario"

    # Validation and state errors
    INVALID_DATA: Final[str] = "Datos inválidos"
    ORDER_ALREADY_DELIVERED: Final[str] = "No se puede modificar un pedido ya entregado"
    ORDER_NOT_IN_REVIEW: Final[str] = (
        "Solo se pueden aprobar pedidos en estado 'Pendiente de revisión'"
    )
    ORDER_NOT_PENDING: Final[str] = "Pedido no encontrado o ya no está pendiente"
    NO_CHANGES: Final[str] = "Debe indicar al menos un cambio"
    NO_VALID_ORDERS: Final[str] = "No hay órdenes válidas para asignar"
    NO_VALID_CUSTOMERS: Final[str] = "No se encontraron clientes válidos"
    ADMIN_ROLE_LOCKED: Final[str] = "No se puede cambiar el rol del administrador"
    VENDOR_WITHOUT_DEVICE: Final[str] = (
        "El vendedor no tiene un dispositivo registrado para recibir notificaciones."
    )
    SUBSCRIPTION_PLAN_REQUIRED: Final[str] = "Debe indicar un plan para crear la suscripción"

    # Rate limit
    RATE_LIMIT_EXCEEDED: Final[str] = "Demasiadas solicitudes. Intente más tarde."
