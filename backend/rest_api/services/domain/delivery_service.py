"""
Delivery Service.

Assignment of PENDING orders to delivery persons (admin) and the delivery
person's own workflow: start, deliver, fail, today's route.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy.orm import Session

from rest_api.models import Delivery, Order
from rest_api.services.domain.order_service import (
    delivery_output,
    get_delivery_person,
    order_output,
    order_query,
    reset_delivery,
    set_order_status,
    without_active_delivery,
)
from rest_api.services.notifications import PushNotifier
from shared.config.constants import (
    DeliveryStatus,
    ErrorMessages,
    OrderStatus,
    PushType,
)
from shared.config.logging import get_logger
from shared.security.auth import Principal
from shared.utils.dates import as_utc, business_date, day_bounds, utcnow
from shared.utils.exceptions import ConflictError, NotFoundError, ValidationError
from shared.utils.schemas import DeliveryBatchResult, DeliveryOutput, OrderOutput

logger = get_logger(__name__)


class DeliveryService:
    """
    Service for deliveries.

    Business rules:
    - An order has at most one delivery record
    - Assignment only takes PENDING orders with no delivery or a FAILED one
    - Delivering is allowed from PENDING or IN_DELIVERY and closes the order
    - A failed delivery returns the order to PENDING for reassignment
    """

    def __init__(self, db: Session, notifier: PushNotifier | None = None):
        self._db = db
        self._notifier = notifier

    # =========================================================================
    # Admin assignment
    # =========================================================================

    def assign_one(
        self,
        order_id: int,
        delivery_person_id: int,
        principal: Principal,
        delivery_date: datetime | None = None,
    ) -> DeliveryOutput:
        company_id = principal.tenant_id()
        order = self._get_order(order_id, company_id)
        if order.delivery is not None and order.delivery.status != DeliveryStatus.FAILED:
            raise ConflictError(ErrorMessages.ORDER_ALREADY_ASSIGNED, order_id=order_id)
        person = get_delivery_person(self._db, delivery_person_id, company_id)

        try:
            set_order_status(order, OrderStatus.IN_DELIVERY)
            if delivery_date is not None:
                order.delivery_date = as_utc(delivery_date)
            self._assign(order, person.id, principal)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info("Delivery assigned", order_id=order.id, delivery_person_id=person.id)
        if self._notifier is not None:
            self._notifier.notify(
                person.push_token,
                "Nueva entrega asignada",
                f"Tienes una nueva entrega para: {order.customer.name}.",
                {"type": PushType.DELIVERY_ASSIGNED, "orderId": order.id},
            )

        self._db.refresh(order.delivery)
        return delivery_output(order.delivery)

    def assign_batch(
        self,
        order_ids: list[int],
        delivery_person_id: int,
        principal: Principal,
        delivery_date: datetime | None = None,
    ) -> DeliveryBatchResult:
        """Assign every valid order; invalid ids are skipped, none valid is a 400."""
        company_id = principal.tenant_id()
        person = get_delivery_person(self._db, delivery_person_id, company_id)

        orders = self._db.execute(
            order_query().where(
                Order.id.in_(order_ids),
                Order.company_id == company_id,
                Order.status == OrderStatus.PENDING,
                without_active_delivery(),
            )
        ).scalars().unique().all()
        if not orders:
            raise ValidationError(ErrorMessages.NO_VALID_ORDERS, company_id=company_id)

        try:
            for order in orders:
                set_order_status(order, OrderStatus.IN_DELIVERY)
                if delivery_date is not None:
                    order.delivery_date = as_utc(delivery_date)
                self._assign(order, person.id, principal)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        assigned_ids = [o.id for o in orders]
        logger.info(
            "Deliveries batch assigned",
            delivery_person_id=person.id,
            count=len(assigned_ids),
        )
        if self._notifier is not None:
            self._notifier.notify(
                person.push_token,
                "Nuevas entregas asignadas",
                f"Se te asignaron {len(assigned_ids)} entrega(s) para hoy.",
                {"type": PushType.DELIVERIES_ASSIGNED, "count": len(assigned_ids)},
            )
        return DeliveryBatchResult(assigned=len(assigned_ids), order_ids=assigned_ids)

    # =========================================================================
    # Delivery person workflow
    # =========================================================================

    def start(self, order_id: int, principal: Principal) -> OrderOutput:
        """Take a PENDING order on the road; the caller becomes its delivery person."""
        company_id = principal.tenant_id()
        order = self._db.execute(
            order_query().where(
                Order.id == order_id,
                Order.company_id == company_id,
                Order.status == OrderStatus.PENDING,
            )
        ).scalars().unique().one_or_none()
        if order is None:
            raise NotFoundError(ErrorMessages.ORDER_NOT_PENDING, order_id, company_id=company_id)

        try:
            self._upsert(order, principal.user_id, DeliveryStatus.PENDING)
            set_order_status(order, OrderStatus.IN_DELIVERY)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info("Delivery started", order_id=order.id, delivery_person_id=principal.user_id)
        return self._reload(order.id, company_id)

    def deliver(self, order_id: int, principal: Principal, notes: str | None = None) -> OrderOutput:
        company_id = principal.tenant_id()
        order = self._get_order(order_id, company_id)
        if order.status == OrderStatus.DELIVERED:
            raise ValidationError(ErrorMessages.ORDER_ALREADY_DELIVERED, order_id=order_id)

        try:
            set_order_status(order, OrderStatus.DELIVERED)
            delivery = self._upsert(order, principal.user_id, DeliveryStatus.DELIVERED)
            delivery.delivered_at = utcnow()
            delivery.notes = notes
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info("Order delivered", order_id=order.id, delivery_person_id=principal.user_id)
        return self._reload(order.id, company_id)

    def fail(self, order_id: int, principal: Principal, notes: str | None = None) -> OrderOutput:
        """Record a failed attempt; the order goes back to PENDING with its delivery FAILED."""
        company_id = principal.tenant_id()
        order = self._get_order(order_id, company_id)
        if order.status == OrderStatus.DELIVERED:
            raise ValidationError(ErrorMessages.ORDER_ALREADY_DELIVERED, order_id=order_id)
        if order.status not in OrderStatus.DELIVERABLE:
            raise NotFoundError(ErrorMessages.ORDER_NOT_PENDING, order_id, company_id=company_id)

        try:
            set_order_status(order, OrderStatus.PENDING)
            delivery = self._upsert(order, principal.user_id, DeliveryStatus.FAILED)
            delivery.delivered_at = None
            delivery.notes = notes
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info("Delivery failed", order_id=order.id, delivery_person_id=principal.user_id)
        return self._reload(order.id, company_id)

    def list_today(self, principal: Principal, now: datetime | None = None) -> list[OrderOutput]:
        """PENDING and IN_DELIVERY orders whose delivery date falls on the current business day."""
        company_id = principal.tenant_id()
        start, end = day_bounds(business_date(now or utcnow()))
        orders = self._db.execute(
            order_query()
            .where(
                Order.company_id == company_id,
                Order.status.in_(OrderStatus.DELIVERABLE),
                Order.delivery_date >= start,
                Order.delivery_date < end,
            )
            .order_by(Order.created_at.asc())
        ).scalars().unique().all()
        return [order_output(o) for o in orders]

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _assign(self, order: Order, delivery_person_id: int, principal: Principal) -> None:
        """New delivery, or the order's FAILED one reopened for another attempt."""
        reused = order.delivery is not None
        delivery = reset_delivery(order, delivery_person_id)
        if reused:
            delivery.set_updated_by(principal.user_id, principal.email)
        else:
            delivery.set_created_by(principal.user_id, principal.email)

    def _upsert(self, order: Order, delivery_person_id: int, status: str) -> Delivery:
        if order.delivery is None:
            order.delivery = Delivery(delivery_person_id=delivery_person_id, status=status)
        else:
            order.delivery.delivery_person_id = delivery_person_id
            order.delivery.status = status
        return order.delivery

    def _get_order(self, order_id: int, company_id: int) -> Order:
        order = self._db.execute(
            order_query().where(Order.id == order_id, Order.company_id == company_id)
        ).scalars().unique().one_or_none()
        if order is None:
            raise NotFoundError(ErrorMessages.ORDER_NOT_FOUND, order_id, company_id=company_id)
        return order

    def _reload(self, order_id: int, company_id: int) -> OrderOutput:
        self._db.expire_all()
        return order_output(self._get_order(order_id, company_id))
