"""
Order Service.

Admin side of the order lifecycle: listing, approval, cancellation,
rescheduling and (re)assignment to a delivery person. Every status write is
checked against ORDER_TRANSITIONS.

Usage:
    service = OrderService(db, notifier)
    order = service.update(order_id, principal, fields_set, action="approve")
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload, selectinload

from rest_api.models import Delivery, Order, User, Visit
from rest_api.services.notifications import PushNotifier
from shared.config.constants import (
    DeliveryStatus,
    ErrorMessages,
    OrderStatus,
    PushType,
    Roles,
    validate_order_transition,
)
from shared.config.logging import get_logger
from shared.security.auth import Principal
from shared.utils.dates import as_utc
from shared.utils.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from shared.utils.schemas import DeliveryOutput, OrderOutput

logger = get_logger(__name__)


def delivery_output(delivery: Delivery) -> DeliveryOutput:
    return DeliveryOutput(
        id=delivery.id,
        order_id=delivery.order_id,
        delivery_person_id=delivery.delivery_person_id,
        delivery_person_name=delivery.delivery_person.name if delivery.delivery_person else None,
        status=delivery.status,
        delivered_at=delivery.delivered_at,
        notes=delivery.notes,
        created_at=delivery.created_at,
    )


def order_output(order: Order) -> OrderOutput:
    customer = order.customer
    vendor = order.visit.vendor if order.visit is not None else None
    return OrderOutput(
        id=order.id,
        company_id=order.company_id,
        customer_id=order.customer_id,
        customer_name=customer.name if customer else None,
        customer_address=customer.address if customer else None,
        customer_phone=customer.phone if customer else None,
        customer_lat=customer.lat if customer else None,
        customer_lng=customer.lng if customer else None,
        visit_id=order.visit_id,
        vendor_name=vendor.name if vendor else None,
        amount=order.amount,
        status=order.status,
        delivery_date=order.delivery_date,
        notes=order.notes,
        invoice_number=order.invoice_number,
        created_at=order.created_at,
        delivery=delivery_output(order.delivery) if order.delivery else None,
    )


def order_query():
    """Order select with everything order_output() touches eagerly loaded."""
    return select(Order).options(
        joinedload(Order.customer),
        joinedload(Order.visit).joinedload(Visit.vendor),
        selectinload(Order.delivery).joinedload(Delivery.delivery_person),
    )


def reset_delivery(order: Order, delivery_person_id: int) -> Delivery:
    """Point the order's delivery at delivery_person_id as a fresh PENDING attempt."""
    if order.delivery is None:
        order.delivery = Delivery(delivery_person_id=delivery_person_id, status=DeliveryStatus.PENDING)
    else:
        order.delivery.delivery_person_id = delivery_person_id
        order.delivery.status = DeliveryStatus.PENDING
        order.delivery.delivered_at = None
        order.delivery.notes = None
    return order.delivery


def without_active_delivery():
    """No delivery record, or only a FAILED one: the order can be (re)assigned."""
    return ~Order.delivery.has(Delivery.status != DeliveryStatus.FAILED)


def set_order_status(order: Order, new_status: str) -> None:
    """Move an order to new_status; staying in the same status is a no-op."""
    if order.status == new_status:
        return
    if not validate_order_transition(order.status, new_status):
        raise InvalidTransitionError("pedido", order.status, new_status, order_id=order.id)
    order.status = new_status


def get_delivery_person(db: Session, user_id: int, company_id: int) -> User:
    person = db.scalar(
        select(User).where(
            User.id == user_id,
            User.company_id == company_id,
            User.role == Roles.DELIVERY,
            User.is_active.is_(True),
        )
    )
    if person is None:
        raise NotFoundError(ErrorMessages.DELIVERY_PERSON_NOT_FOUND, user_id, company_id=company_id)
    return person


class OrderService:
    """
    Service for admin order management.

    Business rules:
    - DELIVERED orders are read-only
    - approve is only valid from PENDING_REVIEW
    - assigning a delivery person puts the order IN_DELIVERY and resets the
      delivery record; unassigning sends it back to PENDING without one
    - rescheduling a CANCELLED order reactivates it as PENDING
    """

    def __init__(self, db: Session, notifier: PushNotifier | None = None):
        self._db = db
        self._notifier = notifier

    # =========================================================================
    # Query Methods
    # =========================================================================

    def list_all(self, company_id: int, status: str | None = None) -> list[OrderOutput]:
        query = order_query().where(Order.company_id == company_id)
        if status:
            query = query.where(Order.status == status)
        query = query.order_by(Order.created_at.desc(), Order.id.desc())
        return [order_output(o) for o in self._db.execute(query).scalars().unique().all()]

    def list_unassigned(
        self,
        company_id: int,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        min_amount: int | None = None,
    ) -> list[OrderOutput]:
        """PENDING orders with no live delivery, filterable by creation date and amount."""
        query = order_query().where(
            Order.company_id == company_id,
            Order.status == OrderStatus.PENDING,
            without_active_delivery(),
        )
        if date_from is not None:
            query = query.where(Order.created_at >= as_utc(date_from))
        if date_to is not None:
            query = query.where(Order.created_at <= as_utc(date_to))
        if min_amount is not None:
            query = query.where(Order.amount >= min_amount)

        query = query.order_by(Order.delivery_date.asc().nulls_last(), Order.created_at.desc())
        return [order_output(o) for o in self._db.execute(query).scalars().unique().all()]

    def get_by_id(self, order_id: int, company_id: int) -> OrderOutput:
        return order_output(self._get_entity(order_id, company_id))

    # =========================================================================
    # Command Methods
    # =========================================================================

    def update(
        self,
        order_id: int,
        principal: Principal,
        fields_set: set[str],
        *,
        action: str | None = None,
        delivery_date: datetime | None = None,
        delivery_person_id: int | None = None,
    ) -> OrderOutput:
        """
        Apply an admin edit.

        fields_set is the request's model_fields_set: a field listed there
        with value None means "clear it", a field missing means "leave it".
        """
        company_id = principal.tenant_id()
        changes_date = "delivery_date" in fields_set
        changes_person = "delivery_person_id" in fields_set
        if action is None and not changes_date and not changes_person:
            raise ValidationError(ErrorMessages.NO_CHANGES, order_id=order_id)

        order = self._get_entity(order_id, company_id)
        if order.status == OrderStatus.DELIVERED:
            raise ValidationError(ErrorMessages.ORDER_ALREADY_DELIVERED, order_id=order_id)

        person = None
        if changes_person and delivery_person_id is not None:
            person = get_delivery_person(self._db, delivery_person_id, company_id)

        try:
            if action == "approve":
                if order.status != OrderStatus.PENDING_REVIEW:
                    raise ValidationError(ErrorMessages.ORDER_NOT_IN_REVIEW, order_id=order_id)
                set_order_status(order, OrderStatus.PENDING)
            elif action == "cancel":
                set_order_status(order, OrderStatus.CANCELLED)
                self._remove_delivery(order)

            if changes_date:
                order.delivery_date = as_utc(delivery_date)

            if person is not None:
                set_order_status(order, OrderStatus.IN_DELIVERY)
                reset_delivery(order, person.id)
            elif changes_person:
                set_order_status(order, OrderStatus.PENDING)
                self._remove_delivery(order)
            elif action is None and order.status == OrderStatus.CANCELLED:
                set_order_status(order, OrderStatus.PENDING)

            order.set_updated_by(principal.user_id, principal.email)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

        logger.info(
            "Order updated",
            order_id=order.id,
            status=order.status,
            action=action,
            delivery_person_id=person.id if person else None,
        )

        if person is not None and self._notifier is not None:
            self._notifier.notify(
                person.push_token,
                "Entrega asignada",
                "Se te asignó un pedido para entregar.",
                {"type": PushType.DELIVERY_ASSIGNED, "orderId": order.id},
            )

        self._db.expire_all()
        return self.get_by_id(order_id, company_id)

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _remove_delivery(self, order: Order) -> None:
        if order.delivery is not None:
            order.delivery = None
            self._db.flush()

    def _get_entity(self, order_id: int, company_id: int) -> Order:
        order = self._db.execute(
            order_query().where(Order.id == order_id, Order.company_id == company_id)
        ).scalars().unique().one_or_none()
        if order is None:
            raise NotFoundError(ErrorMessages.ORDER_NOT_FOUND, order_id, company_id=company_id)
        return order
