"""
Stats Service.

Read-only aggregates for the admin dashboard and the vendor app.

- dashboard: customer temperature buckets, pending orders, today's visits, month revenue
- vendor performance: visits, orders and conversion per vendor over N days
- delivery performance: outcome counts and average time per delivery person for a day
- vendor app: the caller's own counters, today's visits and alerts

Calendar boundaries ("today", "this month") follow the business timezone.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import date, datetime, timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, joinedload

from rest_api.models import Company, Customer, Delivery, Order, ScheduledVisit, User, Visit
from rest_api.services.domain.visit_service import scheduled_visit_output
from rest_api.services.recency import alert_cutoff, count_by_temperature, days_since
from shared.config.constants import (
    DeliveryStatus,
    Limits,
    OrderStatus,
    Roles,
)
from shared.config.logging import get_logger
from shared.utils.dates import (
    as_utc,
    business_date,
    day_bounds,
    start_of_day,
    start_of_month,
    utcnow,
)
from shared.utils.schemas import (
    CustomerAlert,
    DailyVisits,
    DashboardOutput,
    DeliveryPerformance,
    DeliveryStatsOutput,
    MyVisitsOutput,
    TemperatureCounts,
    VendorAppStats,
    VendorPerformance,
    VendorStatsOutput,
    VisitOutput,
)

logger = get_logger(__name__)


def conversion_rate(orders: int, visits: int) -> float:
    """Percentage of visits that produced an order, one decimal."""
    if visits == 0:
        return 0.0
    return round(orders / visits * 100, 1)


def average_minutes(durations: list[timedelta]) -> int | None:
    if not durations:
        return None
    total = sum(d.total_seconds() for d in durations)
    return round(total / len(durations) / 60)


class StatsService:
    """Service for dashboard and performance statistics."""

    def __init__(self, db: Session):
        self._db = db

    # =========================================================================
    # Admin dashboard
    # =========================================================================

    def dashboard(self, company_id: int, now: datetime | None = None) -> DashboardOutput:
        now = now or utcnow()

        last_visits = self._db.execute(
            select(Customer.last_visit_at).where(
                Customer.company_id == company_id,
                Customer.is_active.is_(True),
            )
        ).scalars().all()

        pending_orders = self._db.scalar(
            select(func.count(Order.id)).where(
                Order.company_id == company_id,
                Order.status == OrderStatus.PENDING,
            )
        )

        visits_today = self._db.scalar(
            select(func.count(Visit.id))
            .join(Customer, Customer.id == Visit.customer_id)
            .where(
                Customer.company_id == company_id,
                Visit.visited_at >= start_of_day(now),
            )
        )

        month_revenue = self._db.scalar(
            select(func.coalesce(func.sum(Order.amount), 0)).where(
                Order.company_id == company_id,
                Order.status.in_(OrderStatus.REVENUE),
                Order.created_at >= start_of_month(now),
            )
        )

        return DashboardOutput(
            total_customers=len(last_visits),
            by_temperature=TemperatureCounts(**count_by_temperature(last_visits, now)),
            pending_orders=pending_orders or 0,
            visits_today=visits_today or 0,
            month_revenue=int(month_revenue or 0),
        )

    # =========================================================================
    # Vendor performance
    # =========================================================================

    def vendor_stats(
        self,
        company_id: int,
        days: int = Limits.DEFAULT_STATS_DAYS,
        now: datetime | None = None,
    ) -> VendorStatsOutput:
        now = now or utcnow()
        since = now - timedelta(days=days)

        vendors = self._db.execute(
            select(User.id, User.name)
            .where(
                User.company_id == company_id,
                User.role == Roles.VENDOR,
                User.is_active.is_(True),
            )
            .order_by(User.name.asc())
        ).all()

        assigned = dict(
            self._db.execute(
                select(Customer.assigned_vendor_id, func.count(Customer.id))
                .where(
                    Customer.company_id == company_id,
                    Customer.is_active.is_(True),
                    Customer.assigned_vendor_id.is_not(None),
                )
                .group_by(Customer.assigned_vendor_id)
            ).all()
        )

        visits = dict(
            self._db.execute(
                select(Visit.vendor_id, func.count(Visit.id))
                .join(User, User.id == Visit.vendor_id)
                .where(User.company_id == company_id, Visit.visited_at >= since)
                .group_by(Visit.vendor_id)
            ).all()
        )

        orders = {
            vendor_id: (count, int(amount or 0))
            for vendor_id, count, amount in self._db.execute(
                select(Visit.vendor_id, func.count(Order.id), func.sum(Order.amount))
                .join(Visit, Visit.id == Order.visit_id)
                .where(Order.company_id == company_id, Order.created_at >= since)
                .group_by(Visit.vendor_id)
            ).all()
        }

        performance = []
        for vendor_id, name in vendors:
            visit_count = visits.get(vendor_id, 0)
            order_count, amount = orders.get(vendor_id, (0, 0))
            performance.append(
                VendorPerformance(
                    vendor_id=vendor_id,
                    name=name,
                    assigned_customers=assigned.get(vendor_id, 0),
                    visits=visit_count,
                    orders=order_count,
                    amount=amount,
                    conversion=conversion_rate(order_count, visit_count),
                )
            )

        weekly_goal = self._db.scalar(
            select(Company.weekly_visit_goal).where(Company.id == company_id)
        )

        return VendorStatsOutput(
            days=days,
            vendors=performance,
            daily_visits=self._daily_visits(company_id, now),
            weekly_goal=weekly_goal or 0,
        )

    def _daily_visits(self, company_id: int, now: datetime) -> list[DailyVisits]:
        """Visits per business day over the trailing window, oldest first, empty days omitted."""
        since = now - timedelta(days=Limits.DAILY_VISITS_WINDOW_DAYS)
        timestamps = self._db.execute(
            select(Visit.visited_at)
            .join(User, User.id == Visit.vendor_id)
            .where(User.company_id == company_id, Visit.visited_at >= since)
        ).scalars().all()

        per_day = Counter(business_date(as_utc(ts)) for ts in timestamps)
        return [DailyVisits(date=day, visits=n) for day, n in sorted(per_day.items())]

    # =========================================================================
    # Delivery performance
    # =========================================================================

    def delivery_stats(self, company_id: int, day: date | None = None) -> DeliveryStatsOutput:
        """Per delivery person outcomes for deliveries assigned on `day`."""
        day = day or business_date()
        start, end = day_bounds(day)

        people = self._db.execute(
            select(User.id, User.name)
            .where(
                User.company_id == company_id,
                User.role == Roles.DELIVERY,
                User.is_active.is_(True),
            )
            .order_by(User.name.asc())
        ).all()

        deliveries = self._db.execute(
            select(Delivery)
            .join(User, User.id == Delivery.delivery_person_id)
            .where(
                User.company_id == company_id,
                Delivery.created_at >= start,
                Delivery.created_at < end,
            )
        ).scalars().all()

        by_person: dict[int, list[Delivery]] = defaultdict(list)
        for delivery in deliveries:
            by_person[delivery.delivery_person_id].append(delivery)

        stats = []
        for person_id, name in people:
            rows = by_person.get(person_id, [])
            total = len(rows)
            delivered = [d for d in rows if d.status == DeliveryStatus.DELIVERED]
            durations = [
                as_utc(d.delivered_at) - as_utc(d.created_at)
                for d in delivered
                if d.delivered_at is not None
            ]
            stats.append(
                DeliveryPerformance(
                    delivery_person_id=person_id,
                    name=name,
                    total=total,
                    delivered=len(delivered),
                    failed=sum(1 for d in rows if d.status == DeliveryStatus.FAILED),
                    in_progress=sum(1 for d in rows if d.status == DeliveryStatus.PENDING),
                    success_rate=round(len(delivered) / total * 100) if total else 0,
                    avg_delivery_minutes=average_minutes(durations),
                )
            )

        return DeliveryStatsOutput(date=day, delivery_persons=stats)

    # =========================================================================
    # Vendor app
    # =========================================================================

    def vendor_app_stats(self, vendor_id: int, company_id: int, now: datetime | None = None) -> VendorAppStats:
        now = now or utcnow()
        today_start = start_of_day(now)
        day_start, day_end = day_bounds(business_date(now))

        assigned_customers = self._db.scalar(
            select(func.count(Customer.id)).where(
                Customer.company_id == company_id,
                Customer.assigned_vendor_id == vendor_id,
                Customer.is_active.is_(True),
            )
        )
        visited_today = self._db.scalar(
            select(func.count(Visit.id)).where(
                Visit.vendor_id == vendor_id,
                Visit.check_out_at >= today_start,
                Visit.result.is_not(None),
            )
        )
        pending_alerts = self._db.scalar(
            select(func.count(Customer.id)).where(*self._alert_filter(vendor_id, company_id, now))
        )
        scheduled_today = self._db.scalar(
            select(func.count(ScheduledVisit.id)).where(
                ScheduledVisit.vendor_id == vendor_id,
                ScheduledVisit.completed.is_(False),
                ScheduledVisit.scheduled_for >= day_start,
                ScheduledVisit.scheduled_for < day_end,
            )
        )

        return VendorAppStats(
            assigned_customers=assigned_customers or 0,
            visited_today=visited_today or 0,
            pending_alerts=pending_alerts or 0,
            scheduled_today=scheduled_today or 0,
        )

    def my_visits(self, vendor_id: int, company_id: int, now: datetime | None = None) -> MyVisitsOutput:
        """Today's completed visits, pending scheduled visits and customers needing attention."""
        now = now or utcnow()

        today = self._db.execute(
            select(Visit)
            .where(
                Visit.vendor_id == vendor_id,
                Visit.check_out_at >= start_of_day(now),
                Visit.result.is_not(None),
            )
            .order_by(Visit.check_out_at.desc())
        ).scalars().all()

        scheduled = self._db.execute(
            select(ScheduledVisit)
            .options(joinedload(ScheduledVisit.customer))
            .where(
                ScheduledVisit.vendor_id == vendor_id,
                ScheduledVisit.completed.is_(False),
            )
            .order_by(ScheduledVisit.scheduled_for.asc())
        ).scalars().all()

        alerts = self._db.execute(
            select(Customer)
            .where(*self._alert_filter(vendor_id, company_id, now))
            .order_by(Customer.last_visit_at.asc().nulls_first(), Customer.name.asc())
        ).scalars().all()

        return MyVisitsOutput(
            today=[VisitOutput.model_validate(v) for v in today],
            scheduled=[scheduled_visit_output(sv) for sv in scheduled],
            alerts=[
                CustomerAlert(
                    id=c.id,
                    name=c.name,
                    address=c.address,
                    lat=c.lat,
                    lng=c.lng,
                    last_visit_at=c.last_visit_at,
                    days_since_visit=days_since(c.last_visit_at, now),
                )
                for c in alerts
            ],
        )

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _alert_filter(self, vendor_id: int, company_id: int, now: datetime) -> tuple:
        """Assigned, active and never visited or not visited within VENDOR_ALERT_DAYS."""
        return (
            Customer.company_id == company_id,
            Customer.assigned_vendor_id == vendor_id,
            Customer.is_active.is_(True),
            or_(
                Customer.last_visit_at.is_(None),
                Customer.last_visit_at <= alert_cutoff(now),
            ),
        )
