"""
Tests for dashboard and performance statistics.
"""

from datetime import timedelta

from rest_api.models import Delivery, Order, ScheduledVisit, Visit
from rest_api.services.domain import StatsService
from rest_api.services.domain.stats_service import average_minutes, conversion_rate
from shared.config.constants import DeliveryStatus, OrderStatus, Roles
from shared.utils.dates import utcnow
from tests.conftest import make_customer, make_user


def add_visit(db, customer, vendor, result="ORDER_TAKEN", when=None, amount=None):
    when = when or utcnow()
    visit = Visit(
        customer_id=customer.id,
        vendor_id=vendor.id,
        visited_at=when,
        check_in_at=when,
        check_out_at=when,
        result=result,
        order_amount=amount,
    )
    db.add(visit)
    db.flush()
    if result == "ORDER_TAKEN":
        db.add(Order(company_id=customer.company_id, customer_id=customer.id, visit_id=visit.id, amount=amount or 0))
    db.commit()
    return visit


class TestHelpers:
    def test_conversion_rate(self):
        assert conversion_rate(0, 0) == 0.0
        assert conversion_rate(1, 3) == 33.3
        assert conversion_rate(2, 2) == 100.0

    def test_average_minutes(self):
        assert average_minutes([]) is None
        assert average_minutes([timedelta(minutes=30), timedelta(minutes=60)]) == 45


class TestDashboard:
    def test_counts(self, client, db_session, company, vendor, admin_headers):
        now = utcnow()
        make_customer(db_session, company, name="Nunca")
        make_customer(db_session, company, name="Fría", last_visit_at=now - timedelta(days=20))
        hot = make_customer(db_session, company, name="Caliente")
        add_visit(db_session, hot, vendor, amount=150000)
        hot.last_visit_at = now
        db_session.add(Order(company_id=company.id, customer_id=hot.id, amount=90000, status=OrderStatus.DELIVERED))
        db_session.add(Order(company_id=company.id, customer_id=hot.id, amount=50000, status=OrderStatus.CANCELLED))
        db_session.commit()

        response = client.get("/api/dashboard", headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total_customers"] == 3
        assert data["by_temperature"] == {"HOT": 1, "WARM": 0, "COLD": 0, "FROZEN": 2}
        assert data["pending_orders"] == 1
        assert data["visits_today"] == 1
        assert data["month_revenue"] == 90000

    def test_vendor_forbidden(self, client, vendor_headers):
        assert client.get("/api/dashboard", headers=vendor_headers).status_code == 403


class TestVendorStats:
    def test_conversion_per_vendor(self, client, db_session, company, vendor, customer, admin_headers):
        add_visit(db_session, customer, vendor, amount=100000)
        add_visit(db_session, customer, vendor, result="NOT_HOME")
        idle = make_user(db_session, company, Roles.VENDOR, "quieto@test.co", name="Zoe Quieta")

        response = client.get("/api/stats/vendors", params={"days": 7}, headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["days"] == 7
        assert data["weekly_goal"] == 20

        rows = {v["vendor_id"]: v for v in data["vendors"]}
        assert rows[vendor.id]["visits"] == 2
        assert rows[vendor.id]["orders"] == 1
        assert rows[vendor.id]["amount"] == 100000
        assert rows[vendor.id]["conversion"] == 50.0
        assert rows[vendor.id]["assigned_customers"] == 1
        assert rows[idle.id]["conversion"] == 0.0
        assert sum(d["visits"] for d in data["daily_visits"]) == 2

    def test_days_out_of_range(self, client, admin_headers):
        assert client.get("/api/stats/vendors", params={"days": 0}, headers=admin_headers).status_code == 400


class TestDeliveryStats:
    def test_outcomes_for_today(self, db_session, company, delivery_user, customer):
        now = utcnow()
        for status in (DeliveryStatus.DELIVERED, DeliveryStatus.FAILED, DeliveryStatus.PENDING):
            order = Order(company_id=company.id, customer_id=customer.id, amount=1000, status=OrderStatus.IN_DELIVERY)
            db_session.add(order)
            db_session.flush()
            db_session.add(
                Delivery(
                    order_id=order.id,
                    delivery_person_id=delivery_user.id,
                    status=status,
                    delivered_at=now + timedelta(minutes=40) if status == DeliveryStatus.DELIVERED else None,
                )
            )
        db_session.commit()

        result = StatsService(db_session).delivery_stats(company.id)
        person = result.delivery_persons[0]
        assert person.delivery_person_id == delivery_user.id
        assert (person.total, person.delivered, person.failed, person.in_progress) == (3, 1, 1, 1)
        assert person.success_rate == 33
        assert 39 <= person.avg_delivery_minutes <= 41

    def test_endpoint_accepts_date(self, client, delivery_user, admin_headers):
        response = client.get("/api/stats/deliveries", params={"date": "2024-03-01"}, headers=admin_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["date"] == "2024-03-01"
        assert data["delivery_persons"][0]["total"] == 0
        assert data["delivery_persons"][0]["avg_delivery_minutes"] is None


class TestVendorApp:
    def test_stats_and_alerts(self, client, db_session, company, vendor, vendor_headers, customer):
        now = utcnow()
        stale = make_customer(
            db_session, company, name="Olvidado", assigned_vendor_id=vendor.id, last_visit_at=now - timedelta(days=16)
        )
        make_customer(
            db_session, company, name="Reciente", assigned_vendor_id=vendor.id, last_visit_at=now - timedelta(days=2)
        )
        add_visit(db_session, stale, vendor, result="NOT_HOME")
        db_session.add(ScheduledVisit(customer_id=customer.id, vendor_id=vendor.id, scheduled_for=now))
        db_session.commit()

        stats = client.get("/api/vendor/stats", headers=vendor_headers).json()
        assert stats["assigned_customers"] == 3
        assert stats["visited_today"] == 1
        # never visited + 16 days
        assert stats["pending_alerts"] == 2
        assert stats["scheduled_today"] == 1

        mine = client.get("/api/vendor/my-visits", headers=vendor_headers).json()
        assert len(mine["today"]) == 1
        assert mine["scheduled"][0]["customer_id"] == customer.id
        assert [a["id"] for a in mine["alerts"]] == [customer.id, stale.id]
        assert mine["alerts"][0]["days_since_visit"] is None

    def test_admin_cannot_use_vendor_app(self, client, admin_headers):
        assert client.get("/api/vendor/stats", headers=admin_headers).status_code == 403
