"""
Tests for customer temperature classification and vendor alerts.
"""

from datetime import datetime, timedelta, timezone

import pytest

from rest_api.services.recency import (
    alert_cutoff,
    classify_days,
    classify_recency,
    count_by_temperature,
    days_since,
    needs_attention,
)

NOW = datetime(2026, 3, 20, 15, 0, tzinfo=timezone.utc)


class TestDaysSince:
    """Whole days between the last visit and now."""

    def test_none_when_never_visited(self):
        assert days_since(None, NOW) is None

    def test_floors_partial_days(self):
        assert days_since(NOW - timedelta(days=2, hours=23), NOW) == 2

    def test_naive_timestamps_are_utc(self):
        naive = (NOW - timedelta(days=5)).replace(tzinfo=None)
        assert days_since(naive, NOW) == 5


class TestClassify:
    """Temperature thresholds."""

    @pytest.mark.parametrize(
        "days,expected",
        [
            (0, "HOT"),
            (3, "HOT"),
            (4, "WARM"),
            (7, "WARM"),
            (8, "COLD"),
            (14, "COLD"),
            (15, "FROZEN"),
            (120, "FROZEN"),
            (None, "FROZEN"),
        ],
    )
    def test_boundaries(self, days, expected):
        assert classify_days(days) == expected

    def test_classify_recency_from_timestamp(self):
        assert classify_recency(NOW - timedelta(days=6), NOW) == "WARM"
        assert classify_recency(None, NOW) == "FROZEN"

    def test_count_by_temperature_has_every_bucket(self):
        counts = count_by_temperature(
            [NOW, NOW - timedelta(days=1), NOW - timedelta(days=10), None],
            NOW,
        )
        assert counts == {"HOT": 2, "WARM": 0, "COLD": 1, "FROZEN": 1}


class TestVendorAlerts:
    """Alert rule: never visited, or last visit 15+ days ago."""

    def test_never_visited_needs_attention(self):
        assert needs_attention(None, NOW) is True

    def test_fourteen_days_is_cold_but_not_alerted(self):
        last = NOW - timedelta(days=14)
        assert classify_recency(last, NOW) == "COLD"
        assert needs_attention(last, NOW) is False

    def test_exactly_fifteen_days_is_alerted(self):
        assert needs_attention(alert_cutoff(NOW), NOW) is True

    def test_recent_visit_not_alerted(self):
        assert needs_attention(NOW - timedelta(days=2), NOW) is False
