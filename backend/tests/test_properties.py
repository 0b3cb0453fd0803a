"""
Property-based tests with Hypothesis for the pure rules: temperature,
vendor alerts, order transitions and distances.
"""

from datetime import datetime, timedelta, timezone

from hypothesis import given, settings, strategies as st

from rest_api.services.domain.customer_service import haversine_km
from rest_api.services.plan_limits import limit_reached
from rest_api.services.recency import classify_days, classify_recency, needs_attention
from shared.config.constants import ORDER_TRANSITIONS, OrderStatus, validate_order_transition

NOW = datetime(2026, 3, 20, 15, 0, tzinfo=timezone.utc)
RANK = {"HOT": 0, "WARM": 1, "COLD": 2, "FROZEN": 3}

elapsed = st.timedeltas(min_value=timedelta(0), max_value=timedelta(days=400))
latitudes = st.floats(min_value=-90, max_value=90, allow_nan=False)
longitudes = st.floats(min_value=-180, max_value=180, allow_nan=False)


class TestTemperatureProperties:
    @given(a=st.integers(min_value=0, max_value=1000), b=st.integers(min_value=0, max_value=1000))
    def test_monotonic_in_days(self, a, b):
        """More days since the last visit never makes a customer warmer."""
        low, high = sorted((a, b))
        assert RANK[classify_days(low)] <= RANK[classify_days(high)]

    @given(delta=elapsed)
    def test_alerted_customers_are_frozen(self, delta):
        last = NOW - delta
        if needs_attention(last, NOW):
            assert classify_recency(last, NOW) == "FROZEN"

    @given(delta=elapsed)
    def test_naive_and_aware_agree(self, delta):
        last = NOW - delta
        assert classify_recency(last.replace(tzinfo=None), NOW) == classify_recency(last, NOW)


class TestTransitionProperties:
    @given(new_status=st.sampled_from(OrderStatus.ALL))
    def test_delivered_is_terminal(self, new_status):
        assert validate_order_transition(OrderStatus.DELIVERED, new_status) is False

    @given(status=st.sampled_from(OrderStatus.ALL))
    def test_no_self_transitions(self, status):
        assert validate_order_transition(status, status) is False

    def test_every_status_has_an_entry(self):
        assert set(ORDER_TRANSITIONS) == set(OrderStatus.ALL)


class TestDistanceProperties:
    @given(lat1=latitudes, lng1=longitudes, lat2=latitudes, lng2=longitudes)
    @settings(max_examples=200)
    def test_symmetric_and_bounded(self, lat1, lng1, lat2, lng2):
        there = haversine_km(lat1, lng1, lat2, lng2)
        back = haversine_km(lat2, lng2, lat1, lng1)
        assert abs(there - back) < 1e-6
        # Half the circumference of the earth
        assert 0 <= there <= 20_016

    @given(lat=latitudes, lng=longitudes)
    def test_zero_to_itself(self, lat, lng):
        assert haversine_km(lat, lng, lat, lng) < 1e-9


class TestPlanLimitProperties:
    @given(count=st.integers(min_value=0, max_value=10_000))
    def test_unlimited_never_reached(self, count):
        assert limit_reached(count, -1) is False

    @given(count=st.integers(min_value=0, max_value=500), maximum=st.integers(min_value=0, max_value=500))
    def test_reached_at_max(self, count, maximum):
        assert limit_reached(count, maximum) is (count >= maximum)
