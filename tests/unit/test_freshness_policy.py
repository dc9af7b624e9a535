"""
Unit tests for FreshnessPolicy.

Tests cover:
- Hard expiry
- Standard 90-day rule without an earnings estimate
- Earnings-driven staleness and the 120-day ceiling
- Monotonicity in entry age
"""

from datetime import timedelta

import pytest

from fincache.services.freshness import FreshnessPolicy

from tests.conftest import eastern_datetime

FAR_FUTURE = eastern_datetime(2030, 1, 1)


@pytest.fixture
def freshness() -> FreshnessPolicy:
    return FreshnessPolicy()


# =============================================================================
# RULE TESTS
# =============================================================================


class TestIsStale:
    """Tests for the individual staleness rules."""

    def test_expired_entry_is_stale(self, freshness):
        now = eastern_datetime(2024, 6, 1)

        assert freshness.is_stale(
            cached_at=now - timedelta(days=1),
            expires_at=now - timedelta(hours=1),
            next_earnings_estimate=now + timedelta(days=30),
            now=now,
        )

    def test_stale_by_earnings_scenario(self, freshness):
        """
        GIVEN an entry cached 2024-05-01 with earnings estimated 2024-05-15
        WHEN I evaluate it on 2024-06-01
        THEN it is stale because earnings were reported after it was cached
        """
        assert freshness.is_stale(
            cached_at=eastern_datetime(2024, 5, 1),
            expires_at=FAR_FUTURE,
            next_earnings_estimate=eastern_datetime(2024, 5, 15),
            now=eastern_datetime(2024, 6, 1),
        )

    def test_cached_after_estimate_stays_fresh(self, freshness):
        assert not freshness.is_stale(
            cached_at=eastern_datetime(2024, 5, 20),
            expires_at=FAR_FUTURE,
            next_earnings_estimate=eastern_datetime(2024, 5, 15),
            now=eastern_datetime(2024, 6, 1),
        )

    def test_no_estimate_uses_90_day_rule(self, freshness):
        now = eastern_datetime(2024, 6, 1)

        assert not freshness.is_stale(now - timedelta(days=80), FAR_FUTURE, None, now=now)
        assert freshness.is_stale(now - timedelta(days=91), FAR_FUTURE, None, now=now)

    def test_future_estimate_allows_up_to_120_days(self, freshness):
        """
        GIVEN an entry 100 days old whose earnings estimate is still ahead
        WHEN I evaluate it
        THEN it is fresh, since only the 120-day ceiling applies
        """
        now = eastern_datetime(2024, 6, 1)

        assert not freshness.is_stale(
            now - timedelta(days=100),
            FAR_FUTURE,
            now + timedelta(days=10),
            now=now,
        )

    @pytest.mark.parametrize(
        "estimate_offset",
        [None, timedelta(days=30), timedelta(days=-200), timedelta(days=-60)],
    )
    def test_hard_ceiling_at_120_days(self, freshness, estimate_offset):
        """
        GIVEN any earnings estimate
        WHEN an entry is more than 120 days old
        THEN it is stale
        """
        now = eastern_datetime(2024, 6, 1)
        estimate = now + estimate_offset if estimate_offset is not None else None

        assert freshness.is_stale(now - timedelta(days=121), FAR_FUTURE, estimate, now=now)

    def test_uses_clock_when_now_omitted(self, clock):
        freshness = FreshnessPolicy(clock=clock)

        assert freshness.is_stale(clock.now - timedelta(days=200), FAR_FUTURE)
        assert not freshness.is_stale(clock.now - timedelta(days=1), FAR_FUTURE)


# =============================================================================
# PROPERTY TESTS
# =============================================================================


class TestMonotonicity:
    """Staleness never flips back to fresh as an entry ages."""

    @pytest.mark.parametrize(
        "estimate",
        [None, eastern_datetime(2024, 2, 15), eastern_datetime(2024, 4, 1), eastern_datetime(2025, 1, 1)],
    )
    def test_stale_is_monotonic_in_age(self, freshness, estimate):
        cached_at = eastern_datetime(2024, 1, 10)
        expires_at = eastern_datetime(2024, 7, 1)

        seen_stale = False
        for day in range(0, 200):
            stale = freshness.is_stale(cached_at, expires_at, estimate, now=cached_at + timedelta(days=day))
            if seen_stale:
                assert stale, f"entry became fresh again on day {day}"
            seen_stale = seen_stale or stale
        assert seen_stale
