"""Earnings-aware freshness policy for cached financial data."""

from datetime import datetime, timedelta
from typing import Callable, Optional

from fincache.core.timezone import now_eastern
from fincache.domain.models import CacheEntry

STANDARD_MAX_AGE = timedelta(days=90)
ABSOLUTE_MAX_AGE = timedelta(days=120)
EARNINGS_GRACE_PERIOD = timedelta(days=7)


class FreshnessPolicy:
    """
    Decides whether a cached record can still be served.

    Hard expiry and the earnings estimate are independent triggers: either can
    make an entry stale, and an entry is fresh only if it passes every check.
    """

    def __init__(self, clock: Callable[[], datetime] = now_eastern):
        self._clock = clock

    def is_stale(
        self,
        cached_at: datetime,
        expires_at: datetime,
        next_earnings_estimate: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        now = now or self._clock()

        if now > expires_at:
            return True

        if next_earnings_estimate is None:
            return now - cached_at > STANDARD_MAX_AGE

        # Earnings were (probably) reported after this data was cached
        if now > next_earnings_estimate and cached_at < next_earnings_estimate:
            return True

        if now > next_earnings_estimate + EARNINGS_GRACE_PERIOD and cached_at < next_earnings_estimate:
            return True

        return now - cached_at > ABSOLUTE_MAX_AGE

    def is_fresh(self, entry: CacheEntry, now: Optional[datetime] = None) -> bool:
        metadata = entry.metadata
        return not self.is_stale(
            metadata.cached_at,
            metadata.expires_at,
            metadata.next_earnings_estimate,
            now=now,
        )

    def is_expired(self, entry: CacheEntry, now: Optional[datetime] = None) -> bool:
        """Hard expiry only, ignoring the earnings estimate."""
        now = now or self._clock()
        return now > entry.metadata.expires_at
