"""Service layer - freshness rules, earnings detection and cache orchestration."""

from fincache.services.freshness import FreshnessPolicy
from fincache.services.earnings_detection import EarningsPatternAnalyzer

__all__ = [
    "FreshnessPolicy",
    "EarningsPatternAnalyzer",
]
