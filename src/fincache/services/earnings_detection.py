"""
Earnings pattern detection from historical filing dates.

Infers a quarterly reporting cadence, estimates the next filing date and
scores how much that estimate can be trusted.
"""

import calendar
import math
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from dateutil.relativedelta import relativedelta

from fincache.core.timezone import localize_naive, now_eastern, try_parse_datetime_eastern
from fincache.domain.models import DetectionMethod, EarningsDetectionResult

# Typical delay between quarter end and the filing (days). Q4 is the annual report.
EARNINGS_REPORT_DELAYS = {1: 45, 2: 45, 3: 45, 4: 90}

QUARTERLY_INTERVAL_DAYS = (80, 100)
QUARTERLY_SHARE = 0.75
SINGLE_DATE_CONFIDENCE = 0.3
HIGH_VARIABILITY_DAYS = 30
RECENT_DATA_DAYS = 120

EARNINGS_SEASON_START_DAYS = 15
EARNINGS_SEASON_END_DAYS = 60


def get_quarter(dt: datetime) -> int:
    """Return the calendar quarter (1-4) of a date."""
    return (dt.month - 1) // 3 + 1


def quarter_end_date(quarter: int, year: int) -> datetime:
    """Return the last day of a calendar quarter as an Eastern midnight."""
    month = quarter * 3
    last_day = calendar.monthrange(year, month)[1]
    return localize_naive(datetime(year, month, last_day))


def is_earnings_season(dt: datetime) -> bool:
    """
    Check whether a date falls in the reporting window of the last completed quarter.

    The window opens 15 days and closes 60 days after that quarter's end.
    """
    quarter = get_quarter(dt)
    year = dt.year
    if quarter == 1:
        quarter, year = 4, year - 1
    else:
        quarter -= 1

    quarter_end = quarter_end_date(quarter, year).replace(tzinfo=None)
    day = dt.replace(tzinfo=None)
    start = quarter_end + timedelta(days=EARNINGS_SEASON_START_DAYS)
    end = quarter_end + timedelta(days=EARNINGS_SEASON_END_DAYS + 1)
    return start <= day < end


def _parse_dates(dates: Iterable[object]) -> list[datetime]:
    parsed = [try_parse_datetime_eastern(d) for d in dates]
    return sorted(d for d in parsed if d is not None)


def _intervals(dates: list[datetime]) -> list[int]:
    return [
        round((later - earlier).total_seconds() / 86400)
        for earlier, later in zip(dates, dates[1:])
    ]


def _is_quarterly(intervals: list[int]) -> bool:
    if len(intervals) < 2:
        return False
    low, high = QUARTERLY_INTERVAL_DAYS
    quarterly = [i for i in intervals if low <= i <= high]
    return len(quarterly) / len(intervals) >= QUARTERLY_SHARE


def _std_dev(values: list[int]) -> float:
    mean = sum(values) / len(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


class EarningsPatternAnalyzer:
    """Detects quarterly filing cadence and predicts the next earnings date."""

    def __init__(self, clock: Callable[[], datetime] = now_eastern):
        self._clock = clock

    def detect_pattern(self, dates: Iterable[object]) -> EarningsDetectionResult:
        """
        Classify the filing cadence of a set of date strings.

        Unparseable dates are dropped. With no usable date the result has
        confidence 0 and method UNKNOWN; a single date is reported with
        confidence 0.3 and no quarterly pattern.
        """
        parsed = _parse_dates(dates)
        if not parsed:
            return EarningsDetectionResult(confidence=0.0, method=DetectionMethod.UNKNOWN)

        last = parsed[-1]
        if len(parsed) < 2:
            return EarningsDetectionResult(
                confidence=SINGLE_DATE_CONFIDENCE,
                method=DetectionMethod.PATTERN,
                last_earnings_date=last,
                quarterly_pattern=False,
            )

        intervals = _intervals(parsed)
        quarterly = _is_quarterly(intervals)
        return EarningsDetectionResult(
            confidence=self._confidence(parsed, intervals, quarterly),
            method=DetectionMethod.PATTERN,
            last_earnings_date=last,
            quarterly_pattern=quarterly,
        )

    def estimate_next_date(self, last_date: str, pattern_confirmed: bool) -> Optional[datetime]:
        """
        Estimate the next filing date after last_date.

        With a confirmed quarterly pattern this is the end of the following
        quarter plus the usual reporting delay; otherwise last_date + 3 months.
        """
        parsed = try_parse_datetime_eastern(last_date)
        if parsed is None:
            return None

        if not pattern_confirmed:
            return localize_naive(parsed.replace(tzinfo=None) + relativedelta(months=3))

        quarter = get_quarter(parsed)
        year = parsed.year
        if quarter == 4:
            next_quarter, year = 1, year + 1
        else:
            next_quarter = quarter + 1

        quarter_end = quarter_end_date(next_quarter, year).replace(tzinfo=None)
        return localize_naive(quarter_end + timedelta(days=EARNINGS_REPORT_DELAYS[next_quarter]))

    def analyze(self, dates: Iterable[object]) -> EarningsDetectionResult:
        """Detect the pattern and attach the next-date estimate."""
        result = self.detect_pattern(dates)
        if result.last_earnings_date is None:
            return result

        result.next_earnings_date = self.estimate_next_date(
            result.last_earnings_date.isoformat(),
            bool(result.quarterly_pattern),
        )
        return result

    def _confidence(self, parsed: list[datetime], intervals: list[int], quarterly: bool) -> float:
        confidence = 0.5

        if len(parsed) >= 4:
            confidence += 0.2
        if len(parsed) >= 8:
            confidence += 0.1
        if quarterly:
            confidence += 0.2
        if intervals and _std_dev(intervals) > HIGH_VARIABILITY_DAYS:
            confidence -= 0.2

        days_since_recent = (self._clock() - parsed[-1]).total_seconds() / 86400
        if days_since_recent <= RECENT_DATA_DAYS:
            confidence += 0.1

        return max(0.0, min(1.0, round(confidence, 6)))
