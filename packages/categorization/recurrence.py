"""Recurring payment detection for a single merchant's history.

Statistical heuristic over day gaps and amounts. A single transaction is never
recurring and monthly needs at least three. Variable-amount series with a regular
cadence (fuel, groceries) are kept out of the monthly verdict by the
subscription-like gate.
"""

from collections import Counter
from dataclasses import asdict, dataclass
from datetime import date
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

MONTHLY_GAP = (28, 35)
QUARTERLY_GAP = (85, 95)
ANNUAL_GAP = (355, 375)

DEFAULT_THRESHOLD = 0.7
STRICT_TOLERANCE = 0.05
LOOSE_TOLERANCE = 0.20
DAY_TOLERANCE = 3
# Share of amounts inside the strict band for a series to count as a subscription
SUBSCRIPTION_STRICT_RATIO = 0.8
MIN_MONTHLY_OCCURRENCES = 3
# Share of gaps that must fall in the monthly window
MIN_MONTHLY_INTERVAL_RATIO = 0.5
MIN_OCCURRENCES = 2


@dataclass
class RecurrencePattern:
    is_recurring: bool
    frequency: Optional[str] = None
    average_amount: float = 0.0
    confidence: float = 0.0
    day_of_month: Optional[int] = None
    is_subscription_like: bool = False
    transaction_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def find_mode(values: Sequence[int]) -> int:
    """Most common value; ties go to the value that reached the top count first."""
    counts: Counter = Counter()
    best, best_count = values[0], 0
    for value in values:
        counts[value] += 1
        if counts[value] > best_count:
            best, best_count = value, counts[value]
    return best


def _ratio_in(gaps: np.ndarray, window: Tuple[int, int]) -> float:
    if gaps.size == 0:
        return 0.0
    low, high = window
    return float(np.count_nonzero((gaps >= low) & (gaps <= high)) / gaps.size)


def amount_consistency(amounts: np.ndarray, tolerance: float) -> float:
    """Fraction of amounts within ``tolerance`` of the mean."""
    mean = float(amounts.mean())
    if mean == 0:
        return 0.0
    within = np.abs(amounts - mean) / mean <= tolerance
    return float(np.count_nonzero(within) / amounts.size)


class RecurrencePatternDetector:
    """Classifies a merchant's transactions as monthly, quarterly or annual.

    Takes any objects with ``date`` and ``amount`` attributes. Subscription
    series weight amount stability heavily (0.3 cadence, 0.3 day of month,
    0.4 strict amount band); variable series weight cadence (0.5 cadence,
    0.3 day of month, 0.2 loose amount band).
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        strict_tolerance: float = STRICT_TOLERANCE,
        loose_tolerance: float = LOOSE_TOLERANCE,
        day_tolerance: int = DAY_TOLERANCE,
    ):
        self.threshold = threshold
        self.strict_tolerance = strict_tolerance
        self.loose_tolerance = loose_tolerance
        self.day_tolerance = day_tolerance

    def detect(self, transactions: Sequence[Any]) -> RecurrencePattern:
        count = len(transactions)
        if count < MIN_OCCURRENCES:
            return RecurrencePattern(is_recurring=False, transaction_count=count)

        ordered = sorted(transactions, key=lambda t: t.date)
        dates = [t.date for t in ordered]
        ordinals = np.array([d.toordinal() for d in dates], dtype=np.int64)
        amounts = np.abs(np.array([t.amount for t in ordered], dtype=float))
        gaps = np.diff(ordinals)

        average = float(amounts.mean())
        strict = amount_consistency(amounts, self.strict_tolerance)
        loose = amount_consistency(amounts, self.loose_tolerance)
        subscription_like = strict >= SUBSCRIPTION_STRICT_RATIO

        monthly = self._monthly(dates, gaps, strict, loose, subscription_like)
        if monthly is not None:
            confidence, day = monthly
            return RecurrencePattern(
                is_recurring=True,
                frequency="monthly",
                average_amount=average,
                confidence=confidence,
                day_of_month=day,
                is_subscription_like=subscription_like,
                transaction_count=count,
            )

        for frequency, window in (("quarterly", QUARTERLY_GAP), ("annual", ANNUAL_GAP)):
            confidence = _ratio_in(gaps, window) * 0.6 + loose * 0.4
            if confidence >= self.threshold:
                return RecurrencePattern(
                    is_recurring=True,
                    frequency=frequency,
                    average_amount=average,
                    confidence=confidence,
                    is_subscription_like=subscription_like,
                    transaction_count=count,
                )

        return RecurrencePattern(
            is_recurring=False,
            average_amount=average,
            is_subscription_like=subscription_like,
            transaction_count=count,
        )

    def _monthly(
        self,
        dates: Sequence[date],
        gaps: np.ndarray,
        strict: float,
        loose: float,
        subscription_like: bool,
    ) -> Optional[Tuple[float, int]]:
        interval_ratio = _ratio_in(gaps, MONTHLY_GAP)
        days = np.array([d.day for d in dates])
        mode = find_mode(days.tolist())
        day_consistency = float(
            np.count_nonzero(np.abs(days - mode) <= self.day_tolerance) / days.size
        )

        if subscription_like:
            confidence = interval_ratio * 0.3 + day_consistency * 0.3 + strict * 0.4
        else:
            confidence = interval_ratio * 0.5 + day_consistency * 0.3 + loose * 0.2

        if len(dates) < MIN_MONTHLY_OCCURRENCES or not subscription_like:
            return None
        if interval_ratio < MIN_MONTHLY_INTERVAL_RATIO:
            return None
        if confidence < self.threshold:
            return None
        return confidence, mode
