"""Tests for recurring payment detection."""

from datetime import date

import numpy as np
import pytest

from packages.categorization.recurrence import (
    RecurrencePatternDetector,
    amount_consistency,
    find_mode,
)


@pytest.fixture
def detector():
    return RecurrencePatternDetector()


def _series(make_txn, amounts, dates):
    return [make_txn("ACH D- GYMPASS", a, when=d) for a, d in zip(amounts, dates)]


class TestMonthly:
    def test_fixed_monthly_charge_is_recurring(self, detector, make_txn):
        txns = _series(
            make_txn,
            [-999, -999, -999],
            [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)],
        )
        result = detector.detect(txns)
        assert result.is_recurring is True
        assert result.frequency == "monthly"
        assert result.confidence >= 0.7
        assert result.day_of_month == 15
        assert result.average_amount == pytest.approx(999.0)
        assert result.is_subscription_like is True

    def test_variable_amounts_are_not_recurring(self, detector, make_txn):
        """Regular cadence alone is not enough: 2500/3200/1800 is variable spend."""
        txns = _series(
            make_txn,
            [-2500, -3200, -1800],
            [date(2024, 1, 10), date(2024, 2, 12), date(2024, 3, 11)],
        )
        result = detector.detect(txns)
        assert result.is_recurring is False
        assert result.frequency is None
        assert result.is_subscription_like is False

    def test_two_monthly_charges_are_not_enough(self, detector, make_txn):
        txns = _series(make_txn, [-499, -499], [date(2024, 1, 5), date(2024, 2, 5)])
        result = detector.detect(txns)
        assert result.is_recurring is False

    def test_input_order_does_not_matter(self, detector, make_txn):
        txns = _series(
            make_txn,
            [-999, -999, -999],
            [date(2024, 3, 15), date(2024, 1, 15), date(2024, 2, 15)],
        )
        assert detector.detect(txns).frequency == "monthly"


class TestLongerCycles:
    def test_quarterly(self, detector, make_txn):
        txns = _series(
            make_txn,
            [-1200, -1200, -1250],
            [date(2024, 1, 1), date(2024, 4, 1), date(2024, 7, 1)],
        )
        result = detector.detect(txns)
        assert result.is_recurring is True
        assert result.frequency == "quarterly"

    def test_annual_needs_only_two(self, detector, make_txn):
        txns = _series(make_txn, [-5000, -5200], [date(2023, 6, 10), date(2024, 6, 8)])
        result = detector.detect(txns)
        assert result.is_recurring is True
        assert result.frequency == "annual"

    def test_irregular_gaps(self, detector, make_txn):
        txns = _series(
            make_txn,
            [-300, -300, -300],
            [date(2024, 1, 1), date(2024, 1, 9), date(2024, 3, 20)],
        )
        assert detector.detect(txns).is_recurring is False


class TestEdgeCases:
    def test_empty_history(self, detector):
        result = detector.detect([])
        assert result.is_recurring is False
        assert result.confidence == 0.0
        assert result.transaction_count == 0

    def test_single_transaction(self, detector, make_txn):
        result = detector.detect([make_txn("X", -10)])
        assert result.is_recurring is False
        assert result.transaction_count == 1

    def test_custom_threshold(self, make_txn):
        strict = RecurrencePatternDetector(threshold=1.01)
        txns = _series(
            make_txn,
            [-999, -999, -999],
            [date(2024, 1, 15), date(2024, 2, 15), date(2024, 3, 15)],
        )
        assert strict.detect(txns).is_recurring is False


def test_find_mode_prefers_first_to_reach_top_count():
    assert find_mode([5, 7, 7, 5]) == 7
    assert find_mode([3, 4, 5]) == 3


def test_amount_consistency_bands():
    amounts = np.array([100.0, 101.0, 99.0, 120.0])
    assert amount_consistency(amounts, 0.05) == pytest.approx(0.5)
    assert amount_consistency(amounts, 0.20) == pytest.approx(1.0)
    assert amount_consistency(np.array([0.0, 0.0]), 0.05) == 0.0
