"""
Tests for the commission split.

Covers:
- 0.3% pool with and without a referrer
- Rounding to cents, shares always add up to the pool
- Rejection of non-positive and non-numeric loan amounts
"""

from decimal import Decimal

import pytest

from leadbroker.exceptions import CommissionInvariantError, InvalidLoanAmount
from leadbroker.services.commission import (
    AGENT_RATE,
    MAX_COMMISSION_RATE,
    REFERRER_RATE,
    CommissionSplit,
    calculate_commission,
    check_split,
    parse_loan_amount,
)


# ── calculate_commission ──────────────────────────────────


class TestCalculateCommission:
    def test_with_referrer_100k(self):
        """100K loan: 300 pool, 100 referrer, 200 agent."""
        split = calculate_commission(Decimal("100000"), has_referrer=True)
        assert split.max_commission == Decimal("300.00")
        assert split.referrer_commission == Decimal("100.00")
        assert split.agent_commission == Decimal("200.00")

    def test_without_referrer_agent_takes_pool(self):
        split = calculate_commission(Decimal("100000"), has_referrer=False)
        assert split.referrer_commission == Decimal("0")
        assert split.agent_commission == split.max_commission == Decimal("300.00")

    def test_accepts_numeric_strings_and_ints(self):
        assert calculate_commission("250000", True) == calculate_commission(250000, True)

    def test_accepts_float(self):
        split = calculate_commission(50000.0, True)
        assert split.max_commission == Decimal("150.00")

    def test_rounds_to_cents(self):
        split = calculate_commission(Decimal("12345.67"), has_referrer=True)
        # 37.03701 -> 37.04, 12.34567 -> 12.35
        assert split.max_commission == Decimal("37.04")
        assert split.referrer_commission == Decimal("12.35")
        assert split.agent_commission == Decimal("24.69")

    def test_rates_partition_the_pool(self):
        assert REFERRER_RATE + AGENT_RATE == MAX_COMMISSION_RATE

    @pytest.mark.parametrize(
        "loan_amount",
        ["0.01", "1", "333.33", "99999.99", "100000", "1234567.89", "987654321.55"],
    )
    def test_shares_add_up(self, loan_amount):
        with_ref = calculate_commission(loan_amount, True)
        assert with_ref.referrer_commission + with_ref.agent_commission == with_ref.max_commission

        without_ref = calculate_commission(loan_amount, False)
        assert without_ref.agent_commission == without_ref.max_commission

    @pytest.mark.parametrize("bad", [0, -1, "-100", "abc", "", None, True, "nan", "inf"])
    def test_invalid_loan_amount(self, bad):
        with pytest.raises(InvalidLoanAmount):
            calculate_commission(bad, True)


class TestParseLoanAmount:
    def test_returns_decimal(self):
        assert parse_loan_amount("1500.50") == Decimal("1500.50")

    def test_keeps_decimal_instance(self):
        value = Decimal("42")
        assert parse_loan_amount(value) is value


class TestCheckSplit:
    def test_broken_split_raises(self):
        split = CommissionSplit(
            max_commission=Decimal("300.00"),
            referrer_commission=Decimal("100.00"),
            agent_commission=Decimal("199.99"),
        )
        with pytest.raises(CommissionInvariantError):
            check_split(split, has_referrer=True)

    def test_referrer_share_without_referrer_raises(self):
        split = CommissionSplit(
            max_commission=Decimal("300.00"),
            referrer_commission=Decimal("100.00"),
            agent_commission=Decimal("200.00"),
        )
        with pytest.raises(CommissionInvariantError):
            check_split(split, has_referrer=False)
