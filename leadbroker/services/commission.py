"""
Commission split calculation.

Rules:
- Commission pool: 0.3% of the loan amount
- With a referrer: referrer gets 0.1%, agent gets 0.2%
- Without a referrer: agent gets the whole pool
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from leadbroker.exceptions import CommissionInvariantError, InvalidLoanAmount

logger = logging.getLogger(__name__)

MAX_COMMISSION_RATE = Decimal("0.003")
REFERRER_RATE = Decimal("0.001")
AGENT_RATE = Decimal("0.002")

CENT = Decimal("0.01")


@dataclass(frozen=True)
class CommissionSplit:
    """Result of a commission calculation, in currency units (2 dp)."""

    max_commission: Decimal
    referrer_commission: Decimal
    agent_commission: Decimal


def parse_loan_amount(value: Any) -> Decimal:
    """Coerce a loan amount to a positive Decimal or raise InvalidLoanAmount."""
    if value is None or isinstance(value, bool):
        raise InvalidLoanAmount(f"Loan amount must be a positive number, got {value!r}")

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidLoanAmount(f"Loan amount must be a positive number, got {value!r}")

    if not amount.is_finite() or amount <= 0:
        raise InvalidLoanAmount(f"Loan amount must be a positive number, got {value!r}")

    return amount


def _to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_commission(loan_amount: Any, has_referrer: bool) -> CommissionSplit:
    """Split the commission pool for an accepted loan.

    The agent share is the pool minus the referrer share, so the two
    always add up to max_commission after rounding to cents.

    Args:
        loan_amount: Approved loan amount (Decimal, int, float or numeric string)
        has_referrer: Whether the lead has a credited referrer

    Returns:
        CommissionSplit with max, referrer and agent amounts

    Raises:
        InvalidLoanAmount: loan_amount is not a positive number
        CommissionInvariantError: the split does not add up (bug)
    """
    amount = parse_loan_amount(loan_amount)

    max_commission = _to_cents(amount * MAX_COMMISSION_RATE)
    if has_referrer:
        referrer_commission = _to_cents(amount * REFERRER_RATE)
    else:
        referrer_commission = Decimal("0.00")
    agent_commission = max_commission - referrer_commission

    split = CommissionSplit(
        max_commission=max_commission,
        referrer_commission=referrer_commission,
        agent_commission=agent_commission,
    )
    check_split(split, has_referrer)
    return split


def check_split(split: CommissionSplit, has_referrer: bool) -> None:
    """Raise CommissionInvariantError if the split breaks the ledger invariant."""
    total = split.referrer_commission + split.agent_commission
    broken = (
        total != split.max_commission
        or split.agent_commission < 0
        or split.referrer_commission < 0
        or (not has_referrer and split.referrer_commission != 0)
    )
    if broken:
        logger.critical(f"Commission invariant violated: {split} (has_referrer={has_referrer})")
        raise CommissionInvariantError(
            f"Commission split does not add up: {split.referrer_commission} + "
            f"{split.agent_commission} != {split.max_commission}"
        )
