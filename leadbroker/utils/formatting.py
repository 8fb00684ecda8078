"""
Display formatting helpers.
"""

from decimal import Decimal, InvalidOperation
from typing import Any


def format_currency(value: Any, currency: str = "RM") -> str:
    """
    Format an amount as Malaysian ringgit.

    Examples:
        250000 -> RM 250,000.00
        None   -> RM 0.00
    """
    try:
        amount = Decimal(str(value)) if value is not None else Decimal("0")
    except (InvalidOperation, ValueError):
        amount = Decimal("0")

    if not amount.is_finite():
        amount = Decimal("0")

    return f"{currency} {amount:,.2f}"
