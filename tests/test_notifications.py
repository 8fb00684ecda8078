"""
Tests for new-lead notifications.
"""

import logging
from decimal import Decimal
from types import SimpleNamespace

from leadbroker.services.notifications import (
    LoggingNotifier,
    NewLeadNotice,
    send_new_lead_notice,
)
from leadbroker.utils.formatting import format_currency


def _notice():
    agent = SimpleNamespace(id=3, phone="60123456789")
    lead = SimpleNamespace(
        unique_id="12.0.0.0",
        name="Aisyah",
        phone="60198765432",
        loan_amount=Decimal("250000"),
        new_monthly_repayment=Decimal("1234.5"),
        referrer_code=None,
    )
    return NewLeadNotice.build(agent, lead)


class _BrokenNotifier:
    async def notify_new_lead(self, notice):
        raise ConnectionError("gateway down")


def test_format_currency():
    assert format_currency(Decimal("250000")) == "RM 250,000.00"
    assert format_currency(1234.5) == "RM 1,234.50"


def test_render_includes_lead_details():
    text = _notice().render()
    assert "12.0.0.0" in text
    assert "Aisyah" in text
    assert "RM 250,000.00" in text
    assert "RM 1,234.50" in text
    assert "Referrer: -" in text


async def test_logging_notifier_logs(caplog):
    with caplog.at_level(logging.INFO, logger="leadbroker.services.notifications"):
        await LoggingNotifier().notify_new_lead(_notice())
    assert "60123456789" in caplog.text


async def test_failures_are_logged_not_raised(caplog):
    with caplog.at_level(logging.ERROR, logger="leadbroker.services.notifications"):
        await send_new_lead_notice(_BrokenNotifier(), _notice())
    assert "gateway down" in caplog.text
