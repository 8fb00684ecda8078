"""Business logic services."""

from leadbroker.services.commission import calculate_commission
from leadbroker.services.lead_status import authorize_transition, can_transition
from leadbroker.services.referral import resolve_referral

__all__ = [
    "authorize_transition",
    "calculate_commission",
    "can_transition",
    "resolve_referral",
]
