"""Utility functions."""

from leadbroker.utils.audit import get_client_ip, log_action
from leadbroker.utils.formatting import format_currency
from leadbroker.utils.password import hash_password, verify_password

__all__ = [
    "format_currency",
    "get_client_ip",
    "hash_password",
    "verify_password",
    "log_action",
]
