"""
Order Request Engine - recurring order reconciliation and validation

Canonicalizes order requests persisted in any historical shape, merges the
client's last confirmed order, and validates the result against meal
allowances, vendor minimums, box quotas and box-count caps.
"""

__version__ = "0.1.0"

from . import order_request
from . import utils

__all__ = ["order_request", "utils"]
