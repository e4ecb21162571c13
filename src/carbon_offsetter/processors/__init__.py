from __future__ import annotations

from .eligibility import eligible_tokens
from .footprint import compute_footprint
from .formatter import format_transaction, format_transactions

__all__ = [
    "compute_footprint",
    "eligible_tokens",
    "format_transaction",
    "format_transactions",
]
