from __future__ import annotations

from .explorer import ExplorerClient
from .history import (
    ExplorerHistoryProvider,
    TransactionHistory,
    TransactionHistoryProvider,
)
from .settlement import SettlementContract, TransactionHandle

__all__ = [
    "ExplorerClient",
    "ExplorerHistoryProvider",
    "SettlementContract",
    "TransactionHandle",
    "TransactionHistory",
    "TransactionHistoryProvider",
]
