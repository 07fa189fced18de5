"""
Repository layer for data access
"""
from analytics_dashboard.repositories.prompt_history_repository import (
    HistoryOwnershipError,
    PromptHistoryRepository,
    to_naive_utc,
)
from analytics_dashboard.repositories.transaction_repository import TransactionRepository

__all__ = [
    "HistoryOwnershipError",
    "PromptHistoryRepository",
    "to_naive_utc",
    "TransactionRepository",
]
