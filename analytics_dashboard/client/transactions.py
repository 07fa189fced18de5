"""
Transaction feed view model
"""
import logging
from typing import List, Optional

from analytics_dashboard.client.api_client import ApiClient
from analytics_dashboard.schemas import Pagination, TransactionListResponse, TransactionOut, TransactionStats

logger = logging.getLogger(__name__)


class TransactionFeed:
    """
    Paged list of a merchant's transactions

    retry() and mark_resolved() only change the in-memory rows; nothing is
    written back to the server.
    """

    def __init__(self, api: ApiClient, merchant_id: Optional[str] = None, page_size: int = 50):
        self.api = api
        self.merchant_id = merchant_id
        self.page_size = page_size
        self.transactions: List[TransactionOut] = []
        self.pagination: Optional[Pagination] = None
        self.stats: Optional[TransactionStats] = None
        self.search: Optional[str] = None
        self.status_filter: Optional[str] = None

    async def load(self, page: int = 1, search: Optional[str] = None) -> TransactionListResponse:
        if search is not None:
            self.search = search or None
        response = await self.api.list_transactions(
            merchant_id=self.merchant_id,
            page=page,
            limit=self.page_size,
            search=self.search,
        )
        self.transactions = response.transactions
        self.pagination = response.pagination
        self.stats = response.stats
        self.merchant_id = response.merchant_id
        return response

    async def next_page(self) -> bool:
        if not self.pagination or not self.pagination.has_more:
            return False
        await self.load(self.pagination.current_page + 1)
        return True

    async def previous_page(self) -> bool:
        if not self.pagination or not self.pagination.has_previous:
            return False
        await self.load(self.pagination.current_page - 1)
        return True

    def set_status_filter(self, status: Optional[str]) -> None:
        self.status_filter = status or None

    @property
    def visible(self) -> List[TransactionOut]:
        if not self.status_filter:
            return list(self.transactions)
        return [t for t in self.transactions if t.status == self.status_filter]

    def _find(self, transaction_id: str) -> Optional[int]:
        for index, transaction in enumerate(self.transactions):
            if transaction.transaction_id == transaction_id:
                return index
        return None

    def retry(self, transaction_id: str) -> Optional[TransactionOut]:
        """Flag a failed transaction as pending again and count the attempt"""
        index = self._find(transaction_id)
        if index is None:
            return None
        transaction = self.transactions[index]
        if transaction.status != "failed":
            logger.info(f"Transaction {transaction_id} is {transaction.status}, nothing to retry")
            return transaction
        updated = transaction.model_copy(update={
            "status": "pending",
            "retryCount": transaction.retryCount + 1,
        })
        self.transactions[index] = updated
        return updated

    def mark_resolved(self, transaction_id: str) -> Optional[TransactionOut]:
        index = self._find(transaction_id)
        if index is None:
            return None
        updated = self.transactions[index].model_copy(update={"isResolved": True})
        self.transactions[index] = updated
        return updated
