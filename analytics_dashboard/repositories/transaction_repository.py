"""
Repository for payment flow events (basic_paying_flow)
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlmodel import Session, select, func

from analytics_dashboard.models import Transaction

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Read-only access to one merchant's transactions"""

    def __init__(self, session: Session):
        self.session = session

    def _filtered(self, statement, merchant_id: str, search: Optional[str]):
        statement = statement.where(Transaction.merchant_id == merchant_id)
        if search:
            pattern = f"%{search}%"
            statement = statement.where(or_(
                Transaction.transaction_id.ilike(pattern),
                Transaction.event_type.ilike(pattern),
                Transaction.failure_message.ilike(pattern),
                Transaction.event_failure_message.ilike(pattern),
            ))
        return statement

    def search(
        self,
        merchant_id: str,
        page: int = 1,
        limit: int = 50,
        search: Optional[str] = None,
    ) -> Tuple[List[Transaction], int]:
        """
        One page of transactions, newest first

        Args:
            merchant_id: Merchant whose rows are returned
            page: 1-based page number
            limit: Page size
            search: Case-insensitive substring of transaction id, event type or failure message

        Returns:
            (rows on the page, total matching rows)
        """
        offset = (page - 1) * limit

        total = self.session.exec(
            self._filtered(select(func.count(Transaction.id)), merchant_id, search)
        ).one()

        rows = self.session.exec(
            self._filtered(select(Transaction), merchant_id, search)
            .order_by(Transaction.created_at.desc())
            .offset(offset)
            .limit(limit)
        ).all()

        logger.debug(f"Merchant {merchant_id}: page {page} has {len(rows)} of {total} transactions")
        return list(rows), total

    def all_for_merchant(self, merchant_id: str) -> List[Transaction]:
        return list(self.session.exec(
            select(Transaction).where(Transaction.merchant_id == merchant_id)
        ).all())
