"""
Transaction feed endpoints
"""
import math
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from analytics_dashboard.core.auth import default_merchant_id, get_current_user, require_merchant_access
from analytics_dashboard.core.database import get_db
from analytics_dashboard.repositories import TransactionRepository
from analytics_dashboard.services.transaction_classifier import compute_stats, to_transaction_out
from analytics_dashboard.schemas import (
    AuthedUser,
    Pagination,
    TransactionListResponse,
    TransactionStats,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.get("", response_model=TransactionListResponse, response_model_by_alias=True)
def list_transactions(
    merchant_id: Optional[str] = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1),
    search: Optional[str] = None,
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Paginated, classified transactions of one merchant.

    Without merchant_id the caller's first merchant is used. Stats are
    computed over the returned page; `total` and `successRate` use the
    overall match count.
    """
    merchant_id = merchant_id or default_merchant_id(current_user, db)
    require_merchant_access(merchant_id, current_user, db)

    limit = min(limit, 100)
    rows, total = TransactionRepository(db).search(merchant_id, page=page, limit=limit, search=search)
    transactions = [to_transaction_out(row) for row in rows]
    offset = (page - 1) * limit

    return TransactionListResponse(
        transactions=transactions,
        pagination=Pagination(
            current_page=page,
            total_pages=math.ceil(total / limit),
            total_transactions=total,
            items_per_page=limit,
            has_more=offset + limit < total,
            has_previous=page > 1,
        ),
        stats=compute_stats(transactions, total=total),
        merchant_id=merchant_id,
    )


@router.get("/stats", response_model=TransactionStats)
def transaction_stats(
    merchant_id: Optional[str] = None,
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stats over all of the merchant's transactions"""
    merchant_id = merchant_id or default_merchant_id(current_user, db)
    require_merchant_access(merchant_id, current_user, db)

    rows = TransactionRepository(db).all_for_merchant(merchant_id)
    return compute_stats([to_transaction_out(row) for row in rows])
