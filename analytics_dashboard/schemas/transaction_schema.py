"""
Schemas for the transactions view
"""
from typing import Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel

from analytics_dashboard.schemas.base import CamelModel

TransactionStatus = Literal["success", "failed", "pending", "unknown"]
ErrorCategory = Literal[
    "network", "validation", "authentication", "database",
    "timeout", "payment", "checkout", "unknown",
]


class TransactionOut(BaseModel):
    """
    Transaction as shown by the dashboard.

    Raw columns keep their snake_case names; the derived fields (status,
    errorCategory) and the client-side annotations are camelCase.
    """
    transaction_id: str
    event_index: str
    event_type: Optional[str] = None
    time: Optional[datetime] = None
    session_start_time: Optional[datetime] = None

    merchant_id: Optional[str] = None
    merchant_name: Optional[str] = None
    merchant_category: Optional[str] = None
    merchant_requested_locale: Optional[str] = None
    merchant_requested_market: Optional[str] = None

    total_amount: Optional[float] = None
    payment_amount: Optional[str] = None
    currency: Optional[str] = None
    pis_payment_reference: Optional[str] = None

    user_id: Optional[str] = None
    user_location: Optional[str] = None

    browser: Optional[str] = None
    device_type: Optional[str] = None
    language: Optional[str] = None
    is_guest_mode: bool = False
    is_returning_user: bool = False
    is_express: bool = False
    is_phone_required: bool = False
    guest_present: bool = False
    token_present: bool = False
    token_version: Optional[str] = None

    event_failure_message: Optional[str] = None
    checkout_session_abort_reason: Optional[str] = None
    checkout_session_status_change_reason: Optional[str] = None

    chatbot_available: Optional[str] = None
    chatbot_query: Optional[str] = None
    chatbot_response: Optional[str] = None
    help_requested: Optional[str] = None

    status: TransactionStatus
    errorCategory: Optional[ErrorCategory] = None
    isResolved: bool = False
    retryCount: int = 0


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_transactions: int
    items_per_page: int
    has_more: bool
    has_previous: bool


class TransactionStats(CamelModel):
    total: int
    successful: int
    failed: int
    pending: int
    success_rate: float
    avg_amount: float
    total_volume: float
    errors_by_category: Dict[str, int]
    by_device_type: Dict[str, int]
    by_currency: Dict[str, int]


class TransactionListResponse(BaseModel):
    transactions: List[TransactionOut]
    pagination: Pagination
    stats: TransactionStats
    merchant_id: str
