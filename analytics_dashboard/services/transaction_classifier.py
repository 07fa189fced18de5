"""
Transaction Classifier
Derives status and error category from a payment event's fields
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from analytics_dashboard.core.config import settings
from analytics_dashboard.models import Transaction
from analytics_dashboard.schemas import TransactionOut, TransactionStats

logger = logging.getLogger(__name__)

SUCCESS_KEYWORDS = ("success", "succeeded", "completed")
PENDING_KEYWORDS = ("started", "initiated")

# First match wins; "Network timeout" is a network error, not a timeout
ERROR_CATEGORY_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("network", "connection"), "network"),
    (("validation", "invalid"), "validation"),
    (("auth", "permission"), "authentication"),
    (("database", "db"), "database"),
    (("timeout", "expired"), "timeout"),
    (("payment", "card"), "payment"),
    (("checkout", "session"), "checkout"),
)

ERROR_CATEGORIES = tuple(category for _, category in ERROR_CATEGORY_RULES) + ("unknown",)


def failure_message_of(row: Any) -> Optional[str]:
    return getattr(row, "event_failure_message", None) or getattr(row, "failure_message", None) or None


def abort_reason_of(row: Any) -> Optional[str]:
    return getattr(row, "checkout_session_abort_reason", None) or getattr(row, "abort_reason", None) or None


def classify_status(
    event_type: Optional[str],
    failure_message: Optional[str],
    abort_reason: Optional[str],
    unknown_status: Optional[str] = None,
) -> str:
    """
    Args:
        event_type: Raw event type, e.g. "payment_succeeded"
        failure_message: Failure text (either column)
        abort_reason: Checkout abort reason (either column)
        unknown_status: Status for unrecognized event types ("success" or "unknown");
            defaults to settings.UNKNOWN_EVENT_STATUS

    Returns:
        One of success, failed, pending, unknown
    """
    if failure_message or abort_reason:
        return "failed"

    normalized = (event_type or "").lower()
    if any(k in normalized for k in SUCCESS_KEYWORDS):
        return "success"
    if any(k in normalized for k in PENDING_KEYWORDS):
        return "pending"

    return unknown_status or settings.UNKNOWN_EVENT_STATUS


def classify_error_category(failure_message: Optional[str], abort_reason: Optional[str]) -> Optional[str]:
    """None when there is nothing to categorize, otherwise a category (possibly 'unknown')"""
    if not failure_message and not abort_reason:
        return None

    message = (failure_message or abort_reason or "").lower()
    for keywords, category in ERROR_CATEGORY_RULES:
        if any(k in message for k in keywords):
            return category
    return "unknown"


def classify(row: Any, unknown_status: Optional[str] = None) -> Tuple[str, Optional[str]]:
    """(status, errorCategory) for a Transaction-like object; the row is not modified"""
    failure = failure_message_of(row)
    abort = abort_reason_of(row)
    return (
        classify_status(getattr(row, "event_type", None), failure, abort, unknown_status),
        classify_error_category(failure, abort),
    )


def to_transaction_out(row: Transaction, unknown_status: Optional[str] = None) -> TransactionOut:
    """Normalize a stored row into the dashboard shape (legacy columns folded in)"""
    status, error_category = classify(row, unknown_status)
    return TransactionOut(
        transaction_id=row.transaction_id or f"tx_{row.id}",
        event_index=str(row.event_index if row.event_index is not None else 0),
        event_type=row.event_type,
        time=row.created_at,
        session_start_time=row.session_start_time or row.created_at,
        merchant_id=row.merchant_id,
        merchant_name=row.merchant_name,
        merchant_category=row.merchant_category,
        merchant_requested_locale=row.merchant_requested_locale,
        merchant_requested_market=row.merchant_requested_market,
        total_amount=row.total_amount,
        payment_amount=row.payment_amount,
        currency=row.currency or "EUR",
        pis_payment_reference=row.pis_payment_reference,
        user_id=row.user_id,
        user_location=row.user_location,
        browser=row.browser,
        device_type=row.device_type,
        language=row.language,
        is_guest_mode=bool(row.is_guest_mode),
        is_returning_user=bool(row.is_returning_user),
        is_express=bool(row.is_express),
        is_phone_required=bool(row.is_phone_required),
        guest_present=bool(row.guest_present),
        token_present=bool(row.token_present),
        token_version=row.token_version,
        event_failure_message=failure_message_of(row),
        checkout_session_abort_reason=abort_reason_of(row),
        checkout_session_status_change_reason=row.checkout_session_status_change_reason,
        chatbot_available=row.chatbot_available,
        chatbot_query=row.chatbot_query,
        chatbot_response=row.chatbot_response,
        help_requested=row.help_requested,
        status=status,
        errorCategory=error_category,
    )


def compute_stats(transactions: Iterable[TransactionOut], total: Optional[int] = None) -> TransactionStats:
    """
    Aggregate classified transactions

    Args:
        transactions: Classified transactions (a page or the full set)
        total: Overall row count; defaults to len(transactions). Success rate
            is computed against this number, averages against the rows given.
    """
    items: List[TransactionOut] = list(transactions)
    total = len(items) if total is None else total

    successful = sum(1 for t in items if t.status == "success")
    failed = sum(1 for t in items if t.status == "failed")
    pending = sum(1 for t in items if t.status == "pending")
    volume = sum(t.total_amount or 0 for t in items)

    errors_by_category: Dict[str, int] = {category: 0 for category in ERROR_CATEGORIES}
    by_device_type: Dict[str, int] = {}
    by_currency: Dict[str, int] = {}
    for t in items:
        if t.errorCategory:
            errors_by_category[t.errorCategory] += 1
        device = t.device_type or "unknown"
        by_device_type[device] = by_device_type.get(device, 0) + 1
        currency = t.currency or "EUR"
        by_currency[currency] = by_currency.get(currency, 0) + 1

    return TransactionStats(
        total=total,
        successful=successful,
        failed=failed,
        pending=pending,
        success_rate=(successful / total) * 100 if total > 0 else 0,
        avg_amount=volume / (len(items) or 1),
        total_volume=volume,
        errors_by_category=errors_by_category,
        by_device_type=by_device_type,
        by_currency=by_currency,
    )
