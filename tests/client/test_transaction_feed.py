"""Tests for the transaction feed view model against the in-process API."""

from datetime import datetime, timedelta

import pytest

from analytics_dashboard.client import ApiClientError, TransactionFeed
from analytics_dashboard.models import Transaction


@pytest.fixture
def rows(session, merchant):
    base = datetime(2024, 6, 1, 9, 0)
    events = [
        ("tx-ok", "payment_succeeded", None),
        ("tx-fail", "payment_failed", "Invalid card number"),
        ("tx-pending", "checkout_started", None),
    ]
    for i, (tx_id, event_type, failure) in enumerate(events):
        session.add(Transaction(
            transaction_id=tx_id,
            event_index=0,
            event_type=event_type,
            event_failure_message=failure,
            merchant_id=merchant.id,
            total_amount=10.0,
            created_at=base + timedelta(minutes=i),
        ))
    session.commit()


@pytest.mark.asyncio
async def test_load_and_page(api_factory, rows):
    async with api_factory() as api:
        feed = TransactionFeed(api, page_size=2)

        await feed.load()
        assert feed.merchant_id == "merchant_008"
        assert [t.transaction_id for t in feed.transactions] == ["tx-pending", "tx-fail"]
        assert feed.pagination.has_more is True
        assert feed.stats.total == 3

        assert await feed.next_page() is True
        assert [t.transaction_id for t in feed.transactions] == ["tx-ok"]
        assert await feed.next_page() is False

        assert await feed.previous_page() is True
        assert feed.pagination.current_page == 1


@pytest.mark.asyncio
async def test_status_filter_retry_and_resolve(api_factory, rows):
    async with api_factory() as api:
        feed = TransactionFeed(api)
        await feed.load()

        feed.set_status_filter("failed")
        assert [t.transaction_id for t in feed.visible] == ["tx-fail"]
        assert feed.visible[0].errorCategory == "validation"

        retried = feed.retry("tx-fail")
        assert retried.status == "pending"
        assert retried.retryCount == 1
        assert feed.visible == []

        resolved = feed.mark_resolved("tx-fail")
        assert resolved.isResolved is True
        assert resolved.retryCount == 1

        # Non-failed rows are left alone
        assert feed.retry("tx-ok").retryCount == 0
        assert feed.retry("missing") is None


@pytest.mark.asyncio
async def test_search(api_factory, rows):
    async with api_factory() as api:
        feed = TransactionFeed(api)

        await feed.load(search="invalid")

        assert [t.transaction_id for t in feed.transactions] == ["tx-fail"]


@pytest.mark.asyncio
async def test_forbidden_merchant(api_factory, rows):
    async with api_factory() as api:
        feed = TransactionFeed(api, merchant_id="merchant_999")

        with pytest.raises(ApiClientError) as exc_info:
            await feed.load()

        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "No access to this merchant"
