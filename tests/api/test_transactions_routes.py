"""Tests for the /transactions endpoints."""

from datetime import datetime, timedelta

import pytest

from analytics_dashboard.models import Merchant, Transaction


@pytest.fixture
def transactions(session, merchant):
    """Five events for merchant_008 and one for another merchant."""
    base = datetime(2024, 6, 1, 9, 0)
    rows = [
        Transaction(transaction_id="tx-1", event_index=0, event_type="payment_succeeded",
                    merchant_id="merchant_008", total_amount=20.0, device_type="desktop",
                    created_at=base),
        Transaction(transaction_id="tx-2", event_index=0, event_type="payment_failed",
                    merchant_id="merchant_008", total_amount=40.0, currency="CHF",
                    event_failure_message="Network timeout occurred",
                    created_at=base + timedelta(minutes=1)),
        Transaction(transaction_id="tx-3", event_index=1, event_type="checkout_started",
                    merchant_id="merchant_008", created_at=base + timedelta(minutes=2)),
        Transaction(transaction_id="tx-4", event_index=0, event_type="checkout_aborted",
                    merchant_id="merchant_008", abort_reason="card expired",
                    created_at=base + timedelta(minutes=3)),
        Transaction(transaction_id="tx-5", event_index=0, event_type="page_view",
                    merchant_id="merchant_008", created_at=base + timedelta(minutes=4)),
    ]
    session.add(Merchant(id="merchant_999", name="Other Shop"))
    rows.append(Transaction(transaction_id="tx-x", event_type="payment_succeeded",
                            merchant_id="merchant_999", created_at=base))
    session.add_all(rows)
    session.commit()
    return rows


class TestListTransactions:

    def test_defaults_to_first_merchant(self, client, auth_headers, transactions):
        resp = client.get("/transactions", headers=auth_headers)

        assert resp.status_code == 200
        body = resp.json()
        assert body["merchant_id"] == "merchant_008"
        assert [t["transaction_id"] for t in body["transactions"]] == ["tx-5", "tx-4", "tx-3", "tx-2", "tx-1"]

    def test_classification(self, client, auth_headers, transactions):
        body = client.get("/transactions", headers=auth_headers).json()
        by_id = {t["transaction_id"]: t for t in body["transactions"]}

        assert by_id["tx-1"]["status"] == "success"
        assert by_id["tx-2"]["status"] == "failed"
        assert by_id["tx-2"]["errorCategory"] == "network"
        assert by_id["tx-3"]["status"] == "pending"
        assert by_id["tx-4"]["errorCategory"] == "timeout"
        assert by_id["tx-4"]["checkout_session_abort_reason"] == "card expired"
        assert by_id["tx-5"]["status"] == "success"
        assert by_id["tx-1"]["isResolved"] is False
        assert by_id["tx-1"]["retryCount"] == 0

    def test_pagination(self, client, auth_headers, transactions):
        body = client.get("/transactions", params={"page": 2, "limit": 2}, headers=auth_headers).json()

        assert [t["transaction_id"] for t in body["transactions"]] == ["tx-3", "tx-2"]
        assert body["pagination"] == {
            "currentPage": 2,
            "totalPages": 3,
            "totalTransactions": 5,
            "itemsPerPage": 2,
            "hasMore": True,
            "hasPrevious": True,
        }

    def test_limit_is_capped(self, client, auth_headers, transactions):
        body = client.get("/transactions", params={"limit": 500}, headers=auth_headers).json()
        assert body["pagination"]["itemsPerPage"] == 100

    def test_search(self, client, auth_headers, transactions):
        body = client.get("/transactions", params={"search": "timeout"}, headers=auth_headers).json()

        assert [t["transaction_id"] for t in body["transactions"]] == ["tx-2"]
        assert body["pagination"]["totalTransactions"] == 1

    def test_page_stats(self, client, auth_headers, transactions):
        stats = client.get("/transactions", headers=auth_headers).json()["stats"]

        assert stats["total"] == 5
        assert stats["successful"] == 2
        assert stats["failed"] == 2
        assert stats["pending"] == 1
        assert stats["successRate"] == 40.0
        assert stats["totalVolume"] == 60.0
        assert stats["errorsByCategory"]["network"] == 1
        assert stats["byCurrency"] == {"EUR": 4, "CHF": 1}

    def test_foreign_merchant_is_forbidden(self, client, auth_headers, transactions):
        resp = client.get("/transactions", params={"merchant_id": "merchant_999"}, headers=auth_headers)

        assert resp.status_code == 403
        assert resp.json() == {"error": "No access to this merchant"}

    def test_user_without_merchant(self, client, other_headers, transactions):
        assert client.get("/transactions", headers=other_headers).status_code == 403


class TestTransactionStats:

    def test_aggregates_all_rows(self, client, auth_headers, transactions):
        resp = client.get("/transactions/stats", headers=auth_headers)

        assert resp.status_code == 200
        stats = resp.json()
        assert stats["total"] == 5
        assert stats["avgAmount"] == pytest.approx(12.0)
