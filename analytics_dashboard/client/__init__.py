"""
Client SDK
Async API client, local-first history cache and the dashboard view models
"""
from analytics_dashboard.client.api_client import ApiClient, ApiClientError
from analytics_dashboard.client.local_store import LocalStore
from analytics_dashboard.client.history_cache import HistoryCache
from analytics_dashboard.client.dashboard import DashboardOrchestrator, DashboardState
from analytics_dashboard.client.transactions import TransactionFeed

__all__ = [
    "ApiClient",
    "ApiClientError",
    "LocalStore",
    "HistoryCache",
    "DashboardOrchestrator",
    "DashboardState",
    "TransactionFeed",
]
