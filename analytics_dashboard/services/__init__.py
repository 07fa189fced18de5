"""
Services layer
Business logic between controllers and the pipeline/repositories
"""
from analytics_dashboard.services.auth_service import AuthService, MagicLinkSender, issue_tokens
from analytics_dashboard.services.chart_service import ChartRenderState, ChartService
from analytics_dashboard.services.query_service import QueryService, default_backend
from analytics_dashboard.services.resolution_service import ResolutionService, static_guide

__all__ = [
    "AuthService",
    "MagicLinkSender",
    "issue_tokens",
    "ChartRenderState",
    "ChartService",
    "QueryService",
    "default_backend",
    "ResolutionService",
    "static_guide",
]
