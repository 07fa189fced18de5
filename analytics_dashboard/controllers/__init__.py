"""
Controllers
All routers, one module per area
"""
from analytics_dashboard.controllers import auth_controller
from analytics_dashboard.controllers import history_controller
from analytics_dashboard.controllers import merchants_controller
from analytics_dashboard.controllers import query_controller
from analytics_dashboard.controllers import solution_controller
from analytics_dashboard.controllers import transactions_controller

__all__ = [
    "auth_controller",
    "history_controller",
    "merchants_controller",
    "query_controller",
    "solution_controller",
    "transactions_controller",
]
