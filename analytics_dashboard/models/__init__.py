"""
Models
All database tables
"""
from analytics_dashboard.models.user_model import User, MagicLinkToken
from analytics_dashboard.models.merchant_model import Merchant, UserMerchant, MERCHANT_ROLES
from analytics_dashboard.models.prompt_history import PromptHistory
from analytics_dashboard.models.transaction_model import Transaction

__all__ = [
    "User",
    "MagicLinkToken",
    "Merchant",
    "UserMerchant",
    "MERCHANT_ROLES",
    "PromptHistory",
    "Transaction",
]
