"""
Schemas for magic-link authentication endpoints
"""
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from analytics_dashboard.schemas.merchant_schema import MerchantInfo, UserMerchantInfo


class AuthedUser(BaseModel):
    id: str
    email: str


class MagicLinkRequest(BaseModel):
    """Request body for POST /auth/magic-link"""
    email: EmailStr = Field(..., description="Address the sign-in link is sent to")
    redirect_to: Optional[str] = None


class MagicLinkResponse(BaseModel):
    email: str
    message: str


class SessionTokens(BaseModel):
    """Response for GET /auth/callback and POST /auth/refresh"""
    user_id: str
    email: str
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class MeResponse(BaseModel):
    """Session view: the user plus their merchant assignments"""
    user: AuthedUser
    merchants: List[UserMerchantInfo]
    current_merchant: Optional[MerchantInfo] = None
    is_authenticated: bool = True
