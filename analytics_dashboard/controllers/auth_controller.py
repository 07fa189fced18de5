"""
Authentication endpoints (magic link + JWT)
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from analytics_dashboard.core.auth import get_current_user
from analytics_dashboard.core.database import get_db
from analytics_dashboard.core.security import decode_token
from analytics_dashboard.models import Merchant, User, UserMerchant
from analytics_dashboard.services import AuthService, MagicLinkSender, issue_tokens
from analytics_dashboard.schemas import (
    AuthedUser,
    MagicLinkRequest,
    MagicLinkResponse,
    MeResponse,
    MerchantInfo,
    RefreshTokenRequest,
    SessionTokens,
    UserMerchantInfo,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_magic_link_sender() -> MagicLinkSender:
    return MagicLinkSender()


@router.post("/magic-link", response_model=MagicLinkResponse)
def request_magic_link(
    p: MagicLinkRequest,
    db: Session = Depends(get_db),
    sender: MagicLinkSender = Depends(get_magic_link_sender),
):
    """
    Send a one-time sign-in link.

    Unknown addresses get an account on first request. The link is valid
    for MAGIC_LINK_TTL_MINUTES and can be used once.
    """
    AuthService(db, sender).request_magic_link(p.email, p.redirect_to)
    return MagicLinkResponse(email=p.email.lower(), message="Check your email for the sign-in link")


@router.get("/callback", response_model=SessionTokens)
def magic_link_callback(code: str, db: Session = Depends(get_db)):
    """Exchange the code from the link for access + refresh tokens"""
    return AuthService(db).exchange_code(code)


@router.post("/refresh", response_model=SessionTokens)
def refresh_token(p: RefreshTokenRequest, db: Session = Depends(get_db)):
    """
    Issue a new token pair from a refresh token.

    Raises 401 if the token is invalid or the user no longer exists.
    """
    payload = decode_token(p.refresh_token, expected_type="refresh")
    user = User.get_by_id(db, payload.get("sub", ""))
    if not user or user.status != "active":
        raise HTTPException(
            status_code=401,
            detail="User not found or inactive",
            headers={"WWW-Authenticate": "Bearer"}
        )
    return issue_tokens(user)


@router.get("/me", response_model=MeResponse)
def me(current_user: AuthedUser = Depends(get_current_user), db: Session = Depends(get_db)):
    """Current user, merchant assignments, and the current (first) merchant"""
    links = UserMerchant.list_by_user(db, current_user.id)
    merchants = []
    for link in links:
        merchant = Merchant.get_by_id(db, link.merchant_id)
        merchants.append(UserMerchantInfo(
            id=link.id,
            user_id=link.user_id,
            merchant_id=link.merchant_id,
            role=link.role,
            created_at=link.created_at,
            merchant=MerchantInfo.model_validate(merchant, from_attributes=True) if merchant else None,
        ))

    return MeResponse(
        user=current_user,
        merchants=merchants,
        current_merchant=merchants[0].merchant if merchants else None,
    )
