"""
Magic-link sign in
Issues one-time codes and exchanges them for JWT sessions
"""
import uuid
import logging
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

from fastapi import HTTPException
from sqlmodel import Session

from analytics_dashboard.core.config import settings
from analytics_dashboard.core.security import (
    create_access_token,
    create_refresh_token,
    generate_magic_code,
    sha256_hex,
)
from analytics_dashboard.models import MagicLinkToken, User
from analytics_dashboard.schemas import SessionTokens

logger = logging.getLogger(__name__)


class MagicLinkSender:
    """Delivers sign-in links. Mail delivery is external; this one only logs"""

    def send(self, email: str, link: str) -> None:
        logger.info(f"Magic link for {email}: {link}")


class AuthService:
    def __init__(self, db: Session, sender: Optional[MagicLinkSender] = None):
        self.db = db
        self.sender = sender or MagicLinkSender()

    def request_magic_link(self, email: str, redirect_to: Optional[str] = None) -> str:
        """
        Create the user if needed and send a fresh sign-in link

        Args:
            email: Address to sign in
            redirect_to: Optional path the client should open after sign in

        Returns:
            The link that was handed to the sender
        """
        email = email.lower()
        user = User.get_by_email(self.db, email)
        if not user:
            user = User(id=str(uuid.uuid4()), email=email, status="active")
            self.db.add(user)
            logger.info(f"Created user for {email}")

        if user.status != "active":
            raise HTTPException(status_code=403, detail=f"User is {user.status}")

        code = generate_magic_code()
        self.db.add(MagicLinkToken(
            code_sha=sha256_hex(code),
            user_id=user.id,
            expires_at=datetime.utcnow() + timedelta(minutes=settings.MAGIC_LINK_TTL_MINUTES),
        ))
        self.db.commit()

        params = {"code": code}
        if redirect_to:
            params["next"] = redirect_to
        link = f"{settings.APP_BASE_URL}/auth/callback?{urlencode(params)}"
        self.sender.send(email, link)
        return link

    def exchange_code(self, code: str) -> SessionTokens:
        """
        Trade a one-time code for access + refresh tokens

        Raises:
            HTTPException: 401 if the code is unknown, expired or already used
        """
        now = datetime.utcnow()
        token = self.db.get(MagicLinkToken, sha256_hex(code))
        if not token or not token.is_usable(now):
            raise HTTPException(status_code=401, detail="Invalid or expired sign-in link")

        user = User.get_by_id(self.db, token.user_id)
        if not user:
            raise HTTPException(status_code=401, detail="User not found")

        token.used_at = now
        user.last_sign_in_at = now
        self.db.add(token)
        self.db.add(user)
        self.db.commit()

        logger.info(f"User {user.email} signed in")
        return issue_tokens(user)


def issue_tokens(user: User) -> SessionTokens:
    return SessionTokens(
        user_id=user.id,
        email=user.email,
        access_token=create_access_token(data={"sub": user.id}),
        refresh_token=create_refresh_token(data={"sub": user.id}),
        token_type="bearer",
    )
