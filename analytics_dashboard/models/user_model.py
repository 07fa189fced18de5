"""
User Model - identity records behind magic-link sign in
"""
from typing import List, Optional
from datetime import datetime
from sqlmodel import SQLModel, Field, Relationship, Session, select


class User(SQLModel, table=True):
    """
    Authenticated dashboard user.

    Users never hold a password: they sign in through a one-time magic link
    (see MagicLinkToken). Merchant access comes from UserMerchant rows.
    """
    __tablename__ = "users"

    id: str = Field(primary_key=True)
    email: str = Field(unique=True, index=True)
    status: str = Field(default="active")  # 'active' | 'disabled'
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_sign_in_at: Optional[datetime] = None

    # Relationships
    merchant_links: List["UserMerchant"] = Relationship(back_populates="user")

    @classmethod
    def get_by_email(cls, db: Session, email: str) -> Optional["User"]:
        """Find user by email (case-insensitive, emails are stored lowercase)"""
        return db.exec(select(cls).where(cls.email == email.lower())).first()

    @classmethod
    def get_by_id(cls, db: Session, user_id: str) -> Optional["User"]:
        return db.get(cls, user_id)

    @classmethod
    def create(cls, db: Session, **user_data) -> "User":
        db_user = cls(**user_data)
        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        return db_user

    @classmethod
    def list_all(cls, db: Session, skip: int = 0, limit: int = 100) -> List["User"]:
        return db.exec(select(cls).order_by(cls.email).offset(skip).limit(limit)).all()


class MagicLinkToken(SQLModel, table=True):
    """One-time sign-in code; only the sha256 of the code is stored"""
    __tablename__ = "magic_link_tokens"

    code_sha: str = Field(primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    expires_at: datetime
    used_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    def is_usable(self, now: datetime) -> bool:
        return self.used_at is None and self.expires_at > now
