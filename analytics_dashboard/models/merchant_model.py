"""
Merchant models
Tenants that own transaction data, and the role-scoped user links to them
"""
import uuid
from typing import List, Optional
from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field, Relationship, Session, select

MERCHANT_ROLES = ("admin", "manager", "viewer")


class Merchant(SQLModel, table=True):
    """A business whose payment events are shown on the dashboard"""
    __tablename__ = "merchants"

    id: str = Field(primary_key=True)
    name: str = Field(index=True)
    category: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    status: str = Field(default="active")  # 'active' | 'inactive'
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    user_links: List["UserMerchant"] = Relationship(back_populates="merchant")

    @classmethod
    def get_by_id(cls, db: Session, merchant_id: str) -> Optional["Merchant"]:
        return db.get(cls, merchant_id)

    @classmethod
    def list_active(cls, db: Session) -> List["Merchant"]:
        """Active merchants ordered by name"""
        return db.exec(
            select(cls).where(cls.status == "active").order_by(cls.name)
        ).all()


class UserMerchant(SQLModel, table=True):
    """
    Junction table: User <-> Merchant with a role.

    role: 'admin' | 'manager' | 'viewer'
    """
    __tablename__ = "user_merchants"
    __table_args__ = (UniqueConstraint("user_id", "merchant_id", name="uq_user_merchant"),)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    merchant_id: str = Field(foreign_key="merchants.id", index=True)
    role: str = Field(default="viewer")
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    user: Optional["User"] = Relationship(back_populates="merchant_links")
    merchant: Optional[Merchant] = Relationship(back_populates="user_links")

    @classmethod
    def get_link(cls, db: Session, user_id: str, merchant_id: str) -> Optional["UserMerchant"]:
        return db.exec(
            select(cls).where(
                cls.user_id == user_id,
                cls.merchant_id == merchant_id
            )
        ).first()

    @classmethod
    def create(cls, db: Session, user_id: str, merchant_id: str, role: str = "viewer") -> "UserMerchant":
        link = cls(user_id=user_id, merchant_id=merchant_id, role=role)
        db.add(link)
        db.commit()
        db.refresh(link)
        return link

    def delete(self, db: Session) -> bool:
        db.delete(self)
        db.commit()
        return True

    @classmethod
    def list_by_user(cls, db: Session, user_id: str) -> List["UserMerchant"]:
        """Merchant links of a user, oldest first (the first one is the default merchant)"""
        return db.exec(
            select(cls).where(cls.user_id == user_id).order_by(cls.created_at)
        ).all()

    @classmethod
    def list_all(cls, db: Session) -> List["UserMerchant"]:
        return db.exec(select(cls).order_by(cls.created_at.desc())).all()
