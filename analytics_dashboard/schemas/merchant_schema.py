"""
Schemas for merchants and role assignments
"""
from typing import Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field

MerchantRole = Literal["admin", "manager", "viewer"]


class MerchantInfo(BaseModel):
    id: str
    name: str
    category: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    status: str = "active"


class UserMerchantInfo(BaseModel):
    id: str
    user_id: str
    merchant_id: str
    role: MerchantRole
    created_at: datetime
    merchant: Optional[MerchantInfo] = None


class AssignmentInfo(UserMerchantInfo):
    """Admin listing row: the assignment plus the user's email"""
    user_email: Optional[str] = None


class CreateAssignmentRequest(BaseModel):
    """Request body for POST /admin/assignments"""
    user_id: str
    merchant_id: str
    role: MerchantRole = Field(default="viewer")


class SetupRequest(BaseModel):
    """Request body for POST /setup (self-assign as merchant admin)"""
    merchant_id: str
