"""
Merchant and role-assignment endpoints
"""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from analytics_dashboard.core.auth import get_current_user, require_merchant_admin
from analytics_dashboard.core.database import get_db
from analytics_dashboard.models import Merchant, User, UserMerchant
from analytics_dashboard.schemas import (
    AssignmentInfo,
    AuthedUser,
    CreateAssignmentRequest,
    MerchantInfo,
    SetupRequest,
    UserMerchantInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Merchants"])


def _assignment_info(db: Session, link: UserMerchant) -> AssignmentInfo:
    merchant = Merchant.get_by_id(db, link.merchant_id)
    user = User.get_by_id(db, link.user_id)
    return AssignmentInfo(
        id=link.id,
        user_id=link.user_id,
        merchant_id=link.merchant_id,
        role=link.role,
        created_at=link.created_at,
        merchant=MerchantInfo.model_validate(merchant, from_attributes=True) if merchant else None,
        user_email=user.email if user else None,
    )


@router.get("/merchants", response_model=List[MerchantInfo])
def list_merchants(
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Active merchants, for the setup page and the merchant switcher"""
    return [MerchantInfo.model_validate(m, from_attributes=True) for m in Merchant.list_active(db)]


@router.post("/setup", response_model=UserMerchantInfo, status_code=201)
def setup_merchant(
    p: SetupRequest,
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    First-run setup: the caller becomes admin of an existing merchant.

    Fails with 409 if the caller already has any merchant assignment.
    """
    if UserMerchant.list_by_user(db, current_user.id):
        raise HTTPException(status_code=409, detail="User already has a merchant assignment")

    merchant = Merchant.get_by_id(db, p.merchant_id)
    if not merchant or merchant.status != "active":
        raise HTTPException(status_code=404, detail="Merchant not found")

    link = UserMerchant.create(db, current_user.id, merchant.id, role="admin")
    logger.info(f"User {current_user.email} set up as admin of {merchant.id}")
    return _assignment_info(db, link)


@router.get("/admin/assignments", response_model=List[AssignmentInfo])
def list_assignments(
    admin: AuthedUser = Depends(require_merchant_admin),
    db: Session = Depends(get_db),
):
    """All user ↔ merchant assignments, newest first (merchant admins only)"""
    return [_assignment_info(db, link) for link in UserMerchant.list_all(db)]


@router.post("/admin/assignments", response_model=AssignmentInfo, status_code=201)
def create_assignment(
    p: CreateAssignmentRequest,
    admin: AuthedUser = Depends(require_merchant_admin),
    db: Session = Depends(get_db),
):
    """Assign a user to a merchant with a role"""
    if not User.get_by_id(db, p.user_id):
        raise HTTPException(status_code=404, detail="User not found")
    if not Merchant.get_by_id(db, p.merchant_id):
        raise HTTPException(status_code=404, detail="Merchant not found")
    if UserMerchant.get_link(db, p.user_id, p.merchant_id):
        raise HTTPException(status_code=409, detail="User is already assigned to this merchant")

    link = UserMerchant.create(db, p.user_id, p.merchant_id, role=p.role)
    logger.info(f"{admin.email} assigned {p.user_id} to {p.merchant_id} as {p.role}")
    return _assignment_info(db, link)


@router.delete("/admin/assignments/{assignment_id}")
def delete_assignment(
    assignment_id: str,
    admin: AuthedUser = Depends(require_merchant_admin),
    db: Session = Depends(get_db),
):
    link = db.get(UserMerchant, assignment_id)
    if not link:
        raise HTTPException(status_code=404, detail="Assignment not found")

    link.delete(db)
    logger.info(f"{admin.email} removed assignment {assignment_id}")
    return {"message": "Assignment removed", "id": assignment_id}
