"""
Core dependencies - Authentication and merchant access
"""
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session, select

from analytics_dashboard.core.database import get_db
from analytics_dashboard.core.security import decode_token
from analytics_dashboard.models import User, UserMerchant
from analytics_dashboard.schemas import AuthedUser

# JWT Security
security = HTTPBearer()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> AuthedUser:
    """
    JWT-based authentication dependency.
    Extracts user from the access token issued by /auth/callback.

    Usage:
        @router.get("/protected")
        def protected_route(user: AuthedUser = Depends(get_current_user)):
            ...
    """
    payload = decode_token(credentials.credentials, expected_type="access")

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid token: subject (sub) missing",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"}
        )

    if user.status != "active":
        raise HTTPException(
            status_code=403,
            detail=f"User is {user.status}"
        )

    return AuthedUser(id=user.id, email=user.email)


def require_merchant_access(merchant_id: str, user: AuthedUser, db: Session) -> UserMerchant:
    """
    Check if user has access to a specific merchant.
    Returns the UserMerchant link if access is granted.

    This mirrors the row-level policy of the data store: a user only reads
    the merchants assigned to them.
    """
    link = UserMerchant.get_link(db, user.id, merchant_id)
    if not link:
        raise HTTPException(
            status_code=403,
            detail="No access to this merchant"
        )
    return link


async def require_merchant_admin(
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> AuthedUser:
    """
    Dependency to require the admin role on at least one merchant.

    Usage:
        @router.post("/admin/assignments")
        def create_assignment(admin: AuthedUser = Depends(require_merchant_admin)):
            ...
    """
    admin_link = db.exec(
        select(UserMerchant).where(
            UserMerchant.user_id == current_user.id,
            UserMerchant.role == "admin"
        )
    ).first()

    if not admin_link:
        raise HTTPException(
            status_code=403,
            detail="Restricted to merchant administrators"
        )

    return current_user


def default_merchant_id(user: AuthedUser, db: Session) -> str:
    """
    First merchant assigned to the user (the dashboard's current merchant).
    Raises HTTPException if user has no merchant yet.
    """
    links = UserMerchant.list_by_user(db, user.id)
    if not links:
        raise HTTPException(
            status_code=403,
            detail="User is not assigned to any merchant"
        )
    return links[0].merchant_id
