"""
Prompt history endpoints (remote side of the client's history cache)
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from analytics_dashboard.core.auth import get_current_user
from analytics_dashboard.core.database import get_db
from analytics_dashboard.core.errors import ApiError
from analytics_dashboard.repositories import HistoryOwnershipError, PromptHistoryRepository
from analytics_dashboard.schemas import (
    AuthedUser,
    HistoryStats,
    PromptHistoryCreate,
    PromptHistoryItem,
    PromptHistoryUpdate,
)

router = APIRouter(prefix="/history", tags=["History"])

VALID_STATUSES = {"success", "error", "pending"}


@router.get("", response_model=List[PromptHistoryItem])
def list_history(
    search: Optional[str] = None,
    status: Optional[str] = Query(default=None, description="Comma separated statuses"),
    favorites: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Caller's history, newest first"""
    statuses = [s.strip() for s in status.split(",") if s.strip()] if status else None
    if statuses and not set(statuses) <= VALID_STATUSES:
        raise ApiError(400, "Invalid status filter", details=sorted(set(statuses) - VALID_STATUSES))

    items = PromptHistoryRepository(db).list(
        current_user.id,
        search=search,
        statuses=statuses,
        favorites=favorites == "true",
        limit=limit,
        offset=offset,
    )
    return [PromptHistoryItem.model_validate(item, from_attributes=True) for item in items]


@router.post("", response_model=PromptHistoryItem, status_code=201)
def create_history(
    p: PromptHistoryCreate,
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Store a history item.

    A client-supplied id is kept; posting the same id again overwrites the
    caller's own item.
    """
    if not p.prompt:
        raise ApiError(400, "Prompt is required")

    try:
        item = PromptHistoryRepository(db).save(current_user.id, p)
    except HistoryOwnershipError:
        raise ApiError(409, "History id already in use")
    return PromptHistoryItem.model_validate(item, from_attributes=True)


@router.delete("")
def clear_history(
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    deleted = PromptHistoryRepository(db).delete_all(current_user.id)
    return {"message": "All prompt history deleted successfully", "deleted": deleted}


@router.get("/stats", response_model=HistoryStats)
def history_stats(
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return PromptHistoryRepository(db).stats(current_user.id)


@router.patch("/{item_id}", response_model=PromptHistoryItem)
def update_history(
    item_id: str,
    p: PromptHistoryUpdate,
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    item = PromptHistoryRepository(db).update(current_user.id, item_id, p)
    if item is None:
        raise ApiError(404, "History item not found")
    return PromptHistoryItem.model_validate(item, from_attributes=True)


@router.delete("/{item_id}")
def delete_history(
    item_id: str,
    current_user: AuthedUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not PromptHistoryRepository(db).delete(current_user.id, item_id):
        raise ApiError(404, "History item not found")
    return {"message": "Prompt history deleted successfully"}
