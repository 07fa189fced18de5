"""
Repository for Prompt History data access
"""
import uuid
import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlmodel import Session, select, func

from analytics_dashboard.models import PromptHistory
from analytics_dashboard.schemas import HistoryStats, PromptHistoryCreate, PromptHistoryUpdate

logger = logging.getLogger(__name__)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class HistoryOwnershipError(Exception):
    """The id already belongs to another user's history"""


class PromptHistoryRepository:
    """Handles PromptHistory CRUD operations, always scoped to one user"""

    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str, item_id: str) -> Optional[PromptHistory]:
        item = self.session.get(PromptHistory, item_id)
        if item is None or item.user_id != user_id:
            return None
        return item

    def list(
        self,
        user_id: str,
        search: Optional[str] = None,
        statuses: Optional[Sequence[str]] = None,
        favorites: bool = False,
        limit: int = 50,
        offset: int = 0,
    ) -> List[PromptHistory]:
        """
        Newest first

        Args:
            user_id: Owner
            search: Case-insensitive substring of the prompt
            statuses: Allowed statuses (any of)
            favorites: Only favorites when True
            limit: Page size
            offset: Rows to skip
        """
        statement = select(PromptHistory).where(PromptHistory.user_id == user_id)

        if search:
            statement = statement.where(PromptHistory.prompt.ilike(f"%{search}%"))
        if statuses:
            statement = statement.where(PromptHistory.status.in_(list(statuses)))
        if favorites:
            statement = statement.where(PromptHistory.is_favorite == True)  # noqa: E712

        statement = (
            statement
            .order_by(PromptHistory.timestamp.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.session.exec(statement).all())

    def save(self, user_id: str, data: PromptHistoryCreate) -> PromptHistory:
        """
        Insert, or overwrite the caller's own item with the same id

        Re-sending the same item (a retried client mutation) is harmless.

        Raises:
            HistoryOwnershipError: If the id is taken by another user
        """
        now = datetime.utcnow()
        item_id = data.id or str(uuid.uuid4())

        item = self.session.get(PromptHistory, item_id)
        if item is not None and item.user_id != user_id:
            raise HistoryOwnershipError(item_id)

        if item is None:
            item = PromptHistory(
                id=item_id,
                user_id=user_id,
                prompt=data.prompt,
                timestamp=to_naive_utc(data.timestamp) or now,
                created_at=now,
            )
            logger.info(f"Saved prompt history {item_id} for user {user_id}")

        item.sql_query = data.sql_query
        item.execution_time = data.execution_time
        item.status = data.status
        item.result_count = data.result_count
        item.chart_types = list(data.chart_types or [])
        item.is_favorite = data.is_favorite
        item.tags = list(dict.fromkeys(data.tags or []))
        item.updated_at = to_naive_utc(data.updated_at) or now

        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def update(self, user_id: str, item_id: str, data: PromptHistoryUpdate) -> Optional[PromptHistory]:
        """Apply provided fields only; None if the item does not exist for this user"""
        item = self.get(user_id, item_id)
        if item is None:
            return None

        changes = data.model_dump(exclude_unset=True, exclude={"updated_at"})
        for field_name, value in changes.items():
            if value is None and field_name in ("is_favorite", "status"):
                continue
            if field_name == "tags":
                value = list(dict.fromkeys(value or []))
            setattr(item, field_name, value)
        item.updated_at = to_naive_utc(data.updated_at) or datetime.utcnow()

        self.session.add(item)
        self.session.commit()
        self.session.refresh(item)
        return item

    def delete(self, user_id: str, item_id: str) -> bool:
        item = self.get(user_id, item_id)
        if item is None:
            return False
        self.session.delete(item)
        self.session.commit()
        return True

    def delete_all(self, user_id: str) -> int:
        items = self.session.exec(
            select(PromptHistory).where(PromptHistory.user_id == user_id)
        ).all()
        for item in items:
            self.session.delete(item)
        self.session.commit()
        deleted = len(items)
        logger.info(f"Deleted {deleted} prompt history items for user {user_id}")
        return deleted

    def stats(self, user_id: str) -> HistoryStats:
        def count(*conditions) -> int:
            statement = select(func.count(PromptHistory.id)).where(PromptHistory.user_id == user_id)
            for condition in conditions:
                statement = statement.where(condition)
            return self.session.exec(statement).one()

        total = count()
        successful = count(PromptHistory.status == "success")
        favorites = count(PromptHistory.is_favorite == True)  # noqa: E712

        return HistoryStats(
            total=total,
            successful=successful,
            favorites=favorites,
            success_rate=(successful / total) * 100 if total > 0 else 0,
        )
