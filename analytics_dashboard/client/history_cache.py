"""
Local-first prompt history with background reconciliation

Every mutation lands in the local store first and is queued in an outbox.
The outbox is flushed to the API in order; a periodic sync flushes it and
merges the remote list by id and updatedAt.
"""
import asyncio
import contextlib
import json
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Literal, Optional, Set

from pydantic import ValidationError

from analytics_dashboard.core.config import settings
from analytics_dashboard.client.api_client import ApiClient, ApiClientError
from analytics_dashboard.client.local_store import LocalStore
from analytics_dashboard.schemas import PromptHistoryItem, PromptHistoryUpdate

logger = logging.getLogger(__name__)

STORAGE_KEY = "analytics-dashboard-history"
MAX_SUGGESTIONS = 5
REMOTE_FETCH_LIMIT = 1000

SyncStatus = Literal["pending", "synced", "failed"]

UPDATABLE_FIELDS = {"is_favorite", "tags", "status", "execution_time", "result_count"}

# 4xx responses that may succeed when sent again
RETRYABLE_CLIENT_ERRORS = {401, 408, 429}


def _is_rejection(error: ApiClientError) -> bool:
    """True when the server refused the mutation itself (permanent 4xx)"""
    status = error.status_code
    return status is not None and 400 <= status < 500 and status not in RETRYABLE_CLIENT_ERRORS


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_aware_utc(value: Optional[datetime]) -> Optional[datetime]:
    """The API returns naive UTC; the cache keeps everything timezone-aware"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _normalized(item: PromptHistoryItem) -> PromptHistoryItem:
    return item.model_copy(update={
        "timestamp": as_aware_utc(item.timestamp),
        "created_at": as_aware_utc(item.created_at),
        "updated_at": as_aware_utc(item.updated_at),
    })


def _dump(item: PromptHistoryItem) -> Dict[str, Any]:
    return item.model_dump(mode="json", by_alias=True)


class HistoryCache:
    """
    Prompt history cache

    Args:
        api: API client; without one the cache is purely local
        store: Durable slot; defaults to a JSON file at HISTORY_STORAGE_PATH
        sync_interval: Seconds between background syncs (HISTORY_SYNC_INTERVAL)
        clock: Returns the current aware UTC time (tests inject a fixed one)
    """

    def __init__(
        self,
        api: Optional[ApiClient] = None,
        store: Optional[LocalStore] = None,
        sync_interval: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.api = api
        self.store = store if store is not None else LocalStore(settings.HISTORY_STORAGE_PATH)
        self.sync_interval = sync_interval if sync_interval is not None else settings.HISTORY_SYNC_INTERVAL
        self._clock = clock or utcnow

        self._items: Dict[str, PromptHistoryItem] = {}
        self._sync_status: Dict[str, SyncStatus] = {}
        self._outbox: List[Dict[str, Any]] = []
        self._in_flight: Optional[Dict[str, Any]] = None
        self.last_sync: Optional[datetime] = None
        self.last_error: Optional[str] = None

        self._lock = asyncio.Lock()
        self._sync_task: Optional[asyncio.Task] = None
        self._flush_tasks: Set[asyncio.Task] = set()

        self._load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        state = self.store.get(STORAGE_KEY) or {}
        for raw in state.get("items", []):
            try:
                item = _normalized(PromptHistoryItem.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable cached history item: {e}")
                continue
            self._items[item.id] = item
        self._sync_status = {
            k: v for k, v in (state.get("syncStatus") or {}).items() if k in self._items
        }
        for item_id in self._items:
            self._sync_status.setdefault(item_id, "pending")
        self._outbox = list(state.get("outbox") or [])
        if state.get("lastSync"):
            self.last_sync = as_aware_utc(datetime.fromisoformat(state["lastSync"]))

    def _save(self) -> None:
        self.store.set(STORAGE_KEY, {
            "items": [_dump(item) for item in self.items],
            "syncStatus": dict(self._sync_status),
            "outbox": list(self._outbox),
            "lastSync": self.last_sync.isoformat() if self.last_sync else None,
        })

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def items(self) -> List[PromptHistoryItem]:
        """All items, newest first"""
        return sorted(self._items.values(), key=lambda i: i.timestamp, reverse=True)

    @property
    def outbox(self) -> List[Dict[str, Any]]:
        return list(self._outbox)

    def get(self, item_id: str) -> Optional[PromptHistoryItem]:
        return self._items.get(item_id)

    def sync_status(self, item_id: str) -> Optional[SyncStatus]:
        return self._sync_status.get(item_id)

    # ------------------------------------------------------------------
    # Local-first mutations
    # ------------------------------------------------------------------

    def add_prompt(
        self,
        prompt: str,
        sql_query: Optional[str] = None,
        execution_time: Optional[int] = None,
        status: str = "pending",
        result_count: Optional[int] = None,
        chart_types: Optional[List[str]] = None,
        is_favorite: bool = False,
        tags: Optional[List[str]] = None,
    ) -> PromptHistoryItem:
        """
        Record a prompt locally and return it at once

        The remote write happens in the background (when an event loop is
        running) or on the next sync.
        """
        now = self._clock()
        item_id = str(uuid.uuid4())
        while item_id in self._items:
            item_id = str(uuid.uuid4())

        item = PromptHistoryItem(
            id=item_id,
            prompt=prompt,
            sql_query=sql_query,
            timestamp=now,
            execution_time=execution_time,
            status=status,
            result_count=result_count,
            chart_types=list(chart_types or []),
            is_favorite=is_favorite,
            tags=tags or [],
            created_at=now,
            updated_at=now,
        )
        self._items[item_id] = item
        self._sync_status[item_id] = "pending"
        self._outbox.append({"op": "create", "id": item_id, "item": _dump(item)})
        self._save()
        self._schedule_flush()
        return item

    def _pending_create(self, item_id: str) -> Optional[Dict[str, Any]]:
        for op in self._outbox:
            if op["op"] == "create" and op.get("id") == item_id and op is not self._in_flight:
                return op
        return None

    def update_prompt(self, item_id: str, **changes: Any) -> Optional[PromptHistoryItem]:
        """
        Change isFavorite/tags/status/executionTime/resultCount of an item

        Returns:
            The updated item, or None if the id is unknown
        """
        item = self._items.get(item_id)
        if item is None:
            return None

        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        now = self._clock()
        if "tags" in changes:
            changes["tags"] = list(dict.fromkeys(changes["tags"] or []))
        updated = item.model_copy(update={**changes, "updated_at": now})
        self._items[item_id] = updated
        self._sync_status[item_id] = "pending"

        create_op = self._pending_create(item_id)
        if create_op is not None:
            # Not sent yet: ship the latest snapshot instead of a separate patch
            create_op["item"] = _dump(updated)
        else:
            patch = PromptHistoryUpdate(**changes, updated_at=now)
            self._outbox.append({
                "op": "update",
                "id": item_id,
                "changes": patch.model_dump(mode="json", by_alias=True, exclude_unset=True),
            })

        self._save()
        self._schedule_flush()
        return updated

    def toggle_favorite(self, item_id: str) -> Optional[PromptHistoryItem]:
        item = self._items.get(item_id)
        if item is None:
            return None
        return self.update_prompt(item_id, is_favorite=not item.is_favorite)

    def delete_prompt(self, item_id: str) -> bool:
        if self._items.pop(item_id, None) is None:
            return False
        self._sync_status.pop(item_id, None)
        self._outbox = [
            op for op in self._outbox
            if op is self._in_flight or op.get("id") != item_id
        ]
        self._outbox.append({"op": "delete", "id": item_id})
        self._save()
        self._schedule_flush()
        return True

    def clear_history(self) -> None:
        ids = list(self._items)
        self._items.clear()
        self._sync_status.clear()
        self._outbox = [op for op in self._outbox if op is self._in_flight]
        self._outbox.append({"op": "clear", "ids": ids})
        self._save()
        self._schedule_flush()

    # ------------------------------------------------------------------
    # Remote side
    # ------------------------------------------------------------------

    def _schedule_flush(self) -> None:
        if self.api is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return  # no loop: the next sync flushes
        task = loop.create_task(self.flush_outbox())
        self._flush_tasks.add(task)
        task.add_done_callback(self._flush_tasks.discard)

    async def drain(self) -> None:
        """Wait for background flushes started by local mutations"""
        while self._flush_tasks:
            await asyncio.gather(*list(self._flush_tasks), return_exceptions=True)

    async def flush_outbox(self) -> bool:
        """Send queued mutations in order. False if one failed; rejected ops are dropped, others stay queued"""
        if self.api is None:
            return False
        async with self._lock:
            return await self._flush_unlocked()

    def _ids_in_outbox(self) -> Set[str]:
        return {op["id"] for op in self._outbox if op.get("id")}

    async def _send(self, op: Dict[str, Any]) -> None:
        kind = op["op"]
        if kind == "create":
            await self.api.create_history(op["item"])
        elif kind == "update":
            try:
                await self.api.update_history(op["id"], op["changes"])
            except ApiClientError as e:
                if e.status_code != 404:
                    raise
                item = self._items.get(op["id"])
                if item is not None:
                    logger.info(f"History item {op['id']} missing remotely, re-creating it")
                    await self.api.create_history(_dump(item))
        elif kind == "delete":
            try:
                await self.api.delete_history(op["id"])
            except ApiClientError as e:
                if e.status_code != 404:
                    raise
        elif kind == "clear":
            await self.api.clear_history()
        else:
            logger.warning(f"Dropping unknown outbox operation: {kind}")

    async def _flush_unlocked(self) -> bool:
        flushed = True
        while self._outbox:
            op = self._outbox[0]
            item_id = op.get("id")
            self._in_flight = op
            try:
                await self._send(op)
            except ApiClientError as e:
                self.last_error = e.message
                if item_id in self._items:
                    self._sync_status[item_id] = "failed"
                if not _is_rejection(e):
                    self._save()
                    logger.warning(f"History {op['op']} for {item_id or 'all'} not synced: {e.message}")
                    return False
                # Permanent rejection: drop the op and continue with the next one
                logger.error(f"History {op['op']} for {item_id or 'all'} rejected ({e.status_code}): {e.message}")
                self._outbox = [o for o in self._outbox if o is not op]
                self._save()
                flushed = False
                continue
            finally:
                self._in_flight = None

            self._outbox = [o for o in self._outbox if o is not op]
            if item_id in self._items and item_id not in self._ids_in_outbox():
                self._sync_status[item_id] = "synced"
            self._save()
        return flushed

    async def sync(self) -> bool:
        """
        Flush the outbox, fetch the remote list and merge it

        Remote items replace local ones only when their updatedAt is newer.
        Items with queued mutations keep their local state; items deleted
        locally stay deleted.

        Returns:
            True when the outbox was fully flushed and the merge happened
        """
        if self.api is None:
            return False

        async with self._lock:
            flushed = await self._flush_unlocked()
            try:
                remote = await self.api.list_history(limit=REMOTE_FETCH_LIMIT)
            except ApiClientError as e:
                self.last_error = e.message
                logger.warning(f"History sync failed: {e.message}")
                return False

            self._merge(remote)
            self.last_sync = self._clock()
            if flushed:
                self.last_error = None
            self._save()
            return flushed

    def _merge(self, remote: Iterable[PromptHistoryItem]) -> None:
        pending_ids = self._ids_in_outbox()
        tombstones: Set[str] = set()
        for op in self._outbox:
            if op["op"] == "delete":
                tombstones.add(op["id"])
            elif op["op"] == "clear":
                tombstones.update(op.get("ids", []))

        merged: Dict[str, PromptHistoryItem] = {}
        status: Dict[str, SyncStatus] = {}

        for remote_item in remote:
            remote_item = _normalized(remote_item)
            item_id = remote_item.id
            if item_id in tombstones:
                continue
            local = self._items.get(item_id)
            if local is not None and item_id in pending_ids:
                merged[item_id] = local
                status[item_id] = self._sync_status.get(item_id, "pending")
            elif local is not None and self._updated(local) >= self._updated(remote_item):
                merged[item_id] = local
                status[item_id] = "synced"
            else:
                merged[item_id] = remote_item
                status[item_id] = "synced"

        for item_id, local in self._items.items():
            if item_id in merged:
                continue
            if item_id in pending_ids or self._sync_status.get(item_id) != "synced":
                merged[item_id] = local
                status[item_id] = self._sync_status.get(item_id, "pending")
            else:
                logger.debug(f"History item {item_id} was deleted remotely")

        self._items = merged
        self._sync_status = status

    @staticmethod
    def _updated(item: PromptHistoryItem) -> datetime:
        return as_aware_utc(item.updated_at or item.timestamp)

    async def start_auto_sync(self, interval: Optional[float] = None) -> None:
        """Run sync() every interval seconds until stop_auto_sync()"""
        if self._sync_task and not self._sync_task.done():
            return
        self._sync_task = asyncio.create_task(self._auto_sync_loop(interval or self.sync_interval))

    async def _auto_sync_loop(self, interval: float) -> None:
        while True:
            try:
                await self.sync()
            except Exception as e:
                logger.error(f"Background history sync crashed: {e}", exc_info=True)
            await asyncio.sleep(interval)

    async def stop_auto_sync(self) -> None:
        if self._sync_task is None:
            return
        self._sync_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sync_task
        self._sync_task = None

    async def aclose(self) -> None:
        await self.stop_auto_sync()
        await self.drain()

    # ------------------------------------------------------------------
    # Filtering, grouping, stats
    # ------------------------------------------------------------------

    def filter_history(
        self,
        search: Optional[str] = None,
        statuses: Optional[Iterable[str]] = None,
        favorites: bool = False,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> List[PromptHistoryItem]:
        """
        Args:
            search: Case-insensitive prompt substring
            statuses: Keep only these statuses
            favorites: Keep only favorites
            date_from: Inclusive lower bound on timestamp
            date_to: Inclusive upper bound on timestamp
            tags: Keep items carrying any of these tags
        """
        needle = search.lower() if search else None
        statuses = set(statuses) if statuses else None
        tags = set(tags) if tags else None
        date_from = as_aware_utc(date_from)
        date_to = as_aware_utc(date_to)

        result = []
        for item in self.items:
            if needle and needle not in item.prompt.lower():
                continue
            if statuses and item.status not in statuses:
                continue
            if favorites and not item.is_favorite:
                continue
            if date_from and item.timestamp < date_from:
                continue
            if date_to and item.timestamp > date_to:
                continue
            if tags and not tags.intersection(item.tags):
                continue
            result.append(item)
        return result

    def categorize(
        self,
        items: Optional[List[PromptHistoryItem]] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, List[PromptHistoryItem]]:
        """
        Group into today / yesterday / thisWeek / older

        Day boundaries are local midnights relative to ``now`` (call time by
        default), so the grouping shifts when a day boundary passes.
        """
        now = (now or datetime.now()).astimezone()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        yesterday = today - timedelta(days=1)
        this_week = today - timedelta(days=7)

        groups: Dict[str, List[PromptHistoryItem]] = {"today": [], "yesterday": [], "thisWeek": [], "older": []}
        for item in (self.items if items is None else items):
            ts = as_aware_utc(item.timestamp)
            if ts >= today:
                groups["today"].append(item)
            elif ts >= yesterday:
                groups["yesterday"].append(item)
            elif ts >= this_week:
                groups["thisWeek"].append(item)
            else:
                groups["older"].append(item)
        return groups

    def search_suggestions(self, query: str) -> List[str]:
        """Up to five prompts or tags containing the query"""
        needle = query.lower()
        suggestions: List[str] = []
        for item in self.items:
            candidates = [item.prompt] + list(item.tags)
            for candidate in candidates:
                if needle in candidate.lower() and candidate not in suggestions:
                    suggestions.append(candidate)
        return suggestions[:MAX_SUGGESTIONS]

    def stats(self) -> Dict[str, int]:
        items = list(self._items.values())
        return {
            "total": len(items),
            "favorites": sum(1 for i in items if i.is_favorite),
            "successful": sum(1 for i in items if i.status == "success"),
            "pending": sum(1 for i in items if i.status == "pending"),
            "errors": sum(1 for i in items if i.status == "error"),
        }

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        return json.dumps([_dump(item) for item in self.items], ensure_ascii=False, indent=2)

    def import_json(self, text: str) -> int:
        """
        Merge exported items by id; an existing item is replaced only by a newer copy

        Returns:
            Number of items added or replaced

        Raises:
            ValueError: If the text is not a JSON list of history items
        """
        raw_items = json.loads(text)
        if not isinstance(raw_items, list):
            raise ValueError("History export must be a JSON list")

        imported = 0
        for raw in raw_items:
            item = _normalized(PromptHistoryItem.model_validate(raw))
            local = self._items.get(item.id)
            if local is not None and self._updated(local) >= self._updated(item):
                continue
            self._items[item.id] = item
            self._sync_status[item.id] = "pending"
            self._outbox = [op for op in self._outbox if op is self._in_flight or op.get("id") != item.id]
            self._outbox.append({"op": "create", "id": item.id, "item": _dump(item)})
            imported += 1

        if imported:
            self._save()
            self._schedule_flush()
        logger.info(f"Imported {imported} history item(s)")
        return imported
