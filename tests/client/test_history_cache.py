"""Tests for the local-first history cache and its reconciliation."""

import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest

from analytics_dashboard.client import ApiClientError, HistoryCache, LocalStore
from analytics_dashboard.client.history_cache import STORAGE_KEY
from analytics_dashboard.schemas import PromptHistoryItem, PromptHistoryUpdate


class FakeHistoryApi:
    """In-memory stand-in for the /history endpoints.

    Method names listed in ``fail`` raise a 503 ApiClientError.
    """

    def __init__(self):
        self.items = {}
        self.calls = []
        self.fail = set()

    def _enter(self, name):
        self.calls.append(name)
        if name in self.fail:
            raise ApiClientError("Service unavailable", status_code=503)

    async def list_history(self, limit=1000, **filters):
        self._enter("list")
        return sorted(self.items.values(), key=lambda i: i.timestamp, reverse=True)[:limit]

    async def create_history(self, item):
        self._enter("create")
        parsed = PromptHistoryItem.model_validate(item)
        self.items[parsed.id] = parsed
        return parsed

    async def update_history(self, item_id, changes):
        self._enter("update")
        if item_id not in self.items:
            raise ApiClientError("History item not found", status_code=404)
        update = PromptHistoryUpdate.model_validate(changes).model_dump(exclude_unset=True)
        self.items[item_id] = self.items[item_id].model_copy(update=update)
        return self.items[item_id]

    async def delete_history(self, item_id):
        self._enter("delete")
        if self.items.pop(item_id, None) is None:
            raise ApiClientError("History item not found", status_code=404)

    async def clear_history(self):
        self._enter("clear")
        self.items.clear()


class Clock:

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def fake_api():
    return FakeHistoryApi()


@pytest.fixture
def cache(fake_api):
    return HistoryCache(api=fake_api, store=LocalStore())


async def _synced(cache, prompt="Umsatz", **kwargs):
    item = cache.add_prompt(prompt, **kwargs)
    await cache.drain()
    assert cache.sync_status(item.id) == "synced"
    return item


class TestLocalMutations:

    def test_add_prompt_returns_immediately_with_unique_ids(self, cache, fake_api):
        first = cache.add_prompt("Umsatz je Monat", status="success", chart_types=["line"])
        second = cache.add_prompt("Umsatz je Monat", status="success", chart_types=["line"])

        assert first.id != second.id
        assert cache.get(first.id) == first
        assert first.timestamp.tzinfo is not None
        assert cache.sync_status(first.id) == "pending"
        assert [op["op"] for op in cache.outbox] == ["create", "create"]
        # No event loop running: nothing was sent
        assert fake_api.calls == []

    def test_update_before_flush_rewrites_the_queued_create(self, cache):
        item = cache.add_prompt("Umsatz")

        cache.toggle_favorite(item.id)
        cache.update_prompt(item.id, tags=["q2", "q2", "finance"])

        assert len(cache.outbox) == 1
        queued = cache.outbox[0]["item"]
        assert queued["isFavorite"] is True
        assert queued["tags"] == ["q2", "finance"]

    def test_update_rejects_unknown_fields(self, cache):
        item = cache.add_prompt("Umsatz")
        with pytest.raises(ValueError):
            cache.update_prompt(item.id, prompt="changed")

    def test_unknown_id(self, cache):
        assert cache.update_prompt("nope", is_favorite=True) is None
        assert cache.toggle_favorite("nope") is None
        assert cache.delete_prompt("nope") is False

    def test_persisted_between_instances(self, tmp_path):
        path = tmp_path / "storage.json"
        item = HistoryCache(store=LocalStore(path)).add_prompt("Kategorie", status="error")

        reloaded = HistoryCache(store=LocalStore(path))

        assert reloaded.get(item.id) == item
        assert reloaded.outbox[0]["id"] == item.id
        raw = json.loads(path.read_text(encoding="utf-8"))[STORAGE_KEY]
        assert raw["items"][0]["prompt"] == "Kategorie"
        assert raw["syncStatus"][item.id] == "pending"


class TestFlush:

    @pytest.mark.asyncio
    async def test_add_prompt_flushes_in_background(self, cache, fake_api):
        item = cache.add_prompt("Umsatz", status="success", execution_time=120)

        await cache.drain()

        assert cache.sync_status(item.id) == "synced"
        assert fake_api.items[item.id].execution_time == 120
        assert cache.outbox == []

    @pytest.mark.asyncio
    async def test_update_after_flush_sends_patch(self, cache, fake_api):
        item = await _synced(cache)

        cache.toggle_favorite(item.id)
        await cache.drain()

        assert fake_api.calls[-1] == "update"
        assert fake_api.items[item.id].is_favorite is True
        assert cache.sync_status(item.id) == "synced"

    @pytest.mark.asyncio
    async def test_failed_write_is_kept_and_retried(self, cache, fake_api):
        fake_api.fail.add("create")
        item = cache.add_prompt("Umsatz")
        await cache.drain()

        assert cache.sync_status(item.id) == "failed"
        assert len(cache.outbox) == 1
        assert cache.last_error == "Service unavailable"

        fake_api.fail.clear()
        assert await cache.sync() is True
        assert cache.sync_status(item.id) == "synced"
        assert item.id in fake_api.items
        assert cache.last_error is None

    @pytest.mark.asyncio
    async def test_operations_are_sent_in_order(self, cache, fake_api):
        fake_api.fail.add("create")
        a = cache.add_prompt("a")
        b = cache.add_prompt("b")
        await cache.drain()
        fake_api.fail.clear()

        await cache.flush_outbox()

        sent = [c for c in fake_api.calls if c == "create"]
        assert len(sent) >= 3  # failed attempts, then a and b
        assert set(fake_api.items) == {a.id, b.id}

    @pytest.mark.asyncio
    async def test_rejected_write_is_dropped_and_later_ops_go_through(self, cache, fake_api):
        conflict = cache.add_prompt("Fremder Eintrag")
        original_create = fake_api.create_history

        async def create_history(item):
            if item["id"] == conflict.id:
                fake_api.calls.append("create")
                raise ApiClientError("History id already in use", status_code=409)
            return await original_create(item)

        fake_api.create_history = create_history
        good = cache.add_prompt("Umsatz nach Region", status="success")
        await cache.drain()
        await cache.flush_outbox()

        assert cache.outbox == []
        assert cache.sync_status(conflict.id) == "failed"
        assert cache.sync_status(good.id) == "synced"
        assert good.id in fake_api.items
        assert cache.get(conflict.id) is not None

    @pytest.mark.asyncio
    async def test_unauthorized_write_stays_queued(self, cache, fake_api):
        original_create = fake_api.create_history

        async def create_history(item):
            raise ApiClientError("Invalid token", status_code=401)

        fake_api.create_history = create_history
        item = cache.add_prompt("Umsatz")
        await cache.drain()

        assert cache.sync_status(item.id) == "failed"
        assert [op["op"] for op in cache.outbox] == ["create"]

        fake_api.create_history = original_create
        assert await cache.flush_outbox() is True
        assert item.id in fake_api.items

    @pytest.mark.asyncio
    async def test_update_for_item_missing_remotely_recreates_it(self, cache, fake_api):
        item = await _synced(cache)
        del fake_api.items[item.id]

        cache.update_prompt(item.id, status="success")
        await cache.drain()

        assert fake_api.items[item.id].status == "success"
        assert cache.sync_status(item.id) == "synced"

    @pytest.mark.asyncio
    async def test_delete_of_missing_remote_item_counts_as_done(self, cache, fake_api):
        item = await _synced(cache)
        del fake_api.items[item.id]

        cache.delete_prompt(item.id)
        await cache.drain()

        assert cache.outbox == []

    @pytest.mark.asyncio
    async def test_clear_history(self, cache, fake_api):
        await _synced(cache, "a")
        await _synced(cache, "b")

        cache.clear_history()
        await cache.drain()

        assert cache.items == []
        assert fake_api.items == {}


class TestReconciliation:

    @pytest.mark.asyncio
    async def test_remote_only_items_are_added(self, cache, fake_api):
        now = datetime.now(timezone.utc)
        fake_api.items["remote-1"] = PromptHistoryItem(
            id="remote-1", prompt="from another device", timestamp=now, status="success", updated_at=now,
        )

        assert await cache.sync() is True

        assert cache.get("remote-1").prompt == "from another device"
        assert cache.sync_status("remote-1") == "synced"
        assert cache.last_sync is not None

    @pytest.mark.asyncio
    async def test_newer_remote_copy_wins(self, cache, fake_api):
        item = await _synced(cache)
        fake_api.items[item.id] = item.model_copy(update={
            "is_favorite": True,
            "updated_at": item.updated_at + timedelta(minutes=5),
        })

        await cache.sync()

        assert cache.get(item.id).is_favorite is True

    @pytest.mark.asyncio
    async def test_older_remote_copy_loses(self, cache, fake_api):
        item = await _synced(cache, tags=["local"])
        fake_api.items[item.id] = item.model_copy(update={
            "tags": ["stale"],
            "updated_at": item.updated_at - timedelta(minutes=5),
        })

        await cache.sync()

        assert cache.get(item.id).tags == ["local"]

    @pytest.mark.asyncio
    async def test_unflushed_local_change_survives_sync(self, cache, fake_api):
        item = await _synced(cache)
        fake_api.fail.add("update")
        cache.toggle_favorite(item.id)
        fake_api.items[item.id] = item.model_copy(update={
            "tags": ["remote"],
            "updated_at": item.updated_at + timedelta(hours=1),
        })

        assert await cache.sync() is False

        local = cache.get(item.id)
        assert local.is_favorite is True
        assert local.tags == []
        assert cache.sync_status(item.id) == "failed"

    @pytest.mark.asyncio
    async def test_local_delete_is_not_resurrected(self, cache, fake_api):
        item = await _synced(cache)
        fake_api.fail.add("delete")

        cache.delete_prompt(item.id)
        await cache.sync()

        assert cache.get(item.id) is None
        assert item.id in fake_api.items

    @pytest.mark.asyncio
    async def test_remote_delete_drops_synced_item(self, cache, fake_api):
        item = await _synced(cache)
        del fake_api.items[item.id]

        await cache.sync()

        assert cache.get(item.id) is None

    @pytest.mark.asyncio
    async def test_list_failure_keeps_local_state(self, cache, fake_api):
        item = await _synced(cache)
        fake_api.fail.add("list")

        assert await cache.sync() is False
        assert cache.get(item.id) is not None

    @pytest.mark.asyncio
    async def test_auto_sync_picks_up_remote_changes(self, cache, fake_api):
        now = datetime.now(timezone.utc)
        fake_api.items["r"] = PromptHistoryItem(id="r", prompt="remote", timestamp=now, status="pending")

        await cache.start_auto_sync(interval=0.01)
        for _ in range(50):
            if cache.get("r"):
                break
            await asyncio.sleep(0.01)
        await cache.stop_auto_sync()

        assert cache.get("r") is not None

    @pytest.mark.asyncio
    async def test_round_trip_through_the_api(self, api_factory):
        async with api_factory() as api:
            cache = HistoryCache(api=api, store=LocalStore())

            item = cache.add_prompt("Wie hat sich der Umsatz entwickelt?", status="success", chart_types=["line"])
            await cache.drain()
            cache.toggle_favorite(item.id)
            await cache.drain()
            assert await cache.sync() is True

            remote = await api.list_history()
            assert [r.id for r in remote] == [item.id]
            assert remote[0].is_favorite is True
            assert remote[0].chart_types == ["line"]
            assert cache.get(item.id).is_favorite is True

            cache.delete_prompt(item.id)
            await cache.drain()
            assert await api.list_history() == []

    @pytest.mark.asyncio
    async def test_prompt_refused_by_the_api_does_not_block_sync(self, api_factory):
        async with api_factory() as api:
            cache = HistoryCache(api=api, store=LocalStore())

            empty = cache.add_prompt("")
            good = cache.add_prompt("Umsatz nach Region", status="success")
            await cache.drain()
            for _ in range(3):
                await cache.sync()

            remote_ids = [r.id for r in await api.list_history()]
            assert good.id in remote_ids
            assert empty.id not in remote_ids
            assert cache.sync_status(good.id) == "synced"
            assert cache.sync_status(empty.id) == "failed"
            assert cache.outbox == []


class TestViews:

    @pytest.fixture
    def now(self):
        return datetime(2024, 6, 15, 12, 0).astimezone()

    @pytest.fixture
    def seeded(self, now):
        clock = Clock(now)
        cache = HistoryCache(store=LocalStore(), clock=clock)

        def add(prompt, age, **kwargs):
            clock.now = (now - age).astimezone(timezone.utc)
            return cache.add_prompt(prompt, **kwargs)

        add("Umsatz heute", timedelta(hours=1), status="success", tags=["finance"], is_favorite=True)
        add("Kategorie gestern", timedelta(days=1), status="error")
        add("Region diese Woche", timedelta(days=3), status="success", tags=["geo"])
        add("Umsatz alt", timedelta(days=10), status="pending", tags=["finance", "archive"])
        return cache

    def test_categorize(self, seeded, now):
        groups = seeded.categorize(now=now)

        assert [i.prompt for i in groups["today"]] == ["Umsatz heute"]
        assert [i.prompt for i in groups["yesterday"]] == ["Kategorie gestern"]
        assert [i.prompt for i in groups["thisWeek"]] == ["Region diese Woche"]
        assert [i.prompt for i in groups["older"]] == ["Umsatz alt"]

    def test_filter_by_search_and_status(self, seeded):
        assert [i.prompt for i in seeded.filter_history(search="UMSATZ")] == ["Umsatz heute", "Umsatz alt"]
        assert [i.prompt for i in seeded.filter_history(statuses=["error"])] == ["Kategorie gestern"]

    def test_filter_by_favorites_tags_and_dates(self, seeded, now):
        assert [i.prompt for i in seeded.filter_history(favorites=True)] == ["Umsatz heute"]
        assert [i.prompt for i in seeded.filter_history(tags=["geo", "archive"])] == [
            "Region diese Woche", "Umsatz alt",
        ]
        recent = seeded.filter_history(date_from=now - timedelta(days=2), date_to=now)
        assert [i.prompt for i in recent] == ["Umsatz heute", "Kategorie gestern"]

    def test_search_suggestions(self, seeded):
        assert seeded.search_suggestions("fin") == ["finance"]
        assert len(seeded.search_suggestions("e")) == 5

    def test_stats(self, seeded):
        assert seeded.stats() == {"total": 4, "favorites": 1, "successful": 2, "pending": 1, "errors": 1}

    def test_export_import(self, seeded):
        exported = seeded.export_json()
        target = HistoryCache(store=LocalStore())

        assert target.import_json(exported) == 4
        assert {i.id for i in target.items} == {i.id for i in seeded.items}
        # Same copies again: nothing newer, nothing imported
        assert target.import_json(exported) == 0

    def test_import_rejects_non_list(self):
        with pytest.raises(ValueError):
            HistoryCache(store=LocalStore()).import_json('{"items": []}')
