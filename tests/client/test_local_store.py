"""Tests for the local key/value slot."""

from analytics_dashboard.client import LocalStore


def test_memory_only_store():
    store = LocalStore()
    store.set("k", {"a": 1})

    assert store.get("k") == {"a": 1}
    assert store.get("missing", "default") == "default"


def test_persists_to_file(tmp_path):
    path = tmp_path / "nested" / "storage.json"
    LocalStore(path).set("history", {"items": [1, 2]})

    assert LocalStore(path).get("history") == {"items": [1, 2]}
    assert not path.with_suffix(".json.tmp").exists()


def test_remove(tmp_path):
    path = tmp_path / "storage.json"
    store = LocalStore(path)
    store.set("a", 1)
    store.remove("a")

    assert LocalStore(path).get("a") is None


def test_unreadable_file_is_ignored(tmp_path):
    path = tmp_path / "storage.json"
    path.write_text("{broken", encoding="utf-8")

    assert LocalStore(path).get("anything") is None
