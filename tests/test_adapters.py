"""Tests for the filesystem adapters."""

import json
from pathlib import Path

from life4today.adapters.json_file_store import JsonFileKeyValueStore
from life4today.adapters.local_photo_storage import LocalPhotoStorage


def test_json_store_round_trips_and_removes(tmp_path: Path) -> None:
    path = tmp_path / "state" / "session.json"
    store = JsonFileKeyValueStore(path)

    store.set("a", "1")
    store.set("b", "2")
    store.remove("a")
    store.remove("missing")

    assert store.get("a") is None
    assert store.get("b") == "2"
    assert json.loads(path.read_text(encoding="utf-8")) == {"b": "2"}
    assert not path.with_suffix(".json.tmp").exists()


def test_json_store_treats_unreadable_file_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text("{broken", encoding="utf-8")
    store = JsonFileKeyValueStore(path)

    assert store.get("a") is None

    store.set("a", "1")
    assert store.get("a") == "1"


def test_json_store_ignores_non_string_values(tmp_path: Path) -> None:
    path = tmp_path / "session.json"
    path.write_text(json.dumps({"a": 5}), encoding="utf-8")

    assert JsonFileKeyValueStore(path).get("a") is None


def test_local_photo_storage_saves_and_deletes(tmp_path: Path) -> None:
    storage = LocalPhotoStorage(base_dir=tmp_path / "uploads", url_prefix="/uploads/")

    first = storage.save(b"one", "Holiday.JPG")
    second = storage.save(b"two", None)

    assert first != second
    assert first.endswith(".jpg")
    assert (tmp_path / "uploads" / first).read_bytes() == b"one"
    assert storage.url_for(first) == f"/uploads/{first}"

    storage.delete(first)
    storage.delete(first)
    assert not (tmp_path / "uploads" / first).exists()
    assert (tmp_path / "uploads" / second).exists()


def test_local_photo_storage_delete_stays_inside_base_dir(tmp_path: Path) -> None:
    outside = tmp_path / "keep.txt"
    outside.write_text("keep", encoding="utf-8")
    storage = LocalPhotoStorage(base_dir=tmp_path / "uploads")

    storage.delete("../keep.txt")

    assert outside.exists()
