import json
from pathlib import Path

import pytest

from nixtemplate.domain.errors import CorruptCacheError, StoreClosedError, StoreNotUniqueError
from nixtemplate.domain.models.common import LOCK_FORMAT, build_cache_key
from nixtemplate.infrastructure.cache.file_store import PersistentFileStore


def read_lock(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_open_creates_missing_file(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    assert lock_path.exists()
    assert store.lookup(("f", "1")) is None
    store.release()

def test_empty_file_is_fresh_store(lock_path: Path):
    lock_path.write_text("")
    store = PersistentFileStore.open(lock_path)
    assert store.document.to_dict() == {"version": LOCK_FORMAT}
    store.release()

def test_corrupt_file_is_fatal(lock_path: Path):
    lock_path.write_text("{ this is not json")
    with pytest.raises(CorruptCacheError):
        PersistentFileStore.open(lock_path)
    # content is left for the user to inspect
    assert lock_path.read_text() == "{ this is not json"

@pytest.mark.parametrize("content", ["NaN", "Infinity", '{"version": 1, "f": NaN}'])
def test_non_finite_constants_are_fatal(lock_path: Path, content: str):
    lock_path.write_text(content)
    with pytest.raises(CorruptCacheError):
        PersistentFileStore.open(lock_path)
    assert lock_path.read_text() == content

def test_invalid_utf8_is_fatal(lock_path: Path):
    lock_path.write_bytes(b"\xff\xfe{}")
    with pytest.raises(CorruptCacheError) as exc_info:
        PersistentFileStore.open(lock_path)
    assert isinstance(exc_info.value.__cause__, UnicodeDecodeError)
    assert lock_path.read_bytes() == b"\xff\xfe{}"

def test_version_mismatch_resets(lock_path: Path):
    lock_path.write_text(json.dumps({"version": LOCK_FORMAT + 1, "f": {"1": {"foo": "1foo"}}}))
    store = PersistentFileStore.open(lock_path)
    assert store.lookup(("f", "1", "foo")) is None
    store.release()

def test_no_load_ignores_existing_content(lock_path: Path):
    lock_path.write_text(json.dumps({"version": LOCK_FORMAT, "g": "cached"}))
    store = PersistentFileStore.open(lock_path, load=False)
    assert store.lookup(("g",)) is None
    store.persist()
    assert read_lock(lock_path) == {"version": LOCK_FORMAT}

def test_no_load_does_not_parse_corrupt_content(lock_path: Path):
    lock_path.write_text("garbage")
    store = PersistentFileStore.open(lock_path, load=False)
    store.store(("g",), "g")
    store.persist()
    assert read_lock(lock_path) == {"version": LOCK_FORMAT, "g": "g"}

def test_miss_then_hit(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    key = build_cache_key("f", (1, "foo"))
    assert store.lookup(key) is None
    store.store(key, "1foo")
    assert store.lookup(key) == "1foo"
    store.release()

def test_lookup_miss_does_not_grow_document(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    store.lookup(("f", "1", "foo"))
    assert store.document.to_dict() == {"version": LOCK_FORMAT}
    store.release()

def test_file_is_stale_until_persist(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    store.store(("g",), "g")
    assert lock_path.read_text() == ""
    store.persist()
    assert read_lock(lock_path)["g"] == "g"

def test_round_trip(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    store.store(("hash_from_git", "https://example.com/repo.git", "main"), "sha256-abc")
    store.persist()

    reloaded = PersistentFileStore.open(lock_path)
    assert reloaded.lookup(("hash_from_git", "https://example.com/repo.git", "main")) == "sha256-abc"
    reloaded.release()

def test_end_to_end_keys_do_not_cross_contaminate(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    store.store(build_cache_key("f", (1, "foo")), "1foo")
    store.store(build_cache_key("f", (2, "bar")), "2bar")
    store.persist()

    assert read_lock(lock_path) == {
        "version": LOCK_FORMAT,
        "f": {"1": {"foo": "1foo"}, "2": {"bar": "2bar"}},
    }

    reloaded = PersistentFileStore.open(lock_path)
    assert reloaded.lookup(("f", "1", "foo")) == "1foo"
    assert reloaded.lookup(("f", "2", "bar")) == "2bar"
    assert reloaded.lookup(("f", "1", "bar")) is None
    reloaded.release()

def test_persist_truncates_longer_previous_content(lock_path: Path):
    lock_path.write_text(json.dumps({"version": LOCK_FORMAT, "big": "x" * 1000}))
    store = PersistentFileStore.open(lock_path, load=False)
    store.store(("g",), "g")
    store.persist()
    assert read_lock(lock_path) == {"version": LOCK_FORMAT, "g": "g"}

def test_share_sees_same_document(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    other = store.share()
    other.store(("g",), "g")
    assert store.lookup(("g",)) == "g"
    assert store.owners == 2
    other.release()
    store.release()

def test_persist_fails_while_shared(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    other = store.share()
    store.store(("g",), "g")

    with pytest.raises(StoreNotUniqueError) as exc_info:
        store.persist()
    assert exc_info.value.owners == 2
    assert lock_path.read_text() == ""

    # still usable, and persistable once the other owner is gone
    other.release()
    assert store.lookup(("g",)) == "g"
    store.persist()
    assert read_lock(lock_path)["g"] == "g"

def test_persisted_store_is_closed(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    store.persist()
    with pytest.raises(StoreClosedError):
        store.lookup(("g",))
    with pytest.raises(StoreClosedError):
        store.store(("g",), "g")
    with pytest.raises(StoreClosedError):
        store.persist()
    with pytest.raises(StoreClosedError):
        store.share()

def test_release_is_idempotent_and_closes_on_last_owner(lock_path: Path):
    store = PersistentFileStore.open(lock_path)
    other = store.share()
    other.release()
    other.release()
    assert store.owners == 1
    store.release()
    assert store.owners == 0

def test_accepts_caller_opened_file(lock_path: Path):
    lock_path.write_text(json.dumps({"version": LOCK_FORMAT, "g": "g"}))
    with open(lock_path, "r+", encoding="utf-8") as f:
        store = PersistentFileStore(f, load=True)
        assert store.lookup(("g",)) == "g"
        store.store(("h",), "h")
        store.persist()
    assert read_lock(lock_path) == {"version": LOCK_FORMAT, "g": "g", "h": "h"}
