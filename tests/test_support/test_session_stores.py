"""Tests for session stores, session id signing and the flash store."""
import pytest

from sluice.sessions import (
    FileSessionStore,
    FlashStore,
    MemorySessionStore,
    decode_session_id,
    encode_session_id,
    is_valid_session_id,
    new_session_id,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemorySessionStore()
    return FileSessionStore(tmp_path / "sessions")


class TestStores:
    def test_get_missing(self, store):
        assert store.get("ab12", "user") is None

    def test_set_and_get(self, store):
        store.set("ab12", "user", {"name": "ada"})
        assert store.get("ab12", "user") == {"name": "ada"}
        assert store.get("cd34", "user") is None

    def test_none_deletes(self, store):
        store.set("ab12", "a", 1)
        store.set("ab12", "b", 2)
        store.set("ab12", "a", None)
        assert store.get("ab12", "a") is None
        assert store.get("ab12", "b") == 2

    def test_memory_store_drops_empty_sessions(self):
        store = MemorySessionStore()
        store.set("ab12", "a", 1)
        assert len(store) == 1
        store.set("ab12", "a", None)
        assert len(store) == 0

    def test_file_store_rejects_path_like_ids(self, tmp_path):
        store = FileSessionStore(tmp_path)
        with pytest.raises(ValueError):
            store.get("../etc/passwd", "a")


class TestSessionIds:
    def test_new_ids_are_valid_and_unique(self):
        a, b = new_session_id(), new_session_id()
        assert a != b
        assert is_valid_session_id(a)

    def test_unsigned_round_trip(self):
        sid = new_session_id()
        assert encode_session_id(sid, None) == sid
        assert decode_session_id(sid, None) == sid

    def test_signed_round_trip(self):
        sid = new_session_id()
        value = encode_session_id(sid, "secret")
        assert value.startswith(sid + ".")
        assert decode_session_id(value, "secret") == sid

    def test_wrong_key_rejected(self):
        value = encode_session_id(new_session_id(), "secret")
        assert decode_session_id(value, "other") is None

    def test_unsigned_value_rejected_when_key_set(self):
        assert decode_session_id(new_session_id(), "secret") is None

    @pytest.mark.parametrize("value", ["", None, "not-hex!", "z" * 10])
    def test_garbage_rejected(self, value):
        assert decode_session_id(value, None) is None


class TestFlashStore:
    def test_reads_pop_from_old(self):
        flash = FlashStore({"a": 1})
        assert flash.get("a") == 1
        assert flash.get("a") is None

    def test_writes_go_to_new(self):
        flash = FlashStore()
        flash.set("a", 1)
        assert flash.get("a") is None
        assert flash.new == {"a": 1}
        assert flash.modified

    def test_now_writes_to_old(self):
        flash = FlashStore()
        flash.set("a", 1, now=True)
        assert not flash.modified
        assert flash.get("a") == 1
