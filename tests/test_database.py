import re
import sqlite3

import pytest

from tinychat.database import ChatDatabase, HistoryEntry, hash_password


@pytest.fixture
def db():
    with ChatDatabase(":memory:") as database:
        yield database


def test_hash_password_empty_string_digest():
    assert hash_password("") == (
        "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
    )


def test_hash_password_shape_and_determinism():
    digest = hash_password("password")
    assert digest == hash_password("password")
    assert re.fullmatch(r"[0-9a-f]{64}", digest)
    assert digest != hash_password("secret")


def test_register_and_login(db):
    password = "password"
    assert db.register_user("alice", password) is True
    assert db.login_user("alice", password) is True
    assert db.login_user("alice", "secret") is False


def test_register_duplicate_fails(db):
    assert db.register_user("alice", "password") is True
    assert db.register_user("alice", "secret") is False
    assert db.login_user("alice", "password") is True


def test_login_unknown_user(db):
    assert db.login_user("nobody", "password") is False


def test_save_message_returns_increasing_ids(db):
    first = db.save_message("alice", "bob", "hi")
    second = db.save_message("bob", "alice", "hello")
    assert second > first


def test_history_filters_and_orders(db):
    db.save_message("alice", "bob", "one")
    db.save_message("carol", "dave", "unrelated")
    db.save_message("bob", "alice", "two")
    db.save_message("alice", "carol", "three")
    entries = db.history("alice")
    assert [e.msg for e in entries] == ["one", "two", "three"]
    assert all("alice" in (e.sender, e.receiver) for e in entries)
    assert db.history("nobody") == []


def test_history_timestamp_is_set(db):
    db.save_message("alice", "bob", "hi")
    (entry,) = db.history("bob")
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}", entry.timestamp)
    assert (entry.sender, entry.receiver) == ("alice", "bob")


def test_history_entry_format():
    entry = HistoryEntry("alice", "bob", "hi", "2024-01-01 00:00:00")
    assert entry.format() == "[2024-01-01 00:00:00] alice -> bob: hi\n"


def test_history_entry_format_is_truncated():
    entry = HistoryEntry("alice", "bob", "x" * 5000, "t")
    assert len(entry.format()) == 1023


def test_file_database_persists(tmp_path):
    path = tmp_path / "sub" / "chat.db"
    with ChatDatabase(path) as database:
        database.register_user("alice", "password")
        database.save_message("alice", "bob", "hi")
    with ChatDatabase(path) as database:
        assert database.login_user("alice", "password") is True
        assert [e.msg for e in database.history("alice")] == ["hi"]


def test_closed_database_raises():
    database = ChatDatabase(":memory:")
    database.close()
    with pytest.raises(sqlite3.ProgrammingError):
        database.login_user("alice", "password")


def test_unopenable_path_raises(tmp_path):
    with pytest.raises(sqlite3.Error):
        ChatDatabase(tmp_path)