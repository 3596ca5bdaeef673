"""SQLite storage for user accounts and chat history."""

from __future__ import annotations

import hashlib
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path

DEFAULT_PATH = "data/chat.db"
BUFFER_SIZE = 1024

_USERS_TABLE = (
    "CREATE TABLE IF NOT EXISTS users ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT,"
    "username TEXT UNIQUE,"
    "password_hash TEXT);"
)
_MESSAGES_TABLE = (
    "CREATE TABLE IF NOT EXISTS messages ("
    "id INTEGER PRIMARY KEY AUTOINCREMENT,"
    "sender TEXT,"
    "receiver TEXT,"
    "msg TEXT,"
    "timestamp DATETIME DEFAULT CURRENT_TIMESTAMP);"
)


def hash_password(password: str) -> str:
    """Return the lowercase hex SHA-256 digest of a password."""
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class HistoryEntry:
    """One stored message."""

    sender: str
    receiver: str
    msg: str
    timestamp: str

    def format(self) -> str:
        """Render the entry the way it is sent to a client."""
        line = f"[{self.timestamp}] {self.sender} -> {self.receiver}: {self.msg}\n"
        return line[: BUFFER_SIZE - 1]


class ChatDatabase:
    """Thread-safe access to the users and messages tables."""

    def __init__(self, path: str | Path = DEFAULT_PATH) -> None:
        path_text = str(path)
        if path_text != ":memory:":
            Path(path_text).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(path_text, check_same_thread=False)
        try:
            with self._conn:
                self._conn.execute(_USERS_TABLE)
                self._conn.execute(_MESSAGES_TABLE)
        except sqlite3.Error:
            self._conn.close()
            raise

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "ChatDatabase":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def register_user(self, username: str, password: str) -> bool:
        """Create an account; return False if the name is already taken."""
        with self._lock:
            try:
                with self._conn:
                    self._conn.execute(
                        "INSERT INTO users (username, password_hash) VALUES (?, ?);",
                        (username, hash_password(password)),
                    )
            except sqlite3.IntegrityError:
                return False
        return True

    def login_user(self, username: str, password: str) -> bool:
        """Return True if the user exists and the password matches."""
        with self._lock:
            row = self._conn.execute(
                "SELECT password_hash FROM users WHERE username = ?;", (username,)
            ).fetchone()
        return row is not None and row[0] == hash_password(password)

    def save_message(self, sender: str, receiver: str, msg: str) -> int:
        """Store a message and return its row id."""
        with self._lock:
            with self._conn:
                cursor = self._conn.execute(
                    "INSERT INTO messages (sender, receiver, msg) VALUES (?, ?, ?);",
                    (sender, receiver, msg),
                )
        return cursor.lastrowid

    def history(self, username: str) -> list[HistoryEntry]:
        """Return every message sent by or to the user, oldest first."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT sender, receiver, msg, timestamp FROM messages "
                "WHERE sender = ? OR receiver = ? ORDER BY id ASC;",
                (username, username),
            ).fetchall()
        return [HistoryEntry(*row) for row in rows]