"""Threaded TCP chat server."""

from __future__ import annotations

import argparse
import logging
import re
import socket
import sqlite3
import sys
import threading
import time
from dataclasses import dataclass

from tinychat.database import DEFAULT_PATH, ChatDatabase

PORT = 8080
BUFFER_SIZE = 1024
MAX_CLIENTS = 100
BACKLOG = 10

log = logging.getLogger(__name__)

_SEND_ARGS = re.compile(r"\s*(\S+)\s+(\S[^\n]*)")


def parse_command(line: str) -> tuple[str, tuple[str, ...]]:
    """Split a received line into a verb and its arguments.

    The verb is REGISTER, LOGIN, SEND or UNKNOWN. REGISTER and LOGIN carry
    up to two tokens; SEND carries (recipient, message) or nothing if the
    line is malformed.
    """
    for verb in ("REGISTER", "LOGIN"):
        if line.startswith(verb):
            tokens = line[len(verb) + 1:].split()
            return verb, tuple(tokens[:2])
    if line.startswith("SEND"):
        match = _SEND_ARGS.match(line[5:])
        if match is None:
            return "SEND", ()
        return "SEND", (match.group(1), match.group(2))
    return "UNKNOWN", ()


def _send(sock: socket.socket, text: str) -> None:
    try:
        sock.sendall(text[: BUFFER_SIZE - 1].encode("utf-8"))
    except OSError:
        pass


@dataclass
class _Slot:
    sock: socket.socket
    username: str = ""
    logged_in: bool = False


class ClientRegistry:
    """Fixed-size table of connected clients."""

    def __init__(self, max_clients: int = MAX_CLIENTS) -> None:
        self._slots: list[_Slot | None] = [None] * max_clients
        self._lock = threading.Lock()

    def add(self, sock: socket.socket) -> None:
        """Place a new connection in the first free slot."""
        with self._lock:
            for index, slot in enumerate(self._slots):
                if slot is None:
                    self._slots[index] = _Slot(sock)
                    return
        raise RuntimeError("too many clients")

    def remove(self, sock: socket.socket) -> None:
        """Free the slot held by a connection, if any."""
        with self._lock:
            for index, slot in enumerate(self._slots):
                if slot is not None and slot.sock is sock:
                    self._slots[index] = None
                    return

    def login(self, sock: socket.socket, username: str) -> None:
        """Mark a connection as logged in under a name."""
        with self._lock:
            for slot in self._slots:
                if slot is not None and slot.sock is sock:
                    slot.username = username
                    slot.logged_in = True
                    return
        raise KeyError("connection is not registered")

    def find(self, username: str) -> socket.socket | None:
        """Return the connection of a logged-in user, or None."""
        with self._lock:
            for slot in self._slots:
                if slot is not None and slot.logged_in and slot.username == username:
                    return slot.sock
        return None


class ClientSession:
    """Protocol state for one connected client."""

    def __init__(self, sock: socket.socket, server: "ChatServer") -> None:
        self.sock = sock
        self.server = server
        self.username: str | None = None
        server.registry.add(sock)

    def handle(self, data: bytes) -> None:
        """Process one received chunk and send the replies."""
        verb, args = parse_command(data.decode("utf-8", errors="replace"))
        database = self.server.database
        if verb == "REGISTER":
            ok = len(args) == 2 and database.register_user(*args)
            _send(self.sock, "REGISTER_SUCCESS\n" if ok else "REGISTER_FAILED\n")
        elif verb == "LOGIN":
            if len(args) == 2 and database.login_user(*args):
                _send(self.sock, "LOGIN_SUCCESS\n")
                self.username = args[0]
                self.server.registry.login(self.sock, self.username)
                self.server.send_history(self.username, self.sock)
            else:
                _send(self.sock, "LOGIN_FAILED\n")
        elif verb == "SEND":
            if self.username is None:
                _send(self.sock, "ERROR: Please login first\n")
            elif not args:
                _send(self.sock, "ERROR: Invalid SEND format\n")
            else:
                self.server.deliver(self.username, *args)
        else:
            _send(self.sock, "UNKNOWN_COMMAND\n")

    def run(self) -> None:
        """Serve the client until it disconnects."""
        try:
            while True:
                try:
                    data = self.sock.recv(BUFFER_SIZE - 1)
                except OSError:
                    break
                if not data:
                    break
                self.handle(data)
        finally:
            self.server.registry.remove(self.sock)
            self.sock.close()


class ChatServer:
    """Accepts clients and routes messages between them."""

    def __init__(
        self,
        database: ChatDatabase,
        host: str = "",
        port: int = PORT,
        history_delay: float = 0.05,
    ) -> None:
        self.database = database
        self.history_delay = history_delay
        self.registry = ClientRegistry()
        self._stop = threading.Event()
        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind((host, port))
        self._listener.listen(BACKLOG)
        self._listener.settimeout(0.2)
        self.address = self._listener.getsockname()

    def deliver(self, sender: str, receiver: str, msg: str) -> bool:
        """Pass a message to an online receiver; return whether it was delivered."""
        target = self.registry.find(receiver)
        sender_sock = self.registry.find(sender)
        if target is None:
            if sender_sock is not None:
                _send(sender_sock, "SEND_FAILED: User not online\n")
            return False
        _send(target, f"FROM {sender}: {msg}\n")
        if sender_sock is not None:
            _send(sender_sock, "SEND_SUCCESS\n")
            self.database.save_message(sender, receiver, msg)
            log.info("[Server] %s -> %s: %s", sender, receiver, msg)
        return True

    def send_history(self, username: str, sock: socket.socket) -> None:
        """Send a user's stored messages, one line per message."""
        log.debug("Sending history for user %s", username)
        for entry in self.database.history(username):
            _send(sock, entry.format())
            if self.history_delay:
                time.sleep(self.history_delay)

    def serve_forever(self) -> None:
        """Accept connections until shutdown() is called."""
        self._stop.clear()
        while not self._stop.is_set():
            try:
                conn, _ = self._listener.accept()
            except socket.timeout:
                continue
            except OSError:
                if self._stop.is_set():
                    break
                raise
            conn.settimeout(None)
            try:
                session = ClientSession(conn, self)
            except RuntimeError:
                conn.close()
                continue
            threading.Thread(target=session.run, daemon=True).start()

    def shutdown(self) -> None:
        """Stop accepting connections and close the listening socket."""
        self._stop.set()
        self._listener.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the chat server.")
    parser.add_argument("--host", default="")
    parser.add_argument("--port", type=int, default=PORT)
    parser.add_argument("--database", default=DEFAULT_PATH)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    try:
        database = ChatDatabase(args.database)
    except sqlite3.Error as exc:
        print(f"Cannot open database: {exc}", file=sys.stderr)
        print("Database init failed", file=sys.stderr)
        return 1
    with database:
        server = ChatServer(database, args.host, args.port)
        print(f"Server running on port {server.address[1]}...")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass
        finally:
            server.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())