"""Interactive chat client."""

from __future__ import annotations

import argparse
import os
import socket
import sys
import threading
from typing import Callable, TextIO

PORT = 8080
HOST = "127.0.0.1"
BUFFER_SIZE = 1024

MENU = "\nMenu:\n1. REGISTER\n2. LOGIN\n3. SEND\nSelect an option: "


def _fit(command: str) -> str:
    return command[: BUFFER_SIZE - 1]


def register_command(username: str, password: str) -> str:
    """Build a REGISTER request."""
    return _fit(f"REGISTER {username} {password}")


def login_command(username: str, password: str) -> str:
    """Build a LOGIN request."""
    return _fit(f"LOGIN {username} {password}")


def send_command(to_user: str, message: str) -> str:
    """Build a SEND request."""
    return _fit(f"SEND {to_user} {message}")


def build_command(choice, prompt: Callable[[str], str] = input) -> str | None:
    """Ask for the fields of a menu choice and return the request, or None if the choice is invalid."""
    try:
        number = int(choice)
    except (TypeError, ValueError):
        return None
    if number == 1:
        username = prompt("\nEnter username for registration: ")
        return register_command(username, prompt("Enter password for registration: "))
    if number == 2:
        username = prompt("\nEnter username for login: ")
        return login_command(username, prompt("Enter password for login: "))
    if number == 3:
        to_user = prompt("\nEnter recipient's username: ")
        message = prompt("Enter your message: ")
        return send_command(to_user, message)
    return None


def receive_loop(sock: socket.socket, out: TextIO) -> None:
    """Print everything the server sends until the connection closes."""
    while True:
        try:
            data = sock.recv(BUFFER_SIZE - 1)
        except OSError:
            data = b""
        if not data:
            out.write("\nDisconnected from server.\n")
            out.flush()
            return
        out.write(f"\nServer: {data.decode('utf-8', errors='replace')}\n")
        out.flush()


def _receive_then_exit(sock: socket.socket) -> None:
    receive_loop(sock, sys.stdout)
    os._exit(0)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Connect to the chat server.")
    parser.add_argument("--host", default=HOST)
    parser.add_argument("--port", type=int, default=PORT)
    args = parser.parse_args(argv)
    try:
        sock = socket.create_connection((args.host, args.port))
    except OSError as exc:
        print(f"Connection failed: {exc}", file=sys.stderr)
        return 1
    with sock:
        threading.Thread(target=_receive_then_exit, args=(sock,), daemon=True).start()
        try:
            while True:
                command = build_command(input(MENU).strip())
                if command is None:
                    print("Invalid choice, please try again.")
                    continue
                sock.sendall(command.encode("utf-8"))
        except (EOFError, KeyboardInterrupt):
            pass
    return 0


if __name__ == "__main__":
    sys.exit(main())