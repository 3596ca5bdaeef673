# tinychat

tinychat is a small chat system that runs over TCP. A server keeps user accounts and a log of delivered messages in an SQLite database. A console client lets you register, log in and send direct messages to other users who are online.

## Installation

```
pip install .
```

tinychat uses only the Python standard library.

## Running the server

```
tinychat-server [--host HOST] [--port PORT] [--database PATH]
```

By default the server listens on port 8080 on all interfaces and stores its data in `data/chat.db`. It creates the directory, the file and its tables if they do not exist. Each client is served on its own thread; at most 100 clients can be connected at once, and further connections are closed straight away. Stop the server with Ctrl-C.

## Running the client

```
tinychat-client [--host HOST] [--port PORT]
```

The client connects to `127.0.0.1:8080` unless told otherwise and shows a menu:

```
1. REGISTER
2. LOGIN
3. SEND
```

- **REGISTER**: create an account with a username and a password. The server stores a SHA-256 hash of the password.
- **LOGIN**: log in to an account. When the login succeeds, the server sends you your message history, oldest first, one line per message in the form `[<timestamp>] <sender> -> <receiver>: <message>`.
- **SEND**: send a message to a user who is currently logged in.

Replies from the server are printed as they arrive. If the server closes the connection, the client exits. End input (Ctrl-D) or Ctrl-C also quits.

## Protocol

Each request is a single line of text:

| Request                        | Replies                                                  |
|--------------------------------|----------------------------------------------------------|
| `REGISTER <user> <password>`   | `REGISTER_SUCCESS` or `REGISTER_FAILED`                  |
| `LOGIN <user> <password>`      | `LOGIN_SUCCESS` and then your history, or `LOGIN_FAILED` |
| `SEND <user> <message>`        | `SEND_SUCCESS` or `SEND_FAILED: User not online`         |

The server replies to a SEND from a client that is not logged in with `ERROR: Please login first`. It replies to a SEND without a message with `ERROR: Invalid SEND format`, and to any other request with `UNKNOWN_COMMAND`. The recipient receives `FROM <sender>: <message>`. A message is stored in the database only when it has been delivered.

## Using it as a library

```python
from tinychat.database import ChatDatabase

password = "password"
with ChatDatabase("chat.db") as db:
    db.register_user("alice", password)
    assert db.login_user("alice", password)
    db.save_message("alice", "bob", "hello")
    for entry in db.history("alice"):
        print(entry.format(), end="")
```

- `tinychat.database`: `ChatDatabase` (accounts and messages, safe to share between threads), `HistoryEntry` and `hash_password`.
- `tinychat.server`: `ChatServer(database, host, port, history_delay)` with `serve_forever()` and `shutdown()`, plus `parse_command` for splitting a request line.
- `tinychat.client`: `register_command`, `login_command` and `send_command` build the request lines listed above; `receive_loop` prints what a server sends.

## Limitations

Messages are delivered only to users who are logged in at that moment; there is no queue for offline users, and a message that could not be delivered is not stored. Traffic is plain text with no encryption, and there is no logout other than closing the connection.

## Tests

```
pip install .[test]
pytest
```