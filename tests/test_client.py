import io
import socket

from tinychat.client import (
    build_command,
    login_command,
    main,
    receive_loop,
    register_command,
    send_command,
)


def _prompter(answers):
    asked = []
    replies = iter(answers)

    def prompt(text):
        asked.append(text)
        return next(replies)

    return prompt, asked


def test_simple_commands():
    assert register_command("alice", "password") == "REGISTER alice password"
    assert login_command("alice", "password") == "LOGIN alice password"
    assert send_command("bob", "hello there") == "SEND bob hello there"


def test_commands_are_truncated():
    assert len(send_command("bob", "x" * 5000)) == 1023


def test_build_register():
    prompt, asked = _prompter(["alice", "password"])
    assert build_command("1", prompt) == register_command("alice", "password")
    assert asked == [
        "\nEnter username for registration: ",
        "Enter password for registration: ",
    ]


def test_build_login_and_send():
    prompt, asked = _prompter(["bob", "secret"])
    assert build_command(2, prompt) == login_command("bob", "secret")
    assert asked[0] == "\nEnter username for login: "
    prompt, asked = _prompter(["alice", "hi all"])
    assert build_command("3", prompt) == send_command("alice", "hi all")
    assert asked == ["\nEnter recipient's username: ", "Enter your message: "]


def test_build_invalid_choice_asks_nothing():
    prompt, asked = _prompter([])
    assert build_command("9", prompt) is None
    assert build_command("abc", prompt) is None
    assert asked == []


def test_receive_loop_prints_and_detects_disconnect():
    a, b = socket.socketpair()
    try:
        b.sendall(b"LOGIN_SUCCESS\n")
        b.close()
        out = io.StringIO()
        receive_loop(a, out)
        assert out.getvalue() == (
            "\nServer: LOGIN_SUCCESS\n\n\nDisconnected from server.\n"
        )
    finally:
        a.close()


def test_main_connection_refused(capsys):
    probe = socket.socket()
    probe.bind(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    assert main(["--host", "127.0.0.1", "--port", str(port)]) == 1
    assert "Connection failed" in capsys.readouterr().err