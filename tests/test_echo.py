import socket

import pytest

from wizgate.echo import MultiSocketEchoServer


def poll_until_echo(server, attempts=50):
    for _ in range(attempts):
        echoes = server.poll(0.1)
        if echoes:
            return echoes
    return []


def connect(port):
    client = socket.create_connection(("127.0.0.1", port), timeout=5)
    return client


def test_rejects_zero_count():
    with pytest.raises(ValueError):
        MultiSocketEchoServer("127.0.0.1", 0, 0)


def test_rejects_port_range_overflow():
    with pytest.raises(ValueError):
        MultiSocketEchoServer("127.0.0.1", 65535, 2)


def test_poll_before_start_raises():
    server = MultiSocketEchoServer("127.0.0.1", 0, 1)
    with pytest.raises(RuntimeError):
        server.poll(0)


def test_ports_are_distinct():
    with MultiSocketEchoServer("127.0.0.1", 0, 3) as server:
        ports = server.ports
        assert len(ports) == 3
        assert len(set(ports)) == 3


def test_echoes_message_back():
    with MultiSocketEchoServer("127.0.0.1", 0, 2) as server:
        client = connect(server.ports[1])
        try:
            client.sendall(b"hello")
            echoes = poll_until_echo(server)
            assert [e.data for e in echoes] == [b"hello"]
            assert echoes[0].slot == 1
            assert echoes[0].peer == client.getsockname()
            assert client.recv(100) == b"hello"
        finally:
            client.close()


def test_slot_reopens_after_disconnect():
    with MultiSocketEchoServer("127.0.0.1", 0, 1) as server:
        port = server.ports[0]
        first = connect(port)
        first.sendall(b"one")
        assert [e.data for e in poll_until_echo(server)] == [b"one"]
        assert first.recv(100) == b"one"
        first.close()

        second = connect(port)
        try:
            second.sendall(b"two")
            echoes = poll_until_echo(server)
            assert [e.data for e in echoes] == [b"two"]
            assert second.recv(100) == b"two"
        finally:
            second.close()


def test_start_twice_raises():
    with MultiSocketEchoServer("127.0.0.1", 0, 1) as server:
        with pytest.raises(RuntimeError):
            server.start()