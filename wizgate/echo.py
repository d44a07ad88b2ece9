"""TCP echo server with several listening ports served in turn."""

from __future__ import annotations

import argparse
import logging
import selectors
import socket
import threading
from collections.abc import Sequence
from dataclasses import dataclass

__all__ = ["Echo", "MultiSocketEchoServer", "main"]

logger = logging.getLogger(__name__)

SOCKET_COUNT = 8
BUFFER_SIZE = 2048
DEFAULT_PORT = 8000


@dataclass(frozen=True)
class Echo:
    """One message received and sent back on a slot."""

    slot: int
    peer: tuple[str, int]
    data: bytes


class MultiSocketEchoServer:
    """Echo server with ``count`` slots, each listening on its own port.

    Slot ``i`` listens on ``base_port + i`` (or an ephemeral port when
    ``base_port`` is 0) and serves one client at a time, as a hardware socket
    does: while a client is connected, further connections on that port wait.
    """

    def __init__(self, host: str = "0.0.0.0", base_port: int = DEFAULT_PORT,
                 count: int = SOCKET_COUNT) -> None:
        if count < 1:
            raise ValueError("count must be at least 1")
        if base_port < 0 or (base_port and base_port + count - 1 > 0xFFFF):
            raise ValueError("port range out of bounds")
        self.host = host
        self.base_port = base_port
        self.count = count
        self._listeners: list[socket.socket] = []
        self._connections: dict[int, tuple[socket.socket, tuple[str, int]]] = {}
        self._selector: selectors.BaseSelector | None = None
        self._closed = threading.Event()

    @property
    def ports(self) -> list[int]:
        """The ports the slots are listening on, in slot order."""
        return [listener.getsockname()[1] for listener in self._listeners]

    def start(self) -> None:
        """Open and register the listening sockets."""
        if self._selector is not None:
            raise RuntimeError("server already started")
        self._closed.clear()
        selector = selectors.DefaultSelector()
        listeners: list[socket.socket] = []
        try:
            for slot in range(self.count):
                port = self.base_port + slot if self.base_port else 0
                listener = socket.create_server((self.host, port), backlog=1)
                listener.setblocking(False)
                listeners.append(listener)
                selector.register(listener, selectors.EVENT_READ, (slot, True))
                logger.info("%d:Listen, TCP server loopback, port [%d]",
                            slot, listener.getsockname()[1])
        except OSError:
            for listener in listeners:
                listener.close()
            selector.close()
            raise
        self._listeners = listeners
        self._selector = selector

    def poll(self, timeout: float | None = None) -> list[Echo]:
        """Serve whatever is ready within ``timeout`` seconds and return the echoes."""
        if self._selector is None:
            raise RuntimeError("server not started")
        echoes = []
        for key, _ in self._selector.select(timeout):
            slot, listening = key.data
            if listening:
                self._accept(slot)
            else:
                echo = self._echo(slot)
                if echo is not None:
                    echoes.append(echo)
        return echoes

    def _accept(self, slot: int) -> None:
        listener = self._listeners[slot]
        try:
            conn, peer = listener.accept()
        except BlockingIOError:
            return
        conn.setblocking(True)
        conn.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        assert self._selector is not None
        self._selector.unregister(listener)
        self._selector.register(conn, selectors.EVENT_READ, (slot, False))
        self._connections[slot] = (conn, peer[:2])
        logger.info("%d:Connected - %s : %d", slot, peer[0], peer[1])

    def _echo(self, slot: int) -> Echo | None:
        conn, peer = self._connections[slot]
        try:
            data = conn.recv(BUFFER_SIZE)
        except OSError:
            data = b""
        if not data:
            self._disconnect(slot)
            logger.info("%d:Socket Closed", slot)
            return None
        try:
            conn.sendall(data)
        except OSError:
            self._disconnect(slot)
            return None
        logger.info("socket%d from:%s port: %d  message:%s",
                    slot, peer[0], peer[1], data.decode("latin-1"))
        return Echo(slot, peer, data)

    def _disconnect(self, slot: int) -> None:
        conn, _ = self._connections.pop(slot)
        assert self._selector is not None
        self._selector.unregister(conn)
        conn.close()
        self._selector.register(self._listeners[slot], selectors.EVENT_READ, (slot, True))

    def serve_forever(self) -> None:
        """Serve all slots until :meth:`close` is called."""
        if self._selector is None:
            self.start()
        while not self._closed.is_set():
            try:
                self.poll(0.5)
            except (OSError, ValueError, RuntimeError):
                if self._closed.is_set():
                    break
                raise

    def close(self) -> None:
        """Close every connection and listener."""
        self._closed.set()
        for conn, _ in self._connections.values():
            conn.close()
        self._connections.clear()
        for listener in self._listeners:
            listener.close()
        self._listeners = []
        if self._selector is not None:
            self._selector.close()
            self._selector = None

    def __enter__(self) -> MultiSocketEchoServer:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the multi-port echo server from the command line."""
    parser = argparse.ArgumentParser(description="TCP echo server on several ports.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="first port")
    parser.add_argument("--count", type=int, default=SOCKET_COUNT, help="number of ports")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    server = MultiSocketEchoServer(args.host, args.port, args.count)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.close()
    return 0