"""NetBIOS name service responder: answers name queries for one name."""

from __future__ import annotations

import argparse
import ipaddress
import logging
import socket
import struct
import threading
from collections.abc import Sequence
from dataclasses import dataclass

__all__ = [
    "NameQuery",
    "NetbiosResponder",
    "build_response",
    "decode_name",
    "encode_name",
    "main",
]

logger = logging.getLogger(__name__)

DEFAULT_NAME = "W55RP20"
DEFAULT_ADDRESS = "192.168.11.2"
NETBIOS_PORT = 137
NAME_LEN = 16
MSG_MAX_LEN = 512
NAME_TTL = 10

HFLAG_RESPONSE = 0x8000
HFLAG_OPCODE = 0x7800
HFLAG_OPCODE_NAME_QUERY = 0x0000
HFLAG_AUTHORITATIVE = 0x0400
HFLAG_TRUNCATED = 0x0200
HFLAG_RECURSION_DESIRED = 0x0100
HFLAG_RECURSION_AVAILABLE = 0x0080
HFLAG_BROADCAST = 0x0010

NFLAG_UNIQUE = 0x8000
NFLAG_NODETYPE_HNODE = 0x6000
NFLAG_NODETYPE_MNODE = 0x4000
NFLAG_NODETYPE_PNODE = 0x2000
NFLAG_NODETYPE_BNODE = 0x0000

_HEADER = struct.Struct(">6H")
_QUESTION = struct.Struct(">B33sHH")
_RESPONSE = struct.Struct(">6HB33sHHIHH4s")


def decode_name(encoded: str | bytes) -> str:
    """Decode a first-level encoded NetBIOS name.

    Decoding stops at a NUL or at a '.' that starts the scope ID. At most
    sixteen characters are kept, and the name ends at the first padding space.
    Raises ValueError on characters outside 'A'-'Z' or an unpaired character.
    """
    text = encoded.decode("latin-1") if isinstance(encoded, (bytes, bytearray)) else encoded
    chars = iter(text)
    decoded: list[str] = []
    for high in chars:
        if high in "\0.":
            break
        if not "A" <= high <= "Z":
            raise ValueError(f"illegal character {high!r} in encoded name")
        low = next(chars, "\0")
        if low in "\0.":
            raise ValueError("encoded name ends in the middle of a pair")
        if not "A" <= low <= "Z":
            raise ValueError(f"illegal character {low!r} in encoded name")
        value = (((ord(high) - ord("A")) << 4) | (ord(low) - ord("A"))) & 0xFF
        if len(decoded) < NAME_LEN:
            decoded.append("\0" if value == 0x20 else chr(value))
    return "".join(decoded).split("\0", 1)[0]


def encode_name(name: str) -> str:
    """Encode ``name`` as 32 characters: padded to 15 with spaces plus a 0x00 suffix."""
    if len(name) > NAME_LEN - 1:
        raise ValueError(f"NetBIOS name longer than {NAME_LEN - 1} characters: {name!r}")
    raw = name.encode("latin-1").ljust(NAME_LEN - 1, b" ") + b"\x00"
    return "".join(chr(ord("A") + (b >> 4)) + chr(ord("A") + (b & 0x0F)) for b in raw)


@dataclass(frozen=True)
class NameQuery:
    """A NetBIOS name query question as received on the wire."""

    trans_id: int
    flags: int
    name_type: int
    encoded_name: bytes
    qtype: int
    qclass: int
    name: str

    @classmethod
    def parse(cls, packet: bytes) -> NameQuery:
        """Parse a name query packet; raise ValueError if it is not one."""
        packet = bytes(packet)
        if len(packet) < _HEADER.size + _QUESTION.size:
            raise ValueError("packet too short for a NetBIOS name query")
        trans_id, flags, questions, _answers, _authority, _additional = _HEADER.unpack_from(packet)
        if (flags & HFLAG_OPCODE) != HFLAG_OPCODE_NAME_QUERY:
            raise ValueError("not a name query opcode")
        if flags & HFLAG_RESPONSE:
            raise ValueError("packet is a response")
        if questions != 1:
            raise ValueError(f"expected one question, got {questions}")
        name_type, encoded, qtype, qclass = _QUESTION.unpack_from(packet, _HEADER.size)
        return cls(
            trans_id=trans_id,
            flags=flags,
            name_type=name_type,
            encoded_name=encoded,
            qtype=qtype,
            qclass=qclass,
            name=decode_name(encoded),
        )


def _address_bytes(address: str | bytes | Sequence[int]) -> bytes:
    if isinstance(address, str):
        return ipaddress.IPv4Address(address).packed
    packed = bytes(address)
    if len(packed) != 4:
        raise ValueError("an IPv4 address has four octets")
    return packed


def build_response(query: NameQuery, address: str | bytes | Sequence[int]) -> bytes:
    """Build the positive name query response that maps ``query`` to ``address``."""
    addr = _address_bytes(address)
    flags = HFLAG_RESPONSE | HFLAG_OPCODE_NAME_QUERY | HFLAG_AUTHORITATIVE | HFLAG_RECURSION_DESIRED
    return _RESPONSE.pack(
        query.trans_id,
        flags,
        0,
        1,
        0,
        0,
        query.name_type,
        query.encoded_name,
        query.qtype,
        query.qclass,
        NAME_TTL,
        2 + len(addr),
        NFLAG_NODETYPE_BNODE,
        addr,
    )


class NetbiosResponder:
    """UDP responder that answers queries for one NetBIOS name."""

    def __init__(
        self,
        name: str = DEFAULT_NAME,
        address: str | bytes | Sequence[int] = DEFAULT_ADDRESS,
        port: int = NETBIOS_PORT,
    ) -> None:
        self.name = name
        self.address = _address_bytes(address)
        self._closed = threading.Event()
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            self._sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self._sock.bind(("0.0.0.0", port))
            self._sock.settimeout(0.5)
        except OSError:
            self._sock.close()
            raise
        logger.info("Opened UDP responder on port %d", self.port)

    @property
    def port(self) -> int:
        """The UDP port the responder is bound to."""
        return self._sock.getsockname()[1]

    def handle(self, packet: bytes) -> bytes | None:
        """Return the response to ``packet``, or None when it needs no answer."""
        try:
            query = NameQuery.parse(packet)
        except ValueError:
            return None
        logger.info("name query for %r", query.name)
        if query.name != self.name:
            return None
        return build_response(query, self.address)

    def serve_forever(self) -> None:
        """Answer queries until :meth:`close` is called."""
        while not self._closed.is_set():
            try:
                packet, peer = self._sock.recvfrom(MSG_MAX_LEN)
            except socket.timeout:
                continue
            except OSError:
                if self._closed.is_set():
                    break
                raise
            logger.info("query from %s:%d", *peer)
            response = self.handle(packet)
            if response is not None:
                try:
                    self._sock.sendto(response, peer)
                except OSError:
                    if self._closed.is_set():
                        break
                    raise
                logger.info("sent response")

    def close(self) -> None:
        """Stop serving and release the socket."""
        self._closed.set()
        self._sock.close()

    def __enter__(self) -> NetbiosResponder:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def main(argv: Sequence[str] | None = None) -> int:
    """Run a NetBIOS name responder from the command line."""
    parser = argparse.ArgumentParser(description="Answer NetBIOS name queries.")
    parser.add_argument("--name", default=DEFAULT_NAME, help="NetBIOS name to answer for")
    parser.add_argument("--address", default=DEFAULT_ADDRESS, help="IPv4 address to report")
    parser.add_argument("--port", type=int, default=NETBIOS_PORT, help="UDP port to listen on")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    with NetbiosResponder(args.name, args.address, args.port) as responder:
        try:
            responder.serve_forever()
        except KeyboardInterrupt:
            pass
    return 0