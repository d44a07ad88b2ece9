"""MD5 message digest (RFC 1321), used for PPP CHAP authentication."""

from __future__ import annotations

import math
import struct

_MASK = 0xFFFFFFFF
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)
_SHIFTS = (
    (7, 12, 17, 22) * 4
    + (5, 9, 14, 20) * 4
    + (4, 11, 16, 23) * 4
    + (6, 10, 15, 21) * 4
)
_CONSTANTS = tuple(int(abs(math.sin(i + 1)) * 2**32) & _MASK for i in range(64))
_BLOCK = 64


def _rotl(value: int, amount: int) -> int:
    return ((value << amount) | (value >> (32 - amount))) & _MASK


def _compress(state: tuple[int, int, int, int], block: bytes) -> tuple[int, int, int, int]:
    words = struct.unpack("<16I", block)
    a, b, c, d = state
    for i in range(64):
        if i < 16:
            f = (b & c) | (~b & d)
            g = i
        elif i < 32:
            f = (b & d) | (c & ~d)
            g = (5 * i + 1) % 16
        elif i < 48:
            f = b ^ c ^ d
            g = (3 * i + 5) % 16
        else:
            f = c ^ (b | ~d)
            g = (7 * i) % 16
        f &= _MASK
        rotated = _rotl((a + f + _CONSTANTS[i] + words[g]) & _MASK, _SHIFTS[i])
        a, d, c, b = d, c, b, (b + rotated) & _MASK
    return tuple((s + v) & _MASK for s, v in zip(state, (a, b, c, d)))  # type: ignore[return-value]


class MD5:
    """Incremental MD5 hasher."""

    digest_size = 16
    block_size = _BLOCK

    def __init__(self, data: bytes = b"") -> None:
        self._state = _INITIAL_STATE
        self._buffer = b""
        self._length = 0
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        """Feed more bytes into the hash."""
        chunk = bytes(memoryview(data))
        self._length += len(chunk)
        buffer = self._buffer + chunk
        full = len(buffer) - len(buffer) % _BLOCK
        for start in range(0, full, _BLOCK):
            self._state = _compress(self._state, buffer[start:start + _BLOCK])
        self._buffer = buffer[full:]

    def digest(self) -> bytes:
        """Return the 16-byte digest of everything fed so far."""
        bit_length = (self._length * 8) & 0xFFFFFFFFFFFFFFFF
        index = self._length % _BLOCK
        pad_len = 56 - index if index < 56 else 120 - index
        tail = self._buffer + b"\x80" + b"\x00" * (pad_len - 1) + struct.pack("<Q", bit_length)
        state = self._state
        for start in range(0, len(tail), _BLOCK):
            state = _compress(state, tail[start:start + _BLOCK])
        return struct.pack("<4I", *state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal text."""
        return self.digest().hex()


def md5(data: bytes) -> bytes:
    """Return the MD5 digest of ``data``."""
    return MD5(data).digest()