"""Small numeric, address and string helpers for network code."""

from __future__ import annotations

from collections.abc import Sequence

__all__ = [
    "c2d",
    "atoi",
    "valid_atoi",
    "itoa2",
    "swaps",
    "swapl",
    "inet_addr",
    "inet_ntoa",
    "verify_ip_address",
    "mid",
    "checksum",
    "check_dest_in_local",
]


def c2d(char: str) -> int:
    """Return the value of a hex digit, or the character code if it is not one."""
    if len(char) != 1:
        raise ValueError("expected a single character")
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "a" <= char <= "f":
        return 10 + ord(char) - ord("a")
    if "A" <= char <= "F":
        return 10 + ord(char) - ord("A")
    return ord(char)


def atoi(text: str, base: int) -> int:
    """Convert digits in ``base`` to a 16-bit unsigned number, without validation."""
    number = 0
    for char in text:
        number = number * base + c2d(char)
    return number & 0xFFFF


def valid_atoi(text: str, base: int) -> int:
    """Convert ``text`` like :func:`atoi`, raising ValueError on any invalid digit."""
    if not text:
        raise ValueError("empty number")
    for char in text:
        if not 0 <= c2d(char) < base:
            raise ValueError(f"invalid digit {char!r} for base {base}")
    return atoi(text, base)


def itoa2(number: int, width: int) -> str:
    """Format ``number`` in decimal, right-aligned with spaces to ``width``."""
    text = str(number & 0xFFFF)
    if len(text) > width:
        raise ValueError(f"{text} does not fit in {width} characters")
    return text.rjust(width)


def swaps(value: int) -> int:
    """Swap the two bytes of a 16-bit value."""
    return ((value & 0xFF) << 8) | ((value >> 8) & 0xFF)


def swapl(value: int) -> int:
    """Reverse the four bytes of a 32-bit value."""
    return (
        ((value & 0xFF) << 24)
        | (((value >> 8) & 0xFF) << 16)
        | (((value >> 16) & 0xFF) << 8)
        | ((value >> 24) & 0xFF)
    )


def _tokens(text: str) -> list[str]:
    return [token for token in text.split(".") if token]


def _octet_text(token: str) -> tuple[str, int]:
    if token.startswith("0x"):
        return token[2:], 16
    return token, 10


def inet_addr(text: str) -> int:
    """Convert a dotted address (parts may be 0x-prefixed hex) to a 32-bit number."""
    tokens = _tokens(text)
    if len(tokens) < 4:
        raise ValueError(f"not a dotted address: {text!r}")
    address = 0
    for token in tokens[:4]:
        digits, base = _octet_text(token)
        address = (address << 8) | (atoi(digits, base) & 0xFF)
    return address


def inet_ntoa(addr: int) -> str:
    """Convert a 32-bit number to dotted decimal notation."""
    return ".".join(str((addr >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def verify_ip_address(text: str) -> tuple[int, int, int, int]:
    """Check a dotted address and return its four octets; raise ValueError if invalid."""
    tokens = _tokens(text)
    if len(tokens) < 4:
        raise ValueError(f"not a dotted address: {text!r}")
    octets = []
    for token in tokens[:4]:
        digits, base = _octet_text(token)
        value = valid_atoi(digits, base)
        if value > 255:
            raise ValueError(f"octet out of range: {token!r}")
        octets.append(value)
    return tuple(octets)  # type: ignore[return-value]


def mid(src: str, start: str, end: str) -> str:
    """Return the text between the first ``start`` and the following ``end``."""
    begin = src.find(start)
    if begin < 0:
        raise ValueError(f"{start!r} not found")
    begin += len(start)
    finish = src.find(end, begin)
    if finish < 0:
        raise ValueError(f"{end!r} not found after {start!r}")
    return src[begin:finish]


def checksum(data: bytes) -> int:
    """Return the 16-bit one's complement checksum of ``data`` (single carry fold)."""
    data = bytes(data)
    total = sum(
        int.from_bytes(data[i:i + 2], "big") for i in range(0, len(data) - 1, 2)
    )
    if len(data) % 2:
        total += data[-1] << 8
    total &= 0xFFFFFFFF
    folded = (total + (total >> 16)) & 0xFFFFFFFF
    return ~folded & 0xFFFF


def check_dest_in_local(dest_ip: Sequence[int], mask: Sequence[int]) -> bool:
    """Report whether any octet of ``dest_ip`` equals the matching octet of ``mask``."""
    if len(dest_ip) != 4 or len(mask) != 4:
        raise ValueError("addresses must have four octets")
    return any(d == m for d, m in zip(dest_ip, mask))