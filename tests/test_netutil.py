import ipaddress

import pytest

from wizgate.netutil import (
    atoi,
    c2d,
    check_dest_in_local,
    checksum,
    inet_addr,
    inet_ntoa,
    itoa2,
    mid,
    swapl,
    swaps,
    valid_atoi,
    verify_ip_address,
)


@pytest.mark.parametrize("char, value", [("0", 0), ("7", 7), ("a", 10), ("f", 15), ("A", 10), ("F", 15)])
def test_c2d_digits(char, value):
    assert c2d(char) == value


def test_c2d_other_character_returns_code():
    assert c2d("z") == ord("z")


def test_atoi_bases():
    assert atoi("ff", 16) == 255
    assert atoi("1234", 10) == 1234


def test_atoi_wraps_to_16_bits():
    assert atoi("65536", 10) == 0


def test_valid_atoi_accepts_and_rejects():
    assert valid_atoi("1900", 10) == 1900
    with pytest.raises(ValueError):
        valid_atoi("12x", 10)
    with pytest.raises(ValueError):
        valid_atoi("", 10)


def test_itoa2_pads_and_overflows():
    assert itoa2(5, 3) == "  5"
    assert itoa2(0, 2) == " 0"
    with pytest.raises(ValueError):
        itoa2(123, 2)


@pytest.mark.parametrize("value", [0, 0x1234, 0xFF00, 0xFFFF])
def test_swaps_round_trip(value):
    assert swaps(swaps(value)) == value
    assert swaps(value) == int.from_bytes(value.to_bytes(2, "big"), "little")


@pytest.mark.parametrize("value", [0, 0x12345678, 0xC0A80B02, 0xFFFFFFFF])
def test_swapl_matches_byte_reversal(value):
    assert swapl(value) == int.from_bytes(value.to_bytes(4, "big"), "little")
    assert swapl(swapl(value)) == value


@pytest.mark.parametrize("text", ["192.168.11.2", "239.255.255.250", "8.8.8.8", "0.0.0.0"])
def test_inet_addr_and_ntoa(text):
    assert inet_addr(text) == int(ipaddress.IPv4Address(text))
    assert inet_ntoa(inet_addr(text)) == text


def test_inet_addr_hex_parts():
    assert inet_addr("0xc0.0xa8.11.2") == inet_addr("192.168.11.2")


def test_inet_addr_too_few_parts():
    with pytest.raises(ValueError):
        inet_addr("192.168.1")


def test_verify_ip_address():
    assert verify_ip_address("192.168.11.2") == (192, 168, 11, 2)
    assert verify_ip_address("0x0a.1.2.3") == (10, 1, 2, 3)


@pytest.mark.parametrize("text", ["256.1.1.1", "1.2.3", "a.b.c.d", "1.2.3.4x"])
def test_verify_ip_address_rejects(text):
    with pytest.raises(ValueError):
        verify_ip_address(text)


def test_mid_extracts():
    src = "HTTP/1.1 200 OK\r\nLOCATION: http://192.168.0.1:3121/gatedesc.xml\r\n"
    assert mid(src, "LOCATION: ", "\r\n") == "http://192.168.0.1:3121/gatedesc.xml"


def test_mid_missing_marker():
    with pytest.raises(ValueError):
        mid("abc", "x", "c")
    with pytest.raises(ValueError):
        mid("abc", "a", "z")


def test_checksum_empty():
    assert checksum(b"") == 0xFFFF


@pytest.mark.parametrize("data", [b"\x01\x02\x03\x04", b"\x45\x00\x00\x1c", b"\x10\x20\x30"])
def test_checksum_verifies_to_zero(data):
    padded = data + b"\x00" * (len(data) % 2)
    total = checksum(padded)
    assert checksum(padded + total.to_bytes(2, "big")) == 0


def test_checksum_odd_length_pads_with_zero():
    assert checksum(b"\x10\x20\x30") == checksum(b"\x10\x20\x30\x00")


def test_check_dest_in_local():
    assert check_dest_in_local((192, 168, 1, 1), (255, 255, 255, 0)) is False
    assert check_dest_in_local((10, 255, 0, 1), (255, 255, 255, 0)) is True


def test_check_dest_in_local_bad_length():
    with pytest.raises(ValueError):
        check_dest_in_local((1, 2, 3), (255, 255, 255, 0))