import hashlib

import pytest

from wizgate.md5 import MD5, md5


@pytest.mark.parametrize("length", [0, 1, 3, 55, 56, 57, 63, 64, 65, 119, 120, 128, 1000])
def test_matches_reference(length):
    data = bytes((i * 7 + 3) & 0xFF for i in range(length))
    assert md5(data) == hashlib.md5(data).digest()


def test_rfc_vector_abc():
    assert MD5(b"abc").hexdigest() == "900150983cd24fb0d6963f7d28e17f72"


def test_incremental_equals_one_shot():
    data = bytes(range(256)) * 3
    hasher = MD5()
    for start in range(0, len(data), 37):
        hasher.update(data[start:start + 37])
    assert hasher.digest() == md5(data)


def test_digest_does_not_consume_state():
    hasher = MD5(b"hello ")
    first = hasher.digest()
    assert hasher.digest() == first
    hasher.update(b"world")
    assert hasher.digest() == hashlib.md5(b"hello world").digest()


def test_hexdigest_matches_digest():
    hasher = MD5(b"W5100S")
    assert hasher.hexdigest() == hasher.digest().hex()
    assert len(hasher.digest()) == 16


def test_accepts_bytearray_and_memoryview():
    data = b"chap challenge"
    assert md5(bytearray(data)) == md5(memoryview(data)) == hashlib.md5(data).digest()


def test_rejects_text():
    with pytest.raises(TypeError):
        md5("text")