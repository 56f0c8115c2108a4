import hashlib

import pytest
from hypothesis import given
from hypothesis import strategies as st

from kotel.sha1 import SHA1, sha1


def test_hello_world_digest():
    expected = bytes([
        0x7b, 0x50, 0x2c, 0x3a, 0x1f, 0x48, 0xc8, 0x60, 0x9a, 0xe2, 0x12, 0xcd,
        0xfb, 0x63, 0x9d, 0xee, 0x39, 0x67, 0x3f, 0x5e,
    ])
    assert sha1("Hello world") == expected


def test_constexpr_test_digest():
    expected = bytes([
        0x71, 0x3e, 0x0b, 0x0d, 0x14, 0xcd, 0xc4, 0xe5, 0x12, 0x05, 0xd1, 0x31,
        0x98, 0xaa, 0x82, 0xc8, 0xa4, 0x06, 0x68, 0xe7,
    ])
    assert SHA1("SHA1 constexpr test").digest() == expected


@pytest.mark.parametrize("length", [0, 1, 55, 56, 57, 63, 64, 65, 119, 120, 128, 1000])
def test_block_boundaries_match_hashlib(length):
    data = bytes(i % 251 for i in range(length))
    assert sha1(data) == hashlib.sha1(data).digest()


@given(st.binary(max_size=300))
def test_matches_hashlib(data):
    assert sha1(data) == hashlib.sha1(data).digest()


@given(st.lists(st.binary(max_size=80), max_size=6))
def test_incremental_equals_whole(chunks):
    hasher = SHA1()
    for chunk in chunks:
        hasher.update(chunk)
    assert hasher.digest() == sha1(b"".join(chunks))


def test_constructor_with_several_parts():
    assert SHA1(b"abc", b"def").digest() == sha1(b"abcdef")


def test_digest_is_repeatable_and_update_continues():
    hasher = SHA1(b"abc")
    first = hasher.digest()
    assert hasher.digest() == first
    hasher.update(b"def")
    assert hasher.digest() == hashlib.sha1(b"abcdef").digest()


def test_hexdigest():
    hasher = SHA1(b"abc")
    assert hasher.hexdigest() == hashlib.sha1(b"abc").hexdigest()
    assert len(hasher.digest()) == 20