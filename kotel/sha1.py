"""SHA-1 message digest."""

from __future__ import annotations

import struct

_MASK = 0xFFFFFFFF
_BLOCK_BYTES = 64
_INITIAL = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def _rol(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (32 - bits))) & _MASK


def _transform(state: tuple[int, ...], block: bytes) -> tuple[int, ...]:
    words = list(struct.unpack(">16I", block))
    for i in range(16, 80):
        words.append(_rol(words[i - 3] ^ words[i - 8] ^ words[i - 14] ^ words[i - 16], 1))
    a, b, c, d, e = state
    for i, word in enumerate(words):
        if i < 20:
            f = (b & (c ^ d)) ^ d
            k = 0x5A827999
        elif i < 40:
            f = b ^ c ^ d
            k = 0x6ED9EBA1
        elif i < 60:
            f = ((b | c) & d) | (b & c)
            k = 0x8F1BBCDC
        else:
            f = b ^ c ^ d
            k = 0xCA62C1D6
        temp = (_rol(a, 5) + f + e + k + word) & _MASK
        a, b, c, d, e = temp, a, _rol(b, 30), c, d
    return tuple((x + y) & _MASK for x, y in zip(state, (a, b, c, d, e)))


class SHA1:
    """Incremental SHA-1 hash; each constructor argument is fed to update()."""

    digest_size = 20
    block_size = _BLOCK_BYTES

    def __init__(self, *args: bytes | bytearray | memoryview | str) -> None:
        self._state: tuple[int, ...] = _INITIAL
        self._buffer = bytearray()
        self._length = 0
        for data in args:
            self.update(data)

    def update(self, data: bytes | bytearray | memoryview | str) -> None:
        """Feed more data into the hash."""
        raw = _as_bytes(data)
        self._length += len(raw)
        self._buffer += raw
        while len(self._buffer) >= _BLOCK_BYTES:
            self._state = _transform(self._state, bytes(self._buffer[:_BLOCK_BYTES]))
            del self._buffer[:_BLOCK_BYTES]

    def digest(self) -> bytes:
        """Return the 20-byte digest of everything fed so far."""
        total_bits = (self._length * 8) & 0xFFFFFFFFFFFFFFFF
        tail = bytes(self._buffer) + b"\x80"
        tail += b"\x00" * ((_BLOCK_BYTES - 8 - len(tail)) % _BLOCK_BYTES)
        tail += total_bits.to_bytes(8, "big")
        state = self._state
        for off in range(0, len(tail), _BLOCK_BYTES):
            state = _transform(state, tail[off:off + _BLOCK_BYTES])
        return struct.pack(">5I", *state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal text."""
        return self.digest().hex()


def sha1(data: bytes | bytearray | memoryview | str) -> bytes:
    """Return the SHA-1 digest of ``data``."""
    return SHA1(data).digest()