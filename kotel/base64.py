"""Base64 encoding and decoding with a configurable alphabet and padding."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

_NO_TERMINATOR = "\0"


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class Base64Codec:
    """Base64 codec over a 64-character alphabet.

    ``terminator`` is the padding character.  ``"\\0"`` (or ``""``) means
    that encoded text is not padded.  Decoding stops at the terminator and
    silently skips characters that are not in the alphabet.
    """

    def __init__(self, charset: str, terminator: str) -> None:
        if len(charset) != 64 or len(set(charset)) != 64:
            raise ValueError("charset must hold 64 distinct characters")
        if not terminator:
            terminator = _NO_TERMINATOR
        if len(terminator) != 1:
            raise ValueError("terminator must be a single character")
        if terminator in charset:
            raise ValueError("terminator must not be part of the charset")
        self._charset = charset
        self._terminator = terminator
        self._charmap = {ch: index for index, ch in enumerate(charset)}

    @property
    def charset(self) -> str:
        return self._charset

    @property
    def terminator(self) -> str:
        return self._terminator

    @property
    def pads(self) -> bool:
        """True when encoded output is padded with the terminator."""
        return self._terminator != _NO_TERMINATOR

    def encode(self, data: bytes | bytearray | memoryview | str) -> str:
        """Encode bytes (or UTF-8 text) to a base64 string."""
        raw = _as_bytes(data)
        cs = self._charset
        out: list[str] = []
        full = len(raw) - len(raw) % 3
        for off in range(0, full, 3):
            accum = int.from_bytes(raw[off:off + 3], "big")
            out.append(cs[accum >> 18])
            out.append(cs[(accum >> 12) & 0x3F])
            out.append(cs[(accum >> 6) & 0x3F])
            out.append(cs[accum & 0x3F])
        rest = raw[full:]
        if len(rest) == 1:
            accum = rest[0]
            out.append(cs[accum >> 2])
            out.append(cs[(accum << 4) & 0x3F])
            if self.pads:
                out.append(self._terminator * 2)
        elif len(rest) == 2:
            accum = int.from_bytes(rest, "big")
            out.append(cs[accum >> 10])
            out.append(cs[(accum >> 4) & 0x3F])
            out.append(cs[(accum << 2) & 0x3F])
            if self.pads:
                out.append(self._terminator)
        return "".join(out)

    def _sextets(self, text: Iterable[str]) -> Iterator[int]:
        for ch in text:
            if ch == self._terminator:
                return
            value = self._charmap.get(ch)
            if value is not None:
                yield value

    def decode(self, text: str | bytes | bytearray) -> bytes:
        """Decode base64 text, skipping characters outside the alphabet."""
        if isinstance(text, (bytes, bytearray)):
            text = bytes(text).decode("latin-1")
        out = bytearray()
        accum = 0
        count = 0
        for value in self._sextets(text):
            accum = (accum << 6) | value
            count += 1
            if count == 4:
                out += accum.to_bytes(3, "big")
                accum = 0
                count = 0
        if count == 2:
            out.append((accum >> 4) & 0xFF)
        elif count == 3:
            out.append((accum >> 10) & 0xFF)
            out.append((accum >> 2) & 0xFF)
        return bytes(out)


BASE64 = Base64Codec(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/", "="
)
BASE64URL = Base64Codec(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-_", "\0"
)