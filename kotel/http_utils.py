"""Small helpers for parsing HTTP requests and URL encoding."""

from __future__ import annotations

import enum
from dataclasses import dataclass

_C_SPACE = " \t\n\v\f\r"
_ASCII_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)
_UNRESERVED = frozenset(
    b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789-._~"
)
_HEX_CHARS = "0123456789ABCDEF"


def split(data: str, sep: str) -> tuple[str, str]:
    """Split ``data`` at the first ``sep``.

    Returns the part before the separator and the rest after it.  When the
    separator is missing, the whole string comes first and the rest is empty.
    """
    first, found, rest = data.partition(sep)
    if not found:
        return data, ""
    return first, rest


def trim(data: str) -> str:
    """Strip ASCII whitespace from both ends."""
    return data.strip(_C_SPACE)


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_LOWER)


def icmp(a: str, b: str) -> bool:
    """Compare two strings, ignoring ASCII case only."""
    return len(a) == len(b) and _ascii_lower(a) == _ascii_lower(b)


def iless(a: str, b: str) -> bool:
    """Return True when ``a`` sorts before ``b``, ignoring ASCII case only."""
    for ca, cb in zip(_ascii_lower(a), _ascii_lower(b)):
        if ca != cb:
            return ca < cb
    return len(a) < len(b)


def parse_http_header(hdr: str) -> tuple[str, list[tuple[str, str]]]:
    """Parse an HTTP header block.

    Returns the first line and the list of ``(key, value)`` pairs, trimmed,
    one for every following line (including empty ones).
    """
    first_line, hdr = split(hdr, "\r\n")
    fields: list[tuple[str, str]] = []
    while hdr:
        line, hdr = split(hdr, "\r\n")
        key, value = split(line, ":")
        fields.append((trim(key), trim(value)))
    return first_line, fields


class HttpMethod(enum.Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"
    DELETE = "DELETE"
    CONNECT = "CONNECT"
    UNKNOWN = "unknown"
    WS = "WS"


_REQUEST_METHODS = (
    HttpMethod.GET,
    HttpMethod.POST,
    HttpMethod.PUT,
    HttpMethod.HEAD,
    HttpMethod.OPTIONS,
    HttpMethod.TRACE,
    HttpMethod.DELETE,
    HttpMethod.CONNECT,
)


@dataclass(frozen=True)
class HttpRequestLine:
    method: HttpMethod
    path: str
    version: str


def parse_http_request_line(first_line: str) -> HttpRequestLine:
    """Parse ``METHOD path version``; the method is matched ignoring case."""
    method_text, rest = split(first_line, " ")
    path, version = split(rest, " ")
    method = next(
        (m for m in _REQUEST_METHODS if icmp(m.value, method_text)),
        HttpMethod.UNKNOWN,
    )
    return HttpRequestLine(method, path, version)


def url_encode(data: str | bytes) -> str:
    """Percent-encode everything except ASCII letters, digits and ``-._~``."""
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    return "".join(
        chr(byte) if byte in _UNRESERVED
        else "%" + _HEX_CHARS[byte >> 4] + _HEX_CHARS[byte & 0xF]
        for byte in raw
    )


def _from_hex(c: int) -> int:
    if 0x30 <= c <= 0x39:
        return c - 0x30
    if 0x41 <= c <= 0x46:
        return c - 0x41 + 10
    if 0x61 <= c <= 0x66:
        return c - 0x61 + 10
    return 2


def url_decode(data: str | bytes) -> str | bytes:
    """Decode ``%XX`` escapes.

    A truncated escape at the end ends the output.  Bytes in give bytes out;
    text in gives text out, decoded as UTF-8.
    """
    raw = data.encode("utf-8") if isinstance(data, str) else bytes(data)
    out = bytearray()
    it = iter(raw)
    for byte in it:
        if byte != 0x25:
            out.append(byte)
            continue
        hex1 = next(it, None)
        hex2 = next(it, None)
        if hex1 is None or hex2 is None:
            break
        out.append(((_from_hex(hex1) << 4) + _from_hex(hex2)) & 0xFF)
    if isinstance(data, str):
        return out.decode("utf-8", errors="replace")
    return bytes(out)