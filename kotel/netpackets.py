"""NTP and DNS packets for time and name lookups over UDP."""

from __future__ import annotations

import struct
from ipaddress import IPv4Address

NTP_PORT = 123
NTP_PACKET_SIZE = 48
NTP_UNIX_EPOCH_DIFF = 2208988800
_NTP_HEADER = bytes((0x23, 0x00, 0x06, 0xEC))
_TRANSMIT_TIMESTAMP_OFFSET = 40

DNS_PORT = 53
_DNS_HEADER = struct.Struct(">6H")
_DNS_FOOTER = struct.Struct(">2H")
_DNS_FLAGS_RECURSION = 0x0100
_DNS_TYPE_A = 0x0001
_DNS_CLASS_IN = 0x0001


def build_ntp_request() -> bytes:
    """Return an NTP client request packet."""
    return _NTP_HEADER.ljust(NTP_PACKET_SIZE, b"\0")


def parse_ntp_response(data: bytes | bytearray) -> int:
    """Return the server's transmit time as Unix seconds."""
    raw = bytes(data)
    end = _TRANSMIT_TIMESTAMP_OFFSET + 4
    if len(raw) < end:
        raise ValueError(f"NTP response needs {end} bytes, got {len(raw)}")
    seconds = int.from_bytes(raw[_TRANSMIT_TIMESTAMP_OFFSET:end], "big")
    if seconds < NTP_UNIX_EPOCH_DIFF:
        # Timestamps below the Unix epoch belong to the next NTP era.
        seconds += 1 << 32
    return seconds - NTP_UNIX_EPOCH_DIFF


def build_dns_query(domain: str, query_id: int) -> bytes:
    """Return a recursive DNS query for the A record of ``domain``."""
    name = domain.encode("ascii")
    header = _DNS_HEADER.pack(query_id & 0xFFFF, _DNS_FLAGS_RECURSION, 1, 0, 0, 0)
    labels = bytearray()
    pos = 0
    last = 0
    while pos < len(name):
        dot = name.find(b".", last)
        pos = len(name) if dot < 0 else dot
        label = name[last:pos]
        if len(label) > 0xFF:
            raise ValueError(f"label of {len(label)} characters is too long")
        labels.append(len(label))
        labels += label
        last = pos + 1
    labels.append(0)
    return header + bytes(labels) + _DNS_FOOTER.pack(_DNS_TYPE_A, _DNS_CLASS_IN)


def parse_dns_response(data: bytes | bytearray) -> IPv4Address | None:
    """Return the first IPv4 address answered, or None if there is none."""
    raw = bytes(data)
    if len(raw) < _DNS_HEADER.size:
        return None
    offset = _DNS_HEADER.size
    while offset < len(raw) and raw[offset] != 0:
        offset += raw[offset] + 1
    offset += 1 + _DNS_FOOTER.size
    while offset < len(raw):
        offset += 2  # name, normally a compression pointer
        if offset + 10 > len(raw):
            return None
        rtype, _rclass, _ttl, length = struct.unpack_from(">HHIH", raw, offset)
        offset += 10
        if rtype == _DNS_TYPE_A and length == 4:
            if offset + 4 > len(raw):
                return None
            return IPv4Address(raw[offset:offset + 4])
        offset += length
    return None