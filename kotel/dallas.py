"""Dallas/Maxim one-wire temperature sensors (DS18B20 family)."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

DS18S20_MODEL = 0x10
DS18B20_MODEL = 0x28
DS1822_MODEL = 0x22
DS1825_MODEL = 0x3B
DS28EA00_MODEL = 0x42

SUPPORTED_FAMILIES = frozenset(
    {DS18S20_MODEL, DS18B20_MODEL, DS1822_MODEL, DS1825_MODEL, DS28EA00_MODEL}
)

CMD_CONVERT_T = 0x44
CMD_READ_SCRATCHPAD = 0xBE

# Scratchpad locations
TEMP_LSB = 0
TEMP_MSB = 1
HIGH_ALARM_TEMP = 2
LOW_ALARM_TEMP = 3
CONFIGURATION = 4
INTERNAL_BYTE = 5
COUNT_REMAIN = 6
COUNT_PER_C = 7
SCRATCHPAD_CRC = 8
SCRATCHPAD_SIZE = 9

# ROM fields
DSROM_FAMILY = 0
DSROM_CRC = 7
ADDRESS_SIZE = 8

_NEG = 0xFFF80000
_U32 = 0xFFFFFFFF


class Status(enum.Enum):
    OK = "ok"
    FAULT_OPEN = "fault_open"
    FAULT_SHORTGND = "fault_shortgnd"
    FAULT_SHORTVDD = "fault_shortvdd"
    FAULT_DISCONNECTED = "fault_disconnected"
    FAULT_NOT_PRESENT = "fault_not_present"
    FAULT_CRC = "fault_crc"


class AsyncCommand(enum.Enum):
    REQUEST_TEMP_GLOBAL = "request_temp_global"
    REQUEST_TEMP_ADDR = "request_temp_addr"
    READ_TEMP = "read_temp"
    DONE = "done"


class SensorFault(Exception):
    """The sensor reported a fault instead of a temperature."""

    def __init__(self, status: Status) -> None:
        super().__init__(f"sensor fault: {status.value}")
        self.status = status


@dataclass
class AsyncState:
    """Progress of one step-by-step bus operation."""

    command: AsyncCommand = AsyncCommand.DONE
    phase: int = 0
    addr: bytes = bytes(ADDRESS_SIZE)
    buffer: bytearray = field(default_factory=lambda: bytearray(SCRATCHPAD_SIZE))
    status: Status = Status.OK


class OneWireBus(Protocol):
    """Bus operations the sensor driver needs; each returns False on failure."""

    def reset(self) -> bool: ...

    def select(self, address: bytes) -> bool: ...

    def select_all(self) -> bool: ...

    def write(self, byte: int) -> bool: ...

    def read(self) -> int | None: ...

    def search(self) -> Iterable[bytes]: ...


def crc8(data: bytes | bytearray | Iterable[int]) -> int:
    """Dallas/Maxim CRC-8 of ``data``."""
    crc = 0
    for byte in bytes(data):
        for _ in range(8):
            mix = (crc ^ byte) & 1
            crc >>= 1
            if mix:
                crc ^= 0x8C
            byte >>= 1
    return crc


def _cdiv(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def _signed32(value: int) -> int:
    value &= _U32
    return value - (1 << 32) if value & 0x80000000 else value


def calculate_temperature(
    address: bytes | bytearray, scratchpad: bytes | bytearray
) -> int:
    """Temperature in 1/128 degree Celsius from a sensor's scratchpad.

    Raises SensorFault when a MAX31850 (DS1825 family) reports a fault.
    """
    sp = bytes(scratchpad)
    if len(sp) < SCRATCHPAD_CRC:
        raise ValueError(f"scratchpad needs {SCRATCHPAD_CRC} bytes, got {len(sp)}")
    family = bytes(address)[DSROM_FAMILY]
    msb = sp[TEMP_MSB]
    lsb = sp[TEMP_LSB]
    neg = _NEG if msb & 0x80 else 0

    if family == DS1825_MODEL and sp[CONFIGURATION] & 0x80:
        if lsb & 1:
            alarm = sp[HIGH_ALARM_TEMP]
            if alarm & 1:
                raise SensorFault(Status.FAULT_OPEN)
            if alarm >> 1 & 1:
                raise SensorFault(Status.FAULT_SHORTGND)
            if alarm >> 2 & 1:
                raise SensorFault(Status.FAULT_SHORTVDD)
            raise SensorFault(Status.FAULT_DISCONNECTED)
        fp = (msb << 11) | ((lsb & 0xFC) << 3) | neg
    else:
        fp = (msb << 11) | (lsb << 3) | neg

    count_per_c = sp[COUNT_PER_C]
    if family == DS18S20_MODEL and count_per_c != 0:
        extra = _cdiv((count_per_c - sp[COUNT_REMAIN]) << 7, count_per_c)
        fp = (((fp & 0xFFF0) << 3) - 32 + extra) | neg

    return _signed32(fp)


class SimpleDallasTemp:
    """Reads Dallas temperature sensors over a one-wire bus."""

    def __init__(self, wire: OneWireBus) -> None:
        self._wire = wire
        self._last_status = Status.OK

    @property
    def last_error(self) -> Status:
        """Status of the last synchronous read."""
        return self._last_status

    def is_valid_address(self, addr: bytes | bytearray) -> bool:
        """True for a ROM address with a correct CRC and a supported family."""
        raw = bytes(addr)
        if len(raw) != ADDRESS_SIZE:
            return False
        return crc8(raw[:DSROM_CRC]) == raw[DSROM_CRC] and raw[DSROM_FAMILY] in SUPPORTED_FAMILIES

    def request_temp(self, addr: bytes | None = None) -> bool:
        """Start a conversion on one sensor, or on all sensors when ``addr`` is None."""
        if not self._wire.reset():
            return False
        selected = (
            self._wire.select_all() if addr is None else self._wire.select(bytes(addr))
        )
        return bool(selected and self._wire.write(CMD_CONVERT_T))

    def read_temp_raw(self, addr: bytes) -> int | None:
        """Read the temperature in 1/128 degree; None on failure (see last_error)."""
        if not self._wire.reset():
            self._last_status = Status.FAULT_NOT_PRESENT
            return None
        if not self._wire.select(bytes(addr)) or not self._wire.write(CMD_READ_SCRATCHPAD):
            return None
        data = bytearray()
        for _ in range(SCRATCHPAD_SIZE):
            byte = self._wire.read()
            if byte is None:
                return None
            data.append(byte)
        if crc8(data[:SCRATCHPAD_CRC]) != data[SCRATCHPAD_CRC]:
            self._last_status = Status.FAULT_CRC
            return None
        try:
            result = calculate_temperature(addr, data)
        except SensorFault as exc:
            self._last_status = exc.status
            return None
        self._last_status = Status.OK
        return result

    def read_temp_celsius(self, addr: bytes) -> float | None:
        """Read the temperature in degrees Celsius; None on failure."""
        raw = self.read_temp_raw(addr)
        return None if raw is None else raw / 128.0

    def _start(self, st: AsyncState, command: AsyncCommand) -> bool:
        st.phase = 0
        if self._wire.reset():
            st.command = command
            st.status = Status.OK
            return True
        st.command = AsyncCommand.DONE
        st.status = Status.FAULT_NOT_PRESENT
        return False

    def async_request_temp(self, st: AsyncState, addr: bytes | None = None) -> None:
        """Begin a conversion request; drive it with async_cycle()."""
        if addr is None:
            self._start(st, AsyncCommand.REQUEST_TEMP_GLOBAL)
        elif self._start(st, AsyncCommand.REQUEST_TEMP_ADDR):
            st.addr = bytes(addr)

    def async_read_temp(self, st: AsyncState, addr: bytes) -> None:
        """Begin reading a sensor's scratchpad; drive it with async_cycle()."""
        st.addr = bytes(addr)
        self._start(st, AsyncCommand.READ_TEMP)

    def async_cycle(self, st: AsyncState) -> bool:
        """Perform one step; return True when the operation is finished."""
        if st.command is AsyncCommand.DONE:
            return True
        if st.command is AsyncCommand.READ_TEMP:
            if st.phase == 0:
                ok = self._wire.select(st.addr)
            elif st.phase == 1:
                ok = self._wire.write(CMD_READ_SCRATCHPAD)
            elif st.phase - 2 < len(st.buffer):
                byte = self._wire.read()
                ok = byte is not None
                if ok:
                    st.buffer[st.phase - 2] = byte
            else:
                st.command = AsyncCommand.DONE
                return True
        else:
            if st.phase == 0:
                ok = (
                    self._wire.select(st.addr)
                    if st.command is AsyncCommand.REQUEST_TEMP_ADDR
                    else self._wire.select_all()
                )
            elif st.phase == 1:
                ok = self._wire.write(CMD_CONVERT_T)
            else:
                st.command = AsyncCommand.DONE
                return True
        if not ok:
            st.command = AsyncCommand.DONE
            st.status = Status.FAULT_SHORTGND
            return True
        st.phase = (st.phase + 1) & 0xFF
        return False

    @staticmethod
    def async_read_temp_raw(st: AsyncState) -> int | None:
        """Temperature in 1/128 degree from a finished read; None on failure."""
        if st.status is not Status.OK:
            return None
        if crc8(st.buffer[:SCRATCHPAD_CRC]) != st.buffer[SCRATCHPAD_CRC]:
            st.status = Status.FAULT_CRC
            return None
        try:
            return calculate_temperature(st.addr, st.buffer)
        except SensorFault as exc:
            st.status = exc.status
            return None

    @staticmethod
    def async_read_temp_celsius(st: AsyncState) -> float | None:
        """Temperature in degrees Celsius from a finished read; None on failure."""
        raw = SimpleDallasTemp.async_read_temp_raw(st)
        return None if raw is None else raw / 128.0

    def devices(self) -> Iterator[bytes]:
        """Yield the addresses of supported sensors found on the bus."""
        for addr in self._wire.search():
            raw = bytes(addr)
            if self.is_valid_address(raw):
                yield raw