"""Persistent settings, statistics and counters of the boiler controller."""

from __future__ import annotations

import enum
import struct
from dataclasses import astuple, dataclass, field
from typing import Protocol

SECTOR_SIZE = 20
DIRECTORY_LEN = 11

_U16 = 0xFFFF
_U32 = 0xFFFFFFFF


class FileId(enum.IntEnum):
    """Slots of the records in non-volatile memory."""

    CONFIG = 0
    TRAY = 1
    RUNTIME1 = 2
    COUNTERS1 = 3
    RUNTIME2 = 4
    TEMP_SENSOR = 5
    WIFI_SSID = 6
    WIFI_PASSWORD = 7
    WIFI_NET = 8
    COUNTERS2 = 9
    PAIR_SECRET = 10


class ErrorCode(enum.IntEnum):
    NO_ERROR = 0
    STOP_LOW_TEMP = 1
    MOTOR_HIGH_TEMP = 2


class OperationMode(enum.IntEnum):
    MANUAL = 0
    AUTOMATIC = 1


class _Record:
    """Mixin for records stored as one fixed-size little-endian sector."""

    _FORMAT: struct.Struct

    def _values(self) -> tuple:
        return astuple(self)

    @classmethod
    def _from_values(cls, values: tuple):
        return cls(*values)

    def pack(self) -> bytes:
        """Serialize the record."""
        return self._FORMAT.pack(*self._values())

    @classmethod
    def unpack(cls, data: bytes | bytearray | memoryview):
        """Deserialize a record from the start of ``data``."""
        raw = bytes(data)
        if len(raw) < cls._FORMAT.size:
            raise ValueError(
                f"{cls.__name__} needs {cls._FORMAT.size} bytes, got {len(raw)}"
            )
        return cls._from_values(cls._FORMAT.unpack_from(raw))


@dataclass
class Profile:
    fueling_sec: int
    burnout_sec: int
    fanpw: int


@dataclass
class Config(_Record):
    full_power: Profile = field(default_factory=lambda: Profile(8, 20, 60))
    low_power: Profile = field(default_factory=lambda: Profile(5, 30, 40))
    heat_value: int = 170
    input_min_temp: int = 60
    input_min_temp_samples: int = 10
    output_max_temp: int = 85
    output_max_temp_samples: int = 10
    pump_start_temp: int = 40
    operation_mode: int = OperationMode.MANUAL
    fan_pulse_count: int = 100
    serial_log_out: int = 0
    bag_kg: int = 15
    tray_kg: int = 15 * 15
    display_intensity: int = 0

    _FORMAT = struct.Struct("<18B")

    def _values(self) -> tuple:
        return (
            *astuple(self.full_power),
            *astuple(self.low_power),
            self.heat_value,
            self.input_min_temp,
            self.input_min_temp_samples,
            self.output_max_temp,
            self.output_max_temp_samples,
            self.pump_start_temp,
            int(self.operation_mode),
            self.fan_pulse_count,
            self.serial_log_out,
            self.bag_kg,
            self.tray_kg,
            self.display_intensity,
        )

    @classmethod
    def _from_values(cls, values: tuple) -> Config:
        return cls(Profile(*values[0:3]), Profile(*values[3:6]), *values[6:])


@dataclass
class Tray(_Record):
    """Fuel tray bookkeeping; times are net feeder run times in seconds."""

    feeder_time: int = 0
    tray_open_time: int = 0
    tray_fill_time: int = 0
    feeder_1kg_time: int = 240
    tray_fill_kg: int = 0
    consumed_fuel_kg: int = 0

    _FORMAT = struct.Struct("<3I2HI")

    def calc_tray_empty_time(self) -> int:
        """Feeder time at which the tray is expected to be empty."""
        return (self.tray_fill_time + self.tray_fill_kg * self.feeder_1kg_time) & _U32

    def calc_this_cycle_consumed_fuel(self, reftime: int | None = None) -> int:
        """Kilograms consumed since the last fill, up to ``reftime``."""
        if reftime is None:
            reftime = self.feeder_time
        if self.feeder_1kg_time == 0:
            return 0
        return ((reftime - self.tray_fill_time) & _U32) // self.feeder_1kg_time

    def calc_tray_fill(self) -> int:
        """Kilograms remaining in the tray."""
        if self.feeder_1kg_time == 0:
            return self.tray_fill_kg
        consumed = self.calc_this_cycle_consumed_fuel()
        return max(self.tray_fill_kg - consumed, 0)

    def commit_consumed(self, filltime: int) -> None:
        """Move fuel consumed up to ``filltime`` into the statistics."""
        if filltime <= self.tray_fill_time:
            return
        consumed = self.calc_this_cycle_consumed_fuel(filltime)
        self.consumed_fuel_kg = (self.consumed_fuel_kg + consumed) & _U32
        self.tray_fill_kg = max(self.tray_fill_kg - consumed, 0)
        self.tray_fill_time = (
            self.tray_fill_time + consumed * self.feeder_1kg_time
        ) & _U32

    def update_tray_fill(self, filltime: int, increment: int) -> None:
        """Change the tray content by ``increment`` kg at feeder time ``filltime``."""
        if self.feeder_1kg_time == 0:
            self.tray_fill_kg = (self.tray_fill_kg + increment) & _U16
            return
        consumed = self.calc_this_cycle_consumed_fuel(filltime)
        if (increment & _U32) > (consumed >> 1):
            self.commit_consumed(filltime)
        self.tray_fill_kg = max(self.tray_fill_kg + increment, 0) & _U16

    def set_max_fill(self, filltime: int, max_fill: int) -> None:
        """Raise the tray content to ``max_fill`` kg unless it already holds more."""
        remain = self.calc_tray_fill()
        if remain > max_fill:
            return
        self.update_tray_fill(filltime, max_fill - remain)

    def calc_total_consumed_fuel(self) -> int:
        return (self.consumed_fuel_kg + self.calc_this_cycle_consumed_fuel()) & _U32


@dataclass
class Runtime(_Record):
    fan_time: int = 0
    pump_time: int = 0
    full_power_time: int = 0
    low_power_time: int = 0
    cooling_time: int = 0

    _FORMAT = struct.Struct("<5I")


@dataclass
class Runtime2(_Record):
    active_time: int = 0
    overheat_time: int = 0
    stop_time: int = 0
    reserved1: int = 0
    reserved2: int = 0

    _FORMAT = struct.Struct("<5I")


@dataclass
class Counters1(_Record):
    feeder_start_count: int = 0
    fan_start_count: int = 0
    pump_start_count: int = 0
    feeder_overheat_count: int = 0
    tray_open_count: int = 0
    restart_count: int = 0
    overheat_count: int = 0

    _FORMAT = struct.Struct("<3I4H")


@dataclass
class Counters2(_Record):
    full_power_count: int = 0
    low_power_count: int = 0
    cool_count: int = 0
    stop_count: int = 0
    temp_read_failure_count: int = 0
    reserved: int = 0
    reserved2: int = 0

    _FORMAT = struct.Struct("<3I4H")


@dataclass
class TempSensor(_Record):
    """One-wire addresses of the input and output thermometers."""

    input_temp: bytes = bytes(8)
    output_temp: bytes = bytes(8)

    _FORMAT = struct.Struct("<8s8s")


@dataclass(frozen=True)
class IPAddr:
    ip: tuple[int, int, int, int] = (0, 0, 0, 0)

    def __str__(self) -> str:
        return ".".join(str(part) for part in self.ip)


@dataclass
class NetSettings(_Record):
    ipaddr: IPAddr = IPAddr()
    dns: IPAddr = IPAddr()
    gateway: IPAddr = IPAddr()
    netmask: IPAddr = IPAddr((255, 255, 255, 0))

    _FORMAT = struct.Struct("<16B")

    def _values(self) -> tuple:
        return (*self.ipaddr.ip, *self.dns.ip, *self.gateway.ip, *self.netmask.ip)

    @classmethod
    def _from_values(cls, values: tuple) -> NetSettings:
        return cls(*(IPAddr(tuple(values[off:off + 4])) for off in range(0, 16, 4)))


def _from_hex_digit(c: int) -> int:
    # Letter digits map from zero, as the stored format has always done.
    if 0x30 <= c <= 0x39:
        return c - 0x30
    if 0x41 <= c <= 0x46:
        return c - 0x41
    if 0x61 <= c <= 0x66:
        return c - 0x61
    return 2


@dataclass
class TextSector(_Record):
    """Zero-padded text occupying one whole sector."""

    raw: bytes = bytes(SECTOR_SIZE)

    _FORMAT = struct.Struct(f"<{SECTOR_SIZE}s")

    def _store(self, data: bytes | bytearray) -> None:
        self.raw = bytes(data[:SECTOR_SIZE]).ljust(SECTOR_SIZE, b"\0")

    def set(self, txt: str | bytes) -> None:
        """Store ``txt``, truncated to the sector size."""
        self._store(txt.encode("utf-8") if isinstance(txt, str) else bytes(txt))

    def set_url_dec(self, txt: str | bytes) -> None:
        """Store ``txt`` after decoding ``%XX`` escapes."""
        data = txt.encode("utf-8") if isinstance(txt, str) else bytes(txt)
        out = bytearray()
        it = iter(data)
        for byte in it:
            if len(out) >= SECTOR_SIZE:
                break
            if byte == 0x25:
                first = next(it, None)
                if first is not None:
                    byte = _from_hex_digit(first)
                    second = next(it, None)
                    if second is not None:
                        byte = ((byte << 4) | _from_hex_digit(second)) & 0xFF
            out.append(byte)
        self._store(out)

    def get(self) -> str:
        """Return the stored text up to the first NUL."""
        return self.raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


class _StorageBackend(Protocol):
    def begin(self) -> None: ...

    def read_file(self, file_id: int) -> bytes | None: ...

    def update_file(self, file_id: int, data: bytes) -> None: ...


_FILES = (
    ("config", FileId.CONFIG, Config),
    ("tray", FileId.TRAY, Tray),
    ("runtime", FileId.RUNTIME1, Runtime),
    ("counters1", FileId.COUNTERS1, Counters1),
    ("runtime2", FileId.RUNTIME2, Runtime2),
    ("counters2", FileId.COUNTERS2, Counters2),
    ("temp_sensor", FileId.TEMP_SENSOR, TempSensor),
    ("wifi_ssid", FileId.WIFI_SSID, TextSector),
    ("wifi_password", FileId.WIFI_PASSWORD, TextSector),
    ("wifi_config", FileId.WIFI_NET, NetSettings),
    ("pair_secret", FileId.PAIR_SECRET, TextSector),
)


class Storage:
    """All persistent records, loaded from and written to a file backend.

    The backend provides ``begin()``, ``read_file(file_id)`` returning the
    stored bytes or None, and ``update_file(file_id, data)``.
    """

    def __init__(self, backend: _StorageBackend) -> None:
        self._backend = backend
        self._update_flag = False
        self.pair_secret_need_init = False
        self.config = Config()
        self.tray = Tray()
        self.runtime = Runtime()
        self.counters1 = Counters1()
        self.runtime2 = Runtime2()
        self.counters2 = Counters2()
        self.temp_sensor = TempSensor()
        self.wifi_ssid = TextSector()
        self.wifi_password = TextSector()
        self.wifi_config = NetSettings()
        self.pair_secret = TextSector()

    @property
    def eeprom(self) -> _StorageBackend:
        return self._backend

    def begin(self) -> None:
        """Load every record present in the backend."""
        self._backend.begin()
        for attr, file_id, record_type in _FILES:
            data = self._backend.read_file(file_id)
            if data is not None:
                setattr(self, attr, record_type.unpack(data))
            if file_id is FileId.PAIR_SECRET:
                self.pair_secret_need_init = data is None

    def save(self) -> None:
        """Mark the records for writing on the next commit()."""
        self._update_flag = True

    def commit(self) -> None:
        """Write all records if save() was called since the last commit."""
        if not self._update_flag:
            return
        for attr, file_id, _ in _FILES:
            self._backend.update_file(file_id, getattr(self, attr).pack())
        self._update_flag = False