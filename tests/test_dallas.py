import pytest
from hypothesis import given, strategies as st

from kotel.dallas import (
    AsyncCommand,
    AsyncState,
    SensorFault,
    SimpleDallasTemp,
    Status,
    calculate_temperature,
    crc8,
)

ALL = "all"


def with_crc(data):
    data = bytes(data)
    return data + bytes([crc8(data)])


B20_ADDR = with_crc([0x28, 1, 2, 3, 4, 5, 6])
B20_ADDR2 = with_crc([0x28, 9, 8, 7, 6, 5, 4])
S20_ADDR = with_crc([0x10, 1, 2, 3, 4, 5, 6])
DS1825_ADDR = with_crc([0x3B, 1, 2, 3, 4, 5, 6])
UNKNOWN_ADDR = with_crc([0x01, 1, 2, 3, 4, 5, 6])

SCRATCH_25 = with_crc([0x91, 0x01, 0x4B, 0x46, 0x7F, 0xFF, 0x0C, 0x10])
SCRATCH_NEG = with_crc([0x5E, 0xFF, 0x4B, 0x46, 0x7F, 0xFF, 0x0C, 0x10])


class FakeWire:
    def __init__(self, devices=None, present=True, extra=()):
        self.devices = dict(devices or {})
        self.present = present
        self.extra = list(extra)
        self.selected = None
        self.commands = []
        self.fail_read = False
        self._pending = []

    def reset(self):
        return self.present

    def select(self, address):
        self.selected = bytes(address)
        return True

    def select_all(self):
        self.selected = ALL
        return True

    def write(self, byte):
        self.commands.append((self.selected, byte))
        if byte == 0xBE:
            self._pending = list(self.devices[self.selected])
        return True

    def read(self):
        if self.fail_read or not self._pending:
            return None
        return self._pending.pop(0)

    def search(self):
        return iter(list(self.devices) + self.extra)


def test_crc8_check_value():
    assert crc8(b"123456789") == 0xA1


@given(st.binary(max_size=40))
def test_crc8_of_data_with_crc_is_zero(data):
    assert crc8(with_crc(data)) == 0


def test_calculate_positive_temperature():
    assert calculate_temperature(B20_ADDR, SCRATCH_25) / 128 == 25.0625


def test_calculate_negative_temperature():
    assert calculate_temperature(B20_ADDR, SCRATCH_NEG) / 128 == -10.125


def test_ds18s20_extended_resolution():
    scratch = with_crc([0x32, 0x00, 0x4B, 0x46, 0xFF, 0xFF, 16, 16])
    raw = calculate_temperature(S20_ADDR, scratch)
    assert raw / 128 == 0x32 / 2 - 0.25


def test_ds18s20_without_count_per_c_uses_plain_reading():
    scratch = bytes([0x91, 0x01, 0, 0, 0, 0, 0, 0])
    assert calculate_temperature(S20_ADDR, scratch) == calculate_temperature(B20_ADDR, scratch)


@pytest.mark.parametrize(
    "alarm, status",
    [
        (0x01, Status.FAULT_OPEN),
        (0x02, Status.FAULT_SHORTGND),
        (0x04, Status.FAULT_SHORTVDD),
        (0x00, Status.FAULT_DISCONNECTED),
    ],
)
def test_max31850_faults(alarm, status):
    scratch = bytes([0x01, 0x00, alarm, 0, 0x80, 0, 0, 0])
    with pytest.raises(SensorFault) as info:
        calculate_temperature(DS1825_ADDR, scratch)
    assert info.value.status is status


def test_max31850_masks_reserved_bits():
    clean = bytes([0x90, 0x01, 0, 0, 0x80, 0, 0, 0])
    noisy = bytes([0x92, 0x01, 0, 0, 0x80, 0, 0, 0])
    assert calculate_temperature(DS1825_ADDR, noisy) == calculate_temperature(DS1825_ADDR, clean)


def test_short_scratchpad_rejected():
    with pytest.raises(ValueError):
        calculate_temperature(B20_ADDR, b"\x00\x01")


def test_is_valid_address():
    sensor = SimpleDallasTemp(FakeWire())
    assert sensor.is_valid_address(B20_ADDR)
    assert not sensor.is_valid_address(B20_ADDR[:7] + bytes([B20_ADDR[7] ^ 1]))
    assert not sensor.is_valid_address(UNKNOWN_ADDR)


def test_read_temp_celsius():
    sensor = SimpleDallasTemp(FakeWire({B20_ADDR: SCRATCH_25}))
    assert sensor.read_temp_celsius(B20_ADDR) == calculate_temperature(B20_ADDR, SCRATCH_25) / 128
    assert sensor.last_error is Status.OK


def test_read_not_present():
    sensor = SimpleDallasTemp(FakeWire({B20_ADDR: SCRATCH_25}, present=False))
    assert sensor.read_temp_raw(B20_ADDR) is None
    assert sensor.last_error is Status.FAULT_NOT_PRESENT


def test_read_bad_crc():
    bad = SCRATCH_25[:8] + bytes([SCRATCH_25[8] ^ 0xFF])
    sensor = SimpleDallasTemp(FakeWire({B20_ADDR: bad}))
    assert sensor.read_temp_raw(B20_ADDR) is None
    assert sensor.last_error is Status.FAULT_CRC


def test_read_fault_sets_last_error():
    scratch = with_crc([0x01, 0x00, 0x01, 0, 0x80, 0, 0, 0])
    sensor = SimpleDallasTemp(FakeWire({DS1825_ADDR: scratch}))
    assert sensor.read_temp_celsius(DS1825_ADDR) is None
    assert sensor.last_error is Status.FAULT_OPEN


def test_request_temp_addressed_and_global():
    wire = FakeWire({B20_ADDR: SCRATCH_25})
    sensor = SimpleDallasTemp(wire)
    assert sensor.request_temp(B20_ADDR)
    assert sensor.request_temp()
    assert wire.commands == [(B20_ADDR, 0x44), (ALL, 0x44)]


def test_request_temp_without_device():
    assert SimpleDallasTemp(FakeWire(present=False)).request_temp() is False


def test_async_read_matches_sync_read():
    wire = FakeWire({B20_ADDR: SCRATCH_25})
    sensor = SimpleDallasTemp(wire)
    state = AsyncState()
    sensor.async_read_temp(state, B20_ADDR)
    results = [sensor.async_cycle(state) for _ in range(12)]
    assert results == [False] * 11 + [True]
    assert state.command is AsyncCommand.DONE
    assert SimpleDallasTemp.async_read_temp_celsius(state) == sensor.read_temp_celsius(B20_ADDR)


def test_async_not_present():
    sensor = SimpleDallasTemp(FakeWire(present=False))
    state = AsyncState()
    sensor.async_read_temp(state, B20_ADDR)
    assert state.status is Status.FAULT_NOT_PRESENT
    assert sensor.async_cycle(state) is True
    assert SimpleDallasTemp.async_read_temp_raw(state) is None


def test_async_read_communication_error():
    wire = FakeWire({B20_ADDR: SCRATCH_25})
    wire.fail_read = True
    sensor = SimpleDallasTemp(wire)
    state = AsyncState()
    sensor.async_read_temp(state, B20_ADDR)
    while not sensor.async_cycle(state):
        pass
    assert state.status is Status.FAULT_SHORTGND
    assert SimpleDallasTemp.async_read_temp_raw(state) is None


def test_async_crc_failure():
    state = AsyncState(addr=B20_ADDR, buffer=bytearray(SCRATCH_25[:8] + b"\x00"))
    state.buffer[8] = SCRATCH_25[8] ^ 0x55
    assert SimpleDallasTemp.async_read_temp_raw(state) is None
    assert state.status is Status.FAULT_CRC


def test_async_request_global():
    wire = FakeWire()
    sensor = SimpleDallasTemp(wire)
    state = AsyncState()
    sensor.async_request_temp(state)
    assert state.command is AsyncCommand.REQUEST_TEMP_GLOBAL
    results = [sensor.async_cycle(state) for _ in range(3)]
    assert results == [False, False, True]
    assert wire.commands == [(ALL, 0x44)]


def test_async_request_addressed():
    wire = FakeWire({B20_ADDR: SCRATCH_25})
    sensor = SimpleDallasTemp(wire)
    state = AsyncState()
    sensor.async_request_temp(state, B20_ADDR)
    while not sensor.async_cycle(state):
        pass
    assert state.addr == B20_ADDR
    assert wire.commands == [(B20_ADDR, 0x44)]


def test_devices_lists_only_valid_sensors():
    wire = FakeWire({B20_ADDR: SCRATCH_25, B20_ADDR2: SCRATCH_NEG}, extra=[UNKNOWN_ADDR])
    sensor = SimpleDallasTemp(wire)
    assert list(sensor.devices()) == [B20_ADDR, B20_ADDR2]