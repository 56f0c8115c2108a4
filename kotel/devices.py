"""Pin assignments and the actuators and sensors of the boiler."""

from __future__ import annotations

import enum
from collections.abc import Callable

from .storage import Storage
from .task import Task

_U32 = 0xFFFFFFFF


class PinMode(enum.IntEnum):
    INPUT = 0
    OUTPUT = 1
    INPUT_PULLUP = 2


LOW = 0
HIGH = 1

A0 = 14
A1 = 15
A2 = 16
A5 = 19

PIN_OUT_FEEDER_ON = 10
PIN_OUT_FAN_ON = 9
PIN_OUT_PUMP_ON = 8
PIN_IN_ONE_WIRE = 7
PIN_IN_TRAY = 3
PIN_IN_MOTOR_TEMP = 4

ACTIVE_FEEDER = PinMode.OUTPUT
INACTIVE_FEEDER = PinMode.INPUT_PULLUP
ACTIVE_PUMP = PinMode.OUTPUT
INACTIVE_PUMP = PinMode.INPUT_PULLUP
ACTIVE_FAN = PinMode.OUTPUT
INACTIVE_FAN = PinMode.INPUT_PULLUP
TRAY_OPEN_LEVEL = LOW
MOTOR_OVERHEAT_LEVEL = HIGH

DISPLAY_DATA_PIN = A2
DISPLAY_SEL_PIN = A1
DISPLAY_CLK_PIN = A0

KEYBOARD_PIN = A5

MIN_FAN_PULSE = 11


class PinIO:
    """In-memory pin bank: records pin modes and serves preset input levels."""

    def __init__(self) -> None:
        self.modes: dict[int, PinMode] = {}
        self.history: list[tuple[int, PinMode]] = []
        self.digital: dict[int, int] = {}
        self.analog: dict[int, int] = {}

    def pin_mode(self, pin: int, mode: int) -> None:
        """Set the mode of ``pin``."""
        mode = PinMode(mode)
        self.modes[pin] = mode
        self.history.append((pin, mode))

    def digital_read(self, pin: int) -> int:
        """Return the digital level of ``pin`` (LOW when never set)."""
        return self.digital.get(pin, LOW)

    def analog_read(self, pin: int) -> int:
        """Return the analog reading of ``pin`` (0 when never set)."""
        return self.analog.get(pin, 0)


class Fan(Task):
    """Blower driven in pulses whose on/off ratio follows the speed."""

    def __init__(
        self,
        storage: Storage,
        io: PinIO,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(clock)
        self._storage = storage
        self._io = io
        self._pulse = True
        self._running = False
        self._speed = 100
        self._stop_time = 0

    def begin(self) -> None:
        self._set_active(False)

    def keep_running(self, until: int) -> None:
        """Keep the fan running until time ``until``."""
        self._stop_time = until
        if not self._running:
            self._running = True
            self.resume_at(0)
            counters = self._storage.counters1
            counters.fan_start_count = (counters.fan_start_count + 1) & _U32

    def stop(self) -> None:
        """Stop the fan at its next run."""
        self._running = False

    def set_speed(self, speed: int) -> None:
        """Set the speed in percent."""
        self._speed = speed & 0xFF

    @property
    def current_speed(self) -> int:
        """The speed when running, otherwise 0."""
        return self._speed if self._running else 0

    @property
    def speed(self) -> int:
        return self._speed

    def is_active(self) -> bool:
        return self._running

    def is_pulse(self) -> bool:
        """True while the output is switched on."""
        return self._pulse

    def run(self, cur_time: int) -> None:
        if self._stop_time <= cur_time or not self._running:
            self._set_active(False)
            self._running = False
            super().stop()
            return
        spd = max(min(self._speed, 100), 1)
        pln = max(MIN_FAN_PULSE, self._storage.config.fan_pulse_count * spd // 100)
        if self._pulse:
            rest = pln * 100 // spd - pln
            if rest > 0:
                self.resume_at(cur_time + rest)
                self._set_active(False)
            else:
                self.resume_at(cur_time + pln)
        else:
            self._set_active(True)
            self.resume_at(cur_time + pln)

    def _set_active(self, active: bool) -> None:
        if active != self._pulse:
            self._pulse = active
            self._io.pin_mode(PIN_OUT_FAN_ON, ACTIVE_FAN if active else INACTIVE_FAN)


class Feeder(Task):
    """Fuel feeder motor, switched on until a given time."""

    def __init__(
        self,
        storage: Storage,
        io: PinIO,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(clock)
        self._storage = storage
        self._io = io
        self._active = True

    def begin(self) -> None:
        self._set_active(False)

    def run(self, cur_time: int) -> None:
        self._set_active(False)

    def stop(self) -> None:
        """Switch the feeder off now."""
        self._set_active(False)

    def keep_running(self, until: int) -> None:
        """Switch the feeder on until time ``until``."""
        self._set_active(True)
        self.resume_at(until)

    def is_active(self) -> bool:
        return self._active

    def _set_active(self, active: bool) -> bool:
        if self._active == active:
            return False
        if active:
            counters = self._storage.counters1
            counters.feeder_start_count = (counters.feeder_start_count + 1) & _U32
        self._io.pin_mode(PIN_OUT_FEEDER_ON, ACTIVE_FEEDER if active else INACTIVE_FEEDER)
        self._active = active
        return True


class Pump:
    """Circulation pump; stopping it schedules a save of the statistics."""

    def __init__(self, storage: Storage, io: PinIO) -> None:
        self._storage = storage
        self._io = io
        self._active = True

    def begin(self) -> None:
        self.set_active(False)

    def set_active(self, active: bool) -> None:
        if active == self._active:
            return
        self._active = active
        if active:
            counters = self._storage.counters1
            counters.pump_start_count = (counters.pump_start_count + 1) & _U32
            self._io.pin_mode(PIN_OUT_PUMP_ON, ACTIVE_PUMP)
        else:
            self._storage.save()
            self._io.pin_mode(PIN_OUT_PUMP_ON, INACTIVE_PUMP)

    def is_active(self) -> bool:
        return self._active


class Sensors:
    """Tray-open switch and feeder motor overheat switch."""

    def __init__(self, io: PinIO) -> None:
        self._io = io
        self.tray_open = False
        self.feeder_overheat = False

    def read_sensors(self) -> None:
        self.feeder_overheat = self._io.digital_read(PIN_IN_MOTOR_TEMP) == MOTOR_OVERHEAT_LEVEL
        self.tray_open = self._io.digital_read(PIN_IN_TRAY) == TRAY_OPEN_LEVEL