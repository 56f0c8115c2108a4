"""Several keys read through one analog pin via a resistor ladder."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from .devices import KEYBOARD_PIN, PinIO, PinMode
from .task import monotonic_ms

_ADC_RANGE = 1024
_TP_MASK = 0xFFF

KEY_CODE_UP = 0
KEY_CODE_FEEDER = 0
KEY_CODE_STOP = 1
KEY_CODE_FULL = 1
KEY_CODE_DOWN = 2
KEY_CODE_FAN = 2


@dataclass(frozen=True)
class LevelDef:
    """Analog level and the combination of keys that produces it."""

    level: int
    keys: tuple[bool, ...]


def _tp(ms: int) -> int:
    return (ms >> 4) & _TP_MASK


@dataclass
class KeyState:
    """State of one key; ``tp`` is the change time in 16 ms units, modulo 4096."""

    pressed: bool = False
    changed: bool = False
    unstable: bool = False
    user_state: bool = False
    tp: int = 0

    @property
    def stable(self) -> bool:
        return not self.unstable

    def stabilize(self, interval_ms: int, now_ms: int) -> bool:
        """Mark the key stable once unchanged for longer than ``interval_ms``.

        Returns True only when the key has just become stable.
        """
        if not self.unstable:
            return False
        elapsed = (now_ms - (self.tp << 4)) & 0xFFFF
        if elapsed >= 0x8000:
            elapsed -= 0x10000
        if elapsed > interval_ms:
            self.unstable = False
            return True
        return False

    def set_user_state(self) -> None:
        self.user_state = True

    def test_and_reset_user_state(self) -> bool:
        """Return the user flag and clear it."""
        flag = self.user_state
        self.user_state = False
        return flag


class KeyboardState:
    """States of all keys plus the last level read."""

    def __init__(self, keys: int) -> None:
        self.states = [KeyState() for _ in range(keys)]
        self.last_level: int | None = None

    def get_state(self, key: int) -> KeyState:
        return self.states[key]


class Keyboard1W:
    """Decodes an analog reading into key presses.

    A new level must be read twice in a row before key states change.
    """

    def __init__(
        self,
        pin: int,
        levels: Iterable[LevelDef],
        io: PinIO,
        clock: Callable[[], int] | None = None,
    ) -> None:
        self._levels = tuple(levels)
        if not self._levels:
            raise ValueError("at least one level is required")
        counts = {len(level.keys) for level in self._levels}
        if len(counts) != 1:
            raise ValueError("all levels must describe the same number of keys")
        self._keys = counts.pop()
        self._pin = pin
        self._io = io
        self._clock = clock or monotonic_ms

    @property
    def pin(self) -> int:
        return self._pin

    @property
    def keys(self) -> int:
        return self._keys

    @property
    def levels(self) -> tuple[LevelDef, ...]:
        return self._levels

    def begin(self) -> None:
        self._io.pin_mode(self._pin, PinMode.INPUT)

    def new_state(self) -> KeyboardState:
        return KeyboardState(self._keys)

    def read(self, state: KeyboardState) -> int:
        """Read the pin, update ``state`` and return the raw reading."""
        if len(state.states) != self._keys:
            raise ValueError("keyboard state has a different number of keys")
        value = self._io.analog_read(self._pin)
        selected = min(self._levels, key=lambda d: abs(d.level - value))
        if abs(selected.level - value) >= _ADC_RANGE:
            raise ValueError(f"no level matches the reading {value}")
        if selected.level == state.last_level:
            for key_state, now_pressed in zip(state.states, selected.keys):
                key_state.changed = key_state.pressed != now_pressed
                key_state.pressed = now_pressed
                if key_state.changed:
                    key_state.unstable = True
                    key_state.tp = _tp(self._clock())
        else:
            for key_state in state.states:
                key_state.changed = False
            state.last_level = selected.level
        return value


_BOILER_LEVELS = (
    LevelDef(0, (False, False, False)),
    LevelDef(614, (False, False, True)),
    LevelDef(382, (False, True, False)),
    LevelDef(202, (True, False, False)),
    LevelDef(558, (False, True, True)),
    LevelDef(277, (True, True, False)),
    LevelDef(437, (True, False, True)),
)


def make_boiler_keyboard(
    io: PinIO, clock: Callable[[], int] | None = None
) -> Keyboard1W:
    """The three-key panel of the boiler controller."""
    return Keyboard1W(KEYBOARD_PIN, _BOILER_LEVELS, io, clock)