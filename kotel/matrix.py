"""Simulated chain of MAX7219 8x8 LED matrix drivers rendered as text."""

from __future__ import annotations

from collections import deque
from itertools import islice

_BLOCKS = (" ", "▀", "▄", "█")
_BITS = tuple(0x80 >> shift for shift in range(8))

_REG_INTENSITY = 10
_REG_SHUTDOWN = 12
_REG_TEST = 15


class SimulMatrix:
    """Shift register chain of MAX7219 modules; each module keeps 8 rows.

    Bytes sent first end up in the module farthest from the input.  Text
    output draws the farthest module first, two rows per line.
    """

    PARTS = 4

    def __init__(self, modules: int) -> None:
        if modules < 1:
            raise ValueError("at least one module is required")
        self._modules = modules
        self._shift: deque[int] = deque([0] * (2 * modules), maxlen=2 * modules)
        self._matrix = [[0] * modules for _ in range(8)]
        self._intensity = [0] * modules
        self._testmode = [False] * modules
        self._active = [False] * modules
        self._dirty = True

    @property
    def modules(self) -> int:
        return self._modules

    @property
    def intensity(self) -> tuple[int, ...]:
        return tuple(self._intensity)

    @property
    def active(self) -> tuple[bool, ...]:
        return tuple(self._active)

    @property
    def testmode(self) -> tuple[bool, ...]:
        return tuple(self._testmode)

    def transfer(self, data: int) -> None:
        """Shift one byte into the chain."""
        self._shift.appendleft(data & 0xFF)

    def _set(self, values: list, index: int, value) -> None:
        if values[index] != value:
            self._dirty = True
        values[index] = value

    def activate(self) -> None:
        """Latch the shifted commands into every module."""
        data_bytes = islice(self._shift, 0, None, 2)
        cmd_bytes = islice(self._shift, 1, None, 2)
        for module, (data, cmd) in enumerate(zip(data_bytes, cmd_bytes)):
            reg = cmd & 0xF
            if 1 <= reg < 9:
                self._set(self._matrix[reg - 1], module, data)
            elif reg == _REG_INTENSITY:
                self._set(self._intensity, module, data)
            elif reg == _REG_SHUTDOWN:
                self._set(self._active, module, bool(data & 1))
            elif reg == _REG_TEST:
                self._set(self._testmode, module, bool(data & 1))

    def parts(self) -> int:
        return self.PARTS

    def draw_part(self, part: int) -> str:
        """Render rows ``2*part`` and ``2*part+1`` as one line of block characters."""
        if not 0 <= part < self.PARTS:
            raise IndexError(f"part {part} out of range")
        top = self._matrix[2 * part]
        bottom = self._matrix[2 * part + 1]
        out: list[str] = []
        for module in reversed(range(self._modules)):
            for bit in _BITS:
                if not self._active[module]:
                    code = 0
                elif self._testmode[module]:
                    code = 3
                else:
                    code = (1 if top[module] & bit else 0) | (2 if bottom[module] & bit else 0)
                out.append(_BLOCKS[code])
        return "".join(out)

    def is_dirty(self) -> bool:
        return self._dirty

    def clear_dirty(self) -> None:
        self._dirty = False