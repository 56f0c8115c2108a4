"""In-memory data flash block device."""

from __future__ import annotations

FLASH_BLOCK_SIZE = 1024
FLASH_TOTAL_SIZE = 8192
_ERASED = 0xFF


class DataFlashBlockDevice:
    """Flash memory that reads 0xFF where erased."""

    ERASE_SIZE = FLASH_BLOCK_SIZE
    TOTAL_SIZE = FLASH_TOTAL_SIZE

    def __init__(self) -> None:
        self._data = bytearray([_ERASED]) * FLASH_TOTAL_SIZE

    def _check(self, addr: int, size: int) -> None:
        if addr < 0 or size < 0 or addr + size > FLASH_TOTAL_SIZE:
            raise ValueError(
                f"range {addr}+{size} is outside the device of {FLASH_TOTAL_SIZE} bytes"
            )

    def program(self, buffer: bytes | bytearray | memoryview, addr: int) -> None:
        """Write ``buffer`` at ``addr``."""
        data = bytes(buffer)
        self._check(addr, len(data))
        self._data[addr:addr + len(data)] = data

    def read(self, addr: int, size: int) -> bytes:
        """Return ``size`` bytes from ``addr``."""
        self._check(addr, size)
        return bytes(self._data[addr:addr + size])

    def erase(self, addr: int, size: int) -> None:
        """Reset ``size`` bytes at ``addr`` to the erased state."""
        self._check(addr, size)
        self._data[addr:addr + size] = bytes([_ERASED]) * size