"""Flat 4KB memory for the CHIP-8 machine."""

from __future__ import annotations

from typing import Iterable, List, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from chit8.emulator.file.rom import Rom

MEMORY_SIZE = 0x1000
ADDRESS_MASK = 0x0FFF
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START - 0x160  # 3232 bytes
FONT_START = 0x000
FONT_GLYPH_SIZE = 5

FONT_SET: List[int] = [
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
]


class Addressable(Protocol):
    """Protocol describing byte addressable storage used by the CPU."""

    def load_byte(self, address: int) -> int:
        ...

    def store_byte(self, address: int, value: int) -> None:
        ...

    def load_word(self, address: int) -> int:
        ...


class Memory(Addressable):
    """4096-byte store; every access wraps into the 12-bit address space."""

    data: List[int]

    def __init__(self, size: int = MEMORY_SIZE) -> None:
        if size != MEMORY_SIZE:
            raise ValueError("CHIP-8 memory must be 4096 bytes")
        self.data = [0x00] * size
        self.program_length: int = 0
        self._debug: bool = False

    @classmethod
    def from_rom(cls, rom: "Rom") -> "Memory":
        """Build memory holding the font table and ``rom`` at 0x200."""

        memory = cls()
        memory.load_font()
        memory.load_program(rom.data)
        return memory

    @staticmethod
    def _index(address: int) -> int:
        return address & ADDRESS_MASK

    def load_byte(self, address: int) -> int:
        addr = self._index(address)
        value = self.data[addr] & 0xFF
        if self._debug:
            print(f"load_byte: addr={addr:03X} val={value:02X}")
        return value

    def store_byte(self, address: int, value: int) -> None:
        addr = self._index(address)
        if self._debug:
            print(f"store_byte: addr={addr:03X} val={value & 0xFF:02X}")
        self.data[addr] = value & 0xFF

    def load_word(self, address: int) -> int:
        hi = self.load_byte(address)
        lo = self.load_byte(address + 1)
        return ((hi << 8) | lo) & 0xFFFF

    def load_font(self, glyphs: Optional[Iterable[int]] = None) -> None:
        values = list(FONT_SET if glyphs is None else glyphs)
        if len(values) != len(FONT_SET):
            raise ValueError("font table must be 80 bytes")
        for offset, value in enumerate(values):
            self.data[FONT_START + offset] = value & 0xFF

    def load_program(self, program: Iterable[int]) -> int:
        """Copy ``program`` into the program area and return the stored length."""

        values = bytes(program)
        if len(values) > MAX_PROGRAM_SIZE:
            raise ValueError(f"program exceeds {MAX_PROGRAM_SIZE} bytes")
        for offset, value in enumerate(values):
            self.data[PROGRAM_START + offset] = value
        self.program_length = len(values)
        return self.program_length

    def program_end(self) -> int:
        return PROGRAM_START + self.program_length

    def dump(self, start: int = 0, length: int = MEMORY_SIZE) -> bytes:
        return bytes(self.data[self._index(start + offset)] for offset in range(length))

    def enable_debug(self, enabled: bool) -> None:
        self._debug = enabled


__all__ = [
    "ADDRESS_MASK",
    "Addressable",
    "FONT_GLYPH_SIZE",
    "FONT_SET",
    "FONT_START",
    "MAX_PROGRAM_SIZE",
    "MEMORY_SIZE",
    "Memory",
    "PROGRAM_START",
]
