"""File loading helpers for the CHIP-8 emulator."""

from chit8.emulator.file.rom import (
    Rom,
    RomLoadError,
    load_rom,
)

__all__ = [
    "Rom",
    "RomLoadError",
    "load_rom",
]
