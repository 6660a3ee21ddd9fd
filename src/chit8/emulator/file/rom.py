"""ROM image loading for the CHIP-8 emulator."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
from typing import BinaryIO

from chit8.memory import MAX_PROGRAM_SIZE


class RomLoadError(RuntimeError):
    """Raised when a ROM image cannot be read."""


@dataclass(frozen=True)
class Rom:
    """Raw program bytes plus the file name used to identify them.

    Only the first 3232 bytes of an image are kept, which is all that fits
    between 0x200 and the end of the interpreter's memory.
    """

    filename: str
    data: bytes

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", bytes(self.data[:MAX_PROGRAM_SIZE]))

    @property
    def length(self) -> int:
        return len(self.data)

    @classmethod
    def from_bytes(cls, data: bytes, filename: str = "") -> "Rom":
        return cls(filename=filename, data=bytes(data))

    @classmethod
    def from_stream(cls, stream: BinaryIO, filename: str = "") -> "Rom":
        return cls.from_bytes(stream.read(MAX_PROGRAM_SIZE), filename)

    def __str__(self) -> str:
        return f"CHIP8 ROM ({self.filename}): {self.length} bytes"


def load_rom(path: str | os.PathLike[str]) -> Rom:
    """Read a ROM image from ``path``."""

    file_path = Path(path)
    if not file_path.is_file():
        raise RomLoadError(f"not a ROM file: {file_path}")
    try:
        with file_path.open("rb") as stream:
            return Rom.from_stream(stream, file_path.name)
    except OSError as exc:
        raise RomLoadError(f"ROM open error: {exc}") from exc
