"""Headless execution helpers for CHIP-8 programs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from chit8.chip8.computer import Chip8Computer
from chit8.chip8.display import FramebufferDisplay
from chit8.emulator.file import Rom
from chit8.io.keypad import Keypad


@dataclass(frozen=True)
class KeyEvent:
    """Represents a keypad event scheduled by step count."""

    step: int
    key: int
    pressed: bool


def assemble(words: Iterable[int], filename: str = "test.ch8") -> Rom:
    """Pack big-endian instruction words into a ROM image."""

    data = bytearray()
    for word in words:
        data.append((word >> 8) & 0xFF)
        data.append(word & 0xFF)
    return Rom.from_bytes(bytes(data), filename)


def run_program(
    words: Sequence[int],
    *,
    steps: int,
    events: Sequence[KeyEvent] | None = None,
    seed: int = 0,
) -> Chip8Computer:
    """Execute a CHIP-8 program headlessly, one step at a time."""

    keypad = Keypad()
    computer = Chip8Computer(display=FramebufferDisplay(), input_device=keypad, seed=seed)
    computer.load_rom(assemble(words))
    computer.power_on()

    scheduled = sorted(events or [], key=lambda evt: evt.step)
    index = 0
    for step in range(steps):
        while index < len(scheduled) and scheduled[index].step <= step:
            evt = scheduled[index]
            if evt.pressed:
                keypad.press(evt.key)
            else:
                keypad.release(evt.key)
            index += 1
        computer.tick(1)
    return computer
