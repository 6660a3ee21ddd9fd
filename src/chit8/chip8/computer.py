"""CHIP-8 system wiring: memory, CPU and the injected display/keypad."""

from __future__ import annotations

import os
from pathlib import Path
import random
from typing import List, Optional

from chit8.chip8.display import Display, FramebufferDisplay
from chit8.cpu.cpu import CPUFault, CPUState, Chip8CPU, ExecutionStatus
from chit8.disassembler import Disassembler
from chit8.emulator.file import Rom, RomLoadError, load_rom
from chit8.io.keypad import Input, Keypad
from chit8.memory import Memory


class Chip8Computer:
    """Host machine tying a ROM image to a CPU and its peripherals."""

    STATUS_RUNNING = 0
    STATUS_PAUSED = 1
    STATUS_STOPPED = 2

    def __init__(
        self,
        *,
        display: Optional[Display] = None,
        input_device: Optional[Input] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.display: Display = display if display is not None else FramebufferDisplay()
        self.input: Input = input_device if input_device is not None else Keypad()
        self.rng = rng if rng is not None else random.Random(seed)
        self.rom: Optional[Rom] = None
        self.memory = Memory()
        self.memory.load_font()
        self.cpu_core = Chip8CPU(self.memory, self.input, self.display, rng=self.rng)
        self.step_count: int = 0
        self.fault: Optional[CPUFault] = None
        self._running_status: int = self.STATUS_STOPPED

    # ------------------------------------------------------------------
    # Program loading
    # ------------------------------------------------------------------
    def load_rom(self, rom: Rom | str | os.PathLike[str]) -> Rom:
        if not isinstance(rom, Rom):
            rom = load_rom(Path(rom))
        self.rom = rom
        self.memory = Memory.from_rom(rom)
        trace = self.cpu_core.trace_enabled
        self.cpu_core = Chip8CPU(self.memory, self.input, self.display, rng=self.rng)
        self.cpu_core.enable_trace(trace)
        self.display.clear()
        self.step_count = 0
        self.fault = None
        return rom

    def disassemble(self) -> List[str]:
        """Disassemble the loaded ROM over a private copy of memory."""

        if self.rom is None:
            raise RomLoadError("no ROM loaded")
        return Disassembler(Memory.from_rom(self.rom)).disassemble(self.rom.length)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def tick(self, steps: int) -> int:
        """Advance the CPU by up to ``steps`` steps while running."""

        if steps <= 0 or self._running_status != self.STATUS_RUNNING:
            return 0
        executed = 0
        try:
            while executed < steps:
                self.cpu_core.step()
                executed += 1
        except CPUFault as exc:
            self.fault = exc
            self._running_status = self.STATUS_STOPPED
            raise
        finally:
            self.step_count += executed
        return executed

    @property
    def awaiting_key(self) -> bool:
        return self.cpu_core.status is ExecutionStatus.AWAITING_KEY

    def state(self) -> CPUState:
        return self.cpu_core.state()

    # ------------------------------------------------------------------
    # Control lifecycle
    # ------------------------------------------------------------------
    def power_on(self) -> None:
        if self.rom is None:
            raise RomLoadError("no ROM loaded")
        self.reset()
        self._running_status = self.STATUS_RUNNING

    def power_off(self) -> None:
        self._running_status = self.STATUS_STOPPED

    def reset(self) -> None:
        if self.rom is not None:
            self.memory = Memory.from_rom(self.rom)
            self.cpu_core.memory = self.memory
        self.cpu_core.reset()
        self.display.clear()
        self.step_count = 0
        self.fault = None

    def pause(self) -> None:
        if self._running_status == self.STATUS_RUNNING:
            self._running_status = self.STATUS_PAUSED

    def resume(self) -> None:
        if self._running_status == self.STATUS_PAUSED:
            self._running_status = self.STATUS_RUNNING

    def get_running_status(self) -> int:
        return self._running_status
