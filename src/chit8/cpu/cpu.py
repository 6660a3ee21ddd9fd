"""CHIP-8 CPU core."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import random
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from chit8.chip8.display import Display, NullDisplay
from chit8.cpu.opcodes import Instruction, Op, decode
from chit8.io.keypad import Input, KEY_COUNT
from chit8.memory import FONT_GLYPH_SIZE, FONT_START, PROGRAM_START, Addressable

REGISTER_COUNT = 16
STACK_DEPTH = 16
FLAG_REGISTER = 0xF


@dataclass
class CPURegisters:
    """Register file: V0-VF, the address register I, PC and the two timers."""

    v: List[int] = field(default_factory=lambda: [0x00] * REGISTER_COUNT)
    index: int = 0
    program_counter: int = PROGRAM_START
    delay_timer: int = 0
    sound_timer: int = 0


class ExecutionStatus(Enum):
    RUNNING = "running"
    AWAITING_KEY = "awaiting_key"


class CallStack:
    """Bounded stack of subroutine return addresses."""

    def __init__(self, capacity: int = STACK_DEPTH) -> None:
        self.capacity = capacity
        self._slots: List[int] = [0] * capacity
        self._depth = 0

    @property
    def depth(self) -> int:
        return self._depth

    def push(self, address: int) -> None:
        if self._depth >= self.capacity:
            raise OverflowError("call stack exceeded")
        self._slots[self._depth] = address & 0xFFFF
        self._depth += 1

    def pop(self) -> int:
        if self._depth == 0:
            raise IndexError("return without anything on the stack")
        self._depth -= 1
        address = self._slots[self._depth]
        self._slots[self._depth] = 0
        return address

    def peek(self) -> int:
        if self._depth == 0:
            raise IndexError("call stack is empty")
        return self._slots[self._depth - 1]

    def clear(self) -> None:
        self._slots = [0] * self.capacity
        self._depth = 0

    def __len__(self) -> int:
        return self._depth

    def __iter__(self) -> Iterator[int]:
        """Iterate from the oldest return address to the newest."""

        return iter(self._slots[: self._depth])


@dataclass(frozen=True)
class CPUState:
    """Immutable snapshot of the CPU used for fault reports and debugging."""

    v: Tuple[int, ...]
    index: int
    program_counter: int
    stack: Tuple[int, ...]
    delay_timer: int
    sound_timer: int
    status: ExecutionStatus = ExecutionStatus.RUNNING

    def format(self) -> str:
        lines = [f"CHIP8 CPU @ 0x{self.program_counter:04X}"]
        for row in range(0, REGISTER_COUNT, 4):
            lines.append(", ".join(f"V{reg:X}: {self.v[reg]:X}" for reg in range(row, row + 4)))
        lines.append("")
        lines.append("STACK:")
        for depth, address in enumerate(self.stack):
            lines.append(f">> {depth}: 0x{address:04X}")
        lines.append("")
        lines.append(f"I: {self.index:X}")
        lines.append(f"ST: {self.sound_timer:X}")
        lines.append(f"DT: {self.delay_timer:X}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.format()


class CPUFault(RuntimeError):
    """Unrecoverable execution error; carries the CPU state at the fault."""

    def __init__(self, message: str, state: CPUState, *, opcode: Optional[int] = None, address: Optional[int] = None) -> None:
        super().__init__(message)
        self.state = state
        self.opcode = opcode
        self.address = address

    def dump(self) -> str:
        return f"{self}\n{self.state.format()}"


class StackOverflowError(CPUFault):
    """CALL issued with all sixteen stack slots in use."""


class StackUnderflowError(CPUFault):
    """RET issued with an empty call stack."""


class UnknownOpcodeError(CPUFault):
    """Instruction word outside the CHIP-8 instruction set."""


class Chip8CPU:
    """Fetch-decode-execute engine for the CHIP-8 instruction set."""

    def __init__(
        self,
        memory: Addressable,
        input_device: Input,
        display: Optional[Display] = None,
        *,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.memory = memory
        self.input = input_device
        self.display: Display = display if display is not None else NullDisplay()
        self.rng = rng if rng is not None else random.Random(seed)
        self.registers = CPURegisters()
        self.stack = CallStack()
        self.status = ExecutionStatus.RUNNING
        self._key_register = 0
        self._trace = False
        self._handlers: Dict[Op, Callable[[Instruction], None]] = {}
        self._init_handler_table()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def reset(self) -> None:
        self.registers = CPURegisters()
        self.stack.clear()
        self.status = ExecutionStatus.RUNNING
        self._key_register = 0

    def step(self) -> ExecutionStatus:
        """Run one instruction (or one key poll while waiting) and tick timers."""

        if self.status is ExecutionStatus.AWAITING_KEY:
            self._poll_key()
        else:
            address = self.registers.program_counter
            instruction = decode(self._fetch_op())
            if self._trace:
                self._print_trace(address, instruction)
            handler = self._handlers.get(instruction.op)
            if handler is None:
                raise UnknownOpcodeError(
                    f"Unknown opcode: 0x{instruction.opcode:04X}",
                    self.state(),
                    opcode=instruction.opcode,
                    address=address,
                )
            handler(instruction)
        self._update_timers()
        return self.status

    def execute(self, steps: int) -> int:
        """Run up to ``steps`` steps, stopping early when blocked on input."""

        executed = 0
        while executed < steps:
            status = self.step()
            executed += 1
            if status is ExecutionStatus.AWAITING_KEY:
                break
        return executed

    def state(self) -> CPUState:
        regs = self.registers
        return CPUState(
            v=tuple(regs.v),
            index=regs.index,
            program_counter=regs.program_counter,
            stack=tuple(self.stack),
            delay_timer=regs.delay_timer,
            sound_timer=regs.sound_timer,
            status=self.status,
        )

    @property
    def awaiting_key(self) -> bool:
        return self.status is ExecutionStatus.AWAITING_KEY

    def enable_trace(self, enabled: bool) -> None:
        self._trace = enabled

    @property
    def trace_enabled(self) -> bool:
        return self._trace

    def __str__(self) -> str:
        return self.state().format()

    # ------------------------------------------------------------------
    # Fetch / timers
    # ------------------------------------------------------------------
    def _fetch_op(self) -> int:
        pc = self.registers.program_counter
        hi = self.memory.load_byte(pc)
        lo = self.memory.load_byte(pc + 1)
        self.registers.program_counter = (pc + 2) & 0xFFFF
        return ((hi << 8) | lo) & 0xFFFF

    def _skip(self) -> None:
        self.registers.program_counter = (self.registers.program_counter + 2) & 0xFFFF

    def _update_timers(self) -> None:
        if self.registers.delay_timer > 0:
            self.registers.delay_timer -= 1
        if self.registers.sound_timer > 0:
            self.registers.sound_timer -= 1

    def _poll_key(self) -> None:
        states = self.input.get_key_states()
        for key, pressed in enumerate(states[:KEY_COUNT]):
            if pressed:
                self.registers.v[self._key_register] = key
                self.status = ExecutionStatus.RUNNING
                return
        self.status = ExecutionStatus.AWAITING_KEY

    def _key_pressed(self, register: int) -> bool:
        key = self.registers.v[register] & 0x0F
        return bool(self.input.get_key_states()[key])

    def _print_trace(self, address: int, instruction: Instruction) -> None:
        from chit8.disassembler import DisassembledLine, format_instruction

        print(DisassembledLine(address, instruction.opcode, format_instruction(instruction)))

    # ------------------------------------------------------------------
    # Handler table
    # ------------------------------------------------------------------
    def _init_handler_table(self) -> None:
        self._handlers.clear()
        self._register_handler(Op.CLS, self._op_cls)
        self._register_handler(Op.RET, self._op_ret)
        self._register_handler(Op.SYS, self._op_sys)
        self._register_handler(Op.JP, self._op_jp)
        self._register_handler(Op.CALL, self._op_call)
        self._register_handler(Op.SE_BYTE, self._op_se_byte)
        self._register_handler(Op.SNE_BYTE, self._op_sne_byte)
        self._register_handler(Op.SE_REG, self._op_se_reg)
        self._register_handler(Op.LD_BYTE, self._op_ld_byte)
        self._register_handler(Op.ADD_BYTE, self._op_add_byte)
        self._register_handler(Op.LD_REG, self._op_ld_reg)
        self._register_handler(Op.OR, self._op_or)
        self._register_handler(Op.AND, self._op_and)
        self._register_handler(Op.XOR, self._op_xor)
        self._register_handler(Op.ADD_REG, self._op_add_reg)
        self._register_handler(Op.SUB, self._op_sub)
        self._register_handler(Op.SHR, self._op_shr)
        self._register_handler(Op.SUBN, self._op_subn)
        self._register_handler(Op.SHL, self._op_shl)
        self._register_handler(Op.SNE_REG, self._op_sne_reg)
        self._register_handler(Op.LD_I, self._op_ld_i)
        self._register_handler(Op.JP_V0, self._op_jp_v0)
        self._register_handler(Op.RND, self._op_rnd)
        self._register_handler(Op.DRW, self._op_drw)
        self._register_handler(Op.SKP, self._op_skp)
        self._register_handler(Op.SKNP, self._op_sknp)
        self._register_handler(Op.LD_VX_DT, self._op_ld_vx_dt)
        self._register_handler(Op.LD_VX_K, self._op_ld_vx_k)
        self._register_handler(Op.LD_DT_VX, self._op_ld_dt_vx)
        self._register_handler(Op.LD_ST_VX, self._op_ld_st_vx)
        self._register_handler(Op.ADD_I_VX, self._op_add_i_vx)
        self._register_handler(Op.LD_F_VX, self._op_ld_f_vx)
        self._register_handler(Op.LD_B_VX, self._op_ld_b_vx)
        self._register_handler(Op.LD_MEM_VX, self._op_ld_mem_vx)
        self._register_handler(Op.LD_VX_MEM, self._op_ld_vx_mem)

    def _register_handler(self, op: Op, handler: Callable[[Instruction], None]) -> None:
        self._handlers[op] = handler

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------
    def _op_cls(self, inst: Instruction) -> None:
        self.display.clear()

    def _op_ret(self, inst: Instruction) -> None:
        try:
            self.registers.program_counter = self.stack.pop()
        except IndexError as exc:
            raise StackUnderflowError(
                "Return without anything on the stack",
                self.state(),
                opcode=inst.opcode,
                address=(self.registers.program_counter - 2) & 0xFFFF,
            ) from exc

    def _op_sys(self, inst: Instruction) -> None:
        # Machine code routines do not exist on an emulated interpreter.
        return

    def _op_jp(self, inst: Instruction) -> None:
        self.registers.program_counter = inst.addr

    def _op_call(self, inst: Instruction) -> None:
        try:
            self.stack.push(self.registers.program_counter)
        except OverflowError as exc:
            raise StackOverflowError(
                "Call stack exceeded",
                self.state(),
                opcode=inst.opcode,
                address=(self.registers.program_counter - 2) & 0xFFFF,
            ) from exc
        self.registers.program_counter = inst.addr

    def _op_se_byte(self, inst: Instruction) -> None:
        if self.registers.v[inst.x] == inst.kk:
            self._skip()

    def _op_sne_byte(self, inst: Instruction) -> None:
        if self.registers.v[inst.x] != inst.kk:
            self._skip()

    def _op_se_reg(self, inst: Instruction) -> None:
        if self.registers.v[inst.x] == self.registers.v[inst.y]:
            self._skip()

    def _op_sne_reg(self, inst: Instruction) -> None:
        if self.registers.v[inst.x] != self.registers.v[inst.y]:
            self._skip()

    def _op_jp_v0(self, inst: Instruction) -> None:
        self.registers.program_counter = (inst.addr + self.registers.v[0]) & 0xFFFF

    # ------------------------------------------------------------------
    # Register arithmetic
    # ------------------------------------------------------------------
    def _op_ld_byte(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = inst.kk

    def _op_add_byte(self, inst: Instruction) -> None:
        # No carry flag for the immediate form.
        self.registers.v[inst.x] = (self.registers.v[inst.x] + inst.kk) & 0xFF

    def _op_ld_reg(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = self.registers.v[inst.y]

    def _op_or(self, inst: Instruction) -> None:
        self.registers.v[inst.x] |= self.registers.v[inst.y]

    def _op_and(self, inst: Instruction) -> None:
        self.registers.v[inst.x] &= self.registers.v[inst.y]

    def _op_xor(self, inst: Instruction) -> None:
        self.registers.v[inst.x] ^= self.registers.v[inst.y]

    def _op_add_reg(self, inst: Instruction) -> None:
        v = self.registers.v
        total = v[inst.x] + v[inst.y]
        v[FLAG_REGISTER] = 1 if total > 0xFF else 0
        v[inst.x] = total & 0xFF

    def _op_sub(self, inst: Instruction) -> None:
        v = self.registers.v
        vx, vy = v[inst.x], v[inst.y]
        v[FLAG_REGISTER] = 1 if vx > vy else 0
        v[inst.x] = (vx - vy) & 0xFF

    def _op_subn(self, inst: Instruction) -> None:
        v = self.registers.v
        vx, vy = v[inst.x], v[inst.y]
        v[FLAG_REGISTER] = 1 if vy > vx else 0
        v[inst.x] = (vy - vx) & 0xFF

    def _op_shr(self, inst: Instruction) -> None:
        v = self.registers.v
        value = v[inst.x]
        v[FLAG_REGISTER] = value & 0x01
        v[inst.x] = value >> 1

    def _op_shl(self, inst: Instruction) -> None:
        v = self.registers.v
        value = v[inst.x]
        v[FLAG_REGISTER] = (value >> 7) & 0x01
        v[inst.x] = (value << 1) & 0xFF

    def _op_rnd(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = self.rng.randrange(0x100) & inst.kk

    # ------------------------------------------------------------------
    # Display and keypad
    # ------------------------------------------------------------------
    def _op_drw(self, inst: Instruction) -> None:
        base = self.registers.index
        sprite = [self.memory.load_byte(base + row) for row in range(inst.n)]
        erased = self.display.draw_sprite(self.registers.v[inst.x], self.registers.v[inst.y], sprite)
        self.registers.v[FLAG_REGISTER] = 1 if erased else 0

    def _op_skp(self, inst: Instruction) -> None:
        if self._key_pressed(inst.x):
            self._skip()

    def _op_sknp(self, inst: Instruction) -> None:
        if not self._key_pressed(inst.x):
            self._skip()

    def _op_ld_vx_k(self, inst: Instruction) -> None:
        self._key_register = inst.x
        self._poll_key()

    # ------------------------------------------------------------------
    # Timers, I and memory transfers
    # ------------------------------------------------------------------
    def _op_ld_vx_dt(self, inst: Instruction) -> None:
        self.registers.v[inst.x] = self.registers.delay_timer

    def _op_ld_dt_vx(self, inst: Instruction) -> None:
        self.registers.delay_timer = self.registers.v[inst.x]

    def _op_ld_st_vx(self, inst: Instruction) -> None:
        self.registers.sound_timer = self.registers.v[inst.x]

    def _op_ld_i(self, inst: Instruction) -> None:
        self.registers.index = inst.addr

    def _op_add_i_vx(self, inst: Instruction) -> None:
        self.registers.index = (self.registers.index + self.registers.v[inst.x]) & 0xFFFF

    def _op_ld_f_vx(self, inst: Instruction) -> None:
        digit = self.registers.v[inst.x] & 0x0F
        self.registers.index = FONT_START + digit * FONT_GLYPH_SIZE

    def _op_ld_b_vx(self, inst: Instruction) -> None:
        value = self.registers.v[inst.x]
        base = self.registers.index
        self.memory.store_byte(base, value // 100)
        self.memory.store_byte(base + 1, (value // 10) % 10)
        self.memory.store_byte(base + 2, value % 10)

    def _op_ld_mem_vx(self, inst: Instruction) -> None:
        base = self.registers.index
        for reg in range(inst.x + 1):
            self.memory.store_byte(base + reg, self.registers.v[reg])

    def _op_ld_vx_mem(self, inst: Instruction) -> None:
        base = self.registers.index
        for reg in range(inst.x + 1):
            self.registers.v[reg] = self.memory.load_byte(base + reg)


__all__ = [
    "CPUFault",
    "CPURegisters",
    "CPUState",
    "CallStack",
    "Chip8CPU",
    "ExecutionStatus",
    "StackOverflowError",
    "StackUnderflowError",
    "UnknownOpcodeError",
]
