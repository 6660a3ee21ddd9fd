"""CHIP-8 disassembler built on the same decoder the CPU uses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, TextIO
import sys

from chit8.cpu.opcodes import Instruction, Op, decode
from chit8.memory import Addressable, PROGRAM_START

Formatter = Callable[[Instruction], str]


def _reg(index: int) -> str:
    return f"V{index:X}"


def _hex(value: int) -> str:
    return f"0x{value:X}"


MNEMONICS: Dict[Op, Formatter] = {
    Op.CLS: lambda i: "CLS",
    Op.RET: lambda i: "RET",
    Op.SYS: lambda i: f"SYS 0x{i.addr:04X}",
    Op.JP: lambda i: f"JP {_hex(i.addr)}",
    Op.CALL: lambda i: f"CALL {_hex(i.addr)}",
    Op.SE_BYTE: lambda i: f"SE {_reg(i.x)}, {_hex(i.kk)}",
    Op.SNE_BYTE: lambda i: f"SNE {_reg(i.x)}, {_hex(i.kk)}",
    Op.SE_REG: lambda i: f"SE {_reg(i.x)}, {_reg(i.y)}",
    Op.LD_BYTE: lambda i: f"LD {_reg(i.x)}, {_hex(i.kk)}",
    Op.ADD_BYTE: lambda i: f"ADD {_reg(i.x)}, {_hex(i.kk)}",
    Op.LD_REG: lambda i: f"LD {_reg(i.x)}, {_reg(i.y)}",
    Op.OR: lambda i: f"OR {_reg(i.x)}, {_reg(i.y)}",
    Op.AND: lambda i: f"AND {_reg(i.x)}, {_reg(i.y)}",
    Op.XOR: lambda i: f"XOR {_reg(i.x)}, {_reg(i.y)}",
    Op.ADD_REG: lambda i: f"ADD {_reg(i.x)}, {_reg(i.y)}",
    Op.SUB: lambda i: f"SUB {_reg(i.x)}, {_reg(i.y)}",
    Op.SHR: lambda i: f"SHR {_reg(i.x)}",
    Op.SUBN: lambda i: f"SUBN {_reg(i.x)}, {_reg(i.y)}",
    Op.SHL: lambda i: f"SHL {_reg(i.x)}",
    Op.SNE_REG: lambda i: f"SNE {_reg(i.x)}, {_reg(i.y)}",
    Op.LD_I: lambda i: f"LD I, {_hex(i.addr)}",
    Op.JP_V0: lambda i: f"JP V0, {_hex(i.addr)}",
    Op.RND: lambda i: f"RND {_reg(i.x)}, {_hex(i.kk)}",
    Op.DRW: lambda i: f"DRW {_reg(i.x)}, {_reg(i.y)}, {i.n:X}",
    Op.SKP: lambda i: f"SKP {_reg(i.x)}",
    Op.SKNP: lambda i: f"SKNP {_reg(i.x)}",
    Op.LD_VX_DT: lambda i: f"LD {_reg(i.x)}, DT",
    Op.LD_VX_K: lambda i: f"LD {_reg(i.x)}, K",
    Op.LD_DT_VX: lambda i: f"LD DT, {_reg(i.x)}",
    Op.LD_ST_VX: lambda i: f"LD ST, {_reg(i.x)}",
    Op.ADD_I_VX: lambda i: f"ADD I, {_reg(i.x)}",
    Op.LD_F_VX: lambda i: f"LD F, {_reg(i.x)}",
    Op.LD_B_VX: lambda i: f"LD B, {_reg(i.x)}",
    Op.LD_MEM_VX: lambda i: f"LD [I], {_reg(i.x)}",
    Op.LD_VX_MEM: lambda i: f"LD {_reg(i.x)}, [I]",
    Op.UNKNOWN: lambda i: f"Unknown opcode: 0x{i.opcode:04X}",
}


def format_instruction(instruction: Instruction) -> str:
    return MNEMONICS[instruction.op](instruction)


def disassemble_word(opcode: int) -> str:
    """Return the mnemonic for a single instruction word."""

    return format_instruction(decode(opcode))


@dataclass(frozen=True)
class DisassembledLine:
    address: int
    opcode: int
    mnemonic: str

    def __str__(self) -> str:
        return f"0x{self.address:X}: (0x{self.opcode:04X}) {self.mnemonic}"


class Disassembler:
    """Walks program memory from 0x200, rendering one line per instruction."""

    def __init__(self, memory: Addressable, *, start: int = PROGRAM_START) -> None:
        self.memory = memory
        self.start = start
        self.pc = start

    def reset(self) -> None:
        self.pc = self.start

    def next_line(self) -> DisassembledLine:
        address = self.pc
        hi = self.memory.load_byte(address)
        lo = self.memory.load_byte(address + 1)
        self.pc = (address + 2) & 0xFFFF
        opcode = ((hi << 8) | lo) & 0xFFFF
        return DisassembledLine(address, opcode, disassemble_word(opcode))

    def iter_lines(self, program_length: int) -> Iterator[DisassembledLine]:
        """Yield lines until the cursor reaches the end of the program.

        At least one line is produced, even for an empty program.
        """

        end = self.start + program_length
        while True:
            yield self.next_line()
            if self.pc >= end:
                break

    def disassemble(self, program_length: int) -> List[str]:
        return [str(line) for line in self.iter_lines(program_length)]

    def print_listing(self, program_length: int, *, stream: Optional[TextIO] = None) -> None:
        out = stream if stream is not None else sys.stdout
        print("", file=out)
        print("===", file=out)
        for line in self.iter_lines(program_length):
            print(line, file=out)


__all__ = [
    "DisassembledLine",
    "Disassembler",
    "MNEMONICS",
    "disassemble_word",
    "format_instruction",
]
