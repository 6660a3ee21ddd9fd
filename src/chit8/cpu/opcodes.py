"""Instruction decoding shared by the CPU core and the disassembler."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Op(Enum):
    """Every operation of the CHIP-8 instruction set, plus ``UNKNOWN``."""

    CLS = "cls"
    RET = "ret"
    SYS = "sys"
    JP = "jp"
    CALL = "call"
    SE_BYTE = "se_byte"
    SNE_BYTE = "sne_byte"
    SE_REG = "se_reg"
    LD_BYTE = "ld_byte"
    ADD_BYTE = "add_byte"
    LD_REG = "ld_reg"
    OR = "or"
    AND = "and"
    XOR = "xor"
    ADD_REG = "add_reg"
    SUB = "sub"
    SHR = "shr"
    SUBN = "subn"
    SHL = "shl"
    SNE_REG = "sne_reg"
    LD_I = "ld_i"
    JP_V0 = "jp_v0"
    RND = "rnd"
    DRW = "drw"
    SKP = "skp"
    SKNP = "sknp"
    LD_VX_DT = "ld_vx_dt"
    LD_VX_K = "ld_vx_k"
    LD_DT_VX = "ld_dt_vx"
    LD_ST_VX = "ld_st_vx"
    ADD_I_VX = "add_i_vx"
    LD_F_VX = "ld_f_vx"
    LD_B_VX = "ld_b_vx"
    LD_MEM_VX = "ld_mem_vx"
    LD_VX_MEM = "ld_vx_mem"
    UNKNOWN = "unknown"


ALU_OPS: Dict[int, Op] = {
    0x0: Op.LD_REG,
    0x1: Op.OR,
    0x2: Op.AND,
    0x3: Op.XOR,
    0x4: Op.ADD_REG,
    0x5: Op.SUB,
    0x6: Op.SHR,
    0x7: Op.SUBN,
    0xE: Op.SHL,
}

KEY_OPS: Dict[int, Op] = {
    0x9E: Op.SKP,
    0xA1: Op.SKNP,
}

MISC_OPS: Dict[int, Op] = {
    0x07: Op.LD_VX_DT,
    0x0A: Op.LD_VX_K,
    0x15: Op.LD_DT_VX,
    0x18: Op.LD_ST_VX,
    0x1E: Op.ADD_I_VX,
    0x29: Op.LD_F_VX,
    0x33: Op.LD_B_VX,
    0x55: Op.LD_MEM_VX,
    0x65: Op.LD_VX_MEM,
}

# Families whose whole low 12 bits are operands.
_SIMPLE_OPS: Dict[int, Op] = {
    0x1: Op.JP,
    0x2: Op.CALL,
    0x3: Op.SE_BYTE,
    0x4: Op.SNE_BYTE,
    0x6: Op.LD_BYTE,
    0x7: Op.ADD_BYTE,
    0xA: Op.LD_I,
    0xB: Op.JP_V0,
    0xC: Op.RND,
    0xD: Op.DRW,
}


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction word and its operand fields."""

    op: Op
    opcode: int

    @property
    def x(self) -> int:
        return (self.opcode >> 8) & 0x0F

    @property
    def y(self) -> int:
        return (self.opcode >> 4) & 0x0F

    @property
    def n(self) -> int:
        return self.opcode & 0x000F

    @property
    def kk(self) -> int:
        return self.opcode & 0x00FF

    @property
    def addr(self) -> int:
        return self.opcode & 0x0FFF


def decode(opcode: int) -> Instruction:
    """Map a 16-bit instruction word onto its operation."""

    word = opcode & 0xFFFF
    family = word >> 12

    if word == 0x00E0:
        op = Op.CLS
    elif word == 0x00EE:
        op = Op.RET
    elif family == 0x0:
        op = Op.SYS
    elif family in _SIMPLE_OPS:
        op = _SIMPLE_OPS[family]
    elif family == 0x5:
        op = Op.SE_REG if word & 0x000F == 0x0 else Op.UNKNOWN
    elif family == 0x8:
        op = ALU_OPS.get(word & 0x000F, Op.UNKNOWN)
    elif family == 0x9:
        op = Op.SNE_REG if word & 0x000F == 0x0 else Op.UNKNOWN
    elif family == 0xE:
        op = KEY_OPS.get(word & 0x00FF, Op.UNKNOWN)
    else:
        op = MISC_OPS.get(word & 0x00FF, Op.UNKNOWN)
    return Instruction(op, word)


__all__ = ["ALU_OPS", "Instruction", "KEY_OPS", "MISC_OPS", "Op", "decode"]
