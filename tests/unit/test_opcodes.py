"""Instruction decoding."""

from __future__ import annotations

import pytest

from chit8.cpu.opcodes import Op, decode


@pytest.mark.parametrize(
    "opcode, op",
    [
        (0x00E0, Op.CLS),
        (0x00EE, Op.RET),
        (0x0123, Op.SYS),
        (0x1ABC, Op.JP),
        (0x2ABC, Op.CALL),
        (0x3A12, Op.SE_BYTE),
        (0x4A12, Op.SNE_BYTE),
        (0x5AB0, Op.SE_REG),
        (0x6A12, Op.LD_BYTE),
        (0x7A12, Op.ADD_BYTE),
        (0x8AB0, Op.LD_REG),
        (0x8AB1, Op.OR),
        (0x8AB2, Op.AND),
        (0x8AB3, Op.XOR),
        (0x8AB4, Op.ADD_REG),
        (0x8AB5, Op.SUB),
        (0x8AB6, Op.SHR),
        (0x8AB7, Op.SUBN),
        (0x8ABE, Op.SHL),
        (0x9AB0, Op.SNE_REG),
        (0xA123, Op.LD_I),
        (0xB123, Op.JP_V0),
        (0xCA12, Op.RND),
        (0xDAB5, Op.DRW),
        (0xEA9E, Op.SKP),
        (0xEAA1, Op.SKNP),
        (0xFA07, Op.LD_VX_DT),
        (0xFA0A, Op.LD_VX_K),
        (0xFA15, Op.LD_DT_VX),
        (0xFA18, Op.LD_ST_VX),
        (0xFA1E, Op.ADD_I_VX),
        (0xFA29, Op.LD_F_VX),
        (0xFA33, Op.LD_B_VX),
        (0xFA55, Op.LD_MEM_VX),
        (0xFA65, Op.LD_VX_MEM),
    ],
)
def test_decode_families(opcode: int, op: Op) -> None:
    assert decode(opcode).op is op


@pytest.mark.parametrize("opcode", [0x5AB1, 0x9ABF, 0x8AB8, 0x8ABF, 0xEA00, 0xEA9F, 0xF000, 0xFAFF])
def test_decode_unknown(opcode: int) -> None:
    instruction = decode(opcode)
    assert instruction.op is Op.UNKNOWN
    assert instruction.opcode == opcode


def test_operand_fields() -> None:
    instruction = decode(0xD3A7)
    assert instruction.x == 0x3
    assert instruction.y == 0xA
    assert instruction.n == 0x7
    assert instruction.kk == 0xA7
    assert instruction.addr == 0x3A7


def test_decode_is_pure() -> None:
    assert decode(0x1234) == decode(0x1234)
    assert decode(0x11234).opcode == 0x1234
