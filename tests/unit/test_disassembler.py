"""Disassembler mnemonics and listing layout."""

from __future__ import annotations

import io

import pytest

from chit8.disassembler import DisassembledLine, Disassembler, disassemble_word
from chit8.emulator.file import Rom
from chit8.memory import Memory


@pytest.mark.parametrize(
    "opcode, text",
    [
        (0x00E0, "CLS"),
        (0x00EE, "RET"),
        (0x0123, "SYS 0x0123"),
        (0x1ABC, "JP 0xABC"),
        (0x2ABC, "CALL 0xABC"),
        (0x3A12, "SE VA, 0x12"),
        (0x4BFF, "SNE VB, 0xFF"),
        (0x5120, "SE V1, V2"),
        (0x6A0F, "LD VA, 0xF"),
        (0x7301, "ADD V3, 0x1"),
        (0x8AB0, "LD VA, VB"),
        (0x8AB1, "OR VA, VB"),
        (0x8AB2, "AND VA, VB"),
        (0x8AB3, "XOR VA, VB"),
        (0x8AB4, "ADD VA, VB"),
        (0x8AB5, "SUB VA, VB"),
        (0x8AB6, "SHR VA"),
        (0x8AB7, "SUBN VA, VB"),
        (0x8ABE, "SHL VA"),
        (0x9AB0, "SNE VA, VB"),
        (0xA123, "LD I, 0x123"),
        (0xB200, "JP V0, 0x200"),
        (0xC3F0, "RND V3, 0xF0"),
        (0xD125, "DRW V1, V2, 5"),
        (0xD12F, "DRW V1, V2, F"),
        (0xE19E, "SKP V1"),
        (0xE1A1, "SKNP V1"),
        (0xF107, "LD V1, DT"),
        (0xF20A, "LD V2, K"),
        (0xF315, "LD DT, V3"),
        (0xF418, "LD ST, V4"),
        (0xF51E, "ADD I, V5"),
        (0xF629, "LD F, V6"),
        (0xF733, "LD B, V7"),
        (0xF855, "LD [I], V8"),
        (0xF965, "LD V9, [I]"),
        (0xF0FF, "Unknown opcode: 0xF0FF"),
        (0x5121, "Unknown opcode: 0x5121"),
        (0x800F, "Unknown opcode: 0x800F"),
    ],
)
def test_mnemonics(opcode: int, text: str) -> None:
    assert disassemble_word(opcode) == text


def test_line_format() -> None:
    assert str(DisassembledLine(0x2A0, 0x00E0, "CLS")) == "0x2A0: (0x00E0) CLS"


def _disassembler(data: bytes) -> Disassembler:
    return Disassembler(Memory.from_rom(Rom.from_bytes(data, "t.ch8")))


def test_listing_covers_program() -> None:
    lines = _disassembler(bytes([0x12, 0x00, 0x60, 0x05])).disassemble(4)
    assert lines == ["0x200: (0x1200) JP 0x200", "0x202: (0x6005) LD V0, 0x5"]


def test_odd_length_reads_trailing_zero() -> None:
    lines = _disassembler(bytes([0x00, 0xE0, 0xA2])).disassemble(3)
    assert lines == ["0x200: (0x00E0) CLS", "0x202: (0xA200) LD I, 0x200"]


def test_empty_program_yields_one_line() -> None:
    lines = _disassembler(b"").disassemble(0)
    assert lines == ["0x200: (0x0000) SYS 0x0000"]


def test_unknown_opcode_does_not_stop_listing() -> None:
    lines = _disassembler(bytes([0xFF, 0xFF, 0x00, 0xE0])).disassemble(4)
    assert lines[0].endswith("Unknown opcode: 0xFFFF")
    assert lines[1].endswith("CLS")


def test_reset_and_next_line() -> None:
    disassembler = _disassembler(bytes([0x00, 0xE0, 0x00, 0xEE]))
    assert disassembler.next_line().mnemonic == "CLS"
    assert disassembler.next_line().mnemonic == "RET"
    assert disassembler.pc == 0x204
    disassembler.reset()
    assert disassembler.next_line().address == 0x200


def test_print_listing_writes_separator() -> None:
    stream = io.StringIO()
    _disassembler(bytes([0x00, 0xE0])).print_listing(2, stream=stream)
    assert stream.getvalue().splitlines() == ["", "===", "0x200: (0x00E0) CLS"]
