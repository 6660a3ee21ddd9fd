"""Headless end-to-end checks with small hand-assembled programs."""

from __future__ import annotations

import importlib.util
from pathlib import Path
import sys

from chit8.cpu.cpu import ExecutionStatus

_HELPER_PATH = Path(__file__).resolve().parents[1] / "helpers" / "headless.py"
_SPEC = importlib.util.spec_from_file_location("headless_helper", _HELPER_PATH)
_MODULE = importlib.util.module_from_spec(_SPEC)
assert _SPEC is not None and _SPEC.loader is not None
sys.modules[_SPEC.name] = _MODULE
_SPEC.loader.exec_module(_MODULE)  # type: ignore[arg-type]

KeyEvent = _MODULE.KeyEvent
run_program = _MODULE.run_program


COUNTDOWN = [
    0x6005,  # 200: LD V0, 5
    0x6100,  # 202: LD V1, 0
    0x7101,  # 204: ADD V1, 1
    0x70FF,  # 206: ADD V0, 0xFF
    0x3000,  # 208: SE V0, 0
    0x1204,  # 20A: JP 0x204
    0x120C,  # 20C: JP 0x20C
]

SUBROUTINE_BCD = [
    0x6A7B,  # 200: LD VA, 123
    0xA300,  # 202: LD I, 0x300
    0x2210,  # 204: CALL 0x210
    0x1206,  # 206: JP 0x206
    0x0000,
    0x0000,
    0x0000,
    0x0000,
    0xFA33,  # 210: LD B, VA
    0xF265,  # 212: LD V2, [I]
    0x00EE,  # 214: RET
]

DRAW_DIGIT = [
    0x6007,  # 200: LD V0, 7
    0xF029,  # 202: LD F, V0
    0x610A,  # 204: LD V1, 10
    0x6205,  # 206: LD V2, 5
    0xD125,  # 208: DRW V1, V2, 5
    0xD125,  # 20A: DRW V1, V2, 5
    0x120C,  # 20C: JP 0x20C
]

KEY_WAIT = [
    0x6A3C,  # 200: LD VA, 60
    0xFA15,  # 202: LD DT, VA
    0xF30A,  # 204: LD V3, K
    0xF407,  # 206: LD V4, DT
    0x1208,  # 208: JP 0x208
]


def test_countdown_loop_terminates() -> None:
    computer = run_program(COUNTDOWN, steps=100)
    state = computer.state()
    assert state.v[0] == 0
    assert state.v[1] == 5
    assert state.program_counter == 0x20C


def test_subroutine_stores_and_reloads_bcd_digits() -> None:
    computer = run_program(SUBROUTINE_BCD, steps=20)
    state = computer.state()
    assert state.v[:3] == (1, 2, 3)
    assert computer.memory.dump(0x300, 3) == bytes([1, 2, 3])
    assert state.program_counter == 0x206
    assert state.stack == ()


def test_font_digit_is_drawn_then_erased() -> None:
    computer = run_program(DRAW_DIGIT, steps=5)
    rows = computer.display.render_text().splitlines()
    assert rows[5][10:14] == "####"
    assert rows[6][10:14] == "...#"
    assert computer.state().v[0xF] == 0

    computer = run_program(DRAW_DIGIT, steps=6)
    assert computer.state().v[0xF] == 1
    assert "#" not in computer.display.render_text()


def test_key_wait_blocks_until_event() -> None:
    computer = run_program(KEY_WAIT, steps=10)
    assert computer.awaiting_key
    assert computer.cpu_core.status is ExecutionStatus.AWAITING_KEY
    assert computer.state().program_counter == 0x206

    computer = run_program(KEY_WAIT, steps=12, events=[KeyEvent(step=10, key=0xC, pressed=True)])
    state = computer.state()
    assert not computer.awaiting_key
    assert state.v[3] == 0xC
    # DT is loaded with 60 on the second step and ticks on every step, key polls included.
    assert state.v[4] == 60 - 10
