"""Headless runner for CHIP-8 ROM debugging workflows."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple

from chit8.chip8.computer import Chip8Computer
from chit8.chip8.display import FramebufferDisplay
from chit8.cpu.cpu import CPUFault
from chit8.emulator.file import RomLoadError
from chit8.io.keypad import Keypad
from chit8.memory import ADDRESS_MASK

DEFAULT_MAX_STEPS = 100_000
EXECUTION_CHUNK = 64


@dataclass(frozen=True)
class DumpRange:
    """Inclusive memory range used for dumping."""

    start: int
    end: int

    def iter_addresses(self) -> Iterable[int]:
        for address in range(self.start, self.end + 1):
            yield address & ADDRESS_MASK


def _parse_hex(value: str, *, limit: int = ADDRESS_MASK) -> int:
    text = value.strip().lower()
    if text.startswith("0x"):
        text = text[2:]
    if not text:
        raise ValueError("empty hexadecimal value")
    result = int(text, 16)
    if not (0 <= result <= limit):
        raise ValueError("hex value out of range")
    return result


def _parse_range(spec: str) -> DumpRange:
    start_str, sep, end_str = spec.partition(":")
    if not sep:
        raise ValueError("range specification must contain ':'")
    start = _parse_hex(start_str)
    end = _parse_hex(end_str)
    if end < start:
        raise ValueError("range end must be >= start")
    return DumpRange(start, end)


def _parse_keys(spec: str) -> List[int]:
    keys: List[int] = []
    for token in spec.split(","):
        if token.strip():
            keys.append(_parse_hex(token, limit=0xF))
    return keys


def _merge_ranges(ranges: Sequence[DumpRange]) -> List[DumpRange]:
    if not ranges:
        return [DumpRange(0x000, ADDRESS_MASK)]
    ordered = sorted(ranges, key=lambda r: (r.start, r.end))
    merged: List[DumpRange] = []
    for current in ordered:
        if not merged:
            merged.append(current)
            continue
        last = merged[-1]
        if current.start <= last.end + 1:
            merged[-1] = DumpRange(last.start, max(last.end, current.end))
        else:
            merged.append(current)
    return merged


def _format_hex_dump(memory, dump_ranges: Sequence[DumpRange]) -> str:
    lines: List[str] = []
    header = "ADDR " + " ".join(f"+{offset:X}" for offset in range(16))
    for index, dump_range in enumerate(dump_ranges):
        if index:
            lines.append("")
        lines.append(header)
        start_line = dump_range.start & ~0x0F
        end_line = dump_range.end | 0x0F
        for base in range(start_line, end_line + 1, 16):
            row = [f"{base & ADDRESS_MASK:04X}"]
            for offset in range(16):
                value = memory.load_byte(base + offset) & 0xFF
                row.append(f"{value:02X}")
            lines.append(" ".join(row))
    return "\n".join(lines)


def _write_dump(memory, dump_ranges: Sequence[DumpRange], *, target: Path | None, fmt: str) -> None:
    ranges = _merge_ranges(dump_ranges)
    if fmt == "bin":
        data = bytearray()
        for dump_range in ranges:
            for address in dump_range.iter_addresses():
                data.append(memory.load_byte(address) & 0xFF)
        if target is None:
            sys.stdout.buffer.write(bytes(data))
            return
        target.write_bytes(bytes(data))
        return

    text = _format_hex_dump(memory, ranges)
    if target is None:
        print(text)
    else:
        target.write_text(text + "\n")


def _execute_program(
    computer: Chip8Computer,
    *,
    max_steps: int | None,
    breakpoints: Sequence[int],
) -> Tuple[int, bool, bool, bool]:
    """Run until a breakpoint, a key wait, or the step limit is reached."""

    remaining = max_steps
    break_set = {value & ADDRESS_MASK for value in breakpoints}
    break_hit = False
    key_wait = False
    step_hit = False
    executed_total = 0
    cpu = computer.cpu_core

    if break_set and (cpu.registers.program_counter & ADDRESS_MASK) in break_set:
        return executed_total, True, key_wait, step_hit

    while remaining is None or remaining > 0:
        chunk = EXECUTION_CHUNK if remaining is None else min(EXECUTION_CHUNK, remaining)
        for _ in range(chunk):
            computer.tick(1)
            executed_total += 1
            if remaining is not None:
                remaining -= 1
            if break_set and (cpu.registers.program_counter & ADDRESS_MASK) in break_set:
                break_hit = True
                break
            if computer.awaiting_key:
                key_wait = True
                break
        if break_hit or key_wait:
            break
        if remaining is not None and remaining <= 0:
            step_hit = True
            break

    return executed_total, break_hit, key_wait, step_hit


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chit8-debug-runner",
        description="Headless CHIP-8 runner for ROM diagnostics.",
    )
    parser.add_argument("rom", type=str, help="Path to the CHIP-8 ROM image")
    parser.add_argument(
        "--steps",
        type=int,
        default=DEFAULT_MAX_STEPS,
        help="Maximum CPU steps to execute (0 or negative disables the limit)",
    )
    parser.add_argument(
        "--break-pc",
        action="append",
        default=[],
        help="Break when PC reaches the given hex address (repeatable)",
    )
    parser.add_argument(
        "--keys",
        type=str,
        default="",
        help="Comma separated hex keys held down for the whole run (e.g. 5,A)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument("--trace", action="store_true", help="Print every executed instruction")
    parser.add_argument(
        "--screen",
        action="store_true",
        help="Print the framebuffer as text after execution",
    )
    parser.add_argument(
        "--dump",
        type=str,
        default=None,
        help="File path for memory dump (defaults to stdout)",
    )
    parser.add_argument(
        "--dump-range",
        action="append",
        default=[],
        help="Memory range to dump in START:END hex form (inclusive). Repeat to add multiple ranges.",
    )
    parser.add_argument(
        "--dump-format",
        choices=("hex", "bin"),
        default="hex",
        help="Dump format (hex table or raw binary)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(argv)

    breakpoints: List[int] = []
    for spec in args.break_pc:
        try:
            breakpoints.append(_parse_hex(spec))
        except ValueError as exc:
            parser.error(f"invalid breakpoint address '{spec}': {exc}")

    dump_ranges: List[DumpRange] = []
    for spec in args.dump_range:
        try:
            dump_ranges.append(_parse_range(spec))
        except ValueError as exc:
            parser.error(f"invalid dump range '{spec}': {exc}")

    try:
        held_keys = _parse_keys(args.keys)
    except ValueError as exc:
        parser.error(f"invalid key list '{args.keys}': {exc}")

    keypad = Keypad()
    for key in held_keys:
        keypad.press(key)
    display = FramebufferDisplay()
    computer = Chip8Computer(display=display, input_device=keypad, seed=args.seed)

    try:
        computer.load_rom(args.rom)
    except (OSError, RomLoadError) as exc:
        print(f"Failed to load ROM: {exc}", file=sys.stderr)
        return 1

    computer.cpu_core.enable_trace(args.trace)
    computer.power_on()

    step_limit = args.steps if args.steps > 0 else None
    fault: CPUFault | None = None
    try:
        _, break_hit, key_wait, step_hit = _execute_program(
            computer,
            max_steps=step_limit,
            breakpoints=breakpoints,
        )
    except CPUFault as exc:
        fault = exc
        break_hit = key_wait = step_hit = False

    dump_target = Path(args.dump) if args.dump is not None else None
    _write_dump(computer.memory, dump_ranges, target=dump_target, fmt=args.dump_format)
    if args.screen:
        print(display.render_text())

    if fault is not None:
        print(fault.dump(), file=sys.stderr)
        return 3
    if break_hit:
        return 0
    if key_wait:
        print("Execution stopped: waiting for key input", file=sys.stderr)
        return 4
    if step_hit:
        print("Execution stopped: step limit reached", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
