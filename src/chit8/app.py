"""CHIT8 command line entry point: disassemble or run a CHIP-8 ROM."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
import sys
from typing import Dict, Iterable, Optional, TextIO

from chit8.chip8.computer import Chip8Computer
from chit8.chip8.display import HEIGHT, WIDTH, FramebufferDisplay
from chit8.cpu.cpu import CPUFault
from chit8.disassembler import Disassembler
from chit8.emulator.file import Rom, RomLoadError, load_rom
from chit8.io.keypad import PygameKeypad, load_keymap, write_keymap_template
from chit8.memory import Memory

VERSION = "0.1.0"
BASE_CAPTION = "CHIT8"
ENV_TRACE = "CHIT8_TRACE"

DEFAULT_SCALE = 10
DEFAULT_FPS = 60
DEFAULT_STEPS_PER_FRAME = 10


def usage(stream: Optional[TextIO] = None) -> None:
    out = stream if stream is not None else sys.stdout
    print(f"CHIT8 emulator / disassembler {VERSION}", file=out)
    print("=====================================", file=out)
    print("Usage: chit8 <path-to-rom> [--run]", file=out)


def disassemble_rom(rom: Rom, stream: Optional[TextIO] = None) -> None:
    Disassembler(Memory.from_rom(rom)).print_listing(rom.length, stream=stream)


def _trace_requested() -> bool:
    return os.getenv(ENV_TRACE) not in (None, "", "0")


def _pygame_loop(
    rom: Rom,
    *,
    scale: int,
    fps: int,
    steps_per_frame: int,
    seed: Optional[int] = None,
    keymap: Optional[Dict[int, str]] = None,
) -> int:
    import pygame  # type: ignore

    pygame.init()
    try:
        try:
            keypad = PygameKeypad(keymap)
        except ValueError as exc:
            print(f"Failed to load keymap: {exc}", file=sys.stderr)
            return 1
        display = FramebufferDisplay()
        computer = Chip8Computer(display=display, input_device=keypad, seed=seed)
        computer.cpu_core.enable_trace(_trace_requested())
        computer.load_rom(rom)
        computer.power_on()

        screen = pygame.display.set_mode((WIDTH * scale, HEIGHT * scale))
        caption = f"{BASE_CAPTION} | {rom.filename}"
        pygame.display.set_caption(caption)
        clock = pygame.time.Clock()

        running = True
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    continue
                if event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
                    running = False
                    continue
                if event.type == pygame.KEYDOWN and event.key == pygame.K_p:
                    if computer.get_running_status() == computer.STATUS_PAUSED:
                        computer.resume()
                        pygame.display.set_caption(caption)
                    else:
                        computer.pause()
                        pygame.display.set_caption(f"{caption} | Paused")
                    continue
                keypad.handle_event(event)

            try:
                computer.tick(steps_per_frame)
            except CPUFault as exc:
                print(exc.dump(), file=sys.stderr)
                return 2

            if display.dirty:
                screen.blit(display.render_pygame_surface(scale), (0, 0))
                pygame.display.flip()
            clock.tick(fps)
    finally:
        pygame.quit()
    return 0


def _build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chit8",
        description="CHIP-8 emulator / disassembler",
    )
    parser.add_argument("rom", nargs="?", default=None, help="Path to the CHIP-8 ROM image")
    parser.add_argument("--run", action="store_true", help="Emulate the ROM in a pygame window instead of disassembling it")
    parser.add_argument("--scale", type=int, default=DEFAULT_SCALE, help=f"Integer scaling factor for display (default: {DEFAULT_SCALE})")
    parser.add_argument("--fps", type=int, default=DEFAULT_FPS, help="Target frames per second for the emulation loop")
    parser.add_argument(
        "--steps-per-frame",
        type=int,
        default=DEFAULT_STEPS_PER_FRAME,
        help="CPU steps executed per frame; timers tick once per step",
    )
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument("--keymap", type=str, default=None, help="Path to JSON file mapping CHIP-8 keys to pygame key names")
    parser.add_argument(
        "--write-keymap-template",
        metavar="PATH",
        help="Write the default JSON keymap to the given path and exit",
    )
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_argument_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.write_keymap_template:
        write_keymap_template(Path(args.write_keymap_template))
        return 0

    if args.rom is None or not Path(args.rom).is_file():
        usage()
        return 0

    if args.scale <= 0:
        parser.error("scale must be positive")
    if args.fps <= 0:
        parser.error("fps must be positive")
    if args.steps_per_frame <= 0:
        parser.error("steps-per-frame must be positive")

    keymap: Optional[Dict[int, str]] = None
    if args.keymap:
        try:
            keymap = load_keymap(args.keymap)
        except (OSError, ValueError) as exc:
            print(f"Failed to load keymap: {exc}", file=sys.stderr)
            return 1

    try:
        rom = load_rom(args.rom)
    except RomLoadError as exc:
        print(f"ROM loading error: {exc}", file=sys.stderr)
        return 1

    print(f"ROM loaded: {rom}")

    if not args.run:
        disassemble_rom(rom)
        return 0

    try:
        return _pygame_loop(
            rom,
            scale=args.scale,
            fps=args.fps,
            steps_per_frame=args.steps_per_frame,
            seed=args.seed,
            keymap=keymap,
        )
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
