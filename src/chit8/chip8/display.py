"""CHIP-8 display models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Protocol, Sequence

WIDTH = 64
HEIGHT = 32
SPRITE_WIDTH = 8
MAX_SPRITE_ROWS = 15


class Display(Protocol):
    """Sink for the clear and sprite draw requests issued by the CPU."""

    def clear(self) -> None:
        ...

    def draw_sprite(self, x: int, y: int, sprite: Sequence[int]) -> bool:
        """XOR ``sprite`` at (x, y); return True if any lit pixel was erased."""
        ...


def _check_sprite(sprite: Sequence[int]) -> None:
    if len(sprite) > MAX_SPRITE_ROWS:
        raise ValueError("sprites are at most 15 bytes tall")


class NullDisplay:
    """Display that accepts draw requests and renders nothing."""

    def clear(self) -> None:
        return

    def draw_sprite(self, x: int, y: int, sprite: Sequence[int]) -> bool:
        _check_sprite(sprite)
        return False


@dataclass
class FramebufferDisplay:
    """Monochrome 64x32 framebuffer.

    The sprite origin wraps around the screen; rows and columns that then
    run past the right or bottom edge are clipped.
    """

    foreground: int = 0xFFFFFF
    background: int = 0x000000
    pixels: List[List[int]] = field(default_factory=lambda: [[0] * WIDTH for _ in range(HEIGHT)])
    dirty: bool = True

    def clear(self) -> None:
        self.pixels = [[0] * WIDTH for _ in range(HEIGHT)]
        self.dirty = True

    def draw_sprite(self, x: int, y: int, sprite: Sequence[int]) -> bool:
        _check_sprite(sprite)
        origin_x = x % WIDTH
        origin_y = y % HEIGHT
        erased = False
        for row, value in enumerate(sprite):
            py = origin_y + row
            if py >= HEIGHT:
                break
            for bit in range(SPRITE_WIDTH):
                px = origin_x + bit
                if px >= WIDTH:
                    break
                if not (value >> (7 - bit)) & 0x01:
                    continue
                if self.pixels[py][px]:
                    erased = True
                self.pixels[py][px] ^= 1
        self.dirty = True
        return erased

    def pixel(self, x: int, y: int) -> int:
        if not (0 <= x < WIDTH and 0 <= y < HEIGHT):
            raise ValueError("pixel coordinates out of range")
        return self.pixels[y][x]

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_pixels(self) -> List[List[int]]:
        colors = (self.background, self.foreground)
        return [[colors[value] for value in row] for row in self.pixels]

    def render_text(self, on: str = "#", off: str = ".") -> str:
        return "\n".join("".join(on if value else off for value in row) for row in self.pixels)

    def render_pygame_surface(self, scaling: int = 1):
        """Render the framebuffer into a pygame Surface.

        Parameters
        ----------
        scaling:
            Integer scale factor applied to both axes.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((WIDTH * scaling, HEIGHT * scaling))
        pixels = self.render_pixels()
        surface.lock()
        try:
            if scaling == 1:
                pxarray = pygame.PixelArray(surface)
                for y, row in enumerate(pixels):
                    for x, color in enumerate(row):
                        pxarray[x, y] = color
                del pxarray
            else:
                for y, row in enumerate(pixels):
                    for x, color in enumerate(row):
                        surface.fill(color, (x * scaling, y * scaling, scaling, scaling))
        finally:
            surface.unlock()
        self.dirty = False
        return surface


__all__ = [
    "Display",
    "FramebufferDisplay",
    "HEIGHT",
    "MAX_SPRITE_ROWS",
    "NullDisplay",
    "WIDTH",
]
