"""pygame dependent tests for FramebufferDisplay."""

import pytest

pygame = pytest.importorskip("pygame")

from chit8.chip8.display import HEIGHT, WIDTH, FramebufferDisplay


def test_render_pygame_surface_scaling_two():
    display = FramebufferDisplay(foreground=0x123456, background=0x000000)
    display.draw_sprite(0, 0, [0x80])

    surface = display.render_pygame_surface(scaling=2)

    assert surface.get_width() == WIDTH * 2
    assert surface.get_height() == HEIGHT * 2
    assert tuple(surface.get_at((1, 1)))[:3] == (0x12, 0x34, 0x56)
    assert tuple(surface.get_at((2, 0)))[:3] == (0, 0, 0)
    assert display.dirty is False


def test_render_pygame_surface_rejects_zero_scale():
    with pytest.raises(ValueError):
        FramebufferDisplay().render_pygame_surface(scaling=0)
