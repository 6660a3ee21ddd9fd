"""Hexadecimal keypad models consumed by the CHIP-8 CPU."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import random
from typing import Dict, Iterable, List, Mapping, Optional, Protocol

KEY_COUNT = 16

# Conventional layout: the left-hand 4x4 block of a QWERTY keyboard.
DEFAULT_KEYMAP: Dict[str, str] = {
    "1": "1",
    "2": "2",
    "3": "3",
    "C": "4",
    "4": "q",
    "5": "w",
    "6": "e",
    "D": "r",
    "7": "a",
    "8": "s",
    "9": "d",
    "E": "f",
    "A": "z",
    "0": "x",
    "B": "c",
    "F": "v",
}


class Input(Protocol):
    """Capability returning the pressed state of the sixteen keys 0-F."""

    def get_key_states(self) -> List[bool]:
        ...


def _check_key(key: int) -> int:
    if not (0 <= key < KEY_COUNT):
        raise ValueError("key must be in range 0x0-0xF")
    return key


@dataclass
class Keypad:
    """Keypad whose state is driven explicitly through press/release."""

    _keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)

    def press(self, key: int) -> None:
        self._keys[_check_key(key)] = True

    def release(self, key: int) -> None:
        self._keys[_check_key(key)] = False

    def is_pressed(self, key: int) -> bool:
        return self._keys[_check_key(key)]

    def set_key_states(self, states: Iterable[bool]) -> None:
        values = [bool(value) for value in states]
        if len(values) != KEY_COUNT:
            raise ValueError("key state snapshot must have 16 entries")
        self._keys = values

    def get_key_states(self) -> List[bool]:
        return list(self._keys)

    def clear(self) -> None:
        self._keys = [False] * KEY_COUNT


class RandomInput:
    """Reports every key as randomly pressed or released on each poll."""

    def __init__(self, rng: Optional[random.Random] = None, *, seed: Optional[int] = None) -> None:
        self.rng = rng if rng is not None else random.Random(seed)

    def get_key_states(self) -> List[bool]:
        return [self.rng.random() < 0.5 for _ in range(KEY_COUNT)]


def parse_keymap(data: Mapping[str, object]) -> Dict[int, str]:
    """Validate a ``{"<hex key>": "<pygame key name>"}`` mapping."""

    mapping: Dict[int, str] = {}
    for raw_key, raw_name in data.items():
        try:
            key = int(str(raw_key), 16)
        except ValueError as exc:
            raise ValueError(f"invalid CHIP-8 key: {raw_key!r}") from exc
        _check_key(key)
        if not isinstance(raw_name, str) or not raw_name:
            raise ValueError(f"key {raw_key!r} must map to a pygame key name")
        mapping[key] = raw_name.lower()
    return mapping


def load_keymap(path: str | Path) -> Dict[int, str]:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("keymap file must contain a JSON object")
    return parse_keymap(data)


def write_keymap_template(path: Path) -> None:
    path.write_text(json.dumps(DEFAULT_KEYMAP, indent=2), encoding="utf-8")


class PygameKeypad(Keypad):
    """Keypad fed from pygame KEYDOWN/KEYUP events."""

    def __init__(self, keymap: Optional[Mapping[int, str]] = None) -> None:
        super().__init__()
        names = dict(keymap) if keymap is not None else parse_keymap(DEFAULT_KEYMAP)
        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for PygameKeypad") from exc
        self._bindings: Dict[int, int] = {}
        for key, name in names.items():
            try:
                code = pygame.key.key_code(name)
            except ValueError as exc:
                raise ValueError(f"unknown pygame key name {name!r}") from exc
            self._bindings[code] = _check_key(key)

    @property
    def bindings(self) -> Dict[int, int]:
        return dict(self._bindings)

    def handle_event(self, event: object) -> bool:
        """Apply a pygame event; return True when it touched a mapped key."""

        import pygame  # type: ignore

        event_type = getattr(event, "type", None)
        if event_type not in (pygame.KEYDOWN, pygame.KEYUP):
            return False
        key = self._bindings.get(getattr(event, "key", None))
        if key is None:
            return False
        if event_type == pygame.KEYDOWN:
            self.press(key)
        else:
            self.release(key)
        return True


__all__ = [
    "DEFAULT_KEYMAP",
    "Input",
    "KEY_COUNT",
    "Keypad",
    "PygameKeypad",
    "RandomInput",
    "load_keymap",
    "parse_keymap",
    "write_keymap_template",
]
