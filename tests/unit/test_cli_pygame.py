"""pygame dependent tests for the chit8 front end."""

import json

import pytest

pygame = pytest.importorskip("pygame")

from chit8 import app


def test_run_with_unknown_key_name_reports_keymap_error(tmp_path, monkeypatch, capsys):
    monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
    monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
    rom = tmp_path / "test.ch8"
    rom.write_bytes(bytes([0x12, 0x00]))
    keymap = tmp_path / "keys.json"
    keymap.write_text(json.dumps({"1": "notakey"}), encoding="utf-8")

    assert app.main([str(rom), "--run", "--keymap", str(keymap)]) == 1
    err = capsys.readouterr().err
    assert "Failed to load keymap" in err
    assert "notakey" in err
