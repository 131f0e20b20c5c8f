from __future__ import annotations

import logging

import pytest

from fractal3d.config import (
    Settings,
    _parse_log_level,
    bool_env,
    config,
    configure,
    float_env,
    int_env,
    set_log_level,
    settings,
    use,
)


@pytest.fixture(autouse=True)
def _restore_config():
    yield
    config.reset()


def test_bool_int_float_env(monkeypatch):
    monkeypatch.setenv("TBOOL", "true")
    assert bool_env("TBOOL", False) is True
    monkeypatch.setenv("TBOOL", "0")
    assert bool_env("TBOOL", True) is False
    monkeypatch.setenv("TBOOL", "maybe")
    with pytest.raises(ValueError):
        bool_env("TBOOL", True)
    monkeypatch.setenv("TINT", "42")
    assert int_env("TINT", 0) == 42
    monkeypatch.setenv("TFLOAT", "-0.25")
    assert float_env("TFLOAT", 0.0) == -0.25
    monkeypatch.delenv("TFLOAT")
    assert float_env("TFLOAT", 1.5) == 1.5


def test_env_blank_uses_default_and_bad_value_raises(monkeypatch, caplog):
    monkeypatch.setenv("TBOOL", "  ")
    assert bool_env("TBOOL", True) is True
    monkeypatch.setenv("TINT", " 7 ")
    assert int_env("TINT", 0) == 7
    monkeypatch.setenv("TFLOAT", "fast")
    with caplog.at_level(logging.ERROR, logger="fractal3d.config"):
        with pytest.raises(ValueError):
            float_env("TFLOAT", 0.0)
    assert "TFLOAT" in caplog.text


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("FRACTAL3D_BRANCH_AMOUNT", "5")
    monkeypatch.setenv("FRACTAL3D_RECURSION_DEPTH", "2")
    monkeypatch.setenv("FRACTAL3D_ROTATION_SPEED", "0.2")
    monkeypatch.setenv("FRACTAL3D_WINDOW_WIDTH", "640")
    monkeypatch.setenv("FRACTAL3D_WINDOW_HEIGHT", "480")
    monkeypatch.setenv("FRACTAL3D_OFF_SCREEN", "yes")
    s = Settings.from_env()
    assert s.branch_amount == 5
    assert s.recursion_depth == 2
    assert s.rotation_speed == 0.2
    assert s.window_size == (640, 480)
    assert s.off_screen is True
    assert s.frame_interval_ms == 16


def test_configure_replaces_fields():
    configure(branch_amount=6, off_screen=True)
    assert settings().branch_amount == 6
    assert settings().off_screen is True


def test_configure_rejects_unknown_field():
    with pytest.raises(TypeError):
        configure(colour="red")


def test_use_context_restores_settings():
    prev = settings()
    with use(recursion_depth=1) as tmp:
        assert tmp.recursion_depth == 1
        assert settings().recursion_depth == 1
    assert settings() == prev


def test_log_level_parsing():
    assert _parse_log_level("debug") == logging.DEBUG
    assert _parse_log_level(logging.ERROR) == logging.ERROR
    assert _parse_log_level("nonsense") == logging.WARNING
    assert _parse_log_level(None, default=logging.INFO) == logging.INFO

    set_log_level("INFO")
    try:
        assert logging.getLogger("fractal3d").level == logging.INFO
    finally:
        set_log_level("WARNING")
