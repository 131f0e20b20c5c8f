"""Global configuration for fractal3d.

This module provides a package-wide configuration surface for the interactive
fractal tree: default control values, window geometry and off-screen
rendering. Defaults come from ``FRACTAL3D_*`` environment variables and can be
overridden programmatically, either permanently (`configure`) or within a
context manager (`use`). It also owns the package log level.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import contextlib
import logging
import os
from typing import Any, Callable, ContextManager, Iterator, Tuple, TypeVar


# -----------------------------------------------------------------------------
# Logging
# -----------------------------------------------------------------------------
_LOGGER = logging.getLogger("fractal3d.config")
_PACKAGE_LOGGER = logging.getLogger("fractal3d")

T = TypeVar("T")


def _parse_log_level(val: str | int | None, default: int = logging.WARNING) -> int:
    """Map ``FRACTAL3D_LOGLEVEL``-style input to a `logging` level.

    Level names are case-insensitive ("debug", " Info "); integers pass
    through unchanged. Unknown names and None fall back to `default`.
    """
    if val is None:
        return default
    if isinstance(val, int):
        return val
    lvl = getattr(logging, str(val).strip().upper(), None)
    return lvl if isinstance(lvl, int) else default


def set_log_level(level: str | int = "WARNING") -> None:
    """Set the level of the ``fractal3d`` logger and all module loggers below it."""
    _PACKAGE_LOGGER.setLevel(_parse_log_level(level))


set_log_level(os.getenv("FRACTAL3D_LOGLEVEL", "WARNING"))


# -----------------------------------------------------------------------------
# Env helpers
# -----------------------------------------------------------------------------
_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"0", "false", "no", "off"})


def _env(varname: str, default: T, parse: Callable[[str], T]) -> T:
    raw = os.getenv(varname)
    if raw is None or not raw.strip():
        return default
    try:
        return parse(raw.strip())
    except ValueError:
        _LOGGER.error("Cannot parse %s=%r", varname, raw)
        raise


def _parse_bool(raw: str) -> bool:
    val = raw.lower()
    if val in _TRUTHY:
        return True
    if val in _FALSY:
        return False
    raise ValueError(f"invalid truth value {raw!r}")


def bool_env(varname: str, default: bool) -> bool:
    """Read a switch such as ``FRACTAL3D_OFF_SCREEN``.

    Accepts 1/0, true/false, yes/no, on/off in any case. An unset or blank
    variable yields `default`; anything else raises ValueError.
    """
    return _env(varname, default, _parse_bool)


def int_env(varname: str, default: int) -> int:
    """Read an integer setting (control values, window size, timer interval)."""
    return _env(varname, default, int)


def float_env(varname: str, default: float) -> float:
    """Read a float setting such as the rotation speed."""
    return _env(varname, default, float)


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Settings:
    """Snapshot of the tunable defaults used by the app and the CLI.

    Attributes:
        branch_amount: Initial value of the branch-amount control.
        recursion_depth: Initial value of the recursion-depth control.
        rotation_speed: Initial value of the rotation-speed control (rad/frame).
        window_size: Render window size in pixels, ``(width, height)``.
        off_screen: Render without opening a window.
        frame_interval_ms: Delay between animation ticks.
    """

    branch_amount: int = 3
    recursion_depth: int = 4
    rotation_speed: float = 0.01
    window_size: Tuple[int, int] = (1024, 768)
    off_screen: bool = False
    frame_interval_ms: int = 16

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``FRACTAL3D_*`` environment variables."""
        base = cls()
        settings = cls(
            branch_amount=int_env("FRACTAL3D_BRANCH_AMOUNT", base.branch_amount),
            recursion_depth=int_env("FRACTAL3D_RECURSION_DEPTH", base.recursion_depth),
            rotation_speed=float_env("FRACTAL3D_ROTATION_SPEED", base.rotation_speed),
            window_size=(
                int_env("FRACTAL3D_WINDOW_WIDTH", base.window_size[0]),
                int_env("FRACTAL3D_WINDOW_HEIGHT", base.window_size[1]),
            ),
            off_screen=bool_env("FRACTAL3D_OFF_SCREEN", base.off_screen),
            frame_interval_ms=int_env(
                "FRACTAL3D_FRAME_INTERVAL_MS", base.frame_interval_ms
            ),
        )
        _LOGGER.debug("Settings from env: %s", settings)
        return settings


# -----------------------------------------------------------------------------
# Config singleton
# -----------------------------------------------------------------------------
class Config:
    """Global configuration holder.

    Wraps an immutable `Settings` snapshot so that overrides are applied by
    replacing the whole snapshot, and `use` can restore it on exit.
    """

    def __init__(self) -> None:
        """Initialize config using environment defaults."""
        self._settings: Settings = Settings.from_env()
        _LOGGER.info("Config initialized: %s", self._settings)

    @property
    def settings(self) -> Settings:
        """Return the active settings snapshot."""
        return self._settings

    def configure(self, **overrides: Any) -> Config:
        """Replace selected settings.

        Args:
            **overrides: Field names of `Settings` with their new values.

        Returns:
            The `Config` instance (for chaining).

        Raises:
            TypeError: If an override names an unknown setting.
        """
        _LOGGER.info("Reconfiguring: %s", overrides)
        self._settings = replace(self._settings, **overrides)
        return self

    @contextlib.contextmanager
    def use(self, **overrides: Any) -> Iterator[Settings]:
        """Temporarily override settings within a context manager.

        Yields:
            The temporary settings. Restores the previous ones on exit.
        """
        prev = self._settings
        try:
            self.configure(**overrides)
            yield self._settings
        finally:
            self._settings = prev
            _LOGGER.info("Restored previous settings: %s", self._settings)

    def reset(self) -> None:
        """Reload settings from the environment."""
        self._settings = Settings.from_env()


# Singleton & forwards
config = Config()


def settings() -> Settings:
    """Return the active settings snapshot (module-level)."""
    return config.settings


def configure(**overrides: Any) -> Config:
    """Replace selected settings (module-level)."""
    return config.configure(**overrides)


def use(**overrides: Any) -> ContextManager[Settings]:
    """Temporarily override settings within a context manager (module-level)."""
    return config.use(**overrides)
