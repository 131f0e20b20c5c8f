"""Module defining the control parameters of the fractal tree.

`FractalParameters` is the explicit value passed into every generation,
rotation and reset call. `UIValues` produces it from the live controls: each
read queries the control on demand, except for rotation speed, where an
explicitly cached value takes precedence over the live control.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Any, Callable, Mapping, Optional

_LOGGER = logging.getLogger(__name__)

BRANCH_AMOUNT = "branch_amount"
RECURSION_DEPTH = "recursion_depth"
ROTATION_SPEED = "rotation_speed"


@dataclass(frozen=True)
class FractalParameters:
    """Settings for one generation, reset or animation step.

    Attributes:
        branch_amount (int): Children spawned per generation step.
        recursion_depth (int): Generation levels beyond the trunk.
        rotation_speed (float): Signed rotation applied per frame, in radians.

    Notes:
        - A zero branch amount yields a bare trunk; it is not an error.
        - A recursion depth of zero also yields a bare trunk, since the trunk
          is generated with ``recursion_depth - 1``.
    """

    branch_amount: int = 3
    recursion_depth: int = 4
    rotation_speed: float = 0.01


def _as_float(name: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        _LOGGER.error("Control %s has non-numeric value %r", name, value)
        raise ValueError(f"{name} must be numeric; got {value!r}") from None
    if not math.isfinite(result):
        _LOGGER.error("Control %s has non-finite value %r", name, value)
        raise ValueError(f"{name} must be finite; got {value!r}")
    return result


def _as_int(name: str, value: Any) -> int:
    return int(round(_as_float(name, value)))


class UIValues:
    """Read the current control values on demand.

    Args:
        readers: Mapping from ``"branch_amount"``, ``"recursion_depth"`` and
            ``"rotation_speed"`` to zero-argument callables returning the live
            control value (number or numeric string).
    """

    def __init__(self, readers: Mapping[str, Callable[[], Any]]) -> None:
        missing = {BRANCH_AMOUNT, RECURSION_DEPTH, ROTATION_SPEED} - set(readers)
        if missing:
            raise ValueError(f"Missing control readers: {sorted(missing)}")
        self._readers = dict(readers)
        self._rotation_speed: Optional[float] = None

    @classmethod
    def from_parameters(cls, params: FractalParameters) -> UIValues:
        """Build a value source whose controls are fixed to `params`."""
        return cls(
            {
                BRANCH_AMOUNT: lambda: params.branch_amount,
                RECURSION_DEPTH: lambda: params.recursion_depth,
                ROTATION_SPEED: lambda: params.rotation_speed,
            }
        )

    @property
    def branch_amount(self) -> int:
        return _as_int(BRANCH_AMOUNT, self._readers[BRANCH_AMOUNT]())

    @property
    def recursion_depth(self) -> int:
        return _as_int(RECURSION_DEPTH, self._readers[RECURSION_DEPTH]())

    @property
    def rotation_speed(self) -> float:
        """Cached override if one was set, otherwise the live control value."""
        if self._rotation_speed is not None:
            return self._rotation_speed
        return _as_float(ROTATION_SPEED, self._readers[ROTATION_SPEED]())

    @rotation_speed.setter
    def rotation_speed(self, speed: Any) -> None:
        self._rotation_speed = _as_float(ROTATION_SPEED, speed)
        _LOGGER.info("Rotation speed set to %g", self._rotation_speed)

    def snapshot(self) -> FractalParameters:
        """Read every control once and return the values as parameters."""
        return FractalParameters(
            branch_amount=self.branch_amount,
            recursion_depth=self.recursion_depth,
            rotation_speed=self.rotation_speed,
        )
