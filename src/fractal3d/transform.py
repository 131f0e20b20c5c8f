"""Geometric helpers shared by the scene graph and branch generation.

Fixed axis vectors, the attachment-offset and side-alternating angle rules
used when spawning child branches, and small axis-angle / matrix utilities
built on `scipy.spatial.transform.Rotation`.
"""

from __future__ import annotations

from typing import Any, Sequence

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

X_AXIS: NDArray[np.float64] = np.array([1.0, 0.0, 0.0])
Y_AXIS: NDArray[np.float64] = np.array([0.0, 1.0, 0.0])
NEG_Y_AXIS: NDArray[np.float64] = np.array([0.0, -1.0, 0.0])
Z_AXIS: NDArray[np.float64] = np.array([0.0, 0.0, 1.0])

# Default "up" of every scene object; cylinders are built along it.
UP: NDArray[np.float64] = Y_AXIS

BRANCH_ANGLE = np.pi / 3.0
ATTACHMENT_SPAN = 1.8
ATTACHMENT_START = -0.9


def attachment_offset(index: int, branch_amount: int) -> float:
    """Return the relative attachment point of child `index` along its parent.

    Offsets are evenly spread over ``[-0.9, 0.9)`` by index, i.e. 90% of the
    parent's half-length on each side of its center.

    Args:
        index: Child index in ``[0, branch_amount)``.
        branch_amount: Number of children spawned in this generation step.

    Returns:
        A fraction of the child height to translate along the parent's up axis.
    """
    return (index / branch_amount) * ATTACHMENT_SPAN + ATTACHMENT_START


def branch_angle(index: int) -> float:
    """Return the side-alternating branch angle: -60 deg for even, +60 deg for odd."""
    return -BRANCH_ANGLE if index % 2 == 0 else BRANCH_ANGLE


def axis_angle(axis: Sequence[float] | NDArray[Any], angle: float) -> Rotation:
    """Build a rotation of `angle` radians about a unit `axis`."""
    return Rotation.from_rotvec(np.asarray(axis, dtype=float) * float(angle))


def apply_axis_angle(
    vector: Sequence[float] | NDArray[Any],
    axis: Sequence[float] | NDArray[Any],
    angle: float,
) -> NDArray[np.float64]:
    """Rotate `vector` about `axis` by `angle` radians and return a new array."""
    return np.asarray(axis_angle(axis, angle).apply(np.asarray(vector, dtype=float)))


def compose_matrix(
    position: Sequence[float] | NDArray[Any], rotation: Rotation
) -> NDArray[np.float64]:
    """Compose a 4x4 homogeneous matrix ``T(position) @ R(rotation)``."""
    m = np.eye(4)
    m[:3, :3] = rotation.as_matrix()
    m[:3, 3] = np.asarray(position, dtype=float)
    return m


def transform_point(
    matrix: NDArray[Any], point: Sequence[float] | NDArray[Any]
) -> NDArray[np.float64]:
    """Apply a 4x4 homogeneous `matrix` to a 3D `point`."""
    p = np.append(np.asarray(point, dtype=float), 1.0)
    return np.asarray(matrix @ p)[:3]


def normalize(vector: Sequence[float] | NDArray[Any]) -> NDArray[np.float64]:
    """Return `vector` scaled to unit length.

    Raises:
        ValueError: If the vector has (near) zero length.
    """
    v = np.asarray(vector, dtype=float)
    mag = float(np.linalg.norm(v))
    if mag < 1e-12:
        raise ValueError("Cannot normalize a zero-length vector.")
    return v / mag
