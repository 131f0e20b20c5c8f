"""Export a grown tree to mesh files.

Two views of a tree are available: its closed triangle surface (one cylinder
per branch, in world coordinates) and its skeleton (one line segment per
branch, from base to tip). Both are written with meshio, so the output format
follows the file extension (``.vtu``, ``.vtk``, ``.obj``, ``.stl``, ...).
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

import meshio
import numpy as np
from numpy.typing import NDArray

from .branch import BranchNode
from .transform import transform_point

_LOGGER = logging.getLogger(__name__)


def tree_surface(root: BranchNode) -> Tuple[NDArray[np.float64], NDArray[np.int64], NDArray[np.int64]]:
    """Collect the world-space surface of every branch below `root`.

    Returns:
        ``(points, triangles, branch_ids)``: stacked vertices (n, 3), triangle
        connectivity (m, 3) and, per triangle, the depth-first index of the
        branch it belongs to.
    """
    points: List[NDArray[Any]] = []
    triangles: List[NDArray[Any]] = []
    branch_ids: List[NDArray[Any]] = []
    offset = 0
    for idx, branch in enumerate(root.iter_branches()):
        surface = branch.world_geometry()
        tris = np.asarray(surface.faces, dtype=np.int64).reshape(-1, 4)[:, 1:]
        points.append(np.asarray(surface.points, dtype=float))
        triangles.append(tris + offset)
        branch_ids.append(np.full(tris.shape[0], idx, dtype=np.int64))
        offset += surface.n_points
    return np.vstack(points), np.vstack(triangles), np.concatenate(branch_ids)


def tree_skeleton(root: BranchNode) -> Tuple[NDArray[np.float64], NDArray[np.int64]]:
    """Return ``(points, lines)``: base and tip of each branch, one line per branch."""
    points: List[NDArray[Any]] = []
    lines: List[List[int]] = []
    for branch in root.iter_branches():
        half = branch.shape.height / 2.0
        m = branch.world_matrix()
        base = transform_point(m, (0.0, -half, 0.0))
        tip = transform_point(m, (0.0, half, 0.0))
        n = len(points)
        points.extend([base, tip])
        lines.append([n, n + 1])
    return np.asarray(points, dtype=float), np.asarray(lines, dtype=np.int64)


def save_surface(root: Optional[BranchNode], filename: str) -> None:
    """Write the tree surface (triangles) to `filename`.

    Raises:
        ValueError: If `root` is None.
        Exception: If the underlying mesh writer fails.
    """
    if root is None:
        _LOGGER.error("save_surface: no tree to export.")
        raise ValueError("Cannot save: no tree in the scene.")

    pts, tris, ids = tree_surface(root)
    try:
        m = meshio.Mesh(
            points=pts, cells=[("triangle", tris)], cell_data={"branch": [ids]}
        )
        m.write(filename)
        _LOGGER.info(
            "save_surface: wrote '%s' (points=%d, triangles=%d).",
            filename,
            pts.shape[0],
            tris.shape[0],
        )
    except Exception:
        _LOGGER.exception("save_surface: failed to write '%s'.", filename)
        raise


def save_skeleton(root: Optional[BranchNode], filename: str) -> None:
    """Write the tree skeleton (line segments) to `filename`.

    Raises:
        ValueError: If `root` is None.
        Exception: If the underlying mesh writer fails.
    """
    if root is None:
        _LOGGER.error("save_skeleton: no tree to export.")
        raise ValueError("Cannot save: no tree in the scene.")

    pts, lines = tree_skeleton(root)
    try:
        m = meshio.Mesh(points=pts, cells=[("line", lines)])
        m.write(filename)
        _LOGGER.info(
            "save_skeleton: wrote '%s' (points=%d, segments=%d).",
            filename,
            pts.shape[0],
            lines.shape[0],
        )
    except Exception:
        _LOGGER.exception("save_skeleton: failed to write '%s'.", filename)
        raise
