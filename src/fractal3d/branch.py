"""Module defining the BranchNode class for recursive fractal tree growth.

A BranchNode is one cylindrical segment of the tree. It owns its children and
knows how to spawn them: each generation step halves the height, shrinks the
radius by 20%, spreads attachment points along the parent and alternates the
branching side.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
from typing import Iterator, Optional

import numpy as np
import pyvista as pv

from .scene import Object3D
from .transform import Z_AXIS, apply_axis_angle, attachment_offset, branch_angle

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CylinderShape:
    """Solid-of-revolution descriptor, centered on the origin along +Y.

    Attributes:
        radius_top (float): Radius at ``y = +height / 2``.
        radius_bottom (float): Radius at ``y = -height / 2``.
        height (float): Length along the local up axis.
        radial_segments (int): Number of facets around the axis.
    """

    radius_top: float
    radius_bottom: float
    height: float
    radial_segments: int = 8


@dataclass(frozen=True)
class Material:
    """Surface appearance shared by every branch of a tree."""

    color: str = "#00ff00"
    opacity: float = 1.0


@lru_cache(maxsize=64)
def cylinder_surface(shape: CylinderShape) -> pv.PolyData:
    """Triangulated closed surface for `shape`, in the shape's local frame.

    Results are cached per shape and shared between branches; callers must
    not modify the returned mesh in place.
    """
    n = int(shape.radial_segments)
    if n < 3:
        raise ValueError(f"radial_segments must be >= 3; got {n}")

    theta = 2.0 * np.pi * np.arange(n) / n
    half = shape.height / 2.0
    top = np.column_stack(
        [shape.radius_top * np.sin(theta), np.full(n, half), shape.radius_top * np.cos(theta)]
    )
    bottom = np.column_stack(
        [
            shape.radius_bottom * np.sin(theta),
            np.full(n, -half),
            shape.radius_bottom * np.cos(theta),
        ]
    )
    points = np.vstack([top, bottom, [[0.0, half, 0.0]], [[0.0, -half, 0.0]]])

    k = np.arange(n)
    k1 = (k + 1) % n
    tris = np.vstack(
        [
            np.column_stack([k, k + n, k1]),
            np.column_stack([k1 + n, k1, k + n]),
            np.column_stack([np.full(n, 2 * n), k, k1]),
            np.column_stack([np.full(n, 2 * n + 1), k1 + n, k + n]),
        ]
    )
    faces = np.hstack([np.full((tris.shape[0], 1), 3), tris]).ravel()
    return pv.PolyData(points, faces)


class BranchNode(Object3D):
    """A cylindrical tree segment with recursively generated children.

    Attributes:
        shape (CylinderShape): Dimensions of this segment.
        material (Material): Appearance, shared with the parent.
    """

    type = "Mesh"
    is_mesh = True

    HEIGHT_FACTOR = 0.5
    RADIUS_FACTOR = 0.8
    RADIAL_SEGMENTS = 10

    def __init__(
        self, shape: CylinderShape, material: Material, name: Optional[str] = None
    ) -> None:
        super().__init__(name=name)
        self.shape = shape
        self.material = material

    @property
    def geometry(self) -> pv.PolyData:
        """Local-frame surface of this branch (shared, read-only)."""
        return cylinder_surface(self.shape)

    def world_geometry(self) -> pv.PolyData:
        """Return a copy of the surface transformed into world coordinates."""
        return self.geometry.transform(self.world_matrix(), inplace=False)

    def child_shape(self) -> CylinderShape:
        """Shape of the children spawned by this node."""
        radius = self.shape.radius_top * self.RADIUS_FACTOR
        return CylinderShape(
            radius_top=radius,
            radius_bottom=radius,
            height=self.shape.height * self.HEIGHT_FACTOR,
            radial_segments=self.RADIAL_SEGMENTS,
        )

    def generate(self, branch_amount: int, remaining_depth: int) -> None:
        """Spawn `branch_amount` children, then recurse into every child.

        The call is additive: existing children are kept and are recursed into
        together with the new ones, so calling it twice on the same node grows
        the subtree twice.

        Args:
            branch_amount: Number of children created at this node.
            remaining_depth: Generation levels left; negative stops recursion.
        """
        if remaining_depth < 0:
            return

        shape = self.child_shape()
        height = shape.height
        for i in range(branch_amount):
            offset = attachment_offset(i, branch_amount)
            angle = branch_angle(i)

            # Attachment point on the parent's centerline.
            vec = self.up.copy()
            branch = BranchNode(shape, self.material)
            branch.translate_on_axis(vec, height * offset)

            # Push the child out so that its base sits on the attachment point.
            vec = apply_axis_angle(vec, Z_AXIS, angle)
            branch.translate_on_axis(vec, height / 2.0)
            branch.rotate_on_axis(Z_AXIS, angle)
            self.add(branch)

        _LOGGER.debug(
            "Generated %d branch(es) (h=%.4g, r=%.4g) at depth %d; children now %d",
            max(branch_amount, 0),
            shape.height,
            shape.radius_top,
            remaining_depth,
            len(self.children),
        )

        for child in list(self.children):
            if isinstance(child, BranchNode):
                child.generate(branch_amount, remaining_depth - 1)

    def branches(self) -> Iterator[BranchNode]:
        """Yield the direct children that are branches, in insertion order."""
        return (c for c in self.children if isinstance(c, BranchNode))

    def iter_branches(self) -> Iterator[BranchNode]:
        """Yield this node and every descendant branch, depth-first."""
        yield self
        for child in self.branches():
            yield from child.iter_branches()

    def count_nodes(self) -> int:
        """Return the number of branches in this subtree, this node included."""
        return 1 + sum(child.count_nodes() for child in self.branches())
