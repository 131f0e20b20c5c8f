"""Minimal scene graph used by the fractal tree.

Objects carry a local transform (position + rotation) relative to their parent
and an ordered list of children. World matrices are composed on demand and
handed to the renderer; the ray caster uses them to place each mesh surface
in world space before intersecting it.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.spatial.transform import Rotation

from .transform import UP, axis_angle, compose_matrix, normalize

_LOGGER = logging.getLogger(__name__)


class Object3D:
    """Base scene node with a local transform and ordered children.

    Attributes:
        name (Optional[str]): Optional label, used in logs only.
        position (NDArray[np.float64]): Translation relative to the parent.
        rotation (Rotation): Orientation relative to the parent.
        up (NDArray[np.float64]): Default up axis (+Y), never rotated.
        children (List[Object3D]): Owned children in insertion order.
        parent (Optional[Object3D]): Owning node, if attached.
    """

    type = "Object3D"
    is_mesh = False

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name
        self.position: NDArray[np.float64] = np.zeros(3)
        self.rotation: Rotation = Rotation.identity()
        self.up: NDArray[np.float64] = UP.copy()
        self.children: List[Object3D] = []
        self.parent: Optional[Object3D] = None

    def add(self, obj: Object3D) -> Object3D:
        """Append `obj` as the last child, detaching it from any previous parent."""
        if obj is self:
            raise ValueError("An object cannot be added as a child of itself.")
        if obj.parent is not None:
            obj.parent.remove(obj)
        obj.parent = self
        self.children.append(obj)
        return self

    def remove(self, obj: Object3D) -> Object3D:
        """Detach a direct child; objects that are not children are ignored."""
        for i, child in enumerate(self.children):
            if child is obj:
                del self.children[i]
                obj.parent = None
                break
        return self

    def translate_on_axis(self, axis: Sequence[float] | NDArray[Any], distance: float) -> Object3D:
        """Move along `axis` expressed in this object's local frame."""
        self.position = self.position + self.rotation.apply(np.asarray(axis, dtype=float)) * float(distance)
        return self

    def rotate_on_axis(self, axis: Sequence[float] | NDArray[Any], angle: float) -> Object3D:
        """Rotate by `angle` radians about `axis` expressed in the local frame."""
        self.rotation = self.rotation * axis_angle(axis, angle)
        return self

    def matrix(self) -> NDArray[np.float64]:
        """Return the local 4x4 transform."""
        return compose_matrix(self.position, self.rotation)

    def world_matrix(self) -> NDArray[np.float64]:
        """Return the 4x4 transform from local to world coordinates."""
        m = self.matrix()
        node = self.parent
        while node is not None:
            m = node.matrix() @ m
            node = node.parent
        return m

    def traverse(self) -> Iterator[Object3D]:
        """Yield this object and its descendants, depth-first, pre-order."""
        yield self
        for child in self.children:
            yield from child.traverse()

    def find_first(self, predicate: Callable[[Object3D], bool]) -> Optional[Object3D]:
        """Return the first object in `traverse` order matching `predicate`."""
        for obj in self.traverse():
            if predicate(obj):
                return obj
        return None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, children={len(self.children)})"


class PointLight(Object3D):
    """Omnidirectional light placed in the scene graph."""

    type = "PointLight"

    def __init__(
        self,
        color: str = "#ffff00",
        position: Sequence[float] = (2.0, 2.0, 5.0),
        intensity: float = 1.0,
    ) -> None:
        super().__init__(name="light")
        self.color = color
        self.intensity = intensity
        self.position = np.asarray(position, dtype=float)


class Scene(Object3D):
    """Root of the scene graph."""

    type = "Scene"

    def __init__(self, background: str = "#ffffff") -> None:
        super().__init__(name="scene")
        self.background = background

    def first_mesh(self) -> Optional[Object3D]:
        """Return the first mesh object in depth-first order, if any."""
        return self.find_first(lambda obj: obj.is_mesh)

    def meshes(self) -> Iterator[Object3D]:
        """Yield every mesh object in the scene."""
        return (obj for obj in self.traverse() if obj.is_mesh)


class PerspectiveCamera:
    """Pinhole camera described by field of view, aspect and clip planes.

    Attributes:
        fov (float): Vertical field of view in degrees.
        aspect (float): Width / height of the render surface.
        near (float): Near clip distance.
        far (float): Far clip distance.
        position (NDArray[np.float64]): Eye position in world space.
        target (NDArray[np.float64]): Point the camera looks at.
        up (NDArray[np.float64]): Approximate view-up direction.
    """

    def __init__(
        self,
        fov: float = 90.0,
        aspect: float = 1.0,
        near: float = 0.1,
        far: float = 100.0,
    ) -> None:
        self.fov = float(fov)
        self.aspect = float(aspect)
        self.near = float(near)
        self.far = float(far)
        self.position: NDArray[np.float64] = np.zeros(3)
        self.target: NDArray[np.float64] = np.array([0.0, 0.0, -1.0])
        self.up: NDArray[np.float64] = UP.copy()

    def look_at(self, target: Sequence[float]) -> None:
        """Point the camera at `target` (world coordinates)."""
        self.target = np.asarray(target, dtype=float)

    def basis(self) -> Tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.float64]]:
        """Return the orthonormal ``(right, up, forward)`` camera frame."""
        forward = normalize(self.target - self.position)
        right = normalize(np.cross(forward, self.up))
        true_up = np.cross(right, forward)
        return right, true_up, forward

    def ray(self, ndc: Sequence[float]) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Return ``(origin, direction)`` of the ray through normalized device coordinates.

        Args:
            ndc: ``(x, y)`` in ``[-1, 1]``; ``(0, 0)`` is the center of the view
                and ``+y`` points up.
        """
        right, true_up, forward = self.basis()
        tan_half = np.tan(np.radians(self.fov) / 2.0)
        x, y = float(ndc[0]), float(ndc[1])
        direction = forward + x * tan_half * self.aspect * right + y * tan_half * true_up
        return self.position.copy(), normalize(direction)


@dataclass(frozen=True)
class SurfaceBounds:
    """Bounding box of the render surface in client (top-left origin) pixels."""

    left: float
    top: float
    width: float
    height: float


def to_ndc(client_x: float, client_y: float, bounds: SurfaceBounds) -> Tuple[float, float]:
    """Normalize a client-space click to device coordinates in ``[-1, 1]``.

    Client ``y`` grows downwards; device ``y`` grows upwards.
    """
    x = ((client_x - bounds.left) / bounds.width) * 2.0 - 1.0
    y = -((client_y - bounds.top) / bounds.height) * 2.0 + 1.0
    return x, y


@dataclass
class Intersection:
    """A ray hit on a mesh object."""

    distance: float
    point: NDArray[np.float64]
    object: Object3D


class Raycaster:
    """Cast rays against mesh objects and report every hit in depth order."""

    def __init__(
        self,
        origin: Optional[Sequence[float]] = None,
        direction: Optional[Sequence[float]] = None,
        near: float = 0.0,
        far: float = np.inf,
    ) -> None:
        self.origin = np.zeros(3) if origin is None else np.asarray(origin, dtype=float)
        self.direction = (
            np.array([0.0, 0.0, -1.0]) if direction is None else normalize(direction)
        )
        self.near = float(near)
        self.far = float(far)

    def set_from_camera(self, ndc: Sequence[float], camera: PerspectiveCamera) -> None:
        """Aim the ray from `camera` through normalized device coordinates `ndc`."""
        self.origin, self.direction = camera.ray(ndc)
        self.near = camera.near
        self.far = camera.far

    def intersect_object(self, obj: Object3D) -> Optional[Intersection]:
        """Return the nearest hit on a single mesh object, or None."""
        if not obj.is_mesh:
            return None
        surface = obj.world_geometry()  # type: ignore[attr-defined]
        reach = self.far if np.isfinite(self.far) else 1e6
        end_point = self.origin + self.direction * reach
        points, _cells = surface.ray_trace(self.origin, end_point, first_point=False)
        points = np.asarray(points, dtype=float).reshape(-1, 3)
        if points.shape[0] == 0:
            return None

        distances = np.linalg.norm(points - self.origin, axis=1)
        mask = (distances >= self.near) & (distances <= self.far)
        if not np.any(mask):
            return None
        k = int(np.argmin(np.where(mask, distances, np.inf)))
        return Intersection(distance=float(distances[k]), point=points[k], object=obj)

    def intersect_objects(
        self, objects: Iterable[Object3D], recursive: bool = True
    ) -> List[Intersection]:
        """Intersect the ray with `objects` (and their descendants).

        Returns:
            One intersection per hit mesh object, sorted by distance.
        """
        hits: List[Intersection] = []
        for root in objects:
            candidates = root.traverse() if recursive else iter([root])
            for obj in candidates:
                hit = self.intersect_object(obj)
                if hit is not None:
                    hits.append(hit)
        hits.sort(key=lambda h: h.distance)
        _LOGGER.debug(
            "Ray from %s dir %s: %d hit(s)",
            self.origin.tolist(),
            self.direction.tolist(),
            len(hits),
        )
        return hits
