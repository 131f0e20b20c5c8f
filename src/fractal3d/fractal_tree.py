"""Module defining the FractalTree class, the scene controller.

FractalTree owns the render surface, camera, light and the trunk branch. It
builds and rebuilds the recursive tree, applies the per-frame rotation and
regrows branches hit by a click ray. All operations take an explicit
`FractalParameters` value read by the caller from the controls.
"""

from __future__ import annotations

from enum import Enum
import logging
from typing import Any, Callable, List, Optional, Protocol, Sequence, Tuple

from .branch import BranchNode, CylinderShape, Material
from .parameters import FractalParameters
from .scene import Object3D, PerspectiveCamera, PointLight, Raycaster, Scene
from .transform import NEG_Y_AXIS, Y_AXIS

_LOGGER = logging.getLogger(__name__)


class RenderSurface(Protocol):
    """What the controller needs from a render surface."""

    @property
    def size(self) -> Tuple[int, int]: ...

    def render(self, scene: Scene, camera: PerspectiveCamera) -> None: ...


class SceneState(Enum):
    """Lifecycle of the scene: no tree yet, or trunk plus subtree present."""

    EMPTY = "empty"
    POPULATED = "populated"


def _default_surface(window_size: Tuple[int, int], off_screen: bool) -> RenderSurface:
    from .renderer import PyVistaRenderer

    return PyVistaRenderer(window_size=window_size, off_screen=off_screen)


class FractalTree:
    """Interactive 3D fractal tree scene.

    Attributes:
        renderer (RenderSurface): Output surface, created by `initialize`.
        camera (PerspectiveCamera): Viewpoint, created by `initialize`.
        scene (Scene): Scene root holding the light and the trunk.
        material (Material): Appearance shared by every branch.
        state (SceneState): EMPTY before `initialize`, POPULATED after.
    """

    INITIAL_HEIGHT = 5.0
    INITIAL_RADIUS = 0.04
    TRUNK_SEGMENTS = 8

    CAMERA_FOV = 90.0
    CAMERA_NEAR = 0.1
    CAMERA_FAR = 100.0
    CAMERA_Z = 3.5

    LIGHT_COLOR = "#ffff00"
    LIGHT_POSITION = (2.0, 2.0, 5.0)
    BACKGROUND = "#ffffff"
    BRANCH_COLOR = "#00ff00"

    def __init__(
        self,
        window_size: Tuple[int, int] = (1024, 768),
        off_screen: bool = False,
        surface_factory: Optional[Callable[[Tuple[int, int], bool], RenderSurface]] = None,
    ) -> None:
        """Prepare an empty controller; nothing is built until `initialize`.

        Args:
            window_size: ``(width, height)`` of the render surface.
            off_screen: Render without opening a window.
            surface_factory: Builds the render surface from ``(window_size,
                off_screen)``; defaults to a pyvista plotter.
        """
        self.window_size = window_size
        self.off_screen = off_screen
        self._surface_factory = surface_factory or _default_surface
        self.renderer: Optional[RenderSurface] = None
        self.camera: Optional[PerspectiveCamera] = None
        self.scene = Scene(background=self.BACKGROUND)
        self.material = Material(color=self.BRANCH_COLOR)
        self.state = SceneState.EMPTY

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def initialize(self, params: FractalParameters) -> None:
        """Create surface, camera and light, then grow the first tree."""
        if self.state is SceneState.POPULATED:
            raise RuntimeError("FractalTree is already initialized.")

        self.renderer = self._surface_factory(self.window_size, self.off_screen)

        self.camera = PerspectiveCamera(
            self.CAMERA_FOV, self.aspect_ratio, self.CAMERA_NEAR, self.CAMERA_FAR
        )
        self.camera.position[2] = self.CAMERA_Z
        self.camera.look_at((0.0, 0.0, 0.0))

        self.scene.background = self.BACKGROUND
        self.scene.add(PointLight(self.LIGHT_COLOR, self.LIGHT_POSITION))

        self.create_trunk_with_branches(params)
        self.state = SceneState.POPULATED
        _LOGGER.info(
            "FractalTree initialized (aspect=%.3f, nodes=%d)",
            self.camera.aspect,
            self.node_count,
        )

    def _require_populated(self, operation: str) -> None:
        if self.state is not SceneState.POPULATED:
            _LOGGER.error("%s called before initialize()", operation)
            raise RuntimeError(f"{operation}: scene is not initialized.")

    @property
    def aspect_ratio(self) -> float:
        if self.renderer is None:
            raise RuntimeError("aspect_ratio: render surface not created.")
        width, height = self.renderer.size
        return width / height

    @property
    def trunk(self) -> Optional[BranchNode]:
        """The top-level branch, if the scene has one."""
        found = self.scene.first_mesh()
        return found if isinstance(found, BranchNode) else None

    @property
    def node_count(self) -> int:
        trunk = self.trunk
        return 0 if trunk is None else trunk.count_nodes()

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------
    def create_trunk_with_branches(self, params: FractalParameters) -> BranchNode:
        """Add a fresh trunk to the scene and grow its branches."""
        shape = CylinderShape(
            radius_top=self.INITIAL_RADIUS,
            radius_bottom=self.INITIAL_RADIUS,
            height=self.INITIAL_HEIGHT,
            radial_segments=self.TRUNK_SEGMENTS,
        )
        trunk = BranchNode(shape, self.material, name="trunk")
        self.scene.add(trunk)

        trunk.generate(params.branch_amount, params.recursion_depth - 1)
        _LOGGER.info(
            "Trunk grown (branch_amount=%d, recursion_depth=%d, nodes=%d)",
            params.branch_amount,
            params.recursion_depth,
            trunk.count_nodes(),
        )
        return trunk

    def reset_geometry(self, params: FractalParameters) -> BranchNode:
        """Replace the current trunk and its subtree with a freshly grown one."""
        self._require_populated("reset_geometry")

        trunk = self.scene.first_mesh()
        if trunk is not None and trunk.parent is not None:
            trunk.parent.remove(trunk)
            _LOGGER.debug("Removed previous trunk %r", trunk)
        else:
            _LOGGER.warning("reset_geometry: no trunk found in the scene.")

        return self.create_trunk_with_branches(params)

    # ------------------------------------------------------------------
    # Animation
    # ------------------------------------------------------------------
    def apply_rotation(self, parent: Object3D, speed: float) -> None:
        """Rotate every mesh below `parent`, children's subtrees first.

        Children at even indices turn about +Y, odd ones about -Y. Indices
        count every child, including non-mesh ones such as lights, which are
        otherwise skipped.
        """
        for i, child in enumerate(parent.children):
            if not child.is_mesh:
                continue
            self.apply_rotation(child, speed)
            child.rotate_on_axis(Y_AXIS if i % 2 == 0 else NEG_Y_AXIS, speed)

    def animate(self, params: FractalParameters) -> None:
        """Advance the rotation by one frame and draw it."""
        self._require_populated("animate")
        self.apply_rotation(self.scene, params.rotation_speed)
        self.render()

    def render(self) -> None:
        """Draw the current scene with the current camera."""
        self._require_populated("render")
        assert self.renderer is not None and self.camera is not None
        self.renderer.render(self.scene, self.camera)

    # ------------------------------------------------------------------
    # Picking
    # ------------------------------------------------------------------
    def intersect(self, ndc: Sequence[float]) -> List[BranchNode]:
        """Return the branches hit by the camera ray through `ndc`, nearest first."""
        self._require_populated("intersect")
        assert self.camera is not None
        raycaster = Raycaster()
        raycaster.set_from_camera(ndc, self.camera)
        hits = raycaster.intersect_objects(self.scene.children, recursive=True)
        return [h.object for h in hits if isinstance(h.object, BranchNode)]

    def regrow_at(self, ndc: Sequence[float], params: FractalParameters) -> List[BranchNode]:
        """Grow every branch under the click ray, then redraw without rotating.

        Args:
            ndc: Click position in normalized device coordinates.
            params: Current control values.

        Returns:
            The branches that were regrown.
        """
        self._require_populated("regrow_at")
        hit_nodes = self.intersect(ndc)
        for node in hit_nodes:
            node.generate(params.branch_amount, params.recursion_depth - 1)
        _LOGGER.info(
            "Click at ndc=(%.3f, %.3f) regrew %d branch(es); nodes=%d",
            float(ndc[0]),
            float(ndc[1]),
            len(hit_nodes),
            self.node_count,
        )
        self.render()
        return hit_nodes

    def close(self) -> None:
        """Release the render surface, if it supports closing."""
        closer: Any = getattr(self.renderer, "close", None)
        if callable(closer):
            closer()
