"""The fractal3d package draws an interactive, recursively generated 3D tree.

This package offers:
  - Recursive branch generation on a small scene graph.
  - Per-frame alternating rotation of every branch.
  - Click picking that regrows the branches under the cursor.
  - A pyvista window with sliders for the generation controls.

Submodules:
  - transform: Axis constants and branch placement math.
  - scene: Object3D, PointLight, PerspectiveCamera, Scene and Raycaster.
  - branch: BranchNode and its cylinder geometry.
  - parameters: FractalParameters and the UIValues control reader.
  - fractal_tree: FractalTree scene controller.
  - renderer: PyVistaRenderer render surface.
  - app: FractalApp event layer.
  - export: Tree surface/skeleton export via meshio.

Classes:
  BranchNode, FractalApp, FractalParameters, FractalTree, PyVistaRenderer,
  UIValues
"""

from .config import (
    config,
    configure,
    settings,
    use,
    set_log_level,
)

from fractal3d.branch import BranchNode, CylinderShape, Material
from fractal3d.parameters import FractalParameters, UIValues
from fractal3d.scene import (
    Object3D,
    PerspectiveCamera,
    PointLight,
    Raycaster,
    Scene,
    SurfaceBounds,
    to_ndc,
)
from fractal3d.fractal_tree import FractalTree, SceneState
from fractal3d.renderer import PyVistaRenderer
from fractal3d.app import FractalApp
from fractal3d.export import save_skeleton, save_surface, tree_skeleton, tree_surface

__all__ = [
    # Core classes
    "BranchNode",
    "CylinderShape",
    "Material",
    "FractalParameters",
    "UIValues",
    "FractalTree",
    "SceneState",
    "FractalApp",
    "PyVistaRenderer",
    # Scene graph
    "Object3D",
    "PerspectiveCamera",
    "PointLight",
    "Raycaster",
    "Scene",
    "SurfaceBounds",
    "to_ndc",
    # Export
    "save_skeleton",
    "save_surface",
    "tree_skeleton",
    "tree_surface",
    # Configuration
    "config",
    "configure",
    "settings",
    "use",
    "set_log_level",
]
