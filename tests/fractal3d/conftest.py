from __future__ import annotations

from typing import Any, Dict, List, Tuple
from unittest.mock import MagicMock

import pytest

from fractal3d.branch import BranchNode, CylinderShape, Material
from fractal3d.fractal_tree import FractalTree
from fractal3d.parameters import FractalParameters


class RecordingSurface:
    """Stand-in render surface that counts frames instead of drawing them."""

    def __init__(self, window_size: Tuple[int, int], off_screen: bool) -> None:
        self.window_size = window_size
        self.off_screen = off_screen
        self.frames = 0
        self.shown: List[Dict[str, Any]] = []
        self.closed = False
        self.plotter = MagicMock()
        self.plotter.add_slider_widget.return_value.GetRepresentation.return_value.GetValue.return_value = 2.0

    @property
    def size(self) -> Tuple[int, int]:
        return self.window_size

    def render(self, scene, camera) -> None:
        self.frames += 1
        self.last = (scene, camera)

    def show(self, **kwargs: Any) -> None:
        self.shown.append(kwargs)

    def screenshot(self, filename: str) -> None:
        self.screenshots = getattr(self, "screenshots", []) + [filename]

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def surfaces() -> List[RecordingSurface]:
    """Every surface created by `surface_factory`, in creation order."""
    return []


@pytest.fixture
def surface_factory(surfaces):
    def factory(window_size, off_screen):
        s = RecordingSurface(window_size, off_screen)
        surfaces.append(s)
        return s

    return factory


@pytest.fixture
def tree(surface_factory) -> FractalTree:
    """Controller with an 800x600 recording surface, not yet initialized."""
    return FractalTree(window_size=(800, 600), surface_factory=surface_factory)


@pytest.fixture
def trunk() -> BranchNode:
    """A detached trunk with the default dimensions."""
    shape = CylinderShape(radius_top=0.04, radius_bottom=0.04, height=5.0)
    return BranchNode(shape, Material(), name="trunk")


@pytest.fixture
def params() -> FractalParameters:
    return FractalParameters(branch_amount=2, recursion_depth=1, rotation_speed=0.1)
