"""Event layer of the interactive fractal tree.

FractalApp connects pyvista widgets and interactor events to the FractalTree
controller:

  - branch-amount / recursion-depth sliders -> `FractalTree.reset_geometry`
  - rotation-speed slider -> cached rotation speed in `UIValues`
  - left click on the render window -> `FractalTree.regrow_at`
  - repeating timer -> `FractalApp.tick` -> `FractalTree.animate`

Every handler reads the controls once and passes the resulting
`FractalParameters` to the controller.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import vtk

from .config import Settings, settings as active_settings
from .fractal_tree import FractalTree, RenderSurface, SceneState
from .parameters import (
    BRANCH_AMOUNT,
    RECURSION_DEPTH,
    ROTATION_SPEED,
    UIValues,
)
from .branch import BranchNode
from .scene import SurfaceBounds, to_ndc

_LOGGER = logging.getLogger(__name__)

# name -> (title, (min, max), format)
SLIDERS: Dict[str, Tuple[str, Tuple[float, float], str]] = {
    BRANCH_AMOUNT: ("Branches", (1.0, 6.0), "%.0f"),
    RECURSION_DEPTH: ("Depth", (0.0, 6.0), "%.0f"),
    ROTATION_SPEED: ("Rotation speed", (-0.1, 0.1), "%.3f"),
}

_SLIDER_ROWS = {BRANCH_AMOUNT: 0.92, RECURSION_DEPTH: 0.80, ROTATION_SPEED: 0.68}

# Effectively unbounded; the timer runs for the lifetime of the window.
MAX_FRAMES = 2**31 - 1


class FractalApp:
    """Interactive application around a FractalTree.

    Attributes:
        settings (Settings): Window and initial control values.
        tree (FractalTree): Scene controller.
        values (UIValues): Live control reader.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        surface_factory: Optional[Callable[[Tuple[int, int], bool], RenderSurface]] = None,
    ) -> None:
        self.settings = settings or active_settings()
        self.tree = FractalTree(
            window_size=self.settings.window_size,
            off_screen=self.settings.off_screen,
            surface_factory=surface_factory,
        )
        self._initial: Dict[str, Any] = {
            BRANCH_AMOUNT: self.settings.branch_amount,
            RECURSION_DEPTH: self.settings.recursion_depth,
            ROTATION_SPEED: self.settings.rotation_speed,
        }
        self._sliders: Dict[str, vtk.vtkSliderWidget] = {}
        # pyvista fires each slider callback once on creation; not user input.
        self._wiring = False
        self.values = UIValues(
            {name: self._control_reader(name) for name in self._initial}
        )

    def _control_reader(self, name: str) -> Callable[[], Any]:
        def read() -> Any:
            slider = self._sliders.get(name)
            if slider is None:
                return self._initial[name]
            return slider.GetRepresentation().GetValue()

        return read

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------
    def on_control_changed(self, _value: Any = None) -> None:
        """Branch amount or recursion depth changed: rebuild the tree."""
        if self._wiring:
            return
        params = self.values.snapshot()
        _LOGGER.info(
            "Controls changed: branch_amount=%d recursion_depth=%d",
            params.branch_amount,
            params.recursion_depth,
        )
        self.tree.reset_geometry(params)

    def on_rotation_speed_changed(self, value: Any) -> None:
        """Cache the new rotation speed for the following frames."""
        if self._wiring:
            return
        self.values.rotation_speed = value

    def on_click(
        self, client_x: float, client_y: float, bounds: SurfaceBounds
    ) -> List[BranchNode]:
        """Regrow the branches under a click given in client coordinates."""
        ndc = to_ndc(client_x, client_y, bounds)
        return self.tree.regrow_at(ndc, self.values.snapshot())

    def tick(self, _step: Optional[int] = None) -> None:
        """Advance the animation by one frame."""
        self.tree.animate(self.values.snapshot())

    def run_frames(self, frames: int) -> None:
        """Run `frames` animation ticks back to back."""
        for _ in range(frames):
            self.tick()

    # ------------------------------------------------------------------
    # pyvista wiring
    # ------------------------------------------------------------------
    def _on_left_button(self, _obj: Any, _event: str) -> None:
        plotter = self.tree.renderer.plotter  # type: ignore[union-attr]
        x, y = plotter.iren.get_event_position()
        width, height = self.tree.renderer.size  # type: ignore[union-attr]
        # VTK display coordinates start at the bottom-left corner.
        self.on_click(x, height - y, SurfaceBounds(0.0, 0.0, width, height))

    def _add_controls(self, plotter: Any) -> None:
        handlers = {
            BRANCH_AMOUNT: self.on_control_changed,
            RECURSION_DEPTH: self.on_control_changed,
            ROTATION_SPEED: self.on_rotation_speed_changed,
        }
        self._wiring = True
        try:
            for name, (title, rng, fmt) in SLIDERS.items():
                row = _SLIDER_ROWS[name]
                self._sliders[name] = plotter.add_slider_widget(
                    handlers[name],
                    rng,
                    value=float(self._initial[name]),
                    title=title,
                    pointa=(0.70, row),
                    pointb=(0.97, row),
                    style="modern",
                    fmt=fmt,
                    interaction_event="end",
                )
        finally:
            self._wiring = False

    def start(self, frames: int = 0) -> None:
        """Build the scene and run it.

        In a window, sliders, click picking and the animation timer are wired
        up and the call blocks until the window closes. Off screen, `frames`
        ticks are rendered and the call returns.
        """
        if self.tree.state is SceneState.EMPTY:
            self.tree.initialize(self.values.snapshot())
        renderer: Any = self.tree.renderer

        if self.settings.off_screen:
            renderer.show(auto_close=False)
            self.run_frames(frames)
            return

        plotter = renderer.plotter
        self._add_controls(plotter)
        plotter.iren.add_observer("LeftButtonPressEvent", self._on_left_button)
        plotter.add_timer_event(
            max_steps=frames or MAX_FRAMES,
            duration=self.settings.frame_interval_ms,
            callback=self.tick,
        )
        _LOGGER.info("Starting interactive window")
        renderer.show()

    def close(self) -> None:
        self.tree.close()
