"""Module defining the pyvista render surface.

`PyVistaRenderer` wraps a `pyvista.Plotter`. Scene-graph meshes are mapped to
actors that share the cached local surface; each frame only updates the
actors' user matrices with the current world transforms.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import pyvista as pv

from .scene import Object3D, PerspectiveCamera, PointLight, Scene

_LOGGER = logging.getLogger(__name__)


class PyVistaRenderer:
    """Render surface backed by a pyvista plotter.

    Attributes:
        plotter (pv.Plotter): Underlying plotter (window, interactor, actors).
    """

    def __init__(
        self,
        window_size: Tuple[int, int] = (1024, 768),
        off_screen: bool = False,
        plotter: Optional[pv.Plotter] = None,
    ) -> None:
        """Create the plotter sized to `window_size`.

        Args:
            window_size: ``(width, height)`` in pixels.
            off_screen: Render without opening a window.
            plotter: Optional pre-built plotter (e.g. a Qt interactor).
        """
        if plotter is None:
            plotter = pv.Plotter(
                window_size=list(window_size), off_screen=off_screen, lighting="none"
            )
        self.plotter = plotter
        self._actors: Dict[int, Tuple[Object3D, Any]] = {}
        self._lights: Dict[int, pv.Light] = {}
        _LOGGER.info(
            "Render surface created (size=%s, off_screen=%s)", window_size, off_screen
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Current ``(width, height)`` of the render window."""
        w, h = self.plotter.window_size
        return int(w), int(h)

    def _sync_camera(self, camera: PerspectiveCamera) -> None:
        cam = self.plotter.camera
        cam.position = tuple(camera.position)
        cam.focal_point = tuple(camera.target)
        cam.up = tuple(camera.up)
        cam.view_angle = camera.fov
        cam.clipping_range = (camera.near, camera.far)

    def _sync_light(self, light: PointLight) -> None:
        pv_light = self._lights.get(id(light))
        if pv_light is None:
            pv_light = pv.Light(light_type="scene light")
            pv_light.positional = True
            pv_light.cone_angle = 180.0
            self.plotter.add_light(pv_light)
            self._lights[id(light)] = pv_light
        pv_light.position = tuple(light.world_matrix()[:3, 3])
        pv_light.diffuse_color = light.color
        pv_light.intensity = light.intensity

    def _sync_meshes(self, scene: Scene) -> None:
        seen = set()
        for obj in scene.meshes():
            key = id(obj)
            seen.add(key)
            entry = self._actors.get(key)
            if entry is None:
                actor = self.plotter.add_mesh(
                    obj.geometry,  # type: ignore[attr-defined]
                    color=obj.material.color,  # type: ignore[attr-defined]
                    opacity=obj.material.opacity,  # type: ignore[attr-defined]
                    specular=0.0,
                    smooth_shading=False,
                    reset_camera=False,
                    render=False,
                )
                self._actors[key] = (obj, actor)
            else:
                actor = entry[1]
            actor.user_matrix = obj.world_matrix()

        for key in [k for k in self._actors if k not in seen]:
            _obj, actor = self._actors.pop(key)
            self.plotter.remove_actor(actor, render=False)

    def render(self, scene: Scene, camera: PerspectiveCamera) -> None:
        """Draw one frame of `scene` as seen by `camera`."""
        self.plotter.background_color = scene.background
        for obj in scene.traverse():
            if isinstance(obj, PointLight):
                self._sync_light(obj)
        self._sync_meshes(scene)
        self._sync_camera(camera)
        self.plotter.render()

    def show(self, **kwargs: Any) -> Any:
        """Start the window (blocking unless off-screen or ``interactive_update``).

        pyvista only draws frames after the first `show`; earlier calls to
        `render` update actors but do not draw.
        """
        return self.plotter.show(**kwargs)

    @property
    def actor_count(self) -> int:
        """Number of mesh actors currently on the plotter."""
        return len(self._actors)

    def screenshot(self, filename: str) -> None:
        """Save the last rendered frame to an image file."""
        self.plotter.screenshot(filename)
        _LOGGER.info("Screenshot written to '%s'", filename)

    def close(self) -> None:
        """Release the window and every actor."""
        self._actors.clear()
        self._lights.clear()
        self.plotter.close()
