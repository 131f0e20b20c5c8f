"""Command-line entry point: ``python -m fractal3d`` or ``fractal3d``."""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional

from .app import FractalApp
from .config import configure, set_log_level, settings
from .export import save_skeleton, save_surface

_LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = settings()
    parser = argparse.ArgumentParser(
        prog="fractal3d",
        description="Interactive, recursively generated 3D fractal tree.",
    )
    parser.add_argument("--branch-amount", type=int, default=defaults.branch_amount,
                        help="children spawned per generation step")
    parser.add_argument("--recursion-depth", type=int, default=defaults.recursion_depth,
                        help="generation levels beyond the trunk")
    parser.add_argument("--rotation-speed", type=float, default=defaults.rotation_speed,
                        help="rotation per frame in radians")
    parser.add_argument("--width", type=int, default=defaults.window_size[0])
    parser.add_argument("--height", type=int, default=defaults.window_size[1])
    parser.add_argument("--off-screen", action="store_true", default=defaults.off_screen,
                        help="render without opening a window")
    parser.add_argument("--frames", type=int, default=0,
                        help="number of animation frames (0 = run until closed)")
    parser.add_argument("--screenshot", metavar="PATH",
                        help="save the last frame (requires --off-screen)")
    parser.add_argument("--export-surface", metavar="PATH",
                        help="write the tree surface with meshio")
    parser.add_argument("--export-skeleton", metavar="PATH",
                        help="write the tree skeleton with meshio")
    parser.add_argument("--log-level", default=None,
                        help="DEBUG, INFO, WARNING, ...")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    if args.log_level:
        set_log_level(args.log_level)

    if args.screenshot and not args.off_screen:
        _LOGGER.warning("--screenshot is only honoured with --off-screen; ignoring.")

    configure(
        branch_amount=args.branch_amount,
        recursion_depth=args.recursion_depth,
        rotation_speed=args.rotation_speed,
        window_size=(args.width, args.height),
        off_screen=args.off_screen,
    )

    app = FractalApp()
    try:
        app.start(frames=args.frames)
        if args.off_screen and args.screenshot:
            app.tree.renderer.screenshot(args.screenshot)  # type: ignore[union-attr]
        if args.export_surface:
            save_surface(app.tree.trunk, args.export_surface)
        if args.export_skeleton:
            save_skeleton(app.tree.trunk, args.export_skeleton)
    finally:
        app.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
