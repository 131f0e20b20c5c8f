from __future__ import annotations

import os

import pytest


def _render_available() -> bool:
    raw = os.getenv("FRACTAL3D_RENDER_TESTS", "").strip().lower()
    return raw in {"1", "true", "y", "yes", "on"}


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Auto-skip tests marked 'render' unless off-screen rendering is enabled."""
    if _render_available():
        return
    skip_marker = pytest.mark.skip(
        reason="Off-screen rendering disabled (set FRACTAL3D_RENDER_TESTS=1)."
    )
    for item in items:
        if "render" in item.keywords:
            item.add_marker(skip_marker)
