from __future__ import annotations

from typing import List

import numpy as np
import pytest
from numpy.testing import assert_allclose

from fractal3d.branch import BranchNode
from fractal3d.fractal_tree import FractalTree, SceneState
from fractal3d.parameters import FractalParameters
from fractal3d.scene import Object3D, PointLight
from fractal3d.transform import NEG_Y_AXIS, Y_AXIS, axis_angle


# -------------------------
# Lifecycle
# -------------------------


def test_initialize_builds_camera_light_and_trunk(tree, surfaces, params):
    assert tree.state is SceneState.EMPTY
    tree.initialize(params)

    assert tree.state is SceneState.POPULATED
    assert len(surfaces) == 1
    assert surfaces[0].window_size == (800, 600)

    cam = tree.camera
    assert cam.fov == 90.0
    assert cam.aspect == pytest.approx(800 / 600)
    assert (cam.near, cam.far) == (0.1, 100.0)
    assert_allclose(cam.position, [0.0, 0.0, 3.5])
    assert_allclose(cam.target, [0.0, 0.0, 0.0])

    light, trunk = tree.scene.children
    assert isinstance(light, PointLight)
    assert_allclose(light.position, [2.0, 2.0, 5.0])
    assert trunk is tree.trunk
    assert trunk.shape.height == 5.0
    assert trunk.shape.radius_top == 0.04
    assert trunk.shape.radial_segments == 8
    assert tree.scene.background == "#ffffff"
    assert trunk.material.color == "#00ff00"


def test_initialize_twice_raises(tree, params):
    tree.initialize(params)
    with pytest.raises(RuntimeError):
        tree.initialize(params)


@pytest.mark.parametrize(
    "call",
    [
        lambda t, p: t.reset_geometry(p),
        lambda t, p: t.animate(p),
        lambda t, p: t.render(),
        lambda t, p: t.regrow_at((0.0, 0.0), p),
    ],
)
def test_operations_require_initialize(tree, params, call):
    with pytest.raises(RuntimeError):
        call(tree, params)


# -------------------------
# Generation scenarios
# -------------------------


def test_two_branches_depth_one_gives_leaf_children(tree):
    # trunk.generate(2, 0) spawns two children and calls them with -1
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=1))
    trunk = tree.trunk
    assert len(trunk.children) == 2
    for child in trunk.children:
        assert child.children == []
    assert tree.node_count == 3


@pytest.mark.parametrize(
    "branch_amount, depth, expected",
    [(2, 2, 7), (3, 2, 13), (2, 3, 15), (1, 4, 5)],
)
def test_node_count_is_geometric_in_depth(tree, branch_amount, depth, expected):
    tree.initialize(FractalParameters(branch_amount=branch_amount, recursion_depth=depth))
    assert tree.node_count == expected


def test_depth_zero_leaves_bare_trunk(tree):
    tree.initialize(FractalParameters(branch_amount=3, recursion_depth=0))
    assert tree.trunk.children == []
    assert tree.node_count == 1


def _shapes(trunk: BranchNode):
    return [(n.shape, len(n.children)) for n in trunk.iter_branches()]


def test_reset_geometry_yields_fresh_equal_tree(tree, params):
    tree.initialize(params)
    old = tree.trunk
    old_ids = {id(n) for n in old.iter_branches()}

    new = tree.reset_geometry(params)

    assert new is tree.trunk
    assert new is not old
    assert old.parent is None
    assert _shapes(new) == _shapes(old)
    assert not old_ids & {id(n) for n in new.iter_branches()}

    meshes = [c for c in tree.scene.children if c.is_mesh]
    assert meshes == [new]
    assert isinstance(tree.scene.children[0], PointLight)


def test_reset_geometry_uses_new_parameters(tree, params):
    tree.initialize(params)
    tree.reset_geometry(FractalParameters(branch_amount=3, recursion_depth=2))
    assert len(tree.trunk.children) == 3
    assert tree.node_count == 1 + 3 + 9
    assert sum(1 for c in tree.scene.children if c.is_mesh) == 1


# -------------------------
# Rotation
# -------------------------


def _leafy_tree(tree: FractalTree) -> BranchNode:
    """Trunk with exactly two leaf children."""
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=0))
    trunk = tree.trunk
    trunk.generate(2, 0)
    return trunk


def test_apply_rotation_alternates_axis(tree):
    trunk = _leafy_tree(tree)
    first, second = trunk.children
    before = [n.rotation for n in (trunk, first, second)]

    tree.apply_rotation(tree.scene, 0.1)

    # trunk sits at index 1 of the scene, after the light
    assert_allclose(
        trunk.rotation.as_matrix(),
        (before[0] * axis_angle(NEG_Y_AXIS, 0.1)).as_matrix(),
        atol=1e-12,
    )
    assert_allclose(
        first.rotation.as_matrix(),
        (before[1] * axis_angle(Y_AXIS, 0.1)).as_matrix(),
        atol=1e-12,
    )
    assert_allclose(
        second.rotation.as_matrix(),
        (before[2] * axis_angle(NEG_Y_AXIS, 0.1)).as_matrix(),
        atol=1e-12,
    )


def test_apply_rotation_skips_lights(tree, params):
    tree.initialize(params)
    light = tree.scene.children[0]
    tree.apply_rotation(tree.scene, 0.5)
    assert_allclose(light.rotation.as_matrix(), np.eye(3))
    assert_allclose(light.position, [2.0, 2.0, 5.0])


def test_apply_rotation_is_post_order(tree, monkeypatch):
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=1))
    trunk = tree.trunk
    (c0, c1) = trunk.children
    order: List[BranchNode] = []
    original = Object3D.rotate_on_axis

    def recording(self, axis, angle):
        order.append(self)
        return original(self, axis, angle)

    monkeypatch.setattr(BranchNode, "rotate_on_axis", recording)
    tree.apply_rotation(tree.scene, 0.05)

    assert order == [*c0.children, c0, *c1.children, c1, trunk]


def test_animate_rotates_and_renders(tree, surfaces, params):
    tree.initialize(params)
    trunk = tree.trunk
    frames = surfaces[0].frames

    tree.animate(params)

    assert surfaces[0].frames == frames + 1
    assert_allclose(
        trunk.rotation.as_matrix(), axis_angle(NEG_Y_AXIS, 0.1).as_matrix(), atol=1e-12
    )


def test_zero_speed_keeps_orientation(tree):
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=1, rotation_speed=0.0))
    before = [n.rotation.as_matrix() for n in tree.trunk.iter_branches()]
    tree.animate(FractalParameters(branch_amount=2, recursion_depth=1, rotation_speed=0.0))
    after = [n.rotation.as_matrix() for n in tree.trunk.iter_branches()]
    assert_allclose(np.array(after), np.array(before), atol=1e-12)


# -------------------------
# Click regrowth
# -------------------------


def test_regrow_at_center_grows_trunk(tree, surfaces):
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=0))
    frames = surfaces[0].frames

    hit = tree.regrow_at((0.002, 0.0), FractalParameters(branch_amount=2, recursion_depth=1))

    trunk = tree.trunk
    assert hit == [trunk]
    assert len(trunk.children) == 2
    assert surfaces[0].frames == frames + 1
    # no animation step on click
    assert_allclose(trunk.rotation.as_matrix(), np.eye(3))


def test_regrow_at_miss_only_renders(tree, surfaces):
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=0))
    hit = tree.regrow_at((0.9, 0.9), FractalParameters(branch_amount=2, recursion_depth=3))
    assert hit == []
    assert tree.node_count == 1
    assert surfaces[0].frames == 1


def test_regrow_at_grows_every_hit_node(tree):
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=0))
    trunk = tree.trunk
    behind = BranchNode(trunk.child_shape(), trunk.material)
    behind.position = np.array([0.0, 0.0, -1.0])
    trunk.add(behind)

    hit = tree.regrow_at((0.002, 0.0), FractalParameters(branch_amount=2, recursion_depth=1))

    assert hit == [trunk, behind]
    assert len(trunk.children) == 3
    assert len(behind.children) == 2


def test_regrow_is_additive_on_repeat(tree):
    tree.initialize(FractalParameters(branch_amount=2, recursion_depth=0))
    params = FractalParameters(branch_amount=2, recursion_depth=1)
    first = tree.regrow_at((0.002, 0.0), params)
    assert first == [tree.trunk]
    assert len(tree.trunk.children) == 2

    tree.regrow_at((0.002, 0.0), params)
    assert len(tree.trunk.children) == 4


def test_close_releases_surface(tree, surfaces, params):
    tree.initialize(params)
    tree.close()
    assert surfaces[0].closed
