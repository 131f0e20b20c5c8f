"""Grow a tree without opening a window and export it for ParaView."""

from fractal3d import BranchNode, CylinderShape, Material, save_skeleton, save_surface

trunk = BranchNode(CylinderShape(0.04, 0.04, 5.0), Material(), name="trunk")
trunk.generate(branch_amount=3, remaining_depth=3)
print(f"{trunk.count_nodes()} branches")

# grow the first child once more, as a click on it would
trunk.children[0].generate(branch_amount=3, remaining_depth=1)
print(f"{trunk.count_nodes()} branches after regrowth")

save_surface(trunk, "tree_surface.vtu")
save_skeleton(trunk, "tree_skeleton.vtu")
