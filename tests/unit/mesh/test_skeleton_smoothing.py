"""
Unit tests for quadratic skeleton subdivision.
"""

import numpy as np
import pytest

from arbor.core import TreeNode, TreeStructure
from arbor.ops.smoothing import quadratic_bezier, subdivide_tree


def make_straight_chain():
    grandchild = TreeNode(position=(0.0, 2.0, 0.0), width=0.05)
    child = TreeNode(position=(0.0, 1.0, 0.0), width=0.1, main_branch=grandchild)
    root = TreeNode(position=(0.0, 0.0, 0.0), width=0.2, main_branch=child)
    return TreeStructure(root=root)


def make_fork():
    b = TreeNode(position=(0.0, 2.0, 0.0), width=0.05)
    c = TreeNode(position=(1.0, 2.0, 0.0), width=0.05)
    a = TreeNode(position=(0.0, 1.0, 0.0), width=0.07, main_branch=b, lateral_branch=c)
    root = TreeNode(position=(0.0, 0.0, 0.0), width=0.07, main_branch=a)
    return TreeStructure(root=root)


class TestQuadraticBezier:
    """Tests for the curve helper."""

    def test_endpoints(self):
        start, control, end = np.array([0.0, 0, 0]), np.array([1.0, 1, 0]), np.array([2.0, 0, 0])
        np.testing.assert_allclose(quadratic_bezier(start, control, end, 0.0), start)
        np.testing.assert_allclose(quadratic_bezier(start, control, end, 1.0), end)

    def test_midpoint(self):
        start, control, end = np.array([0.0, 0, 0]), np.array([1.0, 2, 0]), np.array([2.0, 0, 0])
        np.testing.assert_allclose(quadratic_bezier(start, control, end, 0.5), [1.0, 1.0, 0.0])


class TestSubdivideTree:
    """Tests for subdivide_tree."""

    def test_straight_chain_stays_straight(self):
        """k=1 on a straight chain inserts the segment midpoints."""
        smoothed = subdivide_tree(make_straight_chain(), 1)
        positions = [node.position for node, _, _ in smoothed.iter_nodes()]
        np.testing.assert_allclose(
            positions,
            [[0, 0, 0], [0, 0.5, 0], [0, 1, 0], [0, 1.5, 0], [0, 2, 0]],
            atol=1e-12,
        )

    def test_widths_are_interpolated(self):
        smoothed = subdivide_tree(make_straight_chain(), 1)
        widths = [node.width for node, _, _ in smoothed.iter_nodes()]
        assert widths == pytest.approx([0.2, 0.15, 0.1, 0.075, 0.05])

    def test_node_count(self):
        tree = make_fork()
        smoothed = subdivide_tree(tree, 3)
        assert smoothed.node_count == tree.node_count + 3 * 3

    def test_zero_subdivisions_is_equivalent_copy(self):
        tree = make_fork()
        copy = subdivide_tree(tree, 0)
        assert copy.root is not tree.root
        assert copy.to_dict() == tree.to_dict()

    def test_lateral_slot_is_preserved(self):
        smoothed = subdivide_tree(make_fork(), 2)
        a = smoothed.root.main_branch.main_branch.main_branch
        assert a.position == (0.0, 1.0, 0.0)
        lateral_top = a.lateral_branch
        assert lateral_top is not None
        assert lateral_top.main_branch.main_branch.position == (1.0, 2.0, 0.0)
        assert lateral_top.main_branch.main_branch.is_leaf

    def test_bend_follows_incoming_direction(self):
        """The first inserted point of a side branch leans along the parent's incoming direction."""
        smoothed = subdivide_tree(make_fork(), 1)
        a = smoothed.root.main_branch.main_branch
        inserted = a.lateral_branch
        # child (1,2,0), knee (0,1.5,0), parent (0,1,0) at f=0.5
        np.testing.assert_allclose(inserted.position, [0.25, 1.5, 0.0])

    def test_input_is_not_modified(self):
        tree = make_fork()
        before = tree.to_dict()
        subdivide_tree(tree, 4)
        assert tree.to_dict() == before

    def test_negative_subdivisions_raise(self):
        with pytest.raises(ValueError):
            subdivide_tree(make_fork(), -1)
