"""
Skeleton smoothing by quadratic edge subdivision.

Every parent -> child edge is replaced by a poly-line through ``k`` points of
the quadratic Bezier curve with control points (child, knee, parent). The
knee continues the parent's incoming direction by half a segment, so chains
bend smoothly instead of kinking at every node. Topology is preserved:
inserted nodes hang off ``main_branch`` and the child keeps its slot.
"""

from typing import Dict, Optional
import numpy as np
import logging

from ..core.skeleton import TreeNode, TreeStructure
from ..utils.geometry import UP

logger = logging.getLogger(__name__)


def _knee(parent: TreeNode, grandparent: Optional[TreeNode]) -> np.ndarray:
    p = parent.position_array()
    if grandparent is None:
        return p + UP / 2.0
    return p + (p - grandparent.position_array()) / 2.0


def quadratic_bezier(start: np.ndarray, control: np.ndarray, end: np.ndarray, f: float) -> np.ndarray:
    """Point at fraction ``f`` of the quadratic Bezier from ``start`` to ``end``."""
    return (1.0 - f) ** 2 * start + 2.0 * (1.0 - f) * f * control + f ** 2 * end


def _subdivide_edge(
    new_child: TreeNode,
    child: TreeNode,
    parent: TreeNode,
    grandparent: Optional[TreeNode],
    subdivisions: int,
) -> TreeNode:
    # Returns the top of the inserted chain, the node that attaches to the parent
    start = child.position_array()
    end = parent.position_array()
    knee = _knee(parent, grandparent)

    current = new_child
    for t in range(1, subdivisions + 1):
        f = t / (subdivisions + 1)
        position = quadratic_bezier(start, knee, end, f)
        current = TreeNode(
            position=tuple(float(c) for c in position),
            width=float(child.width + (parent.width - child.width) * f),
            main_branch=current,
        )
    return current


def subdivide_tree(tree: TreeStructure, subdivisions: int) -> TreeStructure:
    """
    Insert ``subdivisions`` interpolated nodes on every edge.

    Parameters
    ----------
    tree : TreeStructure
        Finalized skeleton
    subdivisions : int
        Points inserted per edge, at fractions ``t / (subdivisions + 1)``
        measured from the child. 0 returns an equivalent copy.

    Returns
    -------
    TreeStructure
        New skeleton; the input is not modified
    """
    if subdivisions < 0:
        raise ValueError(f"subdivisions must be >= 0, got {subdivisions}")

    order = list(tree.iter_nodes())
    parents: Dict[int, Optional[TreeNode]] = {id(node): parent for node, parent, _ in order}
    built: Dict[int, TreeNode] = {}

    for node, parent, _ in reversed(order):
        main = built.pop(id(node.main_branch)) if node.main_branch is not None else None
        lateral = built.pop(id(node.lateral_branch)) if node.lateral_branch is not None else None
        new_node = TreeNode(
            position=node.position,
            width=node.width,
            main_branch=main,
            lateral_branch=lateral,
        )
        if parent is not None and subdivisions > 0:
            new_node = _subdivide_edge(new_node, node, parent, parents[id(parent)], subdivisions)
        built[id(node)] = new_node

    smoothed = TreeStructure(root=built.pop(id(tree.root)))
    logger.debug(
        f"Subdivided skeleton: {len(order)} -> {smoothed.node_count} nodes (k={subdivisions})"
    )
    return smoothed


__all__ = ["quadratic_bezier", "subdivide_tree"]
