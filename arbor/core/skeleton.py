"""
Immutable tree skeleton produced once growth has finished.

The skeleton is the render-facing view of the tree: positions and widths
only, with an optional main and lateral child per node. It is consumed by the
smoother, the mesh builder, debug line rendering and the graph adapters.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
import numpy as np

Position = Tuple[float, float, float]


@dataclass(frozen=True, eq=False)
class TreeNode:
    """Finalized skeleton node."""

    position: Position
    width: float
    main_branch: Optional["TreeNode"] = field(default=None, repr=False)
    lateral_branch: Optional["TreeNode"] = field(default=None, repr=False)

    @property
    def children(self) -> Tuple["TreeNode", ...]:
        return tuple(c for c in (self.main_branch, self.lateral_branch) if c is not None)

    @property
    def is_leaf(self) -> bool:
        return self.main_branch is None and self.lateral_branch is None

    def position_array(self) -> np.ndarray:
        return np.array(self.position, dtype=float)


@dataclass(frozen=True, eq=False)
class TreeStructure:
    """Finalized tree skeleton rooted at ``root``."""

    root: TreeNode

    def iter_nodes(self) -> Iterator[Tuple[TreeNode, Optional[TreeNode], int]]:
        """
        Pre-order traversal, main branch before lateral branch.

        Yields
        ------
        (node, parent, depth)
        """
        stack: List[Tuple[TreeNode, Optional[TreeNode], int]] = [(self.root, None, 0)]
        while stack:
            node, parent, depth = stack.pop()
            yield node, parent, depth
            if node.lateral_branch is not None:
                stack.append((node.lateral_branch, node, depth + 1))
            if node.main_branch is not None:
                stack.append((node.main_branch, node, depth + 1))

    def iter_edges(self) -> Iterator[Tuple[TreeNode, TreeNode]]:
        """Every parent -> child edge in pre-order."""
        for node, parent, _ in self.iter_nodes():
            if parent is not None:
                yield parent, node

    @property
    def node_count(self) -> int:
        return sum(1 for _ in self.iter_nodes())

    @property
    def depth(self) -> int:
        return max(depth for _, _, depth in self.iter_nodes())

    def to_line_segments(self) -> np.ndarray:
        """
        Edge endpoints for debug-line rendering.

        Returns
        -------
        np.ndarray
            Array of shape (E, 2, 3): ``[parent_position, child_position]``
            per edge
        """
        segments = [(parent.position, child.position) for parent, child in self.iter_edges()]
        if not segments:
            return np.zeros((0, 2, 3))
        return np.array(segments, dtype=float)

    def to_dict(self) -> Dict[str, Any]:
        """
        Flat, JSON-serializable view of the skeleton.

        Nodes are listed in pre-order; ``parent`` is the index of the parent
        node (None for the root) and ``slot`` is "main" or "lateral".
        """
        index: Dict[int, int] = {}
        nodes = []
        for node, parent, _ in self.iter_nodes():
            index[id(node)] = len(nodes)
            slot = None
            if parent is not None:
                slot = "main" if parent.main_branch is node else "lateral"
            nodes.append({
                "position": [float(c) for c in node.position],
                "width": float(node.width),
                "parent": None if parent is None else index[id(parent)],
                "slot": slot,
            })
        return {"nodes": nodes}


__all__ = ["Position", "TreeNode", "TreeStructure"]
