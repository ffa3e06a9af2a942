"""
Graph finalization: convert the mutable growth graph into an immutable skeleton.
"""

from typing import Dict, List, Optional, Tuple
import logging

from ..core.graph import Bud, BudFate, GrowthInvariantError, MetamerNode
from ..core.skeleton import TreeNode, TreeStructure

logger = logging.getLogger(__name__)


def _finalized_child(bud: Bud) -> Optional[MetamerNode]:
    if bud.fate is BudFate.SHOOT:
        if bud.child is None:
            raise GrowthInvariantError(f"Shoot bud {bud.bud_id} has no child metamer")
        return bud.child
    if bud.fate is BudFate.DORMANT or bud.fate is BudFate.DEAD:
        return None
    raise GrowthInvariantError(f"Bud {bud.bud_id} has unknown fate {bud.fate!r}")


def finalize_tree(root: MetamerNode) -> TreeStructure:
    """
    Build the immutable skeleton of a grown tree.

    Shoot buds map to their child, Dormant and Dead buds to no branch.
    Frozen nodes are built children-first from an explicit post-order
    worklist.

    Parameters
    ----------
    root : MetamerNode
        Root of the growth graph

    Returns
    -------
    TreeStructure
        Finalized skeleton

    Raises
    ------
    GrowthInvariantError
        If a Shoot bud has no child
    """
    built: Dict[int, TreeNode] = {}
    stack: List[Tuple[MetamerNode, bool]] = [(root, False)]

    while stack:
        node, expanded = stack.pop()
        main = _finalized_child(node.main_bud)
        lateral = _finalized_child(node.axillary_bud)

        if not expanded:
            stack.append((node, True))
            for child in (lateral, main):
                if child is not None:
                    stack.append((child, False))
            continue

        built[id(node)] = TreeNode(
            position=tuple(float(c) for c in node.position),
            width=float(node.width),
            main_branch=None if main is None else built.pop(id(main)),
            lateral_branch=None if lateral is None else built.pop(id(lateral)),
        )

    tree = TreeStructure(root=built.pop(id(root)))
    logger.debug(f"Finalized skeleton with {tree.node_count} nodes")
    return tree


__all__ = ["finalize_tree"]
