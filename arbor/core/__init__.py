"""Core data structures for tree growth."""

from .ids import BudIdAllocator
from .graph import (
    GrowthInvariantError,
    BudFate,
    Bud,
    MetamerNode,
    new_metamer,
    iter_live_nodes,
    iter_live_buds,
    iter_all_buds,
    check_graph_invariants,
)
from .skeleton import TreeNode, TreeStructure

__all__ = [
    "BudIdAllocator",
    "GrowthInvariantError",
    "BudFate",
    "Bud",
    "MetamerNode",
    "new_metamer",
    "iter_live_nodes",
    "iter_live_buds",
    "iter_all_buds",
    "check_graph_invariants",
    "TreeNode",
    "TreeStructure",
]
