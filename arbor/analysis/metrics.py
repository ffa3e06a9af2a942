"""
Skeleton metrics.

Structural and geometric summary statistics of a finalized skeleton,
computed on its NetworkX view.
"""

from typing import Any, Dict
import math
import numpy as np

from ..core.skeleton import TreeStructure
from ..adapters.networkx_adapter import to_networkx_graph


def pipe_model_residual(tree: TreeStructure, base_width: float) -> float:
    """
    Largest deviation from the pipe model over all nodes.

    A leaf should have ``base_width``; any other node the root of the sum of
    its children's squared widths.
    """
    worst = 0.0
    for node, _, _ in tree.iter_nodes():
        if node.is_leaf:
            expected = base_width
        else:
            expected = math.sqrt(sum(child.width ** 2 for child in node.children))
        worst = max(worst, abs(node.width - expected))
    return worst


def compute_skeleton_metrics(tree: TreeStructure) -> Dict[str, Any]:
    """
    Compute summary metrics of a skeleton.

    Parameters
    ----------
    tree : TreeStructure
        Finalized skeleton

    Returns
    -------
    dict
        - node_count, edge_count, leaf_count, branch_point_count: int
        - max_depth: int (edges on the longest root-to-leaf path)
        - total_length: float (sum of edge lengths)
        - root_width: float
        - height: float (largest y of any node)
        - crown_radius: float (largest horizontal distance from the root)
        - is_arborescence: bool
    """
    import networkx as nx

    G, _ = to_networkx_graph(tree)

    positions = np.array([G.nodes[n]["position"] for n in G.nodes])
    root_position = positions[0]
    horizontal = positions[:, [0, 2]] - root_position[[0, 2]]

    return {
        "node_count": G.number_of_nodes(),
        "edge_count": G.number_of_edges(),
        "leaf_count": sum(1 for n in G.nodes if G.out_degree(n) == 0),
        "branch_point_count": sum(1 for n in G.nodes if G.out_degree(n) > 1),
        "max_depth": int(nx.dag_longest_path_length(G)),
        "total_length": float(sum(length for _, _, length in G.edges(data="length"))),
        "root_width": float(tree.root.width),
        "height": float(positions[:, 1].max()),
        "crown_radius": float(np.linalg.norm(horizontal, axis=1).max()),
        "is_arborescence": bool(nx.is_arborescence(G)),
    }
