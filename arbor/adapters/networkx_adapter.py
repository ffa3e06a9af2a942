"""
NetworkX adapter for tree skeletons.

Converts a TreeStructure into a directed ``networkx.DiGraph`` whose edges
point from parent to child, for graph analysis.
"""

from typing import List, Tuple, TYPE_CHECKING
import numpy as np

from ..core.skeleton import TreeNode, TreeStructure

if TYPE_CHECKING:
    import networkx as nx


def to_networkx_graph(tree: TreeStructure) -> Tuple["nx.DiGraph", List[TreeNode]]:
    """
    Convert a skeleton to a NetworkX directed graph.

    Parameters
    ----------
    tree : TreeStructure
        Skeleton to convert

    Returns
    -------
    G : nx.DiGraph
        Graph with integer node ids in pre-order (root is 0). Nodes carry
        ``position`` (np.ndarray) and ``width``; edges carry ``length`` and
        ``slot`` ("main" or "lateral").
    nodes : List[TreeNode]
        Skeleton node for every graph node id
    """
    import networkx as nx

    G = nx.DiGraph()
    nodes: List[TreeNode] = []
    index = {}

    for node, parent, depth in tree.iter_nodes():
        node_id = len(nodes)
        index[id(node)] = node_id
        nodes.append(node)
        G.add_node(node_id, position=node.position_array(), width=node.width, depth=depth)

        if parent is not None:
            parent_id = index[id(parent)]
            length = float(np.linalg.norm(node.position_array() - parent.position_array()))
            slot = "main" if parent.main_branch is node else "lateral"
            G.add_edge(parent_id, node_id, length=length, slot=slot)

    return G, nodes
