"""
Arbor - Procedural Tree Growth Library

This module grows 3-D tree skeletons with a self-organizing space colonization
model and extrudes them into tube meshes. A single seed drives the whole
pipeline deterministically:

    environment -> growth -> finalization -> [smoothing] -> mesh

Main Entry Points:
    - generate_tree(): One-call skeleton and mesh generation
    - grow_skeleton(): Growth plus finalization, without meshing
    - grow_tree(): Low-level growth loop over the mutable graph
    - synthesize_mesh(): Tube mesh from a skeleton

Example:
    >>> from arbor import generate_tree
    >>> from arbor_policies import TreeIdentity
    >>>
    >>> result = generate_tree(TreeIdentity(seed=7))
    >>> result.skeleton.node_count
    >>> result.mesh.to_trimesh().export("tree.obj")
"""

from .api import generate_tree, grow_skeleton, TreeGenerationResult
from .ops import (
    generate_environment,
    grow_tree,
    finalize_tree,
    subdivide_tree,
    synthesize_mesh,
    TreeMesh,
)
from .core import (
    BudFate,
    GrowthInvariantError,
    TreeNode,
    TreeStructure,
)

__version__ = "0.1.0"

__all__ = [
    # High-level API
    "generate_tree",
    "grow_skeleton",
    "TreeGenerationResult",
    # Operations
    "generate_environment",
    "grow_tree",
    "finalize_tree",
    "subdivide_tree",
    "synthesize_mesh",
    "TreeMesh",
    # Core types
    "BudFate",
    "GrowthInvariantError",
    "TreeNode",
    "TreeStructure",
]
