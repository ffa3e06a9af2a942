"""
Mesh-level operations for tree skeletons.

This module provides tube mesh synthesis from finalized skeletons.
"""

from .synthesis import (
    TreeMesh,
    synthesize_mesh,
    MeshSynthesisPolicy,
)

__all__ = [
    "TreeMesh",
    "synthesize_mesh",
    "MeshSynthesisPolicy",
]
