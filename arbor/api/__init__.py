"""
Public API for tree generation.

    from arbor.api import generate_tree
    result = generate_tree(TreeIdentity(seed=7))
    result.mesh.to_trimesh().show()
"""

from .generate import TreeGenerationResult, generate_tree, grow_skeleton
from .export import make_run_dir, save_mesh, save_skeleton, write_json, export_all

__all__ = [
    "TreeGenerationResult",
    "generate_tree",
    "grow_skeleton",
    "make_run_dir",
    "save_mesh",
    "save_skeleton",
    "write_json",
    "export_all",
]
