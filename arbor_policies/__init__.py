"""
Arbor Policies - Centralized policy definitions for arbor tree generation.

This package provides all policy dataclasses used by the growth, meshing and
export modules. All policies are JSON-serializable.

Usage:
    from arbor_policies import SeedStructure, TreeIdentity, OperationReport
    from arbor_policies.mesh import MeshSynthesisPolicy, SmoothingPolicy
"""

from .base import (
    OperationReport,
    coerce_float,
    alias_fields,
)

from .growth import (
    TreeKind,
    TreeIdentity,
    SeedStructure,
)

from .mesh import (
    SmoothingPolicy,
    MeshSynthesisPolicy,
)

from .output import (
    OutputPolicy,
)

__all__ = [
    # Base
    "OperationReport",
    "coerce_float",
    "alias_fields",
    # Growth
    "TreeKind",
    "TreeIdentity",
    "SeedStructure",
    # Mesh
    "SmoothingPolicy",
    "MeshSynthesisPolicy",
    # Output
    "OutputPolicy",
]
