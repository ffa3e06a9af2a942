"""
Operations for growing trees and turning them into geometry.

This module re-exports commonly used operations from submodules.
For full API access, import from specific submodules:
    - arbor.ops.environment: Resource point cloud and occupancy
    - arbor.ops.local_environment: Per-bud perception, light and resource
    - arbor.ops.growth: Bud fate state machine and growth loop
    - arbor.ops.finalize: Growth graph to skeleton conversion
    - arbor.ops.smoothing: Quadratic edge subdivision
    - arbor.ops.mesh: Tube mesh synthesis
"""

from .environment import Environment, generate_environment, clear_occupancy_zones
from .local_environment import (
    BudLocalEnvironment,
    LocalEnvironment,
    calculate_local_environment,
    shadow_falloff,
)
from .growth import (
    IterationStats,
    GrowthResult,
    create_seedling,
    run_growth_iteration,
    update_branch_widths,
    grow_tree,
)
from .finalize import finalize_tree
from .smoothing import subdivide_tree
from .mesh import TreeMesh, synthesize_mesh

__all__ = [
    "Environment",
    "generate_environment",
    "clear_occupancy_zones",
    "BudLocalEnvironment",
    "LocalEnvironment",
    "calculate_local_environment",
    "shadow_falloff",
    "IterationStats",
    "GrowthResult",
    "create_seedling",
    "run_growth_iteration",
    "update_branch_widths",
    "grow_tree",
    "finalize_tree",
    "subdivide_tree",
    "TreeMesh",
    "synthesize_mesh",
]
