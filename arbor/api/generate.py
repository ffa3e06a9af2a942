"""
One-call tree generation.

This is the host-facing entry point: supply a tree identity (or a full
SeedStructure) and receive the immutable skeleton, its tube mesh and a report
describing the run.
"""

from dataclasses import dataclass
from typing import Optional, Tuple, Union
import logging

from arbor_policies import (
    MeshSynthesisPolicy,
    OperationReport,
    SeedStructure,
    SmoothingPolicy,
    TreeIdentity,
)

from ..analysis.metrics import compute_skeleton_metrics
from ..core.skeleton import TreeStructure
from ..ops.finalize import finalize_tree
from ..ops.growth import grow_tree
from ..ops.mesh.synthesis import TreeMesh, synthesize_mesh
from ..ops.smoothing import subdivide_tree

logger = logging.getLogger(__name__)


@dataclass
class TreeGenerationResult:
    """Skeleton, mesh and report of one generation call."""
    skeleton: TreeStructure
    mesh: TreeMesh
    report: OperationReport


def _coerce_seed_structure(
    identity_or_structure: Union[TreeIdentity, SeedStructure, int],
) -> SeedStructure:
    if isinstance(identity_or_structure, SeedStructure):
        return identity_or_structure
    if isinstance(identity_or_structure, TreeIdentity):
        return SeedStructure.from_tree_identity(identity_or_structure)
    if isinstance(identity_or_structure, int):
        return SeedStructure.from_tree_identity(TreeIdentity(seed=identity_or_structure))
    raise TypeError(
        f"Expected TreeIdentity, SeedStructure or int seed, got {type(identity_or_structure).__name__}"
    )


def grow_skeleton(
    seed_structure: SeedStructure,
    disable_progress: bool = True,
) -> Tuple[TreeStructure, OperationReport]:
    """
    Grow a tree and finalize it into a skeleton.

    Parameters
    ----------
    seed_structure : SeedStructure
        Growth configuration
    disable_progress : bool
        Hide the per-iteration progress bar

    Returns
    -------
    skeleton : TreeStructure
        Finalized skeleton
    report : OperationReport
        Report with per-iteration statistics and skeleton metrics

    Raises
    ------
    ValueError
        If the configuration is invalid
    """
    growth = grow_tree(seed_structure, disable_progress=disable_progress)
    skeleton = finalize_tree(growth.root)

    metadata = {
        "bud_count": growth.bud_count,
        "points_remaining": growth.environment.point_count,
        "iterations": [stats.to_dict() for stats in growth.iterations],
        "skeleton": compute_skeleton_metrics(skeleton),
    }

    report = OperationReport(
        operation="grow_skeleton",
        success=True,
        requested_policy=seed_structure.to_dict(),
        effective_policy=seed_structure.to_dict(),
        metadata=metadata,
    )
    if skeleton.node_count == 1:
        report.add_warning("Tree did not grow: the root bud never received enough resource")
    return skeleton, report


def generate_tree(
    identity_or_structure: Union[TreeIdentity, SeedStructure, int],
    mesh_policy: Optional[MeshSynthesisPolicy] = None,
    smoothing_policy: Optional[SmoothingPolicy] = None,
    disable_progress: bool = True,
) -> TreeGenerationResult:
    """
    Generate a tree skeleton and mesh.

    Parameters
    ----------
    identity_or_structure : TreeIdentity, SeedStructure or int
        Tree identity (only its seed is used), a full growth configuration,
        or a bare seed
    mesh_policy : MeshSynthesisPolicy, optional
        Policy controlling tube mesh synthesis
    smoothing_policy : SmoothingPolicy, optional
        Policy controlling skeleton subdivision before meshing
    disable_progress : bool
        Hide the per-iteration progress bar

    Returns
    -------
    TreeGenerationResult
        The unsmoothed skeleton, the mesh and a combined report
    """
    seed_structure = _coerce_seed_structure(identity_or_structure)
    if mesh_policy is None:
        mesh_policy = MeshSynthesisPolicy()
    if smoothing_policy is None:
        smoothing_policy = SmoothingPolicy()

    errors = smoothing_policy.validate()
    if errors:
        raise ValueError(f"Invalid SmoothingPolicy: {'; '.join(errors)}")

    skeleton, report = grow_skeleton(seed_structure, disable_progress=disable_progress)

    mesh_source = skeleton
    if smoothing_policy.enabled and smoothing_policy.subdivisions > 0:
        mesh_source = subdivide_tree(skeleton, smoothing_policy.subdivisions)
        report.metrics["smoothed_node_count"] = mesh_source.node_count

    mesh, mesh_report = synthesize_mesh(mesh_source, mesh_policy)
    report.merge(mesh_report)
    report.operation = "generate_tree"
    report.requested_policy = {
        "seed_structure": seed_structure.to_dict(),
        "mesh": mesh_policy.to_dict(),
        "smoothing": smoothing_policy.to_dict(),
    }
    report.effective_policy = dict(report.requested_policy)

    logger.info(
        f"Generated tree (seed={seed_structure.seed}): {skeleton.node_count} nodes, "
        f"{mesh.triangle_count} triangles"
    )
    return TreeGenerationResult(skeleton=skeleton, mesh=mesh, report=report)


__all__ = ["TreeGenerationResult", "grow_skeleton", "generate_tree"]
