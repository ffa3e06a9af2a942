"""
Tube mesh synthesis from tree skeletons.

Every skeleton node gets one ring of ``segments_per_circle`` vertices, sized
by the node width and oriented along the local branch direction. Each
parent -> child edge is stitched into a closed strip of ``2 * N`` triangles
between the two rings.

UNIT CONVENTIONS
----------------
Positions and widths are in WORLD UNITS. +Y is up.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING
import numpy as np
import logging

from arbor_policies import MeshSynthesisPolicy, OperationReport

from ...core.skeleton import TreeNode, TreeStructure
from ...utils.geometry import UP, normalize, rotation_arc

if TYPE_CHECKING:
    import trimesh

logger = logging.getLogger(__name__)


@dataclass
class TreeMesh:
    """
    Triangle mesh of a tree.

    Attributes
    ----------
    vertices : np.ndarray
        Vertex positions (shape (V, 3))
    normals : np.ndarray
        Unit vertex normals (shape (V, 3))
    faces : np.ndarray
        Triangle vertex indices (shape (T, 3))
    ring_size : int
        Vertices per ring
    """
    vertices: np.ndarray
    normals: np.ndarray
    faces: np.ndarray
    ring_size: int = 16

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    @property
    def triangle_count(self) -> int:
        return len(self.faces)

    def to_trimesh(self) -> "trimesh.Trimesh":
        """Build a ``trimesh.Trimesh`` without merging or reordering vertices."""
        import trimesh

        return trimesh.Trimesh(
            vertices=self.vertices,
            faces=self.faces,
            vertex_normals=self.normals,
            process=False,
        )


def unit_circle(segments: int) -> np.ndarray:
    """Ring template in the XZ plane (shape (segments, 3))."""
    angles = 2.0 * np.pi * np.arange(segments) / segments
    return np.stack([np.cos(angles), np.zeros(segments), np.sin(angles)], axis=1)


def node_direction(node: TreeNode, parent: Optional[TreeNode]) -> np.ndarray:
    """
    Ring orientation at ``node``.

    Sum of the incoming edge vector and every outgoing edge vector; +Y when
    the sum vanishes.
    """
    position = node.position_array()
    direction = np.zeros(3)
    if parent is not None:
        direction += position - parent.position_array()
    for child in node.children:
        direction += child.position_array() - position
    return normalize(direction, fallback=UP)


def _connect_rings(parent_start: int, child_start: int, segments: int) -> np.ndarray:
    """
    Stitch two rings into a closed strip of ``2 * segments`` triangles.

    Ring ``i`` and ring ``i + 1`` positions form the quad
    (p_i, p_i+1, c_i+1, c_i); every rung edge (p_i, c_i) is shared by the two
    triangles on either side of it.
    """
    i = np.arange(segments)
    j = (i + 1) % segments
    p, p_next = parent_start + i, parent_start + j
    c, c_next = child_start + i, child_start + j

    first = np.stack([p_next, p, c], axis=1)
    second = np.stack([c, c_next, p_next], axis=1)
    return np.stack([first, second], axis=1).reshape(-1, 3)


def _cap_ring(ring_start: int, center: int, segments: int, facing_down: bool) -> np.ndarray:
    """Triangle fan closing a ring around ``center``."""
    i = np.arange(segments)
    j = (i + 1) % segments
    centers = np.full(segments, center)
    if facing_down:
        return np.stack([centers, ring_start + i, ring_start + j], axis=1)
    return np.stack([centers, ring_start + j, ring_start + i], axis=1)


def synthesize_mesh(
    tree: TreeStructure,
    policy: Optional[MeshSynthesisPolicy] = None,
) -> Tuple[TreeMesh, OperationReport]:
    """
    Synthesize a tube mesh from a tree skeleton.

    Parameters
    ----------
    tree : TreeStructure
        Finalized (optionally smoothed) skeleton
    policy : MeshSynthesisPolicy, optional
        Policy controlling ring resolution, caps and minimum radius

    Returns
    -------
    mesh : TreeMesh
        Synthesized mesh
    report : OperationReport
        Report with synthesis statistics

    Raises
    ------
    ValueError
        If the policy is invalid
    """
    if policy is None:
        policy = MeshSynthesisPolicy()

    errors = policy.validate()
    if errors:
        raise ValueError(f"Invalid MeshSynthesisPolicy: {'; '.join(errors)}")

    segments = policy.segments_per_circle
    template = unit_circle(segments)

    vertex_blocks: List[np.ndarray] = []
    normal_blocks: List[np.ndarray] = []
    face_blocks: List[np.ndarray] = []
    ring_start: Dict[int, int] = {}
    leaves: List[Tuple[TreeNode, np.ndarray]] = []
    clamped = 0
    vertex_count = 0

    for node, parent, _ in tree.iter_nodes():
        direction = node_direction(node, parent)
        rotation = rotation_arc(UP, direction)
        radial = template @ rotation.T

        radius = node.width
        if policy.min_width is not None and radius < policy.min_width:
            radius = policy.min_width
            clamped += 1

        ring_start[id(node)] = vertex_count
        vertex_blocks.append(node.position_array() + radius * radial)
        normal_blocks.append(radial)
        vertex_count += segments

        if parent is not None:
            face_blocks.append(_connect_rings(ring_start[id(parent)], ring_start[id(node)], segments))
        if node.is_leaf:
            leaves.append((node, direction))

    if policy.cap_ends:
        root_direction = node_direction(tree.root, None)
        vertex_blocks.append(tree.root.position_array()[None, :])
        normal_blocks.append(-root_direction[None, :])
        face_blocks.append(_cap_ring(ring_start[id(tree.root)], vertex_count, segments, facing_down=True))
        vertex_count += 1

        for leaf, direction in leaves:
            if leaf is tree.root:
                continue
            vertex_blocks.append(leaf.position_array()[None, :])
            normal_blocks.append(direction[None, :])
            face_blocks.append(_cap_ring(ring_start[id(leaf)], vertex_count, segments, facing_down=False))
            vertex_count += 1

    mesh = TreeMesh(
        vertices=np.concatenate(vertex_blocks, axis=0),
        normals=np.concatenate(normal_blocks, axis=0),
        faces=(
            np.concatenate(face_blocks, axis=0).astype(np.int64)
            if face_blocks else np.zeros((0, 3), dtype=np.int64)
        ),
        ring_size=segments,
    )

    metadata: Dict[str, Any] = {
        "node_count": len(ring_start),
        "edge_count": len(ring_start) - 1,
        "leaf_count": len(leaves),
        "vertex_count": mesh.vertex_count,
        "face_count": mesh.triangle_count,
        "segments_per_circle": segments,
        "cap_ends": policy.cap_ends,
        "clamped_rings": clamped,
    }
    logger.info(
        f"Synthesized tree mesh: {mesh.vertex_count} vertices, {mesh.triangle_count} faces"
    )

    report = OperationReport(
        operation="synthesize_mesh",
        success=True,
        requested_policy=policy.to_dict(),
        effective_policy=policy.to_dict(),
        metadata=metadata,
    )
    if clamped:
        report.add_warning(f"Clamped {clamped} ring radii to min_width={policy.min_width}")
    return mesh, report


__all__ = [
    "TreeMesh",
    "unit_circle",
    "node_direction",
    "synthesize_mesh",
]
