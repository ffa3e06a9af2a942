"""
Environment model: the finite resource point cloud that drives growth.

The environment owns a cloud of 3-D points scattered once from the tree seed
and the bud identifier allocator for the run. Points around existing growth
are removed every iteration so already-served regions stop attracting shoots.

UNIT CONVENTIONS
----------------
Distances are in WORLD UNITS. +Y is up.
"""

from dataclasses import dataclass, field
from typing import Literal
import numpy as np
import logging
from scipy.spatial import cKDTree

from ..core.ids import BudIdAllocator
from ..core.graph import MetamerNode, iter_live_nodes

logger = logging.getLogger(__name__)


@dataclass
class Environment:
    """
    Resource point cloud plus the bud identifier counter of one growth run.

    Attributes
    ----------
    points : np.ndarray
        Remaining resource points (shape (N, 3))
    bud_ids : BudIdAllocator
        Allocator for every bud created during the run
    """
    points: np.ndarray
    bud_ids: BudIdAllocator = field(default_factory=BudIdAllocator)

    def get_next_bud_id(self) -> int:
        return self.bud_ids.next_id()

    @property
    def number_of_buds(self) -> int:
        return self.bud_ids.count

    @property
    def point_count(self) -> int:
        return len(self.points)


def generate_environment(
    seed: int,
    size: float,
    count: int,
    shape: Literal["cube", "half_space"] = "cube",
) -> Environment:
    """
    Scatter resource points uniformly inside the growth region.

    Parameters
    ----------
    seed : int
        Seed for the point scatter
    size : float
        Edge length of the region
    count : int
        Number of points
    shape : {"cube", "half_space"}
        "cube" centres the region on the origin; "half_space" keeps the same
        horizontal extent but places the region above the ground plane
        (0 <= y <= size).

    Returns
    -------
    Environment
        Environment with an empty bud counter
    """
    rng = np.random.default_rng(seed)
    half = size / 2.0

    if shape == "cube":
        low = np.array([-half, -half, -half])
        high = np.array([half, half, half])
    elif shape == "half_space":
        low = np.array([-half, 0.0, -half])
        high = np.array([half, size, half])
    else:
        raise ValueError(f"Unknown environment shape {shape!r}")

    points = rng.uniform(low, high, size=(count, 3))
    logger.debug(f"Generated {count} environment points ({shape}, size={size})")
    return Environment(points=points)


def clear_occupancy_zones(
    root: MetamerNode,
    environment: Environment,
    radius: float,
) -> int:
    """
    Remove every point lying within ``radius`` of a live node.

    Parameters
    ----------
    root : MetamerNode
        Root of the growth graph
    environment : Environment
        Environment whose points are pruned in place
    radius : float
        Occupancy radius in world units

    Returns
    -------
    int
        Number of points removed
    """
    if environment.point_count == 0 or radius <= 0:
        return 0

    node_positions = np.array([node.position for node, _, _ in iter_live_nodes(root)])
    tree = cKDTree(environment.points)
    hits = tree.query_ball_point(node_positions, r=radius)

    occupied = set()
    for indices in hits:
        occupied.update(indices)

    if not occupied:
        return 0

    keep = np.ones(environment.point_count, dtype=bool)
    keep[np.fromiter(occupied, dtype=int, count=len(occupied))] = False
    environment.points = environment.points[keep]
    return len(occupied)


__all__ = ["Environment", "generate_environment", "clear_occupancy_zones"]
