"""
Per-iteration local environment of every bud.

For each growth iteration this module computes, from scratch, the scratch
record of every bud: which resource points it perceives, its optimal growth
direction, its light exposure, the resource it receives and the size of the
subtree it carries. Records are indexed by bud id and discarded once the
iteration's fates have been decided.

Algorithm
---------
1. Every resource point is associated with the nearest dormant bud whose
   perception cone contains it (ties broken by a seeded uniform draw).
2. A bud's optimal growth direction is the normalized sum of the unit
   vectors towards its associated points.
3. Light starts at the full-light baseline for every dormant bud and is
   reduced by every node inside the shadow cone above it, weighted by
   ``shadow_coef * shadow_base ** (-distance)``. Shoot buds accumulate the
   light of the subtree they carry.
4. Resource flows top-down from the root, split at every node between the
   main and axillary bud in the ratio
   ``apical_dominance * Q_main : (1 - apical_dominance) * Q_axillary``.

UNIT CONVENTIONS
----------------
Angles are in RADIANS, distances in WORLD UNITS. +Y is up.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple, TYPE_CHECKING
import numpy as np
import logging
from scipy.spatial import cKDTree

from ..core.graph import Bud, MetamerNode, iter_live_nodes, iter_live_buds
from ..utils.geometry import UP, EPSILON, in_cone, normalize

if TYPE_CHECKING:
    from arbor_policies import SeedStructure
    from .environment import Environment

logger = logging.getLogger(__name__)

RESOURCE_SPLIT_EPSILON = 1e-12


@dataclass
class BudLocalEnvironment:
    """Scratch record of one bud for one iteration."""

    optimal_growth_direction: np.ndarray = field(default_factory=lambda: np.zeros(3))
    light_exposure: float = 0.0
    resource: float = 0.0
    subtree_size: int = 0
    associated_points: int = 0


@dataclass
class LocalEnvironment:
    """
    Local environment records of all buds, indexed by bud id.

    ``root_light`` is the aggregated light of the root metamer and
    ``root_resource`` the resource it receives before splitting.
    """

    buds: List[BudLocalEnvironment]
    root_light: float = 0.0
    root_resource: float = 0.0

    def __getitem__(self, bud_id: int) -> BudLocalEnvironment:
        return self.buds[bud_id]

    def __len__(self) -> int:
        return len(self.buds)


def shadow_falloff(distance, shadow_coef: float, shadow_base: float):
    """
    Light decrement cast by one node at ``distance``.

    The decrement is ``shadow_coef * shadow_base ** (-distance)``: it equals
    ``shadow_coef`` at distance 0 and decays monotonically for
    ``shadow_base > 1``. Accepts scalars or arrays.
    """
    return shadow_coef * np.power(shadow_base, -np.asarray(distance, dtype=float))


def associate_environment_points(
    root: MetamerNode,
    points: np.ndarray,
    policy: "SeedStructure",
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Associate every resource point with at most one dormant bud.

    Parameters
    ----------
    root : MetamerNode
        Root of the growth graph
    points : np.ndarray
        Resource points (shape (N, 3))
    policy : SeedStructure
        Supplies the perception cone angle and radius
    rng : np.random.Generator
        Seeded generator used for tie-breaks

    Returns
    -------
    np.ndarray
        Bud id owning each point, or -1 when no bud perceives it (shape (N,))
    """
    owner = np.full(len(points), -1, dtype=np.int64)

    dormant: List[Tuple[MetamerNode, Bud]] = [
        (node, bud) for node, bud in iter_live_buds(root) if bud.is_dormant
    ]
    if not dormant or len(points) == 0:
        return owner

    radius = policy.perception_radius
    tree = cKDTree(points)

    point_parts = []
    candidate_parts = []
    distance_parts = []
    for k, (node, bud) in enumerate(dormant):
        indices = tree.query_ball_point(node.position, r=radius, return_sorted=True)
        if not indices:
            continue
        indices = np.asarray(indices, dtype=np.int64)
        offsets = points[indices] - node.position
        mask, distances = in_cone(offsets, bud.direction, policy.bud_perception_angle, radius)
        if not mask.any():
            continue
        point_parts.append(indices[mask])
        candidate_parts.append(np.full(int(mask.sum()), k, dtype=np.int64))
        distance_parts.append(distances[mask])

    if not point_parts:
        return owner

    point_idx = np.concatenate(point_parts)
    candidate = np.concatenate(candidate_parts)
    distance = np.concatenate(distance_parts)

    # Group by point, nearest candidates first, then by candidate order
    order = np.lexsort((candidate, distance, point_idx))
    point_idx = point_idx[order]
    candidate = candidate[order]
    distance = distance[order]

    group_start_mask = np.empty(len(point_idx), dtype=bool)
    group_start_mask[0] = True
    group_start_mask[1:] = point_idx[1:] != point_idx[:-1]
    starts = np.flatnonzero(group_start_mask)
    group_of = np.cumsum(group_start_mask) - 1

    is_nearest = distance == distance[starts][group_of]
    tie_counts = np.bincount(group_of[is_nearest], minlength=len(starts))

    choice = np.zeros(len(starts), dtype=np.int64)
    tied = np.flatnonzero(tie_counts > 1)
    if tied.size:
        choice[tied] = rng.integers(0, tie_counts[tied])

    chosen = candidate[starts + choice]
    bud_ids = np.array([bud.bud_id for _, bud in dormant], dtype=np.int64)
    owner[point_idx[starts]] = bud_ids[chosen]
    return owner


def calculate_optimal_growth_directions(
    records: List[BudLocalEnvironment],
    root: MetamerNode,
    points: np.ndarray,
    owner: np.ndarray,
) -> None:
    """
    Fill ``optimal_growth_direction`` and ``associated_points`` of every live bud.

    Buds without associated points keep their current direction.
    """
    bud_positions = np.zeros((len(records), 3))
    for node, bud in iter_live_buds(root):
        bud_positions[bud.bud_id] = node.position

    sums = np.zeros((len(records), 3))
    counts = np.zeros(len(records), dtype=np.int64)

    assigned = owner >= 0
    if assigned.any():
        owners = owner[assigned]
        offsets = points[assigned] - bud_positions[owners]
        lengths = np.linalg.norm(offsets, axis=1)
        units = offsets / np.maximum(lengths, EPSILON)[:, None]
        np.add.at(sums, owners, units)
        counts = np.bincount(owners, minlength=len(records))

    for _, bud in iter_live_buds(root):
        record = records[bud.bud_id]
        record.associated_points = int(counts[bud.bud_id])
        record.optimal_growth_direction = normalize(sums[bud.bud_id], fallback=bud.direction)


def calculate_node_shadows(
    nodes: List[MetamerNode],
    policy: "SeedStructure",
) -> np.ndarray:
    """
    Total shadow cast on each node by the nodes above it.

    A node ``q`` shades node ``p`` when ``q - p`` lies inside the cone of
    half-angle ``shadow_cone_angle`` around +Y and within ``shadow_depth``.

    Returns
    -------
    np.ndarray
        Shadow per node, in the order of ``nodes`` (shape (len(nodes),))
    """
    shadows = np.zeros(len(nodes))
    if len(nodes) < 2 or policy.shadow_depth <= 0:
        return shadows

    positions = np.array([node.position for node in nodes])
    tree = cKDTree(positions)
    neighbours = tree.query_ball_point(positions, r=policy.shadow_depth, return_sorted=True)

    for i, indices in enumerate(neighbours):
        if len(indices) < 2:
            continue
        offsets = positions[np.asarray(indices)] - positions[i]
        mask, distances = in_cone(offsets, UP, policy.shadow_cone_angle, policy.shadow_depth)
        if mask.any():
            shadows[i] = float(np.sum(shadow_falloff(distances[mask], policy.shadow_coef, policy.shadow_base)))
    return shadows


def calculate_local_environment(
    root: MetamerNode,
    environment: "Environment",
    policy: "SeedStructure",
    rng: np.random.Generator,
) -> LocalEnvironment:
    """
    Compute the local environment of every bud for the current iteration.

    Parameters
    ----------
    root : MetamerNode
        Root of the growth graph
    environment : Environment
        Current resource points and bud id counter
    policy : SeedStructure
        Growth configuration
    rng : np.random.Generator
        Seeded generator (consumed by perception tie-breaks)

    Returns
    -------
    LocalEnvironment
        One record per allocated bud id
    """
    records = [BudLocalEnvironment() for _ in range(environment.number_of_buds)]

    owner = associate_environment_points(root, environment.points, policy, rng)
    calculate_optimal_growth_directions(records, root, environment.points, owner)

    live = list(iter_live_nodes(root))
    nodes = [node for node, _, _ in live]
    shadows = calculate_node_shadows(nodes, policy)

    # Light and subtree size, bottom-up
    subtree_sizes: Dict[int, int] = {}
    for index in range(len(nodes) - 1, -1, -1):
        node = nodes[index]
        size = 1
        for bud in node.buds:
            record = records[bud.bud_id]
            if bud.is_dormant:
                record.light_exposure = max(0.0, policy.full_light_exposure - shadows[index])
            elif bud.is_shoot:
                child = bud.child
                record.light_exposure = (
                    records[child.main_bud.bud_id].light_exposure
                    + records[child.axillary_bud.bud_id].light_exposure
                )
                record.subtree_size = subtree_sizes[id(child)]
                size += record.subtree_size
            else:
                record.light_exposure = 0.0
        subtree_sizes[id(node)] = size

    root_light = (
        records[root.main_bud.bud_id].light_exposure
        + records[root.axillary_bud.bud_id].light_exposure
    )
    root_resource = policy.resource_coef * root_light ** policy.bud_light_sensitivity

    # Resource, top-down
    dominance = policy.apical_dominance
    for node, parent_bud, _ in live:
        incoming = root_resource if parent_bud is None else records[parent_bud.bud_id].resource
        main = records[node.main_bud.bud_id]
        axillary = records[node.axillary_bud.bud_id]
        main_weight = dominance * main.light_exposure
        axillary_weight = (1.0 - dominance) * axillary.light_exposure
        denominator = max(main_weight + axillary_weight, RESOURCE_SPLIT_EPSILON)
        main.resource = incoming * main_weight / denominator
        axillary.resource = incoming * axillary_weight / denominator

    logger.debug(
        f"Local environment: {len(nodes)} live nodes, "
        f"{int(np.count_nonzero(owner >= 0))} associated points, "
        f"root light {root_light:.4f}, root resource {root_resource:.4f}"
    )

    return LocalEnvironment(buds=records, root_light=root_light, root_resource=root_resource)


__all__ = [
    "BudLocalEnvironment",
    "LocalEnvironment",
    "shadow_falloff",
    "associate_environment_points",
    "calculate_optimal_growth_directions",
    "calculate_node_shadows",
    "calculate_local_environment",
]
