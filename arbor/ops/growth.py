"""
Growth engine: the iterative self-organizing tree simulation.

Each iteration:
1. removes resource points in the occupancy zone of every live node,
2. computes the local environment of every bud,
3. applies the bud fate state machine top-down (grow, prune or stay dormant),
   extending new shoots as chains of metamers,
4. recomputes branch widths bottom-up with the pipe model.

All randomness (perception tie-breaks, bud direction sampling) is drawn from
one generator seeded from the tree seed, so identical configurations produce
identical trees.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, TYPE_CHECKING
import math
import numpy as np
import logging
from tqdm import tqdm

from ..core.ids import BudIdAllocator
from ..core.graph import (
    Bud,
    BudFate,
    GrowthInvariantError,
    MetamerNode,
    check_graph_invariants,
    iter_live_buds,
    iter_live_nodes,
    new_metamer,
)
from ..utils.geometry import UP, normalize, project_onto_plane, sample_cone_direction
from .environment import Environment, clear_occupancy_zones, generate_environment
from .local_environment import LocalEnvironment, calculate_local_environment

if TYPE_CHECKING:
    from arbor_policies import SeedStructure

logger = logging.getLogger(__name__)

SHOOT_RESOURCE_THRESHOLD = 1.0


@dataclass
class IterationStats:
    """Statistics of one growth iteration."""
    iteration: int
    points_removed: int = 0
    points_remaining: int = 0
    dormant_buds: int = 0
    shoots_started: int = 0
    metamers_created: int = 0
    buds_pruned: int = 0
    highest_vigor: float = 0.0
    root_resource: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iteration": self.iteration,
            "points_removed": self.points_removed,
            "points_remaining": self.points_remaining,
            "dormant_buds": self.dormant_buds,
            "shoots_started": self.shoots_started,
            "metamers_created": self.metamers_created,
            "buds_pruned": self.buds_pruned,
            "highest_vigor": self.highest_vigor,
            "root_resource": self.root_resource,
        }


@dataclass
class GrowthResult:
    """Outcome of a full growth run."""
    root: MetamerNode
    environment: Environment
    iterations: List[IterationStats] = field(default_factory=list)

    @property
    def bud_count(self) -> int:
        return self.environment.number_of_buds

    @property
    def live_node_count(self) -> int:
        return sum(1 for _ in iter_live_nodes(self.root))


def create_seedling(policy: "SeedStructure", ids: BudIdAllocator) -> MetamerNode:
    """
    Create the root metamer at the origin.

    The main bud points up and stays Dormant; the axillary bud of the root is
    Dead from the start so the trunk cannot fork at ground level.
    """
    root = new_metamer(
        position=np.zeros(3),
        main_direction=UP.copy(),
        axillary_direction=UP.copy(),
        width=policy.base_branch_width,
        ids=ids,
    )
    root.axillary_bud.kill()
    return root


def highest_tree_vigor(root: MetamerNode, local: LocalEnvironment) -> float:
    """Largest resource received by any Dormant bud (0 when there is none)."""
    vigor = 0.0
    for _, bud in iter_live_buds(root):
        if bud.is_dormant:
            vigor = max(vigor, local[bud.bud_id].resource)
    return vigor


def blend_growth_direction(
    current: np.ndarray,
    optimal: np.ndarray,
    policy: "SeedStructure",
) -> np.ndarray:
    """
    Blend the current direction, the optimal direction and tropism.

    The tropism vector is projected onto the plane perpendicular to
    ``current`` before weighting. A degenerate blend keeps ``current``.
    """
    tropism = project_onto_plane(np.asarray(policy.tropism_direction), current)
    combined = (
        policy.current_direction_weight * current
        + policy.optimal_growth_direction_weight * optimal
        + policy.tropism_weight * tropism
    )
    return normalize(combined, fallback=current)


def extend_shoot(
    node: MetamerNode,
    bud: Bud,
    length: int,
    optimal_direction: np.ndarray,
    policy: "SeedStructure",
    ids: BudIdAllocator,
    rng: np.random.Generator,
) -> int:
    """
    Turn ``bud`` into a Shoot carrying a chain of ``length`` new metamers.

    Parameters
    ----------
    node : MetamerNode
        Node owning ``bud``
    bud : Bud
        Dormant bud to grow
    length : int
        Number of metamers in the new chain (>= 1)
    optimal_direction : np.ndarray
        Optimal growth direction of ``bud`` this iteration
    policy : SeedStructure
        Growth configuration
    ids : BudIdAllocator
        Allocator for the new buds
    rng : np.random.Generator
        Seeded generator for bud direction sampling

    Returns
    -------
    int
        Number of metamers created
    """
    if length < 1:
        raise GrowthInvariantError(f"Bud {bud.bud_id}: shoot length must be >= 1, got {length}")

    direction = normalize(bud.direction)
    optimal = normalize(optimal_direction, fallback=direction)
    position = node.position
    parent_bud = bud

    for _ in range(length):
        direction = blend_growth_direction(direction, optimal, policy)
        position = position + direction * policy.internode_length

        if policy.main_branching_angle > 0:
            main_direction = sample_cone_direction(direction, policy.main_branching_angle, rng)
        else:
            main_direction = direction.copy()
        axillary_direction = sample_cone_direction(direction, policy.lateral_branching_angle, rng)

        child = new_metamer(
            position=position,
            main_direction=main_direction,
            axillary_direction=axillary_direction,
            width=policy.base_branch_width,
            ids=ids,
        )
        parent_bud.shoot(child)
        parent_bud = child.main_bud
        direction = main_direction

    return length


def determine_bud_fates(
    root: MetamerNode,
    local: LocalEnvironment,
    policy: "SeedStructure",
    ids: BudIdAllocator,
    rng: np.random.Generator,
    stats: Optional[IterationStats] = None,
) -> IterationStats:
    """
    Apply the bud fate state machine top-down over the current graph.

    Metamers created during this pass are not revisited until the next
    iteration.
    """
    if stats is None:
        stats = IterationStats(iteration=0)

    vigor = highest_tree_vigor(root, local)
    stats.highest_vigor = vigor

    stack = [root]
    while stack:
        node = stack.pop()
        children = []
        for bud in node.buds:
            record = local[bud.bud_id]
            if bud.fate is BudFate.DORMANT:
                stats.dormant_buds += 1
                if record.resource < SHOOT_RESOURCE_THRESHOLD or record.associated_points == 0:
                    continue
                length = math.floor(record.resource * policy.maximum_shoot_length / vigor)
                if length < 1:
                    continue
                stats.metamers_created += extend_shoot(
                    node, bud, length, record.optimal_growth_direction, policy, ids, rng
                )
                stats.shoots_started += 1
            elif bud.fate is BudFate.SHOOT:
                density = record.resource / max(record.subtree_size, 1)
                if density < policy.branch_self_pruning:
                    bud.kill()
                    stats.buds_pruned += 1
                else:
                    children.append(bud.child)
            elif bud.fate is BudFate.DEAD:
                continue
            else:
                raise GrowthInvariantError(f"Bud {bud.bud_id} has unknown fate {bud.fate!r}")
        stack.extend(reversed(children))

    return stats


def update_branch_widths(root: MetamerNode, base_width: float) -> None:
    """
    Recompute node widths bottom-up with the pipe model.

    A node without Shoot buds gets ``base_width``; any other node gets
    ``sqrt(w_main**2 + w_axillary**2)`` over its Shoot children.
    """
    nodes = [node for node, _, _ in iter_live_nodes(root)]
    for node in reversed(nodes):
        child_widths = [child.width for child in node.live_children()]
        if child_widths:
            node.width = math.sqrt(sum(w * w for w in child_widths))
        else:
            node.width = base_width


def run_growth_iteration(
    root: MetamerNode,
    environment: Environment,
    policy: "SeedStructure",
    rng: np.random.Generator,
    iteration: int = 0,
) -> Tuple[IterationStats, LocalEnvironment]:
    """
    Run one growth iteration in place.

    Returns
    -------
    stats : IterationStats
        Counters for the iteration
    local : LocalEnvironment
        Bud records the fates were decided on
    """
    stats = IterationStats(iteration=iteration)
    stats.points_removed = clear_occupancy_zones(root, environment, policy.occupancy_radius)

    local = calculate_local_environment(root, environment, policy, rng)
    stats.root_resource = local.root_resource

    determine_bud_fates(root, local, policy, environment.bud_ids, rng, stats)
    update_branch_widths(root, policy.base_branch_width)

    stats.points_remaining = environment.point_count
    return stats, local


def grow_tree(
    policy: "SeedStructure",
    disable_progress: bool = True,
) -> GrowthResult:
    """
    Grow a tree from a seed configuration.

    Parameters
    ----------
    policy : SeedStructure
        Growth configuration
    disable_progress : bool
        Hide the per-iteration progress bar

    Returns
    -------
    GrowthResult
        Root of the growth graph, the consumed environment and per-iteration
        statistics

    Raises
    ------
    ValueError
        If the configuration is invalid
    """
    errors = policy.validate()
    if errors:
        raise ValueError(f"Invalid SeedStructure: {'; '.join(errors)}")

    environment = generate_environment(
        seed=policy.seed,
        size=policy.environment_size,
        count=policy.environment_points_count,
        shape=policy.environment_shape,
    )
    rng = np.random.default_rng(policy.seed)
    root = create_seedling(policy, environment.bud_ids)

    iterations: List[IterationStats] = []
    pbar = tqdm(total=policy.iterations_count, desc="Tree growth", unit="iter", disable=disable_progress)
    for i in range(policy.iterations_count):
        stats, _ = run_growth_iteration(root, environment, policy, rng, iteration=i)
        iterations.append(stats)
        logger.debug(
            f"Iteration {i}: {stats.shoots_started} shoots, "
            f"{stats.metamers_created} metamers, {stats.buds_pruned} pruned, "
            f"{stats.points_remaining} points left"
        )
        pbar.update(1)
        pbar.set_postfix(buds=environment.number_of_buds, points=environment.point_count)
    pbar.close()

    check_graph_invariants(root, environment.bud_ids)

    result = GrowthResult(root=root, environment=environment, iterations=iterations)
    logger.info(
        f"Grew tree (seed={policy.seed}) in {policy.iterations_count} iterations: "
        f"{result.live_node_count} live metamers, {result.bud_count} buds"
    )
    return result


__all__ = [
    "IterationStats",
    "GrowthResult",
    "create_seedling",
    "highest_tree_vigor",
    "blend_growth_direction",
    "extend_shoot",
    "determine_bud_fates",
    "update_branch_widths",
    "run_growth_iteration",
    "grow_tree",
]
