"""
Mutable growth graph: metamer nodes and their buds.

Ownership is a strict tree. Every MetamerNode owns exactly two buds (main and
axillary) and every Shoot bud owns exactly one child MetamerNode. All
traversals use explicit stacks so that deep trees do not hit the interpreter
recursion limit.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple
import numpy as np

from .ids import BudIdAllocator


class GrowthInvariantError(AssertionError):
    """Raised when the growth graph violates one of its structural invariants."""


class BudFate(str, Enum):
    DORMANT = "Dormant"
    SHOOT = "Shoot"
    DEAD = "Dead"


ALLOWED_TRANSITIONS: Dict[BudFate, FrozenSet[BudFate]] = {
    BudFate.DORMANT: frozenset({BudFate.SHOOT, BudFate.DEAD}),
    BudFate.SHOOT: frozenset({BudFate.DEAD}),
    BudFate.DEAD: frozenset(),
}


@dataclass(eq=False)
class Bud:
    """
    A growth point attached to a metamer.

    ``child`` is present exactly when the bud is a Shoot. A Shoot bud that is
    pruned keeps its former subtree in ``pruned_child``; that subtree is never
    traversed again.
    """

    direction: np.ndarray
    bud_id: int
    fate: BudFate = BudFate.DORMANT
    child: Optional["MetamerNode"] = field(default=None, repr=False)
    pruned_child: Optional["MetamerNode"] = field(default=None, repr=False)

    def _transition(self, fate: BudFate) -> None:
        if fate not in ALLOWED_TRANSITIONS[self.fate]:
            raise GrowthInvariantError(
                f"Bud {self.bud_id}: illegal fate transition {self.fate.value} -> {fate.value}"
            )
        self.fate = fate

    def shoot(self, child: "MetamerNode") -> None:
        """Turn a Dormant bud into a Shoot owning ``child``."""
        if child is None:
            raise GrowthInvariantError(f"Bud {self.bud_id}: a Shoot needs a child metamer")
        self._transition(BudFate.SHOOT)
        self.child = child

    def kill(self) -> None:
        """Mark the bud Dead, detaching (but keeping) any grown subtree."""
        self._transition(BudFate.DEAD)
        self.pruned_child = self.child
        self.child = None

    @property
    def is_dormant(self) -> bool:
        return self.fate is BudFate.DORMANT

    @property
    def is_shoot(self) -> bool:
        return self.fate is BudFate.SHOOT

    @property
    def is_dead(self) -> bool:
        return self.fate is BudFate.DEAD


@dataclass(eq=False)
class MetamerNode:
    """One structural growth unit: a node position, its width and two buds."""

    position: np.ndarray
    width: float
    main_bud: Bud
    axillary_bud: Bud

    @property
    def buds(self) -> Tuple[Bud, Bud]:
        return (self.main_bud, self.axillary_bud)

    def distance_to(self, point: np.ndarray) -> float:
        return float(np.linalg.norm(self.position - point))

    def live_children(self) -> List["MetamerNode"]:
        return [bud.child for bud in self.buds if bud.is_shoot]


def new_metamer(
    position: np.ndarray,
    main_direction: np.ndarray,
    axillary_direction: np.ndarray,
    width: float,
    ids: BudIdAllocator,
) -> MetamerNode:
    """
    Create a metamer with two fresh Dormant buds.

    The main bud is allocated its identifier before the axillary bud.
    """
    main_bud = Bud(direction=np.asarray(main_direction, dtype=float), bud_id=ids.next_id())
    axillary_bud = Bud(direction=np.asarray(axillary_direction, dtype=float), bud_id=ids.next_id())
    return MetamerNode(
        position=np.asarray(position, dtype=float),
        width=width,
        main_bud=main_bud,
        axillary_bud=axillary_bud,
    )


def iter_live_nodes(root: MetamerNode) -> Iterator[Tuple[MetamerNode, Optional[Bud], int]]:
    """
    Pre-order traversal of nodes reachable from ``root`` through Shoot buds.

    Yields
    ------
    (node, parent_bud, depth)
        ``parent_bud`` is the Shoot bud owning ``node`` (None for the root);
        main children are visited before axillary children.
    """
    stack: List[Tuple[MetamerNode, Optional[Bud], int]] = [(root, None, 0)]
    while stack:
        node, parent_bud, depth = stack.pop()
        yield node, parent_bud, depth
        for bud in (node.axillary_bud, node.main_bud):
            if bud.is_shoot:
                if bud.child is None:
                    raise GrowthInvariantError(f"Shoot bud {bud.bud_id} has no child metamer")
                stack.append((bud.child, bud, depth + 1))


def iter_live_buds(root: MetamerNode) -> Iterator[Tuple[MetamerNode, Bud]]:
    """Every bud of every live node, paired with the node that owns it."""
    for node, _, _ in iter_live_nodes(root):
        yield node, node.main_bud
        yield node, node.axillary_bud


def iter_all_buds(root: MetamerNode) -> Iterator[Bud]:
    """Every bud ever created under ``root``, including pruned subtrees."""
    stack = [root]
    while stack:
        node = stack.pop()
        for bud in node.buds:
            yield bud
            if bud.child is not None:
                stack.append(bud.child)
            if bud.pruned_child is not None:
                stack.append(bud.pruned_child)


def check_graph_invariants(root: MetamerNode, ids: BudIdAllocator) -> None:
    """
    Verify the structural invariants of a growth graph.

    Raises
    ------
    GrowthInvariantError
        If a Shoot bud lacks a child, a non-Shoot bud owns one, or the set of
        bud identifiers is not exactly ``{0, ..., ids.count - 1}``.
    """
    seen = set()
    for bud in iter_all_buds(root):
        if bud.bud_id in seen:
            raise GrowthInvariantError(f"Duplicate bud id {bud.bud_id}")
        seen.add(bud.bud_id)
        if bud.is_shoot and bud.child is None:
            raise GrowthInvariantError(f"Shoot bud {bud.bud_id} has no child metamer")
        if not bud.is_shoot and bud.child is not None:
            raise GrowthInvariantError(f"{bud.fate.value} bud {bud.bud_id} owns a child metamer")
    if seen != set(range(ids.count)):
        raise GrowthInvariantError(
            f"Bud ids are not dense: {len(seen)} buds for {ids.count} allocated ids"
        )


__all__ = [
    "GrowthInvariantError",
    "BudFate",
    "ALLOWED_TRANSITIONS",
    "Bud",
    "MetamerNode",
    "new_metamer",
    "iter_live_nodes",
    "iter_live_buds",
    "iter_all_buds",
    "check_graph_invariants",
]
