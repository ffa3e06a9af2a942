"""
Unit tests for the growth engine.

Tests verify:
- a seedling without resource points never grows
- shoot extension builds straight chains with dense bud ids
- self-pruning sheds weak shoots
- fates only ever move forward across iterations
- pipe-model widths
"""

import numpy as np
import pytest

from arbor_policies import SeedStructure
from arbor.core import (
    BudFate,
    BudIdAllocator,
    GrowthInvariantError,
    new_metamer,
    iter_all_buds,
    iter_live_nodes,
    check_graph_invariants,
)
from arbor.core.graph import ALLOWED_TRANSITIONS
from arbor.ops.environment import Environment, generate_environment
from arbor.ops.growth import (
    create_seedling,
    blend_growth_direction,
    extend_shoot,
    determine_bud_fates,
    update_branch_widths,
    run_growth_iteration,
    grow_tree,
)
from arbor.ops.local_environment import BudLocalEnvironment, LocalEnvironment

UP = np.array([0.0, 1.0, 0.0])
X = np.array([1.0, 0.0, 0.0])

SMALL = dict(environment_size=20.0, environment_points_count=5000)


def make_local(count, **records):
    """LocalEnvironment with default records and the given overrides by bud id."""
    buds = [BudLocalEnvironment(optimal_growth_direction=UP.copy()) for _ in range(count)]
    for bud_id, values in records.items():
        for key, value in values.items():
            setattr(buds[int(bud_id.lstrip("b"))], key, value)
    return LocalEnvironment(buds=buds)


class TestSeedling:
    """Tests for the initial tree."""

    def test_seedling_buds(self):
        ids = BudIdAllocator()
        root = create_seedling(SeedStructure(), ids)
        np.testing.assert_allclose(root.position, [0, 0, 0])
        assert root.width == pytest.approx(0.05)
        assert root.main_bud.fate is BudFate.DORMANT
        np.testing.assert_allclose(root.main_bud.direction, UP)
        assert root.axillary_bud.fate is BudFate.DEAD
        assert (root.main_bud.bud_id, root.axillary_bud.bud_id) == (0, 1)
        assert ids.count == 2

    def test_no_resource_no_growth(self):
        """seed 0, one iteration, no environment points: the root bud stays dormant."""
        policy = SeedStructure(seed=0, iterations_count=1, environment_points_count=0)
        result = grow_tree(policy)
        assert result.root.main_bud.fate is BudFate.DORMANT
        assert result.root.main_bud.child is None
        assert result.bud_count == 2
        assert result.iterations[0].shoots_started == 0
        assert result.root.width == pytest.approx(policy.base_branch_width)

    def test_invalid_policy_raises(self):
        with pytest.raises(ValueError, match="shadow_base"):
            grow_tree(SeedStructure(shadow_base=1.0))


class TestShootExtension:
    """Tests for blend_growth_direction and extend_shoot."""

    def test_blend_without_tropism(self):
        policy = SeedStructure(tropism_weight=0.0)
        direction = blend_growth_direction(UP, X, policy)
        expected = 0.5 * UP + 0.35 * X
        np.testing.assert_allclose(direction, expected / np.linalg.norm(expected))

    def test_tropism_parallel_to_current_has_no_effect(self):
        policy = SeedStructure(tropism_angle=0.0, tropism_weight=10.0)
        np.testing.assert_allclose(blend_growth_direction(UP, UP, policy), UP)

    def test_tropism_bends_towards_tilt(self):
        policy = SeedStructure(tropism_angle=np.pi / 2, tropism_weight=1.0)
        direction = blend_growth_direction(UP, UP, policy)
        assert direction[0] > 0
        assert np.linalg.norm(direction) == pytest.approx(1.0)

    def test_degenerate_blend_keeps_current(self):
        policy = SeedStructure(current_direction_weight=0.0, optimal_growth_direction_weight=0.0, tropism_weight=0.0)
        np.testing.assert_allclose(blend_growth_direction(X, UP, policy), X)

    def test_straight_chain(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        created = extend_shoot(root, root.main_bud, 3, UP, policy, ids, np.random.default_rng(0))

        assert created == 3
        chain = [node for node, _, _ in iter_live_nodes(root)]
        assert len(chain) == 4
        for i, node in enumerate(chain):
            np.testing.assert_allclose(node.position, [0, i, 0], atol=1e-12)
        assert [node.main_bud.bud_id for node in chain[1:]] == [2, 4, 6]
        assert [node.axillary_bud.bud_id for node in chain[1:]] == [3, 5, 7]
        assert chain[-1].main_bud.is_dormant
        assert all(node.main_bud.is_shoot for node in chain[:-1])
        check_graph_invariants(root, ids)

    def test_axillary_directions_inside_lateral_cone(self):
        policy = SeedStructure(lateral_branching_angle=0.7)
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        extend_shoot(root, root.main_bud, 5, UP, policy, ids, np.random.default_rng(1))
        for node, _, depth in iter_live_nodes(root):
            if depth == 0:
                continue
            axillary = node.axillary_bud.direction
            assert np.linalg.norm(axillary) == pytest.approx(1.0)
            assert np.arccos(np.clip(np.dot(axillary, UP), -1, 1)) <= 0.7 + 1e-9

    def test_zero_length_is_rejected(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        with pytest.raises(GrowthInvariantError):
            extend_shoot(root, root.main_bud, 0, UP, policy, ids, np.random.default_rng(0))


class TestBudFates:
    """Tests for the fate state machine on hand-built local environments."""

    def test_vigorous_bud_grows_max_shoot_length(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        local = make_local(2, b0=dict(resource=2.0, associated_points=4))
        stats = determine_bud_fates(root, local, policy, ids, np.random.default_rng(0))
        assert stats.shoots_started == 1
        assert stats.metamers_created == 3
        assert stats.highest_vigor == pytest.approx(2.0)

    def test_weaker_bud_grows_proportionally_shorter(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = new_metamer([0, 0, 0], UP, UP, 0.05, ids)
        local = make_local(
            2,
            b0=dict(resource=3.0, associated_points=1),
            b1=dict(resource=1.5, associated_points=1),
        )
        determine_bud_fates(root, local, policy, ids, np.random.default_rng(0))
        main_chain = sum(1 for node, _, _ in iter_live_nodes(root.main_bud.child))
        axillary_chain = sum(1 for node, _, _ in iter_live_nodes(root.axillary_bud.child))
        assert main_chain == 3
        assert axillary_chain == 1

    def test_low_resource_stays_dormant(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        local = make_local(2, b0=dict(resource=0.9, associated_points=10))
        determine_bud_fates(root, local, policy, ids, np.random.default_rng(0))
        assert root.main_bud.is_dormant

    def test_no_associated_points_stays_dormant(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        local = make_local(2, b0=dict(resource=5.0, associated_points=0))
        determine_bud_fates(root, local, policy, ids, np.random.default_rng(0))
        assert root.main_bud.is_dormant
        assert ids.count == 2

    def test_weak_shoot_is_pruned(self):
        policy = SeedStructure(branch_self_pruning=0.05)
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        child = new_metamer([0, 1, 0], UP, X, 0.05, ids)
        root.main_bud.shoot(child)
        local = make_local(4, b0=dict(resource=0.01, subtree_size=1))

        stats = determine_bud_fates(root, local, policy, ids, np.random.default_rng(0))

        assert stats.buds_pruned == 1
        assert root.main_bud.is_dead
        assert root.main_bud.pruned_child is child
        assert [node for node, _, _ in iter_live_nodes(root)] == [root]
        check_graph_invariants(root, ids)

    def test_healthy_shoot_recurses_into_child(self):
        policy = SeedStructure()
        ids = BudIdAllocator()
        root = create_seedling(policy, ids)
        child = new_metamer([0, 1, 0], UP, X, 0.05, ids)
        root.main_bud.shoot(child)
        local = make_local(
            4,
            b0=dict(resource=3.0, subtree_size=1),
            b2=dict(resource=2.0, associated_points=3),
        )
        stats = determine_bud_fates(root, local, policy, ids, np.random.default_rng(0))
        assert root.main_bud.is_shoot
        assert child.main_bud.is_shoot
        assert stats.metamers_created == 3


class TestBranchWidths:
    """Tests for pipe-model widths."""

    def test_pipe_model(self):
        base = 0.05
        ids = BudIdAllocator()
        root = new_metamer([0, 0, 0], UP, UP, 1.0, ids)
        a = new_metamer([0, 1, 0], UP, X, 1.0, ids)
        b = new_metamer([1, 1, 0], X, UP, 1.0, ids)
        c = new_metamer([0, 2, 0], UP, X, 1.0, ids)
        root.main_bud.shoot(a)
        root.axillary_bud.shoot(b)
        a.main_bud.shoot(c)

        update_branch_widths(root, base)

        assert b.width == pytest.approx(base)
        assert c.width == pytest.approx(base)
        assert a.width == pytest.approx(base)
        assert root.width == pytest.approx(np.sqrt(2) * base)

    def test_dead_children_count_zero(self):
        ids = BudIdAllocator()
        root = new_metamer([0, 0, 0], UP, UP, 1.0, ids)
        a = new_metamer([0, 1, 0], UP, X, 1.0, ids)
        b = new_metamer([1, 1, 0], X, UP, 1.0, ids)
        root.main_bud.shoot(a)
        root.axillary_bud.shoot(b)
        root.axillary_bud.kill()
        update_branch_widths(root, 0.05)
        assert root.width == pytest.approx(0.05)


class TestGrowthLoop:
    """Tests over several real iterations."""

    def test_fates_only_move_forward(self):
        policy = SeedStructure(seed=5, **SMALL)
        env = generate_environment(policy.seed, policy.environment_size, policy.environment_points_count)
        rng = np.random.default_rng(policy.seed)
        root = create_seedling(policy, env.bud_ids)

        history = {}
        for iteration in range(6):
            run_growth_iteration(root, env, policy, rng, iteration=iteration)
            for bud in iter_all_buds(root):
                previous = history.get(bud.bud_id)
                if previous is not None and previous is not bud.fate:
                    assert bud.fate in ALLOWED_TRANSITIONS[previous]
                history[bud.bud_id] = bud.fate

        assert len(history) == env.number_of_buds

    def test_ids_are_dense(self):
        result = grow_tree(SeedStructure(seed=2, iterations_count=4, **SMALL))
        ids = sorted(bud.bud_id for bud in iter_all_buds(result.root))
        assert ids == list(range(result.bud_count))

    def test_tree_grows_and_consumes_points(self):
        policy = SeedStructure(seed=2, iterations_count=4, **SMALL)
        result = grow_tree(policy)
        assert result.live_node_count > 1
        assert result.environment.point_count < policy.environment_points_count
        assert len(result.iterations) == 4
        assert result.iterations[0].metamers_created == 3

    def test_iteration_stats_serialize(self):
        result = grow_tree(SeedStructure(seed=2, iterations_count=2, **SMALL))
        stats = result.iterations[0].to_dict()
        assert stats["iteration"] == 0
        assert set(stats) >= {"points_removed", "shoots_started", "metamers_created", "buds_pruned"}
