"""
Unit tests for the resource point environment.
"""

import numpy as np
import pytest

from arbor.core import BudIdAllocator, new_metamer
from arbor.ops.environment import Environment, generate_environment, clear_occupancy_zones

UP = np.array([0.0, 1.0, 0.0])


class TestGenerateEnvironment:
    """Tests for seeded point scattering."""

    def test_cube_bounds_and_count(self):
        env = generate_environment(seed=0, size=40.0, count=5000)
        assert env.points.shape == (5000, 3)
        assert np.all(env.points >= -20.0)
        assert np.all(env.points <= 20.0)

    def test_half_space_is_above_ground(self):
        env = generate_environment(seed=0, size=10.0, count=2000, shape="half_space")
        assert np.all(env.points[:, 1] >= 0.0)
        assert np.all(env.points[:, 1] <= 10.0)
        assert np.all(np.abs(env.points[:, [0, 2]]) <= 5.0)

    def test_same_seed_same_points(self):
        a = generate_environment(seed=7, size=20.0, count=100)
        b = generate_environment(seed=7, size=20.0, count=100)
        np.testing.assert_array_equal(a.points, b.points)

    def test_different_seed_different_points(self):
        a = generate_environment(seed=7, size=20.0, count=100)
        b = generate_environment(seed=8, size=20.0, count=100)
        assert not np.array_equal(a.points, b.points)

    def test_empty_environment(self):
        env = generate_environment(seed=0, size=40.0, count=0)
        assert env.points.shape == (0, 3)
        assert env.point_count == 0

    def test_unknown_shape_raises(self):
        with pytest.raises(ValueError):
            generate_environment(seed=0, size=10.0, count=10, shape="sphere")

    def test_bud_counter_starts_empty(self):
        env = generate_environment(seed=0, size=10.0, count=10)
        assert env.number_of_buds == 0
        assert env.get_next_bud_id() == 0
        assert env.get_next_bud_id() == 1
        assert env.number_of_buds == 2


class TestOccupancy:
    """Tests for occupancy zone clearing."""

    def _env_with_root(self, points):
        env = Environment(points=np.array(points, dtype=float))
        root = new_metamer([0, 0, 0], UP, UP, 0.05, env.bud_ids)
        return env, root

    def test_removes_points_near_live_nodes(self):
        env, root = self._env_with_root([[0, 0.5, 0], [0, 5, 0], [1, 1, 0]])
        removed = clear_occupancy_zones(root, env, radius=2.0)
        assert removed == 2
        np.testing.assert_allclose(env.points, [[0, 5, 0]])

    def test_points_near_children_are_removed(self):
        env, root = self._env_with_root([[0, 5.5, 0], [0, 9, 0]])
        child = new_metamer([0, 5, 0], UP, UP, 0.05, env.bud_ids)
        root.main_bud.shoot(child)
        assert clear_occupancy_zones(root, env, radius=1.0) == 1
        np.testing.assert_allclose(env.points, [[0, 9, 0]])

    def test_pruned_nodes_do_not_occupy(self):
        env, root = self._env_with_root([[0, 5.5, 0]])
        child = new_metamer([0, 5, 0], UP, UP, 0.05, env.bud_ids)
        root.main_bud.shoot(child)
        root.main_bud.kill()
        assert clear_occupancy_zones(root, env, radius=1.0) == 0
        assert env.point_count == 1

    def test_empty_environment_is_noop(self):
        env, root = self._env_with_root(np.zeros((0, 3)))
        assert clear_occupancy_zones(root, env, radius=2.0) == 0
