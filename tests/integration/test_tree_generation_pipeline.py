"""
Integration tests for the full generation pipeline.

This module validates growth -> finalization -> smoothing -> meshing
end to end, including determinism for identical seeds.
"""

import json

import numpy as np
import pytest

from arbor import generate_tree, grow_skeleton
from arbor.analysis import pipe_model_residual
from arbor_policies import MeshSynthesisPolicy, SeedStructure, SmoothingPolicy, TreeIdentity

SMALL = dict(environment_size=20.0, environment_points_count=5000, iterations_count=4)


class TestTypicalGrowth:
    """Default configuration: seed 0, 5 iterations, 100000 points in a 40-unit cube."""

    @pytest.fixture(scope="class")
    def grown(self):
        return grow_skeleton(SeedStructure(seed=0))

    def test_tree_has_descendants(self, grown):
        skeleton, _ = grown
        assert skeleton.depth >= 1
        assert skeleton.root.main_branch is not None

    def test_root_is_wider_than_base(self, grown):
        skeleton, _ = grown
        assert skeleton.root.width > SeedStructure().base_branch_width

    def test_widths_follow_pipe_model(self, grown):
        skeleton, _ = grown
        assert pipe_model_residual(skeleton, SeedStructure().base_branch_width) <= 1e-4

    def test_report(self, grown):
        skeleton, report = grown
        assert report.operation == "grow_skeleton"
        assert report.success
        assert len(report.metadata["iterations"]) == 5
        assert report.metadata["skeleton"]["node_count"] == skeleton.node_count
        json.dumps(report.to_dict())


class TestDeterminism:
    """Identical seed and configuration reproduce identical output."""

    def test_same_seed_identical_output(self):
        structure = SeedStructure(seed=11, **SMALL)
        first = generate_tree(structure)
        second = generate_tree(structure)

        assert first.skeleton.to_dict() == second.skeleton.to_dict()
        np.testing.assert_array_equal(first.mesh.vertices, second.mesh.vertices)
        np.testing.assert_array_equal(first.mesh.normals, second.mesh.normals)
        np.testing.assert_array_equal(first.mesh.faces, second.mesh.faces)

    def test_different_seed_different_tree(self):
        first = generate_tree(SeedStructure(seed=11, **SMALL))
        second = generate_tree(SeedStructure(seed=12, **SMALL))
        assert first.skeleton.to_dict() != second.skeleton.to_dict()


class TestGenerateTree:
    """Tests for the one-call API."""

    def test_accepts_identity(self):
        result = generate_tree(
            TreeIdentity(seed=3),
            smoothing_policy=SmoothingPolicy(enabled=False),
        )
        assert result.report.requested_policy["seed_structure"]["seed"] == 3
        assert result.mesh.triangle_count == 32 * (result.skeleton.node_count - 1)

    def test_accepts_bare_seed(self):
        result = generate_tree(5, mesh_policy=MeshSynthesisPolicy(segments_per_circle=8))
        assert result.report.requested_policy["seed_structure"]["seed"] == 5
        assert result.mesh.triangle_count == 16 * (result.skeleton.node_count - 1)

    def test_rejects_unknown_input(self):
        with pytest.raises(TypeError):
            generate_tree("oak")

    def test_smoothing_adds_mesh_rings(self):
        structure = SeedStructure(seed=11, **SMALL)
        plain = generate_tree(structure)
        smooth = generate_tree(structure, smoothing_policy=SmoothingPolicy(enabled=True, subdivisions=2))

        edges = plain.skeleton.node_count - 1
        assert smooth.skeleton.to_dict() == plain.skeleton.to_dict()
        assert smooth.report.metadata["smoothed_node_count"] == plain.skeleton.node_count + 2 * edges
        exported = smooth.report.to_dict()["metadata"]
        assert exported["smoothed_node_count"] == smooth.report.metrics["smoothed_node_count"]
        assert exported["face_count"] == smooth.mesh.triangle_count
        assert smooth.mesh.triangle_count == 3 * plain.mesh.triangle_count

    def test_mesh_exports_to_trimesh(self):
        result = generate_tree(SeedStructure(seed=11, **SMALL), mesh_policy=MeshSynthesisPolicy(cap_ends=True))
        tm = result.mesh.to_trimesh()
        assert len(tm.vertices) == result.mesh.vertex_count
        assert len(tm.faces) == result.mesh.triangle_count

    def test_report_is_json_serializable(self):
        result = generate_tree(SeedStructure(seed=11, **SMALL))
        data = json.loads(json.dumps(result.report.to_dict()))
        assert data["operation"] == "generate_tree"
        assert data["metadata"]["face_count"] == result.mesh.triangle_count

    def test_invalid_structure_raises(self):
        with pytest.raises(ValueError):
            generate_tree(SeedStructure(internode_length=-1.0))
