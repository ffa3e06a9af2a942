"""Analysis of grown tree skeletons."""

from .metrics import compute_skeleton_metrics, pipe_model_residual

__all__ = ["compute_skeleton_metrics", "pipe_model_residual"]
