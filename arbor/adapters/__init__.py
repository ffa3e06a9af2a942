"""Adapters from arbor skeletons to third-party graph representations."""

from .networkx_adapter import to_networkx_graph

__all__ = ["to_networkx_graph"]
