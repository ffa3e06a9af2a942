"""
Bud identifier allocation.
"""


class BudIdAllocator:
    """
    Dense, strictly increasing bud identifier counter.

    Identifiers start at 0 and are handed out in creation order. The allocator
    is an explicit object threaded through every call that creates a bud.
    """

    def __init__(self) -> None:
        self._next_id = 0

    def next_id(self) -> int:
        bud_id = self._next_id
        self._next_id += 1
        return bud_id

    @property
    def count(self) -> int:
        """Number of identifiers handed out so far."""
        return self._next_id

    def __repr__(self) -> str:
        return f"BudIdAllocator(count={self._next_id})"


__all__ = ["BudIdAllocator"]
