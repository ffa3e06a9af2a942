"""
Mesh policies for arbor.

This module contains the policies that control skeleton smoothing and tube
mesh synthesis.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional


@dataclass
class SmoothingPolicy:
    """
    Policy for skeleton subdivision before meshing.

    JSON Schema:
    {
        "enabled": bool,
        "subdivisions": int (points inserted per edge)
    }
    """
    enabled: bool = False
    subdivisions: int = 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SmoothingPolicy":
        return SmoothingPolicy(**{k: v for k, v in d.items() if k in SmoothingPolicy.__dataclass_fields__})

    def validate(self) -> List[str]:
        errors = []
        if self.subdivisions < 0:
            errors.append(f"subdivisions must be >= 0, got {self.subdivisions}")
        return errors


@dataclass
class MeshSynthesisPolicy:
    """
    Policy for tube mesh synthesis from a tree skeleton.

    JSON Schema:
    {
        "segments_per_circle": int,
        "cap_ends": bool,
        "min_width": float (world units) | null
    }

    ``cap_ends`` closes the root ring and every leaf ring with a triangle fan.
    ``min_width`` clamps ring radii from below when set.
    """
    segments_per_circle: int = 16
    cap_ends: bool = False
    min_width: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "MeshSynthesisPolicy":
        return MeshSynthesisPolicy(**{k: v for k, v in d.items() if k in MeshSynthesisPolicy.__dataclass_fields__})

    def validate(self) -> List[str]:
        errors = []
        if self.segments_per_circle < 3:
            errors.append(f"segments_per_circle must be >= 3, got {self.segments_per_circle}")
        if self.min_width is not None and self.min_width < 0:
            errors.append(f"min_width must be >= 0, got {self.min_width}")
        return errors


__all__ = ["SmoothingPolicy", "MeshSynthesisPolicy"]
