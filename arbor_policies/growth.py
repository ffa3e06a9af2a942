"""
Growth policies for arbor.

This module contains the tree identity record supplied by the host and the
SeedStructure that parameterizes one growth run. All policies are
JSON-serializable.

UNIT CONVENTIONS
----------------
Angles are in RADIANS, distances in WORLD UNITS, weights and coefficients
are dimensionless.
"""

from dataclasses import dataclass, asdict, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Union
import json
import math

from .base import alias_fields, coerce_float

# Field aliases for backward compatibility
SEED_STRUCTURE_ALIASES = {
    "maximum_shoot_lenght": "maximum_shoot_length",
    "environment_points": "environment_points_count",
    "iterations": "iterations_count",
}

MAX_SEED = 2**64


class TreeKind(str, Enum):
    BIRCH = "birch"
    OAK = "oak"


@dataclass(frozen=True)
class TreeIdentity:
    """
    Identity record of a tree as known by the host.

    Only ``seed`` drives the growth algorithm; the remaining fields are
    carried for the host and reserved for future parameterization.
    """
    seed: int = 0
    name: str = "John"
    health: int = 5
    kind: TreeKind = TreeKind.OAK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "seed": self.seed,
            "name": self.name,
            "health": self.health,
            "kind": self.kind.value,
        }

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "TreeIdentity":
        return TreeIdentity(
            seed=int(d.get("seed", 0)),
            name=d.get("name", "John"),
            health=int(d.get("health", 5)),
            kind=TreeKind(d.get("kind", TreeKind.OAK.value)),
        )


@dataclass(frozen=True)
class SeedStructure:
    """
    Immutable configuration of one tree growth run.

    JSON Schema:
    {
        "seed": int (0 <= seed < 2**64),

        # Branching
        "main_branching_angle": float (radians),
        "lateral_branching_angle": float (radians),
        "apical_dominance": float in [0, 1],
        "maximum_shoot_length": float,

        # Resource model
        "bud_light_sensitivity": float,
        "branch_self_pruning": float,
        "resource_coef": float,
        "full_light_exposure": float,

        # Direction blending
        "tropism_angle": float (radians),
        "tropism_weight": float,
        "current_direction_weight": float,
        "optimal_growth_direction_weight": float,

        # Perception and occupancy
        "bud_perception_angle": float (radians),
        "bud_perception_distance_coef": float,
        "occupancy_radius_coef": float,
        "internode_length": float,

        # Shadow
        "shadow_cone_angle": float (radians),
        "shadow_coef": float,
        "shadow_base": float (> 1),
        "shadow_depth": float,

        # Geometry
        "base_branch_width": float,

        # Environment
        "environment_size": float,
        "environment_shape": "cube" | "half_space",
        "environment_points_count": int,
        "iterations_count": int
    }
    """
    seed: int = 0

    main_branching_angle: float = 0.0
    lateral_branching_angle: float = 0.7
    apical_dominance: float = 0.55
    maximum_shoot_length: float = 3.0

    bud_light_sensitivity: float = 1.0
    branch_self_pruning: float = 0.05
    resource_coef: float = 2.0
    full_light_exposure: float = 1.0

    tropism_angle: float = 0.0
    tropism_weight: float = 0.15
    current_direction_weight: float = 0.5
    optimal_growth_direction_weight: float = 0.35

    bud_perception_angle: float = 0.8
    bud_perception_distance_coef: float = 4.0
    occupancy_radius_coef: float = 2.0
    internode_length: float = 1.0

    # Shadow decrement at distance d is shadow_coef * shadow_base ** (-d)
    shadow_cone_angle: float = 0.785
    shadow_coef: float = 0.2
    shadow_base: float = 2.0
    shadow_depth: float = 6.0

    base_branch_width: float = 0.05

    environment_size: float = 40.0
    environment_shape: Literal["cube", "half_space"] = "cube"
    environment_points_count: int = 100_000
    iterations_count: int = 5

    @property
    def perception_radius(self) -> float:
        return self.bud_perception_distance_coef * self.internode_length

    @property
    def occupancy_radius(self) -> float:
        return self.occupancy_radius_coef * self.internode_length

    @property
    def tropism_direction(self) -> tuple:
        """Unit tropism vector, tilted from +Y toward +X by ``tropism_angle``."""
        return (math.sin(self.tropism_angle), math.cos(self.tropism_angle), 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "SeedStructure":
        """Create from dictionary. Unknown keys are ignored."""
        d = alias_fields(d, SEED_STRUCTURE_ALIASES)
        kwargs: Dict[str, Any] = {}
        for f in fields(SeedStructure):
            if f.name not in d:
                continue
            value = d[f.name]
            if f.name in ("seed", "environment_points_count", "iterations_count"):
                kwargs[f.name] = int(value)
            elif f.name == "environment_shape":
                kwargs[f.name] = str(value)
            else:
                kwargs[f.name] = coerce_float(value, f.default)
        return SeedStructure(**kwargs)

    @staticmethod
    def from_json(path: Union[str, Path]) -> "SeedStructure":
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return SeedStructure.from_dict(data)

    @staticmethod
    def from_tree_identity(identity: TreeIdentity) -> "SeedStructure":
        """Derive the growth configuration for a tree identity."""
        return SeedStructure(seed=identity.seed, iterations_count=5)

    def with_overrides(self, **overrides: Any) -> "SeedStructure":
        return replace(self, **overrides)

    def validate(self) -> List[str]:
        """
        Validate policy parameters.

        Returns
        -------
        List[str]
            List of validation error messages (empty if valid)
        """
        errors = []

        if not 0 <= self.seed < MAX_SEED:
            errors.append(f"seed must be in [0, 2**64), got {self.seed}")

        for name in ("main_branching_angle", "lateral_branching_angle"):
            value = getattr(self, name)
            if not 0.0 <= value <= math.pi:
                errors.append(f"{name} must be in [0, pi], got {value}")

        for name in ("bud_perception_angle", "shadow_cone_angle"):
            value = getattr(self, name)
            if not 0.0 < value <= math.pi:
                errors.append(f"{name} must be in (0, pi], got {value}")

        if not 0.0 <= self.apical_dominance <= 1.0:
            errors.append(f"apical_dominance must be in [0, 1], got {self.apical_dominance}")

        for name in (
            "maximum_shoot_length",
            "internode_length",
            "bud_perception_distance_coef",
            "base_branch_width",
            "environment_size",
        ):
            value = getattr(self, name)
            if value <= 0:
                errors.append(f"{name} must be > 0, got {value}")

        for name in (
            "bud_light_sensitivity",
            "branch_self_pruning",
            "resource_coef",
            "full_light_exposure",
            "occupancy_radius_coef",
            "shadow_coef",
            "shadow_depth",
            "tropism_weight",
            "current_direction_weight",
            "optimal_growth_direction_weight",
        ):
            value = getattr(self, name)
            if value < 0:
                errors.append(f"{name} must be >= 0, got {value}")

        if self.shadow_base <= 1.0:
            errors.append(
                f"shadow_base must be > 1 so that shadow decays with distance, got {self.shadow_base}"
            )

        if self.environment_shape not in ("cube", "half_space"):
            errors.append(
                f"environment_shape must be 'cube' or 'half_space', got {self.environment_shape!r}"
            )

        if self.environment_points_count < 0:
            errors.append(
                f"environment_points_count must be >= 0, got {self.environment_points_count}"
            )

        if self.iterations_count < 0:
            errors.append(f"iterations_count must be >= 0, got {self.iterations_count}")

        return errors


__all__ = ["TreeKind", "TreeIdentity", "SeedStructure"]
