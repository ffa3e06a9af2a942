"""
Output policies for arbor.

Controls where generated meshes and reports are written.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Literal


@dataclass
class OutputPolicy:
    """
    Policy for output file generation.

    JSON Schema:
    {
        "output_dir": str,
        "mesh_format": "obj" | "stl" | "ply",
        "naming_convention": "default" | "timestamped",
        "save_reports": bool,
        "save_skeleton": bool
    }
    """
    output_dir: str = "./output"
    mesh_format: Literal["obj", "stl", "ply"] = "obj"
    naming_convention: Literal["default", "timestamped"] = "default"
    save_reports: bool = True
    save_skeleton: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(d: Dict[str, Any]) -> "OutputPolicy":
        return OutputPolicy(**{k: v for k, v in d.items() if k in OutputPolicy.__dataclass_fields__})

    def validate(self) -> List[str]:
        errors = []
        if self.mesh_format not in ("obj", "stl", "ply"):
            errors.append(f"mesh_format must be one of obj, stl, ply, got {self.mesh_format!r}")
        if self.naming_convention not in ("default", "timestamped"):
            errors.append(
                f"naming_convention must be 'default' or 'timestamped', got {self.naming_convention!r}"
            )
        return errors


__all__ = ["OutputPolicy"]
