"""
Export utilities for generated trees.

This module provides standardized functions for saving meshes, skeletons,
reports and other artifacts with consistent naming conventions.

UNIT CONVENTIONS
----------------
Files are written in WORLD UNITS; no scaling is applied.
"""

from typing import Optional, Dict, Any, Union, TYPE_CHECKING
from pathlib import Path
import json
import time
import logging

from arbor_policies import OutputPolicy, OperationReport

from ..core.skeleton import TreeStructure

if TYPE_CHECKING:
    from ..ops.mesh.synthesis import TreeMesh
    from .generate import TreeGenerationResult

logger = logging.getLogger(__name__)


def make_run_dir(
    output_policy: Optional[OutputPolicy] = None,
    run_name: Optional[str] = None,
) -> Path:
    """
    Create a run directory for output artifacts.

    Parameters
    ----------
    output_policy : OutputPolicy, optional
        Policy controlling output location and naming
    run_name : str, optional
        Custom run name (overrides naming convention)

    Returns
    -------
    Path
        Path to the created run directory
    """
    if output_policy is None:
        output_policy = OutputPolicy()

    base_dir = Path(output_policy.output_dir)

    if run_name:
        run_dir = base_dir / run_name
    elif output_policy.naming_convention == "timestamped":
        timestamp = time.strftime("%Y%m%d_%H%M%S")
        run_dir = base_dir / f"run_{timestamp}"
    else:
        run_dir = base_dir / "run"

    run_dir.mkdir(parents=True, exist_ok=True)

    return run_dir


def save_mesh(
    mesh: "TreeMesh",
    rel_path: Optional[str] = None,
    output_policy: Optional[OutputPolicy] = None,
    run_dir: Optional[Path] = None,
) -> Path:
    """
    Save a tree mesh to file through trimesh.

    Parameters
    ----------
    mesh : TreeMesh
        Mesh to save
    rel_path : str, optional
        Relative path within run directory. Defaults to
        ``tree.<mesh_format>``; the suffix selects the file type.
    output_policy : OutputPolicy, optional
        Policy controlling output format and location
    run_dir : Path, optional
        Run directory (created if not provided)

    Returns
    -------
    Path
        Path to the saved file
    """
    if output_policy is None:
        output_policy = OutputPolicy()

    if run_dir is None:
        run_dir = make_run_dir(output_policy)

    if rel_path is None:
        rel_path = f"tree.{output_policy.mesh_format}"

    output_path = run_dir / rel_path
    output_path.parent.mkdir(parents=True, exist_ok=True)

    mesh.to_trimesh().export(str(output_path))
    logger.info(f"Saved mesh to {output_path}")

    return output_path


def write_json(
    data: Union[Dict[str, Any], OperationReport],
    rel_path: str,
    output_policy: Optional[OutputPolicy] = None,
    run_dir: Optional[Path] = None,
) -> Path:
    """
    Write JSON data to file.

    Parameters
    ----------
    data : dict or OperationReport
        Data to write (converted to dict if OperationReport)
    rel_path : str
        Relative path within run directory (e.g., "report.json")
    output_policy : OutputPolicy, optional
        Policy controlling output location
    run_dir : Path, optional
        Run directory (created if not provided)

    Returns
    -------
    Path
        Path to the saved file
    """
    if output_policy is None:
        output_policy = OutputPolicy()

    if run_dir is None:
        run_dir = make_run_dir(output_policy)

    output_path = run_dir / rel_path
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if hasattr(data, 'to_dict'):
        data = data.to_dict()

    with open(output_path, 'w') as f:
        json.dump(data, f, indent=2, default=str)

    logger.info(f"Saved JSON to {output_path}")

    return output_path


def save_skeleton(
    skeleton: TreeStructure,
    rel_path: str = "skeleton.json",
    output_policy: Optional[OutputPolicy] = None,
    run_dir: Optional[Path] = None,
) -> Path:
    """
    Save a skeleton as a flat JSON node list.

    See ``TreeStructure.to_dict`` for the layout.
    """
    return write_json(skeleton.to_dict(), rel_path, output_policy=output_policy, run_dir=run_dir)


def export_all(
    result: "TreeGenerationResult",
    output_policy: Optional[OutputPolicy] = None,
    run_name: Optional[str] = None,
) -> Dict[str, Path]:
    """
    Export every artifact of a generation run.

    Returns
    -------
    dict
        Artifact name ("mesh", "skeleton", "report") -> written path
    """
    if output_policy is None:
        output_policy = OutputPolicy()

    run_dir = make_run_dir(output_policy, run_name)
    paths = {"mesh": save_mesh(result.mesh, output_policy=output_policy, run_dir=run_dir)}

    if output_policy.save_skeleton:
        paths["skeleton"] = save_skeleton(result.skeleton, output_policy=output_policy, run_dir=run_dir)
    if output_policy.save_reports:
        paths["report"] = write_json(result.report, "report.json", output_policy=output_policy, run_dir=run_dir)

    return paths


__all__ = ["make_run_dir", "save_mesh", "write_json", "save_skeleton", "export_all"]
