"""
Command-Line Interface

CLI for growing trees and exporting their meshes from the command line.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

from arbor_policies import (
    MeshSynthesisPolicy,
    OutputPolicy,
    SeedStructure,
    SmoothingPolicy,
)

from .api.export import export_all
from .api.generate import generate_tree


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="arbor-grow",
        description="Arbor - self-organizing procedural tree growth",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Grow a tree and export its mesh")
    gen_parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="JSON file with SeedStructure fields (command-line flags override it)",
    )
    gen_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Tree seed (default: 0)",
    )
    gen_parser.add_argument(
        "--iterations", "-n",
        type=int,
        default=None,
        help="Number of growth iterations (default: 5)",
    )
    gen_parser.add_argument(
        "--points",
        type=int,
        default=None,
        help="Number of environment resource points (default: 100000)",
    )
    gen_parser.add_argument(
        "--size",
        type=float,
        default=None,
        help="Edge length of the environment region (default: 40)",
    )
    gen_parser.add_argument(
        "--smooth",
        type=int,
        default=0,
        help="Points inserted per skeleton edge before meshing (default: 0)",
    )
    gen_parser.add_argument(
        "--segments", "-s",
        type=int,
        default=16,
        help="Vertices per mesh ring (default: 16)",
    )
    gen_parser.add_argument(
        "--cap-ends",
        action="store_true",
        help="Close the root and leaf rings",
    )
    gen_parser.add_argument(
        "--output", "-O",
        type=str,
        default="./output",
        help="Output directory (default: ./output)",
    )
    gen_parser.add_argument(
        "--run-name",
        type=str,
        default=None,
        help="Run directory name inside the output directory (default: run)",
    )
    gen_parser.add_argument(
        "--format", "-f",
        type=str,
        choices=["obj", "stl", "ply"],
        default="obj",
        help="Mesh file format (default: obj)",
    )

    # Config command
    subparsers.add_parser("show-config", help="Print the default SeedStructure as JSON")

    for p in (gen_parser,):
        p.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Enable verbose output",
        )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.command == "generate":
        return run_generate(args)
    elif args.command == "show-config":
        print(json.dumps(SeedStructure().to_dict(), indent=2))
        return 0
    return 1


def build_seed_structure(args) -> SeedStructure:
    """Merge the optional config file with command-line overrides."""
    seed_structure = SeedStructure.from_json(args.config) if args.config else SeedStructure()

    overrides = {}
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.iterations is not None:
        overrides["iterations_count"] = args.iterations
    if args.points is not None:
        overrides["environment_points_count"] = args.points
    if args.size is not None:
        overrides["environment_size"] = args.size

    return seed_structure.with_overrides(**overrides)


def run_generate(args) -> int:
    """Run the generate command."""
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        seed_structure = build_seed_structure(args)
    except (OSError, ValueError) as e:
        print(f"Error: could not load config {args.config}: {e}", file=sys.stderr)
        return 2

    output_policy = OutputPolicy(output_dir=args.output, mesh_format=args.format)
    mesh_policy = MeshSynthesisPolicy(segments_per_circle=args.segments, cap_ends=args.cap_ends)
    smoothing_policy = SmoothingPolicy(enabled=args.smooth > 0, subdivisions=max(args.smooth, 0))

    errors = []
    for name, policy in (
        ("SeedStructure", seed_structure),
        ("MeshSynthesisPolicy", mesh_policy),
        ("SmoothingPolicy", smoothing_policy),
        ("OutputPolicy", output_policy),
    ):
        errors.extend(f"{name}: {error}" for error in policy.validate())
    if errors:
        for error in errors:
            print(f"Error: {error}", file=sys.stderr)
        return 2

    print(
        f"Growing tree (seed={seed_structure.seed}, "
        f"{seed_structure.iterations_count} iterations, "
        f"{seed_structure.environment_points_count} points)..."
    )
    result = generate_tree(
        seed_structure,
        mesh_policy=mesh_policy,
        smoothing_policy=smoothing_policy,
        disable_progress=False,
    )
    paths = export_all(result, output_policy=output_policy, run_name=args.run_name)

    skeleton_metrics = result.report.metadata.get("skeleton", {})
    print(f"\nNodes: {skeleton_metrics.get('node_count')}")
    print(f"Leaves: {skeleton_metrics.get('leaf_count')}")
    print(f"Root width: {skeleton_metrics.get('root_width')}")
    print(f"Triangles: {result.mesh.triangle_count}")
    for name, path in paths.items():
        print(f"Saved {name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
