#!/usr/bin/env python3
"""
glTF Model Inspector

Loads a model the way an engine would and reports its geometry and
animation timeline.

Usage:
    python -m minegltf path/to/model.glb [--no-materials] [--verbose]
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

from .config import settings
from .errors import LoadError
from .loaders import load


def cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="minegltf",
        description="Load a glTF/GLB model and summarize its geometry and animation.",
    )
    parser.add_argument("model", help="Path to a .gltf or .glb file")
    parser.add_argument(
        "--no-materials",
        action="store_true",
        help="Skip decoding material textures.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log per-primitive and per-channel details.",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=settings.LOG_FORMAT)

    try:
        result = load(args.model, load_materials=not args.no_materials)
    except LoadError as e:
        print(f"ERROR: {e}")
        return 1

    model = result.model
    print(f"Model: {model.name}")
    print(f"   Primitives: {len(model.primitives)}")
    print(f"   Vertices: {model.vertex_count}")
    print(f"   Materials: {len(model.materials)}")
    print(f"   Bounding radius: {model.bounding_radius:.3f}")
    for primitive in model.primitives:
        print(f"     {primitive}")

    print(f"Animated: {result.is_animated}")
    if result.is_animated:
        player = result.create_player()
        print(f"   Bones: {len(result.bone_animations)}")
        print(f"   Frames: {player.frame_count} @ {player.frame_time:.4f}s")
        print(f"   Duration: {player.duration:.3f}s")

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI-compatible entry point."""
    return cli(argv)


if __name__ == "__main__":
    sys.exit(cli())
