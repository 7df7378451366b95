#!/usr/bin/env python3
"""
Voxel Renderer Demo Script

This script demonstrates the full sprite rendering pipeline by:
1. Building synthetic voxel models (no external .vox files needed)
2. Saving them to a multi-model .vox file
3. Rendering every side and view of each model
4. Printing sprite sizes and timings

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voxel_renderer import VoxRenderer, RenderOptions, Side, View
from voxel_renderer.color import default_palette, pack_rgba
from voxel_renderer.vox import VoxData, VoxModel, save_vox


def create_test_model_house() -> VoxModel:
    """
    Create a small house: floor, walls, a door and a stepped roof.

    Palette indices 1-4 are overwritten in run_demo() with house colors.
    """
    voxels = []
    width, depth, wall_height = 8, 6, 5

    for z in range(wall_height):
        for x in range(width):
            for y in range(depth):
                on_wall = x in (0, width - 1) or y in (0, depth - 1)
                is_door = y == 0 and x in (3, 4) and 0 < z < 3
                if on_wall and not is_door:
                    voxels.append((x, y, z, 3 if z == 0 else 1))
                elif z == 0:
                    voxels.append((x, y, z, 3))

    # Roof steps inward one voxel per layer
    for step in range(depth // 2):
        z = wall_height + step
        for x in range(width):
            for y in (step, depth - 1 - step):
                voxels.append((x, y, z, 2))

    return VoxModel((width, depth, wall_height + depth // 2), np.array(voxels))


def create_test_model_tree(height: int = 10) -> VoxModel:
    """
    Create a tree: a trunk with a roughly spherical crown.
    """
    size = 7
    cx = cy = size // 2
    trunk_height = height // 2
    voxels = [(cx, cy, z, 4) for z in range(trunk_height)]

    crown_cz = trunk_height + 1
    radius = 3
    for z in range(trunk_height - 1, height):
        for x in range(size):
            for y in range(size):
                dist = np.sqrt((x - cx) ** 2 + (y - cy) ** 2 + (z - crown_cz) ** 2)
                if dist <= radius and not (x == cx and y == cy and z < trunk_height):
                    voxels.append((x, y, z, 5))

    return VoxModel((size, size, height), np.array(voxels))


def create_test_model_staircase(steps: int = 6) -> VoxModel:
    """
    Create a staircase rising toward the back, one color per step.
    """
    voxels = []
    for step in range(steps):
        for x in range(3):
            for z in range(step + 1):
                voxels.append((x, step, z, 6 + step % 4))

    return VoxModel((3, steps, steps), np.array(voxels))


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Voxel Renderer - Demo")
    print("=" * 60)
    print()

    # Create output directory
    output_dir = Path(__file__).parent / "output"
    output_dir.mkdir(exist_ok=True)

    palette = default_palette()
    palette[0] = pack_rgba(196, 164, 132)   # walls
    palette[1] = pack_rgba(160, 40, 40)     # roof
    palette[2] = pack_rgba(110, 110, 110)   # floor
    palette[3] = pack_rgba(101, 67, 33)     # trunk
    palette[4] = pack_rgba(34, 139, 34)     # crown
    palette[5:9] = [pack_rgba(230, 200, 90), pack_rgba(90, 160, 230),
                    pack_rgba(230, 120, 90), pack_rgba(150, 90, 200)]

    models = [
        ("house", create_test_model_house()),
        ("tree", create_test_model_tree()),
        ("staircase", create_test_model_staircase()),
    ]

    vox_path = output_dir / "demo.vox"
    save_vox(VoxData([m for _, m in models], palette), vox_path)
    print(f"Saved: {vox_path}")

    renderer = VoxRenderer.from_file(vox_path)
    total_start = time.time()

    for index, (name, model) in enumerate(models):
        print(f"\n--- Rendering: {name} ---")
        print(f"Model size: {model.size}, {model.voxel_count} voxels")

        model_start = time.time()
        paths = renderer.render_all(RenderOptions(model=index, output=output_dir / name))
        model_time = time.time() - model_start

        for path in paths:
            print(f"    Saved: {path.name}")
        print(f"    Sprites: {len(paths)} in {model_time*1000:.1f}ms")

    total_time = time.time() - total_start

    print("\n" + "=" * 60)
    print(f"Demo complete! Total time: {total_time:.2f}s")
    print(f"Output files in: {output_dir}")
    print("=" * 60)

    return 0


def benchmark_rendering():
    """Benchmark rendering performance on solid cubes."""
    print("\n--- Rendering Benchmark ---\n")

    sizes = [16, 32, 64, 128]

    for size in sizes:
        # Create a solid cube
        coords = np.indices((size, size, size)).reshape(3, -1).T
        voxels = np.column_stack([coords, np.ones(len(coords), dtype=np.int64)])
        renderer = VoxRenderer(VoxData([VoxModel((size, size, size), voxels)]))

        print(f"Grid size: {size}x{size}x{size}")
        for view in View.all():
            start = time.time()
            sprite = renderer.render(0, Side.FRONT, view)
            elapsed = time.time() - start
            print(f"  {view.value:>8}: {elapsed*1000:.1f}ms, {sprite.shape[1]}x{sprite.shape[0]} px")
        print()


if __name__ == "__main__":
    run_demo()

    # Uncomment to run benchmark
    # benchmark_rendering()
