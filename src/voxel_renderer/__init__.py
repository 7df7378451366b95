"""
Voxel Renderer
==============

Renders MagicaVoxel (.vox) models to pixel art sprites.

Every model is drawn from up to six sides in five projection styles, from
flat orthographic faces to 22.5 degree isometric views. Each voxel becomes a
small flat-shaded stamp, and voxels are painted farthest to nearest so nearer
ones cover the ones behind them.

Key Features:
- Multi-model .vox reading with the MagicaVoxel default palette fallback
- Face, 45, 45 iso, 22.5 and 22.5 iso views from top, front, left, right,
  back and bottom
- Canvases sized exactly to each sprite's projected extent
- Non-destructive depth sorting, safe for repeated renders
- Numba JIT stamp painting

Example Usage:
    from voxel_renderer import VoxRenderer, RenderOptions, Side, View

    renderer = VoxRenderer.from_file("castle.vox")
    sprite = renderer.render(0, Side.FRONT, View.FORTY_FIVE_ISO)
    renderer.render_all(RenderOptions(output="sprites"))
"""

__version__ = "1.0.0"
__author__ = "Voxel Renderer Team"

from .renderer import VoxRenderer, RenderOptions, output_name
from .projection import Side, View, Size, project
from .compositor import Stamp, STAMPS, canvas_size, composite
from .color import Palette, default_palette
from .vox import VoxData, VoxModel, load_vox, save_vox

__all__ = [
    "VoxRenderer",
    "RenderOptions",
    "output_name",
    "Side",
    "View",
    "Size",
    "project",
    "Stamp",
    "STAMPS",
    "canvas_size",
    "composite",
    "Palette",
    "default_palette",
    "VoxData",
    "VoxModel",
    "load_vox",
    "save_vox",
]
