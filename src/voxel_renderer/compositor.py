"""
Stamp Compositor with Numba JIT Compilation

Paints each projected voxel as a small multi-pixel, multi-shade stamp onto an
RGBA canvas sized to exactly fit the projection.

Algorithm Overview:
1. Canvas Sizing: max screen coordinate + stamp padding + 1 on each axis
2. Shading: look up each voxel's color once per shade level in its stamp
3. Painting: walk voxels farthest to nearest, overwriting pixels outright

There is no depth test and no blending. Occlusion comes entirely from the
paint order produced by the projection's depth key.
"""

from dataclasses import dataclass
from typing import Tuple
import numpy as np
from numba import njit

from .color import SHADE_DARK, SHADE_LIT, SHADE_SIDE, Palette
from .projection import Projection, View


@dataclass(frozen=True)
class Stamp:
    """
    Footprint painted for one voxel.

    Attributes:
        pixels: (dx, dy, darken) per painted pixel, relative to the voxel's
            screen position
        padding: (x_pad, y_pad) reserved past the largest screen coordinate
    """

    pixels: Tuple[Tuple[int, int, int], ...]
    padding: Tuple[int, int]

    def __post_init__(self):
        dx = max(p[0] for p in self.pixels)
        dy = max(p[1] for p in self.pixels)
        if dx > self.padding[0] or dy > self.padding[1]:
            raise ValueError(f"Stamp extends ({dx}, {dy}) past its padding {self.padding}")

    @property
    def shades(self) -> Tuple[int, ...]:
        """Distinct darkening amounts, in first-use order."""
        return tuple(dict.fromkeys(p[2] for p in self.pixels))

    def offsets(self) -> np.ndarray:
        """
        Stamp pixels as a kernel-ready array.

        Returns:
            Array of shape (K, 3) with (dx, dy, shade level) rows, where the
            level indexes into ``shades``
        """
        levels = {darken: i for i, darken in enumerate(self.shades)}
        return np.array(
            [(dx, dy, levels[darken]) for dx, dy, darken in self.pixels],
            dtype=np.int64
        )


def _block(x0: int, x1: int, y0: int, y1: int, darken: int):
    return tuple((x, y, darken) for y in range(y0, y1) for x in range(x0, x1))


STAMPS = {
    View.FACE: Stamp(
        pixels=((0, 0, SHADE_LIT),),
        padding=(0, 0),
    ),
    View.FORTY_FIVE: Stamp(
        pixels=((0, 0, SHADE_LIT), (0, 1, SHADE_DARK)),
        padding=(0, 1),
    ),
    View.TWENTY_TWO_FIVE: Stamp(
        pixels=_block(0, 2, 0, 1, SHADE_LIT) + _block(0, 2, 1, 3, SHADE_DARK),
        padding=(1, 2),
    ),
    View.FORTY_FIVE_ISO: Stamp(
        pixels=((0, 0, SHADE_LIT), (1, 0, SHADE_LIT), (0, 1, SHADE_DARK), (1, 1, SHADE_SIDE)),
        padding=(1, 1),
    ),
    View.TWENTY_TWO_FIVE_ISO: Stamp(
        pixels=(
            _block(0, 4, 0, 1, SHADE_LIT) +
            _block(0, 2, 1, 4, SHADE_DARK) +
            _block(2, 4, 1, 4, SHADE_SIDE)
        ),
        padding=(3, 3),
    ),
}


def canvas_size(x: np.ndarray, y: np.ndarray, stamp: Stamp) -> Tuple[int, int]:
    """
    Smallest canvas holding every stamp.

    Args:
        x: Screen x per voxel
        y: Screen y per voxel
        stamp: Footprint painted per voxel

    Returns:
        (width, height) in pixels
    """
    x_pad, y_pad = stamp.padding
    width = int(np.max(x, initial=0)) + x_pad + 1
    height = int(np.max(y, initial=0)) + y_pad + 1
    return width, height


@njit(cache=True)
def _paint_stamps(
    canvas: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
    shaded: np.ndarray,
    offsets: np.ndarray
):
    """
    Paint stamps in order, later voxels overwriting earlier ones.

    Args:
        canvas: (H, W, 4) uint8 target
        xs, ys: Screen positions in paint order
        shaded: (N, L, 4) uint8 colors per voxel and shade level
        offsets: (K, 3) int64 stamp rows (dx, dy, level)
    """
    for i in range(xs.shape[0]):
        for k in range(offsets.shape[0]):
            px = xs[i] + offsets[k, 0]
            py = ys[i] + offsets[k, 1]
            level = offsets[k, 2]
            for c in range(4):
                canvas[py, px, c] = shaded[i, level, c]


def composite(
    projection: Projection,
    color_indices: np.ndarray,
    palette: Palette,
    stamp: Stamp
) -> np.ndarray:
    """
    Render a projection to an RGBA canvas.

    Args:
        projection: Projected voxels with their paint order
        color_indices: 1-based palette index per voxel, in input order
        palette: Shared palette
        stamp: Footprint painted per voxel

    Returns:
        Array of shape (height, width, 4) with uint8 RGBA pixels, fully
        transparent where nothing was painted
    """
    width, height = canvas_size(projection.x, projection.y, stamp)
    canvas = np.zeros((height, width, 4), dtype=np.uint8)

    if len(projection) == 0:
        return canvas

    order = projection.order
    indices = np.asarray(color_indices)[order]
    shaded = np.stack([palette.shade(indices, darken) for darken in stamp.shades], axis=1)

    _paint_stamps(
        canvas,
        np.ascontiguousarray(projection.x[order], dtype=np.int64),
        np.ascontiguousarray(projection.y[order], dtype=np.int64),
        np.ascontiguousarray(shaded),
        stamp.offsets()
    )

    return canvas
