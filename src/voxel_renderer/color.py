"""
Palette Lookup Module

Handles:
- Unpacking MagicaVoxel's packed 32-bit palette entries into RGBA
- Flat shading by a fixed darkening offset per face orientation
- The MagicaVoxel default palette, used when a file carries no RGBA chunk

Palette Layout:
- Entries are packed little-endian: R in the low byte, then G, B and A
- Voxel color indices are 1-based, so index i reads entry i - 1
- Darkening subtracts from R, G and B only and saturates at 0
"""

from typing import Tuple, Union
import numpy as np

from .errors import PaletteIndexError


# Darkening offsets for the three visible faces of a voxel, light from above
SHADE_LIT = 0
SHADE_SIDE = 15
SHADE_DARK = 30

PALETTE_SIZE = 256

_CUBE_STEPS = (0xFF, 0xCC, 0x99, 0x66, 0x33, 0x00)
_RAMP_STEPS = (0xEE, 0xDD, 0xBB, 0xAA, 0x88, 0x77, 0x55, 0x44, 0x22, 0x11)


def pack_rgba(r: int, g: int, b: int, a: int = 255) -> int:
    """Pack RGBA components into a single little-endian palette entry."""
    return (r & 0xFF) | (g & 0xFF) << 8 | (b & 0xFF) << 16 | (a & 0xFF) << 24


def unpack_rgba(packed: np.ndarray) -> np.ndarray:
    """
    Unpack palette entries into an RGBA byte array.

    Args:
        packed: Array of shape (N,) with packed 32-bit entries

    Returns:
        Array of shape (N, 4) with uint8 (r, g, b, a) rows
    """
    entries = np.ascontiguousarray(packed, dtype="<u4")
    return entries.view(np.uint8).reshape(-1, 4).copy()


def default_palette() -> np.ndarray:
    """
    Build the MagicaVoxel default palette.

    The default palette is a 6x6x6 color cube without black, followed by
    ten-step red, green, blue and gray ramps. The trailing entry belongs to
    index 256, which voxels never reference.

    Returns:
        Array of shape (256,) with packed uint32 entries
    """
    entries = []
    for r in _CUBE_STEPS:
        for g in _CUBE_STEPS:
            for b in _CUBE_STEPS:
                if r or g or b:
                    entries.append(pack_rgba(r, g, b))

    for channel in range(3):
        for step in _RAMP_STEPS:
            rgb = [0, 0, 0]
            rgb[channel] = step
            entries.append(pack_rgba(*rgb))

    for step in _RAMP_STEPS:
        entries.append(pack_rgba(step, step, step))

    entries.append(0)
    return np.array(entries, dtype=np.uint32)


class Palette:
    """
    Read-only color table shared by every render of a loaded file.

    Usage:
        palette = Palette(data.palette)
        r, g, b, a = palette.color(voxel_index, SHADE_DARK)
    """

    def __init__(self, packed: Union[np.ndarray, list]):
        """
        Initialize the palette.

        Args:
            packed: Sequence of packed little-endian RGBA entries
        """
        packed = np.asarray(packed, dtype=np.uint32)
        if packed.ndim != 1 or len(packed) == 0:
            raise ValueError(f"Palette must be a non-empty 1-D sequence, got shape {packed.shape}")

        self._packed = packed
        self._rgba = unpack_rgba(packed)

    def __len__(self) -> int:
        return len(self._packed)

    @property
    def packed(self) -> np.ndarray:
        """Get the packed palette entries."""
        return self._packed

    @property
    def rgba(self) -> np.ndarray:
        """Get the unpacked (N, 4) palette."""
        return self._rgba

    def _check_indices(self, indices: np.ndarray):
        if indices.size == 0:
            return
        low = int(indices.min())
        high = int(indices.max())
        if low < 1 or high > len(self):
            bad = low if low < 1 else high
            raise PaletteIndexError(
                f"Color index {bad} is outside the palette (1..{len(self)})"
            )

    def color(self, index: int, darken: int = SHADE_LIT) -> Tuple[int, int, int, int]:
        """
        Look up a single voxel color.

        Args:
            index: 1-based palette index
            darken: Amount subtracted from R, G and B (saturating at 0)

        Returns:
            (r, g, b, a) tuple
        """
        rgba = self.shade(np.array([index]), darken)[0]
        return tuple(int(c) for c in rgba)

    def shade(self, indices: np.ndarray, darken: int = SHADE_LIT) -> np.ndarray:
        """
        Look up and darken colors for many voxels at once.

        Args:
            indices: Array of shape (N,) with 1-based palette indices
            darken: Amount subtracted from R, G and B (saturating at 0)

        Returns:
            Array of shape (N, 4) with uint8 RGBA colors
        """
        indices = np.asarray(indices, dtype=np.int64)
        self._check_indices(indices)

        colors = self._rgba[indices - 1].astype(np.int16)
        colors[:, :3] = np.clip(colors[:, :3] - darken, 0, 255)
        return colors.astype(np.uint8)
