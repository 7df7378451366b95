"""
Projection Mathematics for Voxel Sprites

This module maps voxel grid coordinates to sprite pixel coordinates for each
supported (side, view) pair, along with the depth key that orders voxels
from farthest to nearest for painter's-algorithm compositing.

Coordinate Systems:
- Grid: MagicaVoxel, Z-up (+X Right, +Y Back, +Z Up as seen from the front)
- Screen: image space, origin top-left, y-down

Each side names three grid axes, each raw or mirrored against the model size:
- depth: perpendicular to the viewed face, growing toward the camera
- horizontal: screen x in the face view
- vertical: screen y in the face view

Each view then combines the five terms (D, H, mirror(H), V, mirror(V)) with
small integer weights to produce the sort key and both screen coordinates.
Mirroring V gives the grid "up" axis, which is what lets oblique views sort
higher voxels later.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Tuple, Union
import numpy as np

from .errors import UnknownSideOrView, VoxelBoundsError


X, Y, Z = 0, 1, 2


class Side(Enum):
    """Face of the model the camera looks at."""
    TOP = "top"
    FRONT = "front"
    LEFT = "left"
    RIGHT = "right"
    BACK = "back"
    BOTTOM = "bottom"

    @classmethod
    def parse(cls, token: str) -> "Side":
        """Convert a side name such as "front" to a Side."""
        try:
            return cls(token)
        except ValueError:
            raise UnknownSideOrView("side", token) from None

    @classmethod
    def all(cls) -> List["Side"]:
        return list(cls)

    @property
    def is_vertical(self) -> bool:
        """True for the straight-down and straight-up sides."""
        return self in (Side.TOP, Side.BOTTOM)

    def __str__(self) -> str:
        return self.value


class View(Enum):
    """Projection style, in order of increasing obliqueness."""
    FACE = "face"
    FORTY_FIVE = "45"
    FORTY_FIVE_ISO = "45_iso"
    TWENTY_TWO_FIVE = "22.5"
    TWENTY_TWO_FIVE_ISO = "22.5_iso"

    @classmethod
    def parse(cls, token: str) -> "View":
        """Convert a view name such as "45_iso" or "45 iso" to a View."""
        try:
            return cls(token.replace(" ", "_"))
        except ValueError:
            raise UnknownSideOrView("view", token) from None

    @classmethod
    def all(cls) -> List["View"]:
        return list(cls)

    def __str__(self) -> str:
        return self.value


def is_renderable(side: Side, view: View) -> bool:
    """Top and bottom have no oblique direction, so only their face view exists."""
    return view == View.FACE or not side.is_vertical


@dataclass(frozen=True)
class Size:
    """Model bounding dimensions with the per-axis mirror helpers."""

    x: int
    y: int
    z: int

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.int64)

    def invert_x(self, coords: np.ndarray) -> np.ndarray:
        return self.x - coords[:, X]

    def invert_y(self, coords: np.ndarray) -> np.ndarray:
        return self.y - coords[:, Y]

    def invert_z(self, coords: np.ndarray) -> np.ndarray:
        return self.z - coords[:, Z]

    def invert(self, coords: np.ndarray, axis: int) -> np.ndarray:
        return (self.invert_x, self.invert_y, self.invert_z)[axis](coords)


class AxisTerm(NamedTuple):
    """One grid axis, read raw or mirrored against the model size."""

    axis: int
    mirrored: bool = False

    def mirror(self) -> "AxisTerm":
        return AxisTerm(self.axis, not self.mirrored)

    def evaluate(self, coords: np.ndarray, size: Size) -> np.ndarray:
        """
        Evaluate the term for every voxel.

        Args:
            coords: Array of shape (N, 3) with int64 grid coordinates
            size: Model dimensions

        Returns:
            Array of shape (N,) with int64 values
        """
        if self.mirrored:
            return size.invert(coords, self.axis)
        return coords[:, self.axis]


class SideAxes(NamedTuple):
    """Axis assignment for one side."""

    depth: AxisTerm
    horizontal: AxisTerm
    vertical: AxisTerm


SIDE_AXES = {
    Side.TOP: SideAxes(AxisTerm(Z), AxisTerm(X), AxisTerm(Y, True)),
    Side.FRONT: SideAxes(AxisTerm(Y, True), AxisTerm(X), AxisTerm(Z, True)),
    Side.LEFT: SideAxes(AxisTerm(X, True), AxisTerm(Y, True), AxisTerm(Z, True)),
    Side.RIGHT: SideAxes(AxisTerm(X), AxisTerm(Y), AxisTerm(Z, True)),
    Side.BACK: SideAxes(AxisTerm(Y), AxisTerm(X, True), AxisTerm(Z, True)),
    Side.BOTTOM: SideAxes(AxisTerm(Z, True), AxisTerm(X), AxisTerm(Y)),
}


class ViewWeights(NamedTuple):
    """
    Integer weights over the terms (D, H, mirror(H), V, mirror(V)).

    Attributes:
        sort: Depth key weights, ascending key = farthest to nearest
        x: Screen x weights
        y: Screen y weights
    """

    sort: Tuple[int, int, int, int, int]
    x: Tuple[int, int, int, int, int]
    y: Tuple[int, int, int, int, int]


VIEW_WEIGHTS = {
    View.FACE: ViewWeights(
        sort=(1, 0, 0, 0, 0), x=(0, 1, 0, 0, 0), y=(0, 0, 0, 1, 0),
    ),
    View.FORTY_FIVE: ViewWeights(
        sort=(1, 0, 0, 0, 1), x=(0, 1, 0, 0, 0), y=(1, 0, 0, 1, 0),
    ),
    View.TWENTY_TWO_FIVE: ViewWeights(
        sort=(1, 0, 0, 0, 1), x=(0, 2, 0, 0, 0), y=(1, 0, 0, 2, 0),
    ),
    View.FORTY_FIVE_ISO: ViewWeights(
        sort=(1, 0, 1, 0, 1), x=(1, 1, 0, 0, 0), y=(1, 0, 1, 1, 0),
    ),
    # Stacked voxels sit three rows apart, overlapping their 4-row stamps by one
    View.TWENTY_TWO_FIVE_ISO: ViewWeights(
        sort=(1, 0, 1, 0, 1), x=(2, 2, 0, 0, 0), y=(1, 0, 1, 3, 0),
    ),
}


@dataclass
class Projection:
    """
    Projected voxels for one (side, view) pair.

    All arrays are aligned with the input voxel order; ``order`` lists the
    indices to paint, farthest first.
    """

    keys: np.ndarray
    x: np.ndarray
    y: np.ndarray
    order: np.ndarray

    def __len__(self) -> int:
        return len(self.order)


def _as_size(size: Union[Size, Tuple[int, int, int]]) -> Size:
    if isinstance(size, Size):
        return size
    return Size(*(int(s) for s in size))


def axis_terms(coords: np.ndarray, size: Size, side: Side) -> np.ndarray:
    """
    Evaluate the five projection terms for every voxel.

    Args:
        coords: Array of shape (N, 3) with int64 grid coordinates
        size: Model dimensions
        side: Viewed side

    Returns:
        Array of shape (N, 5) with columns (D, H, mirror(H), V, mirror(V))
    """
    axes = SIDE_AXES[side]
    columns = [
        axes.depth,
        axes.horizontal,
        axes.horizontal.mirror(),
        axes.vertical,
        axes.vertical.mirror(),
    ]
    if len(coords) == 0:
        return np.zeros((0, len(columns)), dtype=np.int64)
    return np.stack([term.evaluate(coords, size) for term in columns], axis=1)


def project(
    voxels: np.ndarray,
    size: Union[Size, Tuple[int, int, int]],
    side: Side,
    view: View
) -> Projection:
    """
    Compute depth keys, paint order and screen coordinates.

    The input array is never reordered; the paint order is a stable argsort
    of the depth keys, so repeated renders of the same model agree.

    Args:
        voxels: Array of shape (N, 3) or (N, 4) with grid coordinates first
        size: Model dimensions
        side: Viewed side
        view: Projection style

    Returns:
        Projection aligned with the input voxels
    """
    if not is_renderable(side, view):
        raise ValueError(f"The {side} side is only rendered in the face view, not '{view}'")

    size = _as_size(size)
    coords = np.asarray(voxels)[:, :3].astype(np.int64)

    if len(coords) and np.any(coords > size.as_array()):
        bad = coords[np.any(coords > size.as_array(), axis=1)][0]
        raise VoxelBoundsError(
            f"Voxel at {tuple(int(c) for c in bad)} lies outside model size "
            f"{(size.x, size.y, size.z)}"
        )

    terms = axis_terms(coords, size, side)
    weights = VIEW_WEIGHTS[view]

    keys = terms @ np.array(weights.sort, dtype=np.int64)
    x = terms @ np.array(weights.x, dtype=np.int64)
    y = terms @ np.array(weights.y, dtype=np.int64)
    order = np.argsort(keys, kind="stable")

    return Projection(keys=keys, x=x, y=y, order=order)
