"""
Exception hierarchy for the voxel renderer.

Every failure that reaches the command line derives from VoxRenderError.
Wrapping errors are raised with ``raise ... from exc`` so the original
cause stays reachable through ``__cause__``.
"""

from pathlib import Path
from typing import Iterator, Union


class VoxRenderError(Exception):
    """Base class for all renderer errors."""


class VoxParseError(VoxRenderError):
    """The input .vox file is missing, truncated or malformed."""


class UnknownSideOrView(VoxRenderError, ValueError):
    """A side or view name did not match any known value."""

    def __init__(self, kind: str, token: str):
        super().__init__(f"No corresponding {kind} for '{token}'")
        self.kind = kind
        self.token = token


class ModelIndexError(VoxRenderError, IndexError):
    """A requested model index is not present in the file."""


class DataIntegrityError(VoxRenderError):
    """Voxel data references something the file does not contain."""


class PaletteIndexError(DataIntegrityError):
    """A voxel color index does not resolve to a palette entry."""


class VoxelBoundsError(DataIntegrityError):
    """A voxel coordinate lies beyond its model's dimensions."""


class OutputError(VoxRenderError):
    """Writing rendered output failed."""

    def __init__(self, message: str, path: Union[str, Path]):
        super().__init__(message)
        self.path = Path(path)


class DirectoryCreationError(OutputError):
    """The output directory could not be created."""


class ImageWriteError(OutputError):
    """A rendered image could not be saved."""


def iter_causes(error: BaseException) -> Iterator[BaseException]:
    """Yield an error followed by each exception in its cause chain."""
    seen = set()
    current = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__
