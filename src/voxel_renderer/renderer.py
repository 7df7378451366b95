"""
Main VoxRenderer Class

This is the primary interface for the sprite rendering pipeline.
It orchestrates:
1. Loading a .vox file
2. Selecting (model, side, view) combinations
3. Projection and depth ordering
4. Stamp compositing
5. Writing PNG sprites

Example Usage:
    renderer = VoxRenderer.from_file("castle.vox")
    renderer.render_all(RenderOptions(output="sprites"))
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
import logging
import numpy as np
from PIL import Image

from .color import Palette
from .compositor import STAMPS, composite
from .errors import (
    DataIntegrityError, DirectoryCreationError, ImageWriteError, ModelIndexError, VoxParseError
)
from .projection import Side, View, is_renderable, project
from .vox import VoxData, load_vox

logger = logging.getLogger(__name__)


@dataclass
class RenderOptions:
    """
    Which sprites to render and where to put them.

    Attributes:
        model: Model index to render, or None for every model
        side: Side to render, or None for every side
        view: View to render, or None for every view
        output: Directory receiving the PNG files
    """

    model: Optional[int] = None
    side: Optional[Side] = None
    view: Optional[View] = None
    output: Union[str, Path] = "."


def output_name(side: Side, view: View, model: int) -> str:
    """File name of one rendered sprite, e.g. ``front_45_iso_0.png``."""
    return f"{side.value}_{view.value}_{model}.png"


class VoxRenderer:
    """
    Renders the models of a loaded .vox file from fixed viewpoints.

    Renders never reorder the loaded voxel arrays, so one renderer can be
    reused for any number of renders.

    Attributes:
        data: The loaded models and palette
        palette: Palette lookup shared by every render
        source: Path the data was loaded from, if any
    """

    def __init__(self, data: VoxData, source: Optional[Union[str, Path]] = None):
        """
        Initialize the renderer.

        Args:
            data: Models and palette, e.g. from load_vox()
            source: Path the data was loaded from, named in render errors
        """
        self.data = data
        self.palette = Palette(data.palette)
        self.source = source

    @classmethod
    def from_file(cls, file_path: Union[str, Path]) -> "VoxRenderer":
        """
        Load a .vox file and wrap it in a renderer.

        Args:
            file_path: Path to the .vox file

        Returns:
            A renderer for the file's models
        """
        try:
            data = load_vox(file_path)
        except VoxParseError as exc:
            raise VoxParseError(f"Failed to parse '{file_path}'.") from exc

        logger.debug("Loaded %d model(s) from %s", len(data.models), file_path)
        return cls(data, source=file_path)

    @property
    def model_count(self) -> int:
        return len(self.data.models)

    def _check_model(self, model: int):
        if not 0 <= model < self.model_count:
            raise ModelIndexError(
                f"Model {model} does not exist; the file has {self.model_count} model(s)"
            )

    def _render_context(self, model: int, side: Side, view: View) -> str:
        message = f"Failed to render '{output_name(side, view, model)}' from model {model}"
        if self.source is not None:
            message += f" of '{self.source}'"
        return message + "."

    def render(self, model: int, side: Side, view: View) -> np.ndarray:
        """
        Render one model from one side in one view.

        Args:
            model: Model index
            side: Viewed side
            view: Projection style

        Returns:
            Array of shape (height, width, 4) with uint8 RGBA pixels
        """
        self._check_model(model)
        vox_model = self.data.models[model]

        projection = project(vox_model.voxels, vox_model.size, side, view)
        return composite(projection, vox_model.voxels[:, 3], self.palette, STAMPS[view])

    def render_image(self, model: int, side: Side, view: View) -> Image.Image:
        """Render one sprite as a PIL image."""
        return Image.fromarray(self.render(model, side, view))

    def combinations(self, options: RenderOptions) -> Iterator[Tuple[int, Side, View]]:
        """
        Enumerate the (model, side, view) triples selected by the options.

        Top and bottom are skipped for every view but face.
        """
        if options.model is not None:
            self._check_model(options.model)
            models = [options.model]
        else:
            models = list(range(self.model_count))

        sides = [options.side] if options.side is not None else Side.all()
        views = [options.view] if options.view is not None else View.all()

        for model in models:
            for side in sides:
                for view in views:
                    if is_renderable(side, view):
                        yield model, side, view

    def render_all(self, options: Optional[RenderOptions] = None) -> List[Path]:
        """
        Render every selected sprite and write it to disk.

        Args:
            options: Selection and output directory (default: everything to ".")

        Returns:
            Paths of the written PNG files
        """
        options = options or RenderOptions()
        combinations = list(self.combinations(options))
        output_dir = Path(options.output)

        outputs = []
        for model, side, view in combinations:
            try:
                image = self.render_image(model, side, view)
            except DataIntegrityError as exc:
                raise DataIntegrityError(self._render_context(model, side, view)) from exc
            outputs.append(self.save(image, output_dir / output_name(side, view, model)))

        return outputs

    @staticmethod
    def save(image: Image.Image, output_path: Union[str, Path]) -> Path:
        """
        Save a rendered sprite, creating its directory if needed.

        Args:
            image: Rendered sprite
            output_path: Target PNG path

        Returns:
            The written path
        """
        output_path = Path(output_path)
        output_dir = output_path.parent

        if not output_dir.exists():
            try:
                output_dir.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise DirectoryCreationError(
                    f"Failed to create directory '{output_dir}'.", output_dir
                ) from exc

        try:
            image.save(output_path, format="PNG")
        except (OSError, ValueError) as exc:
            raise ImageWriteError(f"Failed to save '{output_path}'.", output_path) from exc

        logger.info("Wrote %s (%dx%d)", output_path, image.width, image.height)
        return output_path
