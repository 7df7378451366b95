"""
Command-Line Interface for Voxel Renderer

Usage:
    voxrender model.vox
    voxrender model.vox -o sprites
    voxrender model.vox --model 0 --side front --view "45 iso" -o sprites

"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from . import __version__
from .errors import UnknownSideOrView, VoxRenderError, iter_causes
from .logging_config import setup_logging
from .projection import Side, View
from .renderer import RenderOptions, VoxRenderer


def _side_type(token: str) -> Side:
    try:
        return Side.parse(token)
    except UnknownSideOrView as exc:
        raise argparse.ArgumentTypeError(str(exc))


def _view_type(token: str) -> View:
    try:
        return View.parse(token)
    except UnknownSideOrView as exc:
        raise argparse.ArgumentTypeError(str(exc))


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="voxrender",
        description="Voxel Renderer - Render MagicaVoxel models to pixel art sprites",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  voxrender castle.vox
      Render every model, side and view into the current directory

  voxrender castle.vox -s front -v 45_iso -o sprites
      Render only the front isometric sprite of each model

Sides:
  top, front, left, right, back, bottom
  (top and bottom are rendered in the face view only)

Views:
  face      - Straight-on orthographic
  45        - 45 degree oblique
  45_iso    - 45 degree isometric
  22.5      - 22.5 degree oblique, double width
  22.5_iso  - 22.5 degree isometric, double width

Output files are named {side}_{view}_{model}.png
        """
    )

    parser.add_argument(
        "filename",
        help="Input .vox model"
    )

    parser.add_argument(
        "-m", "--model",
        type=int,
        help="Which model in the voxel file to render (default: all)"
    )

    parser.add_argument(
        "-s", "--side",
        type=_side_type,
        help="Which side of the model to render (default: all)"
    )

    parser.add_argument(
        "-v", "--view",
        type=_view_type,
        help="Which perspective of the model to render (default: all)"
    )

    parser.add_argument(
        "-o", "--output",
        default=".",
        help="The output directory to write files to (default: .)"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def report_error(error: BaseException):
    """Print an error and each of its causes to stderr."""
    causes = iter_causes(error)
    print(next(causes), file=sys.stderr)
    for cause in causes:
        print(f"Caused by: {cause}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logger = setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    options = RenderOptions(
        model=args.model,
        side=args.side,
        view=args.view,
        output=args.output
    )

    start_time = time.time()

    try:
        renderer = VoxRenderer.from_file(args.filename)
        outputs = renderer.render_all(options)
    except VoxRenderError as e:
        report_error(e)
        return 1

    logger.debug("Rendered %d sprite(s) in %.2fs", len(outputs), time.time() - start_time)
    return 0


if __name__ == "__main__":
    sys.exit(main())
