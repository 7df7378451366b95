"""
Unit tests for the Voxel Renderer.
"""

import contextlib
import io
import logging
import sys
import tempfile
from pathlib import Path
import numpy as np
import unittest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from PIL import Image

from voxel_renderer import VoxRenderer, RenderOptions, output_name
from voxel_renderer.cli import main
from voxel_renderer.logging_config import setup_logging
from voxel_renderer.color import Palette, SHADE_DARK, SHADE_SIDE, default_palette, pack_rgba
from voxel_renderer.compositor import STAMPS, canvas_size, composite
from voxel_renderer.errors import (
    DataIntegrityError,
    DirectoryCreationError,
    ImageWriteError,
    ModelIndexError,
    PaletteIndexError,
    UnknownSideOrView,
    VoxelBoundsError,
)
from voxel_renderer.projection import Side, View, is_renderable, project
from voxel_renderer.vox import VoxData, VoxModel, save_vox


RED = pack_rgba(255, 0, 0, 255)
BLUE = pack_rgba(0, 0, 255, 255)


def make_palette(*entries) -> np.ndarray:
    palette = np.zeros(256, dtype=np.uint32)
    palette[:len(entries)] = entries
    return palette


def random_model(seed: int = 0, size=(5, 7, 9), count: int = 40) -> VoxModel:
    """Distinct random voxels, each with its own color index."""
    rng = np.random.default_rng(seed)
    cells = rng.choice(size[0] * size[1] * size[2], size=count, replace=False)
    x, rest = np.divmod(cells, size[1] * size[2])
    y, z = np.divmod(rest, size[2])
    indices = np.arange(1, count + 1)
    return VoxModel(size, np.stack([x, y, z, indices], axis=1))


def reference_mapping(side: Side, view: View, voxels: np.ndarray, size):
    """Screen mapping for every (side, view) pair, written out longhand."""
    x, y, z = (voxels[:, i].astype(np.int64) for i in range(3))
    ix, iy, iz = size[0] - x, size[1] - y, size[2] - z

    table = {
        View.FACE: {
            Side.TOP: (z, x, iy),
            Side.FRONT: (iy, x, iz),
            Side.LEFT: (ix, iy, iz),
            Side.RIGHT: (x, y, iz),
            Side.BACK: (y, ix, iz),
            Side.BOTTOM: (iz, x, y),
        },
        View.FORTY_FIVE: {
            Side.FRONT: (z + iy, x, iz + iy),
            Side.LEFT: (z + ix, iy, iz + ix),
            Side.RIGHT: (z + x, y, iz + x),
            Side.BACK: (z + y, ix, iz + y),
        },
        View.TWENTY_TWO_FIVE: {
            Side.FRONT: (z + iy, 2 * x, 2 * iz + iy),
            Side.LEFT: (z + ix, 2 * iy, 2 * iz + ix),
            Side.RIGHT: (z + x, 2 * y, 2 * iz + x),
            Side.BACK: (z + y, 2 * ix, 2 * iz + y),
        },
        View.FORTY_FIVE_ISO: {
            Side.FRONT: (z + ix + iy, x + iy, iz + ix + iy),
            Side.LEFT: (z + ix + y, ix + iy, iz + ix + y),
            Side.RIGHT: (z + x + iy, x + y, iz + x + iy),
            Side.BACK: (z + x + y, ix + y, iz + x + y),
        },
        View.TWENTY_TWO_FIVE_ISO: {
            Side.FRONT: (z + ix + iy, 2 * x + 2 * iy, 3 * iz + ix + iy),
            Side.LEFT: (z + ix + y, 2 * ix + 2 * iy, 3 * iz + ix + y),
            Side.RIGHT: (z + x + iy, 2 * x + 2 * y, 3 * iz + x + iy),
            Side.BACK: (z + x + y, 2 * ix + 2 * y, 3 * iz + x + y),
        },
    }
    return table[view][side]


def renderable_pairs():
    return [(s, v) for s in Side.all() for v in View.all() if is_renderable(s, v)]


class TestSideAndView(unittest.TestCase):
    """Tests for side/view names."""

    def test_parse_canonical_names(self):
        assert Side.parse("front") == Side.FRONT
        assert View.parse("face") == View.FACE
        assert View.parse("22.5") == View.TWENTY_TWO_FIVE
        assert View.parse("22.5_iso") == View.TWENTY_TWO_FIVE_ISO

    def test_parse_space_separated_view(self):
        assert View.parse("45 iso") == View.FORTY_FIVE_ISO

    def test_unknown_tokens(self):
        with self.assertRaises(UnknownSideOrView) as ctx:
            Side.parse("sideways")
        assert "'sideways'" in str(ctx.exception)

        with self.assertRaises(ValueError) as ctx:
            View.parse("30")
        assert "view" in str(ctx.exception)
        assert "'30'" in str(ctx.exception)

    def test_output_names(self):
        assert output_name(Side.FRONT, View.FORTY_FIVE_ISO, 0) == "front_45_iso_0.png"
        assert output_name(Side.TOP, View.FACE, 3) == "top_face_3.png"
        assert output_name(Side.BACK, View.TWENTY_TWO_FIVE, 1) == "back_22.5_1.png"

    def test_all_orders(self):
        assert [s.value for s in Side.all()] == ["top", "front", "left", "right", "back", "bottom"]
        assert [v.value for v in View.all()] == ["face", "45", "45_iso", "22.5", "22.5_iso"]


class TestProjection(unittest.TestCase):
    """Tests for depth keys and screen mappings."""

    def test_matches_longhand_formulas(self):
        """Every renderable pair matches the longhand formulas exactly."""
        model = random_model()
        for side, view in renderable_pairs():
            with self.subTest(side=side, view=view):
                projection = project(model.voxels, model.size, side, view)
                keys, xs, ys = reference_mapping(side, view, model.voxels, model.size)
                assert np.array_equal(projection.keys, keys)
                assert np.array_equal(projection.x, xs)
                assert np.array_equal(projection.y, ys)

    def test_order_is_ascending_by_key(self):
        model = random_model(seed=3)
        projection = project(model.voxels, model.size, Side.LEFT, View.TWENTY_TWO_FIVE_ISO)
        assert np.all(np.diff(projection.keys[projection.order]) >= 0)

    def test_input_not_reordered(self):
        model = random_model(seed=1)
        before = model.voxels.copy()
        for side, view in renderable_pairs():
            project(model.voxels, model.size, side, view)
        assert np.array_equal(model.voxels, before)

    def test_vertical_sides_face_only(self):
        model = random_model()
        with self.assertRaises(ValueError):
            project(model.voxels, model.size, Side.TOP, View.FORTY_FIVE)
        assert not is_renderable(Side.BOTTOM, View.TWENTY_TWO_FIVE_ISO)
        assert is_renderable(Side.BOTTOM, View.FACE)

    def test_out_of_bounds_voxel(self):
        voxels = np.array([[0, 0, 5, 1]], dtype=np.uint8)
        with self.assertRaises(VoxelBoundsError):
            project(voxels, (2, 2, 2), Side.FRONT, View.FACE)

    def test_empty_model(self):
        projection = project(np.zeros((0, 4), dtype=np.uint8), (4, 4, 4), Side.FRONT, View.FACE)
        assert len(projection) == 0


class TestCompositor(unittest.TestCase):
    """Tests for canvas sizing and stamp painting."""

    def test_canvas_size_fits_extent(self):
        model = random_model(seed=2)
        palette = Palette(default_palette())
        for side, view in renderable_pairs():
            with self.subTest(side=side, view=view):
                projection = project(model.voxels, model.size, side, view)
                canvas = composite(projection, model.voxels[:, 3], palette, STAMPS[view])
                x_pad, y_pad = STAMPS[view].padding
                assert canvas.shape == (
                    projection.y.max() + y_pad + 1,
                    projection.x.max() + x_pad + 1,
                    4
                )

    def test_paddings(self):
        assert STAMPS[View.FACE].padding == (0, 0)
        assert STAMPS[View.FORTY_FIVE].padding == (0, 1)
        assert STAMPS[View.FORTY_FIVE_ISO].padding == (1, 1)
        assert STAMPS[View.TWENTY_TWO_FIVE].padding == (1, 2)
        assert STAMPS[View.TWENTY_TWO_FIVE_ISO].padding == (3, 3)

    def test_canvas_size_empty(self):
        empty = np.zeros(0, dtype=np.int64)
        assert canvas_size(empty, empty, STAMPS[View.TWENTY_TWO_FIVE_ISO]) == (4, 4)

    def test_single_red_voxel_face_front(self):
        """A lone voxel at the origin lands one row below the top edge."""
        renderer = VoxRenderer(VoxData(
            [VoxModel((1, 1, 1), [[0, 0, 0, 1]])], make_palette(RED)
        ))
        canvas = renderer.render(0, Side.FRONT, View.FACE)

        assert canvas.shape == (2, 1, 4)
        assert list(canvas[1, 0]) == [255, 0, 0, 255]
        assert list(canvas[0, 0]) == [0, 0, 0, 0]

    def test_forty_five_iso_stamp_shades(self):
        color = pack_rgba(200, 100, 50, 255)
        renderer = VoxRenderer(VoxData(
            [VoxModel((1, 1, 1), [[0, 0, 0, 1]])], make_palette(color)
        ))
        canvas = renderer.render(0, Side.FRONT, View.FORTY_FIVE_ISO)

        # x = x + inv_y = 1, y = inv_z + inv_x + inv_y = 3
        assert canvas.shape == (5, 3, 4)
        assert list(canvas[3, 1]) == [200, 100, 50, 255]
        assert list(canvas[3, 2]) == [200, 100, 50, 255]
        assert list(canvas[4, 1]) == [200 - SHADE_DARK, 100 - SHADE_DARK, 50 - SHADE_DARK, 255]
        assert list(canvas[4, 2]) == [200 - SHADE_SIDE, 100 - SHADE_SIDE, 50 - SHADE_SIDE, 255]
        assert np.count_nonzero(canvas[:, :, 3]) == 4

    def test_twenty_two_five_stamp(self):
        renderer = VoxRenderer(VoxData(
            [VoxModel((1, 1, 1), [[0, 0, 0, 1]])], make_palette(pack_rgba(10, 20, 40, 255))
        ))
        canvas = renderer.render(0, Side.FRONT, View.TWENTY_TWO_FIVE)

        # x = 2x = 0, y = 2 inv_z + inv_y = 3
        assert canvas.shape == (6, 2, 4)
        assert np.count_nonzero(canvas[:, :, 3]) == 6
        assert list(canvas[3, 0]) == [10, 20, 40, 255]
        assert list(canvas[3, 1]) == [10, 20, 40, 255]
        for row in (4, 5):
            for column in (0, 1):
                assert list(canvas[row, column]) == [0, 0, 10, 255]

    def test_twenty_two_five_iso_stamp(self):
        renderer = VoxRenderer(VoxData(
            [VoxModel((1, 1, 1), [[0, 0, 0, 1]])], make_palette(pack_rgba(10, 20, 40, 255))
        ))
        canvas = renderer.render(0, Side.RIGHT, View.TWENTY_TWO_FIVE_ISO)

        # x = 2x + 2y = 0, y = 3 inv_z + x + inv_y = 4
        assert np.count_nonzero(canvas[:, :, 3]) == 16
        assert list(canvas[4, 3]) == [10, 20, 40, 255]
        assert list(canvas[5, 0]) == [0, 0, 10, 255]
        assert list(canvas[7, 3]) == [0, 5, 25, 255]

    def test_nearer_voxel_wins_face(self):
        """Two voxels stacked along the depth axis show the nearer one."""
        near = [0, 0, 0, 1]
        far = [0, 1, 0, 2]
        for voxels in ([near, far], [far, near]):
            renderer = VoxRenderer(VoxData(
                [VoxModel((1, 2, 1), voxels)], make_palette(RED, BLUE)
            ))
            canvas = renderer.render(0, Side.FRONT, View.FACE)
            assert list(canvas[1, 0]) == [255, 0, 0, 255]

            # Seen from the back, x is mirrored: inv_x = 1
            canvas = renderer.render(0, Side.BACK, View.FACE)
            assert list(canvas[1, 1]) == [0, 0, 255, 255]
            assert list(canvas[1, 0]) == [0, 0, 0, 0]

    def test_nearer_voxel_wins_forty_five(self):
        upper_front = [0, 0, 1, 1]
        lower_back = [0, 1, 0, 2]
        for voxels in ([upper_front, lower_back], [lower_back, upper_front]):
            renderer = VoxRenderer(VoxData(
                [VoxModel((1, 2, 2), voxels)], make_palette(RED, BLUE)
            ))
            canvas = renderer.render(0, Side.FRONT, View.FORTY_FIVE)
            assert canvas.shape == (5, 1, 4)
            assert list(canvas[3, 0]) == [255, 0, 0, 255]
            assert list(canvas[4, 0]) == [225, 0, 0, 255]

    def test_largest_key_wins_every_face_pixel(self):
        model = random_model(seed=4, size=(4, 4, 4), count=48)
        palette = Palette(default_palette())
        for side in Side.all():
            with self.subTest(side=side):
                projection = project(model.voxels, model.size, side, View.FACE)
                canvas = composite(projection, model.voxels[:, 3], palette, STAMPS[View.FACE])

                winners = {}
                for i in range(len(model.voxels)):
                    pixel = (int(projection.x[i]), int(projection.y[i]))
                    if pixel not in winners or projection.keys[i] > projection.keys[winners[pixel]]:
                        winners[pixel] = i

                for (px, py), i in winners.items():
                    expected = palette.color(int(model.voxels[i, 3]))
                    assert tuple(int(c) for c in canvas[py, px]) == expected

    def test_empty_model_is_transparent(self):
        renderer = VoxRenderer(VoxData([VoxModel((3, 3, 3))], default_palette()))
        canvas = renderer.render(0, Side.FRONT, View.TWENTY_TWO_FIVE_ISO)
        assert canvas.shape == (4, 4, 4)
        assert not canvas.any()


class TestVoxRenderer(unittest.TestCase):
    """Integration tests for VoxRenderer."""

    def setUp(self):
        self.data = VoxData(
            [random_model(seed=5), random_model(seed=6, size=(3, 3, 3), count=10)],
            default_palette()
        )

    def test_combinations_skip_vertical_obliques(self):
        renderer = VoxRenderer(self.data)
        combos = list(renderer.combinations(RenderOptions()))

        assert len(combos) == 2 * (6 + 4 * 4)
        assert not any(s.is_vertical and v != View.FACE for _, s, v in combos)

        only_top_45 = RenderOptions(side=Side.TOP, view=View.FORTY_FIVE)
        assert list(renderer.combinations(only_top_45)) == []

    def test_bad_model_index(self):
        renderer = VoxRenderer(self.data)
        with self.assertRaises(ModelIndexError):
            list(renderer.combinations(RenderOptions(model=2)))
        with self.assertRaises(ModelIndexError):
            renderer.render(-1, Side.FRONT, View.FACE)

    def test_deterministic(self):
        first = VoxRenderer(self.data)
        second = VoxRenderer(VoxData(
            [VoxModel(m.size, m.voxels.copy()) for m in self.data.models],
            self.data.palette.copy()
        ))
        for side, view in renderable_pairs():
            a = first.render(0, side, view)
            b = first.render(0, side, view)
            c = second.render(0, side, view)
            assert a.tobytes() == b.tobytes() == c.tobytes()

    def test_render_all_writes_files(self):
        renderer = VoxRenderer(self.data)
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "nested" / "sprites"
            paths = renderer.render_all(RenderOptions(model=1, output=output))

            assert len(paths) == 22
            names = {p.name for p in paths}
            assert "front_45_iso_1.png" in names
            assert "top_face_1.png" in names
            assert "top_45_iso_1.png" not in names

            with Image.open(output / "left_22.5_1.png") as image:
                expected = renderer.render(1, Side.LEFT, View.TWENTY_TWO_FIVE)
                assert image.mode == "RGBA"
                assert np.array_equal(np.array(image), expected)

    def test_directory_creation_failure(self):
        renderer = VoxRenderer(self.data)
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "blocker"
            blocker.write_bytes(b"")
            options = RenderOptions(model=0, side=Side.FRONT, view=View.FACE, output=blocker / "out")

            with self.assertRaises(DirectoryCreationError) as ctx:
                renderer.render_all(options)
            assert ctx.exception.path == blocker / "out"
            assert isinstance(ctx.exception.__cause__, OSError)

    def test_image_write_failure(self):
        renderer = VoxRenderer(self.data)
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / "front_face_0.png").mkdir()
            options = RenderOptions(model=0, side=Side.FRONT, view=View.FACE, output=tmp)

            with self.assertRaises(ImageWriteError) as ctx:
                renderer.render_all(options)
            assert ctx.exception.path.name == "front_face_0.png"

    def test_bad_color_index_names_sprite(self):
        data = VoxData([VoxModel((1, 1, 1), [[0, 0, 0, 0]])], make_palette(RED))
        renderer = VoxRenderer(data, source="broken.vox")
        with tempfile.TemporaryDirectory() as tmp:
            options = RenderOptions(side=Side.FRONT, view=View.FACE, output=tmp)

            with self.assertRaises(DataIntegrityError) as ctx:
                renderer.render_all(options)
            assert not list(Path(tmp).iterdir())

        assert str(ctx.exception) == (
            "Failed to render 'front_face_0.png' from model 0 of 'broken.vox'."
        )
        assert isinstance(ctx.exception.__cause__, PaletteIndexError)


class TestCommandLine(unittest.TestCase):
    """Tests for the voxrender entry point."""

    def test_renders_selection(self):
        data = VoxData([random_model(seed=7)], default_palette())
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "model.vox"
            save_vox(data, source)
            output = Path(tmp) / "out"

            status = main([str(source), "-s", "front", "-v", "45 iso", "-o", str(output)])

            assert status == 0
            assert sorted(p.name for p in output.iterdir()) == ["front_45_iso_0.png"]

    def test_unknown_view_is_usage_error(self):
        stderr = io.StringIO()
        with contextlib.redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as ctx:
                main(["model.vox", "-v", "30"])
        assert ctx.exception.code == 2
        assert "No corresponding view for '30'" in stderr.getvalue()

    def test_missing_file_reports_cause_chain(self):
        stderr = io.StringIO()
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "missing.vox"
            with contextlib.redirect_stderr(stderr):
                status = main([str(missing), "-o", tmp])

        assert status == 1
        lines = stderr.getvalue().splitlines()
        assert lines[0] == f"Failed to parse '{missing}'."
        assert any(line.startswith("Caused by:") for line in lines[1:])

    def test_bad_color_index_reports_cause_chain(self):
        data = VoxData([VoxModel((1, 1, 1), [[0, 0, 0, 0]])], make_palette(RED))
        stderr = io.StringIO()
        with tempfile.TemporaryDirectory() as tmp:
            source = Path(tmp) / "broken.vox"
            save_vox(data, source)
            with contextlib.redirect_stderr(stderr):
                status = main([str(source), "-o", tmp])

        assert status == 1
        lines = stderr.getvalue().splitlines()
        assert lines[0] == f"Failed to render 'top_face_0.png' from model 0 of '{source}'."
        assert lines[1] == "Caused by: Color index 0 is outside the palette (1..256)"

    def test_logging_setup_replaces_handler(self):
        setup_logging(logging.DEBUG)
        logger = setup_logging(logging.WARNING)
        assert logger.name == "voxel_renderer"
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1


if __name__ == "__main__":
    unittest.main(verbosity=2)
