#!/usr/bin/env python3
"""
Tests for the render projector and grid mapping
"""

import math

import numpy as np
from PIL import Image

from pixel_studio.core.pixel_studio_models import PixelBuffer
from pixel_studio.core.pixel_studio_renderer import (
    FillRect,
    Line,
    canvas_to_grid,
    project,
    rasterize,
    render_array,
    to_pil_image,
)


class TestProject:
    """Test draw instruction output"""

    def test_empty_buffer(self, buffer4):
        """Test background plus grid only"""
        ops = project(buffer4, 4, 4, 10)
        assert ops[0] == FillRect(0, 0, 40, 40, "#ffffff")
        lines = [op for op in ops if isinstance(op, Line)]
        assert len(lines) == 10
        assert len(ops) == 11

    def test_grid_lines_at_zoom_multiples(self, buffer4):
        ops = project(buffer4, 4, 4, 5)
        vertical = [op for op in ops if isinstance(op, Line) and op.x0 == op.x1]
        horizontal = [op for op in ops if isinstance(op, Line) and op.y0 == op.y1]
        assert [op.x0 for op in vertical] == [0, 5, 10, 15, 20]
        assert [op.y0 for op in horizontal] == [0, 5, 10, 15, 20]
        assert all(op.color == "#e5e7eb" and op.width == 1 for op in vertical + horizontal)

    def test_painted_cells(self, buffer4):
        buffer4.set_pixel(1, 2, "#ff0000")
        ops = project(buffer4, 4, 4, 10)
        cells = [op for op in ops[1:] if isinstance(op, FillRect)]
        assert cells == [FillRect(10, 20, 10, 10, "#ff0000")]

    def test_cells_drawn_after_grid(self, buffer4):
        buffer4.set_pixel(0, 0, "#000000")
        ops = project(buffer4, 4, 4, 2)
        assert isinstance(ops[-1], FillRect)
        assert all(isinstance(op, Line) for op in ops[1:-1])

    def test_stale_keys_skipped(self):
        buffer = PixelBuffer(width=4, height=4, pixels={(7, 7): "#000000"})
        ops = project(buffer, 4, 4, 10)
        assert not [op for op in ops[1:] if isinstance(op, FillRect)]

    def test_cells_outside_projected_size_skipped(self, buffer4):
        """Test cells beyond a smaller projection size are not drawn"""
        buffer4.set_pixel(3, 3, "#000000")
        ops = project(buffer4, 2, 2, 10)
        assert not [op for op in ops[1:] if isinstance(op, FillRect)]

    def test_full_redraw_is_repeatable(self, buffer4):
        buffer4.set_pixel(2, 2, "#123456")
        assert project(buffer4, 4, 4, 3) == project(buffer4, 4, 4, 3)


class TestCanvasToGrid:
    """Test pointer position to cell mapping"""

    def test_floor_division(self):
        assert canvas_to_grid(0, 0, 10, 4, 4) == (0, 0)
        assert canvas_to_grid(9.9, 19.5, 10, 4, 4) == (0, 1)
        assert canvas_to_grid(39, 39, 10, 4, 4) == (3, 3)

    def test_outside(self):
        assert canvas_to_grid(40, 0, 10, 4, 4) is None
        assert canvas_to_grid(-1, 0, 10, 4, 4) is None

    def test_non_finite(self):
        assert canvas_to_grid(math.nan, 0, 10, 4, 4) is None
        assert canvas_to_grid(0, math.inf, 10, 4, 4) is None
        assert canvas_to_grid("x", 0, 10, 4, 4) is None


class TestRasterize:
    """Test replaying instructions into arrays and images"""

    def test_render_array(self, buffer4):
        buffer4.set_pixel(1, 1, "#ff0000")
        data = render_array(buffer4, 4)
        assert data.shape == (16, 16, 3)
        # Cell interior
        assert tuple(data[6, 6]) == (255, 0, 0)
        # Grid line on the top edge
        assert tuple(data[0, 2]) == (0xE5, 0xE7, 0xEB)

    def test_rasterize_clips(self):
        data = rasterize([FillRect(-5, -5, 100, 100, "#00ff00")], 3, 2)
        assert data.shape == (2, 3, 3)
        assert np.all(data == np.array([0, 255, 0], dtype=np.uint8))

    def test_to_pil_image(self, buffer4):
        image = to_pil_image(render_array(buffer4, 2))
        assert isinstance(image, Image.Image)
        assert image.mode == "RGB"
        assert image.size == (8, 8)
