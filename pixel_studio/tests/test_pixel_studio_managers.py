#!/usr/bin/env python3
"""
Unit tests for pixel studio manager classes
Tests the tools, ToolManager dispatch, PaletteManager and EditorSession
"""

from datetime import datetime, timedelta, timezone

import pytest

from pixel_studio.core.pixel_studio_exceptions import ValidationError
from pixel_studio.core.pixel_studio_managers import (
    BrushTool,
    BucketTool,
    EditorSession,
    EraserTool,
    EyedropperTool,
    PaletteManager,
    ShapeTool,
    ToolManager,
    ToolType,
    get_line_points,
)
from pixel_studio.core.pixel_studio_models import Artwork, ColorPalette, PixelBuffer


class TestToolClasses:
    """Test individual tool implementations"""

    def test_brush_press(self, buffer4):
        """Test brush paints a single cell at size 1"""
        result = BrushTool().on_press(1, 2, "#ff0000", buffer4)
        assert result.changed == [(1, 2)]
        assert result.mutated
        assert buffer4.get_pixel(1, 2) == "#ff0000"

    def test_brush_move_interpolates(self):
        """Test a fast stroke leaves no gaps"""
        buffer = PixelBuffer(width=8, height=8)
        tool = BrushTool()
        tool.on_press(0, 2, "#000000", buffer)
        tool.on_move(5, 2, "#000000", buffer)
        for x in range(6):
            assert buffer.get_pixel(x, 2) == "#000000"

    def test_brush_size_square_anchored_top_left(self):
        buffer = PixelBuffer(width=8, height=8)
        tool = BrushTool()
        tool.size = 3
        result = tool.on_press(2, 2, "#00ff00", buffer)
        assert sorted(result.changed) == [(x, y) for x in range(2, 5) for y in range(2, 5)]

    def test_brush_footprint_clipped_to_bounds(self, buffer4):
        tool = BrushTool()
        tool.size = 3
        result = tool.on_press(3, 3, "#00ff00", buffer4)
        assert result.changed == [(3, 3)]
        assert buffer4.pixel_count() == 1

    def test_release_resets_stroke(self, buffer4):
        """Test a stroke after release does not connect to the previous one"""
        tool = BrushTool()
        tool.on_press(0, 0, "#000000", buffer4)
        tool.on_release()
        tool.on_move(3, 0, "#000000", buffer4)
        assert buffer4.get_pixel(1, 0) is None
        assert buffer4.get_pixel(3, 0) == "#000000"

    def test_eraser(self, buffer4):
        buffer4.set_pixel(1, 1, "#000000")
        result = EraserTool().on_press(1, 1, "#ffffff", buffer4)
        assert result.changed == [(1, 1)]
        assert buffer4.get_pixel(1, 1) is None

    def test_eraser_on_empty_cell_reports_nothing(self, buffer4):
        assert not EraserTool().on_press(0, 0, "#ffffff", buffer4).mutated

    def test_bucket(self, buffer4):
        result = BucketTool().on_press(0, 0, "#ff0000", buffer4)
        assert len(result.changed) == 16

    def test_eyedropper_picks_without_mutating(self, buffer4):
        buffer4.set_pixel(2, 2, "#abcdef")
        before = dict(buffer4.pixels)
        picked = []
        tool = EyedropperTool()
        tool.picked_callback = picked.append

        result = tool.on_press(2, 2, "#000000", buffer4)

        assert result.picked_color == "#abcdef"
        assert not result.mutated
        assert picked == ["#abcdef"]
        assert buffer4.pixels == before

    def test_eyedropper_on_empty_cell(self, buffer4):
        result = EyedropperTool().on_press(0, 0, "#000000", buffer4)
        assert result.picked_color is None

    def test_shape_tools_paint_like_brush(self, buffer4):
        result = ShapeTool("rectangle").on_press(1, 1, "#0000ff", buffer4)
        assert result.changed == [(1, 1)]


class TestLineInterpolation:
    """Test Bresenham line points"""

    def test_horizontal(self):
        assert get_line_points(0, 0, 3, 0) == [(0, 0), (1, 0), (2, 0), (3, 0)]

    def test_single_point(self):
        assert get_line_points(2, 2, 2, 2) == [(2, 2)]

    def test_diagonal_endpoints(self):
        points = get_line_points(0, 0, 4, 2)
        assert points[0] == (0, 0)
        assert points[-1] == (4, 2)
        assert len(points) == 5

    def test_reverse_direction(self):
        assert get_line_points(3, 1, 0, 1) == [(3, 1), (2, 1), (1, 1), (0, 1)]


class TestToolManager:
    """Test ToolManager dispatch and state"""

    @pytest.fixture
    def manager(self):
        return ToolManager()

    def test_defaults(self, manager):
        assert manager.current_tool == ToolType.BRUSH
        assert manager.current_color == "#000000"
        assert manager.current_brush_size == 1
        assert not manager.pressed

    def test_all_tools_registered(self, manager):
        assert set(manager.tools) == set(ToolType)

    def test_set_tool_by_name(self, manager):
        assert manager.set_tool("bucket") is True
        assert manager.current_tool == ToolType.BUCKET
        assert manager.current_tool_name == "bucket"

    def test_set_unknown_tool(self, manager):
        assert manager.set_tool("lasso") is False
        assert manager.current_tool == ToolType.BRUSH

    def test_get_tool(self, manager):
        assert isinstance(manager.get_tool(), BrushTool)
        assert isinstance(manager.get_tool("eraser"), EraserTool)
        with pytest.raises(ValueError):
            manager.get_tool("lasso")

    def test_set_color_validates(self, manager):
        assert manager.set_color("#ABCDEF") == "#abcdef"
        with pytest.raises(ValidationError):
            manager.set_color("blue")
        assert manager.current_color == "#abcdef"

    def test_brush_size_range(self, manager):
        assert manager.set_brush_size(10) is True
        assert manager.get_tool("brush").size == 10
        assert manager.get_tool("eraser").size == 10
        assert manager.set_brush_size(0) is False
        assert manager.set_brush_size(11) is False
        assert manager.current_brush_size == 10

    def test_press_and_drag(self, manager):
        buffer = PixelBuffer(width=8, height=8)
        manager.set_color("#ff0000")
        manager.press(0, 0, buffer)
        result = manager.move(3, 0, buffer)
        assert result.mutated
        assert all(buffer.get_pixel(x, 0) == "#ff0000" for x in range(4))

    def test_move_without_press_is_a_no_op(self, manager, buffer4):
        result = manager.move(1, 1, buffer4)
        assert not result.mutated
        assert buffer4.pixels == {}

    def test_move_after_release_is_a_no_op(self, manager, buffer4):
        manager.press(0, 0, buffer4)
        manager.release()
        assert not manager.move(1, 1, buffer4).mutated
        assert buffer4.get_pixel(1, 1) is None

    def test_out_of_bounds_press_does_not_start_stroke(self, manager, buffer4):
        assert not manager.press(9, 9, buffer4).mutated
        assert not manager.pressed
        assert not manager.move(1, 1, buffer4).mutated

    def test_out_of_bounds_move_is_a_no_op(self, manager, buffer4):
        manager.press(0, 0, buffer4)
        assert not manager.move(-1, 5, buffer4).mutated
        assert not manager.move(float("nan"), 0, buffer4).mutated

    def test_eyedropper_updates_active_color(self, manager, buffer4):
        buffer4.set_pixel(3, 3, "#00ff00")
        manager.set_tool(ToolType.EYEDROPPER)
        result = manager.press(3, 3, buffer4)
        assert result.picked_color == "#00ff00"
        assert manager.current_color == "#00ff00"

    def test_eyedropper_never_mutates_across_tool_history(self, manager, buffer4):
        """Test switching through every tool then picking leaves the buffer alone"""
        manager.press(0, 0, buffer4)
        manager.release()
        for tool in ("eraser", "bucket", "brush"):
            manager.set_tool(tool)
        manager.set_tool("eyedropper")
        before = dict(buffer4.pixels)
        manager.press(0, 0, buffer4)
        manager.move(1, 1, buffer4)
        manager.move(2, 2, buffer4)
        assert buffer4.pixels == before

    def test_bucket_fills_on_drag(self, manager):
        buffer = PixelBuffer(width=5, height=5)
        for y in range(5):
            buffer.set_pixel(2, y, "#000000")
        manager.set_tool("bucket")
        manager.set_color("#ff0000")
        manager.press(0, 0, buffer)
        manager.move(4, 4, buffer)
        assert buffer.get_pixel(4, 4) == "#ff0000"
        assert buffer.get_pixel(0, 0) == "#ff0000"

    def test_color_picked_callback(self, manager, buffer4):
        picked = []
        manager.set_color_picked_callback(picked.append)
        buffer4.set_pixel(1, 1, "#111111")
        manager.set_tool("eyedropper")
        manager.press(1, 1, buffer4)
        assert picked == ["#111111"]


def _palette(palette_id, is_default=False, minutes=0):
    created = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return ColorPalette(
        id=palette_id,
        owner_id="alice",
        name=f"Palette {palette_id}",
        colors=["#000000", "#ffffff"],
        is_default=is_default,
        created_at=created,
        updated_at=created,
    )


class TestPaletteManager:
    """Test palette selection"""

    def test_empty(self):
        manager = PaletteManager()
        assert manager.selected is None
        assert manager.colors == []

    def test_default_flag_wins(self):
        manager = PaletteManager([_palette("a"), _palette("b", is_default=True)])
        assert manager.selected.id == "b"

    def test_first_default_of_several(self):
        manager = PaletteManager(
            [_palette("a"), _palette("b", is_default=True), _palette("c", is_default=True)]
        )
        assert manager.selected.id == "b"

    def test_falls_back_to_first(self):
        manager = PaletteManager([_palette("a"), _palette("b")])
        assert manager.selected.id == "a"

    def test_select_palette(self):
        manager = PaletteManager([_palette("a"), _palette("b")])
        assert manager.select_palette("b") is True
        assert manager.selected.id == "b"
        assert manager.select_palette("zzz") is False
        assert manager.selected.id == "b"

    def test_selection_kept_on_reload(self):
        manager = PaletteManager([_palette("a", is_default=True), _palette("b")])
        manager.select_palette("b")
        manager.set_palettes([_palette("a", is_default=True), _palette("b")])
        assert manager.selected.id == "b"

    def test_selection_reset_when_removed(self):
        manager = PaletteManager([_palette("a", is_default=True), _palette("b")])
        manager.select_palette("b")
        manager.set_palettes([_palette("a", is_default=True)])
        assert manager.selected.id == "a"


class TestEditorSession:
    """Test the explicit session context"""

    def test_zoom_clamped(self):
        artwork = Artwork(id="a", owner_id="alice", title="t", width=8, height=8)
        session = EditorSession(artwork=artwork, buffer=PixelBuffer(8, 8))
        assert session.zoom == 10
        assert session.set_zoom(50) == 30
        assert session.set_zoom(0) == 1
        assert (session.width, session.height) == (8, 8)

    def test_sessions_do_not_share_state(self):
        artwork = Artwork(id="a", owner_id="alice", title="t", width=8, height=8)
        first = EditorSession(artwork=artwork, buffer=PixelBuffer(8, 8))
        second = EditorSession(artwork=artwork, buffer=PixelBuffer(8, 8))
        first.tool_manager.set_tool("eraser")
        assert second.tool_manager.current_tool == ToolType.BRUSH
