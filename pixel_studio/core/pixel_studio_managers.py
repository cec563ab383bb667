#!/usr/bin/env python3
"""
Manager classes for Pixel Studio
Handle coordination between models and provide business logic
"""

# Standard library imports
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from .pixel_studio_constants import (
    BRUSH_SIZE_DEFAULT,
    BRUSH_SIZE_MAX,
    BRUSH_SIZE_MIN,
    DEFAULT_DRAW_COLOR,
    ZOOM_DEFAULT,
    ZOOM_MAX,
    ZOOM_MIN,
)
from .pixel_studio_fill import flood_fill
from .pixel_studio_models import Artwork, ColorPalette, Layer, PixelBuffer
from .pixel_studio_utils import clamp, debug_log, normalize_color


class ToolType(Enum):
    """Available drawing tools"""

    BRUSH = "brush"
    ERASER = "eraser"
    BUCKET = "bucket"
    EYEDROPPER = "eyedropper"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"


@dataclass
class ToolResult:
    """Outcome of one pointer interaction"""

    changed: list[tuple[int, int]] = field(default_factory=list)
    picked_color: Optional[str] = None

    @property
    def mutated(self) -> bool:
        return bool(self.changed)


class Tool(ABC):
    """Abstract base class for drawing tools"""

    @abstractmethod
    def on_press(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        """Handle pointer press"""

    @abstractmethod
    def on_move(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        """Handle pointer move while pressed"""

    def on_release(self) -> None:
        """Handle pointer release"""


class StrokeTool(Tool):
    """Base for tools that paint a square footprint along an interpolated stroke"""

    def __init__(self) -> None:
        self.size = BRUSH_SIZE_DEFAULT
        self.last_x: Optional[int] = None
        self.last_y: Optional[int] = None

    @abstractmethod
    def apply_cell(self, x: int, y: int, color: str, buffer: PixelBuffer) -> bool:
        """Mutate one cell, return True if it changed"""

    def on_press(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        """Paint the footprint and start tracking position"""
        self.last_x = x
        self.last_y = y
        return self._apply_points([(x, y)], color, buffer)

    def on_move(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        """Continue the stroke with line interpolation"""
        if self.last_x is None or self.last_y is None:
            return self.on_press(x, y, color, buffer)

        points = get_line_points(self.last_x, self.last_y, x, y)
        self.last_x = x
        self.last_y = y
        return self._apply_points(points, color, buffer)

    def on_release(self) -> None:
        """Clear tracking state"""
        self.last_x = None
        self.last_y = None

    def footprint(self, x: int, y: int) -> list[tuple[int, int]]:
        """Cells covered at (x, y), anchored at the top-left"""
        return [(x + dx, y + dy) for dy in range(self.size) for dx in range(self.size)]

    def _apply_points(
        self, points: list[tuple[int, int]], color: str, buffer: PixelBuffer
    ) -> ToolResult:
        changed = []
        seen = set()
        for px, py in points:
            for cell in self.footprint(px, py):
                if cell in seen:
                    continue
                seen.add(cell)
                if self.apply_cell(cell[0], cell[1], color, buffer):
                    changed.append(cell)
        return ToolResult(changed=changed)


class BrushTool(StrokeTool):
    """Paint the active color"""

    def apply_cell(self, x: int, y: int, color: str, buffer: PixelBuffer) -> bool:
        return buffer.set_pixel(x, y, color)


class EraserTool(StrokeTool):
    """Return cells to unpainted"""

    def apply_cell(self, x: int, y: int, color: str, buffer: PixelBuffer) -> bool:
        return buffer.clear_pixel(x, y)


class ShapeTool(BrushTool):
    """Rectangle and circle tools; they currently paint like the brush"""

    def __init__(self, shape: str) -> None:
        super().__init__()
        self.shape = shape


class BucketTool(Tool):
    """Flood fill tool"""

    def on_press(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        return ToolResult(changed=flood_fill(buffer, x, y, color))

    def on_move(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        # Dragging fills each region the pointer enters
        return self.on_press(x, y, color, buffer)


class EyedropperTool(Tool):
    """Color picker tool, never mutates the buffer"""

    def __init__(self) -> None:
        self.picked_callback: Optional[Callable[[str], None]] = None

    def on_press(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        picked_color = buffer.get_pixel(x, y)
        if picked_color and self.picked_callback:
            self.picked_callback(picked_color)
        return ToolResult(picked_color=picked_color)

    def on_move(self, x: int, y: int, color: str, buffer: PixelBuffer) -> ToolResult:
        return self.on_press(x, y, color, buffer)


def get_line_points(x0: int, y0: int, x1: int, y1: int) -> list[tuple[int, int]]:
    """Get all points on a line using Bresenham's algorithm"""
    points = []

    dx = abs(x1 - x0)
    dy = abs(y1 - y0)

    # Determine direction
    sx = 1 if x0 < x1 else -1
    sy = 1 if y0 < y1 else -1

    err = dx - dy
    x, y = x0, y0

    while True:
        points.append((x, y))

        if x == x1 and y == y1:
            break

        e2 = 2 * err

        if e2 > -dy:
            err -= dy
            x += sx

        if e2 < dx:
            err += dx
            y += sy

    return points


class ToolManager:
    """Manages drawing tools and tool state, dispatching pointer events"""

    def __init__(
        self,
        color: str = DEFAULT_DRAW_COLOR,
        brush_size: int = BRUSH_SIZE_DEFAULT,
    ) -> None:
        self.tools: dict[ToolType, Tool] = {
            ToolType.BRUSH: BrushTool(),
            ToolType.ERASER: EraserTool(),
            ToolType.BUCKET: BucketTool(),
            ToolType.EYEDROPPER: EyedropperTool(),
            ToolType.RECTANGLE: ShapeTool("rectangle"),
            ToolType.CIRCLE: ShapeTool("circle"),
        }
        self.current_tool = ToolType.BRUSH
        self.current_color = normalize_color(color)
        self.current_brush_size = BRUSH_SIZE_DEFAULT
        self.pressed = False
        self.set_brush_size(brush_size)

    @staticmethod
    def resolve_tool(tool_type: Union[ToolType, str]) -> Optional[ToolType]:
        """Convert a tool name or enum to a ToolType, None if unknown"""
        if isinstance(tool_type, ToolType):
            return tool_type
        try:
            return ToolType(str(tool_type).lower())
        except ValueError:
            return None

    def set_tool(self, tool_type: Union[ToolType, str]) -> bool:
        """Set the current tool (accepts ToolType enum or string)"""
        resolved = self.resolve_tool(tool_type)
        if resolved is None:
            debug_log("TOOL", f"Unknown tool: {tool_type}", "WARNING")
            return False

        # Switching mid-stroke ends the stroke
        self.tools[self.current_tool].on_release()
        self.current_tool = resolved
        debug_log("TOOL", f"Tool changed to {resolved.value}")
        return True

    @property
    def current_tool_name(self) -> str:
        """Get the name of the current tool"""
        return self.current_tool.value

    def get_tool(self, tool_type: Optional[Union[ToolType, str]] = None) -> Tool:
        """Get tool instance (current tool if no type specified)"""
        if tool_type is None:
            return self.tools[self.current_tool]
        resolved = self.resolve_tool(tool_type)
        if resolved is None:
            raise ValueError(f"Unknown tool: {tool_type}")
        return self.tools[resolved]

    def set_color(self, color: str) -> str:
        """Set the current drawing color, returns the canonical form"""
        self.current_color = normalize_color(color)
        return self.current_color

    def set_brush_size(self, size: int) -> bool:
        """Set brush size with validation"""
        if not (BRUSH_SIZE_MIN <= size <= BRUSH_SIZE_MAX):
            debug_log(
                "TOOL",
                f"Invalid brush size {size}, must be {BRUSH_SIZE_MIN}-{BRUSH_SIZE_MAX}",
                "WARNING",
            )
            return False
        self.current_brush_size = int(size)
        for tool in self.tools.values():
            if isinstance(tool, StrokeTool):
                tool.size = self.current_brush_size
        debug_log("TOOL", f"Brush size changed to {size}", "DEBUG")
        return True

    def set_color_picked_callback(self, callback: Callable[[str], None]) -> None:
        """Set callback for the eyedropper tool"""
        picker = self.tools[ToolType.EYEDROPPER]
        if isinstance(picker, EyedropperTool):
            picker.picked_callback = callback

    # Pointer dispatch

    def press(self, x: Any, y: Any, buffer: PixelBuffer) -> ToolResult:
        """Pointer down on a cell; out of bounds presses do not start a stroke"""
        if not buffer.in_bounds(x, y):
            return ToolResult()
        self.pressed = True
        return self._dispatch("on_press", int(x), int(y), buffer)

    def move(self, x: Any, y: Any, buffer: PixelBuffer) -> ToolResult:
        """Pointer move; only acts while pressed and inside the grid"""
        if not self.pressed or not buffer.in_bounds(x, y):
            return ToolResult()
        return self._dispatch("on_move", int(x), int(y), buffer)

    def release(self) -> None:
        """Pointer up or pointer left the canvas"""
        self.pressed = False
        self.tools[self.current_tool].on_release()

    def _dispatch(self, method: str, x: int, y: int, buffer: PixelBuffer) -> ToolResult:
        tool = self.tools[self.current_tool]
        result = getattr(tool, method)(x, y, self.current_color, buffer)
        if result.picked_color:
            self.current_color = result.picked_color
        return result


class PaletteManager:
    """Holds the user's palettes and the one selected for the editor"""

    def __init__(self, palettes: Optional[list[ColorPalette]] = None) -> None:
        self.palettes: list[ColorPalette] = []
        self.selected: Optional[ColorPalette] = None
        if palettes:
            self.set_palettes(palettes)

    def set_palettes(self, palettes: list[ColorPalette]) -> None:
        """Replace the palette list, keeping the selection when it still exists"""
        self.palettes = list(palettes)
        if self.selected is not None:
            self.selected = self.get_palette(self.selected.id)
        if self.selected is None:
            self.selected = self.get_default_palette()
        debug_log("PALETTE", f"Loaded {len(self.palettes)} palettes")

    def get_palette(self, palette_id: str) -> Optional[ColorPalette]:
        """Get palette by id"""
        for palette in self.palettes:
            if palette.id == palette_id:
                return palette
        return None

    def get_default_palette(self) -> Optional[ColorPalette]:
        """First palette flagged as default, else the first palette"""
        for palette in self.palettes:
            if palette.is_default:
                return palette
        return self.palettes[0] if self.palettes else None

    def select_palette(self, palette_id: str) -> bool:
        """
        Set the selected palette
        Returns True if the palette exists
        """
        palette = self.get_palette(palette_id)
        if palette is None:
            return False
        self.selected = palette
        debug_log("PALETTE", f"Switched to palette {palette.name}")
        return True

    @property
    def colors(self) -> list[str]:
        """Colors of the selected palette"""
        return list(self.selected.colors) if self.selected else []


@dataclass
class EditorSession:
    """Everything one open artwork needs, passed explicitly between components"""

    artwork: Artwork
    buffer: PixelBuffer
    tool_manager: ToolManager = field(default_factory=ToolManager)
    palette_manager: PaletteManager = field(default_factory=PaletteManager)
    layers: list[Layer] = field(default_factory=list)
    zoom: int = ZOOM_DEFAULT

    def set_zoom(self, zoom: int) -> int:
        self.zoom = clamp(zoom, ZOOM_MIN, ZOOM_MAX)
        return self.zoom

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height
