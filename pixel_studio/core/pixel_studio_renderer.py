#!/usr/bin/env python3
"""
Render projection for the pixel canvas

project() turns a buffer into a flat stream of draw instructions (white
background, grid overlay, one square per painted cell). It is a full redraw
every call; the canvas widget replays the stream with QPainter and
rasterize() replays it into a numpy array for previews and tests.
"""

# Standard library imports
import math
from dataclasses import dataclass
from typing import Any, Optional, Union

# Third-party imports
import numpy as np
from PIL import Image

from .pixel_studio_constants import BACKGROUND_COLOR, GRID_COLOR, GRID_LINE_WIDTH
from .pixel_studio_models import PixelBuffer
from .pixel_studio_utils import hex_to_rgb


@dataclass(frozen=True)
class FillRect:
    """Filled axis aligned rectangle"""

    x: int
    y: int
    width: int
    height: int
    color: str


@dataclass(frozen=True)
class Line:
    """Straight stroke between two points"""

    x0: int
    y0: int
    x1: int
    y1: int
    color: str
    width: int = GRID_LINE_WIDTH


DrawInstruction = Union[FillRect, Line]


def project(
    buffer: PixelBuffer, width: int, height: int, zoom: int
) -> list[DrawInstruction]:
    """
    Map a buffer to draw instructions at the given zoom

    Cells outside width x height are skipped, so stale keys never reach the
    output. Grid lines sit at every multiple of zoom, including both edges.
    """
    zoom = max(1, int(zoom))
    canvas_width = width * zoom
    canvas_height = height * zoom

    instructions: list[DrawInstruction] = [
        FillRect(0, 0, canvas_width, canvas_height, BACKGROUND_COLOR)
    ]

    for x in range(width + 1):
        instructions.append(Line(x * zoom, 0, x * zoom, canvas_height, GRID_COLOR))
    for y in range(height + 1):
        instructions.append(Line(0, y * zoom, canvas_width, y * zoom, GRID_COLOR))

    for (x, y), color in buffer.occupied():
        if x < width and y < height:
            instructions.append(FillRect(x * zoom, y * zoom, zoom, zoom, color))

    return instructions


def canvas_to_grid(
    px: Any, py: Any, zoom: int, width: int, height: int
) -> Optional[tuple[int, int]]:
    """Convert a canvas position to the grid cell under it, None if outside"""
    try:
        fx, fy = float(px), float(py)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(fx) and math.isfinite(fy)) or zoom <= 0:
        return None

    x = int(fx // zoom)
    y = int(fy // zoom)
    if 0 <= x < width and 0 <= y < height:
        return x, y
    return None


def rasterize(
    instructions: list[DrawInstruction], width_px: int, height_px: int
) -> np.ndarray:
    """Replay an instruction stream into an RGB array (height_px, width_px, 3)"""
    canvas = np.zeros((height_px, width_px, 3), dtype=np.uint8)

    for op in instructions:
        if isinstance(op, FillRect):
            x0, y0 = max(0, op.x), max(0, op.y)
            x1 = min(width_px, op.x + op.width)
            y1 = min(height_px, op.y + op.height)
            if x0 < x1 and y0 < y1:
                canvas[y0:y1, x0:x1] = hex_to_rgb(op.color)
        elif isinstance(op, Line):
            _rasterize_line(canvas, op)

    return canvas


def _rasterize_line(canvas: np.ndarray, line: Line) -> None:
    """Axis aligned lines only; the right/bottom edge clamps to the last pixel"""
    height_px, width_px = canvas.shape[:2]
    if height_px == 0 or width_px == 0:
        return
    rgb = hex_to_rgb(line.color)
    if line.x0 == line.x1:
        x = min(max(line.x0, 0), width_px - 1)
        y0, y1 = sorted((line.y0, line.y1))
        canvas[max(0, y0):min(height_px, y1), x:x + line.width] = rgb
    elif line.y0 == line.y1:
        y = min(max(line.y0, 0), height_px - 1)
        x0, x1 = sorted((line.x0, line.x1))
        canvas[y:y + line.width, max(0, x0):min(width_px, x1)] = rgb


def render_array(buffer: PixelBuffer, zoom: int) -> np.ndarray:
    """Project and rasterize a whole buffer"""
    instructions = project(buffer, buffer.width, buffer.height, zoom)
    return rasterize(instructions, buffer.width * zoom, buffer.height * zoom)


def to_pil_image(array: np.ndarray) -> Image.Image:
    """Wrap a rasterized canvas as a PIL RGB image"""
    return Image.fromarray(np.ascontiguousarray(array, dtype=np.uint8))
