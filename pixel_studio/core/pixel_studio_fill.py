#!/usr/bin/env python3
"""
Flood fill for the pixel buffer
4-connected region replacement using an explicit stack, so canvases up to
512x512 never hit the interpreter recursion limit
"""

from typing import Any

from .pixel_studio_models import PixelBuffer
from .pixel_studio_utils import debug_log, normalize_color


def flood_fill(
    buffer: PixelBuffer, start_x: Any, start_y: Any, fill_color: str
) -> list[tuple[int, int]]:
    """
    Flood fill from coordinates
    Recolors the region of cells sharing the seed's color (unpainted counts
    as a color) that is reachable through up/down/left/right neighbors.

    Returns:
        List of changed cells, empty when nothing changed
    """
    fill_color = normalize_color(fill_color)
    if not buffer.in_bounds(start_x, start_y):
        return []

    start_x, start_y = int(start_x), int(start_y)
    target_color = buffer.pixels.get((start_x, start_y))
    if target_color == fill_color:
        return []

    pixels = buffer.pixels
    width, height = buffer.width, buffer.height
    changed_pixels = []
    stack = [(start_x, start_y)]

    while stack:
        cx, cy = stack.pop()
        if not (0 <= cx < width and 0 <= cy < height):
            continue
        if pixels.get((cx, cy)) != target_color:
            continue

        pixels[(cx, cy)] = fill_color
        changed_pixels.append((cx, cy))

        # Add neighbors
        stack.extend([(cx + 1, cy), (cx - 1, cy), (cx, cy + 1), (cx, cy - 1)])

    if changed_pixels:
        buffer.modified = True
        debug_log(
            "FILL",
            f"Filled {len(changed_pixels)} cells from ({start_x}, {start_y}) with {fill_color}",
            "DEBUG",
        )
    return changed_pixels
