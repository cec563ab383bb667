#!/usr/bin/env python3
"""
Core data models for Pixel Studio
These models handle the business logic without any UI dependencies
"""

# Standard library imports
import json
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

# Third-party imports
import numpy as np

from .pixel_studio_constants import (
    BACKGROUND_COLOR,
    DEFAULT_ARTWORK_HEIGHT,
    DEFAULT_ARTWORK_WIDTH,
    EMPTY_PIXEL_DATA,
)
from .pixel_studio_exceptions import ParseError, ValidationError
from .pixel_studio_utils import (
    coordinate_key,
    debug_log,
    hex_to_rgb,
    is_grid_coordinate,
    is_valid_hex_color,
    normalize_color,
    parse_coordinate_key,
)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


@dataclass
class PixelBuffer:
    """
    Sparse mapping from grid coordinate to hex color
    Absent keys are unpainted cells
    """

    width: int = DEFAULT_ARTWORK_WIDTH
    height: int = DEFAULT_ARTWORK_HEIGHT
    pixels: dict[tuple[int, int], str] = field(default_factory=dict)
    modified: bool = False

    def __post_init__(self):
        """Validate dimensions and canonicalize any initial colors"""
        if not (is_grid_coordinate(self.width) and is_grid_coordinate(self.height)):
            raise ValidationError("Buffer dimensions must be integers")
        if self.width <= 0 or self.height <= 0:
            raise ValidationError("Buffer dimensions must be positive")
        self.width = int(self.width)
        self.height = int(self.height)
        self.pixels = {
            key: color.lower() if isinstance(color, str) else color
            for key, color in self.pixels.items()
        }

    def in_bounds(self, x: Any, y: Any) -> bool:
        """Check that (x, y) is a finite integral cell inside the grid"""
        return (
            is_grid_coordinate(x)
            and is_grid_coordinate(y)
            and 0 <= x < self.width
            and 0 <= y < self.height
        )

    def get_pixel(self, x: Any, y: Any) -> Optional[str]:
        """Get the color at a cell, None when unpainted or out of bounds"""
        if not self.in_bounds(x, y):
            return None
        return self.pixels.get((int(x), int(y)))

    def set_pixel(self, x: Any, y: Any, color: str) -> bool:
        """
        Paint a cell
        Returns True if the cell changed; out of bounds cells are never stored
        """
        color = normalize_color(color)
        if not self.in_bounds(x, y):
            return False
        key = (int(x), int(y))
        if self.pixels.get(key) == color:
            return False
        self.pixels[key] = color
        self.modified = True
        return True

    def clear_pixel(self, x: Any, y: Any) -> bool:
        """Erase a cell back to unpainted. Returns True if it was painted"""
        if not self.in_bounds(x, y):
            return False
        if self.pixels.pop((int(x), int(y)), None) is None:
            return False
        self.modified = True
        return True

    def clear_all(self) -> bool:
        """Erase every cell. Returns True if anything was painted"""
        if not self.pixels:
            return False
        self.pixels.clear()
        self.modified = True
        return True

    def occupied(self) -> Iterator[tuple[tuple[int, int], str]]:
        """Iterate painted in-bounds cells, skipping stale keys"""
        for (x, y), color in self.pixels.items():
            if self.in_bounds(x, y) and is_valid_hex_color(color):
                yield (x, y), color

    def pixel_count(self) -> int:
        """Number of painted in-bounds cells"""
        return sum(1 for _ in self.occupied())

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.width, self.height, dict(self.pixels), self.modified)

    # Serialization

    def serialize(self) -> dict[str, str]:
        """Flat string keyed record ('x,y' -> '#rrggbb') for persistence"""
        return {coordinate_key(x, y): color for (x, y), color in self.occupied()}

    def to_json(self) -> str:
        """Serialize to the JSON text stored in an artwork's pixel_data"""
        return json.dumps(self.serialize(), separators=(",", ":"))

    @classmethod
    def deserialize(
        cls, record: Any, width: int, height: int
    ) -> tuple["PixelBuffer", Optional[ParseError]]:
        """
        Build a buffer from a serialized record
        On corrupt data returns an empty buffer together with the ParseError
        instead of raising, so the editor can keep running
        """
        buffer = cls(width=width, height=height)
        if not record:
            return buffer, None
        if not isinstance(record, dict):
            return buffer, ParseError(
                f"Pixel data must be an object, got {type(record).__name__}"
            )

        dropped = 0
        for key, value in record.items():
            try:
                x, y = parse_coordinate_key(str(key))
            except ValueError as e:
                return cls(width=width, height=height), ParseError(str(e))
            if not is_valid_hex_color(value):
                return cls(width=width, height=height), ParseError(
                    f"Invalid color {value!r} at {key!r}"
                )
            if not buffer.in_bounds(x, y):
                dropped += 1
                continue
            buffer.pixels[(x, y)] = value.lower()

        if dropped:
            debug_log("BUFFER", f"Dropped {dropped} out-of-bounds pixels on load", "DEBUG")
        return buffer, None

    @classmethod
    def from_json(
        cls, text: Optional[str], width: int, height: int
    ) -> tuple["PixelBuffer", Optional[ParseError]]:
        """Parse pixel_data JSON text, see deserialize() for error handling"""
        if not text:
            return cls(width=width, height=height), None
        try:
            record = json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            return cls(width=width, height=height), ParseError(
                f"Failed to parse pixel data: {e}"
            )
        return cls.deserialize(record, width, height)

    def to_array(self) -> np.ndarray:
        """Convert to an RGB array (height, width, 3) over a white background"""
        background = hex_to_rgb(BACKGROUND_COLOR)
        data = np.empty((self.height, self.width, 3), dtype=np.uint8)
        data[:, :] = background
        for (x, y), color in self.occupied():
            data[y, x] = hex_to_rgb(color)
        return data


# ================================================================================
# Persisted records
# ================================================================================


class RecordMixin:
    """Dict conversion shared by the persisted dataclasses"""

    _datetime_fields = ("created_at", "updated_at")

    def to_dict(self) -> dict[str, Any]:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, list):
                value = list(value)
            data[f.name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]):
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name in cls._datetime_fields:
            if isinstance(values.get(name), str):
                values[name] = datetime.fromisoformat(values[name])
        return cls(**values)


@dataclass
class Artwork(RecordMixin):
    """A drawable artwork owned by one user"""

    id: str
    owner_id: str
    title: str
    width: int
    height: int
    description: Optional[str] = None
    pixel_data: str = EMPTY_PIXEL_DATA
    thumbnail_url: Optional[str] = None
    is_public: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class Layer(RecordMixin):
    """Layer metadata for an artwork; order_index lower = further back"""

    id: str
    artwork_id: str
    name: str
    order_index: int = 0
    is_visible: bool = True
    opacity: float = 1.0
    pixel_data: str = EMPTY_PIXEL_DATA
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class ColorPalette(RecordMixin):
    """Reusable ordered list of hex colors"""

    id: str
    owner_id: str
    name: str
    colors: list[str] = field(default_factory=list)
    is_default: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
