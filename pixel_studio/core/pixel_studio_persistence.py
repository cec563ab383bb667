#!/usr/bin/env python3
"""
Persistence service for artworks, layers and color palettes

The editor only talks to the PersistenceService interface. Two
implementations are provided: an in-memory store used by tests and demos,
and a JSON file store that writes the whole state to disk after every
mutation.
"""

# Standard library imports
import json
import os
import threading
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager, suppress
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, Union

from .pixel_studio_constants import (
    ARTWORK_TITLE_MAX_LENGTH,
    EMPTY_PIXEL_DATA,
    LAYER_NAME_MAX_LENGTH,
    MAX_ARTWORK_SIZE,
    MIN_ARTWORK_SIZE,
    PALETTE_MAX_COLORS,
    PALETTE_MIN_COLORS,
    PALETTE_NAME_MAX_LENGTH,
    PUBLIC_ARTWORKS_DEFAULT_LIMIT,
    PUBLIC_ARTWORKS_MAX_LIMIT,
)
from .pixel_studio_exceptions import (
    NotFoundError,
    OwnershipError,
    PersistenceError,
    ValidationError,
)
from .pixel_studio_models import Artwork, ColorPalette, Layer, utc_now
from .pixel_studio_utils import debug_exception, debug_log, is_valid_hex_color


class PersistenceService(ABC):
    """Storage contract consumed by the editor"""

    # Artworks

    @abstractmethod
    def create_artwork(
        self,
        owner_id: str,
        title: str,
        width: int,
        height: int,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> Artwork:
        """Create an artwork with empty pixel data"""

    @abstractmethod
    def update_artwork(self, artwork_id: str, **changes: Any) -> Artwork:
        """Update title, description, pixel_data, thumbnail_url or is_public"""

    @abstractmethod
    def get_artworks_by_user(
        self, owner_id: str, include_private: bool = True
    ) -> list[Artwork]:
        """All artworks of one user"""

    @abstractmethod
    def get_public_artworks(
        self, limit: int = PUBLIC_ARTWORKS_DEFAULT_LIMIT, offset: int = 0
    ) -> list[Artwork]:
        """Public artworks, newest first"""

    @abstractmethod
    def get_artwork_by_id(
        self, artwork_id: str, owner_id: Optional[str] = None
    ) -> Optional[Artwork]:
        """One artwork; private artworks need an owner_id"""

    @abstractmethod
    def delete_artwork(self, artwork_id: str, owner_id: str) -> bool:
        """Delete an owned artwork and its layers"""

    # Layers

    @abstractmethod
    def create_layer(
        self,
        artwork_id: str,
        name: str,
        order_index: Optional[int] = None,
        opacity: float = 1.0,
    ) -> Layer:
        """Add a layer to an artwork"""

    @abstractmethod
    def get_layers_by_artwork(
        self, artwork_id: str, owner_id: Optional[str] = None
    ) -> list[Layer]:
        """Layers in compositing order"""

    @abstractmethod
    def update_layer(self, layer_id: str, **changes: Any) -> Layer:
        """Update name, order_index, is_visible, opacity or pixel_data"""

    @abstractmethod
    def delete_layer(self, layer_id: str, owner_id: str) -> bool:
        """Delete a layer of an owned artwork"""

    # Color palettes

    @abstractmethod
    def create_color_palette(
        self, owner_id: str, name: str, colors: list[str], is_default: bool = False
    ) -> ColorPalette:
        """Create a palette"""

    @abstractmethod
    def get_user_color_palettes(self, owner_id: str) -> list[ColorPalette]:
        """Palettes of one user, newest first"""

    @abstractmethod
    def update_color_palette(self, palette_id: str, **changes: Any) -> ColorPalette:
        """Update name, colors or is_default"""

    @abstractmethod
    def delete_color_palette(self, palette_id: str, owner_id: str) -> bool:
        """Delete an owned palette, False when absent or not owned"""


# ================================================================================
# Input validation
# ================================================================================


def _validate_text(value: Any, field_name: str, max_length: int) -> str:
    if not isinstance(value, str) or not (1 <= len(value) <= max_length):
        raise ValidationError(f"{field_name} must be 1-{max_length} characters")
    return value


def _validate_dimension(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer")
    if not (MIN_ARTWORK_SIZE <= value <= MAX_ARTWORK_SIZE):
        raise ValidationError(
            f"{field_name} must be between {MIN_ARTWORK_SIZE} and {MAX_ARTWORK_SIZE}"
        )
    return value


def _validate_order_index(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("order_index must be a non-negative integer")
    return value


def _validate_opacity(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError("opacity must be a number")
    if not (0.0 <= value <= 1.0):
        raise ValidationError("opacity must be between 0 and 1")
    return float(value)


def _validate_colors(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError("colors must be a list")
    if not (PALETTE_MIN_COLORS <= len(value) <= PALETTE_MAX_COLORS):
        raise ValidationError(
            f"A palette holds {PALETTE_MIN_COLORS}-{PALETTE_MAX_COLORS} colors"
        )
    for color in value:
        if not is_valid_hex_color(color):
            raise ValidationError(f"Invalid color {color!r}, expected #rrggbb")
    return [color.lower() for color in value]


def _validate_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a boolean")
    return value


def _validate_optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text")
    return value


def _validate_text_blob(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError("pixel_data must be serialized JSON text")
    return value


ARTWORK_UPDATERS: dict[str, Callable[[Any], Any]] = {
    "title": lambda v: _validate_text(v, "title", ARTWORK_TITLE_MAX_LENGTH),
    "description": lambda v: _validate_optional_text(v, "description"),
    "pixel_data": _validate_text_blob,
    "thumbnail_url": lambda v: _validate_optional_text(v, "thumbnail_url"),
    "is_public": lambda v: _validate_bool(v, "is_public"),
}

LAYER_UPDATERS: dict[str, Callable[[Any], Any]] = {
    "name": lambda v: _validate_text(v, "name", LAYER_NAME_MAX_LENGTH),
    "order_index": _validate_order_index,
    "is_visible": lambda v: _validate_bool(v, "is_visible"),
    "opacity": _validate_opacity,
    "pixel_data": _validate_text_blob,
}

PALETTE_UPDATERS: dict[str, Callable[[Any], Any]] = {
    "name": lambda v: _validate_text(v, "name", PALETTE_NAME_MAX_LENGTH),
    "colors": _validate_colors,
    "is_default": lambda v: _validate_bool(v, "is_default"),
}


def _apply_changes(
    record: Any, changes: dict[str, Any], updaters: dict[str, Callable[[Any], Any]]
) -> dict[str, Any]:
    """Validate a partial update; unknown or immutable fields are rejected"""
    validated = {}
    for name, value in changes.items():
        updater = updaters.get(name)
        if updater is None:
            raise ValidationError(
                f"Field '{name}' cannot be updated on {type(record).__name__}"
            )
        validated[name] = updater(value)
    return validated


# ================================================================================
# In-memory implementation
# ================================================================================


class InMemoryPersistenceService(PersistenceService):
    """Dictionary backed store; records handed out are copies"""

    def __init__(self, clock: Callable[[], Any] = utc_now) -> None:
        self._clock = clock
        self._lock = threading.RLock()
        self.artworks: dict[str, Artwork] = {}
        self.layers: dict[str, Layer] = {}
        self.palettes: dict[str, ColorPalette] = {}

    def _new_id(self) -> str:
        return str(uuid.uuid4())

    def _commit(self) -> None:
        """Hook for subclasses that persist state after each mutation"""

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Apply a change and commit it; a failed commit leaves the store as it was"""
        with self._lock:
            before = (dict(self.artworks), dict(self.layers), dict(self.palettes))
            try:
                yield
                self._commit()
            except Exception:
                self.artworks, self.layers, self.palettes = before
                raise

    # Artworks

    def create_artwork(
        self,
        owner_id: str,
        title: str,
        width: int,
        height: int,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> Artwork:
        _validate_text(title, "title", ARTWORK_TITLE_MAX_LENGTH)
        _validate_dimension(width, "width")
        _validate_dimension(height, "height")
        _validate_optional_text(description, "description")
        _validate_bool(is_public, "is_public")

        now = self._clock()
        artwork = Artwork(
            id=self._new_id(),
            owner_id=owner_id,
            title=title,
            width=width,
            height=height,
            description=description,
            pixel_data=EMPTY_PIXEL_DATA,
            is_public=is_public,
            created_at=now,
            updated_at=now,
        )
        with self._mutation():
            self.artworks[artwork.id] = artwork
        debug_log("STORE", f"Created artwork {artwork.id} ({width}x{height})")
        return replace(artwork)

    def update_artwork(self, artwork_id: str, **changes: Any) -> Artwork:
        with self._mutation():
            artwork = self.artworks.get(artwork_id)
            if artwork is None:
                raise NotFoundError(f"Artwork {artwork_id} not found")
            validated = _apply_changes(artwork, changes, ARTWORK_UPDATERS)
            updated = replace(artwork, **validated, updated_at=self._clock())
            self.artworks[artwork_id] = updated
        debug_log("STORE", f"Updated artwork {artwork_id}: {sorted(validated)}", "DEBUG")
        return replace(updated)

    def get_artworks_by_user(
        self, owner_id: str, include_private: bool = True
    ) -> list[Artwork]:
        with self._lock:
            return [
                replace(a)
                for a in self.artworks.values()
                if a.owner_id == owner_id and (include_private or a.is_public)
            ]

    def get_public_artworks(
        self, limit: int = PUBLIC_ARTWORKS_DEFAULT_LIMIT, offset: int = 0
    ) -> list[Artwork]:
        if isinstance(limit, bool) or not isinstance(limit, int) or not (
            1 <= limit <= PUBLIC_ARTWORKS_MAX_LIMIT
        ):
            raise ValidationError(f"limit must be 1-{PUBLIC_ARTWORKS_MAX_LIMIT}")
        if isinstance(offset, bool) or not isinstance(offset, int) or offset < 0:
            raise ValidationError("offset must be a non-negative integer")

        with self._lock:
            public = [a for a in self.artworks.values() if a.is_public]
        public.sort(key=lambda a: a.created_at, reverse=True)
        return [replace(a) for a in public[offset:offset + limit]]

    def get_artwork_by_id(
        self, artwork_id: str, owner_id: Optional[str] = None
    ) -> Optional[Artwork]:
        with self._lock:
            artwork = self.artworks.get(artwork_id)
        if artwork is None:
            return None
        # Any requester id unlocks private artworks; ownership is not checked here
        if not artwork.is_public and not owner_id:
            return None
        return replace(artwork)

    def delete_artwork(self, artwork_id: str, owner_id: str) -> bool:
        with self._mutation():
            artwork = self.artworks.get(artwork_id)
            if artwork is None or artwork.owner_id != owner_id:
                raise NotFoundError(
                    "Artwork not found or you do not have permission to delete it"
                )
            del self.artworks[artwork_id]
            for layer_id in [
                lid for lid, layer in self.layers.items() if layer.artwork_id == artwork_id
            ]:
                del self.layers[layer_id]
        debug_log("STORE", f"Deleted artwork {artwork_id}")
        return True

    # Layers

    def create_layer(
        self,
        artwork_id: str,
        name: str,
        order_index: Optional[int] = None,
        opacity: float = 1.0,
    ) -> Layer:
        _validate_text(name, "name", LAYER_NAME_MAX_LENGTH)
        _validate_opacity(opacity)
        if order_index is not None:
            _validate_order_index(order_index)

        with self._mutation():
            if artwork_id not in self.artworks:
                raise NotFoundError(f"Artwork {artwork_id} not found")
            if order_index is None:
                existing = [
                    layer.order_index
                    for layer in self.layers.values()
                    if layer.artwork_id == artwork_id
                ]
                order_index = max(existing, default=-1) + 1

            now = self._clock()
            layer = Layer(
                id=self._new_id(),
                artwork_id=artwork_id,
                name=name,
                order_index=order_index,
                opacity=float(opacity),
                created_at=now,
                updated_at=now,
            )
            self.layers[layer.id] = layer
        debug_log("STORE", f"Created layer {layer.id} at index {order_index}")
        return replace(layer)

    def get_layers_by_artwork(
        self, artwork_id: str, owner_id: Optional[str] = None
    ) -> list[Layer]:
        with self._lock:
            if owner_id is not None:
                artwork = self.artworks.get(artwork_id)
                if artwork is None or artwork.owner_id != owner_id:
                    return []
            layers = [
                replace(layer)
                for layer in self.layers.values()
                if layer.artwork_id == artwork_id
            ]
        layers.sort(key=lambda layer: (layer.order_index, layer.created_at))
        return layers

    def update_layer(self, layer_id: str, **changes: Any) -> Layer:
        with self._mutation():
            layer = self.layers.get(layer_id)
            if layer is None:
                raise NotFoundError(f"Layer {layer_id} not found")
            validated = _apply_changes(layer, changes, LAYER_UPDATERS)
            updated = replace(layer, **validated, updated_at=self._clock())
            self.layers[layer_id] = updated
        return replace(updated)

    def delete_layer(self, layer_id: str, owner_id: str) -> bool:
        with self._mutation():
            layer = self.layers.get(layer_id)
            if layer is None:
                raise NotFoundError(f"Layer {layer_id} not found")
            artwork = self.artworks.get(layer.artwork_id)
            if artwork is None or artwork.owner_id != owner_id:
                raise OwnershipError(
                    "You can only delete layers from your own artworks"
                )
            del self.layers[layer_id]
        debug_log("STORE", f"Deleted layer {layer_id}")
        return True

    # Color palettes

    def create_color_palette(
        self, owner_id: str, name: str, colors: list[str], is_default: bool = False
    ) -> ColorPalette:
        _validate_text(name, "name", PALETTE_NAME_MAX_LENGTH)
        colors = _validate_colors(colors)
        _validate_bool(is_default, "is_default")

        now = self._clock()
        palette = ColorPalette(
            id=self._new_id(),
            owner_id=owner_id,
            name=name,
            colors=colors,
            is_default=is_default,
            created_at=now,
            updated_at=now,
        )
        with self._mutation():
            self.palettes[palette.id] = palette
        debug_log("STORE", f"Created palette {palette.id} with {len(colors)} colors")
        return replace(palette, colors=list(palette.colors))

    def get_user_color_palettes(self, owner_id: str) -> list[ColorPalette]:
        with self._lock:
            palettes = [
                replace(p, colors=list(p.colors))
                for p in self.palettes.values()
                if p.owner_id == owner_id
            ]
        palettes.sort(key=lambda p: p.created_at, reverse=True)
        return palettes

    def update_color_palette(self, palette_id: str, **changes: Any) -> ColorPalette:
        with self._mutation():
            palette = self.palettes.get(palette_id)
            if palette is None:
                raise NotFoundError(f"Color palette {palette_id} not found")
            validated = _apply_changes(palette, changes, PALETTE_UPDATERS)
            updated = replace(palette, **validated, updated_at=self._clock())
            self.palettes[palette_id] = updated
        return replace(updated, colors=list(updated.colors))

    def delete_color_palette(self, palette_id: str, owner_id: str) -> bool:
        with self._mutation():
            palette = self.palettes.get(palette_id)
            if palette is None or palette.owner_id != owner_id:
                return False
            del self.palettes[palette_id]
        debug_log("STORE", f"Deleted palette {palette_id}")
        return True


# ================================================================================
# JSON file implementation
# ================================================================================


class JsonFilePersistenceService(InMemoryPersistenceService):
    """In-memory store mirrored to a JSON file after every mutation"""

    def __init__(
        self, file_path: Union[str, Path], clock: Callable[[], Any] = utc_now
    ) -> None:
        super().__init__(clock)
        self.file_path = Path(file_path)
        self._load()

    def _load(self) -> None:
        """Load state from disk; a missing file starts an empty store"""
        if not self.file_path.exists():
            return
        try:
            with open(self.file_path) as f:
                data = json.load(f)
            self.artworks = {
                a["id"]: Artwork.from_dict(a) for a in data.get("artworks", [])
            }
            self.layers = {l["id"]: Layer.from_dict(l) for l in data.get("layers", [])}
            self.palettes = {
                p["id"]: ColorPalette.from_dict(p) for p in data.get("palettes", [])
            }
        except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            debug_exception("STORE", e)
            raise PersistenceError(f"Cannot read store {self.file_path}: {e}") from e
        debug_log(
            "STORE",
            f"Loaded {len(self.artworks)} artworks, {len(self.layers)} layers, "
            f"{len(self.palettes)} palettes from {self.file_path}",
        )

    def _commit(self) -> None:
        """Write the whole store atomically"""
        data = {
            "artworks": [a.to_dict() for a in self.artworks.values()],
            "layers": [l.to_dict() for l in self.layers.values()],
            "palettes": [p.to_dict() for p in self.palettes.values()],
        }
        tmp_path = self.file_path.with_suffix(self.file_path.suffix + ".tmp")
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.file_path)
        except OSError as e:
            with suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            debug_exception("STORE", e)
            raise PersistenceError(f"Cannot write store {self.file_path}: {e}") from e
