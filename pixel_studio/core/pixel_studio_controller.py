#!/usr/bin/env python3
"""
Controller for Pixel Studio
Handles the editing session and coordinates between models, managers, storage and views
"""

# Standard library imports
import time
from typing import Any, Callable, Optional

# Third-party imports
from PIL import Image
from PyQt6.QtCore import QObject, pyqtSignal

from .pixel_studio_autosave import AutosaveCoordinator, save_pending, wait_for_pending_saves
from .pixel_studio_constants import (
    PUBLIC_ARTWORKS_DEFAULT_LIMIT,
    STARTER_PALETTE_COLORS,
    STARTER_PALETTE_NAME,
    STATUS_MESSAGE_TIMEOUT,
    ZOOM_MAX,
    ZOOM_MIN,
)
from .pixel_studio_exceptions import (
    NotFoundError,
    PixelStudioError,
    ValidationError,
    format_error_message,
)
from .pixel_studio_managers import EditorSession, PaletteManager, ToolManager, ToolResult
from .pixel_studio_models import Artwork, ColorPalette, Layer, PixelBuffer
from .pixel_studio_persistence import PersistenceService
from .pixel_studio_renderer import DrawInstruction, project, render_array, to_pil_image
from .pixel_studio_settings import SettingsManager, get_settings
from .pixel_studio_utils import clamp, debug_exception, debug_log
from .pixel_studio_workers import ArtworkSaveWorker


class PixelStudioController(QObject):
    """Controller coordinating all pixel studio operations"""

    # Signals
    imageChanged = pyqtSignal()
    paletteChanged = pyqtSignal()
    layersChanged = pyqtSignal()
    titleChanged = pyqtSignal(str)
    statusMessage = pyqtSignal(str, int)  # message, timeout
    error = pyqtSignal(str)
    toolChanged = pyqtSignal(str)  # tool name
    colorChanged = pyqtSignal(str)  # #rrggbb
    zoomChanged = pyqtSignal(int)
    brushSizeChanged = pyqtSignal(int)
    saveStateChanged = pyqtSignal(str)  # autosave state name
    artworkSaved = pyqtSignal(object)  # Artwork

    def __init__(
        self,
        persistence: PersistenceService,
        owner_id: str,
        settings: Optional[SettingsManager] = None,
        clock: Callable[[], float] = time.monotonic,
        worker_factory: Callable[..., Any] = ArtworkSaveWorker,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)

        self.persistence = persistence
        self.owner_id = owner_id
        self.settings = settings if settings is not None else get_settings()
        self._clock = clock
        self._worker_factory = worker_factory

        # Initialize managers from user defaults
        defaults = self.settings.get_editor_defaults()
        self.tool_manager = ToolManager(
            color=defaults["color"], brush_size=defaults["brush_size"]
        )
        self.palette_manager = PaletteManager()
        self.tool_manager.set_color_picked_callback(self._handle_color_picked)
        self._zoom = defaults["zoom"]

        self.session: Optional[EditorSession] = None
        self.autosave: Optional[AutosaveCoordinator] = None

    # Session lifecycle

    def has_artwork(self) -> bool:
        """Check if an artwork is open"""
        return self.session is not None

    @property
    def buffer(self) -> Optional[PixelBuffer]:
        return self.session.buffer if self.session else None

    @property
    def artwork(self) -> Optional[Artwork]:
        return self.session.artwork if self.session else None

    @property
    def layers(self) -> list[Layer]:
        return list(self.session.layers) if self.session else []

    @property
    def zoom(self) -> int:
        return self.session.zoom if self.session else self._zoom

    def new_artwork(
        self,
        title: str,
        width: int,
        height: int,
        description: Optional[str] = None,
        is_public: bool = False,
    ) -> Optional[Artwork]:
        """Create an artwork in storage and open it"""
        try:
            artwork = self.persistence.create_artwork(
                self.owner_id, title, width, height, description, is_public
            )
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("create artwork", e))
            return None

        debug_log("CONTROLLER", f"Created new {width}x{height} artwork {artwork.id}")
        if not self.open_artwork(artwork.id):
            return None
        return artwork

    def open_artwork(self, artwork_id: str) -> bool:
        """Load an artwork with its layers and the user's palettes"""
        reopening = self.session is not None and self.session.artwork.id == artwork_id
        if not reopening and save_pending(artwork_id):
            # The stored pixels are stale until the final save of a closed session lands
            wait_for_pending_saves(artwork_id=artwork_id)
        try:
            artwork = self.persistence.get_artwork_by_id(artwork_id, self.owner_id)
            if artwork is None:
                raise NotFoundError(f"Artwork {artwork_id} not found")
            layers = self.persistence.get_layers_by_artwork(artwork_id, self.owner_id)
            palettes = self.persistence.get_user_color_palettes(self.owner_id)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("open artwork", e))
            return False

        if reopening:
            # Stored pixels may trail the open buffer until its final save lands
            buffer, parse_error = self.session.buffer, None
        else:
            buffer, parse_error = PixelBuffer.from_json(
                artwork.pixel_data, artwork.width, artwork.height
            )
        if parse_error is not None:
            # Keep editing on an empty canvas rather than refusing to open
            debug_log("CONTROLLER", f"Discarding corrupt pixel data: {parse_error}", "WARNING")
            self.error.emit(format_error_message("open artwork", parse_error))

        self.close_artwork()

        self.palette_manager.set_palettes(palettes)
        self.session = EditorSession(
            artwork=artwork,
            buffer=buffer,
            tool_manager=self.tool_manager,
            palette_manager=self.palette_manager,
            layers=layers,
            zoom=self._zoom,
        )

        timing = self.settings.get_autosave_timing()
        self.autosave = AutosaveCoordinator(
            self.persistence,
            artwork.id,
            snapshot=buffer.to_json,
            clock=self._clock,
            worker_factory=self._worker_factory,
            parent=self,
            **timing,
        )
        self.autosave.stateChanged.connect(self.saveStateChanged)
        self.autosave.saveSucceeded.connect(self._handle_save_success)
        self.autosave.saveFailed.connect(self._handle_save_error)
        self.autosave.start()

        self.settings.add_recent_artwork(artwork.id)

        self.imageChanged.emit()
        self.paletteChanged.emit()
        self.layersChanged.emit()
        self.titleChanged.emit(f"Pixel Studio - {artwork.title}")
        self.statusMessage.emit(
            f"Opened {artwork.title} ({artwork.width}x{artwork.height})",
            STATUS_MESSAGE_TIMEOUT,
        )
        debug_log("CONTROLLER", f"Opened artwork {artwork.id} with {len(layers)} layers")
        return True

    def close_artwork(self, save: bool = True) -> None:
        """
        Stop autosave and drop the session
        Unsaved edits are handed to a final save that finishes in the background.
        """
        if self.autosave is not None:
            if save:
                self.autosave.flush()
            elif self.autosave.has_unsaved_changes:
                debug_log("CONTROLLER", "Discarding unsaved changes", "WARNING")
            self.autosave.stop()
            self.autosave.deleteLater()
            self.autosave = None
        if self.session is not None:
            debug_log("CONTROLLER", f"Closed artwork {self.session.artwork.id}")
            self.session = None

    # Pointer events

    def pointer_press(self, x: Any, y: Any) -> None:
        """Handle pointer down on a grid cell"""
        if self.session is None:
            return
        self._apply_result(self.tool_manager.press(x, y, self.session.buffer))

    def pointer_move(self, x: Any, y: Any) -> None:
        """Handle pointer move; tools only act while pressed"""
        if self.session is None:
            return
        self._apply_result(self.tool_manager.move(x, y, self.session.buffer))

    def pointer_release(self) -> None:
        """Handle pointer up or the pointer leaving the canvas"""
        self.tool_manager.release()

    def _apply_result(self, result: ToolResult) -> None:
        if result.mutated:
            self.autosave.mark_dirty()
            self.imageChanged.emit()

    def _handle_color_picked(self, color: str) -> None:
        debug_log("CONTROLLER", f"Picked color {color}", "DEBUG")
        self.colorChanged.emit(color)

    # Tool operations

    def set_tool(self, tool_name: str) -> bool:
        """Set the current drawing tool"""
        if not self.tool_manager.set_tool(tool_name):
            self.error.emit(f"Unknown tool: {tool_name}")
            return False
        self.toolChanged.emit(self.tool_manager.current_tool_name)
        return True

    def get_current_tool_name(self) -> str:
        """Get the name of the current tool"""
        return self.tool_manager.current_tool_name

    def set_color(self, color: str) -> bool:
        """Set the current drawing color"""
        try:
            canonical = self.tool_manager.set_color(color)
        except ValidationError as e:
            self.error.emit(format_error_message("set color", e))
            return False
        debug_log("CONTROLLER", f"Drawing color set to: {canonical}", "DEBUG")
        self.colorChanged.emit(canonical)
        return True

    def set_brush_size(self, size: int) -> bool:
        """Set the brush size"""
        if not self.tool_manager.set_brush_size(size):
            return False
        self.brushSizeChanged.emit(self.tool_manager.current_brush_size)
        return True

    def set_zoom(self, zoom: int) -> int:
        """Set the zoom, clamped to the supported range"""
        self._zoom = clamp(int(zoom), ZOOM_MIN, ZOOM_MAX)
        if self.session is not None:
            self.session.set_zoom(self._zoom)
        self.zoomChanged.emit(self._zoom)
        self.imageChanged.emit()
        return self._zoom

    # Palette operations

    def select_palette(self, palette_id: str) -> bool:
        """Switch the palette shown in the editor"""
        if not self.palette_manager.select_palette(palette_id):
            self.error.emit(f"Palette {palette_id} not found")
            return False
        self.paletteChanged.emit()
        return True

    def refresh_palettes(self) -> None:
        """Reload the user's palettes from storage"""
        try:
            palettes = self.persistence.get_user_color_palettes(self.owner_id)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("load palettes", e))
            return
        self.palette_manager.set_palettes(palettes)
        self.paletteChanged.emit()

    def ensure_starter_palette(self) -> None:
        """Give a user without palettes a default one"""
        try:
            if self.persistence.get_user_color_palettes(self.owner_id):
                return
            self.persistence.create_color_palette(
                self.owner_id, STARTER_PALETTE_NAME, list(STARTER_PALETTE_COLORS), is_default=True
            )
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("create palette", e))
            return
        debug_log("CONTROLLER", f"Created starter palette for {self.owner_id}")
        self.refresh_palettes()

    def create_palette(
        self, name: str, colors: list[str], is_default: bool = False
    ) -> Optional[ColorPalette]:
        """Create a palette and switch the editor to it"""
        try:
            palette = self.persistence.create_color_palette(
                self.owner_id, name, list(colors), is_default
            )
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("create palette", e))
            return None
        self.refresh_palettes()
        self.select_palette(palette.id)
        self.statusMessage.emit(f"Created palette {palette.name}", STATUS_MESSAGE_TIMEOUT)
        return palette

    def update_palette(self, palette_id: str, **changes: Any) -> Optional[ColorPalette]:
        """Rename, recolor or flag one of the user's palettes"""
        if self.palette_manager.get_palette(palette_id) is None:
            self.error.emit(f"Palette {palette_id} not found")
            return None
        try:
            palette = self.persistence.update_color_palette(palette_id, **changes)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("update palette", e))
            return None
        self.refresh_palettes()
        return palette

    def add_palette_color(self, palette_id: str, color: str) -> bool:
        palette = self.palette_manager.get_palette(palette_id)
        if palette is None:
            self.error.emit(f"Palette {palette_id} not found")
            return False
        return self.update_palette(palette_id, colors=[*palette.colors, color]) is not None

    def remove_palette_color(self, palette_id: str, index: int) -> bool:
        palette = self.palette_manager.get_palette(palette_id)
        if palette is None:
            self.error.emit(f"Palette {palette_id} not found")
            return False
        if not 0 <= index < len(palette.colors):
            self.error.emit(f"No color at position {index}")
            return False
        colors = list(palette.colors)
        del colors[index]
        return self.update_palette(palette_id, colors=colors) is not None

    def delete_palette(self, palette_id: str) -> bool:
        """Delete one of the user's palettes"""
        try:
            deleted = self.persistence.delete_color_palette(palette_id, self.owner_id)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("delete palette", e))
            return False
        if not deleted:
            self.error.emit("Palette not found or you do not have permission to delete it")
            return False
        self.refresh_palettes()
        return True

    # Gallery

    def list_artworks(self) -> list[Artwork]:
        """The user's artworks, most recently updated first"""
        try:
            artworks = self.persistence.get_artworks_by_user(self.owner_id)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("load artworks", e))
            return []
        artworks.sort(key=lambda a: a.updated_at, reverse=True)
        return artworks

    def list_public_artworks(
        self, limit: int = PUBLIC_ARTWORKS_DEFAULT_LIMIT, offset: int = 0
    ) -> list[Artwork]:
        """Public artworks of every user, newest first"""
        try:
            return self.persistence.get_public_artworks(limit, offset)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("load public artworks", e))
            return []

    def delete_artwork(self, artwork_id: str) -> bool:
        """Delete one of the user's artworks and close it if it is open"""
        try:
            self.persistence.delete_artwork(artwork_id, self.owner_id)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("delete artwork", e))
            return False

        if self.session is not None and self.session.artwork.id == artwork_id:
            self.close_artwork(save=False)
            self.titleChanged.emit("Pixel Studio")
            self.imageChanged.emit()
            self.layersChanged.emit()
        self.settings.remove_recent_artwork(artwork_id)
        self.statusMessage.emit("Artwork deleted", STATUS_MESSAGE_TIMEOUT)
        debug_log("CONTROLLER", f"Deleted artwork {artwork_id}")
        return True

    # Artwork operations

    def clear_canvas(self) -> None:
        """Erase every pixel"""
        if self.session is None:
            return
        if self.session.buffer.clear_all():
            self.autosave.mark_dirty()
            self.imageChanged.emit()
            self.statusMessage.emit("Canvas cleared", STATUS_MESSAGE_TIMEOUT)

    def save_now(self) -> bool:
        """Manual save; ignored while a save is already running"""
        if self.autosave is None:
            self.error.emit("No artwork open to save")
            return False
        if not self.autosave.request_save():
            self.statusMessage.emit("Save already in progress", STATUS_MESSAGE_TIMEOUT)
            return False
        self.statusMessage.emit("Saving...", STATUS_MESSAGE_TIMEOUT)
        return True

    def update_artwork_details(self, **changes: Any) -> bool:
        """Update title, description or visibility of the open artwork"""
        if self.session is None:
            return False
        if "pixel_data" in changes:
            self.error.emit("Pixel data is saved through autosave")
            return False
        try:
            artwork = self.persistence.update_artwork(self.session.artwork.id, **changes)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("update artwork", e))
            return False
        self.session.artwork = artwork
        self.titleChanged.emit(f"Pixel Studio - {artwork.title}")
        return True

    def _handle_save_success(self, artwork: Artwork) -> None:
        if self.session is None:
            return
        self.session.artwork = artwork
        if self.autosave is not None and not self.autosave.has_unsaved_changes:
            self.session.buffer.modified = False
        self.statusMessage.emit("Saved", STATUS_MESSAGE_TIMEOUT)
        self.artworkSaved.emit(artwork)

    def _handle_save_error(self, error_msg: str) -> None:
        debug_log("CONTROLLER", f"Save error: {error_msg}", "ERROR")
        self.error.emit(f"Failed to save artwork: {error_msg}")

    def is_saving(self) -> bool:
        return self.autosave is not None and self.autosave.save_in_flight

    # Layer operations

    def create_layer(self, name: str) -> Optional[Layer]:
        """Append a layer on top of the existing ones"""
        if self.session is None:
            return None
        try:
            layer = self.persistence.create_layer(self.session.artwork.id, name)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("create layer", e))
            return None
        self._reload_layers()
        return layer

    def delete_layer(self, layer_id: str) -> bool:
        if self.session is None:
            return False
        try:
            self.persistence.delete_layer(layer_id, self.owner_id)
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("delete layer", e))
            return False
        self._reload_layers()
        return True

    def set_layer_visibility(self, layer_id: str, visible: bool) -> bool:
        if self.session is None:
            return False
        try:
            self.persistence.update_layer(layer_id, is_visible=bool(visible))
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("update layer", e))
            return False
        self._reload_layers()
        return True

    def _reload_layers(self) -> None:
        try:
            self.session.layers = self.persistence.get_layers_by_artwork(
                self.session.artwork.id, self.owner_id
            )
        except PixelStudioError as e:
            debug_exception("CONTROLLER", e)
            self.error.emit(format_error_message("load layers", e))
            return
        self.layersChanged.emit()

    # Rendering

    def render_instructions(self) -> list[DrawInstruction]:
        """Draw instructions for the current buffer at the current zoom"""
        if self.session is None:
            return []
        return project(
            self.session.buffer, self.session.width, self.session.height, self.session.zoom
        )

    def get_preview_image(self, zoom: int = 1) -> Optional[Image.Image]:
        """Rasterized preview of the buffer, None without an open artwork"""
        if self.session is None:
            return None
        return to_pil_image(render_array(self.session.buffer, max(1, int(zoom))))
