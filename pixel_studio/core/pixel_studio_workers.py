"""
Worker threads for persistence calls in Pixel Studio.

Saving goes through the persistence service, which may block on disk or
network. These QThread workers keep that off the UI thread and report back
through queued signals.
"""

# Standard library imports
import traceback
from typing import Optional

# Third-party imports
from PyQt6.QtCore import QObject, QThread, pyqtSignal

from .pixel_studio_exceptions import PixelStudioError, format_error_message
from .pixel_studio_persistence import PersistenceService
from .pixel_studio_utils import debug_log


class BaseWorker(QThread):
    """Base worker class for async operations.

    Signals:
        progress: Emitted with progress percentage (0-100)
        error: Emitted with error message when operation fails
    """

    progress = pyqtSignal(int, str)  # Progress percentage 0-100, optional message
    error = pyqtSignal(str)  # Error message

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self._is_cancelled = False

    def cancel(self) -> None:
        """Cancel the operation; results arriving afterwards are not emitted."""
        self._is_cancelled = True

    def is_cancelled(self) -> bool:
        """Check if operation was cancelled."""
        return self._is_cancelled

    def emit_progress(self, value: int, message: str = "") -> None:
        """Emit progress signal if not cancelled."""
        if not self._is_cancelled:
            self.progress.emit(value, message)

    def emit_error(self, message: str) -> None:
        """Emit error signal if not cancelled."""
        if not self._is_cancelled:
            self.error.emit(message)


class ArtworkSaveWorker(BaseWorker):
    """Worker writing an artwork's serialized pixel data.

    The pixel data is a snapshot taken when the worker is created, so edits
    made while the save runs are left for the next save.

    Signals:
        saved: Emitted with the updated Artwork record
    """

    saved = pyqtSignal(object)  # Artwork

    def __init__(
        self,
        persistence: PersistenceService,
        artwork_id: str,
        pixel_data: str,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.persistence = persistence
        self.artwork_id = artwork_id
        self.pixel_data = pixel_data

    def run(self) -> None:
        """Save the artwork in background thread."""
        try:
            debug_log("WORKER", f"Saving artwork {self.artwork_id}", "DEBUG")
            if self.is_cancelled():
                debug_log("WORKER", f"Save of {self.artwork_id} cancelled before writing", "DEBUG")
                return
            self.emit_progress(0, "Saving artwork...")
            artwork = self.persistence.update_artwork(
                self.artwork_id, pixel_data=self.pixel_data
            )
            if self.is_cancelled():
                debug_log("WORKER", f"Save of {self.artwork_id} finished after cancel", "DEBUG")
                return
            self.emit_progress(100, "Save complete!")
            self.saved.emit(artwork)
        except PixelStudioError as e:
            debug_log("WORKER", f"Save failed: {e}", "ERROR")
            self.emit_error(format_error_message("save artwork", e))
        except Exception as e:
            debug_log("WORKER", traceback.format_exc(), "DEBUG")
            self.emit_error(f"Unexpected error saving artwork: {e!s}")
