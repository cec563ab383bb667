#!/usr/bin/env python3
"""Launcher for Pixel Studio"""

# Standard library imports
import argparse
import sys

# Third-party imports
from PyQt6.QtWidgets import QApplication

from pixel_studio.core.pixel_studio_autosave import wait_for_pending_saves
from pixel_studio.core.pixel_studio_constants import (
    DEFAULT_ARTWORK_HEIGHT,
    DEFAULT_ARTWORK_WIDTH,
)
from pixel_studio.core.pixel_studio_controller import PixelStudioController
from pixel_studio.core.pixel_studio_exceptions import PersistenceError
from pixel_studio.core.pixel_studio_persistence import JsonFilePersistenceService
from pixel_studio.core.pixel_studio_settings import get_settings
from pixel_studio.core.pixel_studio_utils import debug_log, setup_logging
from pixel_studio.core.pixel_studio_window import PixelStudioWindow


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Pixel Studio pixel art editor")
    parser.add_argument("--store", help="JSON file holding artworks, layers and palettes")
    parser.add_argument("--owner", default="local", help="User id that owns new artworks")
    parser.add_argument("--artwork", help="Id of the artwork to open")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-file", help="Also write logs to this file")
    return parser.parse_args(argv)


def open_initial_artwork(controller: PixelStudioController, artwork_id=None) -> bool:
    """Open the requested artwork, else the most recent one, else a new one"""
    if artwork_id:
        return controller.open_artwork(artwork_id)

    owned = {a.id for a in controller.persistence.get_artworks_by_user(controller.owner_id)}
    for recent_id in controller.settings.get_recent_artworks():
        if recent_id in owned:
            return controller.open_artwork(recent_id)

    artwork = controller.new_artwork(
        "Untitled", DEFAULT_ARTWORK_WIDTH, DEFAULT_ARTWORK_HEIGHT
    )
    return artwork is not None


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(args.log_level or settings.get("log_level", "INFO"), args.log_file)

    store_path = args.store or settings.get_storage_path()
    try:
        persistence = JsonFilePersistenceService(store_path)
    except PersistenceError as e:
        debug_log("MAIN", f"Cannot open store: {e}", "ERROR")
        return 1

    app = QApplication(sys.argv)
    controller = PixelStudioController(persistence, args.owner, settings)
    window = PixelStudioWindow(controller)
    window.show()

    controller.ensure_starter_palette()
    open_initial_artwork(controller, args.artwork)

    exit_code = app.exec()
    # Let a save started by the final close reach the store
    wait_for_pending_saves()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
