"""Core pixel studio modules"""

# Make key classes available at package level
from .pixel_studio_autosave import AutosaveCoordinator, AutosaveState
from .pixel_studio_controller import PixelStudioController
from .pixel_studio_models import Artwork, ColorPalette, Layer, PixelBuffer
from .pixel_studio_persistence import (
    InMemoryPersistenceService,
    JsonFilePersistenceService,
    PersistenceService,
)

__all__ = [
    "Artwork",
    "AutosaveCoordinator",
    "AutosaveState",
    "ColorPalette",
    "InMemoryPersistenceService",
    "JsonFilePersistenceService",
    "Layer",
    "PersistenceService",
    "PixelBuffer",
    "PixelStudioController",
]
