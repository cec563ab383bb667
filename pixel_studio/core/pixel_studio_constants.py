#!/usr/bin/env python3
"""
Constants for Pixel Studio
Centralizes all magic numbers and configuration values
"""

import re

# ============================================================================
# COLOR CONSTANTS
# ============================================================================

# Hex color format accepted at every boundary
HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

DEFAULT_DRAW_COLOR = "#000000"
BACKGROUND_COLOR = "#ffffff"  # Opaque canvas background
GRID_COLOR = "#e5e7eb"  # Grid overlay stroke
GRID_LINE_WIDTH = 1

# ============================================================================
# ARTWORK CONSTANTS
# ============================================================================

# Artwork dimensions
MIN_ARTWORK_SIZE = 8
MAX_ARTWORK_SIZE = 512
DEFAULT_ARTWORK_WIDTH = 32
DEFAULT_ARTWORK_HEIGHT = 32

# Text field limits
ARTWORK_TITLE_MAX_LENGTH = 100
LAYER_NAME_MAX_LENGTH = 50
PALETTE_NAME_MAX_LENGTH = 50

# Palette limits
PALETTE_MIN_COLORS = 1
PALETTE_MAX_COLORS = 64

# Colors of the palette a new user starts with
STARTER_PALETTE_NAME = "Default"
STARTER_PALETTE_COLORS = ["#000000", "#ffffff"]

# Gallery paging
PUBLIC_ARTWORKS_DEFAULT_LIMIT = 20
PUBLIC_ARTWORKS_MAX_LIMIT = 100

# Serialized pixel data
EMPTY_PIXEL_DATA = "{}"
COORDINATE_SEPARATOR = ","

# ============================================================================
# TOOL CONSTANTS
# ============================================================================

BRUSH_SIZE_MIN = 1
BRUSH_SIZE_MAX = 10
BRUSH_SIZE_DEFAULT = 1

# ============================================================================
# ZOOM CONSTANTS
# ============================================================================

ZOOM_MIN = 1
ZOOM_MAX = 30
ZOOM_DEFAULT = 10

# ============================================================================
# AUTOSAVE CONSTANTS
# ============================================================================

AUTOSAVE_POLL_INTERVAL_MS = 1000  # How often the coordinator checks for idle edits
AUTOSAVE_DEBOUNCE_MS = 5000  # Quiet period before a dirty buffer is saved
AUTOSAVE_SAVE_TIMEOUT_MS = 10000  # An unanswered save counts as failed after this

# ============================================================================
# UI DIMENSIONS
# ============================================================================

MAIN_WINDOW_WIDTH = 1000
MAIN_WINDOW_HEIGHT = 700
LEFT_PANEL_MAX_WIDTH = 260
CANVAS_MIN_SIZE = 200
PALETTE_SWATCH_SIZE = 22
PALETTE_SWATCH_COLUMNS = 8

STATUS_MESSAGE_TIMEOUT = 3000  # Status bar message timeout in ms
