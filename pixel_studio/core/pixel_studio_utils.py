#!/usr/bin/env python3
"""
Common utilities for Pixel Studio
Logging setup plus the color and coordinate helpers shared between modules
"""

# Standard library imports
import logging
import math
import numbers
import sys
from typing import Any, Optional

from .pixel_studio_constants import COORDINATE_SEPARATOR, HEX_COLOR_PATTERN
from .pixel_studio_exceptions import ValidationError

LOGGER_NAME = "pixel_studio"


# ================================================================================
# Logging Configuration
# ================================================================================


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup logging configuration for Pixel Studio.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file to write logs to (defaults to console only)

    Returns:
        Configured logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Clear any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create log file {log_file}: {e}")

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def get_logger(category: str) -> logging.Logger:
    """Get the logger for a category (e.g. 'AUTOSAVE' -> 'pixel_studio.autosave')"""
    return logging.getLogger(f"{LOGGER_NAME}.{category.lower()}")


# ================================================================================
# Debug Logging Utilities
# ================================================================================


def debug_log(category: str, message: str, level: str = "INFO") -> None:
    """Log a message under a category

    Args:
        category: Category for the log message (e.g., "TOOL", "AUTOSAVE", "STORE")
        message: The log message to display
        level: Log level ("INFO", "WARNING", "ERROR", "DEBUG")
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    get_logger(category).log(numeric_level, message)


def debug_exception(category: str, exception: BaseException) -> None:
    """Log exceptions with full traceback

    Args:
        category: Category for the log message
        exception: The exception to log
    """
    get_logger(category).error(
        f"Exception: {type(exception).__name__}: {exception!s}", exc_info=exception
    )


# ================================================================================
# Color Validation Utilities
# ================================================================================


def is_valid_hex_color(value: Any) -> bool:
    """Check whether a value is a '#rrggbb' hex color string"""
    return isinstance(value, str) and HEX_COLOR_PATTERN.match(value) is not None


def normalize_color(value: Any) -> str:
    """Validate a hex color and return its canonical lowercase form

    Raises:
        ValidationError: If the value is not a '#rrggbb' string
    """
    if not is_valid_hex_color(value):
        raise ValidationError(f"Invalid color {value!r}, expected #rrggbb")
    return value.lower()


def hex_to_rgb(color: str) -> tuple[int, int, int]:
    """Convert '#rrggbb' to an RGB tuple"""
    color = normalize_color(color)
    return (int(color[1:3], 16), int(color[3:5], 16), int(color[5:7], 16))


# ================================================================================
# Coordinate Utilities
# ================================================================================


def is_grid_coordinate(value: Any) -> bool:
    """True for finite integral numbers usable as a grid coordinate"""
    if isinstance(value, bool):
        return False
    if isinstance(value, numbers.Integral):
        return True
    if isinstance(value, numbers.Real):
        return math.isfinite(value) and float(value).is_integer()
    return False


def coordinate_key(x: int, y: int) -> str:
    """Format a grid coordinate as a serialized pixel key ('x,y')"""
    return f"{x}{COORDINATE_SEPARATOR}{y}"


def parse_coordinate_key(key: str) -> tuple[int, int]:
    """Parse a serialized pixel key ('x,y') back into a coordinate

    Raises:
        ValueError: If the key is not two comma separated integers
    """
    parts = key.split(COORDINATE_SEPARATOR)
    if len(parts) != 2:
        raise ValueError(f"Malformed pixel key {key!r}")
    return int(parts[0].strip()), int(parts[1].strip())


def clamp(value: int, minimum: int, maximum: int) -> int:
    """Clamp an integer into [minimum, maximum]"""
    return max(minimum, min(maximum, int(value)))
