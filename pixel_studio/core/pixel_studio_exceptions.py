#!/usr/bin/env python3
"""
Custom exceptions and error handling utilities for Pixel Studio.

This module defines domain-specific exceptions and provides utilities
for consistent error handling across the application.
"""


class PixelStudioError(Exception):
    """Base exception for all Pixel Studio errors"""
    pass


class ValidationError(PixelStudioError):
    """Raised when a color, coordinate, dimension or field fails validation"""
    pass


class NotFoundError(PixelStudioError):
    """Raised when a referenced artwork, layer or palette does not exist"""
    pass


class OwnershipError(PixelStudioError, PermissionError):
    """Raised when a caller mutates or deletes a record it does not own"""
    pass


class PersistenceError(PixelStudioError):
    """Raised when saving or loading through the persistence service fails"""
    pass


class ParseError(PixelStudioError):
    """Raised when serialized pixel data is corrupt"""
    pass


def format_error_message(operation: str, error: Exception) -> str:
    """
    Format an error message for user display.

    Args:
        operation: Description of the operation that failed
        error: The exception that was raised

    Returns:
        User-friendly error message
    """
    if isinstance(error, ValidationError):
        return f"Invalid input: {error}"
    elif isinstance(error, NotFoundError):
        return f"Not found during {operation}: {error}"
    elif isinstance(error, PermissionError):
        return f"Permission denied during {operation}"
    elif isinstance(error, ParseError):
        return f"Corrupt pixel data: {error}"
    elif isinstance(error, PersistenceError):
        return f"Could not {operation}: {error}"
    elif isinstance(error, TimeoutError):
        return f"Timed out during {operation}"
    else:
        # Generic message for unexpected errors
        return f"Failed to {operation}: {error}"
