"""High-level API for two-view viewing angle recommendation."""

from .workflow import ImageCapture, analyze_two_views

__all__ = [
    "ImageCapture",
    "analyze_two_views",
]
