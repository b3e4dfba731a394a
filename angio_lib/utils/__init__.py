"""Utility functions for angio library."""

from .timing import timed_stage

__all__ = [
    'timed_stage',
]
