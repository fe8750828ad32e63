"""Common utility functions for the batwatch package."""

from batwatch.utils.file import atomic_write_text, ensure_directory_exists

__all__ = [
    "atomic_write_text",
    "ensure_directory_exists",
]
