"""
Utility functions for music-vault.

This module provides small helpers used across the application:
    - Filename sanitization for note names
    - Order-preserving deduplication and batching

Usage:
    from music_vault.utils import sanitize_filename, chunked, unique
"""

import re
from typing import Iterable, Iterator, TypeVar


T = TypeVar("T")

# Characters that are invalid in file names on at least one platform
_UNSAFE_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f-\x9f]')

MAX_FILENAME_LENGTH = 200
DEFAULT_NOTE_NAME = "Untitled Song"


def sanitize_filename(name: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """
    Sanitize a track name for use as a note file name.

    Args:
        name: The string to sanitize (usually the track title).
        max_length: Maximum length of the result before trimming.

    Returns:
        The name without path-unsafe or control characters, cut to
        max_length, with leading and trailing spaces and dots removed.
        Falls back to DEFAULT_NOTE_NAME when nothing is left.

    Examples:
        sanitize_filename("AC/DC: Live?")  # "ACDC Live"
        sanitize_filename("???")           # "Untitled Song"
    """
    cleaned = _UNSAFE_FILENAME_CHARS.sub("", name or "")[:max_length].strip(" .")
    return cleaned or DEFAULT_NOTE_NAME


def unique(items: Iterable[T]) -> list[T]:
    """Deduplicate items keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


def chunked(items: list[T], size: int) -> Iterator[list[T]]:
    """
    Split items into consecutive batches of at most size elements.

    Example:
        list(chunked([1, 2, 3, 4, 5], 2))  # [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield items[start:start + size]
