"""Dictionary access layer."""

from epwing_export.eb.base import (
    DictionaryBook,
    DictionaryError,
    DictionaryLibrary,
    Hit,
    Position,
    ReadMode,
    SearchStrategy,
)

__all__ = [
    "DictionaryBook",
    "DictionaryError",
    "DictionaryLibrary",
    "Hit",
    "Position",
    "ReadMode",
    "SearchStrategy",
]
