"""Data models."""

from epwing_export.models.book import (
    Book,
    CharacterCode,
    DiscCode,
    Entry,
    Subbook,
)
from epwing_export.models.settings import (
    INITIAL_CAPACITY,
    PAGE_SIZE,
    ExportSettings,
)

__all__ = [
    # Book models
    "Book",
    "CharacterCode",
    "DiscCode",
    "Entry",
    "Subbook",
    # Settings
    "ExportSettings",
    "INITIAL_CAPACITY",
    "PAGE_SIZE",
]
