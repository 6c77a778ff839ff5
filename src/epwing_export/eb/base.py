"""Abstract access interface for EB/EPWING dictionary libraries."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from epwing_export.models.book import CharacterCode, DiscCode

if TYPE_CHECKING:
    from epwing_export.core.hooks import Hookset


class DictionaryError(Exception):
    """A dictionary library call returned a failure status."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def __str__(self) -> str:
        return f"{self.message} (code {self.code})"


class SearchStrategy(str, Enum):
    """Match enumeration modes run against a subbook."""

    ALPHABET = "alphabet"
    KANA = "kana"
    ASIS = "asis"


class ReadMode(str, Enum):
    """Which part of a hit to read."""

    HEADING = "heading"
    TEXT = "text"


@dataclass(frozen=True)
class Position:
    """Location of a heading or text inside the dictionary resource."""

    page: int
    offset: int


@dataclass(frozen=True)
class Hit:
    """Search match pointing at a heading and its body text."""

    heading: Position
    text: Position


class DictionaryBook(ABC):
    """Handle to a single bound dictionary resource.

    Every method raises DictionaryError on a failed library status.
    """

    @abstractmethod
    def bind(self, path: str) -> None:
        """Bind the handle to the dictionary at path."""
        pass

    @abstractmethod
    def character_code(self) -> CharacterCode:
        pass

    @abstractmethod
    def disc_type(self) -> DiscCode:
        pass

    @abstractmethod
    def subbook_list(self) -> list[int]:
        """Return subbook codes in disc order."""
        pass

    @abstractmethod
    def set_subbook(self, code: int) -> None:
        """Activate a subbook for the following title/search/read calls."""
        pass

    @abstractmethod
    def title(self) -> bytes:
        """Return the raw (EUC-JP) title of the active subbook."""
        pass

    @abstractmethod
    def copyright_position(self) -> Position | None:
        """Return the copyright notice position, or None if the subbook has none."""
        pass

    @abstractmethod
    def search_all(self, strategy: SearchStrategy) -> None:
        """Start an exhaustive search; hits are then fetched with hit_list."""
        pass

    @abstractmethod
    def hit_list(self, max_hits: int) -> list[Hit]:
        """Return the next page of at most max_hits hits. An empty page means done."""
        pass

    @abstractmethod
    def read(self, position: Position, mode: ReadMode, hookset: "Hookset") -> bytes:
        """Read raw text at position, rendering markup through hookset."""
        pass

    @abstractmethod
    def finalize(self) -> None:
        """Release the handle."""
        pass


class DictionaryLibrary(ABC):
    """Process-level entry point of a dictionary access library."""

    @abstractmethod
    def initialize(self) -> None:
        pass

    @abstractmethod
    def finalize(self) -> None:
        pass

    @abstractmethod
    def create_book(self) -> DictionaryBook:
        """Create an unbound book handle."""
        pass

    @abstractmethod
    def install_hookset(self, hookset: "Hookset") -> None:
        """Prepare native resources for hookset before any read."""
        pass

    @abstractmethod
    def release_hookset(self, hookset: "Hookset") -> None:
        pass
