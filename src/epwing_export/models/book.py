"""Data models for exported dictionary content."""

from enum import Enum

from pydantic import BaseModel, Field, PrivateAttr


class CharacterCode(str, Enum):
    """Character set declared by the book."""

    ISO8859_1 = "iso8859-1"
    JISX0208 = "jisx0208"
    JISX0208_GB2312 = "jisx0208/gb2312"
    INVALID = "invalid"


class DiscCode(str, Enum):
    """Disc format of the book."""

    EB = "eb"
    EPWING = "epwing"
    INVALID = "invalid"


class Entry(BaseModel):
    """Single search hit decoded into heading and body text."""

    heading: str
    text: str


class Subbook(BaseModel):
    """One volume of a multi-volume dictionary disc."""

    title: str | None = None
    copyright: str | None = None
    entries: list[Entry] = Field(default_factory=list)

    # Reserved slots of the entry store; grows by doubling, never shrinks.
    _capacity: int = PrivateAttr(default=0)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        return len(self.entries)

    def reserve(self, capacity: int) -> None:
        """Grow the reserved capacity. Requests below the current capacity are ignored."""
        if capacity > self._capacity:
            self._capacity = capacity

    def __eq__(self, other: object) -> bool:
        # Capacity is store bookkeeping, not content; a loaded subbook starts at 0.
        if not isinstance(other, Subbook):
            return NotImplemented
        return (self.title, self.copyright, self.entries) == (
            other.title,
            other.copyright,
            other.entries,
        )


class Book(BaseModel):
    """Complete exported dictionary."""

    character_code: CharacterCode = CharacterCode.INVALID
    disc_code: DiscCode = DiscCode.INVALID
    subbooks: list[Subbook] = Field(default_factory=list)
