"""JSON serialization of exported books."""

from epwing_export.models.book import Book


class BookSerializer:
    """Write and read the JSON document produced by an export."""

    INDENT = 2

    @classmethod
    def dump(cls, book: Book, pretty: bool = False) -> str:
        """Serialize book; pretty adds indentation only, never changes values."""
        if pretty:
            return book.model_dump_json(indent=cls.INDENT)
        return book.model_dump_json()

    @classmethod
    def load(cls, document: str | bytes) -> Book:
        """Parse a document written by dump."""
        return Book.model_validate_json(document)
