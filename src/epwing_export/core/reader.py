"""Read dictionary text and apply both text fixups."""

import logging

from epwing_export.core.encoding import EncodingConverter
from epwing_export.core.gaiji import SubstitutionContext
from epwing_export.core.hooks import Hookset
from epwing_export.eb.base import DictionaryBook, DictionaryError, Position, ReadMode

log = logging.getLogger(__name__)


class TextReader:
    """Read headings and body text from a bound book as Unicode."""

    def __init__(
        self,
        book: DictionaryBook,
        hookset: Hookset,
        converter: EncodingConverter | None = None,
    ):
        self.book = book
        self.hookset = hookset
        self.converter = converter or EncodingConverter()

    def read(
        self,
        position: Position,
        mode: ReadMode,
        context: SubstitutionContext,
    ) -> str | None:
        """Read text at position, or None if the library read fails."""
        try:
            raw = self.book.read(position, mode, self.hookset)
        except DictionaryError as e:
            log.warning(
                "Failed to read %s at %d:%d: %s",
                mode.value,
                position.page,
                position.offset,
                e,
            )
            return None

        return context.rewrite(self.converter.convert(raw))
