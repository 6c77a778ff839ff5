"""Exhaustive paginated collection of search hits."""

import logging

from epwing_export.core.gaiji import SubstitutionContext
from epwing_export.core.reader import TextReader
from epwing_export.eb.base import DictionaryBook, DictionaryError, Hit, ReadMode
from epwing_export.models.book import Entry, Subbook
from epwing_export.models.settings import INITIAL_CAPACITY, PAGE_SIZE

log = logging.getLogger(__name__)


def next_capacity(capacity: int, initial_capacity: int = INITIAL_CAPACITY) -> int:
    """Capacity after one growth step: the initial capacity first, then doubling."""
    if capacity == 0:
        return initial_capacity
    return capacity * 2


class EntryCollector:
    """Page through the hits of the active search and append them as entries.

    A failed page request ends collection for the current search, the same as
    an empty page. The library does not distinguish a transient failure from
    exhaustion, so there is nothing to retry against.
    """

    def __init__(
        self,
        book: DictionaryBook,
        reader: TextReader,
        context: SubstitutionContext,
        page_size: int = PAGE_SIZE,
        initial_capacity: int = INITIAL_CAPACITY,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if initial_capacity < 1:
            raise ValueError(f"initial_capacity must be positive, got {initial_capacity}")

        self.book = book
        self.reader = reader
        self.context = context
        self.page_size = page_size
        self.initial_capacity = initial_capacity

    def collect(self, subbook: Subbook) -> int:
        """Append every remaining hit of the active search to subbook.

        Returns:
            Number of entries appended
        """
        if subbook.capacity == 0:
            subbook.reserve(self.initial_capacity)

        appended = 0
        pages = 0

        while True:
            try:
                hits = self.book.hit_list(self.page_size)
            except DictionaryError as e:
                log.warning("Failed to get hit list, ending search: %s", e)
                break

            if not hits:
                break

            pages += 1
            for hit in hits:
                self._append(subbook, self._decode(hit))
                appended += 1

        log.debug("Collected %d entries in %d page(s)", appended, pages)
        return appended

    def _decode(self, hit: Hit) -> Entry:
        heading = self.reader.read(hit.heading, ReadMode.HEADING, self.context)
        text = self.reader.read(hit.text, ReadMode.TEXT, self.context)
        return Entry(heading=heading or "", text=text or "")

    def _append(self, subbook: Subbook, entry: Entry) -> None:
        if subbook.count == subbook.capacity:
            capacity = next_capacity(subbook.capacity, self.initial_capacity)
            log.debug("Growing entry store: %d -> %d", subbook.capacity, capacity)
            subbook.reserve(capacity)
        subbook.entries.append(entry)
