"""Export a bound dictionary into the Book data model."""

import logging
from contextlib import ExitStack

from epwing_export.core.collector import EntryCollector
from epwing_export.core.encoding import EncodingConverter
from epwing_export.core.gaiji import GaijiResolver, SubstitutionContext
from epwing_export.core.hooks import Hookset, install_default_hooks
from epwing_export.core.reader import TextReader
from epwing_export.eb.base import (
    DictionaryBook,
    DictionaryError,
    DictionaryLibrary,
    ReadMode,
    SearchStrategy,
)
from epwing_export.models.book import Book, Subbook
from epwing_export.models.settings import ExportSettings

log = logging.getLogger(__name__)

# Order in which the exhaustive searches run against every subbook.
SEARCH_STRATEGIES = (
    SearchStrategy.ALPHABET,
    SearchStrategy.KANA,
    SearchStrategy.ASIS,
)


class SubbookExporter:
    """Export title, copyright and all entries of the active subbook."""

    def __init__(
        self,
        book: DictionaryBook,
        hookset: Hookset,
        resolver: GaijiResolver,
        settings: ExportSettings | None = None,
        converter: EncodingConverter | None = None,
    ):
        self.book = book
        self.resolver = resolver
        self.settings = settings or ExportSettings()
        self.converter = converter or EncodingConverter()
        self.reader = TextReader(book, hookset, self.converter)

    def export(self, subbook: Subbook) -> None:
        context = self._export_title(subbook)
        self._export_copyright(subbook, context)

        collector = EntryCollector(
            self.book,
            self.reader,
            context,
            page_size=self.settings.page_size,
            initial_capacity=self.settings.initial_capacity,
        )

        for strategy in SEARCH_STRATEGIES:
            try:
                self.book.search_all(strategy)
            except DictionaryError as e:
                log.debug("No %s search for %r: %s", strategy.value, subbook.title, e)
                continue

            count = collector.collect(subbook)
            log.info(
                "%s: %d entries from %s search",
                subbook.title or "(untitled)",
                count,
                strategy.value,
            )

    def _export_title(self, subbook: Subbook) -> SubstitutionContext:
        try:
            raw_title = self.book.title()
        except DictionaryError as e:
            log.warning("Failed to get subbook title: %s", e)
            return self.resolver.select(None)

        subbook.title = self.converter.convert(raw_title)
        return self.resolver.select(subbook.title)

    def _export_copyright(self, subbook: Subbook, context: SubstitutionContext) -> None:
        try:
            position = self.book.copyright_position()
        except DictionaryError as e:
            log.warning("Failed to get copyright position: %s", e)
            return

        if position is None:
            return

        subbook.copyright = self.reader.read(position, ReadMode.TEXT, context)


class BookExporter:
    """Bind a dictionary and export every subbook.

    Library, book and hookset are acquired once per export and released
    exactly once on every exit path. Failures never propagate: the returned
    Book holds whatever was exported before the failure.
    """

    def __init__(
        self,
        library: DictionaryLibrary,
        settings: ExportSettings | None = None,
        resolver: GaijiResolver | None = None,
    ):
        self.library = library
        self.settings = settings or ExportSettings()
        self.resolver = resolver or GaijiResolver()
        self.bound = False

    def export(self, path: str) -> Book:
        book = Book()
        self.bound = False

        try:
            self.library.initialize()
        except DictionaryError as e:
            log.error("Failed to initialize library: %s", e)
            return book

        with ExitStack() as stack:
            stack.callback(self.library.finalize)

            try:
                eb_book = self.library.create_book()
                stack.callback(eb_book.finalize)

                hookset = install_default_hooks(Hookset())
                self.library.install_hookset(hookset)
                stack.callback(self.library.release_hookset, hookset)
            except DictionaryError as e:
                log.error("Failed to prepare book: %s", e)
                return book

            try:
                eb_book.bind(path)
            except DictionaryError as e:
                log.error("Failed to bind book: %s", e)
                return book

            self.bound = True
            self._export_metadata(book, eb_book)
            self._export_subbooks(book, eb_book, hookset)

        return book

    def _export_metadata(self, book: Book, eb_book: DictionaryBook) -> None:
        try:
            book.character_code = eb_book.character_code()
        except DictionaryError as e:
            log.warning("Failed to get character code: %s", e)

        try:
            book.disc_code = eb_book.disc_type()
        except DictionaryError as e:
            log.warning("Failed to get disc type: %s", e)

    def _export_subbooks(
        self, book: Book, eb_book: DictionaryBook, hookset: Hookset
    ) -> None:
        try:
            codes = eb_book.subbook_list()
        except DictionaryError as e:
            log.error("Failed to get subbook list: %s", e)
            return

        book.subbooks = [Subbook() for _ in codes]
        exporter = SubbookExporter(eb_book, hookset, self.resolver, self.settings)

        for code, subbook in zip(codes, book.subbooks):
            try:
                eb_book.set_subbook(code)
            except DictionaryError as e:
                log.warning("Failed to set subbook %d: %s", code, e)
                continue

            exporter.export(subbook)
