import pytest
from pydantic import PrivateAttr

from conftest import FakeLibrary, FakeSubbook, narrow
from epwing_export.core.collector import EntryCollector, next_capacity
from epwing_export.core.gaiji import EMPTY_CONTEXT, GaijiResolver, GaijiTable
from epwing_export.core.hooks import Hookset, install_default_hooks
from epwing_export.core.reader import TextReader
from epwing_export.eb.base import SearchStrategy
from epwing_export.models.book import Subbook
from epwing_export.models.settings import INITIAL_CAPACITY, PAGE_SIZE


class RecordingSubbook(Subbook):
    """Subbook that records every capacity it is grown to."""

    _history: list[int] = PrivateAttr(default_factory=list)

    def reserve(self, capacity: int) -> None:
        super().reserve(capacity)
        self._history.append(self.capacity)


class CheckingReader(TextReader):
    """Reader asserting the store invariant before every read."""

    def __init__(self, book, hookset, subbook):
        super().__init__(book, hookset)
        self.subbook = subbook

    def read(self, position, mode, context):
        assert self.subbook.capacity >= self.subbook.count
        return super().read(position, mode, context)


def _entries(prefix: str, count: int) -> list[tuple[str, str]]:
    return [(f"{prefix}{i}", f"{prefix} text {i}") for i in range(count)]


def _bound_book(fake: FakeSubbook):
    library = FakeLibrary(subbooks={0: fake})
    book = library.create_book()
    book.set_subbook(0)
    hookset = install_default_hooks(Hookset())
    library.install_hookset(hookset)
    return book, hookset


def test_next_capacity_doubles_from_initial():
    assert next_capacity(0) == INITIAL_CAPACITY
    assert next_capacity(INITIAL_CAPACITY) == 2 * INITIAL_CAPACITY
    assert next_capacity(0, 4) == 4
    assert next_capacity(4, 4) == 8


def test_collect_pages_until_empty_page():
    fake = FakeSubbook()
    fake.add_entries(SearchStrategy.ALPHABET, _entries("a", 7))
    book, hookset = _bound_book(fake)
    subbook = Subbook()

    book.search_all(SearchStrategy.ALPHABET)
    collector = EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT, page_size=3)
    count = collector.collect(subbook)

    assert count == 7
    assert book.hit_list_sizes == [3, 3, 3, 3]
    assert [e.heading for e in subbook.entries] == [f"a{i}" for i in range(7)]
    assert subbook.entries[6].text == "a text 6"


def test_collect_uses_default_page_size():
    fake = FakeSubbook()
    fake.add_entries(SearchStrategy.ALPHABET, _entries("a", 2))
    book, hookset = _bound_book(fake)

    book.search_all(SearchStrategy.ALPHABET)
    EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT).collect(Subbook())

    assert book.hit_list_sizes == [PAGE_SIZE, PAGE_SIZE]


def test_failed_page_ends_collection():
    fake = FakeSubbook(failing_pages={SearchStrategy.ALPHABET: 1})
    fake.add_entries(SearchStrategy.ALPHABET, _entries("a", 10))
    book, hookset = _bound_book(fake)
    subbook = Subbook()

    book.search_all(SearchStrategy.ALPHABET)
    count = EntryCollector(
        book, TextReader(book, hookset), EMPTY_CONTEXT, page_size=4
    ).collect(subbook)

    assert count == 4
    assert subbook.count == 4
    assert len(book.hit_list_sizes) == 2


def test_failed_first_page_collects_nothing():
    fake = FakeSubbook(failing_pages={SearchStrategy.ALPHABET: 0})
    fake.add_entries(SearchStrategy.ALPHABET, _entries("a", 3))
    book, hookset = _bound_book(fake)
    subbook = Subbook()

    book.search_all(SearchStrategy.ALPHABET)
    count = EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT).collect(subbook)

    assert count == 0
    assert subbook.entries == []


def test_first_allocation_uses_initial_capacity():
    fake = FakeSubbook()
    fake.add_entries(SearchStrategy.ALPHABET, _entries("a", 1))
    book, hookset = _bound_book(fake)
    subbook = Subbook()

    book.search_all(SearchStrategy.ALPHABET)
    EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT).collect(subbook)

    assert subbook.capacity == INITIAL_CAPACITY
    assert subbook.count == 1


def test_capacity_doubles_and_is_not_reset_between_strategies():
    fake = FakeSubbook()
    fake.add_entries(SearchStrategy.ALPHABET, _entries("a", 3))
    fake.add_entries(SearchStrategy.KANA, _entries("k", 4))
    fake.add_entries(SearchStrategy.ASIS, _entries("x", 10))
    book, hookset = _bound_book(fake)
    subbook = RecordingSubbook()
    reader = CheckingReader(book, hookset, subbook)
    collector = EntryCollector(book, reader, EMPTY_CONTEXT, page_size=2, initial_capacity=2)

    totals = []
    for strategy in (SearchStrategy.ALPHABET, SearchStrategy.KANA, SearchStrategy.ASIS):
        book.search_all(strategy)
        collector.collect(subbook)
        assert subbook.capacity >= subbook.count
        totals.append(subbook.count)

    assert totals == [3, 7, 17]
    assert subbook._history == [2, 4, 8, 16, 32]
    assert subbook.capacity == 32


def test_duplicates_across_strategies_are_kept():
    fake = FakeSubbook()
    fake.add_entries(SearchStrategy.ALPHABET, [("same", "body")])
    fake.add_entries(SearchStrategy.KANA, [("same", "body")])
    book, hookset = _bound_book(fake)
    subbook = Subbook()
    collector = EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT)

    for strategy in (SearchStrategy.ALPHABET, SearchStrategy.KANA):
        book.search_all(strategy)
        collector.collect(subbook)

    assert [(e.heading, e.text) for e in subbook.entries] == [("same", "body")] * 2


def test_unreadable_text_becomes_empty_string():
    fake = FakeSubbook()
    (hit,) = fake.add_entries(SearchStrategy.ALPHABET, [("head", "body")])
    fake.unreadable.add(hit.text)
    book, hookset = _bound_book(fake)
    subbook = Subbook()

    book.search_all(SearchStrategy.ALPHABET)
    EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT).collect(subbook)

    assert subbook.entries[0].heading == "head"
    assert subbook.entries[0].text == ""


def test_context_applies_to_heading_and_text():
    fake = FakeSubbook()
    fake.add_entries(
        SearchStrategy.ALPHABET,
        [(["k", narrow(0xA121), "n"], ["t", narrow(0xA121)])],
    )
    book, hookset = _bound_book(fake)
    subbook = Subbook()
    context = GaijiResolver({"t": GaijiTable(narrow={0xA121: "ā"})}).select("t")

    book.search_all(SearchStrategy.ALPHABET)
    EntryCollector(book, TextReader(book, hookset), context).collect(subbook)

    assert subbook.entries[0].heading == "kān"
    assert subbook.entries[0].text == "tā"


@pytest.mark.parametrize("page_size, initial_capacity", [(0, 1), (1, 0)])
def test_rejects_non_positive_sizes(page_size, initial_capacity):
    with pytest.raises(ValueError):
        EntryCollector(None, None, EMPTY_CONTEXT, page_size, initial_capacity)


def test_default_capacity_doubles_past_initial_allocation():
    fake = FakeSubbook()
    (hit,) = fake.add_entries(SearchStrategy.ALPHABET, [("見出し", "本文")])
    fake.hits[SearchStrategy.ALPHABET] = [hit] * (INITIAL_CAPACITY + 1)
    book, hookset = _bound_book(fake)
    subbook = RecordingSubbook()

    book.search_all(SearchStrategy.ALPHABET)
    EntryCollector(book, TextReader(book, hookset), EMPTY_CONTEXT).collect(subbook)

    assert subbook.count == INITIAL_CAPACITY + 1
    assert subbook._history == [16384, 32768]
    assert subbook.capacity == 32768
