from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from epwing_export.core.hooks import HookCode, Hookset
from epwing_export.eb.base import (
    DictionaryBook,
    DictionaryError,
    DictionaryLibrary,
    Hit,
    Position,
    ReadMode,
    SearchStrategy,
)
from epwing_export.models.book import CharacterCode, DiscCode

# A text segment is either raw EUC-JP bytes or a gaiji reference.
NARROW = "narrow"
WIDE = "wide"


def narrow(code: int) -> tuple[str, int]:
    return (NARROW, code)


def wide(code: int) -> tuple[str, int]:
    return (WIDE, code)


def _segments(value) -> list:
    if isinstance(value, str):
        return [value.encode("euc_jp")]
    if isinstance(value, bytes):
        return [value]
    return [s.encode("euc_jp") if isinstance(s, str) else s for s in value]


@dataclass
class FakeSubbook:
    """Contents of one subbook in the fake dictionary."""

    title: str | bytes | None = "テスト辞典"
    copyright: object = None
    hits: dict[SearchStrategy, list[Hit]] = field(default_factory=dict)
    texts: dict[Position, list] = field(default_factory=dict)
    # hit_list call index (per strategy) that fails
    failing_pages: dict[SearchStrategy, int] = field(default_factory=dict)
    unreadable: set[Position] = field(default_factory=set)
    _next_page: int = 1

    def add_text(self, value) -> Position:
        position = Position(page=self._next_page, offset=0)
        self._next_page += 1
        self.texts[position] = _segments(value)
        return position

    def add_entries(self, strategy: SearchStrategy, entries: list) -> list[Hit]:
        """Register (heading, text) pairs as the hits of a search strategy."""
        hits = self.hits.setdefault(strategy, [])
        for heading, text in entries:
            hit = Hit(heading=self.add_text(heading), text=self.add_text(text))
            hits.append(hit)
        return hits


class FakeBook(DictionaryBook):
    def __init__(self, library: FakeLibrary):
        self.library = library
        self.bound_path: str | None = None
        self.active: FakeSubbook | None = None
        self.cursor = 0
        self.page_calls = 0
        self.strategy: SearchStrategy | None = None
        self.hit_list_sizes: list[int] = []
        self.search_calls: list[SearchStrategy] = []
        self.finalized = 0

    def _check(self, name: str) -> None:
        if name in self.library.failing:
            raise DictionaryError(1, f"{name} failed")

    def bind(self, path: str) -> None:
        self._check("bind")
        self.bound_path = path

    def character_code(self) -> CharacterCode:
        self._check("character_code")
        return self.library.character_code

    def disc_type(self) -> DiscCode:
        self._check("disc_type")
        return self.library.disc_code

    def subbook_list(self) -> list[int]:
        self._check("subbook_list")
        return list(self.library.subbooks)

    def set_subbook(self, code: int) -> None:
        if code in self.library.failing_subbooks:
            raise DictionaryError(2, f"cannot set subbook {code}")
        self.active = self.library.subbooks[code]
        self.strategy = None

    def title(self) -> bytes:
        title = self.active.title
        if title is None:
            raise DictionaryError(3, "no title")
        if isinstance(title, str):
            return title.encode("euc_jp") + b"\0" * 4
        return title

    def copyright_position(self) -> Position | None:
        if self.active.copyright is None:
            return None
        return self.active.add_text(self.active.copyright)

    def search_all(self, strategy: SearchStrategy) -> None:
        self.search_calls.append(strategy)
        if strategy not in self.active.hits:
            raise DictionaryError(4, "no such search")
        self.strategy = strategy
        self.cursor = 0
        self.page_calls = 0

    def hit_list(self, max_hits: int) -> list[Hit]:
        self.hit_list_sizes.append(max_hits)
        call = self.page_calls
        self.page_calls += 1
        if self.active.failing_pages.get(self.strategy) == call:
            raise DictionaryError(5, "hit list failed")

        hits = self.active.hits[self.strategy]
        page = hits[self.cursor : self.cursor + max_hits]
        self.cursor += len(page)
        return page

    def read(self, position: Position, mode: ReadMode, hookset: Hookset) -> bytes:
        self.library.reads.append(mode)
        if not hookset.sealed:
            raise AssertionError("read before the hookset was installed")
        if position in self.active.unreadable or position not in self.active.texts:
            raise DictionaryError(6, "cannot read text")

        data = b""
        for segment in self.active.texts[position]:
            if isinstance(segment, bytes):
                data += segment
                continue
            kind, code = segment
            hook = HookCode.NARROW_FONT if kind == NARROW else HookCode.WIDE_FONT
            data += (hookset.render(hook, [code]) or "").encode("euc_jp")
        return data

    def finalize(self) -> None:
        self.finalized += 1


class FakeLibrary(DictionaryLibrary):
    """In-memory dictionary library that records lifecycle calls."""

    def __init__(
        self,
        subbooks: dict[int, FakeSubbook] | None = None,
        character_code: CharacterCode = CharacterCode.JISX0208,
        disc_code: DiscCode = DiscCode.EPWING,
        failing: set[str] | None = None,
        failing_subbooks: set[int] | None = None,
    ):
        self.subbooks = subbooks if subbooks is not None else {}
        self.character_code = character_code
        self.disc_code = disc_code
        self.failing = failing or set()
        self.failing_subbooks = failing_subbooks or set()
        self.books: list[FakeBook] = []
        self.initialized = 0
        self.finalized = 0
        self.installed: list[Hookset] = []
        self.released: list[Hookset] = []
        self.reads: list[ReadMode] = []

    def initialize(self) -> None:
        if "initialize" in self.failing:
            raise DictionaryError(7, "initialize failed")
        self.initialized += 1

    def finalize(self) -> None:
        self.finalized += 1

    def create_book(self) -> FakeBook:
        book = FakeBook(self)
        self.books.append(book)
        return book

    def install_hookset(self, hookset: Hookset) -> None:
        if "install_hookset" in self.failing:
            raise DictionaryError(8, "install failed")
        hookset.seal()
        self.installed.append(hookset)

    def release_hookset(self, hookset: Hookset) -> None:
        self.released.append(hookset)


@pytest.fixture
def subbook() -> FakeSubbook:
    return FakeSubbook()


@pytest.fixture
def library(subbook: FakeSubbook) -> FakeLibrary:
    return FakeLibrary(subbooks={0: subbook})
