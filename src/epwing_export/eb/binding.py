"""ctypes binding to libeb, the EB/EPWING access library."""

import ctypes
import ctypes.util
import logging
import os

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

log = logging.getLogger(__name__)

c_int = ctypes.c_int
c_uint = ctypes.c_uint
c_char_p = ctypes.c_char_p
c_void_p = ctypes.c_void_p
c_ssize_t = ctypes.c_ssize_t
c_size_t = ctypes.c_size_t

EB_SUCCESS = 0
EB_HOOK_NULL = -1
EB_MAX_SUBBOOKS = 50
EB_MAX_TITLE_LENGTH = 80

# Status reported for failures detected on the Python side.
ERROR_UNAVAILABLE = -1

# EB_Book and EB_Hookset are opaque here; reserve more than any libeb 4.x build uses.
BOOK_STORAGE_SIZE = 1 << 20
HOOKSET_STORAGE_SIZE = 1 << 16

# Bytes requested per eb_read_text/eb_read_heading call, and the cap per read.
READ_CHUNK_SIZE = 1024
READ_LIMIT = 1 << 22

CHARACTER_CODES = {
    1: CharacterCode.ISO8859_1,
    2: CharacterCode.JISX0208,
    3: CharacterCode.JISX0208_GB2312,
}

DISC_CODES = {
    0: DiscCode.EB,
    1: DiscCode.EPWING,
}

SEARCH_FUNCTIONS = {
    SearchStrategy.ALPHABET: "eb_search_all_alphabet",
    SearchStrategy.KANA: "eb_search_all_kana",
    SearchStrategy.ASIS: "eb_search_all_asis",
}


class EBPosition(ctypes.Structure):
    _fields_ = [("page", c_int), ("offset", c_int)]


class EBHit(ctypes.Structure):
    _fields_ = [("heading", EBPosition), ("text", EBPosition)]


HOOK_FUNCTION = ctypes.CFUNCTYPE(
    c_int,  # EB_Error_Code
    c_void_p,  # EB_Book *
    c_void_p,  # EB_Appendix *
    c_void_p,  # void *container
    c_int,  # EB_Hook_Code
    c_int,  # argc
    ctypes.POINTER(c_uint),  # const unsigned int *argv
)


class EBHook(ctypes.Structure):
    _fields_ = [("code", c_int), ("function", HOOK_FUNCTION)]


def _declare(lib: ctypes.CDLL) -> None:
    """Declare argument and result types of the libeb functions used here."""
    book = c_void_p

    signatures = {
        "eb_initialize_library": ([], c_int),
        "eb_finalize_library": ([], None),
        "eb_error_message": ([c_int], c_char_p),
        "eb_initialize_book": ([book], None),
        "eb_finalize_book": ([book], None),
        "eb_bind": ([book, c_char_p], c_int),
        "eb_character_code": ([book, ctypes.POINTER(c_int)], c_int),
        "eb_disc_type": ([book, ctypes.POINTER(c_int)], c_int),
        "eb_subbook_list": ([book, ctypes.POINTER(c_int), ctypes.POINTER(c_int)], c_int),
        "eb_set_subbook": ([book, c_int], c_int),
        "eb_subbook_title": ([book, c_char_p], c_int),
        "eb_have_copyright": ([book], c_int),
        "eb_copyright": ([book, ctypes.POINTER(EBPosition)], c_int),
        "eb_hit_list": ([book, c_int, ctypes.POINTER(EBHit), ctypes.POINTER(c_int)], c_int),
        "eb_seek_text": ([book, ctypes.POINTER(EBPosition)], c_int),
        "eb_read_text": (
            [book, c_void_p, c_void_p, c_void_p, c_size_t, c_char_p, ctypes.POINTER(c_ssize_t)],
            c_int,
        ),
        "eb_read_heading": (
            [book, c_void_p, c_void_p, c_void_p, c_size_t, c_char_p, ctypes.POINTER(c_ssize_t)],
            c_int,
        ),
        "eb_write_text_string": ([book, c_char_p], c_int),
        "eb_initialize_hookset": ([c_void_p], None),
        "eb_finalize_hookset": ([c_void_p], None),
        "eb_set_hooks": ([c_void_p, ctypes.POINTER(EBHook)], c_int),
    }

    for name, (argtypes, restype) in signatures.items():
        function = getattr(lib, name)
        function.argtypes = argtypes
        function.restype = restype

    for name in SEARCH_FUNCTIONS.values():
        function = getattr(lib, name, None)
        if function is None:
            log.debug("Loaded libeb has no %s", name)
            continue
        function.argtypes = [book]
        function.restype = c_int


class _NativeHookset:
    """libeb hookset storage plus the callbacks it points to.

    The callbacks must outlive every read, so they are held here until the
    hookset is released.
    """

    def __init__(self, library: "EBLibrary", hookset: Hookset):
        self.storage = (ctypes.c_byte * HOOKSET_STORAGE_SIZE)()
        self.callbacks = [
            HOOK_FUNCTION(self._make_callback(library, hookset, code))
            for code, _ in hookset.items()
        ]
        entries = [
            EBHook(code=int(code), function=callback)
            for (code, _), callback in zip(hookset.items(), self.callbacks)
        ]
        entries.append(EBHook(code=EB_HOOK_NULL, function=HOOK_FUNCTION()))
        self.hooks = (EBHook * len(entries))(*entries)

    @staticmethod
    def _make_callback(library: "EBLibrary", hookset: Hookset, code: HookCode):
        def callback(book, appendix, container, hook_code, argc, argv) -> int:
            try:
                text = hookset.render(code, [argv[i] for i in range(argc)])
                if text:
                    library.lib.eb_write_text_string(book, text.encode("euc_jp"))
            except Exception:
                log.exception("Hook %s failed", code.name)
            return EB_SUCCESS

        return callback

    @property
    def pointer(self) -> c_void_p:
        return ctypes.cast(self.storage, c_void_p)


class EBLibrary(DictionaryLibrary):
    """libeb loaded through ctypes."""

    def __init__(self, library_path: str | None = None):
        self.library_path = library_path
        self.lib: ctypes.CDLL | None = None
        self._hooksets: dict[int, _NativeHookset] = {}

    def _load(self) -> ctypes.CDLL:
        path = self.library_path or ctypes.util.find_library("eb")
        if path is None:
            raise DictionaryError(ERROR_UNAVAILABLE, "libeb not found")

        try:
            lib = ctypes.CDLL(path)
            _declare(lib)
        except (OSError, AttributeError) as e:
            raise DictionaryError(ERROR_UNAVAILABLE, f"cannot load {path}: {e}") from e

        log.debug("Loaded libeb from %s", path)
        return lib

    def check(self, status: int) -> None:
        """Raise DictionaryError for a failed libeb status."""
        if status == EB_SUCCESS:
            return
        message = self.lib.eb_error_message(status) if self.lib else None
        raise DictionaryError(
            status, message.decode("ascii", errors="replace") if message else "unknown error"
        )

    def initialize(self) -> None:
        if self.lib is None:
            self.lib = self._load()
        self.check(self.lib.eb_initialize_library())

    def finalize(self) -> None:
        if self.lib is not None:
            self.lib.eb_finalize_library()

    def create_book(self) -> "EBBook":
        if self.lib is None:
            raise DictionaryError(ERROR_UNAVAILABLE, "library is not initialized")
        return EBBook(self)

    def install_hookset(self, hookset: Hookset) -> None:
        if self.lib is None:
            raise DictionaryError(ERROR_UNAVAILABLE, "library is not initialized")

        native = _NativeHookset(self, hookset)
        self.lib.eb_initialize_hookset(native.pointer)
        self._hooksets[id(hookset)] = native
        try:
            self.check(self.lib.eb_set_hooks(native.pointer, native.hooks))
        except DictionaryError:
            self.release_hookset(hookset)
            raise
        hookset.seal()

    def release_hookset(self, hookset: Hookset) -> None:
        native = self._hooksets.pop(id(hookset), None)
        if native is not None:
            self.lib.eb_finalize_hookset(native.pointer)

    def native_hookset(self, hookset: Hookset) -> c_void_p:
        native = self._hooksets.get(id(hookset))
        if native is None:
            raise DictionaryError(ERROR_UNAVAILABLE, "hookset is not installed")
        return native.pointer


class EBBook(DictionaryBook):
    """EB_Book handle."""

    def __init__(self, library: EBLibrary):
        self.library = library
        self.lib = library.lib
        self.storage = (ctypes.c_byte * BOOK_STORAGE_SIZE)()
        self.handle = ctypes.cast(self.storage, c_void_p)
        # One reusable page buffer per requested page size.
        self._pages: dict[int, ctypes.Array] = {}
        self.lib.eb_initialize_book(self.handle)

    def bind(self, path: str) -> None:
        self.library.check(self.lib.eb_bind(self.handle, os.fsencode(path)))

    def character_code(self) -> CharacterCode:
        code = c_int()
        self.library.check(self.lib.eb_character_code(self.handle, ctypes.byref(code)))
        return CHARACTER_CODES.get(code.value, CharacterCode.INVALID)

    def disc_type(self) -> DiscCode:
        code = c_int()
        self.library.check(self.lib.eb_disc_type(self.handle, ctypes.byref(code)))
        return DISC_CODES.get(code.value, DiscCode.INVALID)

    def subbook_list(self) -> list[int]:
        codes = (c_int * EB_MAX_SUBBOOKS)()
        count = c_int()
        self.library.check(self.lib.eb_subbook_list(self.handle, codes, ctypes.byref(count)))
        return list(codes[: count.value])

    def set_subbook(self, code: int) -> None:
        self.library.check(self.lib.eb_set_subbook(self.handle, code))

    def title(self) -> bytes:
        buffer = ctypes.create_string_buffer(EB_MAX_TITLE_LENGTH + 1)
        self.library.check(self.lib.eb_subbook_title(self.handle, buffer))
        return buffer.value

    def copyright_position(self) -> Position | None:
        if not self.lib.eb_have_copyright(self.handle):
            return None
        position = EBPosition()
        self.library.check(self.lib.eb_copyright(self.handle, ctypes.byref(position)))
        return Position(page=position.page, offset=position.offset)

    def search_all(self, strategy: SearchStrategy) -> None:
        name = SEARCH_FUNCTIONS[strategy]
        function = getattr(self.lib, name, None)
        if function is None:
            raise DictionaryError(ERROR_UNAVAILABLE, f"{name} is not available")
        self.library.check(function(self.handle))

    def hit_list(self, max_hits: int) -> list[Hit]:
        page = self._pages.get(max_hits)
        if page is None:
            page = self._pages[max_hits] = (EBHit * max_hits)()

        count = c_int()
        self.library.check(self.lib.eb_hit_list(self.handle, max_hits, page, ctypes.byref(count)))
        return [
            Hit(
                heading=Position(page=hit.heading.page, offset=hit.heading.offset),
                text=Position(page=hit.text.page, offset=hit.text.offset),
            )
            for hit in page[: count.value]
        ]

    def read(self, position: Position, mode: ReadMode, hookset: Hookset) -> bytes:
        native_hookset = self.library.native_hookset(hookset)
        target = EBPosition(page=position.page, offset=position.offset)
        self.library.check(self.lib.eb_seek_text(self.handle, ctypes.byref(target)))

        if mode == ReadMode.HEADING:
            read_function = self.lib.eb_read_heading
        else:
            read_function = self.lib.eb_read_text

        return self._read_all(read_function, native_hookset)

    def _read_all(self, read_function, native_hookset: c_void_p) -> bytes:
        buffer = ctypes.create_string_buffer(READ_CHUNK_SIZE)
        length = c_ssize_t()
        chunks: list[bytes] = []
        total = 0

        while total < READ_LIMIT:
            self.library.check(
                read_function(
                    self.handle,
                    None,
                    native_hookset,
                    None,
                    READ_CHUNK_SIZE - 1,
                    buffer,
                    ctypes.byref(length),
                )
            )
            if length.value <= 0:
                break
            chunks.append(buffer.raw[: length.value])
            total += length.value
        else:
            log.warning("Text at %d bytes exceeds read limit, truncating", total)

        return b"".join(chunks)

    def finalize(self) -> None:
        self.lib.eb_finalize_book(self.handle)
        self._pages.clear()
