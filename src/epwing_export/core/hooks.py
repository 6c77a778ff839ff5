"""Hook table controlling how embedded markup is rendered during reads."""

import logging
from enum import IntEnum
from typing import Callable, Optional, Sequence

from epwing_export.core.gaiji import GaijiWidth, encode_stub

log = logging.getLogger(__name__)

HookFunction = Callable[[Sequence[int]], Optional[str]]


class HookCode(IntEnum):
    """libeb hook codes (eb/text.h)."""

    INITIALIZE = 0
    BEGIN_NARROW = 1
    END_NARROW = 2
    BEGIN_SUBSCRIPT = 3
    END_SUBSCRIPT = 4
    SET_INDENT = 5
    NEWLINE = 6
    BEGIN_SUPERSCRIPT = 7
    END_SUPERSCRIPT = 8
    BEGIN_NO_NEWLINE = 9
    END_NO_NEWLINE = 10
    BEGIN_EMPHASIS = 11
    END_EMPHASIS = 12
    BEGIN_CANDIDATE = 13
    END_CANDIDATE_GROUP = 14
    END_CANDIDATE_LEAF = 15
    BEGIN_REFERENCE = 16
    END_REFERENCE = 17
    BEGIN_KEYWORD = 18
    END_KEYWORD = 19
    NARROW_FONT = 20
    WIDE_FONT = 21


class Hookset:
    """Mapping of hook codes to render functions.

    A render function receives the hook arguments and returns the text to
    insert into the stream, or None to insert nothing. Once installed on a
    library the hookset is sealed and stays read-only for the run.
    """

    def __init__(self) -> None:
        self._hooks: dict[HookCode, HookFunction] = {}
        self._sealed = False

    def set_hook(self, code: HookCode, function: HookFunction) -> None:
        if self._sealed:
            raise RuntimeError("hookset is already installed")
        self._hooks[code] = function

    def seal(self) -> None:
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def render(self, code: HookCode, argv: Sequence[int]) -> str | None:
        function = self._hooks.get(code)
        if function is None:
            return None
        return function(argv)

    def items(self) -> list[tuple[HookCode, HookFunction]]:
        return sorted(self._hooks.items())

    def __contains__(self, code: object) -> bool:
        return code in self._hooks

    def __len__(self) -> int:
        return len(self._hooks)


def _narrow_font(argv: Sequence[int]) -> str:
    return encode_stub(GaijiWidth.NARROW, argv[0])


def _wide_font(argv: Sequence[int]) -> str:
    return encode_stub(GaijiWidth.WIDE, argv[0])


def install_default_hooks(hookset: Hookset) -> Hookset:
    """Register the gaiji hooks used for every export."""
    hookset.set_hook(HookCode.NARROW_FONT, _narrow_font)
    hookset.set_hook(HookCode.WIDE_FONT, _wide_font)
    log.debug("Installed %d hooks", len(hookset))
    return hookset
