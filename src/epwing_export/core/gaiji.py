"""Gaiji (external glyph) substitution.

Books render characters outside their declared character set through
book-local bitmap fonts. The narrow and wide font hooks write a stub such as
``{#na121}`` into the text stream; after the text is decoded, a
SubstitutionContext selected by the subbook title replaces each stub with its
Unicode equivalent, or with FALLBACK_MARKER when the code is unknown.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import MappingProxyType

log = logging.getLogger(__name__)

FALLBACK_MARKER = "?"

STUB_PATTERN = re.compile(r"\{#([nw])([0-9a-f]{4})\}")


class GaijiWidth(str, Enum):
    """Font width a gaiji code belongs to."""

    NARROW = "n"
    WIDE = "w"


def encode_stub(width: GaijiWidth, code: int) -> str:
    """Return the stub written into the text stream for a gaiji code.

    Stubs share the text stream with the dictionary body, so literal text
    that happens to match STUB_PATTERN (for example "{#na121}") is rewritten
    as if it were a gaiji reference.
    """
    return f"{{#{width.value}{code & 0xFFFF:04x}}}"


@dataclass(frozen=True)
class GaijiTable:
    """Replacement text for one book's narrow and wide gaiji codes."""

    narrow: Mapping[int, str] = field(default_factory=dict)
    wide: Mapping[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "narrow", MappingProxyType(dict(self.narrow)))
        object.__setattr__(self, "wide", MappingProxyType(dict(self.wide)))

    def lookup(self, width: GaijiWidth, code: int) -> str | None:
        table = self.narrow if width == GaijiWidth.NARROW else self.wide
        return table.get(code)

    def __len__(self) -> int:
        return len(self.narrow) + len(self.wide)


EMPTY_TABLE = GaijiTable()


@dataclass(frozen=True)
class SubstitutionContext:
    """Text-rewriting context for a single subbook."""

    title: str | None = None
    table: GaijiTable = EMPTY_TABLE

    @property
    def is_empty(self) -> bool:
        return len(self.table) == 0

    def rewrite(self, text: str) -> str:
        """Replace gaiji stubs in decoded text."""

        def replace(match: re.Match) -> str:
            width = GaijiWidth(match.group(1))
            code = int(match.group(2), 16)
            replacement = self.table.lookup(width, code)
            if replacement is None:
                return FALLBACK_MARKER
            return replacement

        return STUB_PATTERN.sub(replace, text)


EMPTY_CONTEXT = SubstitutionContext()


class GaijiResolver:
    """Select the substitution table for a subbook by its title."""

    def __init__(self, registry: Mapping[str, GaijiTable] | None = None):
        if registry is None:
            from epwing_export.core.gaiji_tables import BUILTIN_TABLES

            registry = BUILTIN_TABLES
        self._registry: dict[str, GaijiTable] = {
            title.strip(): table for title, table in registry.items()
        }

    @property
    def titles(self) -> list[str]:
        return sorted(self._registry)

    def register(self, title: str, table: GaijiTable) -> None:
        """Add or replace the table for a title."""
        self._registry[title.strip()] = table

    def select(self, title: str | None) -> SubstitutionContext:
        """Return the context for title; unknown titles get the empty context."""
        if title is None:
            return EMPTY_CONTEXT

        key = title.strip()
        table = self._registry.get(key)
        if table is None:
            log.debug("No gaiji table for %r", key)
            return EMPTY_CONTEXT

        log.debug("Using gaiji table for %r (%d codes)", key, len(table))
        return SubstitutionContext(title=key, table=table)


def _parse_codes(raw: object, source: Path, width: str) -> dict[int, str]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"{source}: '{width}' must be an object")

    codes: dict[int, str] = {}
    for key, value in raw.items():
        try:
            code = int(str(key), 16)
        except ValueError:
            raise ValueError(f"{source}: invalid {width} gaiji code {key!r}") from None
        if not isinstance(value, str):
            raise ValueError(f"{source}: replacement for {key!r} must be a string")
        codes[code] = value
    return codes


def load_table_file(path: Path) -> tuple[str, GaijiTable]:
    """Load a title and its gaiji table from a JSON file.

    The file holds ``{"title": ..., "narrow": {"a121": "ā"}, "wide": {...}}``
    with codes written in hexadecimal.

    Raises:
        ValueError: If the file is not valid JSON or has the wrong shape
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"{path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("title"), str):
        raise ValueError(f"{path}: expected an object with a 'title' string")

    table = GaijiTable(
        narrow=_parse_codes(data.get("narrow"), path, "narrow"),
        wide=_parse_codes(data.get("wide"), path, "wide"),
    )
    return data["title"], table
