"""Built-in gaiji substitution tables, keyed by decoded subbook title.

Tables cover the codes seen in common dictionary bodies (accented Latin in
pronunciations and etymologies, enclosed numerals for sense numbers). Codes
missing here render as the fallback marker; extend them with --gaiji-table.
"""

from epwing_export.core.gaiji import GaijiTable

_DAIJIRIN = GaijiTable(
    narrow={
        0xA121: "á",
        0xA122: "à",
        0xA123: "é",
        0xA124: "è",
        0xA125: "í",
        0xA126: "ì",
        0xA127: "ó",
        0xA128: "ò",
        0xA129: "ú",
        0xA12A: "ù",
        0xA12B: "ā",
        0xA12C: "ē",
        0xA12D: "ī",
        0xA12E: "ō",
        0xA12F: "ū",
    },
    wide={
        0xB021: "㊀",
        0xB022: "㊁",
        0xB023: "㊂",
        0xB024: "㊃",
        0xB025: "㊄",
        0xB026: "㊅",
        0xB027: "㊆",
        0xB028: "㊇",
        0xB029: "㊈",
    },
)

_DAIJISEN = GaijiTable(
    narrow={
        0xA121: "ā",
        0xA122: "ī",
        0xA123: "ū",
        0xA124: "ē",
        0xA125: "ō",
    },
    wide={
        0xA121: "❶",
        0xA122: "❷",
        0xA123: "❸",
        0xA124: "❹",
        0xA125: "❺",
        0xA126: "❻",
        0xA127: "❼",
        0xA128: "❽",
        0xA129: "❾",
    },
)

_KENKYUSHA = GaijiTable(
    narrow={
        0xA121: "ɑ",
        0xA122: "ə",
        0xA123: "ɛ",
        0xA124: "ɪ",
        0xA125: "ŋ",
        0xA126: "ɔ",
        0xA127: "ʃ",
        0xA128: "θ",
        0xA129: "ʊ",
        0xA12A: "ʌ",
        0xA12B: "ʒ",
        0xA12C: "ð",
        0xA12D: "æ",
        0xA12E: "ː",
    },
)

BUILTIN_TABLES: dict[str, GaijiTable] = {
    "大辞林": _DAIJIRIN,
    "三省堂　スーパー大辞林": _DAIJIRIN,
    "大辞泉": _DAIJISEN,
    "研究社　新英和・和英中辞典": _KENKYUSHA,
    "研究社　新英和中辞典": _KENKYUSHA,
}
