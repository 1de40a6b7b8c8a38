"""Static probe catalogs used by the mutation strategies.

Every category maps to a fixed, non-empty, ordered tuple; lookups never
raise for a member of ``ProbeCategory``.
"""

from __future__ import annotations

from enum import Enum


class ProbeCategory(str, Enum):
    CONTROL_CHARS = "control_chars"
    HEADER_CONTROL_CHARS = "header_control_chars"
    WHITESPACES = "whitespaces"
    HEADER_SPACES = "header_spaces"
    INVISIBLE_CHARS = "invisible_chars"
    SINGLE_CODE_POINT_EMOJIS = "single_code_point_emojis"
    MULTI_CODE_POINT_EMOJIS = "multi_code_point_emojis"


CONTROL_CHARS = (
    "\r\n",
    "\u0000",
    "\u0007",
    "\u0008",
    "\u0009",
    "\u000B",
    "\u000C",
    "\u0010",
    "\u0015",
    "\u001C",
    "\u007F",
    "\u008D",
    "\u009D",
)

# Header probes are sent UTF-8 encoded; ASCII whitespace-only values, TAB and DEL
# are refused by the HTTP/1.1 client, so only C1 controls are used here
HEADER_CONTROL_CHARS = (
    "\u0080",
    "\u0085",
    "\u008D",
    "\u009D",
)

WHITESPACES = (
    " ",
    "\u1680",
    "\u2000",
    "\u2001",
    "\u2002",
    "\u2003",
    "\u2004",
    "\u2005",
    "\u2006",
    "\u2007",
    "\u2008",
    "\u2009",
    "\u200A",
    "\u2028",
    "\u2029",
    "\u202F",
    "\u205F",
    "\u3000",
    "\u00A0",
)

HEADER_SPACES = (
    "\u00A0",
    "\u2007",
    "\u202F",
    "\u3000",
)

INVISIBLE_CHARS = (
    "\u00AD",
    "\u200B",
    "\u200C",
    "\u200D",
    "\u200E",
    "\u200F",
    "\u2060",
    "\u2061",
    "\u2062",
    "\u2063",
    "\u2064",
    "\u206A",
    "\uFEFF",
    "\u180E",
)

SINGLE_CODE_POINT_EMOJIS = (
    "\U0001F60A",  # smiling face
    "\U0001F680",  # rocket
    "\U0001F4A9",  # pile of poo
    "\U0001F525",  # fire
    "\u2764",  # heavy black heart
)

MULTI_CODE_POINT_EMOJIS = (
    "\U0001F469\u200D\U0001F680",  # woman astronaut
    "\U0001F468\u200D\U0001F469\u200D\U0001F467\u200D\U0001F466",  # family
    "\U0001F3F3\uFE0F\u200D\U0001F308",  # rainbow flag
    "\U0001F1F7\U0001F1F4",  # flag: Romania
    "\U0001F44D\U0001F3FD",  # thumbs up, medium skin tone
    "\u2764\uFE0F",  # red heart
)

_CATALOG: dict[ProbeCategory, tuple[str, ...]] = {
    ProbeCategory.CONTROL_CHARS: CONTROL_CHARS,
    ProbeCategory.HEADER_CONTROL_CHARS: HEADER_CONTROL_CHARS,
    ProbeCategory.WHITESPACES: WHITESPACES,
    ProbeCategory.HEADER_SPACES: HEADER_SPACES,
    ProbeCategory.INVISIBLE_CHARS: INVISIBLE_CHARS,
    ProbeCategory.SINGLE_CODE_POINT_EMOJIS: SINGLE_CODE_POINT_EMOJIS,
    ProbeCategory.MULTI_CODE_POINT_EMOJIS: MULTI_CODE_POINT_EMOJIS,
}


def probes(category: ProbeCategory) -> tuple[str, ...]:
    """Ordered probe values for *category*."""
    return _CATALOG[category]


def probe_characters(category: ProbeCategory) -> str:
    """Every distinct code point occurring in the category, in first-seen order."""
    seen: dict[str, None] = {}
    for value in _CATALOG[category]:
        for char in value:
            seen.setdefault(char)
    return "".join(seen)
