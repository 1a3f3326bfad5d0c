"""
String and row helpers shared by repositories and services.
"""

from __future__ import annotations

from typing import Union

__all__ = ["JsonRow", "JsonValue", "matches_term"]


# ---------------------------------------------------------------------------
# Type definitions
# ---------------------------------------------------------------------------

JsonValue = Union[
    str,
    int,
    float,
    bool,
    None,
    dict[str, "JsonValue"],
    list["JsonValue"],
]

JsonRow = dict[str, JsonValue]
"""One row as returned by PostgREST (``response.data[i]``)."""


def matches_term(term: str, *fields: str) -> bool:
    """``True`` when *term* occurs in any of *fields*, ignoring case.

    A blank *term* matches everything.
    """
    needle = term.strip().casefold()
    if not needle:
        return True
    return any(needle in (field or "").casefold() for field in fields)
