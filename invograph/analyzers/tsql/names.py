"""Identifier canonicalization.

`canonicalize` is the only place where two spellings of a name are decided
to be the same object; every other stage compares its keys.
"""

import re

_DOT_RE = re.compile(r"\.")


def _strip_delimiters(segment: str) -> str:
    """Strip one layer of [brackets] or "double quotes" from a segment."""
    segment = segment.strip()
    if len(segment) >= 2 and (
        (segment[0] == "[" and segment[-1] == "]")
        or (segment[0] == '"' and segment[-1] == '"')
    ):
        return segment[1:-1].strip()
    return segment


def canonicalize(raw: str | None) -> str:
    """Normalize a raw identifier path into a comparable key.

    `[dbo].[Orders]`, `dbo.Orders` and `"DBO"."orders"` all map to
    `dbo.orders`. No default schema is inferred, so `Orders` stays `orders`.

    Args:
        raw: Identifier path as written in the script.

    Returns:
        Case-folded, delimiter-free dotted key, or "" for blank input.
    """
    if raw is None or not raw.strip():
        return ""
    segments = (_strip_delimiters(part) for part in _DOT_RE.split(raw))
    return ".".join(seg for seg in segments if seg).casefold()


def same_object(a: str, b: str) -> bool:
    """Return True if two raw names denote the same logical object."""
    return canonicalize(a) == canonicalize(b)
