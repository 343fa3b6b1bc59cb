"""Parenthesis-depth scanning and MERGE `USING (subquery)` spans."""

import re

_USING_SUBQUERY_RE = re.compile(r"\bUSING\s*\(", re.IGNORECASE)

Span = tuple[int, int]


def find_matching_paren(text: str, open_index: int) -> int:
    """Return the index of the `)` closing the `(` at `open_index`.

    Nesting is tracked by depth counting, so subqueries inside subqueries
    close correctly. Unbalanced input returns `len(text)`.
    """
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
    return len(text)


def find_using_spans(clean: str) -> tuple[Span, ...]:
    """Locate every MERGE `USING (...)` group.

    Returns:
        Half-open `(start, end)` spans covering the text between the
        parentheses, in text order.
    """
    spans: list[Span] = []
    for match in _USING_SUBQUERY_RE.finditer(clean):
        open_index = match.end() - 1
        close_index = find_matching_paren(clean, open_index)
        spans.append((open_index + 1, close_index))
    return tuple(spans)


def in_spans(offset: int, spans: tuple[Span, ...]) -> bool:
    """Return True if `offset` falls inside any of the spans."""
    return any(start <= offset < end for start, end in spans)
