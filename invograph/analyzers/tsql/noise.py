"""Collect structural names that must never be reported as references.

A grammar-free scanner cannot tell `FROM cte`, `FROM dbo.Orders o` or
`SELECT o.Id` apart from real object references by shape alone. The names
gathered here (CTE names, derived-table aliases, correlation aliases and
projection qualifiers) are merged into one canonical exclusion set that the
extractors consult before emitting a candidate.
"""

import re

from invograph.analyzers.tsql.base import (
    IDENTIFIER_PATTERN,
    QUALIFIED_NAME_PATTERN,
    is_keyword,
)
from invograph.analyzers.tsql.names import canonicalize
from invograph.analyzers.tsql.spans import find_matching_paren

# Optional CTE column list: WITH c (a, b) AS (...)
_CTE_COLUMNS = r"(?:\([^()]*\)\s*)?"

_CTE_HEAD_RE = re.compile(
    rf"\bWITH\s+(?P<name>{IDENTIFIER_PATTERN})\s*{_CTE_COLUMNS}AS\s*\(",
    re.IGNORECASE,
)
_CTE_NEXT_RE = re.compile(
    rf"\s*,\s*(?P<name>{IDENTIFIER_PATTERN})\s*{_CTE_COLUMNS}AS\s*\(",
    re.IGNORECASE,
)
_DERIVED_TABLE_RE = re.compile(r"\b(?:FROM|JOIN)\s*\(", re.IGNORECASE)
_SOURCE_NAME_RE = re.compile(
    rf"\b(?:FROM|JOIN)\s+(?P<name>{QUALIFIED_NAME_PATTERN})",
    re.IGNORECASE,
)
_OPEN_PAREN_RE = re.compile(r"\s*\(")
_ALIAS_RE = re.compile(
    rf"\s*(?:AS\s+)?(?P<alias>{IDENTIFIER_PATTERN})",
    re.IGNORECASE,
)
_SELECT_RE = re.compile(r"\bSELECT\b", re.IGNORECASE)
_SELECT_LIST_BOUNDARY_RE = re.compile(r"[();]|\b(?:FROM|INTO|SELECT)\b", re.IGNORECASE)
_COLUMN_PATH_RE = re.compile(
    rf"(?<![\w$#@\]\.\"])(?P<path>{QUALIFIED_NAME_PATTERN})"
    rf"(?P<star>\s*\.\s*\*)?(?P<call>\s*\()?",
)
_PATH_DOT_RE = re.compile(r"\s*\.\s*")


def _alias_after(clean: str, pos: int) -> str | None:
    """Read an optional `[AS] alias` token starting at `pos`."""
    match = _ALIAS_RE.match(clean, pos)
    if not match:
        return None
    alias = match.group("alias")
    if is_keyword(alias):
        return None
    return alias


def collect_cte_names(clean: str) -> set[str]:
    """Names introduced by `WITH name AS (...)` and each `, name AS (...)` after it."""
    names: set[str] = set()
    for head in _CTE_HEAD_RE.finditer(clean):
        names.add(canonicalize(head.group("name")))
        close = find_matching_paren(clean, head.end() - 1)
        while close < len(clean):
            nxt = _CTE_NEXT_RE.match(clean, close + 1)
            if not nxt:
                break
            names.add(canonicalize(nxt.group("name")))
            close = find_matching_paren(clean, nxt.end() - 1)
    return names


def collect_derived_table_aliases(clean: str) -> set[str]:
    """Aliases following the closing paren of `FROM (...)` / `JOIN (...)`."""
    aliases: set[str] = set()
    for match in _DERIVED_TABLE_RE.finditer(clean):
        close = find_matching_paren(clean, match.end() - 1)
        if close >= len(clean):
            continue
        alias = _alias_after(clean, close + 1)
        if alias:
            aliases.add(canonicalize(alias))
    return aliases


def collect_correlation_aliases(clean: str) -> set[str]:
    """Aliases following `FROM name` / `JOIN name`, including after TVF arguments."""
    aliases: set[str] = set()
    for match in _SOURCE_NAME_RE.finditer(clean):
        pos = match.end()
        args = _OPEN_PAREN_RE.match(clean, pos)
        if args:
            pos = find_matching_paren(clean, args.end() - 1) + 1
            if pos > len(clean):
                continue
        alias = _alias_after(clean, pos)
        if alias:
            aliases.add(canonicalize(alias))
    return aliases


def _select_list_end(clean: str, start: int) -> int:
    """Return the end of a select list: top-level FROM, INTO, SELECT, `;` or `)`."""
    depth = 0
    for match in _SELECT_LIST_BOUNDARY_RE.finditer(clean, start):
        token = match.group(0)
        if token == "(":
            depth += 1
        elif token == ")":
            if depth == 0:
                return match.start()
            depth -= 1
        elif depth == 0:
            return match.start()
    return len(clean)


def collect_projection_qualifiers(clean: str) -> set[str]:
    """Leading qualifiers of dotted column references in SELECT lists (`o` in `o.Id`)."""
    qualifiers: set[str] = set()
    for select in _SELECT_RE.finditer(clean):
        end = _select_list_end(clean, select.end())
        for match in _COLUMN_PATH_RE.finditer(clean, select.end(), end):
            if match.group("call"):
                continue
            segments = _PATH_DOT_RE.split(match.group("path"))
            if len(segments) < 2 and not match.group("star"):
                continue
            qualifiers.add(canonicalize(segments[0]))
    return qualifiers


def collect_noise_names(clean: str) -> frozenset[str]:
    """Union of every noise-name source, as canonical keys."""
    names = (
        collect_cte_names(clean)
        | collect_derived_table_aliases(clean)
        | collect_correlation_aliases(clean)
        | collect_projection_qualifiers(clean)
    )
    names.discard("")
    return frozenset(names)
