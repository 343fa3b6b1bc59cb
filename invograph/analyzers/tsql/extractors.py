"""Reference extractors.

Each extractor is an independent recognizer over the cleaned buffer. They
share one `ExtractionContext`; the only mutable part of it is the
append-only set of table-valued-function keys, which
`extract_table_valued_functions` must fill before the scalar-function and
query-source extractors read it.
"""

import re
from collections.abc import Iterator
from dataclasses import dataclass, field

from invograph.analyzers.tsql.base import (
    CALL_STOPWORDS,
    NOT_CALLED_PATTERN,
    QUALIFIED_NAME_PATTERN,
    SCHEMA_QUALIFIED_NAME_PATTERN,
    InvocationEdge,
    SqlObject,
    SqlObjectKind,
    is_keyword,
)
from invograph.analyzers.tsql.filters import is_self
from invograph.analyzers.tsql.names import canonicalize
from invograph.analyzers.tsql.spans import Span, in_spans

# =============================================================================
# Patterns
# =============================================================================

_EXEC_RE = re.compile(
    rf"\bEXEC(?:UTE)?\s+(?:@[\w$#@]+\s*=\s*)?"
    rf"(?P<name>{QUALIFIED_NAME_PATTERN}){NOT_CALLED_PATTERN}",
    re.IGNORECASE,
)
_TABLE_VALUED_FUNCTION_RE = re.compile(
    rf"\bFROM\s+(?P<name>{QUALIFIED_NAME_PATTERN})\s*\(",
    re.IGNORECASE,
)
_SCALAR_FUNCTION_RE = re.compile(
    rf"(?<![\w$#@\[\]\.\"])(?P<name>{QUALIFIED_NAME_PATTERN})\s*\(",
)
# Keywords whose following name is a table position, never a scalar call.
_TABLE_POSITION_TAIL_RE = re.compile(r"\b(?:FROM|REFERENCES)\s*$", re.IGNORECASE)
_TABLE_POSITION_WINDOW = 64

_QUERY_SOURCE_RE = re.compile(
    rf"\b(?:FROM|JOIN)\s+(?P<name>{QUALIFIED_NAME_PATTERN}){NOT_CALLED_PATTERN}",
    re.IGNORECASE,
)
_INSERT_TARGET_RE = re.compile(
    rf"\bINSERT\s+(?:INTO\s+)?(?P<name>{QUALIFIED_NAME_PATTERN})",
    re.IGNORECASE,
)
_UPDATE_TARGET_RE = re.compile(
    rf"\bUPDATE\s+(?P<name>{SCHEMA_QUALIFIED_NAME_PATTERN})",
    re.IGNORECASE,
)
_DELETE_TARGET_RE = re.compile(
    rf"\bDELETE\s+FROM\s+(?P<name>{QUALIFIED_NAME_PATTERN})",
    re.IGNORECASE,
)
_MERGE_TARGET_RE = re.compile(
    rf"\bMERGE\s+(?:TOP\s*\([^)]*\)\s*(?:PERCENT\s+)?)?(?:INTO\s+)?"
    rf"(?P<name>{QUALIFIED_NAME_PATTERN})",
    re.IGNORECASE,
)
_USING_RE = re.compile(r"\bUSING\b", re.IGNORECASE)
_USING_SOURCE_RE = re.compile(
    rf"USING\s+(?P<name>{QUALIFIED_NAME_PATTERN}){NOT_CALLED_PATTERN}",
    re.IGNORECASE,
)

# Trigger pseudo-tables read inside trigger bodies.
TRIGGER_PSEUDO_TABLES: frozenset[str] = frozenset({"inserted", "deleted"})


# =============================================================================
# Context
# =============================================================================


@dataclass(frozen=True)
class ExtractionContext:
    """Per-call working state threaded through every extractor."""

    clean: str
    definition: SqlObject
    noise: frozenset[str] = frozenset()
    using_spans: tuple[Span, ...] = ()
    tvf_keys: set[str] = field(default_factory=set)

    def candidate(self, name: str, kind: SqlObjectKind) -> InvocationEdge | None:
        """Build an edge to `name` unless it is the definition itself or noise."""
        key = canonicalize(name)
        if not key or key in self.noise or is_self(self.definition, name):
            return None
        if "." not in key and is_keyword(name.strip()):
            return None
        return InvocationEdge(caller=self.definition, callee=SqlObject(name, kind))

    def table_candidate(self, name: str) -> InvocationEdge | None:
        """Build a Table edge, also rejecting known TVFs and trigger pseudo-tables."""
        key = canonicalize(name)
        if key in self.tvf_keys or key in TRIGGER_PSEUDO_TABLES:
            return None
        return self.candidate(name, SqlObjectKind.TABLE)


def _emit(edge: InvocationEdge | None) -> Iterator[InvocationEdge]:
    if edge is not None:
        yield edge


# =============================================================================
# Invocations
# =============================================================================


def extract_procedure_calls(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`EXEC name` / `EXECUTE name` not followed by `(`."""
    for match in _EXEC_RE.finditer(ctx.clean):
        yield from _emit(ctx.candidate(match.group("name"), SqlObjectKind.STORED_PROCEDURE))


def extract_table_valued_functions(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`FROM name(`; every accepted name is recorded in `ctx.tvf_keys`."""
    for match in _TABLE_VALUED_FUNCTION_RE.finditer(ctx.clean):
        name = match.group("name")
        edge = ctx.candidate(name, SqlObjectKind.USER_FUNCTION)
        if edge is None:
            continue
        ctx.tvf_keys.add(canonicalize(name))
        yield edge


def _in_table_position(clean: str, start: int) -> bool:
    window = clean[max(0, start - _TABLE_POSITION_WINDOW) : start]
    return _TABLE_POSITION_TAIL_RE.search(window) is not None


def extract_scalar_functions(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`name(` outside table positions, minus keywords, built-in syntax forms and TVFs."""
    for match in _SCALAR_FUNCTION_RE.finditer(ctx.clean):
        name = match.group("name")
        key = canonicalize(name)
        if "." not in key and name.strip().lower() in CALL_STOPWORDS:
            continue
        if key in ctx.tvf_keys or _in_table_position(ctx.clean, match.start()):
            continue
        yield from _emit(ctx.candidate(name, SqlObjectKind.USER_FUNCTION))


# =============================================================================
# Table References
# =============================================================================


def extract_query_sources(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`FROM name` / `JOIN name`, skipping MERGE `USING (...)` spans."""
    for match in _QUERY_SOURCE_RE.finditer(ctx.clean):
        if in_spans(match.start(), ctx.using_spans):
            continue
        yield from _emit(ctx.table_candidate(match.group("name")))


def extract_insert_targets(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`INSERT [INTO] name`."""
    for match in _INSERT_TARGET_RE.finditer(ctx.clean):
        yield from _emit(ctx.table_candidate(match.group("name")))


def extract_update_targets(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`UPDATE schema.name`; a bare `UPDATE alias` is left to FROM/JOIN."""
    for match in _UPDATE_TARGET_RE.finditer(ctx.clean):
        yield from _emit(ctx.table_candidate(match.group("name")))


def extract_delete_targets(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`DELETE FROM name`."""
    for match in _DELETE_TARGET_RE.finditer(ctx.clean):
        yield from _emit(ctx.table_candidate(match.group("name")))


def extract_merge_targets(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """`MERGE [INTO] name`."""
    for match in _MERGE_TARGET_RE.finditer(ctx.clean):
        yield from _emit(ctx.table_candidate(match.group("name")))


def extract_merge_sources(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """Direct `MERGE ... USING name` sources."""
    for merge in _MERGE_TARGET_RE.finditer(ctx.clean):
        using = _USING_RE.search(ctx.clean, merge.end())
        if not using:
            continue
        source = _USING_SOURCE_RE.match(ctx.clean, using.start())
        if source:
            yield from _emit(ctx.table_candidate(source.group("name")))


def extract_merge_subquery_sources(ctx: ExtractionContext) -> Iterator[InvocationEdge]:
    """Every FROM/JOIN table inside a MERGE `USING (...)` subquery."""
    for start, end in ctx.using_spans:
        subquery = ctx.clean[start:end]
        for match in _QUERY_SOURCE_RE.finditer(subquery):
            yield from _emit(ctx.table_candidate(match.group("name")))


# TVF extraction comes first so the later extractors see a complete tvf_keys.
EXTRACTORS = (
    extract_procedure_calls,
    extract_table_valued_functions,
    extract_scalar_functions,
    extract_query_sources,
    extract_insert_targets,
    extract_update_targets,
    extract_delete_targets,
    extract_merge_targets,
    extract_merge_sources,
    extract_merge_subquery_sources,
)
