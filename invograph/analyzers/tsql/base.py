"""Core value types and shared regex fragments for T-SQL reference extraction.

The engine works on plain text, so identifier shapes and the keyword sets used
to reject structural tokens live here and are shared by every stage.
"""

from dataclasses import dataclass
from enum import Enum

from invograph.analyzers.tsql.names import canonicalize

# =============================================================================
# Identifier Patterns
# =============================================================================

# One path segment: [bracketed], "quoted" or bare.
IDENTIFIER_PATTERN = r'(?:\[[^\]]+\]|"[^"]+"|[A-Za-z_][\w$#@]*)'

# Dotted path of one or more segments, whitespace allowed around dots.
QUALIFIED_NAME_PATTERN = rf"{IDENTIFIER_PATTERN}(?:\s*\.\s*{IDENTIFIER_PATTERN})*"

# Dotted path of two or more segments (schema-qualified).
SCHEMA_QUALIFIED_NAME_PATTERN = rf"{IDENTIFIER_PATTERN}(?:\s*\.\s*{IDENTIFIER_PATTERN})+"

# Guard placed after a name group: the name is complete and not invoked.
NOT_CALLED_PATTERN = r"(?![\w$#@])(?!\s*[.(])"

# =============================================================================
# Keyword Sets
# =============================================================================

# Reserved words that can never be an alias or a callee.
SQL_KEYWORDS: frozenset[str] = frozenset({
    "add", "all", "alter", "and", "any", "apply", "as", "asc", "begin", "between",
    "break", "by", "cascade", "case", "check", "close", "clustered", "collate",
    "column", "commit", "constraint", "contains", "containstable", "continue",
    "create", "cross", "cursor", "declare", "default", "delete", "deny", "desc",
    "distinct", "drop", "else", "end", "except", "exec", "execute", "exists",
    "fetch", "for", "foreign", "freetext", "freetexttable", "from", "full",
    "function", "go", "goto", "grant", "group", "having", "identity", "if", "in",
    "index", "inner", "insert", "intersect", "into", "is", "join", "key", "left",
    "like", "merge", "nonclustered", "not", "null", "of", "on", "open", "option",
    "or", "order", "outer", "output", "over", "partition", "pivot", "primary",
    "print", "procedure", "raiserror", "references", "return", "returns",
    "revoke", "right", "rollback", "select", "set", "table", "tablesample",
    "then", "throw", "top", "tran", "transaction", "trigger", "truncate",
    "union", "unique", "unpivot", "update", "using", "values", "view",
    "waitfor", "when", "where", "while", "with",
})

# Syntax forms and aggregates that look like calls but are never user objects.
CALL_LIKE_BUILTINS: frozenset[str] = frozenset({
    "avg", "cast", "coalesce", "convert", "count", "count_big", "dense_rank",
    "iif", "isnull", "max", "min", "nullif", "rank", "row_number", "sum",
    "try_cast", "try_convert",
})

CALL_STOPWORDS: frozenset[str] = SQL_KEYWORDS | CALL_LIKE_BUILTINS


def is_keyword(token: str) -> bool:
    """Return True if a bare token is a reserved word."""
    return token.lower() in SQL_KEYWORDS


# =============================================================================
# Data Model
# =============================================================================


class SqlObjectKind(str, Enum):
    """Kind of database object at either end of an edge."""

    TABLE = "Table"
    VIEW = "View"
    STORED_PROCEDURE = "StoredProcedure"
    TRIGGER = "Trigger"
    USER_FUNCTION = "UserFunction"

    @classmethod
    def from_keyword(cls, token: str) -> "SqlObjectKind":
        """Map a CREATE keyword to its kind.

        Raises:
            ValueError: If the keyword is outside the closed creation set.
        """
        kind = _CREATE_KEYWORD_KINDS.get(token.strip().upper())
        if kind is None:
            raise ValueError(f"Unknown SQL object type '{token}'")
        return kind


_CREATE_KEYWORD_KINDS: dict[str, SqlObjectKind] = {
    "PROCEDURE": SqlObjectKind.STORED_PROCEDURE,
    "TABLE": SqlObjectKind.TABLE,
    "VIEW": SqlObjectKind.VIEW,
    "FUNCTION": SqlObjectKind.USER_FUNCTION,
    "TRIGGER": SqlObjectKind.TRIGGER,
}


@dataclass(frozen=True)
class SqlObject:
    """A database object as spelled in the script."""

    name: str  # Raw spelling, quoting and casing preserved
    kind: SqlObjectKind

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise ValueError("Name cannot be empty or whitespace")

    @property
    def canonical_name(self) -> str:
        return canonicalize(self.name)


@dataclass(frozen=True)
class InvocationEdge:
    """Directed reference from the script's definition to another object."""

    caller: SqlObject
    callee: SqlObject

    @property
    def key(self) -> tuple[str, SqlObjectKind, str]:
        """Identity used for deduplication."""
        return (self.caller.canonical_name, self.callee.kind, self.callee.canonical_name)


@dataclass(frozen=True)
class ParsedResult:
    """Definition found in one script plus its deduplicated edges."""

    definition: SqlObject
    edges: tuple[InvocationEdge, ...] = ()
