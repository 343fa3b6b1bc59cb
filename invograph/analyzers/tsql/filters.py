"""Self-reference suppression and edge deduplication."""

from collections.abc import Iterable

from invograph.analyzers.tsql.base import InvocationEdge, SqlObject
from invograph.analyzers.tsql.names import canonicalize


def is_self(definition: SqlObject, candidate_name: str) -> bool:
    """Return True if a candidate name denotes the script's own definition."""
    return definition.canonical_name == canonicalize(candidate_name)


def deduplicate(edges: Iterable[InvocationEdge]) -> tuple[InvocationEdge, ...]:
    """Keep the first edge for each (caller, callee kind, callee) identity.

    The surviving edge keeps its original spelling, so `[dbo].[Orders]`
    followed by `dbo.orders` reports `[dbo].[Orders]`.
    """
    seen: set[tuple] = set()
    unique: list[InvocationEdge] = []
    for edge in edges:
        if edge.key in seen:
            continue
        seen.add(edge.key)
        unique.append(edge)
    return tuple(unique)
