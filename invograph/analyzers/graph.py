"""Assemble per-script parses into one invocation graph."""

from collections.abc import Iterable
from typing import Any

import networkx as nx

from invograph.analyzers.scan import FileParse
from invograph.logging import logger


def build_graph(files: Iterable[FileParse]) -> nx.DiGraph:
    """Build a directed graph of definitions and the objects they reference.

    Nodes are keyed by canonical name and carry `name` (display spelling),
    `type` (object kind), `file` and `defined`. A definition's spelling and
    kind replace whatever a reference site recorded first. Edges carry the
    callee kind as `type`; one edge per caller/callee pair.

    Args:
        files: Per-script parses, usually `ScanResult.files`.

    Returns:
        NetworkX directed graph.
    """
    G = nx.DiGraph()
    parsed = [fp for fp in files if fp.result is not None]

    for fp in parsed:
        definition = fp.result.definition
        key = definition.canonical_name
        existing = G.nodes.get(key)
        if existing and existing.get("defined"):
            logger.warning(
                "  %s is defined in both %s and %s; keeping the first",
                definition.name,
                existing["file"],
                fp.file,
            )
            continue
        G.add_node(
            key,
            name=definition.name,
            type=definition.kind.value,
            file=fp.file,
            defined=True,
        )

    for fp in parsed:
        caller = fp.result.definition.canonical_name
        for edge in fp.result.edges:
            callee = edge.callee.canonical_name
            if callee not in G:
                G.add_node(
                    callee,
                    name=edge.callee.name,
                    type=edge.callee.kind.value,
                    file=None,
                    defined=False,
                )
            if not G.has_edge(caller, callee):
                G.add_edge(caller, callee, type=edge.callee.kind.value)

    return G


def graph_metadata(G: nx.DiGraph) -> dict[str, Any]:
    """Summary counts for an invocation graph.

    Returns:
        Dict with node/edge counts, defined/external node counts and
        per-type breakdowns.
    """
    node_types: dict[str, int] = {}
    edge_types: dict[str, int] = {}
    defined = 0

    for _, attrs in G.nodes(data=True):
        node_type = attrs.get("type", "unknown")
        node_types[node_type] = node_types.get(node_type, 0) + 1
        if attrs.get("defined"):
            defined += 1

    for _, _, attrs in G.edges(data=True):
        edge_type = attrs.get("type", "unknown")
        edge_types[edge_type] = edge_types.get(edge_type, 0) + 1

    return {
        "node_count": G.number_of_nodes(),
        "edge_count": G.number_of_edges(),
        "defined_count": defined,
        "external_count": G.number_of_nodes() - defined,
        "node_types": node_types,
        "edge_types": edge_types,
    }
