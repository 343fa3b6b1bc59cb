"""Pydantic models for invograph output."""

from invograph.models.graph import (
    GraphEdge,
    GraphMetadata,
    GraphNode,
    InvocationEdgeModel,
    InvocationGraph,
    ParsedFileModel,
    SqlObjectModel,
    digraph_to_json,
    json_to_digraph,
)

__all__ = [
    "GraphEdge",
    "GraphMetadata",
    "GraphNode",
    "InvocationEdgeModel",
    "InvocationGraph",
    "ParsedFileModel",
    "SqlObjectModel",
    "digraph_to_json",
    "json_to_digraph",
]
