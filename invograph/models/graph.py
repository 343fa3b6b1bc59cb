"""Graph data models for invocation analysis.

Includes Pydantic models for serialization and NetworkX conversion utilities.
"""

from datetime import datetime
from typing import Any, Literal

import networkx as nx
from pydantic import BaseModel, Field

from invograph.analyzers.tsql.base import ParsedResult, SqlObject

ObjectKind = Literal["Table", "View", "StoredProcedure", "Trigger", "UserFunction"]


class SqlObjectModel(BaseModel):
    """A database object as spelled in a script."""

    name: str = Field(description="Raw spelling, quoting and casing preserved")
    kind: ObjectKind = Field(description="Kind of database object")
    canonical_name: str = Field(description="Case-folded name without delimiters")

    @classmethod
    def from_object(cls, obj: SqlObject) -> "SqlObjectModel":
        return cls(name=obj.name, kind=obj.kind.value, canonical_name=obj.canonical_name)


class InvocationEdgeModel(BaseModel):
    """A reference from a script's definition to another object."""

    source: str = Field(alias="from", description="Caller name as spelled")
    target: str = Field(alias="to", description="Callee name as spelled")
    type: ObjectKind = Field(description="Kind of the callee")

    model_config = {"populate_by_name": True}


class ParsedFileModel(BaseModel):
    """Parse result for one script."""

    file: str = Field(description="Script path")
    definition: SqlObjectModel | None = Field(
        default=None, description="Object created by the script, None if no CREATE"
    )
    edges: list[InvocationEdgeModel] = Field(default_factory=list, description="Outgoing edges")

    @classmethod
    def from_result(cls, file: str, result: ParsedResult | None) -> "ParsedFileModel":
        if result is None:
            return cls(file=file)
        return cls(
            file=file,
            definition=SqlObjectModel.from_object(result.definition),
            edges=[
                InvocationEdgeModel(
                    source=edge.caller.name,
                    target=edge.callee.name,
                    type=edge.callee.kind.value,
                )
                for edge in result.edges
            ],
        )


class GraphNode(BaseModel):
    """A database object in the invocation graph."""

    id: str = Field(description="Canonical name")
    name: str = Field(description="Display spelling")
    type: ObjectKind = Field(description="Kind of database object")
    file: str | None = Field(default=None, description="Defining script, None if external")
    defined: bool = Field(default=False, description="Whether a scanned script creates it")


class GraphEdge(BaseModel):
    """A reference between two objects."""

    source: str = Field(alias="from", description="Caller node ID")
    target: str = Field(alias="to", description="Callee node ID")
    type: ObjectKind = Field(description="Kind of the callee")

    model_config = {"populate_by_name": True}


class GraphMetadata(BaseModel):
    """Metadata about the generated graph."""

    analyzer: str = Field(default="tsql_regex", description="Analyzer that built the graph")
    version: str = Field(description="invograph version")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=None), description="When the graph was generated"
    )
    file_count: int = Field(default=0, description="Number of scripts scanned")
    source_directory: str | None = Field(default=None, description="Root directory scanned")
    node_count: int = Field(default=0, description="Number of nodes")
    edge_count: int = Field(default=0, description="Number of edges")
    defined_count: int = Field(default=0, description="Nodes defined by a scanned script")
    external_count: int = Field(default=0, description="Nodes only referenced, never defined")
    node_types: dict[str, int] = Field(default_factory=dict, description="Node count per object kind")
    edge_types: dict[str, int] = Field(default_factory=dict, description="Edge count per callee kind")


class InvocationGraph(BaseModel):
    """Complete invocation graph with nodes, edges, and metadata."""

    nodes: list[GraphNode] = Field(default_factory=list, description="Graph nodes")
    edges: list[GraphEdge] = Field(default_factory=list, description="Graph edges")
    metadata: GraphMetadata = Field(description="Graph metadata")
    errors: list[dict] = Field(default_factory=list, description="Scripts that failed to load")
    skipped: list[str] = Field(
        default_factory=list, description="Scripts with no CREATE statement"
    )


# =============================================================================
# NetworkX Conversion
# =============================================================================


def digraph_to_json(G: nx.DiGraph) -> dict[str, Any]:
    """Serialize an invocation DiGraph to a JSON-compatible dict.

    Args:
        G: Graph from `build_graph`.

    Returns:
        Dict with nodes, edges, and counts.
    """
    nodes = [
        {
            "id": node_id,
            "name": attrs.get("name", node_id),
            "type": attrs.get("type", "Table"),
            "file": attrs.get("file"),
            "defined": attrs.get("defined", False),
        }
        for node_id, attrs in G.nodes(data=True)
    ]
    edges = [
        {"from": source, "to": target, "type": attrs.get("type", "Table")}
        for source, target, attrs in G.edges(data=True)
    ]
    return {
        "nodes": nodes,
        "edges": edges,
        "metadata": {
            "node_count": G.number_of_nodes(),
            "edge_count": G.number_of_edges(),
        },
    }


def json_to_digraph(data: dict[str, Any]) -> nx.DiGraph:
    """Deserialize `digraph_to_json` output back into a DiGraph."""
    G = nx.DiGraph()

    for node in data.get("nodes", []):
        G.add_node(
            node["id"],
            name=node.get("name", node["id"]),
            type=node.get("type", "Table"),
            file=node.get("file"),
            defined=node.get("defined", False),
        )

    for edge in data.get("edges", []):
        source = edge.get("from", edge.get("source", ""))
        target = edge.get("to", edge.get("target", ""))
        if source and target:
            G.add_edge(source, target, type=edge.get("type", "Table"))

    return G
