"""Analyzers for SQL script trees."""

from invograph.analyzers.graph import build_graph, graph_metadata
from invograph.analyzers.scan import (
    PARALLEL_THRESHOLD,
    SKIP_DIRS,
    FileParse,
    ScanResult,
    find_sql_files,
    parse_file,
    read_sql_file,
    resolve_workers,
    scan_directory,
)
from invograph.analyzers.tsql import parse_sql

__all__ = [
    "PARALLEL_THRESHOLD",
    "SKIP_DIRS",
    "FileParse",
    "ScanResult",
    "build_graph",
    "find_sql_files",
    "graph_metadata",
    "parse_file",
    "parse_sql",
    "read_sql_file",
    "resolve_workers",
    "scan_directory",
]
