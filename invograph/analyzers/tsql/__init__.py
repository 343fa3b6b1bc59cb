"""Grammar-free T-SQL reference extraction.

Finds the one object a script creates and the stored procedures, functions
and tables it invokes or touches.
"""

from invograph.analyzers.tsql.base import (
    InvocationEdge,
    ParsedResult,
    SqlObject,
    SqlObjectKind,
)
from invograph.analyzers.tsql.definition import locate_definition
from invograph.analyzers.tsql.extractors import (
    EXTRACTORS,
    ExtractionContext,
    extract_delete_targets,
    extract_insert_targets,
    extract_merge_sources,
    extract_merge_subquery_sources,
    extract_merge_targets,
    extract_procedure_calls,
    extract_query_sources,
    extract_scalar_functions,
    extract_table_valued_functions,
    extract_update_targets,
)
from invograph.analyzers.tsql.filters import deduplicate, is_self
from invograph.analyzers.tsql.names import canonicalize, same_object
from invograph.analyzers.tsql.noise import (
    collect_correlation_aliases,
    collect_cte_names,
    collect_derived_table_aliases,
    collect_noise_names,
    collect_projection_qualifiers,
)
from invograph.analyzers.tsql.parser import parse_sql
from invograph.analyzers.tsql.preprocess import (
    preprocess,
    strip_comments_and_strings,
    strip_insert_column_lists,
    strip_type_parameter_lists,
)
from invograph.analyzers.tsql.spans import find_matching_paren, find_using_spans, in_spans

__all__ = [
    "EXTRACTORS",
    "ExtractionContext",
    "InvocationEdge",
    "ParsedResult",
    "SqlObject",
    "SqlObjectKind",
    "canonicalize",
    "collect_correlation_aliases",
    "collect_cte_names",
    "collect_derived_table_aliases",
    "collect_noise_names",
    "collect_projection_qualifiers",
    "deduplicate",
    "extract_delete_targets",
    "extract_insert_targets",
    "extract_merge_sources",
    "extract_merge_subquery_sources",
    "extract_merge_targets",
    "extract_procedure_calls",
    "extract_query_sources",
    "extract_scalar_functions",
    "extract_table_valued_functions",
    "extract_update_targets",
    "find_matching_paren",
    "find_using_spans",
    "in_spans",
    "is_self",
    "locate_definition",
    "parse_sql",
    "preprocess",
    "same_object",
    "strip_comments_and_strings",
    "strip_insert_column_lists",
    "strip_type_parameter_lists",
]
