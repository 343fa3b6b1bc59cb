"""invograph - invocation graphs for T-SQL script trees."""

# Keep in sync with pyproject.toml [project] version.
__version__ = "0.1.0"

from invograph.analyzers.tsql import ParsedResult, SqlObjectKind, parse_sql  # noqa: E402

__all__ = ["ParsedResult", "SqlObjectKind", "__version__", "parse_sql"]
