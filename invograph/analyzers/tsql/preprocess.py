"""Lexical preprocessing of raw T-SQL scripts.

Each pass runs on the previous pass's output. Nothing removed here is ever
seen by the definition locator, the noise collector or the extractors.
"""

import re

from invograph.analyzers.tsql.base import QUALIFIED_NAME_PATTERN

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"--.*?$", re.MULTILINE)
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'", re.DOTALL)

PARAMETERIZED_TYPES: tuple[str, ...] = (
    "NVARCHAR",
    "VARCHAR",
    "NCHAR",
    "CHAR",
    "VARBINARY",
    "BINARY",
    "DECIMAL",
    "NUMERIC",
    "FLOAT",
    "REAL",
    "TIME",
    "DATETIME2",
    "DATETIMEOFFSET",
)

_TYPE_PARAMETERS_RE = re.compile(
    rf"\b(?P<type>{'|'.join(PARAMETERIZED_TYPES)})\s*\([^)]*\)",
    re.IGNORECASE,
)

_INSERT_COLUMN_LIST_RE = re.compile(
    rf"(?P<head>\bINSERT\s+(?:INTO\s+)?(?!VALUES\b){QUALIFIED_NAME_PATTERN})\s*\([^()]*\)",
    re.IGNORECASE,
)

_MERGE_INSERT_COLUMN_LIST_RE = re.compile(
    r"(?P<head>\bWHEN\s+(?:NOT\s+)?MATCHED(?:\s+BY\s+(?:TARGET|SOURCE))?"
    r"\s+THEN\s+INSERT)\s*\([^()]*\)",
    re.IGNORECASE,
)


def strip_comments_and_strings(sql: str) -> str:
    """Remove block comments, line comments and single-quoted literals.

    Block comments and literals become a single space so the tokens around
    them never fuse (`FROM/**/dbo.T` stays two tokens).
    """
    sql = _BLOCK_COMMENT_RE.sub(" ", sql)
    sql = _LINE_COMMENT_RE.sub("", sql)
    return _STRING_LITERAL_RE.sub(" ", sql)


def strip_type_parameter_lists(sql: str) -> str:
    """Drop `(...)` after parameterized data types: `DECIMAL(10,2)` -> `DECIMAL`."""
    return _TYPE_PARAMETERS_RE.sub(lambda m: m.group("type"), sql)


def strip_insert_column_lists(sql: str) -> str:
    """Drop column lists after `INSERT [INTO] <target>` and MERGE `THEN INSERT`."""
    sql = _INSERT_COLUMN_LIST_RE.sub(lambda m: m.group("head"), sql)
    return _MERGE_INSERT_COLUMN_LIST_RE.sub(lambda m: m.group("head"), sql)


def preprocess(text: str) -> str:
    """Run every lexical pass and return the cleaned buffer."""
    clean = strip_comments_and_strings(text)
    clean = strip_type_parameter_lists(clean)
    return strip_insert_column_lists(clean)
