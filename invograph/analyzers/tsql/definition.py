"""Locate the single object a script creates."""

import re

from invograph.analyzers.tsql.base import QUALIFIED_NAME_PATTERN, SqlObject, SqlObjectKind

_CREATE_RE = re.compile(
    rf"\bCREATE\s+(?P<keyword>PROCEDURE|TABLE|VIEW|FUNCTION|TRIGGER)\s+"
    rf"(?P<name>{QUALIFIED_NAME_PATTERN})",
    re.IGNORECASE,
)


def locate_definition(clean: str) -> SqlObject | None:
    """Return the object created by the first CREATE statement, if any.

    Args:
        clean: Preprocessed script text.

    Returns:
        SqlObject with the raw name and mapped kind, or None when the script
        has no recognized CREATE statement.
    """
    match = _CREATE_RE.search(clean)
    if not match:
        return None
    return SqlObject(
        name=match.group("name"),
        kind=SqlObjectKind.from_keyword(match.group("keyword")),
    )
