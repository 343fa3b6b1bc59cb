"""Single-script T-SQL invocation parser.

Pipeline: preprocess -> locate definition -> collect noise names and MERGE
`USING (...)` spans -> run every extractor over the same cleaned buffer ->
deduplicate. Each call builds its own working state, so parses of different
scripts are independent and safe to run in parallel.
"""

from invograph.analyzers.tsql.base import InvocationEdge, ParsedResult
from invograph.analyzers.tsql.definition import locate_definition
from invograph.analyzers.tsql.extractors import EXTRACTORS, ExtractionContext
from invograph.analyzers.tsql.filters import deduplicate
from invograph.analyzers.tsql.noise import collect_noise_names
from invograph.analyzers.tsql.preprocess import preprocess
from invograph.analyzers.tsql.spans import find_using_spans
from invograph.logging import logger


def parse_sql(text: str) -> ParsedResult | None:
    """Extract the script's definition and its outgoing references.

    Args:
        text: Full text of one SQL script.

    Returns:
        ParsedResult, or None when the script has no recognized CREATE
        statement (a normal outcome, e.g. an ALTER script).

    Raises:
        TypeError: If `text` is None or not a string.
    """
    if text is None:
        raise TypeError("text must not be None")
    if not isinstance(text, str):
        raise TypeError(f"text must be str, not {type(text).__name__}")

    clean = preprocess(text)

    definition = locate_definition(clean)
    if definition is None:
        logger.debug("No CREATE statement found")
        return None

    ctx = ExtractionContext(
        clean=clean,
        definition=definition,
        noise=collect_noise_names(clean),
        using_spans=find_using_spans(clean),
    )

    candidates: list[InvocationEdge] = []
    for extractor in EXTRACTORS:
        candidates.extend(extractor(ctx))

    edges = deduplicate(candidates)
    logger.debug(
        "Parsed %s %s: %d candidates, %d edges",
        definition.kind.value,
        definition.name,
        len(candidates),
        len(edges),
    )
    return ParsedResult(definition=definition, edges=edges)
