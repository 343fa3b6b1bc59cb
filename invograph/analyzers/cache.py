"""MessagePack parse cache for directory scans.

One entry per script, keyed by path relative to the scanned root. An entry
is reused while the file's mtime and size are unchanged, or, when only the
mtime moved, while its SHA-256 content hash still matches.
"""

import hashlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import msgpack

from invograph.analyzers.tsql.base import (
    InvocationEdge,
    ParsedResult,
    SqlObject,
    SqlObjectKind,
)
from invograph.logging import logger

# Parse cache version - bump when the record layout or extraction rules change
PARSE_CACHE_VERSION = "1.0"

CACHE_DIR_NAME = ".invograph"


@dataclass
class FileCacheEntry:
    """Cache entry for a single parsed script."""

    mtime: float
    size: int
    record: dict[str, Any] | None  # result_to_record() output, None = no definition
    content_hash: str = ""


@dataclass
class ParseCache:
    """Parse results for a directory tree."""

    version: str
    created_at: str  # ISO timestamp
    files: dict[str, FileCacheEntry] = field(default_factory=dict)


def get_parse_cache_path(directory: Path) -> Path:
    return directory / CACHE_DIR_NAME / "parse_cache.msgpack"


def compute_file_hash(filepath: Path) -> str:
    """SHA-256 hex digest of a file, or an empty string if it cannot be read."""
    try:
        with filepath.open("rb") as f:
            return hashlib.sha256(f.read()).hexdigest()
    except OSError:
        return ""


# =============================================================================
# Record Conversion
# =============================================================================


def result_to_record(result: ParsedResult | None) -> dict[str, Any] | None:
    """Flatten a ParsedResult into msgpack-friendly primitives."""
    if result is None:
        return None
    return {
        "definition": {"name": result.definition.name, "kind": result.definition.kind.value},
        "edges": [
            {"name": edge.callee.name, "kind": edge.callee.kind.value}
            for edge in result.edges
        ],
    }


def record_to_result(record: dict[str, Any] | None) -> ParsedResult | None:
    """Rebuild a ParsedResult from `result_to_record` output.

    Raises:
        KeyError, ValueError: If the record is malformed.
    """
    if record is None:
        return None
    definition = SqlObject(
        record["definition"]["name"],
        SqlObjectKind(record["definition"]["kind"]),
    )
    edges = tuple(
        InvocationEdge(
            caller=definition,
            callee=SqlObject(edge["name"], SqlObjectKind(edge["kind"])),
        )
        for edge in record["edges"]
    )
    return ParsedResult(definition=definition, edges=edges)


# =============================================================================
# Load / Save
# =============================================================================


def load_parse_cache(directory: Path) -> ParseCache | None:
    """Load the cache for `directory` if present and of the current version."""
    cache_path = get_parse_cache_path(directory)
    if not cache_path.exists():
        return None

    try:
        with cache_path.open("rb") as f:
            data = msgpack.unpack(f, raw=False)

        if data.get("version") != PARSE_CACHE_VERSION:
            logger.info("  Parse cache version mismatch, ignoring cache")
            return None

        files = {
            path: FileCacheEntry(
                mtime=entry["mtime"],
                size=entry["size"],
                record=entry["record"],
                content_hash=entry.get("content_hash", ""),
            )
            for path, entry in data.get("files", {}).items()
        }
        return ParseCache(version=data["version"], created_at=data["created_at"], files=files)

    except (OSError, msgpack.UnpackException, msgpack.ExtraData, KeyError, TypeError, ValueError) as e:
        logger.warning("  Failed to load parse cache: %s", e)
        return None


def save_parse_cache(directory: Path, cache: ParseCache) -> None:
    """Write the cache; failures are logged and otherwise ignored."""
    cache_path = get_parse_cache_path(directory)
    data = {
        "version": cache.version,
        "created_at": cache.created_at,
        "files": {
            path: {
                "mtime": entry.mtime,
                "size": entry.size,
                "record": entry.record,
                "content_hash": entry.content_hash,
            }
            for path, entry in cache.files.items()
        },
    }

    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        with cache_path.open("wb") as f:
            msgpack.pack(data, f)
        logger.info("  Saved parse cache with %d files", len(cache.files))
    except OSError as e:
        logger.warning("  Failed to save parse cache: %s", e)


def is_file_stale(file_path: Path, cache_key: str, cache: ParseCache) -> bool:
    """Check whether a script must be re-parsed.

    Matching mtime and size means fresh. A size change means stale. Same
    size with a new mtime falls back to the content hash, which covers
    checkouts and copies that touch files without changing them.
    """
    entry = cache.files.get(cache_key)
    if entry is None:
        return True

    try:
        stat = file_path.stat()
    except OSError:
        return True

    if stat.st_mtime == entry.mtime and stat.st_size == entry.size:
        return False
    if stat.st_size != entry.size:
        return True

    if entry.content_hash and compute_file_hash(file_path) == entry.content_hash:
        # Refresh mtime so the next check takes the fast path
        entry.mtime = stat.st_mtime
        return False
    return True
