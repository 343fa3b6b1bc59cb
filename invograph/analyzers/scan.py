"""Directory scanning: read, parse and cache every SQL script under a root.

Scripts are parsed independently. Small trees are parsed in-process; larger
ones are spread over a process pool. Results from unchanged files come from
the MessagePack parse cache.
"""

import codecs
import multiprocessing
import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from invograph.analyzers.cache import (
    CACHE_DIR_NAME,
    PARSE_CACHE_VERSION,
    FileCacheEntry,
    ParseCache,
    compute_file_hash,
    is_file_stale,
    load_parse_cache,
    record_to_result,
    result_to_record,
    save_parse_cache,
)
from invograph.analyzers.tsql import ParsedResult, parse_sql
from invograph.logging import ProgressBar, logger, progress_bar

# Use 'spawn' so workers never inherit lock state from a threaded parent.
_MP_CONTEXT = multiprocessing.get_context("spawn")

WORKERS_ENV = "INVOGRAPH_WORKERS"

SQL_EXTENSIONS: frozenset[str] = frozenset({".sql"})

SKIP_DIRS: frozenset[str] = frozenset({
    # Version control
    ".git",
    ".svn",
    ".hg",
    # Python tooling
    "__pycache__",
    ".pytest_cache",
    ".tox",
    # Virtual environments
    "venv",
    ".venv",
    # Build outputs
    "bin",
    "obj",
    "dist",
    "build",
    # IDE
    ".vs",
    ".vscode",
    ".idea",
    CACHE_DIR_NAME,
})

# Minimum stale files before parsing in parallel
PARALLEL_THRESHOLD = 50


@dataclass(frozen=True)
class FileParse:
    """Outcome of parsing one script."""

    file: str  # Path relative to the scanned root
    result: ParsedResult | None = None
    error: str | None = None


@dataclass
class ScanResult:
    """Everything a directory scan produced."""

    directory: str
    files: list[FileParse] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # No CREATE statement
    cached_count: int = 0
    parsed_count: int = 0

    @property
    def results(self) -> list[ParsedResult]:
        return [fp.result for fp in self.files if fp.result is not None]


# =============================================================================
# Single File
# =============================================================================


def read_sql_file(path: Path) -> str:
    """Read a script, honouring UTF-8 and UTF-16 byte-order marks.

    SSMS and SSDT commonly save scripts as UTF-16. Files without a BOM are
    decoded as UTF-8 with replacement characters for invalid bytes.
    """
    raw = Path(path).read_bytes()
    if raw.startswith(codecs.BOM_UTF8):
        return raw[len(codecs.BOM_UTF8) :].decode("utf-8", errors="replace")
    if raw.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
        return raw.decode("utf-16", errors="replace")
    return raw.decode("utf-8", errors="replace")


def _relative_to(path: Path, base_dir: Path) -> str:
    try:
        return path.relative_to(base_dir).as_posix()
    except ValueError:
        return path.as_posix()


def parse_file(path: Path, base_dir: Path) -> FileParse:
    """Parse one script; I/O failures become an error on the FileParse."""
    path = Path(path)
    rel_path = _relative_to(path, Path(base_dir))
    try:
        text = read_sql_file(path)
    except OSError as e:
        logger.warning("  Could not read %s: %s", rel_path, e)
        return FileParse(file=rel_path, error=str(e))
    return FileParse(file=rel_path, result=parse_sql(text))


def _parse_for_cache(path: Path, base_dir: Path) -> tuple[FileParse, float, int, str]:
    """Worker entry point: parse plus the stat data the cache needs."""
    fp = parse_file(path, base_dir)
    if fp.error is not None:
        return fp, 0.0, 0, ""
    try:
        stat = path.stat()
    except OSError:
        return fp, 0.0, 0, ""
    return fp, stat.st_mtime, stat.st_size, compute_file_hash(path)


# =============================================================================
# Directory
# =============================================================================


def resolve_workers(workers: int | None = None) -> int:
    """Worker count from the argument, INVOGRAPH_WORKERS, or the CPU count."""
    if workers is not None:
        return max(1, workers)

    env_value = os.getenv(WORKERS_ENV, "").strip()
    if env_value:
        try:
            return max(1, int(env_value))
        except ValueError:
            logger.warning("  Ignoring invalid %s=%r", WORKERS_ENV, env_value)
    return multiprocessing.cpu_count()


def find_sql_files(directory: Path, exclude: list[str] | None = None) -> list[Path]:
    """All *.sql files under `directory`, skipping SKIP_DIRS and `exclude` names."""
    skip = SKIP_DIRS | set(exclude or ())
    found = []
    for filepath in directory.rglob("*"):
        if not filepath.is_file() or filepath.suffix.lower() not in SQL_EXTENSIONS:
            continue
        if any(part in skip for part in filepath.relative_to(directory).parts[:-1]):
            continue
        found.append(filepath)
    return sorted(found)


def scan_directory(
    directory: Path,
    use_cache: bool = True,
    exclude: list[str] | None = None,
    workers: int | None = None,
) -> ScanResult:
    """Parse every SQL script under a directory.

    Args:
        directory: Root of the script tree.
        use_cache: Reuse and update `.invograph/parse_cache.msgpack`.
        exclude: Extra directory names to skip, on top of SKIP_DIRS.
        workers: Parallel workers. None = INVOGRAPH_WORKERS or cpu_count.
                 Set to 1 to disable parallel parsing.

    Returns:
        ScanResult with per-file parses in path order.

    Raises:
        ValueError: If `directory` is not a directory.
    """
    directory = Path(directory).resolve()
    if not directory.is_dir():
        raise ValueError(f"Not a directory: {directory}")

    files_to_process = find_sql_files(directory, exclude)
    logger.info("  scan_directory: found %d SQL files", len(files_to_process))

    cache: ParseCache | None = load_parse_cache(directory) if use_cache else None
    if cache is None:
        cache = ParseCache(version=PARSE_CACHE_VERSION, created_at=datetime.now(UTC).isoformat())
    elif cache.files:
        logger.info("  Loaded parse cache with %d entries", len(cache.files))

    scan = ScanResult(directory=str(directory))
    parses: dict[str, FileParse] = {}
    stale_files: list[Path] = []

    for filepath in files_to_process:
        rel_path = _relative_to(filepath, directory)
        if use_cache and not is_file_stale(filepath, rel_path, cache):
            try:
                result = record_to_result(cache.files[rel_path].record)
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("  Discarding bad cache entry for %s: %s", rel_path, e)
                stale_files.append(filepath)
                continue
            parses[rel_path] = FileParse(file=rel_path, result=result)
            scan.cached_count += 1
        else:
            stale_files.append(filepath)

    def record(fp: FileParse, mtime: float, size: int, content_hash: str) -> None:
        parses[fp.file] = fp
        scan.parsed_count += 1
        if use_cache and fp.error is None and mtime > 0:
            cache.files[fp.file] = FileCacheEntry(
                mtime=mtime,
                size=size,
                record=result_to_record(fp.result),
                content_hash=content_hash,
            )

    stale_count = len(stale_files)
    effective_workers = resolve_workers(workers)
    if stale_count == 0:
        logger.info("  All %d files cached, no parsing needed", scan.cached_count)
    elif effective_workers > 1 and stale_count >= PARALLEL_THRESHOLD:
        logger.info(
            "  Parsing %d stale files in parallel (%d workers)",
            stale_count,
            effective_workers,
        )
        with ProcessPoolExecutor(max_workers=effective_workers, mp_context=_MP_CONTEXT) as executor:
            future_to_path = {
                executor.submit(_parse_for_cache, fp, directory): fp for fp in stale_files
            }
            with ProgressBar(total=stale_count, desc="Parsing scripts", unit="files") as pbar:
                for future in as_completed(future_to_path):
                    pbar.update()
                    filepath = future_to_path[future]
                    try:
                        record(*future.result())
                    except Exception as e:
                        rel_path = _relative_to(filepath, directory)
                        parses[rel_path] = FileParse(file=rel_path, error=str(e))
    else:
        logger.info("  Parsing %d stale files sequentially", stale_count)
        for filepath in progress_bar(stale_files, desc="Parsing scripts", unit="files"):
            record(*_parse_for_cache(filepath, directory))

    for rel_path in sorted(parses):
        fp = parses[rel_path]
        scan.files.append(fp)
        if fp.error is not None:
            scan.errors.append({"file": fp.file, "error": fp.error})
        elif fp.result is None:
            scan.skipped.append(fp.file)

    if use_cache:
        current = {_relative_to(fp, directory) for fp in files_to_process}
        deleted = set(cache.files) - current
        for rel_path in deleted:
            del cache.files[rel_path]
        if deleted:
            logger.info("  Removed %d deleted files from cache", len(deleted))
        cache.created_at = datetime.now(UTC).isoformat()
        save_parse_cache(directory, cache)

    logger.info(
        "  scan_directory: %d cached, %d parsed, %d without definition, %d errors",
        scan.cached_count,
        scan.parsed_count,
        len(scan.skipped),
        len(scan.errors),
    )
    return scan
