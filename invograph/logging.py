"""Logging configuration for invograph.

Logs go to stderr so that stdout stays free for JSON output from the CLI.
Directory scans show tqdm progress bars when stderr is a terminal.
"""

import logging
import os
import sys
import time
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from typing import Any, TypeVar

from tqdm import tqdm

LOG_LEVEL_ENV = "INVOGRAPH_LOG_LEVEL"
DISABLE_PROGRESS_ENV = "INVOGRAPH_DISABLE_PROGRESS"

T = TypeVar("T")

_BAR_FORMAT = "{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]"

logger = logging.getLogger("invograph")
logger.setLevel(logging.INFO)

# Only add handler if not already configured
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "[invograph] %(asctime)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logger.addHandler(handler)


def configure_logging(level: str | None = None) -> int:
    """Apply a log level from the argument or INVOGRAPH_LOG_LEVEL.

    Unknown level names fall back to INFO with a warning.

    Returns:
        The numeric level now in effect.
    """
    name = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        logger.warning("Unknown log level %r, using INFO", name)
        numeric = logging.INFO
    logger.setLevel(numeric)
    return numeric


def progress_disabled() -> bool:
    """True when INVOGRAPH_DISABLE_PROGRESS is set or stderr is not a TTY."""
    return (
        os.getenv(DISABLE_PROGRESS_ENV, "").lower() in ("1", "true", "yes")
        or not sys.stderr.isatty()
    )


class TimingContext:
    """Elapsed time captured by `log_operation`."""

    def __init__(self) -> None:
        self.elapsed: float = 0.0
        self.elapsed_ms: float = 0.0
        self._start: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        self.elapsed = time.perf_counter() - self._start
        self.elapsed_ms = self.elapsed * 1000


@contextmanager
def log_operation(
    operation: str,
    details: dict[str, Any] | None = None,
) -> Generator[TimingContext, None, None]:
    """Log the start and end of an operation with its duration.

    Args:
        operation: Name of the operation.
        details: Optional key/value pairs appended to the start message.

    Yields:
        TimingContext with elapsed time populated after the block exits.

    Example:
        with log_operation("scan", {"directory": "db/"}) as timing:
            result = scan_directory("db/")
    """
    details_str = ""
    if details:
        details_str = " " + " ".join(f"{k}={v}" for k, v in details.items())

    logger.info("Starting %s%s", operation, details_str)

    ctx = TimingContext()
    ctx.start()
    try:
        yield ctx
    except Exception as e:
        ctx.stop()
        logger.error("%s failed after %.2fs: %s", operation, ctx.elapsed, e)
        raise
    else:
        ctx.stop()
        logger.info("Completed %s in %.2fs", operation, ctx.elapsed)


# =============================================================================
# Progress Bars
# =============================================================================


def progress_bar(
    iterable: Iterable[T],
    desc: str | None = None,
    total: int | None = None,
    unit: str = "it",
    disable: bool = False,
) -> Iterable[T]:
    """Wrap an iterable with a tqdm progress bar on stderr.

    Returns the iterable unchanged when progress output is disabled.

    Example:
        for path in progress_bar(files, desc="Parsing", unit="files"):
            parse_file(path)
    """
    if disable or progress_disabled():
        return iterable

    return tqdm(
        iterable,
        desc=f"  {desc}" if desc else None,
        total=total,
        unit=unit,
        file=sys.stderr,
        ncols=80,
        leave=False,
        bar_format=_BAR_FORMAT,
    )


class ProgressBar:
    """Context manager for manual progress updates.

    Used where work completes out of order, e.g. as futures finish.

    Example:
        with ProgressBar(total=len(futures), desc="Parsing") as pbar:
            for future in as_completed(futures):
                pbar.update()
    """

    def __init__(
        self,
        total: int,
        desc: str | None = None,
        unit: str = "it",
        disable: bool = False,
    ):
        self.total = total
        self.desc = desc
        self.unit = unit
        self.disable = disable
        self._pbar: Any = None
        self._current = 0

    def __enter__(self) -> "ProgressBar":
        if not self.disable and not progress_disabled():
            self._pbar = tqdm(
                total=self.total,
                desc=f"  {self.desc}" if self.desc else None,
                unit=self.unit,
                file=sys.stderr,
                ncols=80,
                leave=False,
                bar_format=_BAR_FORMAT,
            )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        if self._pbar is not None:
            self._pbar.close()
        logger.debug(
            "%s: completed %d/%d %s",
            self.desc or "Progress",
            self._current,
            self.total,
            self.unit,
        )

    def update(self, n: int = 1) -> None:
        self._current += n
        if self._pbar is not None:
            self._pbar.update(n)
