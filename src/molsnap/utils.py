"""
Utility functions and classes for molsnap.

This module provides common utilities for:
- Timing
- Ordered collection helpers used by the index builders
- File operations
- Logging configuration
"""

from __future__ import annotations

import logging
import sys
import time
from collections.abc import Callable, Hashable, Iterable, Iterator
from pathlib import Path
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


# =============================================================================
# Timing Utilities
# =============================================================================


class Timer:
    """Context manager for timing code blocks with optional logging.

    Examples
    --------
    >>> with Timer("surroundings"):
    ...     run_query()
    [Timer] surroundings: 0.012s

    >>> with Timer("silent operation", log=False) as t:
    ...     do_work()
    >>> print(f"Elapsed: {t.elapsed:.2f}s")
    """

    def __init__(
        self,
        name: str = "Timer",
        log: bool = True,
        log_level: int = logging.INFO,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize the timer.

        Parameters
        ----------
        name : str
            Name to display in log messages.
        log : bool
            Whether to log timing information.
        log_level : int
            Logging level to use.
        logger : logging.Logger, optional
            Logger to use. If None, uses module logger.
        """
        self.name = name
        self.log = log
        self.log_level = log_level
        self._logger = logger or globals()["logger"]
        self._start_time: float | None = None
        self._end_time: float | None = None
        self._elapsed: float = 0.0

    @property
    def elapsed(self) -> float:
        """Return elapsed time in seconds."""
        if self._start_time is None:
            return self._elapsed
        if self._end_time is None:
            return time.perf_counter() - self._start_time
        return self._elapsed

    def start(self) -> Timer:
        """Start the timer."""
        self._start_time = time.perf_counter()
        self._end_time = None
        return self

    def stop(self) -> float:
        """Stop the timer and return elapsed time."""
        if self._start_time is None:
            raise RuntimeError("Timer was not started")
        self._end_time = time.perf_counter()
        self._elapsed = self._end_time - self._start_time
        return self._elapsed

    def __enter__(self) -> Timer:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()
        if self.log:
            self._logger.log(
                self.log_level,
                "[Timer] %s: %.3fs",
                self.name,
                self._elapsed,
            )

    def __repr__(self) -> str:
        return f"Timer(name={self.name!r}, elapsed={self.elapsed:.3f}s)"


# =============================================================================
# Collection Utilities
# =============================================================================


def get_or_insert(mapping: dict[K, V], key: K, default_factory: Callable[[], V]) -> V:
    """Return the value stored under `key`, inserting a fresh default first if absent.

    Parameters
    ----------
    mapping : dict
        Plain dictionary to read from and insert into.
    key : hashable
        Key to look up.
    default_factory : Callable
        Called with no arguments to create the default value.

    Returns
    -------
    V
        The existing or newly inserted value.

    Examples
    --------
    >>> index = {}
    >>> get_or_insert(index, "A", list).append("ASM-1")
    >>> index
    {'A': ['ASM-1']}
    """
    if key in mapping:
        return mapping[key]
    value = default_factory()
    mapping[key] = value
    return value


def unique_ordered(iterable: Iterable[T]) -> Iterator[T]:
    """Remove duplicates from an iterable while preserving order.

    Parameters
    ----------
    iterable : Iterable[T]
        Input iterable.

    Yields
    ------
    T
        Unique items in order of first appearance.

    Examples
    --------
    >>> list(unique_ordered(["ASM-1", "ASM-2", "ASM-1"]))
    ['ASM-1', 'ASM-2']
    """
    seen: set[T] = set()
    for item in iterable:
        if item not in seen:
            seen.add(item)
            yield item


# =============================================================================
# File Utilities
# =============================================================================


def ensure_dir(path: str | Path, mode: int = 0o755) -> Path:
    """Ensure a directory exists, creating it if necessary.

    Parameters
    ----------
    path : str or Path
        Directory path to create.
    mode : int
        Directory permissions (default: 0o755).

    Returns
    -------
    Path
        The directory path.
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True, mode=mode)
    return path


# =============================================================================
# Logging
# =============================================================================


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    log_file: str | Path | None = None,
    log_file_level: int | str | None = None,
    name: str | None = None,
    propagate: bool = True,
) -> logging.Logger:
    """Configure logging with console and optional file output.

    Console output goes to stderr so that JSON written to stdout by the
    command line interface stays parseable.

    Parameters
    ----------
    level : int or str
        Logging level for console output.
    format_string : str, optional
        Custom format string. If None, uses a default format.
    log_file : str or Path, optional
        Path to log file for file output.
    log_file_level : int or str, optional
        Logging level for file output. Defaults to same as console.
    name : str, optional
        Logger name. If None, configures the root logger.
    propagate : bool
        Whether to propagate messages to parent loggers.

    Returns
    -------
    logging.Logger
        Configured logger instance.

    Examples
    --------
    >>> logger = setup_logging(level=logging.DEBUG)

    >>> logger = setup_logging(
    ...     level=logging.INFO,
    ...     log_file="molsnap.log",
    ...     log_file_level=logging.DEBUG,
    ... )
    """
    # Convert string level to int if needed
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    if isinstance(log_file_level, str):
        log_file_level = getattr(logging, log_file_level.upper())
    elif log_file_level is None:
        log_file_level = level

    if format_string is None:
        format_string = (
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    log = logging.getLogger(name)
    log.setLevel(min(level, log_file_level) if log_file else level)
    log.propagate = propagate

    # Remove existing handlers to avoid duplicates
    log.handlers.clear()

    formatter = logging.Formatter(format_string, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    log.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        ensure_dir(log_file.parent)

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(log_file_level)
        file_handler.setFormatter(formatter)
        log.addHandler(file_handler)

    return log


__all__ = [
    "Timer",
    "get_or_insert",
    "unique_ordered",
    "ensure_dir",
    "setup_logging",
]
