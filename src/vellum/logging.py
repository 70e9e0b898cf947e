"""Logging for vellum.

A single ``vellum`` logger shared by the build, the CLI and the content
loader. Progress messages go to stdout; warnings and errors go to stderr with
a level prefix so they stand out in build output. While a build runs,
:func:`count_problems` tallies the warnings and errors it logs so the
summary line can report them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

_logger: logging.Logger | None = None

LOGGER_NAME = "vellum"

DEBUG = logging.DEBUG
INFO = logging.INFO
WARNING = logging.WARNING
ERROR = logging.ERROR


class CleanFormatter(logging.Formatter):
    """Formatter that outputs clean messages without log level prefixes."""

    def format(self, record: logging.LogRecord) -> str:
        return record.getMessage()


class PrefixFormatter(logging.Formatter):
    """Formatter that prefixes messages with level name for warnings/errors."""

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            return f"{record.levelname.capitalize()}: {record.getMessage()}"
        return record.getMessage()


class ProblemCounter(logging.Handler):
    """Count the warnings and errors logged while attached to the logger."""

    def __init__(self) -> None:
        super().__init__(logging.WARNING)
        self.warnings = 0
        self.errors = 0

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.ERROR:
            self.errors += 1
        else:
            self.warnings += 1

    @property
    def total(self) -> int:
        return self.warnings + self.errors

    def summary(self) -> str:
        """Describe the counts, e.g. ``"2 warnings, 1 error"``; empty if none."""
        parts = []
        if self.warnings:
            parts.append(f"{self.warnings} warning{'s' if self.warnings != 1 else ''}")
        if self.errors:
            parts.append(f"{self.errors} error{'s' if self.errors != 1 else ''}")
        return ", ".join(parts)


def setup_logging(verbose: bool = False, quiet: bool = False) -> logging.Logger:
    """Configure the vellum logger.

    Args:
        verbose: Show debug messages (per-document progress).
        quiet: Only show warnings and errors. Ignored when verbose is set.

    Returns:
        The configured logger.
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(lambda r: r.levelno < logging.WARNING)
    stdout_handler.setFormatter(CleanFormatter())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(PrefixFormatter())

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    logger.propagate = False

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the vellum logger, configuring defaults on first use."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


@contextmanager
def count_problems() -> Iterator[ProblemCounter]:
    """Attach a :class:`ProblemCounter` to the logger for the enclosed block."""
    logger = get_logger()
    counter = ProblemCounter()
    logger.addHandler(counter)
    try:
        yield counter
    finally:
        logger.removeHandler(counter)


def debug(msg: str) -> None:
    """Log a debug message (shown with --verbose)."""
    get_logger().debug(msg)


def info(msg: str) -> None:
    """Log a progress message."""
    get_logger().info(msg)


def warning(msg: str) -> None:
    """Log a warning to stderr."""
    get_logger().warning(msg)


def error(msg: str) -> None:
    """Log an error to stderr."""
    get_logger().error(msg)
