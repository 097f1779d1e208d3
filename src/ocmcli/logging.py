"""Logging configuration using loguru.

The package keeps its logger disabled until the CLI entry point calls
``setup_logging``. Debug output goes to stderr so it never mixes with JSON
printed on stdout.
"""

import sys

from loguru import logger


def _format(record: dict) -> str:
    """Human-readable format, short enough for a terminal."""
    return (
        "<green>{time:HH:mm:ss.SSS}</green> | "
        "<level>{level: <7}</level> | "
        "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>\n"
        "{exception}"
    )


def _to_stderr(message) -> None:
    """Write to whatever sys.stderr is when the message is emitted."""
    sys.stderr.write(message)


def setup_logging(debug: bool = False) -> None:
    """Configure loguru for the CLI.

    Args:
        debug: If True, emit debug messages, otherwise only warnings and errors
    """
    logger.remove()
    logger.add(
        _to_stderr,
        format=_format,
        level="DEBUG" if debug else "WARNING",
    )
    logger.enable("ocmcli")


__all__ = ["logger", "setup_logging"]
