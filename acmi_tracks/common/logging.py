"""Centralized logging configuration for acmi_tracks.

Loguru is the logging facade for the whole package. Modules simply do
``from loguru import logger``; applications call :func:`configure_logging`
once at startup to pick the verbosity.

Usage (in scripts):
    >>> from acmi_tracks.common.logging import configure_logging
    >>> from loguru import logger
    >>> configure_logging(verbose=True)
    >>> logger.info("Loading recording")

Usage (in modules):
    >>> from loguru import logger
    >>> logger.warning("Skipping record {}", line_number)
"""

from __future__ import annotations

import sys

from loguru import logger


def configure_logging(verbose: bool = False) -> int:
    """Configure the global loguru logger.

    # <https://loguru.readthedocs.io/en/stable/>

    Removes previously installed handlers, so calling it again simply replaces
    the sink.

    Args:
        verbose: If True, enable DEBUG level; if False, use INFO level.

    Returns:
        int: Identifier of the installed stderr sink.
    """
    logger.remove()  # Remove default handler

    log_format = (
        "<level>{level: <7}</level>| "
        "<dim><cyan>{file}:{line}</cyan></dim> | "
        "<level>{message}</level>"
    )

    return logger.add(
        sys.stderr,
        format=log_format,
        level="DEBUG" if verbose else "INFO",
        colorize=True,
        backtrace=verbose,
        diagnose=verbose,
    )


def get_logger(name: str):
    """Get a logger bound to a module name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Parsed {} records", 42)
    """
    return logger.bind(module=name)
