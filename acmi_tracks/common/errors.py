"""Exceptions and warning helpers for ACMI track processing.

Exception Hierarchy:
    AcmiError (base)
    ├── AcmiParseError (malformed records while ingesting)
    ├── TimelineOrderError (entry appended out of time order)
    ├── RemovedObjectError (update of a removed id under the reject policy)
    ├── NoDataError (query without surrounding data)
    ├── NotSingletonError (singleton access on a repeated or missing attribute)
    └── AttributeTypeError (numeric query on non-numeric text)
"""

from __future__ import annotations

from loguru import logger


class AcmiError(Exception):
    """Base exception for all acmi_tracks errors."""


class AcmiParseError(AcmiError, ValueError):
    """Raised when a logical record cannot be parsed.

    Examples:
        - Frame marker with a non-numeric offset (``#abc``)
        - Object id that is not hexadecimal
        - Field without a ``name=value`` separator
    """

    def __init__(self, message: str, record: str | None = None, line_number: int | None = None):
        self.record = record
        self.line_number = line_number
        location = f" (line {line_number})" if line_number is not None else ""
        super().__init__(f"{message}{location}")


class TimelineOrderError(AcmiError, ValueError):
    """Raised when an entry would break the ascending time order of a timeline."""


class RemovedObjectError(AcmiError):
    """Raised when a removed object id is updated and the policy rejects it."""


class NoDataError(AcmiError, LookupError):
    """Raised when a time query has no data on one side of the requested time."""


class NotSingletonError(AcmiError, LookupError):
    """Raised when an attribute does not occur in exactly one timeline entry."""


class AttributeTypeError(AcmiError, TypeError):
    """Raised when a numeric query meets a value that is not a number."""


def warn_soft_degrade(component: str, issue: str, fallback: str) -> str:
    """Log a warning for a non-fatal condition and return the message.

    Parameters
    ----------
    component : str
        Part of the pipeline reporting the issue
    issue : str
        Description of what went wrong
    fallback : str
        What happens instead

    Returns
    -------
    str
        The formatted warning, suitable for collecting in a report
    """
    message = f"{component}: {issue}. Fallback: {fallback}"
    logger.warning(
        "Component '{}' issue: {}. Fallback: {}",
        component,
        issue,
        fallback,
    )
    return message
