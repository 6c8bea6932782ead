"""Exceptions raised by the calendar conversion engine."""

from __future__ import annotations

import json
import logging

LOGGER = logging.getLogger("almanac")


class CalendarFieldError(ValueError):
    """Raised when a date is built from fields outside its calendar's bounds."""


class ConversionError(RuntimeError):
    """Raised when a bounded conversion search fails to settle."""


class UnsupportedCalendarError(TypeError):
    """Raised when a value or kind has no registered converter."""


def conversion_failure(event: str, message: str, **fields: object) -> ConversionError:
    """Log a structured error event and return the exception to raise."""

    LOGGER.error(json.dumps({"event": event, "error": message, **fields}))
    return ConversionError(message)
