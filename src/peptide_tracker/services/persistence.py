"""Boundary helper that turns repository calls into tagged results."""

import asyncio
import logging
from collections.abc import Callable
from typing import TypeVar

from peptide_tracker.domain.results import PersistenceResult

T = TypeVar("T")

_logger = logging.getLogger(__name__)


async def call_repository(
    func: Callable[[], T], *, action: str
) -> PersistenceResult[T]:
    """Run a blocking repository call off the event loop and wrap the outcome.

    Errors are logged and returned as a failed result; nothing is retried.
    """
    try:
        value = await asyncio.to_thread(func)
    except Exception as exc:
        message = _error_message_from_exception(exc)
        _logger.warning("Persistence %s failed: %s", action, message)
        return PersistenceResult.failure(message)
    return PersistenceResult.success(value)


def _error_message_from_exception(exc: Exception) -> str:
    """Extract a readable message from a database client exception."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__
