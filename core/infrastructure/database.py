"""
Database utilities for the Django ORM adapters.
"""

import functools
import logging
from typing import Callable

from django.db import DatabaseError

from core.domain.exceptions import StorageUnavailableError
from core.metrics import storage_errors_total

logger = logging.getLogger(__name__)


def translate_database_errors(component: str) -> Callable:
    """
    Decorator turning Django database errors into StorageUnavailableError.

    Apply it to the synchronous repository body (inside sync_to_async) so
    every adapter reports outages the same way.

    Usage:
        @sync_to_async
        @translate_database_errors("access_tokens")
        def get(self, token_hash):
            ...

    Args:
        component: Component name reported with the error

    Returns:
        Decorator
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except DatabaseError as e:
                storage_errors_total.labels(component=component).inc()
                logger.error(
                    "Storage failure in %s.%s: %s",
                    component,
                    func.__name__,
                    e,
                    exc_info=True,
                )
                raise StorageUnavailableError(
                    f"{component} storage is unavailable", component=component
                ) from e

        return wrapper

    return decorator
