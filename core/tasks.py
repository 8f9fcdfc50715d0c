"""
Celery tasks for background processing.

Periodic sweeps of dead access tokens and stale rate limit counters.
Scheduled by the beat schedule in DocumentAccessService.celery.
"""
import asyncio
import logging

from DocumentAccessService.celery import app

from core.domain.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def sweep_access_tokens_task(self):
    """
    Celery task deleting expired and exhausted access tokens.

    Returns:
        Number of tokens removed
    """
    from access.bootstrap import build_access_gate

    gate = build_access_gate()
    try:
        return asyncio.run(gate.token_store.sweep_expired())
    except StorageUnavailableError as exc:
        logger.error("Access token sweep failed: %s", exc.message, exc_info=True)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)


@app.task(bind=True, max_retries=3)
def cleanup_rate_limits_task(self, older_than_seconds=None):
    """
    Celery task deleting rate limit counters past retention.

    Args:
        older_than_seconds: Retention override (defaults to settings)

    Returns:
        Number of records removed
    """
    from access.bootstrap import build_access_gate

    gate = build_access_gate()
    try:
        return asyncio.run(gate.rate_limiter.cleanup(older_than_seconds))
    except StorageUnavailableError as exc:
        logger.error("Rate limit cleanup failed: %s", exc.message, exc_info=True)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
