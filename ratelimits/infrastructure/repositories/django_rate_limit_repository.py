"""
Django implementation of RateLimitRepository port.

Each mutation is a single UPDATE/INSERT/DELETE statement; conditions are
expressed in the WHERE clause so the database arbitrates races.
"""
from datetime import datetime, timedelta
from typing import Mapping, Optional

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import F, Q

from core.domain.value_objects import RateLimitPolicy
from core.infrastructure.database import translate_database_errors
from ratelimits.domain.rate_limit import RateLimitRecord
from ratelimits.infrastructure.models import RateLimitEntry
from ratelimits.ports.rate_limit_repository import RateLimitRepository

COMPONENT = "ratelimits"


def _not_blocked_at(now: datetime) -> Q:
    return Q(blocked_until__isnull=True) | Q(blocked_until__lte=now)


class DjangoRateLimitRepository(RateLimitRepository):
    """
    Django ORM implementation of RateLimitRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Implements repository interface with conditional updates
    """

    def _to_domain(self, model: RateLimitEntry) -> RateLimitRecord:
        """
        Convert Django model to domain entity.

        Args:
            model: Django RateLimitEntry model

        Returns:
            RateLimitRecord domain entity
        """
        return RateLimitRecord(
            identifier=model.identifier,
            action=model.action,
            target_id=model.target_id,
            attempts=model.attempts,
            window_start=model.window_start,
            blocked_until=model.blocked_until,
        )

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def get(self, identifier: str) -> Optional[RateLimitRecord]:
        try:
            model = RateLimitEntry.objects.get(identifier=identifier)  # pylint: disable=no-member
            return self._to_domain(model)
        except RateLimitEntry.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def add(self, record: RateLimitRecord) -> bool:
        try:
            with transaction.atomic():
                RateLimitEntry.objects.create(  # pylint: disable=no-member
                    identifier=record.identifier,
                    action=record.action,
                    target_id=record.target_id,
                    attempts=record.attempts,
                    window_start=record.window_start,
                    blocked_until=record.blocked_until,
                )
            return True
        except IntegrityError:
            # Unique identifier already taken by a concurrent insert
            return False

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def increment_attempts(self, identifier: str) -> bool:
        updated = RateLimitEntry.objects.filter(identifier=identifier).update(  # pylint: disable=no-member
            attempts=F("attempts") + 1
        )
        return updated > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def reserve_attempt(
        self, identifier: str, policy: RateLimitPolicy, now: datetime
    ) -> bool:
        updated = (
            RateLimitEntry.objects.filter(  # pylint: disable=no-member
                identifier=identifier,
                attempts__lt=policy.max_attempts,
                window_start__gt=now - timedelta(seconds=policy.window_seconds),
            )
            .filter(_not_blocked_at(now))
            .update(attempts=F("attempts") + 1)
        )
        return updated > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def release_attempt(self, identifier: str) -> bool:
        updated = RateLimitEntry.objects.filter(  # pylint: disable=no-member
            identifier=identifier, attempts__gt=0
        ).update(attempts=F("attempts") - 1)
        return updated > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def reset_window_if(
        self, identifier: str, expected_window_start: datetime, now: datetime
    ) -> bool:
        updated = (
            RateLimitEntry.objects.filter(  # pylint: disable=no-member
                identifier=identifier, window_start=expected_window_start
            )
            .filter(_not_blocked_at(now))
            .update(attempts=1, window_start=now, blocked_until=None)
        )
        return updated > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def block_if_unblocked(
        self, identifier: str, blocked_until: datetime, now: datetime
    ) -> bool:
        updated = (
            RateLimitEntry.objects.filter(identifier=identifier)  # pylint: disable=no-member
            .filter(_not_blocked_at(now))
            .update(blocked_until=blocked_until)
        )
        return updated > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def delete(self, identifier: str) -> bool:
        deleted, _ = RateLimitEntry.objects.filter(identifier=identifier).delete()  # pylint: disable=no-member
        return deleted > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def delete_stale(
        self,
        threshold: datetime,
        window_seconds: Mapping[str, int],
        default_window_seconds: int,
    ) -> int:
        # A window ended by threshold iff window_start <= threshold - window_seconds
        windows_ended = Q(
            window_start__lte=threshold - timedelta(seconds=default_window_seconds)
        ) & ~Q(action__in=list(window_seconds))
        for action, seconds in window_seconds.items():
            windows_ended |= Q(action=action, window_start__lte=threshold - timedelta(seconds=seconds))

        deleted, _ = (
            RateLimitEntry.objects.filter(windows_ended)  # pylint: disable=no-member
            .filter(Q(blocked_until__isnull=True) | Q(blocked_until__lte=threshold))
            .delete()
        )
        return deleted
