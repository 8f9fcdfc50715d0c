"""
Django implementation of AccessTokenRepository port.

This adapter converts between domain entities and Django ORM models.
Consumption is a single conditional UPDATE guarded by the usability
predicate.
"""
from datetime import datetime
from typing import List, Optional

from asgiref.sync import sync_to_async
from django.db import transaction
from django.db.models import F, Q

from access_tokens.domain.access_token import AccessToken
from access_tokens.infrastructure.models import AccessToken as AccessTokenModel
from access_tokens.ports.access_token_repository import AccessTokenRepository
from core.infrastructure.database import translate_database_errors

COMPONENT = "access_tokens"


class DjangoAccessTokenRepository(AccessTokenRepository):
    """
    Django ORM implementation of AccessTokenRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Implements repository interface
    """

    def _to_domain(self, model: AccessTokenModel) -> AccessToken:
        """
        Convert Django model to domain entity.

        Args:
            model: Django AccessToken model

        Returns:
            AccessToken domain entity
        """
        return AccessToken(
            token_hash=model.token_hash,
            target_id=model.target_id,
            created_at=model.created_at,
            expires_at=model.expires_at,
            max_uses=model.max_uses,
            use_count=model.use_count,
            issued_by=model.issued_by,
        )

    def _to_model(self, token: AccessToken) -> AccessTokenModel:
        """
        Convert domain entity to Django model.

        Args:
            token: AccessToken domain entity

        Returns:
            Django AccessToken model (unsaved)
        """
        return AccessTokenModel(
            token_hash=token.token_hash,
            target_id=token.target_id,
            issued_by=token.issued_by,
            created_at=token.created_at,
            expires_at=token.expires_at,
            max_uses=token.max_uses,
            use_count=token.use_count,
        )

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def add(self, token: AccessToken) -> AccessToken:
        model = self._to_model(token)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def get(self, token_hash: str) -> Optional[AccessToken]:
        try:
            model = AccessTokenModel.objects.get(token_hash=token_hash)  # pylint: disable=no-member
            return self._to_domain(model)
        except AccessTokenModel.DoesNotExist:  # pylint: disable=no-member
            return None

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def try_consume(self, token_hash: str, now: datetime) -> Optional[AccessToken]:
        with transaction.atomic():
            updated = (
                AccessTokenModel.objects.filter(  # pylint: disable=no-member
                    token_hash=token_hash, expires_at__gt=now
                )
                .filter(Q(max_uses=0) | Q(use_count__lt=F("max_uses")))
                .update(use_count=F("use_count") + 1)
            )
            if not updated:
                return None
            # The row stays locked until commit, so this read sees our own use
            model = AccessTokenModel.objects.get(token_hash=token_hash)  # pylint: disable=no-member
            return self._to_domain(model)

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def delete(self, token_hash: str) -> bool:
        deleted, _ = AccessTokenModel.objects.filter(token_hash=token_hash).delete()  # pylint: disable=no-member
        return deleted > 0

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def delete_dead(self, now: datetime) -> int:
        deleted, _ = AccessTokenModel.objects.filter(  # pylint: disable=no-member
            Q(expires_at__lte=now) | Q(max_uses__gt=0, use_count__gte=F("max_uses"))
        ).delete()
        return deleted

    @sync_to_async
    @translate_database_errors(COMPONENT)
    def list_for_target(self, target_id: int) -> List[AccessToken]:
        # pylint: disable=no-member
        queryset = AccessTokenModel.objects.filter(target_id=target_id).order_by("-created_at", "-id")
        return [self._to_domain(model) for model in queryset]
