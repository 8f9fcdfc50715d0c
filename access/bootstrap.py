"""
Composition root.

Builds the access-control object graph once at startup and hands the
references to callers. Nothing here is a module-level singleton.
"""
from typing import Optional

from access.application.access_gate import AccessGate
from access_tokens.domain.services import AccessTokenStore
from access_tokens.ports.access_token_repository import AccessTokenRepository
from core.conf import AccessControlConfig
from core.domain.clock import Clock, SystemClock
from licenses.application.services.license_manager import LicenseManager
from licenses.domain.services import LicenseEvaluator
from licenses.ports.license_repository import LicenseRepository
from ratelimits.domain.services import RateLimiter
from ratelimits.ports.rate_limit_repository import RateLimitRepository


def _default_license_repository() -> LicenseRepository:
    from licenses.infrastructure.repositories.django_license_repository import (
        DjangoLicenseRepository,
    )

    return DjangoLicenseRepository()


def _default_rate_limit_repository() -> RateLimitRepository:
    from ratelimits.infrastructure.repositories.django_rate_limit_repository import (
        DjangoRateLimitRepository,
    )

    return DjangoRateLimitRepository()


def _default_access_token_repository() -> AccessTokenRepository:
    from access_tokens.infrastructure.repositories.django_access_token_repository import (
        DjangoAccessTokenRepository,
    )

    return DjangoAccessTokenRepository()


def build_access_gate(
    config: Optional[AccessControlConfig] = None,
    clock: Optional[Clock] = None,
    license_repository: Optional[LicenseRepository] = None,
    rate_limit_repository: Optional[RateLimitRepository] = None,
    access_token_repository: Optional[AccessTokenRepository] = None,
) -> AccessGate:
    """
    Build an AccessGate and its collaborators.

    Repositories default to the Django ORM adapters; config defaults to
    settings.ACCESS_CONTROL.

    Args:
        config: Access-control configuration
        clock: Time source (defaults to SystemClock)
        license_repository: License persistence
        rate_limit_repository: Attempt counter persistence
        access_token_repository: Token persistence

    Returns:
        AccessGate
    """
    config = config if config is not None else AccessControlConfig.from_settings()
    clock = clock if clock is not None else SystemClock()

    if license_repository is None:
        license_repository = _default_license_repository()
    if rate_limit_repository is None:
        rate_limit_repository = _default_rate_limit_repository()
    if access_token_repository is None:
        access_token_repository = _default_access_token_repository()

    return AccessGate(
        evaluator=LicenseEvaluator(config.license_grace_period_days),
        license_repository=license_repository,
        rate_limiter=RateLimiter(rate_limit_repository, clock, config),
        token_store=AccessTokenStore(access_token_repository, clock, config),
        clock=clock,
        licensed_product=config.licensed_product,
    )


def build_license_manager(
    config: Optional[AccessControlConfig] = None,
    clock: Optional[Clock] = None,
    repository: Optional[LicenseRepository] = None,
) -> LicenseManager:
    """
    Build a LicenseManager.

    Args:
        config: Access-control configuration
        clock: Time source (defaults to SystemClock)
        repository: License persistence (defaults to the Django adapter)

    Returns:
        LicenseManager
    """
    config = config if config is not None else AccessControlConfig.from_settings()
    return LicenseManager(
        repository=repository if repository is not None else _default_license_repository(),
        evaluator=LicenseEvaluator(config.license_grace_period_days),
        clock=clock if clock is not None else SystemClock(),
    )
