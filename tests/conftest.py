"""
Pytest configuration and shared fixtures.
"""
from datetime import datetime, timezone

import pytest

from access.application.access_gate import AccessGate
from access.bootstrap import build_access_gate
from access_tokens.domain.services import AccessTokenStore
from access_tokens.infrastructure.repositories.in_memory_access_token_repository import (
    InMemoryAccessTokenRepository,
)
from core.conf import AccessControlConfig
from core.domain.clock import FrozenClock
from licenses.application.services.license_manager import LicenseManager
from licenses.domain.services import LicenseEvaluator
from licenses.infrastructure.repositories.in_memory_license_repository import (
    InMemoryLicenseRepository,
)
from ratelimits.domain.services import RateLimiter
from ratelimits.infrastructure.repositories.in_memory_rate_limit_repository import (
    InMemoryRateLimitRepository,
)

PRO_PLUS_KEY = "PDF$PRO+#A1B2-C3D4@E5F6-G7H8!J9K0"
UNLIMITED_KEY = "PDF$UNLIMITED#A1B2@C3D4!E5F6"
DEV_KEY = "PDF$DEV#A1B2-C3D4@E5F6!G7H8"


@pytest.fixture
def start_time():
    """Fixed instant every test starts from."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(start_time):
    """Fixture for a FrozenClock."""
    return FrozenClock(start_time)


@pytest.fixture
def config():
    """Fixture for the default AccessControlConfig."""
    return AccessControlConfig()


@pytest.fixture
def evaluator():
    """Fixture for LicenseEvaluator."""
    return LicenseEvaluator()


@pytest.fixture
def license_repository():
    """Fixture for an in-memory LicenseRepository."""
    return InMemoryLicenseRepository()


@pytest.fixture
def rate_limit_repository():
    """Fixture for an in-memory RateLimitRepository."""
    return InMemoryRateLimitRepository()


@pytest.fixture
def access_token_repository():
    """Fixture for an in-memory AccessTokenRepository."""
    return InMemoryAccessTokenRepository()


@pytest.fixture
def rate_limiter(rate_limit_repository, clock, config):
    """Fixture for RateLimiter over the in-memory repository."""
    return RateLimiter(rate_limit_repository, clock, config)


@pytest.fixture
def token_store(access_token_repository, clock, config):
    """Fixture for AccessTokenStore over the in-memory repository."""
    return AccessTokenStore(access_token_repository, clock, config)


@pytest.fixture
def license_manager(license_repository, evaluator, clock):
    """Fixture for LicenseManager over the in-memory repository."""
    return LicenseManager(license_repository, evaluator, clock)


@pytest.fixture
def gate(
    config, clock, license_repository, rate_limit_repository, access_token_repository
) -> AccessGate:
    """Fixture for an AccessGate wired to in-memory repositories."""
    return build_access_gate(
        config=config,
        clock=clock,
        license_repository=license_repository,
        rate_limit_repository=rate_limit_repository,
        access_token_repository=access_token_repository,
    )


@pytest.fixture
def django_license_repository():
    """Fixture for DjangoLicenseRepository."""
    from licenses.infrastructure.repositories.django_license_repository import (
        DjangoLicenseRepository,
    )

    return DjangoLicenseRepository()


@pytest.fixture
def django_rate_limit_repository():
    """Fixture for DjangoRateLimitRepository."""
    from ratelimits.infrastructure.repositories.django_rate_limit_repository import (
        DjangoRateLimitRepository,
    )

    return DjangoRateLimitRepository()


@pytest.fixture
def django_access_token_repository():
    """Fixture for DjangoAccessTokenRepository."""
    from access_tokens.infrastructure.repositories.django_access_token_repository import (
        DjangoAccessTokenRepository,
    )

    return DjangoAccessTokenRepository()


@pytest.fixture
def django_gate(
    config,
    clock,
    django_license_repository,
    django_rate_limit_repository,
    django_access_token_repository,
) -> AccessGate:
    """Fixture for an AccessGate wired to the Django repositories."""
    return build_access_gate(
        config=config,
        clock=clock,
        license_repository=django_license_repository,
        rate_limit_repository=django_rate_limit_repository,
        access_token_repository=django_access_token_repository,
    )


@pytest.fixture
def pro_plus_key():
    """A well-formed paid-tier key."""
    return PRO_PLUS_KEY


@pytest.fixture
def unlimited_key():
    """A well-formed unlimited key."""
    return UNLIMITED_KEY


@pytest.fixture
def dev_key():
    """A well-formed development key."""
    return DEV_KEY
