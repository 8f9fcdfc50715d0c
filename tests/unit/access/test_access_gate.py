"""
Unit tests for AccessGate.
"""
import asyncio
from datetime import timedelta

import pytest

from access.application.access_decision import AccessDecision
from access.bootstrap import build_access_gate, build_license_manager
from core.domain.exceptions import StorageUnavailableError
from core.domain.value_objects import DenialReason, LicenseStatus
from licenses.domain.license import LicenseRecord
from licenses.infrastructure.repositories.in_memory_license_repository import (
    InMemoryLicenseRepository,
)

DOCUMENT = 42
CLIENT = "203.0.113.7"
OTHER_CLIENT = "198.51.100.20"


class UnavailableLicenseRepository(InMemoryLicenseRepository):
    """Repository whose store is down."""

    async def find_by_product(self, product):
        raise StorageUnavailableError("licenses storage is unavailable", component="licenses")


async def _activate(license_repository, key, at, expires_at=None):
    await license_repository.save(
        LicenseRecord.create(
            product="pro_plus",
            key=key,
            status=LicenseStatus.VALID,
            expires_at=expires_at,
            activated_at=at,
        )
    )


class TestAccessDecision:
    """Tests for AccessDecision messages."""

    def test_allowed_has_no_message(self):
        """Allowed decisions carry no message."""
        assert AccessDecision.allow().message is None

    def test_rate_limited_message_includes_retry_after(self):
        """Rate-limit denials surface the retry-after hint."""
        decision = AccessDecision.deny(DenialReason.RATE_LIMITED, retry_after_seconds=900)
        assert decision.message == "Too many attempts. Please try again in 900 seconds."

    def test_reason_message(self):
        """Other denials use the reason's message."""
        decision = AccessDecision.deny(DenialReason.WRONG_TARGET)
        assert decision.message == "Token does not match this document."


@pytest.mark.asyncio
class TestCheckFeature:
    """Tests for AccessGate.check_feature."""

    async def test_no_license(self, gate):
        """Without a license, features are off."""
        decision = await gate.check_feature()

        assert decision.allowed is False
        assert decision.reason is DenialReason.LICENSE_INACTIVE
        assert decision.license_status is LicenseStatus.INACTIVE

    async def test_valid_license(self, gate, license_repository, start_time, pro_plus_key):
        """A valid license turns features on."""
        await _activate(license_repository, pro_plus_key, start_time, start_time + timedelta(days=365))

        decision = await gate.check_feature()

        assert decision.allowed is True
        assert decision.license_status is LicenseStatus.VALID

    async def test_grace_period_still_allowed(self, gate, license_repository, clock, start_time, pro_plus_key):
        """Features stay on during the grace period."""
        await _activate(license_repository, pro_plus_key, start_time, start_time + timedelta(days=1))
        clock.advance(days=5)

        decision = await gate.check_feature()

        assert decision.allowed is True
        assert decision.license_status is LicenseStatus.GRACE_PERIOD

    async def test_expired_license(self, gate, license_repository, clock, start_time, pro_plus_key):
        """Past the grace period, features are off."""
        await _activate(license_repository, pro_plus_key, start_time, start_time + timedelta(days=1))
        clock.advance(days=16)

        decision = await gate.check_feature()

        assert decision.allowed is False
        assert decision.license_status is LicenseStatus.EXPIRED

    async def test_check_feature_never_writes(self, gate, license_repository, clock, start_time, pro_plus_key):
        """The cached status is left untouched."""
        await _activate(license_repository, pro_plus_key, start_time, start_time + timedelta(days=1))
        clock.advance(days=30)

        await gate.check_feature()

        stored = await license_repository.find_by_product("pro_plus")
        assert stored.status is LicenseStatus.VALID
        assert stored.updated_at == start_time

    async def test_storage_failure_is_distinct_from_denial(
        self, config, clock, rate_limit_repository, access_token_repository
    ):
        """An outage raises instead of denying."""
        gate = build_access_gate(
            config=config,
            clock=clock,
            license_repository=UnavailableLicenseRepository(),
            rate_limit_repository=rate_limit_repository,
            access_token_repository=access_token_repository,
        )

        with pytest.raises(StorageUnavailableError):
            await gate.check_feature()


@pytest.mark.asyncio
class TestVerifyPassword:
    """Tests for AccessGate.verify_password."""

    async def test_correct_password(self, gate):
        """A correct password is allowed."""
        decision = await gate.verify_password(DOCUMENT, CLIENT, password_valid=True)

        assert decision.allowed is True
        assert decision.reason is None

    async def test_wrong_password(self, gate):
        """A wrong password is denied as invalid credentials."""
        decision = await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)

        assert decision.allowed is False
        assert decision.reason is DenialReason.INVALID_CREDENTIALS
        assert decision.message == "Incorrect password."

    async def test_lockout_scenario(self, gate, clock):
        """Five wrong passwords within a minute lock the client out of that document."""
        for _ in range(5):
            decision = await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
            assert decision.reason is DenialReason.INVALID_CREDENTIALS
            clock.advance(seconds=10)

        sixth = await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
        assert sixth.allowed is False
        assert sixth.reason is DenialReason.RATE_LIMITED
        assert sixth.retry_after_seconds == 900

        # Even the right password is refused during the block
        blocked = await gate.verify_password(DOCUMENT, CLIENT, password_valid=True)
        assert blocked.reason is DenialReason.RATE_LIMITED

        # A different client on the same document is unaffected
        other = await gate.verify_password(DOCUMENT, OTHER_CLIENT, password_valid=True)
        assert other.allowed is True

        # The same client on another document is unaffected
        elsewhere = await gate.verify_password(DOCUMENT + 1, CLIENT, password_valid=True)
        assert elsewhere.allowed is True

    async def test_blocked_attempt_is_not_recorded(self, gate, rate_limit_repository):
        """Denied-by-limit attempts do not move the counter."""
        for _ in range(5):
            await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
        await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
        await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)

        identifier = gate.rate_limiter.identifier_for("password_verify", CLIENT, DOCUMENT)
        record = await rate_limit_repository.get(identifier)
        assert record.attempts == 5

    async def test_gathered_guesses_stay_within_budget(self, gate):
        """Simultaneous wrong passwords share one budget."""
        decisions = await asyncio.gather(
            *(gate.verify_password(DOCUMENT, CLIENT, password_valid=False) for _ in range(20))
        )

        reasons = [d.reason for d in decisions]
        assert reasons.count(DenialReason.INVALID_CREDENTIALS) == 5
        assert reasons.count(DenialReason.RATE_LIMITED) == 15

    async def test_success_resets_failures(self, gate):
        """A correct password clears earlier failures."""
        for _ in range(4):
            await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
        await gate.verify_password(DOCUMENT, CLIENT, password_valid=True)

        for _ in range(4):
            decision = await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
            assert decision.reason is DenialReason.INVALID_CREDENTIALS

    async def test_block_lifts(self, gate, clock):
        """After the block elapses the client may try again."""
        for _ in range(5):
            await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)
        assert (await gate.verify_password(DOCUMENT, CLIENT, True)).reason is DenialReason.RATE_LIMITED

        clock.advance(seconds=900)
        assert (await gate.verify_password(DOCUMENT, CLIENT, True)).allowed is True


@pytest.mark.asyncio
class TestShareLinks:
    """Tests for issuing, resolving and revoking share links."""

    async def _licensed(self, license_repository, start_time, key):
        await _activate(license_repository, key, start_time)

    async def test_issue_requires_license(self, gate):
        """Share links are a licensed feature."""
        decision = await gate.issue_share_link(DOCUMENT)

        assert decision.allowed is False
        assert decision.reason is DenialReason.LICENSE_INACTIVE
        assert decision.issued is None

    async def test_issue_and_resolve(self, gate, license_repository, start_time, unlimited_key):
        """An issued link opens its document."""
        await self._licensed(license_repository, start_time, unlimited_key)

        issued = await gate.issue_share_link(DOCUMENT, ttl_seconds=3600, max_uses=2, issued_by="editor")
        assert issued.allowed is True
        assert issued.license_status is LicenseStatus.VALID
        assert issued.token.max_uses == 2

        resolved = await gate.resolve_share_link(issued.issued.secret, DOCUMENT, CLIENT)
        assert resolved.allowed is True
        assert resolved.token.remaining_uses == 1

    async def test_resolve_wrong_document(self, gate, license_repository, start_time, unlimited_key):
        """Links are scoped to their document."""
        await self._licensed(license_repository, start_time, unlimited_key)
        issued = await gate.issue_share_link(DOCUMENT)

        decision = await gate.resolve_share_link(issued.issued.secret, DOCUMENT + 1, CLIENT)

        assert decision.allowed is False
        assert decision.reason is DenialReason.WRONG_TARGET

    async def test_resolve_expired(self, gate, license_repository, clock, start_time, unlimited_key):
        """Expired links report expired."""
        await self._licensed(license_repository, start_time, unlimited_key)
        issued = await gate.issue_share_link(DOCUMENT, ttl_seconds=60)
        clock.advance(seconds=61)

        decision = await gate.resolve_share_link(issued.issued.secret, DOCUMENT, CLIENT)

        assert decision.reason is DenialReason.EXPIRED
        assert decision.message == "Token has expired."

    async def test_resolution_works_after_license_lapses(
        self, gate, license_repository, clock, start_time, pro_plus_key
    ):
        """Existing links keep working when the license expires."""
        await _activate(license_repository, pro_plus_key, start_time, start_time + timedelta(hours=1))
        issued = await gate.issue_share_link(DOCUMENT, ttl_seconds=86400 * 30)
        clock.advance(days=20)

        assert (await gate.check_feature()).allowed is False
        decision = await gate.resolve_share_link(issued.issued.secret, DOCUMENT, CLIENT)
        assert decision.allowed is True

    async def test_probing_is_throttled(self, gate):
        """Repeated unknown secrets lock the client out of link resolution."""
        for i in range(10):
            decision = await gate.resolve_share_link(f"{i:064x}", DOCUMENT, CLIENT)
            assert decision.reason is DenialReason.NOT_FOUND

        decision = await gate.resolve_share_link("f" * 64, DOCUMENT, CLIENT)
        assert decision.reason is DenialReason.RATE_LIMITED
        assert decision.retry_after_seconds == 900

        other = await gate.resolve_share_link("f" * 64, DOCUMENT, OTHER_CLIENT)
        assert other.reason is DenialReason.NOT_FOUND

    async def test_dead_links_do_not_count_as_probes(
        self, gate, license_repository, clock, start_time, unlimited_key, rate_limit_repository
    ):
        """Opening an expired link gives its reserved attempt back."""
        await self._licensed(license_repository, start_time, unlimited_key)
        issued = await gate.issue_share_link(DOCUMENT, ttl_seconds=60)
        clock.advance(seconds=61)

        await gate.resolve_share_link(issued.issued.secret, DOCUMENT, CLIENT)

        identifier = gate.rate_limiter.identifier_for("access_token", CLIENT, DOCUMENT)
        assert (await rate_limit_repository.get(identifier)).attempts == 0

    async def test_probe_counter_is_separate_from_passwords(self, gate):
        """Share-link probing does not consume the password budget."""
        for i in range(10):
            await gate.resolve_share_link(f"{i:064x}", DOCUMENT, CLIENT)

        decision = await gate.verify_password(DOCUMENT, CLIENT, password_valid=True)
        assert decision.allowed is True

    async def test_revoke(self, gate, license_repository, start_time, unlimited_key):
        """Revoked links stop working."""
        await self._licensed(license_repository, start_time, unlimited_key)
        issued = await gate.issue_share_link(DOCUMENT)

        assert await gate.revoke_share_link(issued.issued.secret) is True
        decision = await gate.resolve_share_link(issued.issued.secret, DOCUMENT, CLIENT)
        assert decision.reason is DenialReason.NOT_FOUND


@pytest.mark.asyncio
class TestMaintenance:
    """Tests for AccessGate.run_maintenance."""

    async def test_run_maintenance(self, gate, license_repository, clock, start_time, unlimited_key):
        """Maintenance sweeps tokens and counters together."""
        await _activate(license_repository, unlimited_key, start_time)
        await gate.issue_share_link(DOCUMENT, ttl_seconds=60)
        await gate.verify_password(DOCUMENT, CLIENT, password_valid=False)

        clock.advance(days=2)
        removed = await gate.run_maintenance()

        assert removed == {"access_tokens": 1, "rate_limits": 1}
        assert await gate.run_maintenance() == {"access_tokens": 0, "rate_limits": 0}


class TestBootstrap:
    """Tests for the composition root."""

    def test_build_access_gate_wires_config(
        self, config, clock, license_repository, rate_limit_repository, access_token_repository
    ):
        """Every collaborator shares the injected clock and config."""
        gate = build_access_gate(
            config=config,
            clock=clock,
            license_repository=license_repository,
            rate_limit_repository=rate_limit_repository,
            access_token_repository=access_token_repository,
        )

        assert gate.clock is clock
        assert gate.rate_limiter.clock is clock
        assert gate.token_store.clock is clock
        assert gate.rate_limiter.config is config
        assert gate.license_repository is license_repository
        assert gate.licensed_product == "pro_plus"

    def test_build_license_manager(self, config, clock, license_repository):
        """The manager uses the configured grace period."""
        manager = build_license_manager(config=config, clock=clock, repository=license_repository)

        assert manager.repository is license_repository
        assert manager.evaluator.grace_period == timedelta(days=14)
