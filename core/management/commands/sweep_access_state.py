"""
Django management command to sweep dead access-control state.

Deletes expired/exhausted access tokens and stale rate limit counters.
This command should be run periodically (e.g., via cron) where Celery
beat is not deployed.
"""
import asyncio
import logging

from django.core.management.base import BaseCommand, CommandError

from access.bootstrap import build_access_gate
from core.domain.exceptions import StorageUnavailableError

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to sweep access tokens and rate limit counters."""

    help = "Delete expired access tokens and stale rate limit records"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--older-than",
            type=int,
            default=None,
            help="Rate limit retention in seconds (defaults to RATE_LIMIT_RETENTION_SECONDS)",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        older_than = options["older_than"]
        if older_than is not None and older_than < 0:
            raise CommandError("--older-than cannot be negative")

        gate = build_access_gate()
        try:
            removed = asyncio.run(gate.run_maintenance(older_than_seconds=older_than))
        except StorageUnavailableError as e:
            logger.error("Sweep failed: %s", e.message, exc_info=True)
            raise CommandError(f"Storage unavailable: {e.message}") from e

        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(
                f"Removed {removed['access_tokens']} access token(s) and "
                f"{removed['rate_limits']} rate limit record(s)"
            )
        )
