"""
Django management command to refresh cached license statuses.

Status is always re-derived at decision time; this only rewrites the
cached value shown to operators.
"""
import asyncio
import logging

from django.core.management.base import BaseCommand

from access.bootstrap import build_license_manager

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to rewrite drifted license statuses."""

    help = "Re-evaluate stored licenses and update their cached status"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update licenses",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        dry_run = options["dry_run"]
        manager = build_license_manager()

        async def refresh():
            now = manager.clock.now()
            records = await manager.repository.list_all()
            drifted = [
                (record, manager.evaluator.evaluate(record, now))
                for record in records
                if manager.evaluator.evaluate(record, now) != record.status
            ]
            if dry_run:
                return drifted, 0

            updated = 0
            for record, _ in drifted:
                if await manager.refresh_cached_status(record.product, now=now):
                    updated += 1
            return drifted, updated

        drifted, updated = asyncio.run(refresh())
        self.stdout.write(f"Found {len(drifted)} license(s) with a stale status")

        if dry_run:
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for record, status in drifted:
                self.stdout.write(f"  - {record.product}: {record.status.value} -> {status.value}")
            return

        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(f"Successfully updated {updated} license(s)")
        )
