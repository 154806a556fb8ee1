"""
Management command to close attendance days that never got a departure.

Meant to be run from cron every minute after the auto-checkout hour; runs
before the cutoff and repeated runs are no-ops.
"""
import logging

from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_datetime

from attendance.services import run_auto_checkouts

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Append automatic checkouts for employees with an entrada but no salida today'

    def add_arguments(self, parser):
        parser.add_argument(
            '--at',
            type=str,
            default=None,
            help='ISO datetime to run the sweep as of (defaults to now)'
        )

    def handle(self, *args, **options):
        now = None
        if options['at']:
            now = parse_datetime(options['at'])
            if now is None:
                raise CommandError(f"Invalid --at value: {options['at']}")

        created = run_auto_checkouts(now=now)
        for event in created:
            self.stdout.write(f'  {event.employee_id}: {event.timestamp.isoformat()}')
        logger.info("run_auto_checkouts finished with %d event(s)", len(created))
        self.stdout.write(self.style.SUCCESS(f'Auto-checkout completed: {len(created)} event(s) created'))
