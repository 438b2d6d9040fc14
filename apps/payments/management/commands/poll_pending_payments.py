from django.core.management.base import BaseCommand

from apps.payments.services.ingestion_service import PaymentIngestionService


class Command(BaseCommand):
    help = "Query providers for stale pending payments and reconcile them"

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=50,
            help='Maximum number of payments to check (default: 50)',
        )
        parser.add_argument(
            '--min-age-seconds',
            type=int,
            default=None,
            help='Only check payments older than this many seconds',
        )

    def handle(self, *args, **options):
        summary = PaymentIngestionService().poll_pending(
            limit=options['limit'],
            min_age_seconds=options['min_age_seconds'],
        )
        self.stdout.write(self.style.SUCCESS(
            "Checked {checked}: {completed} completed, {failed} failed, "
            "{pending} still pending, {errors} errors".format(**summary)
        ))
