from django.core.management.base import BaseCommand

from apps.entitlements.services.access_service import AccessService
from apps.logs.utils import log_event


class Command(BaseCommand):
    help = "Mark lapsed signal subscriptions expired and deactivate their access"

    def add_arguments(self, parser):
        parser.add_argument(
            '--limit',
            type=int,
            default=None,
            help='Maximum number of subscriptions to process',
        )

    def handle(self, *args, **options):
        expired, deactivated = AccessService.expire_lapsed(limit=options.get('limit'))
        log_event(
            "Entitlement expiry sweep finished",
            channel="app",
            context={"subscriptions_expired": expired, "access_deactivated": deactivated},
        )
        self.stdout.write(self.style.SUCCESS(
            f"Expired {expired} subscriptions, deactivated {deactivated} access rows"
        ))
