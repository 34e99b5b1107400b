import time

from django.core.management.base import BaseCommand, CommandError

from authentication.models import Organization
from sync.models import SyncConfiguration
from sync.services import import_preorders


class Command(BaseCommand):
    help = "Import new pre-orders from the pre-order platform for every organization with sync enabled"

    def add_arguments(self, parser):
        parser.add_argument('--organization', help='Only poll this organization (id)')
        parser.add_argument('--interval', type=int, default=0, help='Keep polling every N seconds')

    def handle(self, *args, **options):
        while True:
            self.poll_once(options['organization'])
            if not options['interval']:
                break
            time.sleep(options['interval'])

    def poll_once(self, organization_id):
        organizations = Organization.objects.filter(
            pk__in=SyncConfiguration.objects.filter(is_enabled=True).values('organization_id')
        )
        if organization_id:
            organizations = organizations.filter(pk=organization_id)
            if not organizations.exists():
                raise CommandError(f"No enabled sync configuration for organization {organization_id}")

        for organization in organizations:
            summary = import_preorders(organization)
            self.stdout.write(
                f"{organization.name}: fetched {summary['fetched']}, imported {summary['imported']}"
            )
