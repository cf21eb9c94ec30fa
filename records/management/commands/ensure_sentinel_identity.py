# records/management/commands/ensure_sentinel_identity.py
from django.core.management.base import BaseCommand
from django.db import DEFAULT_DB_ALIAS

from records.services.identity import UserIdentityStore


class Command(BaseCommand):
    help = "Ensure the sentinel clinician identity used for self-recorded visits exists (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument('--database', default=DEFAULT_DB_ALIAS)

    def handle(self, *args, **opts):
        username = UserIdentityStore(opts['database']).ensure_sentinel_exists()
        self.stdout.write(self.style.SUCCESS(f"ok: {username}"))
