"""
The committed migrations must match the models of every BookOn app
"""
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, override_settings


class MigrationsInSyncTest(TestCase):

    @override_settings(MIGRATION_MODULES={})
    def test_no_missing_migrations(self):
        out = StringIO()
        try:
            call_command('makemigrations', '--check', '--dry-run', stdout=out, stderr=StringIO())
        except SystemExit:
            self.fail(f"Models have changes without a migration:\n{out.getvalue()}")
