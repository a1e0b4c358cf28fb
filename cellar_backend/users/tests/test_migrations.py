# users/tests/test_migrations.py

from io import StringIO

from django.core.management import call_command
from django.db import connection
from django.db.migrations.loader import MigrationLoader
from django.test import TestCase

PROJECT_APPS = [
    "users",
    "partners",
    "notifications",
    "pricing",
    "orders",
    "wms",
    "logistics",
    "sourcing",
    "quotes",
]


class MigrationTests(TestCase):
    """
    GUARANTEES:
    - Every project app ships an initial migration
    - The committed migrations describe the current models exactly
    """

    def test_every_app_has_an_initial_migration(self):
        loader = MigrationLoader(connection)
        for app in PROJECT_APPS:
            with self.subTest(app=app):
                self.assertIn(app, loader.migrated_apps)
                self.assertIn((app, "0001_initial"), loader.disk_migrations)

    def test_models_have_no_pending_changes(self):
        out = StringIO()
        try:
            call_command("makemigrations", "--check", "--dry-run", stdout=out, stderr=StringIO())
        except SystemExit:
            self.fail(f"Models changed without a migration:\n{out.getvalue()}")

    def test_migrated_tables_exist(self):
        tables = set(connection.introspection.table_names())
        for table in (
            "users_user",
            "orders_privateclientorder",
            "wms_stock",
            "sourcing_rfqitem",
            "quotes_quotelineitem",
        ):
            with self.subTest(table=table):
                self.assertIn(table, tables)
