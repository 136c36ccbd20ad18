"""
Management command to import products and variants from a JSON export.

The file may hold a bare list of products or an object with a "data" list.
Price keys may be snake_case (price_3_day) or camelCase (price3Day).

Usage:
    python manage.py import_catalog catalog.json
    python manage.py import_catalog catalog.json --dry-run
"""
import json

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.catalog.exceptions import CatalogImportError
from apps.catalog.services import import_catalog, unwrap_collection


class Command(BaseCommand):
    help = 'Create or update products and variants from a catalog JSON file'

    def add_arguments(self, parser):
        parser.add_argument('path', help='Path to the catalog JSON file')
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Validate and report without saving changes',
        )

    def handle(self, *args, **options):
        try:
            with open(options['path'], encoding='utf-8') as fh:
                payload = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise CommandError(f"Cannot read {options['path']}: {exc}")

        try:
            records = unwrap_collection(payload)
        except CatalogImportError as exc:
            raise CommandError(str(exc))

        self.stdout.write(f'\nFound {len(records)} product record(s).\n')

        try:
            with transaction.atomic():
                summary = import_catalog(records)
                if options['dry_run']:
                    transaction.set_rollback(True)
        except CatalogImportError as exc:
            raise CommandError(str(exc))

        self.stdout.write(
            f'  Products: {summary.products_created} created, {summary.products_updated} updated'
        )
        self.stdout.write(
            f'  Variants: {summary.variants_created} created, {summary.variants_updated} updated'
        )

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('\n--dry-run mode: No changes made.'))
            return

        self.stdout.write(self.style.SUCCESS('\nCatalog imported successfully!'))
