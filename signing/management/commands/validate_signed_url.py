"""
Management command to check a signed URL.

Usage:
    python manage.py validate_signed_url "https://cdn.example.com/...?oe=...&oh=..."

Prints the file and its expiration when the URL is valid. Exits with an
error otherwise, without telling expired, forged and malformed URLs apart.
"""

from datetime import datetime, timezone

from django.core.management.base import BaseCommand, CommandError

from signing.signed_urls import get_file_signer


class Command(BaseCommand):
    help = 'Validate a signed URL and print the file it grants access to.'

    def add_arguments(self, parser):
        parser.add_argument('url', help='Signed URL to validate')

    def handle(self, **options):
        result = get_file_signer().validate(options['url'])

        if result is None:
            raise CommandError("Invalid signed URL.")

        expires_at = datetime.fromtimestamp(result.expiration, tz=timezone.utc)
        self.stdout.write(f"file: {result.file}")
        self.stdout.write(f"expiration: {result.expiration} ({expires_at.isoformat()})")
