"""
Management command to create a signed URL for a file.

Usage:
    # Sign a file for the default TTL:
    python manage.py sign_file /2019/11/image.jpg

    # With file parameters, a custom TTL and extra query parameters:
    python manage.py sign_file /2019/11/image.jpg --param size=1080x1080 --param version=1 \
        --ttl-minutes 60 --query cached=1

    # Replace the file name with a random numeric one:
    python manage.py sign_file /2019/11/upload.jpg --random-name
"""

from datetime import timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from signing.exceptions import FileSignerError
from signing.signed_urls import get_file_signer


def _parse_pairs(values, label):
    """Parse repeated name=value options into a dict."""
    pairs = {}
    for value in values or []:
        name, sep, content = value.partition('=')
        if not sep or not name:
            raise CommandError(f"Invalid {label} `{value}`: expected name=value")
        pairs[name] = content
    return pairs


def _parse_list(value):
    return [item.strip() for item in value.split(',') if item.strip()] if value else []


class Command(BaseCommand):
    help = 'Create a time-limited signed URL for a file.'

    def add_arguments(self, parser):
        parser.add_argument('file_name', help='File to sign, e.g. /2019/11/image.jpg')
        parser.add_argument(
            '--ttl-minutes', type=int, default=None,
            help='Validity period in minutes (defaults to FILE_SIGNER DEFAULT_TTL_MINUTES)',
        )
        parser.add_argument(
            '--param', action='append', default=[],
            help='File parameter as name=value. Repeat for several parameters.',
        )
        parser.add_argument(
            '--query', action='append', default=[],
            help='Extra signed query parameter as name=value. Repeat for several parameters.',
        )
        parser.add_argument(
            '--sort-in-file-name', default='',
            help='Comma separated parameter names, in file name order',
        )
        parser.add_argument(
            '--sort-to-display', default='',
            help='Comma separated parameter names, in URL order',
        )
        parser.add_argument(
            '--random-name', action='store_true',
            help='Replace the file name with a random numeric name',
        )

    def handle(self, **options):
        config = getattr(settings, 'FILE_SIGNER', {})
        ttl_minutes = options['ttl_minutes']
        if ttl_minutes is None:
            ttl_minutes = config.get('DEFAULT_TTL_MINUTES', 30)

        # Cap expiration time
        max_minutes = config.get('MAX_TTL_MINUTES')
        if max_minutes:
            ttl_minutes = min(ttl_minutes, max_minutes)

        if ttl_minutes <= 0:
            raise CommandError("--ttl-minutes must be positive")

        params = _parse_pairs(options['param'], 'parameter')
        query = _parse_pairs(options['query'], 'query parameter')

        try:
            signer = get_file_signer()
            file = signer.create_file(options['file_name'], **params)

            if options['random_name']:
                file.set_random_name()
            if options['sort_in_file_name']:
                file.sort_in_file_name(_parse_list(options['sort_in_file_name']))
            if options['sort_to_display']:
                file.sort_to_display(_parse_list(options['sort_to_display']))

            signed_url = signer.sign(file, timedelta(minutes=ttl_minutes), query)
        except FileSignerError as e:
            raise CommandError(str(e))

        self.stdout.write(signed_url)
