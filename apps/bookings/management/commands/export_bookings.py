from pathlib import Path

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.bookings.application.export import overview_filename, render_overview
from apps.bookings.application.store import build_booking_store
from shared.domain.datemath import SystemClock


class Command(BaseCommand):
    help = 'Writes a plain-text overview of every booking in the shared calendar'

    def add_arguments(self, parser):
        parser.add_argument(
            '--output',
            help='File to write; "-" prints to stdout. Defaults to a dated file name.',
            default=None,
        )

    def handle(self, *args, **options):
        errors = []
        store = build_booking_store(on_error=errors.append)
        if errors:
            store.close()
            raise CommandError(f"Stored bookings are unusable: {errors[0]}")

        now = SystemClock().now()
        if timezone.is_aware(now):
            now = timezone.localtime(now)
        text = render_overview(store.bookings, generated_at=now)
        store.close()

        output = options['output']
        if output == '-':
            self.stdout.write(text, ending='')
            return

        path = Path(output or overview_filename(now))
        try:
            path.write_text(text, encoding='utf-8')
        except OSError as e:
            raise CommandError(f"Cannot write {path}: {e}") from e

        self.stdout.write(
            self.style.SUCCESS(f"Exported {len(store.bookings)} booking(s) to {path}")
        )
