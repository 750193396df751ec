from django.core.management.base import BaseCommand, CommandError

from lending_app.tasks import refresh_overdue_statuses


class Command(BaseCommand):
    help = 'Recompute Active/Overdue/Closed status for open loans'

    def add_arguments(self, parser):
        parser.add_argument(
            '--sync',
            action='store_true',
            help='Run synchronously instead of via Celery',
        )
        parser.add_argument(
            '--as-of',
            default=None,
            help='Evaluate as of this ISO date (YYYY-MM-DD) instead of today',
        )

    def handle(self, *args, **options):
        as_of = options['as_of']
        if options['sync']:
            try:
                result = refresh_overdue_statuses(as_of)
            except ValueError as e:
                raise CommandError(f'Invalid --as-of date: {as_of}') from e
            self.stdout.write(
                f"As of {result['as_of']}: {result['changed']} changed, "
                f"{result['active']} active, {result['overdue']} overdue, {result['closed']} closed"
            )
            self.stdout.write(self.style.SUCCESS('Done.'))
            return

        refresh_overdue_statuses.delay(as_of)
        self.stdout.write(self.style.SUCCESS(
            'Task enqueued. Ensure Celery worker is running to process it.'
        ))
