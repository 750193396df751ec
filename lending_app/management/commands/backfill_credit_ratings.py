from django.core.management.base import BaseCommand

from lending_app.tasks import backfill_credit_ratings


class Command(BaseCommand):
    help = 'Assign heuristic credit ratings to borrowers via Celery'

    def add_arguments(self, parser):
        parser.add_argument(
            '--sync',
            action='store_true',
            help='Run the backfill synchronously instead of via Celery',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Seed for the rating jitter, for reproducible runs',
        )
        parser.add_argument(
            '--all',
            action='store_true',
            dest='rate_all',
            help='Re-rate borrowers that already have a rating',
        )

    def handle(self, *args, **options):
        only_missing = not options['rate_all']
        if options['sync']:
            self.stdout.write('Running credit rating backfill synchronously...')
            result = backfill_credit_ratings(seed=options['seed'], only_missing=only_missing)
            self.stdout.write(f"Updated: {result['updated']}, skipped: {result['skipped']}")
            for rating, count in sorted(result['distribution'].items()):
                self.stdout.write(f'  {rating}: {count}')
            self.stdout.write(self.style.SUCCESS('Done.'))
            return

        self.stdout.write('Enqueueing Celery task...')
        backfill_credit_ratings.delay(seed=options['seed'], only_missing=only_missing)
        self.stdout.write(self.style.SUCCESS(
            'Task enqueued. Ensure Celery worker is running to process it.'
        ))
