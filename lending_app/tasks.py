import logging
import random
from datetime import date
from typing import Optional

from celery import shared_task
from django.utils import timezone

from .models import Borrower, Loan
from .services.credit_rating import rate_borrower
from .services.lending import loan_snapshot
from .services.loan_math import STATUS_CLOSED

logger = logging.getLogger(__name__)


def _parse_as_of(as_of) -> date:
    if as_of is None:
        return timezone.localdate()
    if isinstance(as_of, date):
        return as_of
    return date.fromisoformat(str(as_of)[:10])


@shared_task
def refresh_overdue_statuses(as_of: Optional[str] = None) -> dict:
    """Write the derived Active/Overdue/Closed status onto every open loan."""
    as_of = _parse_as_of(as_of)
    counts = {Loan.Status.ACTIVE: 0, Loan.Status.OVERDUE: 0, Loan.Status.CLOSED: 0}
    changed = 0
    for loan in Loan.objects.filter(status__in=Loan.OPEN_STATUSES).iterator():
        try:
            snapshot = loan_snapshot(loan, as_of)
            if snapshot.status == STATUS_CLOSED:
                new_status = Loan.Status.CLOSED
            elif snapshot.is_overdue:
                new_status = Loan.Status.OVERDUE
            else:
                new_status = Loan.Status.ACTIVE
            counts[new_status] += 1
            if new_status != loan.status:
                Loan.objects.filter(pk=loan.pk).update(status=new_status)
                changed += 1
                logger.info("Loan %s: %s -> %s (%s days overdue)",
                            loan.loan_id, loan.status, new_status, snapshot.days_overdue)
        except Exception as e:
            logger.warning("Skip loan %s: %s", loan.loan_id, e)
            continue
    logger.info("Overdue refresh as of %s: %s changed", as_of, changed)
    return {
        'ok': True,
        'as_of': as_of.isoformat(),
        'changed': changed,
        'active': counts[Loan.Status.ACTIVE],
        'overdue': counts[Loan.Status.OVERDUE],
        'closed': counts[Loan.Status.CLOSED],
    }


@shared_task
def backfill_credit_ratings(seed: Optional[int] = None, only_missing: bool = True) -> dict:
    """Assign heuristic credit ratings; pass a seed for a reproducible run."""
    rng = random.Random(seed)
    borrowers = Borrower.objects.all().order_by('borrower_id')
    if only_missing:
        borrowers = borrowers.filter(credit_rating__isnull=True)
    updated = skipped = 0
    distribution = {}
    for borrower in borrowers:
        try:
            result = rate_borrower(borrower, rng=rng)
        except Exception as e:
            logger.warning("Skip borrower %s: %s", borrower.borrower_id, e)
            skipped += 1
            continue
        Borrower.objects.filter(pk=borrower.pk).update(credit_rating=result.rating)
        distribution[str(result.rating)] = distribution.get(str(result.rating), 0) + 1
        updated += 1
    logger.info("Credit rating backfill: %s updated, %s skipped", updated, skipped)
    return {'ok': True, 'updated': updated, 'skipped': skipped, 'distribution': distribution}
