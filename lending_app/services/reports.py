"""Portfolio totals, overdue listings and monthly repayment reports."""
import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Tuple

import pandas as pd
from django.db.models import Count, Sum
from django.utils import timezone

from lending_app.models import Borrower, Loan, LoanApplication, Repayment, Savings
from lending_app.services.lending import loan_snapshot
from lending_app.services.loan_math import LoanStatusSnapshot, overdue_bucket

logger = logging.getLogger(__name__)

OVERDUE_BUCKETS = ('1-7 Days', '8-30 Days', '30+ Days')


def _sum(queryset, field) -> Decimal:
    return queryset.aggregate(s=Sum(field))['s'] or Decimal('0')


def overdue_loans(as_of: Optional[date] = None) -> List[Tuple[Loan, LoanStatusSnapshot]]:
    """Open loans past their due date, oldest due date first."""
    as_of = as_of or timezone.localdate()
    candidates = (
        Loan.objects.select_related('borrower')
        .filter(status__in=Loan.OPEN_STATUSES, outstanding_balance__gt=0, next_payment_date__lt=as_of)
        .order_by('next_payment_date', 'id')
    )
    result = []
    for loan in candidates:
        snapshot = loan_snapshot(loan, as_of)
        if snapshot.is_overdue:
            result.append((loan, snapshot))
    return result


def overdue_stats(as_of: Optional[date] = None) -> dict:
    categories = dict.fromkeys(OVERDUE_BUCKETS, 0)
    total_amount = Decimal('0')
    total_interest = 0.0
    loans = overdue_loans(as_of)
    for loan, snapshot in loans:
        categories[overdue_bucket(snapshot.days_overdue)] += 1
        total_amount += loan.outstanding_balance
        total_interest += snapshot.overdue_interest
    return {
        'total': len(loans),
        'total_amount': total_amount,
        'total_overdue_interest': round(total_interest, 2),
        'categories': categories,
    }


def dashboard_stats(as_of: Optional[date] = None) -> dict:
    loans = Loan.objects.all()
    repayments = Repayment.objects.all()
    savings = Savings.objects.all()
    status_counts = dict(loans.order_by().values_list('status').annotate(n=Count('id')))
    overdue = overdue_stats(as_of)
    return {
        'borrowers': {
            'total': Borrower.objects.count(),
            'active': Borrower.objects.filter(status=Borrower.Status.ACTIVE).count(),
        },
        'applications': {
            'total': LoanApplication.objects.count(),
            'pending': LoanApplication.objects.filter(status=LoanApplication.Status.PENDING).count(),
        },
        'loans': {
            'total': loans.count(),
            'by_status': status_counts,
            'disbursed': _sum(loans.exclude(status__in=[Loan.Status.PENDING, Loan.Status.APPROVED]), 'principal'),
            'total_amount': _sum(loans, 'total_amount'),
            'projected_interest': _sum(loans, 'total_interest'),
            'outstanding': _sum(loans, 'outstanding_balance'),
        },
        'repayments': {
            'total': repayments.count(),
            'total_amount': _sum(repayments, 'amount'),
        },
        'savings': {
            'total': savings.count(),
            'total_balance': _sum(savings, 'balance'),
        },
        'overdue': overdue,
    }


def borrower_statistics(borrower: Borrower) -> dict:
    loans = borrower.loans.all()
    return {
        'borrower_id': borrower.borrower_id,
        'applications': borrower.applications.count(),
        'loans': loans.count(),
        'active_loans': loans.filter(status__in=Loan.OPEN_STATUSES).count(),
        'total_borrowed': _sum(loans, 'principal'),
        'total_repaid': _sum(borrower.repayments.all(), 'amount'),
        'outstanding': _sum(loans, 'outstanding_balance'),
        'savings_balance': _sum(borrower.savings.all(), 'balance'),
    }


def monthly_repayment_report(start: Optional[date] = None, end: Optional[date] = None) -> List[dict]:
    """
    Repayments grouped by calendar month: count, total and a total per
    payment method. Months without repayments are omitted.
    """
    queryset = Repayment.objects.all()
    if start:
        queryset = queryset.filter(paid_at__date__gte=start)
    if end:
        queryset = queryset.filter(paid_at__date__lte=end)
    rows = list(queryset.values('paid_at', 'amount', 'payment_method'))
    if not rows:
        return []

    df = pd.DataFrame(rows)
    df['amount'] = df['amount'].astype(float)
    paid_at = pd.to_datetime(df['paid_at'], utc=True).dt.tz_convert(timezone.get_current_timezone_name())
    df['month'] = paid_at.dt.tz_localize(None).dt.to_period('M').astype(str)

    totals = df.groupby('month')['amount'].agg(['count', 'sum'])
    by_method = df.pivot_table(
        index='month', columns='payment_method', values='amount', aggfunc='sum', fill_value=0.0
    )
    logger.debug("Monthly repayment report over %d repayments, %d months", len(df), len(totals))

    report = []
    for month, row in totals.sort_index().iterrows():
        methods = by_method.loc[month]
        report.append({
            'month': month,
            'count': int(row['count']),
            'total': round(float(row['sum']), 2),
            'by_method': {method: round(float(value), 2) for method, value in methods.items() if value},
        })
    return report
