"""
Loan arithmetic shared by every endpoint: amortization, tiered rate
selection, payment schedules and overdue-interest compounding.

Rates are monthly fractions (0.15 = 15% per month).

Amortized installment (terms longer than two months):
    PMT = P * r * (1+r)^n / ((1+r)^n - 1)
Short terms (one or two months) use simple interest:
    interest = P * r * n, PMT = (P + interest) / n
Overdue interest compounds on the outstanding balance per full 30 days:
    interest = B * ((1+r)^m - 1), m = days_overdue // 30
"""
import logging
import math
from datetime import date, datetime
from decimal import Decimal
from typing import List, NamedTuple, Optional, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

logger = logging.getLogger(__name__)

Number = Union[int, float, Decimal]

SIMPLE_INTEREST_MAX_TERM = 2
DAYS_PER_OVERDUE_MONTH = 30
DEFAULT_OVERDUE_RATE = 0.15

# (exclusive upper bound, monthly rate); the last tier has no bound.
RATE_TIERS = (
    (Decimal('500000'), Decimal('0.20')),
    (Decimal('2000000'), Decimal('0.15')),
    (Decimal('5000000'), Decimal('0.12')),
    (None, Decimal('0.10')),
)

STATUS_ACTIVE = 'Active'
STATUS_OVERDUE = 'Overdue'
STATUS_CLOSED = 'Closed'


class AmortizationResult(NamedTuple):
    monthly_payment: float
    total_amount: float
    total_interest: float
    is_valid: bool


INVALID_AMORTIZATION = AmortizationResult(0.0, 0.0, 0.0, False)


class LoanStatusSnapshot(NamedTuple):
    status: str
    is_overdue: bool
    days_overdue: int
    months_overdue: int
    overdue_interest: float
    total_balance: float


class Installment(NamedTuple):
    number: int
    due_date: date
    payment: float
    principal_part: float
    interest_part: float
    remaining_balance: float


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def select_interest_rate(amount: Number) -> Decimal:
    """Monthly rate for a requested amount (UGX)."""
    amount = Decimal(str(amount))
    for upper, rate in RATE_TIERS:
        if upper is None or amount < upper:
            return rate
    return RATE_TIERS[-1][1]


def amortize(principal: Number, monthly_rate: Optional[Number], term_months: int) -> AmortizationResult:
    """
    Installment, total repayable and total interest for a loan.

    Returns INVALID_AMORTIZATION instead of raising when the principal or
    term is not positive, the rate is missing or negative, or either is
    not a finite number. Non-finite results are clamped to zero.
    """
    if monthly_rate is None or principal is None or term_months is None:
        return INVALID_AMORTIZATION
    p = float(principal)
    r = float(monthly_rate)
    n = int(term_months)
    if not (math.isfinite(p) and math.isfinite(r)):
        return INVALID_AMORTIZATION
    if p <= 0 or n <= 0 or r < 0:
        return INVALID_AMORTIZATION

    if n <= SIMPLE_INTEREST_MAX_TERM:
        total_interest = p * r * n
        total_amount = p + total_interest
        return AmortizationResult(
            _finite(total_amount / n), _finite(total_amount), _finite(total_interest), True
        )

    if r == 0:
        return AmortizationResult(p / n, p, 0.0, True)

    try:
        factor = (1 + r) ** n
    except OverflowError:
        logger.warning("Amortization overflow for principal=%s rate=%s term=%s", p, r, n)
        return AmortizationResult(0.0, 0.0, 0.0, True)
    monthly_payment = _finite(p * r * factor / (factor - 1))
    total_amount = _finite(monthly_payment * n)
    total_interest = _finite(total_amount - p) if total_amount else 0.0
    return AmortizationResult(monthly_payment, total_amount, total_interest, True)


def payment_schedule(
    principal: Number,
    monthly_rate: Number,
    term_months: int,
    start_date: date,
) -> List[Installment]:
    """Installments due one calendar month apart from start_date."""
    result = amortize(principal, monthly_rate, term_months)
    if not result.is_valid:
        return []
    p = float(principal)
    r = float(monthly_rate)
    n = int(term_months)
    # overflowed terms carry a zero payment and cannot be scheduled
    if result.monthly_payment == 0 and r > 0:
        return []
    simple = n <= SIMPLE_INTEREST_MAX_TERM

    schedule = []
    balance = p
    for number in range(1, n + 1):
        if simple:
            interest_part = result.total_interest / n
            principal_part = p / n
        else:
            interest_part = balance * r
            principal_part = result.monthly_payment - interest_part
        balance = max(0.0, balance - principal_part)
        if number == n:
            balance = 0.0
        schedule.append(Installment(
            number=number,
            due_date=start_date + relativedelta(months=number),
            payment=result.monthly_payment,
            principal_part=principal_part,
            interest_part=interest_part,
            remaining_balance=balance,
        ))
    return schedule


def outstanding_after_payments(
    principal: Number,
    monthly_rate: Number,
    term_months: int,
    payments_made: int,
) -> float:
    """
    Principal still owed after a number of scheduled installments, or 0.0
    when the terms are invalid.
    """
    if not amortize(principal, monthly_rate, term_months).is_valid:
        return 0.0
    if payments_made >= term_months:
        return 0.0
    if payments_made <= 0:
        return float(principal)
    return next(
        (
            item.remaining_balance
            for item in payment_schedule(principal, monthly_rate, term_months, date.today())
            if item.number == payments_made
        ),
        0.0,
    )


def _coerce_due_date(due_date) -> Optional[date]:
    if due_date is None or due_date == '':
        return None
    if isinstance(due_date, datetime):
        return due_date.date()
    if isinstance(due_date, date):
        return due_date
    try:
        return isoparse(str(due_date)).date()
    except ValueError:
        logger.debug("Ignoring unparseable due date %r", due_date)
        return None


def overdue_interest(outstanding_balance: Number, monthly_rate: Number, months_overdue: int) -> float:
    """Compound growth of the balance over whole overdue months."""
    if months_overdue <= 0:
        return 0.0
    balance = float(outstanding_balance)
    if balance <= 0:
        return 0.0
    try:
        return _finite(balance * ((1 + float(monthly_rate)) ** months_overdue - 1))
    except OverflowError:
        return 0.0


def derive_loan_status(
    outstanding_balance: Optional[Number],
    monthly_rate: Optional[Number],
    due_date=None,
    as_of: Optional[date] = None,
) -> LoanStatusSnapshot:
    """
    Display status of a loan on a given day.

    A loan with nothing outstanding is Closed whatever its due date. A
    positive balance past its due date is Overdue and accrues compound
    interest for each full 30 days; otherwise it is Active. A missing
    or unparseable due date is never overdue.
    """
    balance = float(outstanding_balance or 0)
    if balance <= 0:
        return LoanStatusSnapshot(STATUS_CLOSED, False, 0, 0, 0.0, balance)

    as_of = as_of or date.today()
    if isinstance(as_of, datetime):
        as_of = as_of.date()
    due = _coerce_due_date(due_date)
    days_overdue = (as_of - due).days if due is not None else 0
    if days_overdue <= 0:
        return LoanStatusSnapshot(STATUS_ACTIVE, False, 0, 0, 0.0, balance)

    rate = DEFAULT_OVERDUE_RATE if monthly_rate is None else float(monthly_rate)
    months_overdue = days_overdue // DAYS_PER_OVERDUE_MONTH
    interest = overdue_interest(balance, rate, months_overdue)
    return LoanStatusSnapshot(
        STATUS_OVERDUE, True, days_overdue, months_overdue, interest, balance + interest
    )


def overdue_bucket(days_overdue: int) -> str:
    if days_overdue > 30:
        return '30+ Days'
    if days_overdue > 7:
        return '8-30 Days'
    return '1-7 Days'
