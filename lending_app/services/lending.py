"""
Loan lifecycle: application review, disbursement, repayments and savings
movements. Every balance change happens inside a transaction; loan terms
always come from services.loan_math.
"""
import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db import transaction
from django.db.models.functions import Length
from django.utils import timezone

from lending_app.exceptions import InsufficientFunds, InvalidLoanState, LendingError, RepaymentRejected
from lending_app.models import (
    Borrower,
    CreditRating,
    Loan,
    LoanApplication,
    Repayment,
    Savings,
    SavingsTransaction,
)
from lending_app.services.loan_math import (
    STATUS_CLOSED,
    LoanStatusSnapshot,
    amortize,
    derive_loan_status,
    select_interest_rate,
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


def next_business_id(model, field: str, prefix: str, width: int = 3) -> str:
    """
    Next sequential id such as B001, LN012 or REC140. Ids longer than the
    padding sort after shorter ones, so ordering by length first keeps
    LN1000 after LN999.
    """
    latest = (
        model.objects.filter(**{f'{field}__startswith': prefix})
        .annotate(id_length=Length(field))
        .order_by('-id_length', f'-{field}')
        .values_list(field, flat=True)
        .first()
    )
    number = 1
    if latest:
        suffix = latest[len(prefix):]
        if suffix.isdigit():
            number = int(suffix) + 1
    return f'{prefix}{number:0{width}d}'


def default_overdue_rate() -> Decimal:
    return Decimal(str(getattr(settings, 'LENDING_DEFAULT_OVERDUE_RATE', '0.15')))


def loan_snapshot(loan: Loan, as_of: Optional[date] = None) -> LoanStatusSnapshot:
    rate = loan.interest_rate if loan.interest_rate is not None else default_overdue_rate()
    return derive_loan_status(
        loan.outstanding_balance, rate, loan.next_payment_date, as_of or timezone.localdate()
    )


def create_borrower(**fields) -> Borrower:
    with transaction.atomic():
        borrower_id = next_business_id(Borrower, 'borrower_id', 'B')
        return Borrower.objects.create(borrower_id=borrower_id, **fields)


def submit_application(borrower: Borrower, requested_amount, term_months: int, purpose: str = '') -> LoanApplication:
    with transaction.atomic():
        application_id = next_business_id(LoanApplication, 'application_id', 'APP')
        application = LoanApplication.objects.create(
            application_id=application_id,
            borrower=borrower,
            requested_amount=to_money(requested_amount),
            term_months=term_months,
            purpose=purpose,
        )
    logger.info("Application %s submitted by %s", application_id, borrower.borrower_id)
    return application


def approve_application(application: LoanApplication, approved_amount, today: Optional[date] = None) -> Loan:
    """
    Approve an application and create its loan. The rate is chosen by
    tier on the approved amount; the first payment falls due
    LENDING_FIRST_PAYMENT_DAYS after approval.
    """
    if application.status == LoanApplication.Status.APPROVED:
        raise InvalidLoanState('Application is already approved')
    principal = to_money(approved_amount)
    if principal <= 0:
        raise InvalidLoanState('Valid approved amount is required')

    rate = select_interest_rate(principal)
    terms = amortize(principal, rate, application.term_months)
    if not terms.is_valid:
        raise InvalidLoanState('Loan terms could not be calculated')

    today = today or timezone.localdate()
    total_interest = to_money(terms.total_interest)
    total_amount = principal + total_interest
    first_payment_days = getattr(settings, 'LENDING_FIRST_PAYMENT_DAYS', 30)

    with transaction.atomic():
        application.status = LoanApplication.Status.APPROVED
        application.approved_amount = principal
        application.rejection_reason = ''
        application.reviewed_at = timezone.now()
        application.save(update_fields=['status', 'approved_amount', 'rejection_reason', 'reviewed_at'])

        loan = Loan.objects.create(
            loan_id=next_business_id(Loan, 'loan_id', 'LN'),
            application=application,
            borrower=application.borrower,
            principal=principal,
            interest_rate=rate,
            term_months=application.term_months,
            monthly_payment=to_money(terms.monthly_payment),
            total_interest=total_interest,
            total_amount=total_amount,
            outstanding_balance=total_amount,
            status=Loan.Status.APPROVED,
            purpose=application.purpose,
            next_payment_date=today + timedelta(days=first_payment_days),
        )

        borrower = application.borrower
        if borrower.credit_rating is None and borrower.loans.count() == 1:
            borrower.credit_rating = CreditRating.FAIR
            borrower.save(update_fields=['credit_rating'])

    logger.info(
        "Application %s approved: loan %s principal=%s rate=%s term=%s",
        application.application_id, loan.loan_id, principal, rate, loan.term_months,
    )
    return loan


def reject_application(application: LoanApplication, reason: str) -> LoanApplication:
    if application.status != LoanApplication.Status.PENDING:
        raise InvalidLoanState(f'Application is already {application.status.lower()}')
    if not reason:
        raise InvalidLoanState('Rejection reason is required')
    application.status = LoanApplication.Status.REJECTED
    application.rejection_reason = reason
    application.reviewed_at = timezone.now()
    application.save(update_fields=['status', 'rejection_reason', 'reviewed_at'])
    return application


def disburse_loan(loan: Loan, disbursed_on: Optional[date] = None) -> Loan:
    if loan.status != Loan.Status.APPROVED:
        raise InvalidLoanState(f'Only approved loans can be disbursed (status {loan.status})')
    disbursed_on = disbursed_on or timezone.localdate()
    loan.disbursed_at = disbursed_on
    loan.next_payment_date = disbursed_on + relativedelta(months=1)
    loan.status = Loan.Status.ACTIVE
    loan.save(update_fields=['disbursed_at', 'next_payment_date', 'status'])
    logger.info("Loan %s disbursed on %s", loan.loan_id, disbursed_on)
    return loan


def _status_after_balance_change(loan: Loan, as_of: date) -> str:
    snapshot = loan_snapshot(loan, as_of)
    if snapshot.status == STATUS_CLOSED:
        return Loan.Status.CLOSED
    if snapshot.is_overdue:
        return Loan.Status.OVERDUE
    return Loan.Status.ACTIVE


def record_repayment(loan: Loan, amount, payment_method: str = Repayment.Method.CASH,
                     notes: str = '', paid_at=None) -> Repayment:
    """
    Record a payment against an open loan. The balance drops by the
    amount, the next due date moves one calendar month on, and the loan
    closes when nothing is left.
    """
    amount = to_money(amount)
    with transaction.atomic():
        loan = Loan.objects.select_for_update().get(pk=loan.pk)
        if loan.status not in Loan.OPEN_STATUSES:
            raise InvalidLoanState(f'Loan {loan.loan_id} does not accept repayments (status {loan.status})')
        if amount <= 0:
            raise RepaymentRejected('Repayment amount must be greater than zero')
        if amount > loan.outstanding_balance:
            raise RepaymentRejected(
                f'Repayment of {amount} exceeds outstanding balance {loan.outstanding_balance}'
            )

        repayment = Repayment.objects.create(
            receipt_number=next_business_id(Repayment, 'receipt_number', 'REC'),
            loan=loan,
            borrower=loan.borrower,
            amount=amount,
            payment_method=payment_method,
            notes=notes,
            paid_at=paid_at or timezone.now(),
        )
        loan.outstanding_balance -= amount
        if loan.next_payment_date is not None:
            loan.next_payment_date += relativedelta(months=1)
        loan.status = _status_after_balance_change(loan, timezone.localdate())
        loan.save(update_fields=['outstanding_balance', 'next_payment_date', 'status'])

    logger.info(
        "Repayment %s of %s on loan %s, balance now %s",
        repayment.receipt_number, amount, loan.loan_id, loan.outstanding_balance,
    )
    return repayment


def reverse_repayment(repayment: Repayment) -> Loan:
    """Delete a repayment and put its amount back on the loan."""
    with transaction.atomic():
        loan = Loan.objects.select_for_update().get(pk=repayment.loan_id)
        loan.outstanding_balance += repayment.amount
        if loan.next_payment_date is not None:
            loan.next_payment_date -= relativedelta(months=1)
        if loan.status in Loan.OPEN_STATUSES or loan.status == Loan.Status.CLOSED:
            loan.status = _status_after_balance_change(loan, timezone.localdate())
        loan.save(update_fields=['outstanding_balance', 'next_payment_date', 'status'])
        repayment.delete()
    logger.warning("Repayment reversed on loan %s, balance restored to %s", loan.loan_id, loan.outstanding_balance)
    return loan


def open_savings(borrower: Borrower, initial_deposit=0) -> Savings:
    initial_deposit = to_money(initial_deposit)
    if initial_deposit < 0:
        raise InsufficientFunds('Initial deposit cannot be negative')
    with transaction.atomic():
        savings = Savings.objects.create(
            account_number=next_business_id(Savings, 'account_number', 'SAV'),
            borrower=borrower,
        )
        if initial_deposit > 0:
            deposit(savings, initial_deposit)
            savings.refresh_from_db()
    return savings


def deposit(savings: Savings, amount) -> SavingsTransaction:
    amount = to_money(amount)
    if amount <= 0:
        raise LendingError('Deposit amount must be greater than zero')
    with transaction.atomic():
        account = Savings.objects.select_for_update().get(pk=savings.pk)
        account.balance += amount
        account.save(update_fields=['balance'])
        return SavingsTransaction.objects.create(
            savings=account, kind=SavingsTransaction.Kind.DEPOSIT, amount=amount
        )


def withdraw(savings: Savings, amount) -> SavingsTransaction:
    amount = to_money(amount)
    if amount <= 0:
        raise LendingError('Withdrawal amount must be greater than zero')
    with transaction.atomic():
        account = Savings.objects.select_for_update().get(pk=savings.pk)
        if amount > account.balance:
            raise InsufficientFunds(
                f'Withdrawal of {amount} exceeds balance {account.balance} on {account.account_number}'
            )
        account.balance -= amount
        account.save(update_fields=['balance'])
        return SavingsTransaction.objects.create(
            savings=account, kind=SavingsTransaction.Kind.WITHDRAWAL, amount=amount
        )
