from decimal import Decimal

from django.db import models
from django.utils import timezone

MONEY = {'max_digits': 15, 'decimal_places': 2}
RATE = {'max_digits': 6, 'decimal_places': 4}


class CreditRating(models.TextChoices):
    VERY_POOR = 'VERY_POOR', 'Very Poor'
    POOR = 'POOR', 'Poor'
    FAIR = 'FAIR', 'Fair'
    GOOD = 'GOOD', 'Good'
    VERY_GOOD = 'VERY_GOOD', 'Very Good'
    EXCELLENT = 'EXCELLENT', 'Excellent'


class Borrower(models.Model):
    class Gender(models.TextChoices):
        MALE = 'MALE'
        FEMALE = 'FEMALE'
        OTHER = 'OTHER'

    class Status(models.TextChoices):
        ACTIVE = 'ACTIVE'
        INACTIVE = 'INACTIVE'
        BLACKLISTED = 'BLACKLISTED'
        UNDER_REVIEW = 'UNDER_REVIEW'

    borrower_id = models.CharField(max_length=20, unique=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    phone = models.CharField(max_length=20, unique=True)
    email = models.EmailField(blank=True, default='')
    gender = models.CharField(max_length=10, choices=Gender.choices, blank=True, default='')
    date_of_birth = models.DateField(null=True, blank=True)
    national_id = models.CharField(max_length=30, blank=True, default='')
    occupation = models.CharField(max_length=100, blank=True, default='')
    monthly_income = models.DecimalField(null=True, blank=True, **MONEY)
    credit_rating = models.CharField(max_length=10, choices=CreditRating.choices, null=True, blank=True)
    status = models.CharField(max_length=15, choices=Status.choices, default=Status.ACTIVE)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'lending_borrower'
        ordering = ['borrower_id']

    def __str__(self):
        return f"{self.borrower_id} {self.full_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class LoanApplication(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING'
        APPROVED = 'APPROVED'
        REJECTED = 'REJECTED'

    application_id = models.CharField(max_length=20, unique=True)
    borrower = models.ForeignKey(Borrower, on_delete=models.PROTECT, related_name='applications')
    requested_amount = models.DecimalField(**MONEY)
    term_months = models.PositiveIntegerField()
    purpose = models.CharField(max_length=255, blank=True, default='')
    status = models.CharField(max_length=10, choices=Status.choices, default=Status.PENDING)
    approved_amount = models.DecimalField(null=True, blank=True, **MONEY)
    rejection_reason = models.TextField(blank=True, default='')
    submitted_at = models.DateTimeField(default=timezone.now)
    reviewed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'lending_loan_application'
        ordering = ['-submitted_at', '-id']


class Loan(models.Model):
    class Status(models.TextChoices):
        PENDING = 'PENDING'
        APPROVED = 'APPROVED'
        DISBURSED = 'DISBURSED'
        ACTIVE = 'ACTIVE'
        CLOSED = 'CLOSED'
        OVERDUE = 'OVERDUE'
        DEFAULTED = 'DEFAULTED'
        RESTRUCTURED = 'RESTRUCTURED'
        WRITTEN_OFF = 'WRITTEN_OFF'

    # Statuses that accept repayments and take part in overdue tracking.
    OPEN_STATUSES = (Status.DISBURSED, Status.ACTIVE, Status.OVERDUE)

    loan_id = models.CharField(max_length=20, unique=True)
    application = models.OneToOneField(
        LoanApplication, on_delete=models.PROTECT, related_name='loan', null=True, blank=True
    )
    borrower = models.ForeignKey(Borrower, on_delete=models.PROTECT, related_name='loans')
    principal = models.DecimalField(**MONEY)
    interest_rate = models.DecimalField(null=True, blank=True, **RATE)
    term_months = models.PositiveIntegerField()
    monthly_payment = models.DecimalField(default=Decimal('0'), **MONEY)
    total_interest = models.DecimalField(default=Decimal('0'), **MONEY)
    total_amount = models.DecimalField(default=Decimal('0'), **MONEY)
    outstanding_balance = models.DecimalField(default=Decimal('0'), **MONEY)
    status = models.CharField(max_length=15, choices=Status.choices, default=Status.PENDING)
    purpose = models.CharField(max_length=255, blank=True, default='')
    disbursed_at = models.DateField(null=True, blank=True)
    next_payment_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'lending_loan'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status', 'next_payment_date'], name='lending_loan_status_due_idx'),
        ]

    def __str__(self):
        return self.loan_id


class Repayment(models.Model):
    class Method(models.TextChoices):
        CASH = 'CASH'
        MOBILE_MONEY = 'MOBILE_MONEY'
        BANK_TRANSFER = 'BANK_TRANSFER'

    receipt_number = models.CharField(max_length=20, unique=True)
    loan = models.ForeignKey(Loan, on_delete=models.PROTECT, related_name='repayments')
    borrower = models.ForeignKey(Borrower, on_delete=models.PROTECT, related_name='repayments')
    amount = models.DecimalField(**MONEY)
    paid_at = models.DateTimeField(default=timezone.now)
    payment_method = models.CharField(max_length=15, choices=Method.choices, default=Method.CASH)
    notes = models.TextField(blank=True, default='')

    class Meta:
        db_table = 'lending_repayment'
        ordering = ['-paid_at', '-id']


class Savings(models.Model):
    account_number = models.CharField(max_length=20, unique=True)
    borrower = models.ForeignKey(Borrower, on_delete=models.PROTECT, related_name='savings')
    balance = models.DecimalField(default=Decimal('0'), **MONEY)
    opened_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'lending_savings'
        ordering = ['-opened_at', '-id']
        verbose_name_plural = 'savings'


class SavingsTransaction(models.Model):
    class Kind(models.TextChoices):
        DEPOSIT = 'DEPOSIT'
        WITHDRAWAL = 'WITHDRAWAL'

    savings = models.ForeignKey(Savings, on_delete=models.CASCADE, related_name='transactions')
    kind = models.CharField(max_length=10, choices=Kind.choices)
    amount = models.DecimalField(**MONEY)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'lending_savings_transaction'
        ordering = ['-created_at', '-id']
