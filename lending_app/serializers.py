import re
from decimal import Decimal

from rest_framework import serializers

from .models import Borrower, Loan, LoanApplication, Repayment, Savings, SavingsTransaction
from .services import lending
from .services.loan_math import select_interest_rate


class BorrowerCreateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    phone = serializers.CharField(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    gender = serializers.ChoiceField(choices=Borrower.Gender.choices, required=False, allow_blank=True, default='')
    date_of_birth = serializers.DateField(required=False, allow_null=True, default=None)
    national_id = serializers.CharField(max_length=30, required=False, allow_blank=True, default='')
    occupation = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    monthly_income = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal('0'), required=False, allow_null=True, default=None
    )
    status = serializers.ChoiceField(choices=Borrower.Status.choices, required=False, default=Borrower.Status.ACTIVE)

    def validate_phone(self, value):
        phone = re.sub(r'[^\d+]', '', value)
        if len(phone.lstrip('+')) < 9:
            raise serializers.ValidationError('Phone number must have at least 9 digits.')
        if Borrower.objects.filter(phone=phone).exists():
            raise serializers.ValidationError('A borrower with this phone number already exists.')
        return phone

    def validate_first_name(self, value):
        return value.strip().upper()

    def validate_last_name(self, value):
        return value.strip().upper()

    def create(self, validated_data):
        return lending.create_borrower(**validated_data)


class BorrowerSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Borrower
        fields = [
            'id', 'borrower_id', 'first_name', 'last_name', 'full_name', 'phone', 'email',
            'gender', 'date_of_birth', 'national_id', 'occupation', 'monthly_income',
            'credit_rating', 'status', 'created_at',
        ]


class ApplicationCreateSerializer(serializers.Serializer):
    borrower_id = serializers.IntegerField()
    requested_amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))
    term_months = serializers.IntegerField(min_value=1, max_value=120)
    purpose = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')

    def validate_borrower_id(self, value):
        if not Borrower.objects.filter(pk=value).exists():
            raise serializers.ValidationError('Borrower not found.')
        return value


class ApplicationSerializer(serializers.ModelSerializer):
    borrower_reference = serializers.CharField(source='borrower.borrower_id', read_only=True)
    customer_name = serializers.CharField(source='borrower.full_name', read_only=True)
    suggested_interest_rate = serializers.SerializerMethodField()

    class Meta:
        model = LoanApplication
        fields = [
            'id', 'application_id', 'borrower', 'borrower_reference', 'customer_name',
            'requested_amount', 'term_months', 'purpose', 'status', 'approved_amount',
            'rejection_reason', 'submitted_at', 'reviewed_at', 'suggested_interest_rate',
        ]

    def get_suggested_interest_rate(self, obj):
        return str(select_interest_rate(obj.requested_amount))


class ApproveApplicationSerializer(serializers.Serializer):
    approved_amount = serializers.DecimalField(max_digits=15, decimal_places=2)


class RejectApplicationSerializer(serializers.Serializer):
    rejection_reason = serializers.CharField(max_length=1000)


class LoanCalculatorSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    term_months = serializers.IntegerField()
    interest_rate = serializers.DecimalField(
        max_digits=6, decimal_places=4, min_value=Decimal('0'), required=False, allow_null=True, default=None
    )


class LoanSerializer(serializers.ModelSerializer):
    """Loan record plus its derived status as of context['as_of'] (default today)."""
    borrower_reference = serializers.CharField(source='borrower.borrower_id', read_only=True)
    customer_name = serializers.CharField(source='borrower.full_name', read_only=True)

    class Meta:
        model = Loan
        fields = [
            'id', 'loan_id', 'borrower', 'borrower_reference', 'customer_name', 'principal',
            'interest_rate', 'term_months', 'monthly_payment', 'total_interest', 'total_amount',
            'outstanding_balance', 'status', 'purpose', 'disbursed_at', 'next_payment_date',
            'created_at',
        ]

    def to_representation(self, instance):
        data = super().to_representation(instance)
        snapshot = lending.loan_snapshot(instance, self.context.get('as_of'))
        data.update({
            'display_status': snapshot.status,
            'is_overdue': snapshot.is_overdue,
            'days_overdue': snapshot.days_overdue,
            'months_overdue': snapshot.months_overdue,
            'overdue_interest': round(snapshot.overdue_interest, 2),
            'total_balance': round(snapshot.total_balance, 2),
        })
        return data


class InstallmentSerializer(serializers.Serializer):
    number = serializers.IntegerField()
    due_date = serializers.DateField()
    payment = serializers.FloatField()
    principal_part = serializers.FloatField()
    interest_part = serializers.FloatField()
    remaining_balance = serializers.FloatField()

    def to_representation(self, instance):
        data = super().to_representation(instance)
        for key in ('payment', 'principal_part', 'interest_part', 'remaining_balance'):
            data[key] = round(data[key], 2)
        return data


class RepaymentCreateSerializer(serializers.Serializer):
    loan_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=15, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=Repayment.Method.choices, default=Repayment.Method.CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class RepaymentSerializer(serializers.ModelSerializer):
    loan_reference = serializers.CharField(source='loan.loan_id', read_only=True)
    borrower_reference = serializers.CharField(source='borrower.borrower_id', read_only=True)
    customer_name = serializers.CharField(source='borrower.full_name', read_only=True)
    loan_status = serializers.CharField(source='loan.status', read_only=True)
    remaining_balance = serializers.DecimalField(
        source='loan.outstanding_balance', max_digits=15, decimal_places=2, read_only=True
    )

    class Meta:
        model = Repayment
        fields = [
            'id', 'receipt_number', 'loan', 'loan_reference', 'borrower', 'borrower_reference',
            'customer_name', 'amount', 'paid_at', 'payment_method', 'notes', 'loan_status',
            'remaining_balance',
        ]


class SavingsCreateSerializer(serializers.Serializer):
    borrower_id = serializers.IntegerField()
    initial_deposit = serializers.DecimalField(
        max_digits=15, decimal_places=2, min_value=Decimal('0'), required=False, default=Decimal('0')
    )

    def validate_borrower_id(self, value):
        if not Borrower.objects.filter(pk=value).exists():
            raise serializers.ValidationError('Borrower not found.')
        return value


class AmountSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))


class SavingsTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = SavingsTransaction
        fields = ['id', 'kind', 'amount', 'created_at']


class SavingsSerializer(serializers.ModelSerializer):
    borrower_reference = serializers.CharField(source='borrower.borrower_id', read_only=True)
    customer_name = serializers.CharField(source='borrower.full_name', read_only=True)

    class Meta:
        model = Savings
        fields = ['id', 'account_number', 'borrower', 'borrower_reference', 'customer_name', 'balance', 'opened_at']
