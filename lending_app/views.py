import logging
from datetime import date

from django.db.models import Q
from django.utils import timezone
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from .exceptions import LendingError
from .models import Borrower, Loan, LoanApplication, Repayment, Savings
from .serializers import (
    AmountSerializer,
    ApplicationCreateSerializer,
    ApplicationSerializer,
    ApproveApplicationSerializer,
    BorrowerCreateSerializer,
    BorrowerSerializer,
    InstallmentSerializer,
    LoanCalculatorSerializer,
    LoanSerializer,
    RejectApplicationSerializer,
    RepaymentCreateSerializer,
    RepaymentSerializer,
    SavingsCreateSerializer,
    SavingsSerializer,
    SavingsTransactionSerializer,
)
from .services import lending, reports
from .services.loan_math import (
    amortize,
    outstanding_after_payments,
    overdue_bucket,
    payment_schedule,
    select_interest_rate,
)

logger = logging.getLogger(__name__)


def _find(queryset, ref, business_field):
    """Look a record up by business id (LN001) or primary key."""
    lookup = Q(**{business_field: ref})
    if str(ref).isdigit():
        lookup |= Q(pk=int(ref))
    return queryset.filter(lookup).first()


def _not_found(label):
    return Response({'detail': f'{label} not found'}, status=status.HTTP_404_NOT_FOUND)


def _rejected(error: LendingError):
    return Response({'detail': str(error)}, status=status.HTTP_400_BAD_REQUEST)


def _as_of(request):
    """?as_of=YYYY-MM-DD, defaulting to today. Returns None when malformed."""
    raw = request.query_params.get('as_of')
    if not raw:
        return timezone.localdate()
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def _bad_as_of():
    return Response({'as_of': ['Date must be YYYY-MM-DD.']}, status=status.HTTP_400_BAD_REQUEST)


class BorrowerListView(APIView):
    def get(self, request):
        borrowers = Borrower.objects.all()
        search = request.query_params.get('search')
        if search:
            borrowers = borrowers.filter(
                Q(first_name__icontains=search) | Q(last_name__icontains=search)
                | Q(phone__icontains=search) | Q(borrower_id__iexact=search)
            )
        if request.query_params.get('status'):
            borrowers = borrowers.filter(status=request.query_params['status'])
        return Response(BorrowerSerializer(borrowers, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = BorrowerCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        borrower = serializer.save()
        return Response(BorrowerSerializer(borrower).data, status=status.HTTP_201_CREATED)


class BorrowerDetailView(APIView):
    def get(self, request, ref):
        borrower = _find(Borrower.objects.all(), ref, 'borrower_id')
        if borrower is None:
            return _not_found('Borrower')
        return Response(BorrowerSerializer(borrower).data, status=status.HTTP_200_OK)


class BorrowerStatisticsView(APIView):
    def get(self, request, ref):
        borrower = _find(Borrower.objects.all(), ref, 'borrower_id')
        if borrower is None:
            return _not_found('Borrower')
        return Response(reports.borrower_statistics(borrower), status=status.HTTP_200_OK)


class ApplicationListView(APIView):
    def get(self, request):
        applications = LoanApplication.objects.select_related('borrower')
        if request.query_params.get('status'):
            applications = applications.filter(status=request.query_params['status'].upper())
        return Response(ApplicationSerializer(applications, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = ApplicationCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        application = lending.submit_application(
            borrower=Borrower.objects.get(pk=data['borrower_id']),
            requested_amount=data['requested_amount'],
            term_months=data['term_months'],
            purpose=data['purpose'],
        )
        return Response(ApplicationSerializer(application).data, status=status.HTTP_201_CREATED)


class ApproveApplicationView(APIView):
    def post(self, request, ref):
        application = _find(LoanApplication.objects.select_related('borrower'), ref, 'application_id')
        if application is None:
            return _not_found('Application')
        serializer = ApproveApplicationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            loan = lending.approve_application(application, serializer.validated_data['approved_amount'])
        except LendingError as e:
            return _rejected(e)
        return Response(
            {
                'application': ApplicationSerializer(application).data,
                'loan': LoanSerializer(loan).data,
                'message': f'Application approved. Loan {loan.loan_id} has been created.',
            },
            status=status.HTTP_201_CREATED,
        )


class RejectApplicationView(APIView):
    def post(self, request, ref):
        application = _find(LoanApplication.objects.select_related('borrower'), ref, 'application_id')
        if application is None:
            return _not_found('Application')
        serializer = RejectApplicationSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            lending.reject_application(application, serializer.validated_data['rejection_reason'])
        except LendingError as e:
            return _rejected(e)
        return Response(ApplicationSerializer(application).data, status=status.HTTP_200_OK)


class LoanCalculatorView(APIView):
    """Preview of loan terms. Invalid input yields is_valid=false, not an error."""

    def post(self, request):
        serializer = LoanCalculatorSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        rate = data['interest_rate']
        if rate is None:
            rate = select_interest_rate(data['amount'])
        result = amortize(data['amount'], rate, data['term_months'])
        return Response(
            {
                'amount': str(data['amount']),
                'term_months': data['term_months'],
                'interest_rate': str(rate),
                'monthly_payment': round(result.monthly_payment, 2),
                'total_amount': round(result.total_amount, 2),
                'total_interest': round(result.total_interest, 2),
                'is_valid': result.is_valid,
            },
            status=status.HTTP_200_OK,
        )


class LoanListView(APIView):
    def get(self, request):
        as_of = _as_of(request)
        if as_of is None:
            return _bad_as_of()
        loans = Loan.objects.select_related('borrower')
        if request.query_params.get('status'):
            loans = loans.filter(status=request.query_params['status'].upper())
        if request.query_params.get('borrower'):
            borrower = _find(Borrower.objects.all(), request.query_params['borrower'], 'borrower_id')
            if borrower is None:
                return _not_found('Borrower')
            loans = loans.filter(borrower=borrower)
        serializer = LoanSerializer(loans, many=True, context={'as_of': as_of})
        return Response(serializer.data, status=status.HTTP_200_OK)


class LoanDetailView(APIView):
    def get(self, request, ref):
        as_of = _as_of(request)
        if as_of is None:
            return _bad_as_of()
        loan = _find(Loan.objects.select_related('borrower'), ref, 'loan_id')
        if loan is None:
            return _not_found('Loan')
        return Response(LoanSerializer(loan, context={'as_of': as_of}).data, status=status.HTTP_200_OK)


class DisburseLoanView(APIView):
    def post(self, request, ref):
        loan = _find(Loan.objects.select_related('borrower'), ref, 'loan_id')
        if loan is None:
            return _not_found('Loan')
        try:
            lending.disburse_loan(loan)
        except LendingError as e:
            return _rejected(e)
        return Response(LoanSerializer(loan).data, status=status.HTTP_200_OK)


class LoanScheduleView(APIView):
    def get(self, request, ref):
        loan = _find(Loan.objects.all(), ref, 'loan_id')
        if loan is None:
            return _not_found('Loan')
        start = loan.disbursed_at or timezone.localdate(loan.created_at)
        schedule = payment_schedule(loan.principal, loan.interest_rate, loan.term_months, start)
        paid = min(loan.repayments.count(), loan.term_months)
        remaining = outstanding_after_payments(loan.principal, loan.interest_rate, loan.term_months, paid)
        return Response(
            {
                'loan_id': loan.loan_id,
                'start_date': start.isoformat(),
                'installments_paid': paid,
                'scheduled_principal_remaining': round(remaining, 2),
                'installments': InstallmentSerializer(schedule, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class RepaymentListView(APIView):
    def get(self, request):
        repayments = Repayment.objects.select_related('loan', 'borrower')
        if request.query_params.get('loan'):
            loan = _find(Loan.objects.all(), request.query_params['loan'], 'loan_id')
            if loan is None:
                return _not_found('Loan')
            repayments = repayments.filter(loan=loan)
        return Response(RepaymentSerializer(repayments, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = RepaymentCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        loan = Loan.objects.filter(pk=data['loan_id']).first()
        if loan is None:
            return _not_found('Loan')
        try:
            repayment = lending.record_repayment(
                loan, data['amount'], payment_method=data['payment_method'], notes=data['notes']
            )
        except LendingError as e:
            return _rejected(e)
        return Response(RepaymentSerializer(repayment).data, status=status.HTTP_201_CREATED)


class RepaymentDetailView(APIView):
    def delete(self, request, pk):
        repayment = Repayment.objects.filter(pk=pk).first()
        if repayment is None:
            return _not_found('Repayment')
        loan = lending.reverse_repayment(repayment)
        return Response(
            {
                'detail': 'Repayment deleted',
                'loan_id': loan.loan_id,
                'outstanding_balance': str(loan.outstanding_balance),
                'status': loan.status,
            },
            status=status.HTTP_200_OK,
        )


class OverdueListView(APIView):
    def get(self, request):
        as_of = _as_of(request)
        if as_of is None:
            return _bad_as_of()
        data = [
            {
                'id': loan.pk,
                'loan_id': loan.loan_id,
                'borrower_reference': loan.borrower.borrower_id,
                'customer_name': loan.borrower.full_name,
                'contact': loan.borrower.phone,
                'principal': str(loan.principal),
                'outstanding_balance': str(loan.outstanding_balance),
                'next_payment_date': loan.next_payment_date.isoformat(),
                'status': loan.status,
                'days_overdue': snapshot.days_overdue,
                'months_overdue': snapshot.months_overdue,
                'overdue_category': overdue_bucket(snapshot.days_overdue),
                'overdue_interest': round(snapshot.overdue_interest, 2),
                'total_balance': round(snapshot.total_balance, 2),
            }
            for loan, snapshot in reports.overdue_loans(as_of)
        ]
        return Response(data, status=status.HTTP_200_OK)


class OverdueStatsView(APIView):
    def get(self, request):
        as_of = _as_of(request)
        if as_of is None:
            return _bad_as_of()
        stats = reports.overdue_stats(as_of)
        return Response(stats, status=status.HTTP_200_OK)


class SavingsListView(APIView):
    def get(self, request):
        savings = Savings.objects.select_related('borrower')
        return Response(SavingsSerializer(savings, many=True).data, status=status.HTTP_200_OK)

    def post(self, request):
        serializer = SavingsCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data
        try:
            savings = lending.open_savings(
                Borrower.objects.get(pk=data['borrower_id']), data['initial_deposit']
            )
        except LendingError as e:
            return _rejected(e)
        return Response(SavingsSerializer(savings).data, status=status.HTTP_201_CREATED)


class SavingsMovementView(APIView):
    operation = None

    def post(self, request, ref):
        savings = _find(Savings.objects.select_related('borrower'), ref, 'account_number')
        if savings is None:
            return _not_found('Savings account')
        serializer = AmountSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            movement = self.operation(savings, serializer.validated_data['amount'])
        except LendingError as e:
            return _rejected(e)
        savings.refresh_from_db()
        return Response(
            {
                'transaction': SavingsTransactionSerializer(movement).data,
                'account': SavingsSerializer(savings).data,
            },
            status=status.HTTP_201_CREATED,
        )


class DepositView(SavingsMovementView):
    operation = staticmethod(lending.deposit)


class WithdrawView(SavingsMovementView):
    operation = staticmethod(lending.withdraw)


class DashboardStatsView(APIView):
    def get(self, request):
        as_of = _as_of(request)
        if as_of is None:
            return _bad_as_of()
        return Response(reports.dashboard_stats(as_of), status=status.HTTP_200_OK)


class MonthlyRepaymentReportView(APIView):
    def get(self, request):
        try:
            start = date.fromisoformat(request.query_params['start']) if request.query_params.get('start') else None
            end = date.fromisoformat(request.query_params['end']) if request.query_params.get('end') else None
        except ValueError:
            return Response({'detail': 'start and end must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)
        return Response(reports.monthly_repayment_report(start, end), status=status.HTTP_200_OK)
