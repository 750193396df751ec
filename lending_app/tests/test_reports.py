"""Tests for portfolio, overdue and monthly repayment reports."""
from datetime import date, datetime
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone

from lending_app.models import Loan, Repayment
from lending_app.services import lending, reports


class ReportsTestBase(TestCase):

    def setUp(self):
        self.borrower = lending.create_borrower(first_name='PETER', last_name='MUGISHA', phone='+256752000001')
        self.as_of = date(2026, 6, 1)

    def loan(self, loan_id, balance, next_payment_date, status=Loan.Status.ACTIVE, rate='0.15'):
        return Loan.objects.create(
            loan_id=loan_id,
            borrower=self.borrower,
            principal=Decimal('1000000'),
            interest_rate=Decimal(rate),
            term_months=12,
            total_amount=Decimal('1200000'),
            outstanding_balance=Decimal(balance),
            status=status,
            next_payment_date=next_payment_date,
        )

    def repayment(self, receipt, loan, amount, paid_at, method=Repayment.Method.CASH):
        return Repayment.objects.create(
            receipt_number=receipt,
            loan=loan,
            borrower=self.borrower,
            amount=Decimal(amount),
            payment_method=method,
            paid_at=timezone.make_aware(paid_at),
        )


class OverdueReportTests(ReportsTestBase):

    def setUp(self):
        super().setUp()
        self.loan('LN001', '100000', date(2026, 5, 28))   # 4 days
        self.loan('LN002', '200000', date(2026, 5, 12))   # 20 days
        self.loan('LN003', '1000000', date(2026, 4, 2))   # 60 days
        self.loan('LN004', '50000', date(2026, 6, 10))
        self.loan('LN005', '0', date(2026, 1, 1))
        self.loan('LN006', '75000', date(2026, 1, 1), status=Loan.Status.APPROVED)

    def test_overdue_loans_oldest_first(self):
        rows = reports.overdue_loans(self.as_of)
        self.assertEqual([loan.loan_id for loan, _ in rows], ['LN003', 'LN002', 'LN001'])
        self.assertEqual([s.days_overdue for _, s in rows], [60, 20, 4])

    def test_overdue_stats(self):
        stats = reports.overdue_stats(self.as_of)
        self.assertEqual(stats['total'], 3)
        self.assertEqual(stats['total_amount'], Decimal('1300000'))
        self.assertEqual(stats['categories'], {'1-7 Days': 1, '8-30 Days': 1, '30+ Days': 1})
        self.assertAlmostEqual(stats['total_overdue_interest'], 322_500, places=2)

    def test_nothing_overdue_before_due_dates(self):
        stats = reports.overdue_stats(date(2026, 1, 1))
        self.assertEqual(stats['total'], 0)
        self.assertEqual(stats['total_amount'], Decimal('0'))


class DashboardTests(ReportsTestBase):

    def test_dashboard_totals(self):
        loan = self.loan('LN001', '900000', date(2026, 6, 15))
        self.loan('LN002', '1200000', date(2026, 7, 1), status=Loan.Status.APPROVED)
        self.repayment('REC001', loan, '300000', datetime(2026, 5, 15, 10))
        lending.open_savings(self.borrower, 25_000)
        lending.submit_application(self.borrower, 500_000, 6)

        stats = reports.dashboard_stats(self.as_of)
        self.assertEqual(stats['borrowers'], {'total': 1, 'active': 1})
        self.assertEqual(stats['applications'], {'total': 1, 'pending': 1})
        self.assertEqual(stats['loans']['total'], 2)
        self.assertEqual(stats['loans']['by_status'], {'ACTIVE': 1, 'APPROVED': 1})
        self.assertEqual(stats['loans']['disbursed'], Decimal('1000000'))
        self.assertEqual(stats['loans']['outstanding'], Decimal('2100000'))
        self.assertEqual(stats['repayments'], {'total': 1, 'total_amount': Decimal('300000')})
        self.assertEqual(stats['savings']['total_balance'], Decimal('25000'))
        self.assertEqual(stats['overdue']['total'], 0)

    def test_empty_portfolio(self):
        stats = reports.dashboard_stats(self.as_of)
        self.assertEqual(stats['loans']['total'], 0)
        self.assertEqual(stats['loans']['outstanding'], Decimal('0'))
        self.assertEqual(stats['loans']['by_status'], {})

    def test_borrower_statistics(self):
        loan = self.loan('LN001', '700000', date(2026, 6, 15))
        self.repayment('REC001', loan, '500000', datetime(2026, 5, 15, 10))
        stats = reports.borrower_statistics(self.borrower)
        self.assertEqual(stats['borrower_id'], 'B001')
        self.assertEqual(stats['loans'], 1)
        self.assertEqual(stats['active_loans'], 1)
        self.assertEqual(stats['total_borrowed'], Decimal('1000000'))
        self.assertEqual(stats['total_repaid'], Decimal('500000'))
        self.assertEqual(stats['outstanding'], Decimal('700000'))


class MonthlyRepaymentReportTests(ReportsTestBase):

    def setUp(self):
        super().setUp()
        loan = self.loan('LN001', '500000', date(2026, 7, 1))
        self.repayment('REC001', loan, '100000', datetime(2026, 3, 10, 9))
        self.repayment('REC002', loan, '50000', datetime(2026, 3, 20, 15), Repayment.Method.MOBILE_MONEY)
        self.repayment('REC003', loan, '80000', datetime(2026, 5, 5, 12), Repayment.Method.BANK_TRANSFER)

    def test_grouped_by_month(self):
        report = reports.monthly_repayment_report()
        self.assertEqual([row['month'] for row in report], ['2026-03', '2026-05'])
        march, may = report
        self.assertEqual(march['count'], 2)
        self.assertEqual(march['total'], 150000.0)
        self.assertEqual(march['by_method'], {'CASH': 100000.0, 'MOBILE_MONEY': 50000.0})
        self.assertEqual(may['by_method'], {'BANK_TRANSFER': 80000.0})

    def test_date_range(self):
        report = reports.monthly_repayment_report(start=date(2026, 4, 1), end=date(2026, 5, 31))
        self.assertEqual(len(report), 1)
        self.assertEqual(report[0]['total'], 80000.0)

    def test_empty_range(self):
        self.assertEqual(reports.monthly_repayment_report(start=date(2027, 1, 1)), [])
