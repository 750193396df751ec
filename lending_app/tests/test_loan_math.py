"""Unit tests for amortization, rate tiers and overdue compounding."""
from datetime import date, datetime, timedelta
from decimal import Decimal

from django.test import SimpleTestCase

from lending_app.services.loan_math import (
    INVALID_AMORTIZATION,
    amortize,
    derive_loan_status,
    outstanding_after_payments,
    overdue_bucket,
    overdue_interest,
    payment_schedule,
    select_interest_rate,
)


class AmortizeTests(SimpleTestCase):
    """Simple-interest and compound branches of amortize()."""

    def test_short_term_uses_simple_interest(self):
        for principal, rate, term in [(250_000, 0.20, 1), (250_000, 0.20, 2), (1_234_567, 0.15, 2)]:
            result = amortize(principal, rate, term)
            self.assertTrue(result.is_valid)
            self.assertEqual(result.total_interest, principal * rate * term)
            self.assertEqual(result.total_amount, principal + result.total_interest)
            self.assertAlmostEqual(result.monthly_payment, result.total_amount / term)

    def test_two_month_example(self):
        result = amortize(250_000, 0.20, 2)
        self.assertAlmostEqual(result.total_interest, 100_000, places=6)
        self.assertAlmostEqual(result.total_amount, 350_000, places=6)
        self.assertAlmostEqual(result.monthly_payment, 175_000, places=6)

    def test_compound_branch_totals_are_consistent(self):
        for principal, rate, term in [(1_000_000, 0.15, 12), (300_000, 0.20, 3), (7_500_000, 0.10, 24)]:
            result = amortize(principal, rate, term)
            self.assertTrue(result.is_valid)
            self.assertAlmostEqual(result.monthly_payment * term, result.total_amount, places=6)
            self.assertAlmostEqual(result.total_amount - principal, result.total_interest, places=6)
            self.assertGreater(result.total_amount, principal)

    def test_compound_payment_matches_formula(self):
        result = amortize(1_000_000, 0.15, 12)
        self.assertAlmostEqual(result.monthly_payment, 184_480.7, delta=1)

    def test_tier_rate_end_to_end(self):
        rate = select_interest_rate(1_000_000)
        self.assertEqual(rate, Decimal('0.15'))
        result = amortize(1_000_000, rate, 12)
        self.assertTrue(result.is_valid)
        self.assertGreater(result.total_amount, 1_000_000)

    def test_zero_rate_compound_term_is_equal_division(self):
        result = amortize(120_000, 0, 12)
        self.assertTrue(result.is_valid)
        self.assertEqual(result.monthly_payment, 10_000.0)
        self.assertEqual(result.total_amount, 120_000.0)
        self.assertEqual(result.total_interest, 0.0)

    def test_zero_rate_short_term(self):
        result = amortize(100_000, 0, 2)
        self.assertEqual(result.total_interest, 0.0)
        self.assertEqual(result.monthly_payment, 50_000.0)

    def test_invalid_inputs_return_sentinel(self):
        self.assertEqual(amortize(0, 0.15, 12), INVALID_AMORTIZATION)
        self.assertEqual(amortize(-5, 0.15, 12), INVALID_AMORTIZATION)
        self.assertEqual(amortize(100_000, 0.15, 0), INVALID_AMORTIZATION)
        self.assertEqual(amortize(100_000, None, 12), INVALID_AMORTIZATION)
        self.assertFalse(INVALID_AMORTIZATION.is_valid)
        self.assertEqual(INVALID_AMORTIZATION[:3], (0.0, 0.0, 0.0))

    def test_accepts_decimals(self):
        result = amortize(Decimal('500000.00'), Decimal('0.1500'), 6)
        self.assertTrue(result.is_valid)
        self.assertAlmostEqual(result.monthly_payment * 6, result.total_amount, places=6)

    def test_overflow_is_clamped_to_zero(self):
        result = amortize(1_000, 1e6, 10_000)
        self.assertEqual(result.monthly_payment, 0.0)
        self.assertEqual(result.total_amount, 0.0)

    def test_non_finite_inputs_are_invalid(self):
        self.assertEqual(amortize(float('nan'), 0.1, 12), INVALID_AMORTIZATION)
        self.assertEqual(amortize(100_000, float('nan'), 12), INVALID_AMORTIZATION)
        self.assertEqual(amortize(float('inf'), 0.1, 12), INVALID_AMORTIZATION)
        self.assertEqual(amortize(Decimal('NaN'), 0.1, 2), INVALID_AMORTIZATION)


class InterestRateTierTests(SimpleTestCase):

    def test_tier_boundaries(self):
        cases = {
            1: '0.20',
            499_999: '0.20',
            500_000: '0.15',
            1_999_999: '0.15',
            2_000_000: '0.12',
            4_999_999: '0.12',
            5_000_000: '0.10',
            50_000_000: '0.10',
        }
        for amount, expected in cases.items():
            self.assertEqual(select_interest_rate(amount), Decimal(expected), amount)

    def test_fractional_amount_below_boundary(self):
        self.assertEqual(select_interest_rate(Decimal('499999.99')), Decimal('0.20'))


class PaymentScheduleTests(SimpleTestCase):

    def test_compound_schedule_pays_down_principal(self):
        schedule = payment_schedule(1_000_000, 0.15, 12, date(2026, 1, 31))
        self.assertEqual(len(schedule), 12)
        self.assertEqual(schedule[0].due_date, date(2026, 2, 28))
        self.assertEqual(schedule[-1].due_date, date(2027, 1, 31))
        self.assertEqual(schedule[-1].remaining_balance, 0.0)
        self.assertAlmostEqual(sum(i.principal_part for i in schedule), 1_000_000, places=2)
        self.assertAlmostEqual(schedule[0].interest_part, 150_000, places=6)
        balances = [i.remaining_balance for i in schedule]
        self.assertEqual(balances, sorted(balances, reverse=True))

    def test_short_term_schedule_splits_evenly(self):
        schedule = payment_schedule(200_000, 0.20, 2, date(2026, 3, 1))
        self.assertEqual([i.principal_part for i in schedule], [100_000, 100_000])
        self.assertAlmostEqual(schedule[0].interest_part, 40_000, places=6)
        self.assertAlmostEqual(schedule[0].payment, 140_000, places=6)

    def test_invalid_terms_give_empty_schedule(self):
        self.assertEqual(payment_schedule(0, 0.15, 12, date(2026, 1, 1)), [])

    def test_overflowed_terms_give_empty_schedule(self):
        self.assertEqual(payment_schedule(1_000, 1e6, 10_000, date(2026, 1, 1)), [])

    def test_outstanding_after_payments(self):
        self.assertEqual(outstanding_after_payments(600_000, 0.12, 6, 0), 600_000)
        self.assertEqual(outstanding_after_payments(600_000, 0.12, 6, 6), 0.0)
        middle = outstanding_after_payments(600_000, 0.12, 6, 3)
        self.assertGreater(middle, 0)
        self.assertLess(middle, 600_000)

    def test_outstanding_after_payments_with_invalid_terms(self):
        self.assertEqual(outstanding_after_payments(0, 0.15, 12, 3), 0.0)
        self.assertEqual(outstanding_after_payments(100_000, None, 12, 3), 0.0)
        self.assertEqual(outstanding_after_payments(100_000, 0.15, 0, 0), 0.0)
        self.assertEqual(outstanding_after_payments(1_000, 1e6, 10_000, 5), 0.0)


class DeriveLoanStatusTests(SimpleTestCase):
    """Overdue detection and compound overdue interest."""

    as_of = date(2026, 3, 2)

    def test_zero_balance_is_closed_even_when_past_due(self):
        snapshot = derive_loan_status(0, 0.15, date(2025, 1, 1), self.as_of)
        self.assertEqual(snapshot.status, 'Closed')
        self.assertFalse(snapshot.is_overdue)
        self.assertEqual(snapshot.overdue_interest, 0.0)
        self.assertEqual(derive_loan_status(-10, 0.15, date(2025, 1, 1), self.as_of).status, 'Closed')

    def test_future_due_date_is_active(self):
        snapshot = derive_loan_status(500_000, 0.15, self.as_of + timedelta(days=5), self.as_of)
        self.assertEqual(snapshot.status, 'Active')
        self.assertEqual(snapshot.days_overdue, 0)
        self.assertEqual(snapshot.total_balance, 500_000)

    def test_due_today_is_not_overdue(self):
        self.assertEqual(derive_loan_status(500_000, 0.15, self.as_of, self.as_of).status, 'Active')

    def test_missing_or_bad_due_date_is_active(self):
        self.assertEqual(derive_loan_status(500_000, 0.15, None, self.as_of).status, 'Active')
        self.assertEqual(derive_loan_status(500_000, 0.15, 'not-a-date', self.as_of).status, 'Active')

    def test_months_overdue_floor_division(self):
        for days, months in [(1, 0), (29, 0), (30, 1), (59, 1), (60, 2), (95, 3)]:
            snapshot = derive_loan_status(100_000, 0.15, self.as_of - timedelta(days=days), self.as_of)
            self.assertTrue(snapshot.is_overdue)
            self.assertEqual(snapshot.status, 'Overdue')
            self.assertEqual(snapshot.days_overdue, days)
            self.assertEqual(snapshot.months_overdue, months)

    def test_no_interest_in_first_thirty_days(self):
        snapshot = derive_loan_status(100_000, 0.15, self.as_of - timedelta(days=29), self.as_of)
        self.assertEqual(snapshot.overdue_interest, 0.0)
        self.assertEqual(snapshot.total_balance, 100_000)

    def test_two_months_compounds_geometrically(self):
        snapshot = derive_loan_status(1_000_000, 0.15, '2026-01-01', self.as_of)
        self.assertEqual(snapshot.days_overdue, 60)
        self.assertEqual(snapshot.months_overdue, 2)
        self.assertAlmostEqual(snapshot.overdue_interest, 322_500, places=2)
        self.assertAlmostEqual(snapshot.total_balance, 1_322_500, places=2)

    def test_growth_is_not_linear(self):
        one = overdue_interest(1_000_000, 0.15, 1)
        three = overdue_interest(1_000_000, 0.15, 3)
        self.assertAlmostEqual(one, 150_000, places=4)
        self.assertGreater(three, 3 * one)

    def test_accepts_datetime_and_iso_timestamp(self):
        a = derive_loan_status(1_000, 0.1, datetime(2026, 1, 31, 18, 30), self.as_of)
        b = derive_loan_status(1_000, 0.1, '2026-01-31T18:30:00Z', self.as_of)
        self.assertEqual(a.days_overdue, 30)
        self.assertEqual(b.days_overdue, 30)

    def test_missing_rate_uses_default(self):
        snapshot = derive_loan_status(1_000_000, None, '2026-01-01', self.as_of)
        self.assertAlmostEqual(snapshot.overdue_interest, 322_500, places=2)


class OverdueBucketTests(SimpleTestCase):

    def test_buckets(self):
        self.assertEqual(overdue_bucket(1), '1-7 Days')
        self.assertEqual(overdue_bucket(7), '1-7 Days')
        self.assertEqual(overdue_bucket(8), '8-30 Days')
        self.assertEqual(overdue_bucket(30), '8-30 Days')
        self.assertEqual(overdue_bucket(31), '30+ Days')
