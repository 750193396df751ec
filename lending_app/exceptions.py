"""Business-rule failures raised by lending_app services."""


class LendingError(Exception):
    """Base exception for lending operations."""


class InvalidLoanState(LendingError):
    """The loan or application is in the wrong status for the operation."""


class RepaymentRejected(LendingError):
    """The repayment amount is not acceptable for the loan."""


class InsufficientFunds(LendingError):
    """A withdrawal would take a savings balance below zero."""
