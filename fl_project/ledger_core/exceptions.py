from decimal import Decimal


class LedgerError(Exception):
    """Base for every failure an operation reports to its caller."""

    code = "error"

    def __init__(self, message, *, details=None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        return self.message


class LedgerValidationError(LedgerError):
    """Bad input: amount <= 0, missing field, source == destination."""
    code = "validation"


class UnbalancedJournalError(LedgerValidationError):
    """Raised when proposed lines fail the double-entry balance check."""

    def __init__(self, total_debits: Decimal, total_credits: Decimal):
        self.total_debits = total_debits
        self.total_credits = total_credits
        self.difference = abs(total_debits - total_credits)
        super().__init__(
            f"Transaction is not balanced. Debits: {total_debits:.2f}, "
            f"Credits: {total_credits:.2f}, Difference: {self.difference:.2f}",
            details={
                "total_debits": str(total_debits),
                "total_credits": str(total_credits),
                "difference": str(self.difference),
            },
        )


class ReconciliationMismatchError(LedgerValidationError):
    """Cleared balance differs from the bank statement by more than a cent."""

    def __init__(self, statement_balance: Decimal, cleared_balance: Decimal):
        self.statement_balance = statement_balance
        self.cleared_balance = cleared_balance
        self.difference = abs(statement_balance - cleared_balance)
        super().__init__(
            f"Balances do not match. Bank statement: ${statement_balance:.2f}, "
            f"Your cleared balance: ${cleared_balance:.2f}. "
            f"Difference: ${self.difference:.2f}",
            details={
                "statement_balance": str(statement_balance),
                "cleared_balance": str(cleared_balance),
                "difference": str(self.difference),
            },
        )


class LedgerNotFoundError(LedgerError):
    code = "not_found"


class LedgerConflictError(LedgerError):
    """Duplicate value, referenced row on delete, session already open."""
    code = "conflict"


class LedgerAuthorizationError(LedgerError):
    code = "authorization"


class LedgerStoreError(LedgerError):
    """Timeout or connection failure; safe for the caller to retry."""
    code = "store"
