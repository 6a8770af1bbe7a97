"""
Balance Validator plus the shared preconditions every entry-creating
operation checks before touching the store.
"""
import datetime
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings
from django.utils.dateparse import parse_date

from ..exceptions import (LedgerNotFoundError, LedgerValidationError,
                          UnbalancedJournalError)
from ..models import Account, Donor, Fund

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def balance_tolerance():
    return getattr(settings, "LEDGER_BALANCE_TOLERANCE", CENT)


# ---------- Money / date coercion ----------
def to_money(value, field="Amount", required=True):
    """Coerce str / int / float / Decimal to a 2-place Decimal."""
    if value is None or value == "":
        if required:
            raise LedgerValidationError(f"{field} is required")
        return ZERO
    try:
        # str() first so floats keep their printed value (0.1, not 0.1000000000000000055)
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise LedgerValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise LedgerValidationError(f"{field} must be a number")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def require_positive(value, field="Amount"):
    amount = to_money(value, field)
    if amount <= 0:
        raise LedgerValidationError(f"{field} must be greater than zero")
    return amount


def require_non_negative(value, field="Amount"):
    amount = to_money(value, field, required=False)
    if amount < 0:
        raise LedgerValidationError(f"{field} cannot be negative")
    return amount


def to_date(value, field="Date"):
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value:
        raise LedgerValidationError(f"{field} is required")
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise LedgerValidationError(f"{field} must be a valid date (YYYY-MM-DD)")
    return parsed


def to_id(value, field="Id"):
    if isinstance(value, bool):
        raise LedgerValidationError(f"{field} must be a whole number")
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise LedgerValidationError(f"{field} must be a whole number")
    if number <= 0:
        raise LedgerValidationError(f"{field} must be a whole number")
    return number


def to_ids(values, field="Transaction id"):
    return [to_id(value, field) for value in values or []]


def require_text(value, field):
    text = (value or "").strip()
    if not text:
        raise LedgerValidationError(f"{field} is required")
    return text


# ---------- Balance Validator ----------
@dataclass(frozen=True)
class ProposedLine:
    """One {account, fund, debit, credit, memo} tuple awaiting persistence."""

    account_id: int
    fund_id: int
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    memo: str = ""


@dataclass(frozen=True)
class BalanceCheck:
    total_debits: Decimal
    total_credits: Decimal

    @property
    def difference(self):
        return abs(self.total_debits - self.total_credits)

    @property
    def is_balanced(self):
        return self.difference < balance_tolerance()


def _sides(line):
    # lines may be ProposedLine / model instances or plain mappings
    if isinstance(line, dict):
        return (to_money(line.get("debit"), "Debit", required=False),
                to_money(line.get("credit"), "Credit", required=False))
    return line.debit or ZERO, line.credit or ZERO


def check_balance(lines):
    """Pure: sum debits and credits of the proposed lines."""
    total_debits = ZERO
    total_credits = ZERO
    for line in lines:
        debit, credit = _sides(line)
        total_debits += debit
        total_credits += credit
    return BalanceCheck(total_debits, total_credits)


def assert_balanced(lines):
    check = check_balance(lines)
    if not check.is_balanced:
        raise UnbalancedJournalError(check.total_debits, check.total_credits)
    return check


def validate_line_sides(lines):
    """Every line carries exactly one non-negative, nonzero side."""
    for index, line in enumerate(lines, start=1):
        debit, credit = _sides(line)
        if debit < 0 or credit < 0:
            raise LedgerValidationError(f"Line {index}: Amounts cannot be negative")
        if debit > 0 and credit > 0:
            raise LedgerValidationError(f"Line {index}: Cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise LedgerValidationError(
                f"Line {index}: Must have either a debit or credit amount"
            )


# ---------- Reference lookups ----------
def get_account(account_id, label="Account"):
    if not account_id:
        raise LedgerValidationError(f"{label} is required")
    try:
        return Account.objects.get(pk=account_id)
    except (Account.DoesNotExist, ValueError):
        raise LedgerNotFoundError(f"{label} {account_id} not found")


def get_active_account(account_id, label="Account"):
    account = get_account(account_id, label)
    if not account.is_active:
        raise LedgerValidationError(f"{label} {account} is inactive")
    return account


def get_fund(fund_id, label="Fund"):
    if not fund_id:
        raise LedgerValidationError(f"{label} is required")
    try:
        return Fund.objects.get(pk=fund_id)
    except (Fund.DoesNotExist, ValueError):
        raise LedgerNotFoundError(f"{label} {fund_id} not found")


def get_active_fund(fund_id, label="Fund"):
    fund = get_fund(fund_id, label)
    if not fund.is_active:
        raise LedgerValidationError(f"{label} {fund} is inactive")
    return fund


def get_donor(donor_id, required=False):
    if not donor_id:
        if required:
            raise LedgerValidationError("Donor is required")
        return None
    try:
        return Donor.objects.get(pk=donor_id)
    except (Donor.DoesNotExist, ValueError):
        raise LedgerNotFoundError(f"Donor {donor_id} not found")
