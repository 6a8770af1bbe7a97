import logging
from decimal import ROUND_HALF_UP

from django.db import IntegrityError, transaction
from django.utils import timezone

from ..exceptions import (LedgerConflictError, LedgerNotFoundError,
                          LedgerValidationError, ReconciliationMismatchError)
from ..models import LedgerLine, Reconciliation
from ..permissions import can_edit_transactions, can_view_ledger
from .audit_helper import log_action
from .results import ledger_operation
from .validation import (CENT, balance_tolerance, get_account, to_date,
                         to_ids, to_money)

logger = logging.getLogger(__name__)

IN_PROGRESS_CONFLICT = (
    "There is already an in-progress reconciliation for this account. "
    "Please complete or delete it first."
)


def get_reconciliation(reconciliation_id):
    try:
        return Reconciliation.objects.select_related("account").get(pk=reconciliation_id)
    except (Reconciliation.DoesNotExist, ValueError):
        raise LedgerNotFoundError("Reconciliation not found")


def _line_dict(line):
    entry = line.journal_entry
    return {
        "id": line.pk,
        "journal_entry_id": entry.pk,
        "entry_date": entry.entry_date,
        "description": entry.description,
        "reference_number": entry.reference_number,
        "fund_id": line.fund_id,
        "debit": line.debit,
        "credit": line.credit,
        "memo": line.memo,
        "is_cleared": line.is_cleared,
        "cleared_at": line.cleared_at,
    }


"""
Cleared balance in the account's natural sign:
Liability → credit - debit, everything else → debit - credit.
Lines of voided entries never count.
"""


def compute_cleared_balance(account_id, line_ids=None):
    account = get_account(account_id)
    lines = LedgerLine.objects.posted().for_account(account)
    if line_ids is None:
        lines = lines.cleared()
    else:
        lines = lines.filter(pk__in=to_ids(line_ids))
    debit, credit = lines.totals()
    if account.account_type == "Liability":
        balance = credit - debit
    else:
        balance = debit - credit
    return balance.quantize(CENT, rounding=ROUND_HALF_UP)


def set_lines_cleared(line_ids, cleared=True):
    line_ids = to_ids(line_ids)
    if not line_ids:
        raise LedgerValidationError("No transactions selected")
    found = LedgerLine.objects.filter(pk__in=line_ids).count()
    if found != len(set(line_ids)):
        raise LedgerNotFoundError("One or more ledger lines were not found")
    return LedgerLine.objects.filter(pk__in=line_ids).update(
        is_cleared=bool(cleared),
        cleared_at=timezone.now() if cleared else None,
    )


# ----------------------------------------------
# Operations
# ----------------------------------------------
@ledger_operation(can_edit_transactions, "reconcile accounts")
def start_reconciliation(user, *, account_id, statement_date, statement_balance, notes=""):
    account = get_account(account_id)
    statement_date = to_date(statement_date, "Statement date")
    statement_balance = to_money(statement_balance, "Statement balance")

    if Reconciliation.objects.filter(account=account, status="in_progress").exists():
        raise LedgerConflictError(IN_PROGRESS_CONFLICT, details={"account_id": account.pk})

    try:
        with transaction.atomic():
            # The partial unique index catches a concurrent start the check above missed
            reconciliation = Reconciliation.objects.create(
                account=account,
                statement_date=statement_date,
                statement_balance=statement_balance,
                notes=notes or "",
                started_by=user if getattr(user, "pk", None) else None,
            )
            log_action(action="start", instance=reconciliation, user=user,
                       changes={"statement_balance": str(statement_balance)})
    except IntegrityError:
        raise LedgerConflictError(IN_PROGRESS_CONFLICT, details={"account_id": account.pk})

    logger.info("Started reconciliation %s for account %s", reconciliation.pk, account)
    return {
        "reconciliation_id": reconciliation.pk,
        "account_id": account.pk,
        "statement_date": statement_date,
        "statement_balance": statement_balance,
        "status": reconciliation.status,
    }


@ledger_operation(can_edit_transactions, "reconcile accounts")
def mark_cleared(user, line_ids, cleared=True):
    """Pre-clear (or un-clear) lines; independent of any session."""
    updated = set_lines_cleared(line_ids, cleared)
    return {"updated": updated, "cleared": bool(cleared)}


@ledger_operation(can_view_ledger, "view reconciliations")
def get_cleared_balance(user, account_id, line_ids=None):
    return compute_cleared_balance(account_id, line_ids)


@ledger_operation(can_edit_transactions, "reconcile accounts")
def finalize_reconciliation(user, *, reconciliation_id, account_id, cleared_transaction_ids,
                            statement_balance=None):
    reconciliation = get_reconciliation(reconciliation_id)
    if reconciliation.status != "in_progress":
        raise LedgerConflictError("This reconciliation has already been completed")
    if str(reconciliation.account_id) != str(account_id):
        raise LedgerValidationError("Account does not match this reconciliation")
    ids = to_ids(cleared_transaction_ids)
    if not ids:
        raise LedgerValidationError("No transactions selected to clear")
    in_account = (
        LedgerLine.objects.posted()
        .filter(account_id=reconciliation.account_id, pk__in=ids)
        .count()
    )
    if in_account != len(set(ids)):
        raise LedgerValidationError(
            "Selected transactions must be non-voided lines of this account"
        )

    if statement_balance is None:
        statement_balance = reconciliation.statement_balance
    statement_balance = to_money(statement_balance, "Statement balance")

    cleared_balance = compute_cleared_balance(account_id, ids)
    if abs(cleared_balance - statement_balance) > balance_tolerance():
        # Nothing is written on a mismatch
        raise ReconciliationMismatchError(statement_balance, cleared_balance)

    with transaction.atomic():
        locked = Reconciliation.objects.select_for_update().get(pk=reconciliation.pk)
        if locked.status != "in_progress":
            raise LedgerConflictError("This reconciliation has already been completed")
        cleared_count = set_lines_cleared(ids, True)
        locked.reconciled_balance = cleared_balance
        locked.completed_at = timezone.now()
        locked.transition_to("completed")
        log_action(action="finalize", instance=locked, user=user,
                   changes={"reconciled_balance": str(cleared_balance),
                            "lines_cleared": cleared_count})

    logger.info("Completed reconciliation %s at %s", locked.pk, cleared_balance)
    return {
        "reconciliation_id": locked.pk,
        "status": locked.status,
        "cleared_balance": cleared_balance,
        "transactions_cleared": cleared_count,
    }


@ledger_operation(can_edit_transactions, "reconcile accounts")
def delete_reconciliation(user, reconciliation_id):
    reconciliation = get_reconciliation(reconciliation_id)
    if reconciliation.status == "completed":
        raise LedgerConflictError("Cannot delete completed reconciliations")
    with transaction.atomic():
        log_action(action="delete", instance=reconciliation, user=user,
                   changes={"statement_date": str(reconciliation.statement_date)})
        reconciliation.delete()
    return {"reconciliation_id": reconciliation_id}


@ledger_operation(can_view_ledger, "view reconciliations")
def get_uncleared_lines(user, account_id):
    account = get_account(account_id)
    lines = (
        LedgerLine.objects.posted().for_account(account).uncleared()
        .select_related("journal_entry")
        .order_by("journal_entry__entry_date", "id")
    )
    return [_line_dict(line) for line in lines]


@ledger_operation(can_view_ledger, "view reconciliations")
def get_cleared_lines(user, account_id, limit=100):
    account = get_account(account_id)
    lines = (
        LedgerLine.objects.posted().for_account(account).cleared()
        .select_related("journal_entry")
        .order_by("-cleared_at", "-id")
    )
    return [_line_dict(line) for line in lines[:limit]]


def _reconciliation_dict(rec):
    return {
        "reconciliation_id": rec.pk,
        "account_id": rec.account_id,
        "statement_date": rec.statement_date,
        "statement_balance": rec.statement_balance,
        "reconciled_balance": rec.reconciled_balance,
        "status": rec.status,
        "notes": rec.notes,
        "completed_at": rec.completed_at,
    }


@ledger_operation(can_view_ledger, "view reconciliations")
def get_current_reconciliation(user, account_id):
    rec = Reconciliation.objects.filter(account_id=account_id, status="in_progress").first()
    return _reconciliation_dict(rec) if rec else None


@ledger_operation(can_view_ledger, "view reconciliations")
def get_reconciliation_history(user, account_id, limit=10):
    qs = Reconciliation.objects.filter(account_id=account_id).order_by("-statement_date", "-id")
    return [_reconciliation_dict(rec) for rec in qs[:limit]]
