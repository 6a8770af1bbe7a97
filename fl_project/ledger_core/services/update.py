"""
Void/Edit Manager.

Void is a one-way soft delete: the entry and its lines stay for audit,
and every balance query skips them through LedgerLine.objects.posted().
Edit rewrites existing lines in place; the line count never changes.
"""
import logging

from django.db import transaction
from django.utils import timezone

from ..exceptions import (LedgerConflictError, LedgerNotFoundError,
                          LedgerValidationError)
from ..models import JournalEntry
from ..permissions import can_edit_transactions
from .audit_helper import log_action
from .posting import entry_summary
from .results import ledger_operation
from .validation import (ProposedLine, assert_balanced, get_active_account,
                         get_active_fund, get_donor, require_text, to_date,
                         to_id, to_money, validate_line_sides)

logger = logging.getLogger(__name__)

NEW_LINES_UNSUPPORTED = (
    "Adding new lines to existing transactions is not yet supported. "
    "Please void this transaction and create a new one."
)

# Distinguishes "leave the donor as is" from an explicit None (unlink)
KEEP = object()


def get_entry(journal_entry_id, lock=False):
    qs = JournalEntry.objects.select_for_update() if lock else JournalEntry.objects
    try:
        return qs.get(pk=journal_entry_id)
    except (JournalEntry.DoesNotExist, ValueError):
        raise LedgerNotFoundError("Transaction not found")


@ledger_operation(can_edit_transactions, "void transactions")
def void_transaction(user, journal_entry_id, reason):
    reason = require_text(reason, "Void reason")
    with transaction.atomic():
        entry = get_entry(journal_entry_id, lock=True)
        if entry.is_voided:
            raise LedgerConflictError("This transaction is already voided")
        entry.is_voided = True
        entry.voided_at = timezone.now()
        entry.voided_reason = reason
        entry.voided_by = user if getattr(user, "pk", None) else None
        entry.save()
        log_action(action="void", instance=entry, user=user, changes={"reason": reason})

    logger.info("Voided journal entry %s: %s", entry.pk, reason)
    return {
        "journal_entry_id": entry.pk,
        "is_voided": True,
        "voided_at": entry.voided_at,
        "voided_reason": entry.voided_reason,
    }


def _line_snapshot(line):
    return {
        "account_id": line.account_id,
        "fund_id": line.fund_id,
        "debit": str(line.debit),
        "credit": str(line.credit),
        "memo": line.memo,
    }


@ledger_operation(can_edit_transactions, "edit transactions")
def update_transaction(user, *, journal_entry_id, entry_date, description, lines,
                       reference_number=None, donor_id=KEEP):
    entry_date = to_date(entry_date, "Entry date")
    description = require_text(description, "Description")
    lines = list(lines or [])

    if any(not line.get("id") for line in lines):
        raise LedgerValidationError(NEW_LINES_UNSUPPORTED)

    proposed = [
        ProposedLine(
            line.get("account_id"),
            line.get("fund_id"),
            to_money(line.get("debit"), "Debit", required=False),
            to_money(line.get("credit"), "Credit", required=False),
            line.get("memo") or "",
        )
        for line in lines
    ]
    # Full replacement set must pass before anything is written
    validate_line_sides(proposed)
    check = assert_balanced(proposed)
    accounts = {a: get_active_account(a) for a in {p.account_id for p in proposed}}
    funds = {f: get_active_fund(f) for f in {p.fund_id for p in proposed}}
    donor = KEEP if donor_id is KEEP else get_donor(donor_id)

    with transaction.atomic():
        entry = get_entry(journal_entry_id, lock=True)
        if entry.is_voided:
            raise LedgerConflictError("Cannot edit a voided transaction")

        existing = {line.pk: line for line in entry.lines.all()}
        submitted_ids = [to_id(line["id"], "Line id") for line in lines]
        unknown = set(submitted_ids) - set(existing)
        if unknown:
            raise LedgerValidationError(NEW_LINES_UNSUPPORTED)
        if len(submitted_ids) != len(set(submitted_ids)) or set(submitted_ids) != set(existing):
            raise LedgerValidationError(
                "Every existing line must be submitted exactly once; "
                "to remove lines, void this transaction and create a new one."
            )

        before = {pk: _line_snapshot(line) for pk, line in existing.items()}
        for index, (line_id, new) in enumerate(zip(submitted_ids, proposed), start=1):
            line = existing[line_id]
            moved = (
                line.account_id != accounts[new.account_id].pk
                or line.debit != new.debit
                or line.credit != new.credit
            )
            if line.is_cleared and moved:
                raise LedgerConflictError(
                    f"Line {index} has been cleared in a bank reconciliation and "
                    "its account or amount cannot be changed"
                )
            line.account = accounts[new.account_id]
            line.fund = funds[new.fund_id]
            line.debit = new.debit
            line.credit = new.credit
            line.memo = new.memo
            line.save()

        entry.entry_date = entry_date
        entry.description = description
        if reference_number is not None:
            entry.reference_number = reference_number
        if donor is not KEEP:
            entry.donor = donor
        entry.save()

        log_action(
            action="edit",
            instance=entry,
            user=user,
            changes={
                "before": before,
                "after": {pk: _line_snapshot(existing[pk]) for pk in submitted_ids},
                "total": str(check.total_debits),
            },
        )

    logger.info("Edited journal entry %s (%d lines)", entry.pk, len(submitted_ids))
    return entry_summary(entry)
