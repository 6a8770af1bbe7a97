"""
Recurring Scheduler.

A template is due while active and next_run_date <= the processing date.
Each due template is materialized in its own savepoint: one template's
failure never blocks the others, and a failed template keeps its
next_run_date so the next invocation retries it.
"""
import datetime
import logging

from dateutil.relativedelta import relativedelta
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import LedgerError, LedgerNotFoundError, LedgerValidationError
from ..models import (RecurringHistory, RecurringTemplate,
                      RecurringTemplateLine)
from ..permissions import can_edit_transactions, can_view_ledger
from .audit_helper import log_action
from .posting import post_balanced_entry
from .results import ledger_operation
from .validation import (ProposedLine, assert_balanced, get_active_account,
                         get_active_fund, require_positive, require_text,
                         to_date, to_money, validate_line_sides)

logger = logging.getLogger(__name__)

FREQUENCY_STEPS = {
    "weekly": relativedelta(days=7),
    "biweekly": relativedelta(days=14),
    # relativedelta clamps to month end: Jan 31 + 1 month → Feb 28/29
    "monthly": relativedelta(months=1),
    "quarterly": relativedelta(months=3),
    "semiannually": relativedelta(months=6),
    "yearly": relativedelta(years=1),
}


def next_run_date(current: datetime.date, frequency: str) -> datetime.date:
    try:
        return current + FREQUENCY_STEPS[frequency]
    except KeyError:
        raise LedgerValidationError(f"Unknown frequency: {frequency}")


def get_template(template_id):
    try:
        return RecurringTemplate.objects.get(pk=template_id)
    except (RecurringTemplate.DoesNotExist, ValueError):
        raise LedgerNotFoundError("Recurring template not found")


def _template_reference(template, run_date):
    if not template.reference_number_prefix:
        return ""
    return f"{template.reference_number_prefix}{run_date:%Y-%m}"


def _execute_template(template, run_date):
    """Write one entry for the template and advance its schedule."""
    lines = [
        ProposedLine(line.account_id, template.fund_id, line.debit, line.credit, line.memo)
        for line in template.lines.all()
    ]
    with transaction.atomic():
        # Re-read under lock so concurrent runs cannot both materialize it
        locked = RecurringTemplate.objects.select_for_update().get(pk=template.pk)
        if not locked.is_due(run_date):
            return None
        entry = post_balanced_entry(
            entry_date=run_date,
            description=f"{locked.description} (Recurring)",
            reference_number=_template_reference(locked, run_date),
            lines=lines,
            kind="recurring",
        )
        # Step from the scheduled date, not from run_date, so late runs don't drift
        locked.next_run_date = next_run_date(locked.next_run_date, locked.frequency)
        locked.last_run_date = run_date
        locked.save(update_fields=["next_run_date", "last_run_date"])
        RecurringHistory.objects.create(
            template=locked,
            journal_entry=entry,
            executed_date=run_date,
            amount=locked.amount,
            status="success",
        )
        log_action(
            action="execute",
            instance=locked,
            changes={"journal_entry_id": entry.pk, "next_run_date": str(locked.next_run_date)},
        )
    return entry


def run_recurring_templates(process_date=None):
    """
    Process every due template. Safe to re-invoke: only templates whose
    next_run_date is still due are touched.
    """
    today = to_date(process_date, "Process date") if process_date else timezone.localdate()
    due = RecurringTemplate.objects.active().filter(next_run_date__lte=today).order_by(
        "next_run_date", "id"
    )

    results = []
    processed = failed = skipped = 0
    for template in due:
        if template.end_date and template.end_date < today:
            RecurringTemplate.objects.filter(pk=template.pk).update(is_active=False)
            skipped += 1
            results.append({
                "template_id": template.pk,
                "template_name": template.template_name,
                "status": "skipped",
                "message": "End date reached",
            })
            continue

        try:
            entry = _execute_template(template, today)
        except (LedgerError, ValidationError, DatabaseError) as exc:
            # Savepoint rolled back; next_run_date is unchanged
            failed += 1
            message = str(exc)
            RecurringHistory.objects.create(
                template=template,
                journal_entry=None,
                executed_date=today,
                amount=template.amount,
                status="failed",
                error_message=message,
            )
            logger.warning("Recurring template %s failed: %s", template.pk, message)
            results.append({
                "template_id": template.pk,
                "template_name": template.template_name,
                "status": "failed",
                "error": message,
            })
            continue

        if entry is None:
            # Another worker got there first
            continue
        processed += 1
        results.append({
            "template_id": template.pk,
            "template_name": template.template_name,
            "status": "success",
            "journal_entry_id": entry.pk,
        })

    logger.info(
        "Processed %d recurring transactions. %d failed. %d skipped.",
        processed, failed, skipped,
    )
    return {
        "processed": processed,
        "failed": failed,
        "skipped": skipped,
        "results": results,
        "message": f"Processed {processed} recurring transactions. {failed} failed.",
    }


# ----------------------------------------------
# Operations
# ----------------------------------------------
@ledger_operation(can_edit_transactions, "process recurring transactions")
def process_recurring_transactions(user, process_date=None):
    return run_recurring_templates(process_date)


@ledger_operation(can_edit_transactions, "manage recurring transactions")
def create_recurring_template(user, *, template_name, description, frequency, start_date,
                              fund_id, amount, lines, end_date=None,
                              reference_number_prefix="", notes=""):
    template_name = require_text(template_name, "Template name")
    description = require_text(description, "Description")
    amount = require_positive(amount)
    if frequency not in FREQUENCY_STEPS:
        raise LedgerValidationError(f"Unknown frequency: {frequency}")
    start_date = to_date(start_date, "Start date")
    end_date = to_date(end_date, "End date") if end_date else None
    if end_date and end_date < start_date:
        raise LedgerValidationError("End date cannot be before start date")
    fund = get_active_fund(fund_id)

    if not lines or len(lines) < 2:
        raise LedgerValidationError("At least 2 lines are required")
    proposed = [
        ProposedLine(
            line.get("account_id"),
            fund.pk,
            to_money(line.get("debit"), "Debit", required=False),
            to_money(line.get("credit"), "Credit", required=False),
            line.get("memo") or "",
        )
        for line in lines
    ]
    validate_line_sides(proposed)
    assert_balanced(proposed)
    accounts = [get_active_account(line.account_id) for line in proposed]

    with transaction.atomic():
        template = RecurringTemplate.objects.create(
            template_name=template_name,
            description=description,
            frequency=frequency,
            start_date=start_date,
            end_date=end_date,
            # First run happens on the start date
            next_run_date=start_date,
            fund=fund,
            amount=amount,
            reference_number_prefix=reference_number_prefix or "",
            notes=notes or "",
            created_by=user if getattr(user, "pk", None) else None,
        )
        for order, (line, account) in enumerate(zip(proposed, accounts)):
            RecurringTemplateLine.objects.create(
                template=template,
                account=account,
                debit=line.debit,
                credit=line.credit,
                memo=line.memo,
                line_order=order,
            )
        log_action(action="create", instance=template, user=user,
                   changes={"frequency": frequency, "amount": str(amount)})

    logger.info("Created recurring template %s (%s)", template.pk, frequency)
    return {"template_id": template.pk, "next_run_date": template.next_run_date}


@ledger_operation(can_edit_transactions, "manage recurring transactions")
def toggle_recurring_template(user, template_id, is_active):
    template = get_template(template_id)
    template.is_active = bool(is_active)
    template.save(update_fields=["is_active"])
    log_action(action="toggle", instance=template, user=user,
               changes={"is_active": template.is_active})
    return {"template_id": template.pk, "is_active": template.is_active}


@ledger_operation(can_edit_transactions, "manage recurring transactions")
def delete_recurring_template(user, template_id):
    template = get_template(template_id)
    with transaction.atomic():
        log_action(action="delete", instance=template, user=user,
                   changes={"template_name": template.template_name})
        # Generated journal entries stay; only the blueprint and its history go
        template.delete()
    return {"template_id": template_id}


@ledger_operation(can_view_ledger, "view recurring transactions")
def get_recurring_history(user, template_id=None, limit=50):
    qs = RecurringHistory.objects.select_related("template")
    if template_id:
        qs = qs.filter(template_id=template_id)
    return [
        {
            "id": h.pk,
            "template_id": h.template_id,
            "template_name": h.template.template_name,
            "journal_entry_id": h.journal_entry_id,
            "executed_date": h.executed_date,
            "amount": h.amount,
            "status": h.status,
            "error_message": h.error_message,
        }
        for h in qs[:limit]
    ]


@ledger_operation(can_view_ledger, "view recurring transactions")
def get_due_template_count(user, process_date=None):
    today = to_date(process_date, "Process date") if process_date else timezone.localdate()
    return RecurringTemplate.objects.active().filter(next_run_date__lte=today).count()
