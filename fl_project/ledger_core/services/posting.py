"""
Entry Builder.

Each transaction archetype is a small pure function producing ProposedLines.
post_balanced_entry() is the single balance-then-persist path they share:
header and lines are written in one database transaction, so an entry can
never exist without its balancing lines.
"""
import logging

from django.db import transaction
from django.db.models import Q

from ..exceptions import LedgerValidationError
from ..models import JournalEntry, LedgerLine
from ..permissions import can_edit_transactions, can_view_ledger
from .audit_helper import log_action
from .results import ledger_operation
from .validation import (ZERO, ProposedLine, assert_balanced,
                         get_active_account, get_active_fund, get_donor, require_non_negative, require_positive,
                         require_text, to_date, to_money, validate_line_sides)

logger = logging.getLogger(__name__)


# ----------------------------------------------
# Shared persistence path
# ----------------------------------------------
def post_balanced_entry(
    *,
    entry_date,
    description,
    lines,
    reference_number="",
    donor_id=None,
    is_in_kind=False,
    user=None,
    kind="journal",
):
    """Validate the proposed lines, then write entry + lines atomically."""
    entry_date = to_date(entry_date, "Entry date")
    description = require_text(description, "Description")
    if len(lines) < 2:
        raise LedgerValidationError("A journal entry needs at least two lines")

    # No store write happens unless every precondition passes
    validate_line_sides(lines)
    check = assert_balanced(lines)

    accounts = {a: get_active_account(a) for a in {line.account_id for line in lines}}
    funds = {f: get_active_fund(f) for f in {line.fund_id for line in lines}}
    donor = get_donor(donor_id)

    with transaction.atomic():
        entry = JournalEntry.objects.create(
            entry_date=entry_date,
            description=description,
            reference_number=reference_number or "",
            donor=donor,
            is_in_kind=is_in_kind,
            created_by=user if getattr(user, "pk", None) else None,
        )
        for line in lines:
            LedgerLine.objects.create(
                journal_entry=entry,
                account=accounts[line.account_id],
                fund=funds[line.fund_id],
                debit=line.debit,
                credit=line.credit,
                memo=line.memo or "",
            )
        log_action(
            action="create",
            instance=entry,
            user=user,
            changes={"kind": kind, "total": str(check.total_debits), "lines": len(lines)},
        )

    logger.info(
        "Posted %s entry %s on %s for %s (%d lines)",
        kind, entry.pk, entry_date, check.total_debits, len(lines),
    )
    return entry


def entry_summary(entry):
    """Plain-data view of an entry and its lines."""
    lines = list(entry.lines.select_related("account", "fund"))
    return {
        "journal_entry_id": entry.pk,
        "entry_date": entry.entry_date,
        "description": entry.description,
        "reference_number": entry.reference_number,
        "donor_id": entry.donor_id,
        "is_in_kind": entry.is_in_kind,
        "is_voided": entry.is_voided,
        "total_debits": sum((line.debit for line in lines), ZERO),
        "total_credits": sum((line.credit for line in lines), ZERO),
        "lines": [
            {
                "id": line.pk,
                "account_id": line.account_id,
                "account_number": line.account.account_number,
                "fund_id": line.fund_id,
                "debit": line.debit,
                "credit": line.credit,
                "memo": line.memo,
            }
            for line in lines
        ],
    }


# ----------------------------------------------
# Archetypes: domain inputs → ProposedLines
# ----------------------------------------------
def weekly_giving_lines(*, fund_id, income_account_id, checking_account_id, amount):
    return [
        ProposedLine(checking_account_id, fund_id, debit=amount, memo="Cash received from giving"),
        ProposedLine(income_account_id, fund_id, credit=amount, memo="Income from giving"),
    ]


def expense_lines(
    *,
    fund_id,
    expense_account_id,
    amount,
    memo,
    payment_type="cash",
    checking_account_id=None,
    liability_account_id=None,
):
    if payment_type == "cash":
        if not checking_account_id:
            raise LedgerValidationError("Checking account is required for cash payments")
        offset = ProposedLine(checking_account_id, fund_id, credit=amount, memo="Payment made")
    elif payment_type == "credit":
        if not liability_account_id:
            raise LedgerValidationError("Liability account is required for credit purchases")
        offset = ProposedLine(liability_account_id, fund_id, credit=amount, memo="Accounts Payable")
    else:
        raise LedgerValidationError(f"Unknown payment type: {payment_type}")
    return [ProposedLine(expense_account_id, fund_id, debit=amount, memo=memo), offset]


def account_transfer_lines(*, fund_id, from_account_id, to_account_id, amount):
    if str(from_account_id) == str(to_account_id):
        raise LedgerValidationError("Source and destination accounts must be different")
    return [
        ProposedLine(from_account_id, fund_id, credit=amount, memo="Transfer out"),
        ProposedLine(to_account_id, fund_id, debit=amount, memo="Transfer in"),
    ]


def fund_transfer_lines(*, account_id, from_fund_id, to_fund_id, amount):
    if str(from_fund_id) == str(to_fund_id):
        raise LedgerValidationError("Source and destination funds must be different")
    return [
        ProposedLine(account_id, from_fund_id, credit=amount, memo="Transfer out"),
        ProposedLine(account_id, to_fund_id, debit=amount, memo="Transfer in"),
    ]


def in_kind_lines(*, fund_id, asset_or_expense_account_id, income_account_id, amount, item_description):
    return [
        ProposedLine(asset_or_expense_account_id, fund_id, debit=amount, memo=item_description),
        ProposedLine(income_account_id, fund_id, credit=amount, memo="In-kind contribution"),
    ]


def opening_balance_lines(*, fund_id, asset_account_id, equity_account_id, amount):
    return [
        ProposedLine(asset_account_id, fund_id, debit=amount, memo="Opening balance"),
        ProposedLine(equity_account_id, fund_id, credit=amount, memo="Opening balance equity"),
    ]


def batch_donation_lines(*, checking_account_id, fees_account_id, net_deposit, fees, donations):
    """
    Debit checking (net) and fees expense, credit one income line per donation.
    donations: [{"fund_id", "income_account_id", "amount", "donor_id"?}]
    """
    if not donations:
        raise LedgerValidationError("At least one donation is required")

    gross = net_deposit + fees
    allocations = [
        (d, require_positive(d.get("amount"), f"Donation {i} amount"))
        for i, d in enumerate(donations, start=1)
    ]
    donations_total = sum((amount for _, amount in allocations), ZERO)
    remaining = gross - donations_total
    if abs(remaining) > ZERO:
        raise LedgerValidationError(
            f"Donations total (${donations_total:.2f}) must equal gross amount "
            f"(${gross:.2f}). Remaining to assign: ${remaining:.2f}",
            details={
                "gross_amount": gross,
                "donations_total": donations_total,
                "remaining_to_assign": remaining,
            },
        )

    # Deposit and fee lines sit in the first donation's fund
    primary_fund_id = donations[0].get("fund_id")
    lines = [
        ProposedLine(checking_account_id, primary_fund_id, debit=net_deposit,
                     memo="Online donation deposit (net)"),
    ]
    if fees > 0:
        lines.append(ProposedLine(fees_account_id, primary_fund_id, debit=fees,
                                  memo="Online donation processing fees"))
    for donation, amount in allocations:
        lines.append(ProposedLine(donation.get("income_account_id"), donation.get("fund_id"),
                                  credit=amount, memo="Online donation"))
    return lines


def weekly_deposit_lines(
    *,
    checking_account_id,
    general_fund_id,
    general_income_account_id,
    general_amount,
    missions_amount=ZERO,
    missions_fund_id=None,
    designated_items=(),
):
    """One deposit split by fund; each portion debits checking in its own fund."""
    if general_amount < 0:
        raise LedgerValidationError("General fund amount cannot be negative")
    if missions_amount < 0:
        raise LedgerValidationError("Missions amount cannot be negative")
    if missions_amount > 0 and not missions_fund_id:
        raise LedgerValidationError(
            "Missions fund must be selected when missions amount is provided"
        )

    items = [
        (item, require_non_negative(item.get("amount"), f"Designated item {i} amount"))
        for i, item in enumerate(designated_items, start=1)
    ]
    total = general_amount + missions_amount + sum((amount for _, amount in items), ZERO)
    if total <= 0:
        raise LedgerValidationError("Total deposit must be greater than zero")

    lines = []
    if general_amount > 0:
        lines += [
            ProposedLine(checking_account_id, general_fund_id, debit=general_amount,
                         memo="Cash received - General Fund"),
            ProposedLine(general_income_account_id, general_fund_id, credit=general_amount,
                         memo="Tithes & Offerings - General"),
        ]
    if missions_amount > 0:
        lines += [
            ProposedLine(checking_account_id, missions_fund_id, debit=missions_amount,
                         memo="Cash received - Missions"),
            ProposedLine(general_income_account_id, missions_fund_id, credit=missions_amount,
                         memo="Missions Giving"),
        ]
    for item, amount in items:
        if amount > 0:
            label = item.get("description") or "Designated gift"
            lines += [
                ProposedLine(checking_account_id, item.get("fund_id"), debit=amount,
                             memo=f"Cash received - {label}"),
                ProposedLine(item.get("account_id"), item.get("fund_id"), credit=amount,
                             memo=label),
            ]
    return lines


# ----------------------------------------------
# Operations
# ----------------------------------------------
@ledger_operation(can_edit_transactions, "record transactions")
def record_weekly_giving(user, *, entry_date, fund_id, income_account_id, checking_account_id,
                         amount, description=None, reference_number="", donor_id=None):
    amount = require_positive(amount)
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description or "Weekly giving",
        reference_number=reference_number,
        donor_id=donor_id,
        lines=weekly_giving_lines(
            fund_id=fund_id,
            income_account_id=income_account_id,
            checking_account_id=checking_account_id,
            amount=amount,
        ),
        user=user,
        kind="weekly_giving",
    )
    return entry_summary(entry)


@ledger_operation(can_edit_transactions, "record transactions")
def record_expense(user, *, entry_date, fund_id, expense_account_id, amount, description,
                   payment_type="cash", checking_account_id=None, liability_account_id=None,
                   reference_number=""):
    amount = require_positive(amount)
    description = require_text(description, "Description")
    if payment_type == "credit" and not liability_account_id:
        # Fall back to the expense account's configured payable
        expense = get_active_account(expense_account_id, "Expense account")
        liability_account_id = expense.default_liability_account_id
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description,
        reference_number=reference_number,
        lines=expense_lines(
            fund_id=fund_id,
            expense_account_id=expense_account_id,
            amount=amount,
            memo=description,
            payment_type=payment_type,
            checking_account_id=checking_account_id,
            liability_account_id=liability_account_id,
        ),
        user=user,
        kind=f"expense_{payment_type}",
    )
    return entry_summary(entry)


@ledger_operation(can_edit_transactions, "record transactions")
def transfer_between_accounts(user, *, entry_date, fund_id, from_account_id, to_account_id,
                              amount, description=None, reference_number=""):
    amount = require_positive(amount)
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description or "Account transfer",
        reference_number=reference_number,
        lines=account_transfer_lines(
            fund_id=fund_id,
            from_account_id=from_account_id,
            to_account_id=to_account_id,
            amount=amount,
        ),
        user=user,
        kind="account_transfer",
    )
    return entry_summary(entry)


@ledger_operation(can_edit_transactions, "record transactions")
def transfer_between_funds(user, *, entry_date, account_id, from_fund_id, to_fund_id,
                           amount, description=None, reference_number=""):
    amount = require_positive(amount)
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description or "Fund transfer",
        reference_number=reference_number,
        lines=fund_transfer_lines(
            account_id=account_id,
            from_fund_id=from_fund_id,
            to_fund_id=to_fund_id,
            amount=amount,
        ),
        user=user,
        kind="fund_transfer",
    )
    return entry_summary(entry)


@ledger_operation(can_edit_transactions, "record transactions")
def record_in_kind_donation(user, *, entry_date, donor_id, item_description, estimated_value,
                            asset_or_expense_account_id, income_account_id, fund_id,
                            category="", reference_number=""):
    amount = require_positive(estimated_value, "Estimated value")
    item_description = require_text(item_description, "Item description")
    get_donor(donor_id, required=True)
    description = f"In-kind donation: {item_description}"
    if category:
        description = f"{description} ({category})"
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description,
        reference_number=reference_number,
        donor_id=donor_id,
        is_in_kind=True,
        lines=in_kind_lines(
            fund_id=fund_id,
            asset_or_expense_account_id=asset_or_expense_account_id,
            income_account_id=income_account_id,
            amount=amount,
            item_description=item_description,
        ),
        user=user,
        kind="in_kind",
    )
    return entry_summary(entry)


@ledger_operation(can_edit_transactions, "record transactions")
def create_opening_balance_entry(user, *, entry_date, fund_id, asset_account_id,
                                 equity_account_id, amount, description=None):
    amount = require_positive(amount)
    asset = get_active_account(asset_account_id, "Asset account")
    equity = get_active_account(equity_account_id, "Equity account")
    if asset.account_type != "Asset":
        raise LedgerValidationError(f"{asset} is not an Asset account")
    if equity.account_type != "Equity":
        raise LedgerValidationError(f"{equity} is not an Equity account")
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description or "Opening balance",
        lines=opening_balance_lines(
            fund_id=fund_id,
            asset_account_id=asset_account_id,
            equity_account_id=equity_account_id,
            amount=amount,
        ),
        user=user,
        kind="opening_balance",
    )
    return entry_summary(entry)


@ledger_operation(can_edit_transactions, "record transactions")
def record_batch_online_donation(user, *, entry_date, net_deposit, processing_fees,
                                 checking_account_id, fees_account_id, donations,
                                 description=None, reference_number=""):
    net_deposit = require_positive(net_deposit, "Net deposit")
    fees = require_non_negative(processing_fees, "Processing fees")
    lines = batch_donation_lines(
        checking_account_id=checking_account_id,
        fees_account_id=fees_account_id,
        net_deposit=net_deposit,
        fees=fees,
        donations=donations or [],
    )
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description or "Online donations",
        reference_number=reference_number,
        lines=lines,
        user=user,
        kind="batch_online_donation",
    )
    summary = entry_summary(entry)
    summary["donation_count"] = len(donations)
    summary["gross_amount"] = net_deposit + fees
    return summary


@ledger_operation(can_edit_transactions, "record transactions")
def record_weekly_deposit(user, *, entry_date, checking_account_id, general_fund_id,
                          general_income_account_id, general_amount, missions_amount=None,
                          missions_fund_id=None, designated_items=(), description=None,
                          reference_number=""):
    lines = weekly_deposit_lines(
        checking_account_id=checking_account_id,
        general_fund_id=general_fund_id,
        general_income_account_id=general_income_account_id,
        general_amount=require_non_negative(general_amount, "General fund amount"),
        missions_amount=require_non_negative(missions_amount, "Missions amount"),
        missions_fund_id=missions_fund_id,
        designated_items=designated_items or (),
    )
    entry = post_balanced_entry(
        entry_date=entry_date,
        description=description or "Weekly deposit",
        reference_number=reference_number,
        lines=lines,
        user=user,
        kind="weekly_deposit",
    )
    return entry_summary(entry)


@ledger_operation(can_view_ledger, "view transactions")
def check_duplicate_transaction(user, *, entry_date, amount, description=""):
    """Non-voided entries on the same date with a matching description and amount."""
    entry_date = to_date(entry_date, "Entry date")
    amount = to_money(amount)
    qs = JournalEntry.objects.not_voided().filter(entry_date=entry_date)
    if description:
        qs = qs.filter(description__icontains=description.strip())
    qs = qs.filter(Q(lines__debit=amount) | Q(lines__credit=amount))
    return [
        {"journal_entry_id": e.pk, "description": e.description, "entry_date": e.entry_date}
        for e in qs.distinct().order_by("id")
    ]
