"""Read-only balances and budget variance; voided entries never count."""
import datetime
from decimal import ROUND_HALF_UP, Decimal

from ..models import Budget, JournalEntry, LedgerLine
from ..permissions import can_view_ledger
from .results import ledger_operation
from .validation import CENT, ZERO, get_account, get_fund, to_date


def signed_balance(account, debit, credit):
    """Normal-balance sign: Asset/Expense grow with debits, the rest with credits."""
    if account.is_debit_normal:
        return debit - credit
    return credit - debit


def account_balance_value(account_id, fund_id=None, as_of=None):
    account = get_account(account_id)
    lines = LedgerLine.objects.posted().for_account(account)
    if fund_id:
        lines = lines.for_fund(get_fund(fund_id))
    if as_of:
        lines = lines.filter(journal_entry__entry_date__lte=to_date(as_of, "As-of date"))
    return signed_balance(account, *lines.totals())


def fund_balance_value(fund_id, as_of=None):
    """Net assets of a fund: asset lines minus liability lines."""
    fund = get_fund(fund_id)
    lines = LedgerLine.objects.posted().for_fund(fund)
    if as_of:
        lines = lines.filter(journal_entry__entry_date__lte=to_date(as_of, "As-of date"))
    asset_debit, asset_credit = lines.filter(account__account_type="Asset").totals()
    liab_debit, liab_credit = lines.filter(account__account_type="Liability").totals()
    return (asset_debit - asset_credit) - (liab_credit - liab_debit)


@ledger_operation(can_view_ledger, "view reports")
def account_balance(user, account_id, fund_id=None, as_of=None):
    return account_balance_value(account_id, fund_id, as_of)


@ledger_operation(can_view_ledger, "view reports")
def fund_balance(user, fund_id, as_of=None):
    return fund_balance_value(fund_id, as_of)


@ledger_operation(can_view_ledger, "view reports")
def transaction_history(user, start=None, end=None, include_voided=False, limit=100):
    qs = JournalEntry.objects.all()
    if not include_voided:
        qs = qs.not_voided()
    qs = qs.between(
        to_date(start, "Start date") if start else None,
        to_date(end, "End date") if end else None,
    ).with_totals().select_related("donor")
    return [
        {
            "journal_entry_id": e.pk,
            "entry_date": e.entry_date,
            "description": e.description,
            "reference_number": e.reference_number,
            "donor": e.donor.name if e.donor else None,
            "amount": e.total_debits,
            "is_voided": e.is_voided,
        }
        for e in qs[:limit]
    ]


def _variance_item(account, budgeted, actual):
    variance = actual - budgeted
    if budgeted > 0:
        percentage = (actual / budgeted * 100).quantize(CENT, rounding=ROUND_HALF_UP)
        status = "over_budget" if actual > budgeted else "on_budget"
    elif actual != 0:
        # Nothing budgeted but money moved: no meaningful percentage
        percentage = None
        status = "unbudgeted"
    else:
        percentage = Decimal("0")
        status = "on_budget"
    return {
        "account_id": account.pk,
        "account_number": account.account_number,
        "account_name": account.name,
        "account_type": account.account_type,
        "budgeted_amount": budgeted,
        "actual_amount": actual,
        "variance": variance,
        "variance_percentage": percentage,
        "status": status,
    }


@ledger_operation(can_view_ledger, "view reports")
def budget_variance(user, fiscal_year):
    fiscal_year = int(fiscal_year)
    start = datetime.date(fiscal_year, 1, 1)
    end = datetime.date(fiscal_year, 12, 31)

    budgets = (
        Budget.objects.filter(fiscal_year=fiscal_year,
                              account__account_type__in=["Income", "Expense"])
        .select_related("account")
        .order_by("account__account_number")
    )
    income, expense = [], []
    for budget in budgets:
        account = budget.account
        lines = LedgerLine.objects.posted().for_account(account).filter(
            journal_entry__entry_date__range=(start, end)
        )
        actual = signed_balance(account, *lines.totals())
        item = _variance_item(account, budget.budgeted_amount, actual)
        (income if account.account_type == "Income" else expense).append(item)

    return {
        "fiscal_year": fiscal_year,
        "income_variance": income,
        "expense_variance": expense,
        "total_income_budgeted": sum((i["budgeted_amount"] for i in income), ZERO),
        "total_income_actual": sum((i["actual_amount"] for i in income), ZERO),
        "total_expense_budgeted": sum((i["budgeted_amount"] for i in expense), ZERO),
        "total_expense_actual": sum((i["actual_amount"] for i in expense), ZERO),
    }
