"""Chart of accounts and funds maintenance, with the deletion guards."""
import logging

from django.db import transaction

from ..exceptions import LedgerConflictError, LedgerValidationError
from ..models import (ACCOUNT_TYPES, Account, Fund, LedgerLine,
                      Reconciliation, RecurringTemplateLine)
from ..permissions import is_admin
from .audit_helper import log_action
from .results import ledger_operation
from .validation import get_account, get_fund, require_text

logger = logging.getLogger(__name__)

ACCOUNT_TYPE_VALUES = {value for value, _ in ACCOUNT_TYPES}
ACCOUNT_IN_USE = (
    "Cannot delete account that has been used in transactions. "
    "Consider marking it as inactive instead."
)
FUND_IN_USE = "Cannot delete fund that has been used in transactions."


def _account_number(value):
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise LedgerValidationError("Account number must be a whole number")
    if number <= 0:
        raise LedgerValidationError("Account number must be greater than zero")
    return number


def _account_dict(account):
    return {
        "account_id": account.pk,
        "account_number": account.account_number,
        "name": account.name,
        "account_type": account.account_type,
        "is_active": account.is_active,
        "parent_id": account.parent_id,
        "default_liability_account_id": account.default_liability_account_id,
    }


def _fund_dict(fund):
    return {
        "fund_id": fund.pk,
        "name": fund.name,
        "is_restricted": fund.is_restricted,
        "is_active": fund.is_active,
        "net_asset_account_id": fund.net_asset_account_id,
    }


# ----------------------------------------------
# Accounts
# ----------------------------------------------
@ledger_operation(is_admin, "manage the chart of accounts")
def create_account(user, *, account_number, name, account_type, description="",
                   parent_id=None, default_liability_account_id=None):
    number = _account_number(account_number)
    name = require_text(name, "Account name")
    if account_type not in ACCOUNT_TYPE_VALUES:
        raise LedgerValidationError(f"Unknown account type: {account_type}")
    if Account.objects.filter(account_number=number).exists():
        raise LedgerConflictError(f"Account number {number} already exists")

    account = Account.objects.create(
        account_number=number,
        name=name,
        account_type=account_type,
        description=description or "",
        parent=get_account(parent_id, "Parent account") if parent_id else None,
        default_liability_account=(
            get_account(default_liability_account_id, "Default liability account")
            if default_liability_account_id else None
        ),
    )
    log_action(action="create", instance=account, user=user, changes=_account_dict(account))
    logger.info("Created account %s", account)
    return _account_dict(account)


@ledger_operation(is_admin, "manage the chart of accounts")
def update_account(user, account_id, **updates):
    account = get_account(account_id)
    if "account_number" in updates:
        number = _account_number(updates["account_number"])
        if Account.objects.filter(account_number=number).exclude(pk=account.pk).exists():
            raise LedgerConflictError(f"Account number {number} already exists")
        account.account_number = number
    if "name" in updates:
        account.name = require_text(updates["name"], "Account name")
    if "account_type" in updates:
        if updates["account_type"] not in ACCOUNT_TYPE_VALUES:
            raise LedgerValidationError(f"Unknown account type: {updates['account_type']}")
        account.account_type = updates["account_type"]
    if "description" in updates:
        account.description = updates["description"] or ""
    if "default_liability_account_id" in updates:
        liability_id = updates["default_liability_account_id"]
        account.default_liability_account = (
            get_account(liability_id, "Default liability account") if liability_id else None
        )
    account.save()
    log_action(action="update", instance=account, user=user, changes=_account_dict(account))
    return _account_dict(account)


@ledger_operation(is_admin, "manage the chart of accounts")
def toggle_account_status(user, account_id, is_active):
    account = get_account(account_id)
    if not is_active:
        if Reconciliation.objects.filter(account=account, status="in_progress").exists():
            raise LedgerConflictError(
                f"Account {account.account_number} has an in-progress reconciliation"
            )
        if RecurringTemplateLine.objects.filter(account=account, template__is_active=True).exists():
            raise LedgerConflictError(
                f"Account {account.account_number} is used by an active recurring template"
            )
    account.is_active = bool(is_active)
    account.save()
    log_action(action="toggle", instance=account, user=user,
               changes={"is_active": account.is_active})
    return _account_dict(account)


@ledger_operation(is_admin, "manage the chart of accounts")
def delete_account(user, account_id):
    account = get_account(account_id)
    if LedgerLine.objects.filter(account=account).exists():
        raise LedgerConflictError(ACCOUNT_IN_USE, details={"account_number": account.account_number})
    with transaction.atomic():
        log_action(action="delete", instance=account, user=user,
                   changes={"account_number": account.account_number})
        account.delete()
    return {"account_id": account_id}


# ----------------------------------------------
# Funds
# ----------------------------------------------
@ledger_operation(is_admin, "manage funds")
def create_fund(user, *, name, description="", is_restricted=False, net_asset_account_id=None):
    name = require_text(name, "Fund name")
    if Fund.objects.filter(name__iexact=name).exists():
        raise LedgerConflictError(f'Fund "{name}" already exists')
    fund = Fund.objects.create(
        name=name,
        description=description or "",
        is_restricted=bool(is_restricted),
        net_asset_account=(
            get_account(net_asset_account_id, "Net asset account")
            if net_asset_account_id else None
        ),
    )
    log_action(action="create", instance=fund, user=user, changes=_fund_dict(fund))
    return _fund_dict(fund)


@ledger_operation(is_admin, "manage funds")
def update_fund(user, fund_id, **updates):
    fund = get_fund(fund_id)
    if "name" in updates:
        name = require_text(updates["name"], "Fund name")
        if Fund.objects.filter(name__iexact=name).exclude(pk=fund.pk).exists():
            raise LedgerConflictError(f'Fund "{name}" already exists')
        fund.name = name
    if "description" in updates:
        fund.description = updates["description"] or ""
    if "is_restricted" in updates:
        fund.is_restricted = bool(updates["is_restricted"])
    if "is_active" in updates:
        fund.is_active = bool(updates["is_active"])
    if "net_asset_account_id" in updates:
        account_id = updates["net_asset_account_id"]
        fund.net_asset_account = get_account(account_id, "Net asset account") if account_id else None
    fund.save()
    log_action(action="update", instance=fund, user=user, changes=_fund_dict(fund))
    return _fund_dict(fund)


@ledger_operation(is_admin, "manage funds")
def delete_fund(user, fund_id):
    fund = get_fund(fund_id)
    if LedgerLine.objects.filter(fund=fund).exists():
        raise LedgerConflictError(FUND_IN_USE, details={"fund": fund.name})
    with transaction.atomic():
        log_action(action="delete", instance=fund, user=user, changes={"name": fund.name})
        fund.delete()
    return {"fund_id": fund_id}
