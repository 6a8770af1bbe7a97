import json

from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from . import services

# error_code → HTTP status
STATUS_BY_CODE = {
    "validation": 400,
    "not_found": 404,
    "conflict": 409,
    "authorization": 403,
    "store": 503,
}


def _payload(request):
    try:
        return json.loads(request.body or b"{}")
    except ValueError:
        return None


def _respond(result):
    status = 200 if result.success else STATUS_BY_CODE.get(result.error_code, 400)
    return JsonResponse(result.to_dict(), status=status)


def _bad_json():
    return JsonResponse(
        {"success": False, "error": "Request body must be valid JSON", "error_code": "validation"},
        status=400,
    )


@require_POST
def weekly_giving_view(request):
    data = _payload(request)
    if data is None:
        return _bad_json()
    result = services.record_weekly_giving(
        request.user,
        entry_date=data.get("entry_date"),
        fund_id=data.get("fund_id"),
        income_account_id=data.get("income_account_id"),
        checking_account_id=data.get("checking_account_id"),
        amount=data.get("amount"),
        description=data.get("description"),
        reference_number=data.get("reference_number") or "",
        donor_id=data.get("donor_id"),
    )
    return _respond(result)


@require_POST
def void_transaction_view(request, entry_id):
    data = _payload(request)
    if data is None:
        return _bad_json()
    return _respond(services.void_transaction(request.user, entry_id, data.get("reason")))


@require_POST
def start_reconciliation_view(request):
    data = _payload(request)
    if data is None:
        return _bad_json()
    result = services.start_reconciliation(
        request.user,
        account_id=data.get("account_id"),
        statement_date=data.get("statement_date"),
        statement_balance=data.get("statement_balance"),
        notes=data.get("notes") or "",
    )
    return _respond(result)


@require_POST
def finalize_reconciliation_view(request, reconciliation_id):
    data = _payload(request)
    if data is None:
        return _bad_json()
    result = services.finalize_reconciliation(
        request.user,
        reconciliation_id=reconciliation_id,
        account_id=data.get("account_id"),
        statement_balance=data.get("statement_balance"),
        cleared_transaction_ids=data.get("cleared_transaction_ids") or [],
    )
    return _respond(result)


@require_POST
def process_recurring_view(request):
    data = _payload(request)
    if data is None:
        return _bad_json()
    return _respond(services.process_recurring_transactions(request.user, data.get("process_date")))


@require_GET
def account_balance_view(request, account_id):
    result = services.account_balance(
        request.user, account_id, fund_id=request.GET.get("fund_id"), as_of=request.GET.get("as_of")
    )
    return _respond(result)
