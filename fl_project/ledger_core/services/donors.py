from django.db import transaction

from ..exceptions import LedgerConflictError, LedgerValidationError
from ..models import Donor
from ..permissions import can_edit_transactions, is_admin
from .audit_helper import log_action
from .results import ledger_operation
from .validation import get_donor, require_text


def _envelope(value):
    if value in (None, ""):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise LedgerValidationError("Envelope number must be a whole number")
    if number <= 0:
        raise LedgerValidationError("Envelope number must be greater than zero")
    return number


def _check_envelope_free(number, exclude_pk=None):
    if number is None:
        return
    holder = Donor.objects.filter(envelope_number=number).exclude(pk=exclude_pk).first()
    if holder:
        raise LedgerConflictError(f"Envelope #{number} is already assigned to {holder.name}")


def _donor_dict(donor):
    return {
        "donor_id": donor.pk,
        "name": donor.name,
        "email": donor.email,
        "phone": donor.phone,
        "address": donor.address,
        "envelope_number": donor.envelope_number,
    }


@ledger_operation(can_edit_transactions, "manage donors")
def create_donor(user, *, name, email="", phone="", address="", envelope_number=None, notes=""):
    name = require_text(name, "Donor name")
    number = _envelope(envelope_number)
    _check_envelope_free(number)
    donor = Donor.objects.create(
        name=name,
        email=email or "",
        phone=phone or "",
        address=address or "",
        envelope_number=number,
        notes=notes or "",
    )
    log_action(action="create", instance=donor, user=user, changes=_donor_dict(donor))
    return _donor_dict(donor)


@ledger_operation(can_edit_transactions, "manage donors")
def update_donor(user, donor_id, **updates):
    donor = get_donor(donor_id, required=True)
    if "name" in updates:
        donor.name = require_text(updates["name"], "Donor name")
    if "envelope_number" in updates:
        number = _envelope(updates["envelope_number"])
        _check_envelope_free(number, exclude_pk=donor.pk)
        donor.envelope_number = number
    for field in ("email", "phone", "address", "notes"):
        if field in updates:
            setattr(donor, field, updates[field] or "")
    donor.save()
    log_action(action="update", instance=donor, user=user, changes=_donor_dict(donor))
    return _donor_dict(donor)


@ledger_operation(is_admin, "delete donors")
def delete_donor(user, donor_id):
    donor = get_donor(donor_id, required=True)
    if donor.journal_entries.exists():
        raise LedgerConflictError(
            "Cannot delete donor with existing transactions. Please contact support."
        )
    with transaction.atomic():
        log_action(action="delete", instance=donor, user=user, changes={"name": donor.name})
        donor.delete()
    return {"donor_id": donor_id}
