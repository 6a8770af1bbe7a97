from django.contrib import admin, messages
from django.utils.translation import gettext_lazy as _

from ledger_core.services import process_recurring_transactions, void_transaction

# ---------- Admin actions ----------


@admin.action(description=_("Void selected journal entries"))
def void_journal_entries(modeladmin, request, queryset):
    """One-way void through the service layer, one entry at a time."""
    voided = failed = 0
    for entry in queryset.filter(is_voided=False):
        result = void_transaction(request.user, entry.pk, "Voided from admin")
        if result.success:
            voided += 1
        else:
            failed += 1
            modeladmin.message_user(
                request,
                _("Could not void entry %(pk)s: %(err)s") % {"pk": entry.pk, "err": result.error},
                level=messages.ERROR,
            )
    modeladmin.message_user(
        request,
        _("Voided %(voided)d entries. %(failed)d failed.") % {"voided": voided, "failed": failed},
        level=messages.SUCCESS if failed == 0 else messages.WARNING,
    )


@admin.action(description=_("Run all due recurring templates now"))
def run_due_templates(modeladmin, request, queryset):
    # Runs every due template, not only the selection: the schedule is global
    result = process_recurring_transactions(request.user)
    if result.success:
        modeladmin.message_user(request, result.data["message"], level=messages.SUCCESS)
    else:
        modeladmin.message_user(request, result.error, level=messages.ERROR)
