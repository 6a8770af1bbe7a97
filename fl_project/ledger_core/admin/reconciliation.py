from django.contrib import admin

from ledger_core.models import Reconciliation


@admin.register(Reconciliation)
class ReconciliationAdmin(admin.ModelAdmin):
    list_display = (
        "account", "statement_date", "statement_balance",
        "reconciled_balance", "status", "completed_at",
    )
    list_filter = ("status", "account")
    readonly_fields = ("reconciled_balance", "completed_at", "started_by", "created_at")

    """ Completed sessions are immutable """
    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.status == "completed":
            r += ["account", "statement_date", "statement_balance", "status", "notes"]
        return r

    def has_delete_permission(self, request, obj=None):
        if obj and obj.status == "completed":
            return False
        return super().has_delete_permission(request, obj)
