from django.contrib import admin

from ledger_core.models import LedgerLine, RecurringTemplateLine

# ---------- Inline admin classes ----------


class LedgerLineInline(admin.TabularInline):
    """Show LedgerLine rows on the JournalEntry page (read-only; edits go through services)."""

    model = LedgerLine
    extra = 0
    fields = ("account", "fund", "debit", "credit", "memo", "is_cleared", "cleared_at")
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


class RecurringTemplateLineInline(admin.TabularInline):
    model = RecurringTemplateLine
    extra = 0
    fields = ("line_order", "account", "debit", "credit", "memo")
