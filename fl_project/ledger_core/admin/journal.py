from django.contrib import admin
from django.utils.html import format_html

from ledger_core.models import JournalEntry

from .actions import void_journal_entries
from .inlines import LedgerLineInline


@admin.register(JournalEntry)
class JournalEntryAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "entry_date",
        "reference_number",
        "description",
        "donor",
        "is_in_kind",
        "is_voided",
        "balanced",
    )
    list_filter = ("is_voided", "is_in_kind", "entry_date")
    search_fields = ("reference_number", "description", "id")
    readonly_fields = ("created_by", "created_at", "voided_at", "voided_by", "voided_reason", "is_voided")
    inlines = [LedgerLineInline]
    actions = [void_journal_entries]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("donor").with_totals()

    """ Computed column for balance check """
    def balanced(self, obj):
        return format_html(
            "<b>{}</b> / <small>{}</small>", obj.total_debits, obj.total_credits
        )

    balanced.short_description = "Debits / Credits"

    # Entries are created by services only
    def has_add_permission(self, request):
        return False

    """ Voided entries are frozen """
    def get_readonly_fields(self, request, obj=None):
        r = list(self.readonly_fields)
        if obj and obj.is_voided:
            r += ["entry_date", "description", "reference_number", "donor", "is_in_kind"]
        return r

    # Nothing is ever deleted; void instead
    def has_delete_permission(self, request, obj=None):
        return False
