from django.contrib import admin

from ledger_core.models import RecurringHistory, RecurringTemplate

from .actions import run_due_templates
from .inlines import RecurringTemplateLineInline
from .ReadOnly import ReadOnlyAdmin


@admin.register(RecurringTemplate)
class RecurringTemplateAdmin(admin.ModelAdmin):
    list_display = (
        "template_name", "frequency", "amount", "fund",
        "next_run_date", "last_run_date", "is_active",
    )
    list_filter = ("frequency", "is_active", "fund")
    search_fields = ("template_name", "description")
    readonly_fields = ("last_run_date", "created_by", "created_at")
    inlines = [RecurringTemplateLineInline]
    actions = [run_due_templates]


@admin.register(RecurringHistory)
class RecurringHistoryAdmin(ReadOnlyAdmin):
    list_display = ("template", "executed_date", "amount", "status", "journal_entry")
    list_filter = ("status", "executed_date")
