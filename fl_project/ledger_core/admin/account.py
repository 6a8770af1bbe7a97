from django.contrib import admin

from ledger_core.models import Account, Budget, Donor, Fund


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("account_number", "name", "account_type", "is_active", "parent")
    list_filter = ("account_type", "is_active")
    search_fields = ("account_number", "name")
    ordering = ("account_number",)
    list_select_related = ("parent",)


@admin.register(Fund)
class FundAdmin(admin.ModelAdmin):
    list_display = ("name", "is_restricted", "is_active", "net_asset_account")
    list_filter = ("is_restricted", "is_active")
    search_fields = ("name",)


@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ("name", "envelope_number", "email", "phone")
    search_fields = ("name", "email", "envelope_number")


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ("fiscal_year", "account", "budgeted_amount")
    list_filter = ("fiscal_year",)
    search_fields = ("account__name", "account__account_number")
