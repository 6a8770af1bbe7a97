from django.urls import path

from . import views

app_name = "ledger_core"

urlpatterns = [
    path("giving/", views.weekly_giving_view, name="weekly-giving"),
    path("entries/<int:entry_id>/void/", views.void_transaction_view, name="void-entry"),
    path("reconciliations/", views.start_reconciliation_view, name="start-reconciliation"),
    path(
        "reconciliations/<int:reconciliation_id>/finalize/",
        views.finalize_reconciliation_view,
        name="finalize-reconciliation",
    ),
    path("recurring/process/", views.process_recurring_view, name="process-recurring"),
    path("accounts/<int:account_id>/balance/", views.account_balance_view, name="account-balance"),
]
