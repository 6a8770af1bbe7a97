from decimal import Decimal
from django.db import models
from django.db.models import Sum, Value
from django.db.models.functions import Coalesce

ZERO = Decimal("0.00")


# ---------------------------------------------
# Shared helpers for anything with is_active
# ---------------------------------------------
class ActiveQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)  # only fetch active records

    def inactive(self):
        return self.filter(is_active=False)


# ---------------------------------------------
# JournalEntry: readers must skip voided entries
# ---------------------------------------------
class JournalEntryQuerySet(models.QuerySet):
    def not_voided(self):
        return self.filter(is_voided=False)

    def voided(self):
        return self.filter(is_voided=True)

    def between(self, start=None, end=None):
        qs = self
        if start:
            qs = qs.filter(entry_date__gte=start)
        if end:
            qs = qs.filter(entry_date__lte=end)
        return qs

    # Adds total_debits / total_credits to every row
    def with_totals(self):
        return self.annotate(
            total_debits=Coalesce(
                Sum("lines__debit"), Value(ZERO),
                output_field=models.DecimalField(max_digits=18, decimal_places=2),
            ),
            total_credits=Coalesce(
                Sum("lines__credit"), Value(ZERO),
                output_field=models.DecimalField(max_digits=18, decimal_places=2),
            ),
        )


# ---------------------------------------------
# LedgerLine: balance building blocks
# ---------------------------------------------
class LedgerLineQuerySet(models.QuerySet):
    # Lines whose parent entry still counts toward balances
    def posted(self):
        return self.filter(journal_entry__is_voided=False)

    def for_account(self, account):
        return self.filter(account=account)

    def for_fund(self, fund):
        return self.filter(fund=fund)

    def cleared(self):
        return self.filter(is_cleared=True)

    def uncleared(self):
        return self.filter(is_cleared=False)

    def totals(self):
        """Return (debit_total, credit_total), never None."""
        agg = self.aggregate(
            debit=Coalesce(
                Sum("debit"), Value(ZERO),
                output_field=models.DecimalField(max_digits=18, decimal_places=2),
            ),
            credit=Coalesce(
                Sum("credit"), Value(ZERO),
                output_field=models.DecimalField(max_digits=18, decimal_places=2),
            ),
        )
        return agg["debit"], agg["credit"]
