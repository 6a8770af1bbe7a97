from decimal import Decimal
from django.db import models
from django.db.models import Q
from .account import Account


class Budget(models.Model):
    """Annual budgeted amount for one income or expense account."""

    account = models.ForeignKey(
        Account, on_delete=models.CASCADE, related_name="budgets"
    )
    fiscal_year = models.PositiveIntegerField()
    budgeted_amount = models.DecimalField(
        max_digits=18, decimal_places=2, default=Decimal("0.00")
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["fiscal_year", "account__account_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["account", "fiscal_year"], name="uq_budget_account_year"
            ),
            models.CheckConstraint(
                condition=Q(budgeted_amount__gte=0),
                name="budget_amount_nonnegative",
            ),
        ]

    def __str__(self):
        return f"{self.fiscal_year} {self.account}: {self.budgeted_amount}"
