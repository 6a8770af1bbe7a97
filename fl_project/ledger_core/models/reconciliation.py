from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from .account import Account

RECONCILIATION_STATUS = [
    ("in_progress", "In progress"),
    ("completed", "Completed"),
]


class Reconciliation(models.Model):
    """
    Matches cleared ledger lines of one account against a bank statement.
    At most one in_progress session per account, enforced by the database.
    """

    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="reconciliations"
    )
    statement_date = models.DateField()
    statement_balance = models.DecimalField(max_digits=18, decimal_places=2)
    # Filled in on completion
    reconciled_balance = models.DecimalField(
        max_digits=18, decimal_places=2, null=True, blank=True
    )
    status = models.CharField(
        max_length=20, choices=RECONCILIATION_STATUS, default="in_progress"
    )
    notes = models.TextField(blank=True, default="")
    started_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-statement_date", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["account"],
                condition=Q(status="in_progress"),
                name="uq_in_progress_reconciliation_per_account",
            ),
        ]

    def __str__(self):
        return f"{self.account} @ {self.statement_date} ({self.status})"

    def transition_to(self, new_status):
        allowed = {
            "in_progress": ["completed"],
            "completed": [],  # completed sessions are immutable
        }
        if new_status not in allowed[self.status]:
            raise ValidationError(f"Cannot go from {self.status} to {new_status}")
        self.status = new_status
        self.save()

    def save(self, *args, **kwargs):
        # The partial unique index on in-progress sessions is enforced by the database
        self.full_clean(validate_constraints=False)
        return super().save(*args, **kwargs)
