from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from ..managers import ActiveQuerySet
from .account import Account, Fund
from .journal import JournalEntry

ZERO = Decimal("0.00")

FREQUENCY_CHOICES = [
    ("weekly", "Weekly"),
    ("biweekly", "Every two weeks"),
    ("monthly", "Monthly"),
    ("quarterly", "Quarterly"),
    ("semiannually", "Every six months"),
    ("yearly", "Yearly"),
]

HISTORY_STATUS = [
    ("success", "Success"),
    ("failed", "Failed"),
]


class RecurringTemplate(models.Model):
    """
    Blueprint materialized into a journal entry every time it comes due.
    Active while is_active; due when next_run_date <= the processing date.
    """

    template_name = models.CharField(max_length=200)
    description = models.TextField()
    frequency = models.CharField(max_length=20, choices=FREQUENCY_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    next_run_date = models.DateField()
    last_run_date = models.DateField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    # Every generated line is tagged with this fund
    fund = models.ForeignKey(
        Fund, on_delete=models.PROTECT, related_name="recurring_templates"
    )
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    # "RENT-" → "RENT-2025-03"
    reference_number_prefix = models.CharField(max_length=50, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ["next_run_date", "id"]
        indexes = [models.Index(fields=["is_active", "next_run_date"], name="recurring_active_next_idx")]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0), name="recurring_amount_positive"
            ),
        ]

    def __str__(self):
        return f"{self.template_name} ({self.get_frequency_display()})"

    def is_due(self, on_date):
        return self.is_active and self.next_run_date <= on_date

    def clean(self):
        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError("End date cannot be before start date.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class RecurringTemplateLine(models.Model):
    """Template-level analog of LedgerLine; the fund comes from the template."""

    template = models.ForeignKey(
        RecurringTemplate, on_delete=models.CASCADE, related_name="lines"
    )
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="recurring_lines"
    )
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    memo = models.CharField(max_length=255, blank=True, default="")
    line_order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        ordering = ["line_order", "id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    (Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0))
                ),
                name="recurringline_debit_xor_credit",
            ),
        ]

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.template_id}#{self.line_order} {self.account}: {side}"

    def clean(self):
        debit = self.debit or ZERO
        credit = self.credit or ZERO
        if debit < 0 or credit < 0:
            raise ValidationError("Debit and credit cannot be negative.")
        if (debit > 0) == (credit > 0):
            raise ValidationError("A line must have either a debit or a credit, not both.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class RecurringHistory(models.Model):
    """One row per execution attempt of a template."""

    template = models.ForeignKey(
        RecurringTemplate, on_delete=models.CASCADE, related_name="history"
    )
    # Null when the run failed before an entry existed
    journal_entry = models.ForeignKey(
        JournalEntry,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="recurring_history",
    )
    executed_date = models.DateField()
    amount = models.DecimalField(max_digits=18, decimal_places=2)
    status = models.CharField(max_length=10, choices=HISTORY_STATUS)
    error_message = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-executed_date", "-id"]
        verbose_name_plural = "recurring history"
        constraints = [
            models.CheckConstraint(
                condition=Q(status="success") | Q(journal_entry__isnull=True),
                name="failed_history_has_no_entry",
            ),
        ]

    def __str__(self):
        return f"{self.template_id} {self.executed_date} {self.status}"
