from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from ..managers import JournalEntryQuerySet, LedgerLineQuerySet
from .account import Account, Fund
from .donor import Donor

ZERO = Decimal("0.00")


# ---------- JournalEntry (Header) & LedgerLine ----------
class JournalEntry(models.Model):  # One atomic double-entry transaction
    entry_date = models.DateField()
    description = models.TextField()
    reference_number = models.CharField(max_length=100, blank=True, default="")
    # Optional contributor, used for giving statements
    donor = models.ForeignKey(
        Donor,
        null=True,
        blank=True,
        on_delete=models.PROTECT,  # Don't orphan contribution history
        related_name="journal_entries",
    )
    # Non-cash gifts are reported separately on donor statements
    is_in_kind = models.BooleanField(default=False)

    # Voiding is one-way: active → voided
    is_voided = models.BooleanField(default=False)
    voided_at = models.DateTimeField(null=True, blank=True)
    voided_reason = models.TextField(blank=True, default="")
    voided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True, blank=True, on_delete=models.SET_NULL,
        related_name="+",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = JournalEntryQuerySet.as_manager()

    class Meta:
        ordering = ["-entry_date", "-id"]
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["entry_date"], name="je_entry_date_idx"),
            models.Index(fields=["is_voided", "entry_date"], name="je_voided_date_idx"),
        ]
        constraints = [
            # A voided entry always says why
            models.CheckConstraint(
                condition=Q(is_voided=False) | ~Q(voided_reason=""),
                name="voided_entry_has_reason",
            ),
        ]

    def __str__(self):
        ref = f" [{self.reference_number}]" if self.reference_number else ""
        return f"JE#{self.pk} {self.entry_date}{ref} {self.description}"

    def compute_totals(self):
        """Return (total_debits, total_credits) over this entry's lines."""
        return self.lines.all().totals()

    @property
    def is_balanced(self):
        debits, credits = self.compute_totals()
        return abs(debits - credits) < settings.LEDGER_BALANCE_TOLERANCE

    @property
    def amount(self):
        return self.compute_totals()[0]

    def clean(self):
        if self.is_voided and not (self.voided_reason or "").strip():
            raise ValidationError("A voided journal entry requires a reason.")

        if self.pk:
            # The voided flag never goes back
            was_voided = (
                JournalEntry.objects.filter(pk=self.pk)
                .values_list("is_voided", flat=True)
                .first()
            )
            if was_voided and not self.is_voided:
                raise ValidationError("A voided journal entry cannot be un-voided.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)


class LedgerLine(models.Model):
    """One debit-or-credit row of a journal entry, tagged with account and fund."""

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    # PROTECT keeps history intact; accounts/funds are deactivated instead
    account = models.ForeignKey(
        Account, on_delete=models.PROTECT, related_name="ledger_lines"
    )
    fund = models.ForeignKey(
        Fund, on_delete=models.PROTECT, related_name="ledger_lines"
    )
    debit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=ZERO)
    memo = models.CharField(max_length=255, blank=True, default="")

    # Bank reconciliation state
    is_cleared = models.BooleanField(default=False)
    cleared_at = models.DateTimeField(null=True, blank=True)

    objects = LedgerLineQuerySet.as_manager()

    class Meta:
        ordering = ["id"]
        indexes = [
            models.Index(fields=["account", "is_cleared"], name="line_account_cleared_idx"),
            models.Index(fields=["fund"], name="line_fund_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(debit__gte=0), name="ledgerline_debit_nonnegative"
            ),
            models.CheckConstraint(
                condition=Q(credit__gte=0), name="ledgerline_credit_nonnegative"
            ),
            # Exactly one side carries the amount
            models.CheckConstraint(
                condition=(
                    (Q(debit__gt=0) & Q(credit=0)) | (Q(debit=0) & Q(credit__gt=0))
                ),
                name="ledgerline_debit_xor_credit",
            ),
        ]

    def __str__(self):
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account} / {self.fund}: {side}"

    @property
    def amount(self):
        return self.debit or self.credit

    def clean(self):
        debit = self.debit or ZERO
        credit = self.credit or ZERO
        if debit < 0 or credit < 0:
            raise ValidationError("Debit and credit cannot be negative.")
        if debit > 0 and credit > 0:
            raise ValidationError("A line cannot have both a debit and a credit.")
        if debit == 0 and credit == 0:
            raise ValidationError("A line must have either a debit or a credit.")

        if self.pk and self.journal_entry_id and self.journal_entry.is_voided:
            raise ValidationError("Lines of a voided journal entry cannot be changed.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
