from django.core.exceptions import ValidationError
from django.db import models
from ..managers import ActiveQuerySet

# Choice Lists
ACCOUNT_TYPES = [
    # Numbering convention:
    # 1000s Asset, 2000s Liability, 3000s Equity, 4000s Income, 5000s Expense
    ("Asset", "Asset"),
    ("Liability", "Liability"),
    ("Equity", "Equity"),
    ("Income", "Income"),
    ("Expense", "Expense"),
]

# Types whose balance grows on the debit side
DEBIT_NORMAL_TYPES = ("Asset", "Expense")


class Account(models.Model):
    """
    One account in the chart of accounts.
    - account_number is unique across the ledger
    - account_type decides balance-sheet vs activity reporting
    - never deleted once a ledger line points at it (deactivate instead)
    """

    account_number = models.PositiveIntegerField()
    # Human-readable name → "Operating Checking", "Tithes"
    name = models.CharField(max_length=200)
    account_type = models.CharField(max_length=10, choices=ACCOUNT_TYPES)
    description = models.TextField(blank=True, default="")

    # Optional hierarchy (e.g. 5100 Utilities → 5110 Electric)
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )
    # Expense accounts can name the payable used for credit purchases
    default_liability_account = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="+",
    )

    # Soft-delete switch
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ["account_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["account_number"], name="uq_account_number"
            ),
        ]
        indexes = [models.Index(fields=["account_type", "is_active"], name="account_type_active_idx")]

    def __str__(self):
        return f"{self.account_number} - {self.name}"

    @property
    def is_debit_normal(self):
        return self.account_type in DEBIT_NORMAL_TYPES

    def clean(self):
        if self.parent_id and self.pk and self.parent_id == self.pk:
            raise ValidationError("Account cannot be its own parent.")

        if self.default_liability_account_id:
            if self.account_type != "Expense":
                raise ValidationError(
                    "Only expense accounts can have a default liability account."
                )
            if self.default_liability_account.account_type != "Liability":
                raise ValidationError(
                    "Default liability account must be a Liability account."
                )

    def save(self, *args, **kwargs):
        self.full_clean()  # run validations before saving
        return super().save(*args, **kwargs)


class Fund(models.Model):
    """Donor-restriction bucket tracked alongside the chart of accounts."""

    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    # Restricted funds can only be spent for the donor's stated purpose
    is_restricted = models.BooleanField(default=False)
    # Equity account the fund rolls up to on the balance sheet
    net_asset_account = models.ForeignKey(
        Account,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="funds",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = ActiveQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["name"], name="uq_fund_name"),
        ]

    def __str__(self):
        return self.name

    def clean(self):
        if self.net_asset_account_id and self.net_asset_account.account_type != "Equity":
            raise ValidationError("Net asset account must be an Equity account.")

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
