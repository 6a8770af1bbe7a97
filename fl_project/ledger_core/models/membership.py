from django.conf import settings
from django.db import models

ROLE_CHOICES = [
    ("admin", "Admin"),  # full control, including chart of accounts
    ("bookkeeper", "Bookkeeper"),  # records and edits transactions
    ("viewer", "Viewer"),  # read-only access
]


class UserRole(models.Model):
    """Ledger role of a user; missing row means no access."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="ledger_role",
    )
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default="viewer")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.user} ({self.role})"
