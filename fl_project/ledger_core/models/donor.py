from django.db import models
from django.db.models import Q


class Donor(models.Model):
    """Contributor referenced by journal entries for giving statements."""

    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.TextField(blank=True, default="")
    # Offering-envelope number; unique when assigned
    envelope_number = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["envelope_number"],
                condition=Q(envelope_number__isnull=False),
                name="uq_donor_envelope_number",
            ),
        ]

    def __str__(self):
        if self.envelope_number:
            return f"{self.name} (#{self.envelope_number})"
        return self.name

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
