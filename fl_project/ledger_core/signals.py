from django.core.exceptions import ValidationError
from django.db.models.signals import pre_delete
from django.dispatch import receiver

from .models import Reconciliation

""" Completed reconciliations are part of the audit trail. """


@receiver(pre_delete, sender=Reconciliation)
def prevent_delete_completed_reconciliation(sender, instance, **kwargs):
    if instance.status == "completed":
        raise ValidationError("Cannot delete completed reconciliations")
