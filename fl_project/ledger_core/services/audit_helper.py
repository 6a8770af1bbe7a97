from ..models import AuditLog


def log_action(*, action: str, instance, user=None, changes: dict | None = None):
    """
    Central audit logger.
    Called inside the caller's transaction so the row rolls back with it.
    """
    AuditLog.objects.create(
        user=user if getattr(user, "pk", None) else None,
        action=action,
        object_type=instance.__class__.__name__,
        object_id=str(instance.pk),
        changes=changes,
    )
