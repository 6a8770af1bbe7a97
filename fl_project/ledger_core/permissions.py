from .exceptions import LedgerAuthorizationError

EDIT_ROLES = ("admin", "bookkeeper")


def get_user_role(user):
    """Return "admin", "bookkeeper", "viewer" or None for anonymous / unassigned."""
    if user is None or not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return "admin"
    role = getattr(user, "ledger_role", None)  # reverse one-to-one, may be missing
    return role.role if role else None


def can_edit_transactions(user):
    return get_user_role(user) in EDIT_ROLES


def is_admin(user):
    return get_user_role(user) == "admin"


def can_view_ledger(user):
    return get_user_role(user) is not None


""" Gates evaluated before any domain logic runs """


def require(predicate, user, action="perform this action"):
    if not predicate(user):
        raise LedgerAuthorizationError(f"You do not have permission to {action}.")
