import functools
import logging
from dataclasses import dataclass
from typing import Any

from django.core.exceptions import ValidationError
from django.db import DatabaseError

from ..exceptions import LedgerError, LedgerStoreError
from ..permissions import require

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    """{success, data?, error?}: callers check success before reading data."""

    success: bool
    data: Any = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error, code, data=None):
        return cls(success=False, data=data, error=error, error_code=code)

    def to_dict(self):
        out = {"success": self.success}
        if self.data is not None:
            out["data"] = self.data
        if self.error is not None:
            out["error"] = self.error
            out["error_code"] = self.error_code
        return out


def _validation_message(exc: ValidationError):
    # Django's ValidationError may hold a dict, a list or a single message
    if hasattr(exc, "message_dict"):
        return "; ".join(
            f"{field}: {' '.join(msgs)}" if field != "__all__" else " ".join(msgs)
            for field, msgs in exc.message_dict.items()
        )
    return " ".join(exc.messages)


def ledger_operation(permission=None, action="perform this action"):
    """
    Operation boundary.
    - evaluates the authorization predicate before the body runs
    - translates LedgerError / ValidationError / DatabaseError into OperationResult
    The wrapped function takes the acting user as its first argument.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(user, *args, **kwargs):
            try:
                if permission is not None:
                    require(permission, user, action)
                data = func(user, *args, **kwargs)
            except LedgerError as exc:
                logger.warning("%s failed (%s): %s", func.__name__, exc.code, exc.message)
                return OperationResult.fail(exc.message, exc.code, exc.details)
            except ValidationError as exc:
                message = _validation_message(exc)
                logger.warning("%s failed (validation): %s", func.__name__, message)
                return OperationResult.fail(message, "validation")
            except DatabaseError:
                logger.exception("%s failed with a store error", func.__name__)
                err = LedgerStoreError(
                    "The ledger store is unavailable or timed out. Please try again."
                )
                return OperationResult.fail(err.message, err.code)
            return OperationResult.ok(data)

        # undecorated body for callers that already hold a transaction / system actor
        wrapper.unguarded = func
        return wrapper

    return decorator
