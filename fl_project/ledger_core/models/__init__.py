from .account import ACCOUNT_TYPES, Account, Fund
from .auditlog import AuditLog
from .budget import Budget
from .donor import Donor
from .journal import JournalEntry, LedgerLine
from .membership import ROLE_CHOICES, UserRole
from .reconciliation import RECONCILIATION_STATUS, Reconciliation
from .recurring import (FREQUENCY_CHOICES, RecurringHistory,
                        RecurringTemplate, RecurringTemplateLine)
