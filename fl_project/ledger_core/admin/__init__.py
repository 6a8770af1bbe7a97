from .account import AccountAdmin, BudgetAdmin, DonorAdmin, FundAdmin
from .actions import run_due_templates, void_journal_entries
from .auditlog import AuditLogAdmin
from .inlines import LedgerLineInline, RecurringTemplateLineInline
from .journal import JournalEntryAdmin
from .membership import UserRoleAdmin
from .ReadOnly import ReadOnlyAdmin
from .reconciliation import ReconciliationAdmin
from .recurring import RecurringHistoryAdmin, RecurringTemplateAdmin
