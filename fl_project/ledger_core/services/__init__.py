# Public ledger operations; each returns an OperationResult
from .chart import (create_account, create_fund, delete_account, delete_fund,
                    toggle_account_status, update_account, update_fund)
from .donors import create_donor, delete_donor, update_donor
from .posting import (check_duplicate_transaction,
                      create_opening_balance_entry,
                      record_batch_online_donation, record_expense,
                      record_in_kind_donation, record_weekly_deposit,
                      record_weekly_giving, transfer_between_accounts,
                      transfer_between_funds)
from .reconciliation import (delete_reconciliation, finalize_reconciliation,
                             get_cleared_balance, get_cleared_lines,
                             get_current_reconciliation,
                             get_reconciliation_history, get_uncleared_lines,
                             mark_cleared, start_reconciliation)
from .recurring import (create_recurring_template, delete_recurring_template,
                        get_due_template_count, get_recurring_history,
                        process_recurring_transactions,
                        toggle_recurring_template)
from .reports import (account_balance, budget_variance, fund_balance,
                      transaction_history)
from .results import OperationResult
from .update import update_transaction, void_transaction
