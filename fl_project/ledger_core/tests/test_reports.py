import datetime

from ledger_core.models import Budget
from ledger_core.services import (account_balance, budget_variance,
                                  fund_balance, record_expense,
                                  void_transaction)

from .base import D, LedgerTestCase


class BalanceReportTests(LedgerTestCase):

    def test_account_balance_by_fund_and_date(self):
        self.give("100", entry_date=datetime.date(2025, 1, 5))
        self.give("40", fund=self.missions, entry_date=datetime.date(2025, 2, 5))

        self.assertEqual(account_balance(self.viewer, self.checking.pk).data, D("140.00"))
        self.assertEqual(
            account_balance(self.viewer, self.checking.pk, fund_id=self.missions.pk).data,
            D("40.00"),
        )
        self.assertEqual(
            account_balance(self.viewer, self.checking.pk, as_of="2025-01-31").data, D("100.00")
        )

    def test_fund_balance_nets_liabilities(self):
        self.give("500")
        record_expense(
            self.bookkeeper, entry_date=self.today, fund_id=self.general.pk,
            expense_account_id=self.supplies.pk, amount="120", description="Chairs",
            payment_type="credit", liability_account_id=self.payable.pk,
        )
        self.assertEqual(fund_balance(self.viewer, self.general.pk).data, D("380.00"))

    def test_anonymous_cannot_read(self):
        self.assertEqual(account_balance(None, self.checking.pk).error_code, "authorization")


class BudgetVarianceTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        Budget.objects.create(account=self.tithes, fiscal_year=2025, budgeted_amount=D("1000"))
        Budget.objects.create(account=self.utilities, fiscal_year=2025, budgeted_amount=D("100"))
        Budget.objects.create(account=self.supplies, fiscal_year=2025, budgeted_amount=D("0"))
        Budget.objects.create(account=self.fees, fiscal_year=2025, budgeted_amount=D("0"))

    def item(self, rows, account):
        return next(row for row in rows if row["account_id"] == account.pk)

    def test_variance_per_account(self):
        self.give("800")
        self.pay("150")
        self.pay("25", account=self.supplies)
        voided = self.give("999")
        void_transaction(self.bookkeeper, voided["journal_entry_id"], "Typo")
        # prior year never counts
        self.give("50", entry_date=datetime.date(2024, 12, 31))

        report = budget_variance(self.viewer, 2025).data

        tithes = self.item(report["income_variance"], self.tithes)
        self.assertEqual(tithes["actual_amount"], D("800.00"))
        self.assertEqual(tithes["variance"], D("-200.00"))
        self.assertEqual(tithes["variance_percentage"], D("80.00"))
        self.assertEqual(tithes["status"], "on_budget")

        utilities = self.item(report["expense_variance"], self.utilities)
        self.assertEqual(utilities["variance_percentage"], D("150.00"))
        self.assertEqual(utilities["status"], "over_budget")

        supplies = self.item(report["expense_variance"], self.supplies)
        self.assertIsNone(supplies["variance_percentage"])
        self.assertEqual(supplies["status"], "unbudgeted")

        fees = self.item(report["expense_variance"], self.fees)
        self.assertEqual(fees["variance_percentage"], D("0"))
        self.assertEqual(fees["status"], "on_budget")

        self.assertEqual(report["total_income_budgeted"], D("1000.00"))
        self.assertEqual(report["total_expense_actual"], D("175.00"))

    def test_year_without_budgets_is_empty(self):
        report = budget_variance(self.viewer, "2030").data
        self.assertEqual(report["income_variance"], [])
        self.assertEqual(report["expense_variance"], [])
