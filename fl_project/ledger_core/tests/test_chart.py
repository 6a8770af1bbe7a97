from io import StringIO

from django.core.management import call_command
from django.db.models import ProtectedError
from django.test import TestCase

from ledger_core.models import Account, Donor, Fund, Reconciliation
from ledger_core.services import (create_account, create_donor, create_fund,
                                  create_recurring_template, delete_account,
                                  delete_donor, delete_fund,
                                  start_reconciliation, toggle_account_status,
                                  update_account, update_donor, update_fund)

from .base import LedgerTestCase


class AccountMaintenanceTests(LedgerTestCase):

    def test_admin_creates_account(self):
        result = create_account(self.admin, account_number="5400", name="Missions Support",
                                account_type="Expense")
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.data["account_number"], 5400)
        self.assertTrue(Account.objects.filter(account_number=5400).exists())

    def test_duplicate_number_conflicts(self):
        result = create_account(self.admin, account_number=1100, name="Another Checking",
                                account_type="Asset")
        self.assertEqual(result.error_code, "conflict")
        self.assertEqual(result.error, "Account number 1100 already exists")

    def test_bad_type_and_number(self):
        self.assertEqual(
            create_account(self.admin, account_number=9000, name="X", account_type="Revenue").error,
            "Unknown account type: Revenue",
        )
        self.assertEqual(
            create_account(self.admin, account_number="abc", name="X", account_type="Asset").error,
            "Account number must be a whole number",
        )

    def test_bookkeeper_cannot_touch_chart(self):
        result = create_account(self.bookkeeper, account_number=9000, name="X", account_type="Asset")
        self.assertEqual(result.error_code, "authorization")

    def test_superuser_counts_as_admin(self):
        from django.contrib.auth import get_user_model
        root = get_user_model().objects.create_superuser("root", "root@example.org", "pw")
        result = create_account(root, account_number=9000, name="Suspense", account_type="Asset")
        self.assertTrue(result.success, result.error)

    def test_default_liability_must_be_liability(self):
        result = update_account(self.admin, self.supplies.pk,
                                default_liability_account_id=self.savings.pk)
        self.assertEqual(result.error_code, "validation")
        self.assertIn("Liability", result.error)

    def test_update_account_renumber_conflict(self):
        result = update_account(self.admin, self.savings.pk, account_number=1100)
        self.assertEqual(result.error_code, "conflict")

    def test_unused_account_can_be_deleted(self):
        result = delete_account(self.admin, self.savings.pk)
        self.assertTrue(result.success, result.error)
        self.assertFalse(Account.objects.filter(pk=self.savings.pk).exists())

    def test_used_account_cannot_be_deleted(self):
        self.give("10")
        result = delete_account(self.admin, self.checking.pk)
        self.assertEqual(result.error_code, "conflict")
        self.assertTrue(result.error.startswith("Cannot delete account that has been used"))

    def test_direct_delete_of_used_account_is_protected(self):
        self.give("10")
        with self.assertRaises(ProtectedError):
            Account.objects.get(pk=self.tithes.pk).delete()

    def test_deactivate_and_reactivate(self):
        result = toggle_account_status(self.admin, self.savings.pk, False)
        self.assertFalse(result.data["is_active"])
        self.assertFalse(Account.objects.get(pk=self.savings.pk).is_active)
        self.assertTrue(toggle_account_status(self.admin, self.savings.pk, True).data["is_active"])

    def test_cannot_deactivate_during_reconciliation(self):
        start_reconciliation(self.bookkeeper, account_id=self.checking.pk,
                             statement_date="2025-03-31", statement_balance="0")
        result = toggle_account_status(self.admin, self.checking.pk, False)
        self.assertEqual(result.error_code, "conflict")
        self.assertTrue(Account.objects.get(pk=self.checking.pk).is_active)
        self.assertEqual(Reconciliation.objects.count(), 1)

    def test_cannot_deactivate_account_of_active_template(self):
        create_recurring_template(
            self.bookkeeper, template_name="Rent", description="Rent", frequency="monthly",
            start_date="2025-01-01", fund_id=self.general.pk, amount="10",
            lines=[{"account_id": self.utilities.pk, "debit": "10"},
                   {"account_id": self.checking.pk, "credit": "10"}],
        )
        result = toggle_account_status(self.admin, self.utilities.pk, False)
        self.assertEqual(result.error_code, "conflict")
        self.assertIn("active recurring template", result.error)


class FundMaintenanceTests(LedgerTestCase):

    def test_create_fund_with_net_asset_account(self):
        result = create_fund(self.admin, name="Youth", is_restricted=True,
                             net_asset_account_id=self.opening_equity.pk)
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.data["net_asset_account_id"], self.opening_equity.pk)

    def test_duplicate_fund_name(self):
        result = create_fund(self.admin, name="general")
        self.assertEqual(result.error_code, "conflict")
        self.assertEqual(result.error, 'Fund "general" already exists')

    def test_net_asset_account_must_be_equity(self):
        result = create_fund(self.admin, name="Youth", net_asset_account_id=self.checking.pk)
        self.assertEqual(result.error_code, "validation")

    def test_deactivate_fund(self):
        result = update_fund(self.admin, self.building.pk, is_active=False)
        self.assertFalse(result.data["is_active"])
        self.assertEqual(Fund.objects.active().count(), 2)

    def test_used_fund_cannot_be_deleted(self):
        self.give("10", fund=self.missions)
        result = delete_fund(self.admin, self.missions.pk)
        self.assertEqual(result.error, "Cannot delete fund that has been used in transactions.")
        with self.assertRaises(ProtectedError):
            Fund.objects.get(pk=self.missions.pk).delete()

    def test_unused_fund_deleted(self):
        self.assertTrue(delete_fund(self.admin, self.building.pk).success)
        self.assertFalse(Fund.objects.filter(pk=self.building.pk).exists())


class DonorMaintenanceTests(LedgerTestCase):

    def test_bookkeeper_creates_donor(self):
        result = create_donor(self.bookkeeper, name="Naomi Park", envelope_number="17",
                              email="naomi@example.org")
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.data["envelope_number"], 17)

    def test_envelope_numbers_are_unique(self):
        create_donor(self.bookkeeper, name="Naomi Park", envelope_number=17)
        result = create_donor(self.bookkeeper, name="Boaz Lee", envelope_number=17)
        self.assertEqual(result.error_code, "conflict")
        self.assertEqual(result.error, "Envelope #17 is already assigned to Naomi Park")

    def test_many_donors_without_envelope(self):
        create_donor(self.bookkeeper, name="A")
        create_donor(self.bookkeeper, name="B")
        self.assertEqual(Donor.objects.filter(envelope_number__isnull=True).count(), 2)

    def test_update_donor_keeps_own_envelope(self):
        donor_id = create_donor(self.bookkeeper, name="Naomi", envelope_number=17).data["donor_id"]
        result = update_donor(self.bookkeeper, donor_id, name="Naomi Park", envelope_number=17)
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.data["name"], "Naomi Park")

    def test_donor_with_gifts_cannot_be_deleted(self):
        donor_id = create_donor(self.bookkeeper, name="Naomi").data["donor_id"]
        self.give("10", donor_id=donor_id)
        result = delete_donor(self.admin, donor_id)
        self.assertEqual(result.error_code, "conflict")
        self.assertTrue(Donor.objects.filter(pk=donor_id).exists())

    def test_only_admin_deletes_donors(self):
        donor_id = create_donor(self.bookkeeper, name="Naomi").data["donor_id"]
        self.assertEqual(delete_donor(self.bookkeeper, donor_id).error_code, "authorization")
        self.assertTrue(delete_donor(self.admin, donor_id).success)


class SeedLedgerCommandTests(TestCase):

    def test_seed_is_idempotent(self):
        out = StringIO()
        call_command("seed_ledger", stdout=out)
        self.assertIn("Seeded 16 accounts and 3 funds.", out.getvalue())
        self.assertEqual(Fund.objects.get(name="Missions").net_asset_account.account_number, 3100)

        out = StringIO()
        call_command("seed_ledger", stdout=out)
        self.assertIn("Seeded 0 accounts and 0 funds.", out.getvalue())

    def test_accounts_only(self):
        call_command("seed_ledger", "--no-funds", stdout=StringIO())
        self.assertEqual(Fund.objects.count(), 0)
        self.assertEqual(Account.objects.count(), 16)
