import datetime
from io import StringIO

from django.core.management import call_command

from ledger_core.models import (Account, JournalEntry, RecurringHistory,
                                RecurringTemplate)
from ledger_core.services import (create_recurring_template,
                                  delete_recurring_template,
                                  get_due_template_count,
                                  get_recurring_history,
                                  process_recurring_transactions,
                                  toggle_recurring_template)
from ledger_core.services.recurring import next_run_date
from ledger_core.tasks import process_recurring_transactions_task

from .base import D, LedgerTestCase

date = datetime.date


class NextRunDateTests(LedgerTestCase):

    def test_fixed_day_steps(self):
        self.assertEqual(next_run_date(date(2025, 1, 1), "weekly"), date(2025, 1, 8))
        self.assertEqual(next_run_date(date(2025, 12, 25), "biweekly"), date(2026, 1, 8))

    def test_month_steps(self):
        self.assertEqual(next_run_date(date(2025, 1, 15), "monthly"), date(2025, 2, 15))
        self.assertEqual(next_run_date(date(2025, 11, 30), "quarterly"), date(2026, 2, 28))
        self.assertEqual(next_run_date(date(2025, 3, 1), "semiannually"), date(2025, 9, 1))
        self.assertEqual(next_run_date(date(2024, 2, 29), "yearly"), date(2025, 2, 28))

    def test_month_end_clamps_and_then_drifts(self):
        feb = next_run_date(date(2025, 1, 31), "monthly")
        self.assertEqual(feb, date(2025, 2, 28))
        self.assertEqual(next_run_date(feb, "monthly"), date(2025, 3, 28))
        self.assertEqual(next_run_date(date(2024, 1, 31), "monthly"), date(2024, 2, 29))

    def test_unknown_frequency(self):
        from ledger_core.exceptions import LedgerValidationError
        with self.assertRaises(LedgerValidationError):
            next_run_date(date(2025, 1, 1), "fortnightly")


class RecurringTestCase(LedgerTestCase):

    def make_template(self, start=date(2025, 1, 1), frequency="monthly", amount="1200", **extra):
        result = create_recurring_template(
            self.bookkeeper,
            template_name="Parsonage rent",
            description="Monthly rent",
            frequency=frequency,
            start_date=start,
            fund_id=self.general.pk,
            amount=amount,
            lines=[
                {"account_id": self.utilities.pk, "debit": amount, "memo": "Rent"},
                {"account_id": self.checking.pk, "credit": amount},
            ],
            **extra,
        )
        self.assertTrue(result.success, result.error)
        return RecurringTemplate.objects.get(pk=result.data["template_id"])


class CreateTemplateTests(RecurringTestCase):

    def test_first_run_is_start_date(self):
        template = self.make_template(start=date(2025, 4, 10))
        self.assertEqual(template.next_run_date, date(2025, 4, 10))
        self.assertEqual(template.lines.count(), 2)

    def test_unbalanced_template_rejected(self):
        result = create_recurring_template(
            self.bookkeeper, template_name="Bad", description="Bad", frequency="monthly",
            start_date="2025-01-01", fund_id=self.general.pk, amount="10",
            lines=[{"account_id": self.utilities.pk, "debit": "10"},
                   {"account_id": self.checking.pk, "credit": "9"}],
        )
        self.assertFalse(result.success)
        self.assertEqual(result.error_code, "validation")
        self.assertTrue(result.error.startswith("Transaction is not balanced"))
        self.assertEqual(RecurringTemplate.objects.count(), 0)

    def test_end_before_start_rejected(self):
        result = create_recurring_template(
            self.bookkeeper, template_name="Bad", description="Bad", frequency="monthly",
            start_date="2025-06-01", end_date="2025-01-01", fund_id=self.general.pk, amount="10",
            lines=[{"account_id": self.utilities.pk, "debit": "10"},
                   {"account_id": self.checking.pk, "credit": "10"}],
        )
        self.assertEqual(result.error, "End date cannot be before start date")

    def test_viewer_cannot_create(self):
        result = create_recurring_template(
            self.viewer, template_name="x", description="x", frequency="monthly",
            start_date="2025-01-01", fund_id=self.general.pk, amount="10", lines=[],
        )
        self.assertEqual(result.error_code, "authorization")


class ProcessTemplatesTests(RecurringTestCase):

    def test_due_template_materializes_and_advances(self):
        template = self.make_template(reference_number_prefix="RENT-")

        result = process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        self.assertTrue(result.success, result.error)
        self.assertEqual(result.data["processed"], 1)
        self.assertEqual(result.data["failed"], 0)
        self.assertEqual(result.data["message"], "Processed 1 recurring transactions. 0 failed.")

        template.refresh_from_db()
        self.assertEqual(template.next_run_date, date(2025, 2, 1))
        self.assertEqual(template.last_run_date, date(2025, 1, 1))

        entry = JournalEntry.objects.get()
        self.assertEqual(entry.entry_date, date(2025, 1, 1))
        self.assertEqual(entry.description, "Monthly rent (Recurring)")
        self.assertEqual(entry.reference_number, "RENT-2025-01")
        self.assertTrue(entry.is_balanced)
        self.assertTrue(all(line.fund == self.general for line in entry.lines.all()))

        history = RecurringHistory.objects.get()
        self.assertEqual((history.status, history.journal_entry), ("success", entry))

    def test_rerun_same_day_is_idempotent(self):
        self.make_template()
        process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        again = process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        self.assertEqual(again.data["processed"], 0)
        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_not_yet_due_is_untouched(self):
        self.make_template(start=date(2025, 5, 1))
        result = process_recurring_transactions(self.bookkeeper, process_date="2025-04-30")
        self.assertEqual(result.data["processed"], 0)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_late_run_steps_from_schedule_not_run_date(self):
        template = self.make_template(start=date(2025, 1, 5))
        process_recurring_transactions(self.bookkeeper, process_date="2025-01-20")
        template.refresh_from_db()
        self.assertEqual(template.next_run_date, date(2025, 2, 5))

    def test_inactive_template_skipped(self):
        template = self.make_template()
        toggle_recurring_template(self.bookkeeper, template.pk, False)
        result = process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        self.assertEqual(result.data["processed"], 0)

    def test_failed_template_keeps_schedule_and_others_continue(self):
        broken = self.make_template()
        healthy = create_recurring_template(
            self.bookkeeper, template_name="Internet", description="ISP",
            frequency="monthly", start_date="2025-01-01", fund_id=self.general.pk, amount="60",
            lines=[{"account_id": self.supplies.pk, "debit": "60"},
                   {"account_id": self.savings.pk, "credit": "60"}],
        ).data["template_id"]
        # utilities deactivated behind the template's back
        Account.objects.filter(pk=self.utilities.pk).update(is_active=False)

        result = process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        self.assertEqual(result.data["processed"], 1)
        self.assertEqual(result.data["failed"], 1)

        broken.refresh_from_db()
        self.assertEqual(broken.next_run_date, date(2025, 1, 1))
        failure = RecurringHistory.objects.get(template=broken)
        self.assertEqual(failure.status, "failed")
        self.assertIsNone(failure.journal_entry)
        self.assertIn("inactive", failure.error_message)

        self.assertEqual(JournalEntry.objects.count(), 1)
        self.assertEqual(RecurringTemplate.objects.get(pk=healthy).next_run_date, date(2025, 2, 1))

        # once the account is back the same template is still due and runs
        Account.objects.filter(pk=self.utilities.pk).update(is_active=True)
        retry = process_recurring_transactions(self.bookkeeper, process_date="2025-01-02")
        self.assertEqual(retry.data["processed"], 1)
        self.assertEqual(retry.data["failed"], 0)
        self.assertEqual(retry.data["results"][0]["template_id"], broken.pk)

        broken.refresh_from_db()
        self.assertEqual(broken.next_run_date, date(2025, 2, 1))
        self.assertEqual(broken.last_run_date, date(2025, 1, 2))
        success = RecurringHistory.objects.get(template=broken, status="success")
        self.assertEqual(success.journal_entry.entry_date, date(2025, 1, 2))
        self.assertEqual(JournalEntry.objects.count(), 2)

    def test_end_date_reached_deactivates(self):
        template = self.make_template(end_date=date(2025, 1, 31))
        result = process_recurring_transactions(self.bookkeeper, process_date="2025-02-15")
        self.assertEqual(result.data["skipped"], 1)
        self.assertEqual(result.data["results"][0]["message"], "End date reached")
        template.refresh_from_db()
        self.assertFalse(template.is_active)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_due_count(self):
        self.make_template()
        self.make_template(start=date(2025, 9, 1))
        result = get_due_template_count(self.viewer, process_date="2025-03-01")
        self.assertEqual(result.data, 1)

    def test_history_listing(self):
        template = self.make_template()
        process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        rows = get_recurring_history(self.viewer, template_id=template.pk).data
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["amount"], D("1200.00"))
        self.assertEqual(rows[0]["template_name"], "Parsonage rent")


class TemplateLifecycleTests(RecurringTestCase):

    def test_delete_keeps_generated_entries(self):
        template = self.make_template()
        process_recurring_transactions(self.bookkeeper, process_date="2025-01-01")
        result = delete_recurring_template(self.bookkeeper, template.pk)
        self.assertTrue(result.success, result.error)
        self.assertFalse(RecurringTemplate.objects.exists())
        self.assertFalse(RecurringHistory.objects.exists())
        self.assertEqual(JournalEntry.objects.count(), 1)

    def test_missing_template(self):
        result = toggle_recurring_template(self.bookkeeper, 4242, True)
        self.assertEqual(result.error_code, "not_found")
        self.assertEqual(result.error, "Recurring template not found")


class SchedulerEntryPointTests(RecurringTestCase):

    def test_celery_task_runs_as_system(self):
        self.make_template()
        summary = process_recurring_transactions_task("2025-01-01")
        self.assertEqual(summary["processed"], 1)
        self.assertEqual(summary["results"][0]["status"], "success")
        self.assertIsNone(JournalEntry.objects.get().created_by)

    def test_management_command(self):
        self.make_template()
        out = StringIO()
        call_command("process_recurring", "--date", "2025-01-01", stdout=out)
        self.assertIn("Processed 1 recurring transactions. 0 failed.", out.getvalue())
        self.assertIn("Parsonage rent: success", out.getvalue())

    def test_management_command_bad_date(self):
        from django.core.management.base import CommandError
        with self.assertRaises(CommandError):
            call_command("process_recurring", "--date", "not-a-date")


class RecurringReadAccessTests(RecurringTestCase):

    def test_reads_need_a_ledger_role(self):
        template = self.make_template()
        self.assertEqual(get_recurring_history(None, template_id=template.pk).error_code,
                         "authorization")
        self.assertEqual(get_due_template_count(None, process_date="2025-03-01").error_code,
                         "authorization")
        self.assertTrue(get_due_template_count(self.viewer, process_date="2025-03-01").success)
