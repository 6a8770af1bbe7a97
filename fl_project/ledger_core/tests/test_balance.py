from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import SimpleTestCase

from ledger_core.exceptions import LedgerValidationError, UnbalancedJournalError
from ledger_core.models import JournalEntry, LedgerLine
from ledger_core.services.validation import (ProposedLine, assert_balanced,
                                             check_balance, to_money,
                                             validate_line_sides)

from .base import LedgerTestCase

""" Pure balance checks, no database """
class BalanceValidatorTests(SimpleTestCase):

    def test_balanced_lines(self):
        check = check_balance([
            ProposedLine(1, 1, debit=Decimal("100.00")),
            ProposedLine(2, 1, credit=Decimal("100.00")),
        ])
        self.assertTrue(check.is_balanced)
        self.assertEqual(check.total_debits, Decimal("100.00"))
        self.assertEqual(check.difference, Decimal("0.00"))

    def test_one_cent_off_is_not_balanced(self):
        check = check_balance([
            ProposedLine(1, 1, debit=Decimal("100.00")),
            ProposedLine(2, 1, credit=Decimal("99.99")),
        ])
        self.assertFalse(check.is_balanced)

    def test_sub_cent_drift_is_tolerated(self):
        check = check_balance([
            {"debit": "0.1", "credit": 0},
            {"debit": "0.2", "credit": 0},
            {"debit": 0, "credit": "0.3"},
        ])
        self.assertTrue(check.is_balanced)

    def test_unbalanced_reports_totals_and_delta(self):
        with self.assertRaises(UnbalancedJournalError) as ctx:
            assert_balanced([
                ProposedLine(1, 1, debit=Decimal("120.00")),
                ProposedLine(2, 1, credit=Decimal("100.00")),
            ])
        err = ctx.exception
        self.assertEqual(err.difference, Decimal("20.00"))
        self.assertIn("Debits: 120.00", str(err))
        self.assertIn("Credits: 100.00", str(err))
        self.assertIn("Difference: 20.00", str(err))
        self.assertEqual(err.code, "validation")

    def test_line_with_both_sides_rejected(self):
        with self.assertRaisesMessage(LedgerValidationError, "Line 2: Cannot have both debit and credit"):
            validate_line_sides([
                ProposedLine(1, 1, debit=Decimal("5.00")),
                ProposedLine(2, 1, debit=Decimal("5.00"), credit=Decimal("5.00")),
            ])

    def test_line_with_neither_side_rejected(self):
        with self.assertRaisesMessage(LedgerValidationError, "Line 1: Must have either a debit or credit amount"):
            validate_line_sides([ProposedLine(1, 1)])

    def test_to_money_rounds_half_up(self):
        self.assertEqual(to_money("10.005"), Decimal("10.01"))
        self.assertEqual(to_money(0.1), Decimal("0.10"))
        with self.assertRaises(LedgerValidationError):
            to_money("ten dollars")
        with self.assertRaises(LedgerValidationError):
            to_money(None)


""" Line exclusivity enforced by the model and the database """
class LedgerLineConstraintTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.entry = JournalEntry.objects.create(entry_date=self.today, description="Manual")

    def test_model_rejects_both_sides(self):
        with self.assertRaises(ValidationError):
            LedgerLine.objects.create(
                journal_entry=self.entry, account=self.checking, fund=self.general,
                debit=Decimal("1.00"), credit=Decimal("1.00"),
            )

    def test_model_rejects_zero_line(self):
        with self.assertRaises(ValidationError):
            LedgerLine.objects.create(
                journal_entry=self.entry, account=self.checking, fund=self.general,
            )

    def test_database_rejects_both_sides(self):
        # bulk_create skips save()/full_clean(), so only the CHECK constraint stands in the way
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                LedgerLine.objects.bulk_create([
                    LedgerLine(journal_entry=self.entry, account=self.checking, fund=self.general,
                               debit=Decimal("1.00"), credit=Decimal("1.00")),
                ])
