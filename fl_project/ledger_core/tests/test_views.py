import json

from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory
from django.urls import reverse

from ledger_core.models import JournalEntry
from ledger_core.views import account_balance_view

from .base import LedgerTestCase


class LedgerApiTests(LedgerTestCase):

    def post(self, url, payload, user=None):
        self.client.force_login(user or self.bookkeeper)
        return self.client.post(url, data=json.dumps(payload), content_type="application/json")

    def giving_payload(self, amount="100.00"):
        return {
            "entry_date": "2025-03-02",
            "fund_id": self.general.pk,
            "income_account_id": self.tithes.pk,
            "checking_account_id": self.checking.pk,
            "amount": amount,
        }

    def test_weekly_giving_created(self):
        response = self.post(reverse("ledger_core:weekly-giving"), self.giving_payload())
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["data"]["total_debits"], "100.00")
        self.assertEqual(len(body["data"]["lines"]), 2)

    def test_validation_maps_to_400(self):
        response = self.post(reverse("ledger_core:weekly-giving"), self.giving_payload("-1"))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(),
                         {"success": False, "error": "Amount must be greater than zero",
                          "error_code": "validation"})

    def test_viewer_gets_403(self):
        response = self.post(reverse("ledger_core:weekly-giving"), self.giving_payload(),
                             user=self.viewer)
        self.assertEqual(response.status_code, 403)
        self.assertEqual(JournalEntry.objects.count(), 0)

    def test_malformed_json(self):
        self.client.force_login(self.bookkeeper)
        response = self.client.post(reverse("ledger_core:weekly-giving"), data="{not json",
                                    content_type="application/json")
        self.assertEqual(response.status_code, 400)

    def test_get_not_allowed_on_post_endpoints(self):
        self.client.force_login(self.bookkeeper)
        self.assertEqual(self.client.get(reverse("ledger_core:weekly-giving")).status_code, 405)

    def test_void_then_conflict(self):
        entry_id = self.give("25")["journal_entry_id"]
        url = reverse("ledger_core:void-entry", args=[entry_id])
        self.assertEqual(self.post(url, {"reason": "Duplicate"}).status_code, 200)
        second = self.post(url, {"reason": "Duplicate"})
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.json()["error_code"], "conflict")

    def test_void_unknown_entry(self):
        url = reverse("ledger_core:void-entry", args=[424242])
        self.assertEqual(self.post(url, {"reason": "x"}).status_code, 404)

    def test_reconciliation_round_trip(self):
        data = self.give("500.00")
        line_id = next(l["id"] for l in data["lines"] if l["account_id"] == self.checking.pk)

        started = self.post(reverse("ledger_core:start-reconciliation"), {
            "account_id": self.checking.pk,
            "statement_date": "2025-03-31",
            "statement_balance": "500.00",
        })
        self.assertEqual(started.status_code, 200)
        rec_id = started.json()["data"]["reconciliation_id"]

        finalized = self.post(
            reverse("ledger_core:finalize-reconciliation", args=[rec_id]),
            {"account_id": self.checking.pk, "cleared_transaction_ids": [line_id]},
        )
        self.assertEqual(finalized.status_code, 200)
        self.assertEqual(finalized.json()["data"]["status"], "completed")

    def test_process_recurring_endpoint(self):
        response = self.post(reverse("ledger_core:process-recurring"), {"process_date": "2025-03-01"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["processed"], 0)


class AccountBalanceViewTests(LedgerTestCase):

    def setUp(self):
        super().setUp()
        self.factory = RequestFactory()

    def test_balance_for_viewer(self):
        self.give("60", fund=self.missions)
        request = self.factory.get(f"/api/ledger/accounts/{self.checking.pk}/balance/",
                                   {"fund_id": self.missions.pk})
        request.user = self.viewer
        response = account_balance_view(request, self.checking.pk)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(json.loads(response.content)["data"], "60.00")

    def test_anonymous_rejected(self):
        request = self.factory.get(f"/api/ledger/accounts/{self.checking.pk}/balance/")
        request.user = AnonymousUser()
        response = account_balance_view(request, self.checking.pk)
        self.assertEqual(response.status_code, 403)


class MalformedIdTests(LedgerTestCase):

    def test_finalize_with_non_numeric_ids_is_a_400(self):
        self.client.force_login(self.bookkeeper)
        started = self.client.post(
            reverse("ledger_core:start-reconciliation"),
            data=json.dumps({"account_id": self.checking.pk, "statement_date": "2025-03-31",
                             "statement_balance": "0"}),
            content_type="application/json",
        )
        rec_id = started.json()["data"]["reconciliation_id"]
        response = self.client.post(
            reverse("ledger_core:finalize-reconciliation", args=[rec_id]),
            data=json.dumps({"account_id": self.checking.pk, "cleared_transaction_ids": ["abc"]}),
            content_type="application/json",
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error_code"], "validation")
