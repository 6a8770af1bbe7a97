from django.core.management.base import BaseCommand
from django.db import transaction

from ledger_core.models import Account, Fund

# Starter church chart: (number, name, type)
STARTER_ACCOUNTS = [
    (1100, "Operating Checking", "Asset"),
    (1200, "Savings", "Asset"),
    (1500, "Equipment", "Asset"),
    (2100, "Accounts Payable", "Liability"),
    (2200, "Credit Card Payable", "Liability"),
    (3000, "Net Assets - Unrestricted", "Equity"),
    (3100, "Net Assets - Restricted", "Equity"),
    (3900, "Opening Balance Equity", "Equity"),
    (4000, "Tithes", "Income"),
    (4100, "Offerings", "Income"),
    (4200, "Online Donations", "Income"),
    (4500, "In-Kind Contributions", "Income"),
    (5100, "Utilities", "Expense"),
    (5200, "Supplies", "Expense"),
    (5300, "Payment Processing Fees", "Expense"),
    (5400, "Missions Support", "Expense"),
]

STARTER_FUNDS = [
    ("General", False, 3000),
    ("Missions", True, 3100),
    ("Building", True, 3100),
]


class Command(BaseCommand):
    help = "Seeds a starter chart of accounts and funds (safe to run twice)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--no-funds",
            action="store_true",
            help="Only create accounts",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        created_accounts = 0
        for number, name, account_type in STARTER_ACCOUNTS:
            _, created = Account.objects.get_or_create(
                account_number=number,
                defaults={"name": name, "account_type": account_type},
            )
            created_accounts += created

        created_funds = 0
        if not options["no_funds"]:
            for name, restricted, equity_number in STARTER_FUNDS:
                _, created = Fund.objects.get_or_create(
                    name=name,
                    defaults={
                        "is_restricted": restricted,
                        "net_asset_account": Account.objects.get(account_number=equity_number),
                    },
                )
                created_funds += created

        self.stdout.write(self.style.SUCCESS(
            f"Seeded {created_accounts} accounts and {created_funds} funds."
        ))
