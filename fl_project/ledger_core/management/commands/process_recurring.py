from django.core.management.base import BaseCommand, CommandError

from ledger_core.exceptions import LedgerError
from ledger_core.services.recurring import run_recurring_templates


class Command(BaseCommand):
    help = "Materializes every due recurring template (same work as the daily Celery task)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            type=str,
            default=None,
            help="Processing date YYYY-MM-DD (default: today)",
        )

    def handle(self, *args, **options):
        try:
            summary = run_recurring_templates(options["date"])
        except LedgerError as exc:
            raise CommandError(str(exc))
        for item in summary["results"]:
            detail = item.get("error") or item.get("message") or f"entry {item.get('journal_entry_id')}"
            self.stdout.write(f"  {item['template_name']}: {item['status']} ({detail})")
        style = self.style.SUCCESS if summary["failed"] == 0 else self.style.WARNING
        self.stdout.write(style(summary["message"]))
