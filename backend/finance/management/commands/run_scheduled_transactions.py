import logging
from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from finance.services.scheduled_transaction_service import ScheduledTransactionService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Write every due scheduled transaction occurrence to the ledger"

    def add_arguments(self, parser):
        parser.add_argument(
            "--date",
            help="Run date in YYYY-MM-DD format (defaults to today)",
        )

    def handle(self, *args, **options):
        run_date = self._parse_date(options.get("date"))
        self.stdout.write(f"Running scheduled transactions for {run_date.isoformat()}")

        result = ScheduledTransactionService().execute_due_transactions(today=run_date)

        self.stdout.write(f"Executed: {len(result['executed'])}")
        if result["completed"]:
            self.stdout.write(
                self.style.WARNING(
                    f"Completed definitions: {', '.join(str(pk) for pk in result['completed'])}"
                )
            )

        for error in result["errors"]:
            self.stdout.write(
                self.style.ERROR(
                    f"Failed: scheduled transaction {error['scheduled_transaction_id']}: {error['error']}"
                )
            )

        self.stdout.write("=" * 50)
        if result["errors"]:
            self.stdout.write(
                self.style.ERROR(f"{len(result['errors'])} scheduled transactions failed")
            )
        else:
            self.stdout.write(self.style.SUCCESS("All due scheduled transactions processed"))

    def _parse_date(self, value):
        if not value:
            return timezone.localdate()
        try:
            return date.fromisoformat(value)
        except ValueError:
            logger.warning(
                "Invalid run date passed to command",
                extra={
                    "value": value,
                    "action": "scheduled_command_invalid_date",
                    "component": "run_scheduled_transactions",
                    "severity": "low",
                },
            )
            raise CommandError(f"Invalid date '{value}'. Use YYYY-MM-DD.")
