# finance/tests/unit/test_service_scheduled.py

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.exceptions import ValidationError

from finance.models import EXPENSE, INCOME, ScheduledTransaction, Transaction
from finance.services.scheduled_transaction_service import ScheduledTransactionService

from ..factories import ScheduledTransactionFactory


@pytest.fixture
def service():
    return ScheduledTransactionService()


@pytest.mark.django_db
class TestExecuteDueTransactions:
    def test_due_definition_writes_one_occurrence(self, service, monthly_rent):
        result = service.execute_due_transactions(today=date(2024, 1, 31))

        assert len(result["executed"]) == 1
        occurrence = Transaction.objects.get(id=result["executed"][0])
        assert occurrence.user_id == monthly_rent.user_id
        assert occurrence.type == EXPENSE
        assert occurrence.category == "Housing"
        assert occurrence.amount == Decimal("750.00")
        assert occurrence.date == date(2024, 1, 31)
        assert occurrence.scheduled_transaction_id == monthly_rent.id
        assert occurrence.is_scheduled is True
        assert occurrence.recurrence == "Monthly"
        assert occurrence.schedule == "2024-01-31"

        monthly_rent.refresh_from_db()
        assert monthly_rent.next_execution == date(2024, 2, 29)
        assert monthly_rent.last_execution == date(2024, 1, 31)

    def test_month_end_schedule_returns_to_the_31st(self, service, monthly_rent):
        service.execute_due_transactions(today=date(2024, 1, 31))
        service.execute_due_transactions(today=date(2024, 2, 29))

        monthly_rent.refresh_from_db()
        assert monthly_rent.next_execution == date(2024, 3, 31)

    def test_second_run_same_day_is_idempotent(self, service, monthly_rent):
        service.execute_due_transactions(today=date(2024, 1, 31))
        result = service.execute_due_transactions(today=date(2024, 1, 31))

        assert result["executed"] == []
        assert Transaction.objects.filter(scheduled_transaction=monthly_rent).count() == 1

    def test_not_yet_due_is_skipped(self, service, monthly_rent):
        result = service.execute_due_transactions(today=date(2024, 1, 30))

        assert result["executed"] == []
        assert not Transaction.objects.exists()

    def test_one_occurrence_per_run_when_behind(self, service, test_user):
        definition = ScheduledTransactionFactory(
            user=test_user,
            frequency=ScheduledTransaction.DAILY,
            start_date=date(2024, 5, 1),
            next_execution=date(2024, 5, 1),
        )

        service.execute_due_transactions(today=date(2024, 5, 10))

        definition.refresh_from_db()
        assert Transaction.objects.filter(scheduled_transaction=definition).count() == 1
        assert definition.next_execution == date(2024, 5, 2)

    def test_null_next_execution_falls_back_to_start_date(self, service, test_user):
        definition = ScheduledTransactionFactory(
            user=test_user,
            type=INCOME,
            category="Salary",
            frequency=ScheduledTransaction.WEEKLY,
            start_date=date(2024, 6, 3),
            next_execution=None,
        )

        result = service.execute_due_transactions(today=date(2024, 6, 3))

        definition.refresh_from_db()
        assert len(result["executed"]) == 1
        assert definition.next_execution == date(2024, 6, 10)

    def test_paused_definition_is_skipped(self, service, monthly_rent):
        monthly_rent.status = ScheduledTransaction.PAUSED
        monthly_rent.save()

        result = service.execute_due_transactions(today=date(2024, 2, 1))

        assert result["executed"] == []

    def test_definition_completes_after_end_date(self, service, test_user):
        definition = ScheduledTransactionFactory(
            user=test_user,
            frequency=ScheduledTransaction.MONTHLY,
            start_date=date(2024, 1, 15),
            next_execution=date(2024, 1, 15),
            end_date=date(2024, 2, 1),
        )

        result = service.execute_due_transactions(today=date(2024, 1, 15))

        definition.refresh_from_db()
        assert definition.status == ScheduledTransaction.COMPLETED
        assert result["completed"] == [definition.id]
        assert definition.next_execution == date(2024, 2, 15)

    def test_expired_definition_is_not_due(self, service, test_user):
        ScheduledTransactionFactory(
            user=test_user,
            start_date=date(2024, 1, 1),
            next_execution=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
        )

        result = service.execute_due_transactions(today=date(2024, 2, 5))

        assert result["executed"] == []

    def test_failure_in_one_definition_does_not_stop_others(self, service, test_user):
        first = ScheduledTransactionFactory(
            user=test_user, start_date=date(2024, 3, 1), next_execution=date(2024, 3, 1)
        )
        second = ScheduledTransactionFactory(
            user=test_user, start_date=date(2024, 3, 2), next_execution=date(2024, 3, 2)
        )
        original = service._execute_one

        def flaky(definition_id, today):
            if definition_id == first.id:
                raise RuntimeError("boom")
            return original(definition_id, today)

        with patch.object(service, "_execute_one", side_effect=flaky), patch(
            "finance.services.scheduled_transaction_service.logger"
        ) as mock_logger:
            result = service.execute_due_transactions(today=date(2024, 3, 5))

        assert result["errors"] == [{"scheduled_transaction_id": first.id, "error": "boom"}]
        assert len(result["executed"]) == 1
        assert Transaction.objects.get().scheduled_transaction_id == second.id
        first.refresh_from_db()
        assert first.next_execution == date(2024, 3, 1)
        assert mock_logger.error.call_args[1]["extra"]["action"] == "scheduled_execution_failed"


@pytest.mark.django_db
class TestDefinitionLifecycle:
    def _payload(self, **overrides):
        data = {
            "description": "Gym",
            "amount": Decimal("35.00"),
            "type": EXPENSE,
            "category": "Health",
            "payment_method": "Credit Card",
            "frequency": ScheduledTransaction.MONTHLY,
            "start_date": date(2024, 4, 10),
        }
        data.update(overrides)
        return data

    def test_create_sets_next_execution_to_start_date(self, service, test_user):
        definition = service.create_definition(test_user, self._payload())

        assert definition.next_execution == date(2024, 4, 10)
        assert definition.status == ScheduledTransaction.ACTIVE

    def test_create_rejects_category_of_other_type(self, service, test_user):
        with pytest.raises(ValidationError):
            service.create_definition(test_user, self._payload(category="Salary"))

    def test_create_rejects_end_before_start(self, service, test_user):
        with pytest.raises(ValidationError):
            service.create_definition(test_user, self._payload(end_date=date(2024, 4, 1)))

    def test_update_of_frequency_resets_schedule(self, service, monthly_rent):
        service.execute_due_transactions(today=date(2024, 1, 31))
        monthly_rent.refresh_from_db()

        definition = service.update_definition(
            monthly_rent, {"frequency": ScheduledTransaction.WEEKLY}
        )

        assert definition.next_execution == date(2024, 1, 31)

    def test_update_of_amount_keeps_schedule(self, service, monthly_rent):
        service.execute_due_transactions(today=date(2024, 1, 31))
        monthly_rent.refresh_from_db()

        definition = service.update_definition(monthly_rent, {"amount": Decimal("800.00")})

        assert definition.next_execution == date(2024, 2, 29)

    def test_delete_keeps_ledger_occurrences(self, service, monthly_rent):
        result = service.execute_due_transactions(today=date(2024, 1, 31))

        service.delete_definition(monthly_rent)

        occurrence = Transaction.objects.get(id=result["executed"][0])
        assert occurrence.scheduled_transaction_id is None

    def test_set_status(self, service, monthly_rent):
        definition = service.set_status(monthly_rent, ScheduledTransaction.PAUSED)

        definition.refresh_from_db()
        assert definition.status == ScheduledTransaction.PAUSED
