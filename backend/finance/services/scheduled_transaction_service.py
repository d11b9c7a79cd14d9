"""
Production-grade service for recurring transaction definitions.
Handles definition lifecycle and the advancer that materializes due
occurrences into the ledger, one row-locked atomic block per definition.
"""

import logging

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from ..models import ScheduledTransaction, Transaction
from ..utils.schedule_utils import advance_date

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "description",
    "amount",
    "type",
    "category",
    "payment_method",
    "frequency",
    "start_date",
    "end_date",
    "status",
)

# Changing either of these invalidates the computed next occurrence
SCHEDULE_FIELDS = ("start_date", "frequency")


def _due_filter(today):
    return Q(status=ScheduledTransaction.ACTIVE) & (
        Q(next_execution__lte=today)
        | Q(next_execution__isnull=True, start_date__lte=today)
    ) & (Q(end_date__isnull=True) | Q(end_date__gte=today))


class ScheduledTransactionService:
    """
    Recurring transaction service.

    ``next_execution`` is the earliest occurrence not yet in the ledger. The
    advancer writes at most one occurrence per definition per run and moves
    ``next_execution`` past it in the same atomic block.
    """

    # -------------------------------------------------------------------
    # DEFINITION LIFECYCLE
    # -------------------------------------------------------------------

    def get_user_definitions(self, user):
        return ScheduledTransaction.objects.filter(user=user).order_by(
            "next_execution", "id"
        )

    @transaction.atomic
    def create_definition(self, user, data) -> ScheduledTransaction:
        """
        Create a definition whose first occurrence is its start date.

        Raises:
            ValidationError: If category/type, amount or dates are invalid
        """
        definition = ScheduledTransaction(
            user=user, **{field: data[field] for field in EDITABLE_FIELDS if field in data}
        )
        definition.next_execution = definition.start_date
        definition.full_clean(exclude=["user"])
        definition.save()

        logger.info(
            "Scheduled transaction created",
            extra={
                "user_id": user.id,
                "scheduled_transaction_id": definition.id,
                "frequency": definition.frequency,
                "next_execution": str(definition.next_execution),
                "action": "scheduled_transaction_created",
                "component": "ScheduledTransactionService",
            },
        )
        return definition

    @transaction.atomic
    def update_definition(self, definition: ScheduledTransaction, data) -> ScheduledTransaction:
        """
        Update a definition.

        When the start date or frequency changes, the schedule restarts at
        the (new) start date.
        """
        schedule_changed = any(
            field in data and data[field] != getattr(definition, field)
            for field in SCHEDULE_FIELDS
        )

        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(definition, field, data[field])
        if schedule_changed:
            definition.next_execution = definition.start_date

        definition.full_clean(exclude=["user"])
        definition.save()

        logger.info(
            "Scheduled transaction updated",
            extra={
                "user_id": definition.user_id,
                "scheduled_transaction_id": definition.id,
                "schedule_reset": schedule_changed,
                "next_execution": str(definition.next_execution),
                "action": "scheduled_transaction_updated",
                "component": "ScheduledTransactionService",
            },
        )
        return definition

    def set_status(self, definition: ScheduledTransaction, status: str) -> ScheduledTransaction:
        previous_status = definition.status
        definition.status = status
        definition.save(update_fields=["status", "updated_at"])

        logger.info(
            "Scheduled transaction status changed",
            extra={
                "user_id": definition.user_id,
                "scheduled_transaction_id": definition.id,
                "previous_status": previous_status,
                "status": status,
                "action": "scheduled_transaction_status_changed",
                "component": "ScheduledTransactionService",
            },
        )
        return definition

    def delete_definition(self, definition: ScheduledTransaction):
        """Delete a definition; occurrences already in the ledger are kept."""
        definition_id = definition.id
        user_id = definition.user_id
        definition.delete()

        logger.info(
            "Scheduled transaction deleted",
            extra={
                "user_id": user_id,
                "scheduled_transaction_id": definition_id,
                "action": "scheduled_transaction_deleted",
                "component": "ScheduledTransactionService",
            },
        )

    # -------------------------------------------------------------------
    # ADVANCER
    # -------------------------------------------------------------------

    def get_due_definitions(self, today=None):
        today = today or timezone.localdate()
        return ScheduledTransaction.objects.filter(_due_filter(today)).order_by(
            "next_execution", "id"
        )

    def execute_due_transactions(self, today=None) -> dict:
        """
        Materialize every due occurrence as of ``today``.

        Each definition is processed in its own atomic block: a failure is
        logged, recorded in ``errors`` and does not stop the others.

        Args:
            today: Run date; defaults to the local date

        Returns:
            dict: ``executed`` (created transaction ids), ``completed``
                (definition ids that reached their end date) and ``errors``
                (``{"scheduled_transaction_id", "error"}`` entries)
        """
        today = today or timezone.localdate()
        due_ids = list(self.get_due_definitions(today).values_list("id", flat=True))

        logger.info(
            "Scheduled transaction run started",
            extra={
                "run_date": today.isoformat(),
                "due_count": len(due_ids),
                "action": "scheduled_run_start",
                "component": "ScheduledTransactionService",
            },
        )

        result = {"executed": [], "completed": [], "errors": []}
        for definition_id in due_ids:
            try:
                occurrence, definition = self._execute_one(definition_id, today)
            except Exception as e:
                logger.error(
                    "Scheduled transaction execution failed",
                    extra={
                        "scheduled_transaction_id": definition_id,
                        "run_date": today.isoformat(),
                        "error_type": type(e).__name__,
                        "error_message": str(e),
                        "action": "scheduled_execution_failed",
                        "component": "ScheduledTransactionService",
                        "severity": "high",
                    },
                    exc_info=True,
                )
                result["errors"].append(
                    {"scheduled_transaction_id": definition_id, "error": str(e)}
                )
                continue

            if occurrence is None:
                continue
            result["executed"].append(occurrence.id)
            if definition.status == ScheduledTransaction.COMPLETED:
                result["completed"].append(definition.id)

        logger.info(
            "Scheduled transaction run finished",
            extra={
                "run_date": today.isoformat(),
                "executed_count": len(result["executed"]),
                "completed_count": len(result["completed"]),
                "error_count": len(result["errors"]),
                "action": "scheduled_run_finished",
                "component": "ScheduledTransactionService",
            },
        )
        return result

    def _execute_one(self, definition_id: int, today):
        """
        Lock one definition, re-check it is still due and write its occurrence.

        Returns:
            tuple: ``(transaction, definition)``, or ``(None, None)`` when a
                concurrent run already advanced the definition
        """
        with transaction.atomic():
            definition = (
                ScheduledTransaction.objects.select_for_update()
                .filter(_due_filter(today))
                .filter(pk=definition_id)
                .first()
            )
            if definition is None:
                logger.debug(
                    "Scheduled transaction no longer due",
                    extra={
                        "scheduled_transaction_id": definition_id,
                        "run_date": today.isoformat(),
                        "action": "scheduled_execution_skipped",
                        "component": "ScheduledTransactionService",
                    },
                )
                return None, None

            due_date = definition.next_execution or definition.start_date

            occurrence = Transaction.objects.create(
                user_id=definition.user_id,
                type=definition.type,
                category=definition.category,
                amount=definition.amount,
                date=today,
                description=definition.description,
                payment_method=definition.payment_method,
                status=Transaction.COMPLETED,
                scheduled_transaction=definition,
                is_scheduled=True,
                recurrence=definition.frequency,
                schedule=due_date.isoformat(),
                end_date=definition.end_date,
            )

            definition.next_execution = advance_date(
                due_date, definition.frequency, anchor_day=definition.start_date.day
            )
            definition.last_execution = today
            if definition.end_date and definition.next_execution > definition.end_date:
                definition.status = ScheduledTransaction.COMPLETED
            definition.save(
                update_fields=["next_execution", "last_execution", "status", "updated_at"]
            )

        logger.info(
            "Scheduled transaction executed",
            extra={
                "user_id": definition.user_id,
                "scheduled_transaction_id": definition.id,
                "transaction_id": occurrence.id,
                "due_date": due_date.isoformat(),
                "next_execution": definition.next_execution.isoformat(),
                "status": definition.status,
                "action": "scheduled_execution_success",
                "component": "ScheduledTransactionService",
            },
        )
        return occurrence, definition
