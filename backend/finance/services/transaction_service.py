"""
Service for ledger transaction operations with validation and logging.

This module provides the TransactionService class for manual ledger CRUD and
the read-only reports (recent rows, dashboard, statistics) built on top of it.
"""

import calendar
import logging

from django.core.exceptions import ValidationError
from django.db import transaction as db_transaction
from django.db.models import Avg, Count, DecimalField, F, Max, Min, Q, Sum, Value
from django.db.models.functions import Coalesce, ExtractIsoWeekDay, TruncMonth
from django.utils import timezone

from ..models import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    EXPENSE,
    INCOME,
    Transaction,
    validate_category_for_type,
)
from ..utils.schedule_utils import add_months
from .balance_service import ZERO, BalanceService, quantize_amount

# Get structured logger for this module
logger = logging.getLogger(__name__)

RECENT_LIMIT = 5
DASHBOARD_MONTHS = 6

# Fields a client may set on a manual ledger row
EDITABLE_FIELDS = (
    "type",
    "category",
    "amount",
    "date",
    "description",
    "payment_method",
    "status",
)

_AMOUNT_OUTPUT = DecimalField(
    max_digits=AMOUNT_MAX_DIGITS + 4, decimal_places=AMOUNT_DECIMAL_PLACES
)


def _coalesced(expression):
    return Coalesce(expression, Value(ZERO), output_field=_AMOUNT_OUTPUT)


def _income_sum():
    return _coalesced(Sum("amount", filter=Q(type=INCOME)))


def _expense_sum():
    return _coalesced(Sum("amount", filter=Q(type=EXPENSE)))


def _money(value):
    return quantize_amount(value if value is not None else ZERO)


class TransactionService:
    """
    Service for handling manual ledger operations.

    Goal contributions and refunds are written by GoalService and scheduled
    occurrences by ScheduledTransactionService; this service never touches
    ``goal`` or the scheduling lineage fields.
    """

    # -------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------

    @staticmethod
    def get_user_transactions(user, filters=None):
        """
        Ledger rows owned by ``user``, newest first.

        Args:
            user: Ledger owner
            filters: Optional mapping with ``type``, ``category``,
                ``start_date`` and ``end_date`` (inclusive)
        """
        filters = filters or {}
        queryset = Transaction.objects.filter(user=user).select_related("goal")

        if filters.get("type"):
            queryset = queryset.filter(type=filters["type"])
        if filters.get("category"):
            queryset = queryset.filter(category=filters["category"])
        if filters.get("start_date"):
            queryset = queryset.filter(date__gte=filters["start_date"])
        if filters.get("end_date"):
            queryset = queryset.filter(date__lte=filters["end_date"])

        return queryset

    @staticmethod
    def get_recent_transactions(user, limit: int = RECENT_LIMIT):
        return Transaction.objects.filter(user=user).order_by("-date", "-created_at")[:limit]

    # -------------------------------------------------------------------
    # WRITES
    # -------------------------------------------------------------------

    @staticmethod
    @db_transaction.atomic
    def create_transaction(user, data) -> Transaction:
        """
        Create a manual ledger row.

        Raises:
            ValidationError: If the category does not belong to the type or
                the amount is not positive
        """
        TransactionService._validate_transaction_data(data)

        instance = Transaction(
            user=user, **{field: data[field] for field in EDITABLE_FIELDS if field in data}
        )
        instance.full_clean(exclude=["user", "goal", "scheduled_transaction"])
        instance.save()

        logger.info(
            "Transaction created",
            extra={
                "user_id": user.id,
                "transaction_id": instance.id,
                "transaction_type": instance.type,
                "category": instance.category,
                "amount": str(instance.amount),
                "action": "transaction_created",
                "component": "TransactionService",
            },
        )
        return instance

    @staticmethod
    @db_transaction.atomic
    def update_transaction(instance: Transaction, data) -> Transaction:
        """
        Apply ``data`` to a ledger row owned by the requesting user.

        Type and category are validated together against the resulting row,
        so a partial update that changes only one of them is still checked.
        """
        TransactionService._ensure_not_goal_linked(instance, "update")
        merged = {field: data.get(field, getattr(instance, field)) for field in EDITABLE_FIELDS}
        TransactionService._validate_transaction_data(merged, is_update=True)

        for field in EDITABLE_FIELDS:
            if field in data:
                setattr(instance, field, data[field])
        instance.full_clean(exclude=["user", "goal", "scheduled_transaction"])
        instance.save()

        logger.info(
            "Transaction updated",
            extra={
                "user_id": instance.user_id,
                "transaction_id": instance.id,
                "updated_fields": [field for field in EDITABLE_FIELDS if field in data],
                "action": "transaction_updated",
                "component": "TransactionService",
            },
        )
        return instance

    @staticmethod
    def delete_transaction(instance: Transaction):
        TransactionService._ensure_not_goal_linked(instance, "delete")
        transaction_id = instance.id
        user_id = instance.user_id
        instance.delete()

        logger.info(
            "Transaction deleted",
            extra={
                "user_id": user_id,
                "transaction_id": transaction_id,
                "action": "transaction_deleted",
                "component": "TransactionService",
            },
        )

    # -------------------------------------------------------------------
    # REPORTS
    # -------------------------------------------------------------------

    @staticmethod
    def get_dashboard(user, today=None) -> dict:
        """
        Summary, expenses per category and the last six months of trends.

        Returns:
            dict: ``summary``, ``expenses_by_category`` and ``monthly_trends``
        """
        today = today or timezone.localdate()
        ledger = Transaction.objects.filter(user=user)

        expenses_by_category = [
            {"category": row["category"], "total": _money(row["total"])}
            for row in ledger.filter(type=EXPENSE)
            .values("category")
            .annotate(total=Sum("amount"))
            .order_by("-total", "category")
        ]

        since = add_months(today, -DASHBOARD_MONTHS)
        monthly_trends = [
            {
                "month": row["month"].strftime("%Y-%m"),
                "income": _money(row["income"]),
                "expenses": _money(row["expenses"]),
            }
            for row in ledger.filter(date__gte=since)
            .annotate(month=TruncMonth("date"))
            .values("month")
            .annotate(income=_income_sum(), expenses=_expense_sum())
            .order_by("month")
        ]

        logger.debug(
            "Dashboard computed",
            extra={
                "user_id": user.id,
                "category_count": len(expenses_by_category),
                "month_count": len(monthly_trends),
                "action": "dashboard_computed",
                "component": "TransactionService",
            },
        )

        return {
            "summary": BalanceService.get_totals(user),
            "expenses_by_category": expenses_by_category,
            "monthly_trends": monthly_trends,
        }

    @staticmethod
    def get_statistics(user, start_date=None, end_date=None) -> dict:
        """
        Detailed statistics over the user's ledger.

        The date range only applies when both bounds are given.

        Returns:
            dict: ``summary``, ``category_analysis``, ``monthly_trends``,
                ``payment_methods`` and ``top_days``
        """
        ledger = Transaction.objects.filter(user=user)
        if start_date and end_date:
            ledger = ledger.filter(date__range=(start_date, end_date))

        totals = ledger.aggregate(
            total_transactions=Count("id"),
            total_income=_income_sum(),
            total_expenses=_expense_sum(),
            average_income=_coalesced(Avg("amount", filter=Q(type=INCOME))),
            average_expense=_coalesced(Avg("amount", filter=Q(type=EXPENSE))),
        )
        total_income = _money(totals["total_income"])
        total_expenses = _money(totals["total_expenses"])
        summary = {
            "total_transactions": totals["total_transactions"],
            "total_income": total_income,
            "total_expenses": total_expenses,
            "net_balance": total_income - total_expenses,
            "average_income": _money(totals["average_income"]),
            "average_expense": _money(totals["average_expense"]),
        }

        category_analysis = [
            {
                "type": row["type"],
                "category": row["category"],
                "transaction_count": row["transaction_count"],
                "total_amount": _money(row["total_amount"]),
                "average_amount": _money(row["average_amount"]),
                "min_amount": _money(row["min_amount"]),
                "max_amount": _money(row["max_amount"]),
            }
            for row in ledger.values("type", "category")
            .annotate(
                transaction_count=Count("id"),
                total_amount=Sum("amount"),
                average_amount=Avg("amount"),
                min_amount=Min("amount"),
                max_amount=Max("amount"),
            )
            .order_by("type", "-total_amount")
        ]

        monthly_trends = []
        for row in (
            ledger.annotate(month=TruncMonth("date"))
            .values("month")
            .annotate(
                transaction_count=Count("id"),
                income=_income_sum(),
                expenses=_expense_sum(),
            )
            .order_by("month")
        ):
            income = _money(row["income"])
            expenses = _money(row["expenses"])
            monthly_trends.append(
                {
                    "month": row["month"].strftime("%Y-%m"),
                    "transaction_count": row["transaction_count"],
                    "income": income,
                    "expenses": expenses,
                    "net_balance": income - expenses,
                }
            )

        payment_methods = [
            {
                "payment_method": row["payment_method"],
                "usage_count": row["usage_count"],
                "total_amount": _money(row["total_amount"]),
                "average_amount": _money(row["average_amount"]),
            }
            for row in ledger.values("payment_method")
            .annotate(
                usage_count=Count("id"),
                total_amount=Sum("amount"),
                average_amount=Avg("amount"),
            )
            .order_by("-usage_count", "payment_method")
        ]

        top_days = [
            {
                "day_of_week": calendar.day_name[row["weekday"] - 1],
                "transaction_count": row["transaction_count"],
                "total_amount": _money(row["total_amount"]),
            }
            for row in ledger.annotate(weekday=ExtractIsoWeekDay(F("date")))
            .values("weekday")
            .annotate(transaction_count=Count("id"), total_amount=Sum("amount"))
            .order_by("-transaction_count", "weekday")
        ]

        logger.info(
            "Statistics computed",
            extra={
                "user_id": user.id,
                "start_date": str(start_date) if start_date else None,
                "end_date": str(end_date) if end_date else None,
                "total_transactions": summary["total_transactions"],
                "action": "statistics_computed",
                "component": "TransactionService",
            },
        )

        return {
            "summary": summary,
            "category_analysis": category_analysis,
            "monthly_trends": monthly_trends,
            "payment_methods": payment_methods,
            "top_days": top_days,
        }

    # -------------------------------------------------------------------
    # VALIDATION
    # -------------------------------------------------------------------

    @staticmethod
    def _ensure_not_goal_linked(instance: Transaction, operation: str):
        """
        Goal-linked rows mirror goal progress and are managed through the goal.

        Editing or deleting one directly would let the goal refund money that
        already left the ledger.
        """
        if instance.goal_id is None:
            return

        logger.warning(
            "Goal-linked transaction cannot be changed directly",
            extra={
                "user_id": instance.user_id,
                "transaction_id": instance.id,
                "goal_id": instance.goal_id,
                "operation": operation,
                "action": "goal_linked_transaction_protected",
                "component": "TransactionService",
                "severity": "low",
            },
        )
        raise ValidationError(
            "This transaction is linked to a goal. Delete the goal to refund it instead."
        )

    @staticmethod
    def _validate_transaction_data(data, is_update=False):
        """
        Validate transaction data before persistence.

        Raises:
            ValidationError: If type/category do not match or amount is not positive
        """
        try:
            validate_category_for_type(data.get("type"), data.get("category"))
        except ValidationError:
            logger.warning(
                "Transaction data validation failed - category",
                extra={
                    "transaction_type": data.get("type"),
                    "category": data.get("category"),
                    "is_update": is_update,
                    "action": "transaction_validation_failed",
                    "component": "TransactionService",
                    "severity": "medium",
                },
            )
            raise

        amount = data.get("amount")
        if amount is None or amount <= 0:
            raise ValidationError("Transaction amount must be positive")
