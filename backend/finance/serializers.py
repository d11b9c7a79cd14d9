"""
Serializers for the personal finance API.

Request bodies are validated here before they reach the service layer;
creates and updates are delegated to the services so the same business
rules apply to API calls and to internal callers.

Architecture Pattern:
Serializer (Validation) → Business Services → Database
         ↓
ServiceExceptionHandlerMixin (Unified Error Handling)
"""

import logging
from decimal import Decimal

from rest_framework import serializers

from .mixins.service_exception_handler import ServiceExceptionHandlerMixin
from .models import (
    AMOUNT_DECIMAL_PLACES,
    AMOUNT_MAX_DIGITS,
    CATEGORIES_BY_TYPE,
    MIN_AMOUNT,
    PAYMENT_METHODS,
    Goal,
    ScheduledTransaction,
    Transaction,
)
from .services.goal_service import GoalService
from .services.scheduled_transaction_service import ScheduledTransactionService
from .services.transaction_service import TransactionService

logger = logging.getLogger(__name__)


def _request_user(serializer):
    request = serializer.context.get("request")
    return getattr(request, "user", None)


def _validate_category(serializer, attrs, component):
    """Check the resulting type/category pair, falling back to the instance on PATCH."""
    instance = serializer.instance
    transaction_type = attrs.get("type", getattr(instance, "type", None))
    category = attrs.get("category", getattr(instance, "category", None))
    valid_categories = CATEGORIES_BY_TYPE.get(transaction_type, [])

    if category not in valid_categories:
        logger.warning(
            "Category does not match transaction type",
            extra={
                "transaction_type": transaction_type,
                "category": category,
                "action": "category_validation_failed",
                "component": component,
                "severity": "low",
            },
        )
        raise serializers.ValidationError(
            {
                "category": f"Invalid category for {transaction_type}. "
                f"Valid categories: {', '.join(valid_categories)}"
            }
        )


# -------------------------------------------------------------------
# GOAL SERIALIZERS
# -------------------------------------------------------------------


class GoalSerializer(ServiceExceptionHandlerMixin, serializers.ModelSerializer):
    """
    Goal representation; creation goes through GoalService.

    ``progress`` may be seeded on creation, afterwards it only changes via
    the contribute and progress endpoints.
    """

    is_completed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Goal
        fields = [
            "id",
            "name",
            "type",
            "target_amount",
            "progress",
            "end_date",
            "status",
            "payment_schedule",
            "is_completed",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Goal name must be at least 2 characters long.")
        return value

    def create(self, validated_data):
        return self.handle_service_call(
            GoalService().create_goal, _request_user(self), **validated_data
        )


class GoalContributionSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        min_value=MIN_AMOUNT,
    )
    isDirectContribution = serializers.BooleanField(required=False, default=False)
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False)


class GoalProgressSerializer(serializers.Serializer):
    progress = serializers.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        min_value=Decimal("0.00"),
    )


# -------------------------------------------------------------------
# TRANSACTION SERIALIZERS
# -------------------------------------------------------------------


class TransactionSerializer(ServiceExceptionHandlerMixin, serializers.ModelSerializer):
    """
    Ledger row serializer.

    Goal association and scheduling lineage are system-managed and exposed
    read-only.
    """

    class Meta:
        model = Transaction
        fields = [
            "id",
            "type",
            "category",
            "amount",
            "date",
            "description",
            "payment_method",
            "status",
            "goal",
            "scheduled_transaction",
            "is_scheduled",
            "recurrence",
            "schedule",
            "end_date",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "goal",
            "scheduled_transaction",
            "is_scheduled",
            "recurrence",
            "schedule",
            "end_date",
            "created_at",
            "updated_at",
        ]

    def validate(self, attrs):
        attrs = super().validate(attrs)
        _validate_category(self, attrs, "TransactionSerializer")
        return attrs

    def create(self, validated_data):
        return self.handle_service_call(
            TransactionService.create_transaction, _request_user(self), validated_data
        )

    def update(self, instance, validated_data):
        return self.handle_service_call(
            TransactionService.update_transaction, instance, validated_data
        )


class TransactionFilterSerializer(serializers.Serializer):
    """Query parameters accepted by the transaction list and statistics."""

    type = serializers.ChoiceField(choices=list(CATEGORIES_BY_TYPE), required=False)
    category = serializers.CharField(required=False)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start_date = attrs.get("start_date")
        end_date = attrs.get("end_date")
        if start_date and end_date and start_date > end_date:
            raise serializers.ValidationError(
                {"end_date": "End date cannot be before start date"}
            )
        return attrs


# -------------------------------------------------------------------
# SCHEDULED TRANSACTION SERIALIZERS
# -------------------------------------------------------------------


class ScheduledTransactionSerializer(
    ServiceExceptionHandlerMixin, serializers.ModelSerializer
):
    class Meta:
        model = ScheduledTransaction
        fields = [
            "id",
            "description",
            "amount",
            "type",
            "category",
            "payment_method",
            "frequency",
            "start_date",
            "end_date",
            "status",
            "last_execution",
            "next_execution",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "last_execution",
            "next_execution",
            "created_at",
            "updated_at",
        ]

    def validate(self, attrs):
        attrs = super().validate(attrs)
        _validate_category(self, attrs, "ScheduledTransactionSerializer")

        start_date = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end_date = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError(
                {"end_date": "End date cannot be before start date"}
            )
        return attrs

    def create(self, validated_data):
        return self.handle_service_call(
            ScheduledTransactionService().create_definition,
            _request_user(self),
            validated_data,
        )

    def update(self, instance, validated_data):
        return self.handle_service_call(
            ScheduledTransactionService().update_definition, instance, validated_data
        )


class ScheduledTransactionStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ScheduledTransaction.STATUS_CHOICES)
