"""
Core API views for the personal finance backend.

This module provides viewsets for goals, ledger transactions and scheduled
transactions. Views stay thin: they validate input with serializers and
delegate every business rule to the service layer.
"""

import logging

from django.http import Http404
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from .exceptions import ResourceNotFound
from .mixins.service_exception_handler import ServiceExceptionHandlerMixin
from .models import Goal, ScheduledTransaction
from .serializers import (
    GoalContributionSerializer,
    GoalProgressSerializer,
    GoalSerializer,
    ScheduledTransactionSerializer,
    ScheduledTransactionStatusSerializer,
    TransactionFilterSerializer,
    TransactionSerializer,
)
from .services.balance_service import BalanceService
from .services.goal_service import GoalService
from .services.scheduled_transaction_service import ScheduledTransactionService
from .services.transaction_service import TransactionService

# Get structured logger for this module
logger = logging.getLogger(__name__)


class BaseUserViewSet(ServiceExceptionHandlerMixin, viewsets.GenericViewSet):
    """
    Base viewset for resources owned by the authenticated user.

    Objects owned by other users are indistinguishable from missing ones.
    """

    permission_classes = [IsAuthenticated]
    not_found_message = "Resource not found"

    def get_object(self):
        try:
            return super().get_object()
        except Http404:
            logger.warning(
                "Object not found in user scope",
                extra={
                    "user_id": self.request.user.id,
                    "lookup": self.kwargs.get(self.lookup_field),
                    "action": "object_not_found",
                    "component": self.__class__.__name__,
                    "severity": "low",
                },
            )
            raise ResourceNotFound(self.not_found_message)


# -------------------------------------------------------------------
# GOALS
# -------------------------------------------------------------------


class GoalViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    BaseUserViewSet,
):
    """
    THIN ViewSet for goals.

    Progress changes only through ``contribute`` and ``progress``; deletion
    refunds progress to the ledger.
    """

    serializer_class = GoalSerializer
    not_found_message = "Goal not found"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.goal_service = GoalService()

    def get_queryset(self):
        return self.goal_service.get_user_goals(self.request.user)

    @action(detail=False, methods=["get"])
    def active(self, request):
        goals = self.goal_service.get_active_goals(request.user)
        return Response(self.get_serializer(goals, many=True).data)

    @action(detail=True, methods=["post"])
    def contribute(self, request, pk=None):
        """
        Contribute to a goal from the balance, or directly when
        ``isDirectContribution`` is set.
        """
        serializer = GoalContributionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        logger.debug(
            "Goal contribution delegated to service",
            extra={
                "user_id": request.user.id,
                "goal_id": pk,
                "is_direct_contribution": data["isDirectContribution"],
                "action": "goal_contribution_delegated",
                "component": "GoalViewSet",
            },
        )

        result = self.handle_service_call(
            self.goal_service.contribute,
            request.user,
            pk,
            data["amount"],
            is_direct_contribution=data["isDirectContribution"],
            payment_method=data.get("payment_method"),
        )

        return Response(
            {
                "message": "Contribution registered successfully",
                "newProgress": str(result["new_progress"]),
                "isCompleted": result["is_completed"],
                "isDirectContribution": data["isDirectContribution"],
                "transactionId": result["transaction_id"],
            }
        )

    def destroy(self, request, pk=None):
        result = self.handle_service_call(
            self.goal_service.delete_goal, request.user, pk
        )
        return Response(
            {
                "message": "Goal deleted and progress refunded",
                "refunded_amount": str(result["refunded_amount"]),
            }
        )

    @action(detail=True, methods=["put"])
    def progress(self, request, pk=None):
        serializer = GoalProgressSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        goal = self.handle_service_call(
            self.goal_service.set_progress,
            request.user,
            pk,
            serializer.validated_data["progress"],
        )
        return Response(GoalSerializer(goal).data)


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------


class TransactionViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    BaseUserViewSet,
):
    """
    COMPLETE THIN ViewSet for the ledger.
    Delegates ALL business logic to services and serializers.
    """

    serializer_class = TransactionSerializer
    not_found_message = "Transaction not found"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.transaction_service = TransactionService()

    def _query_filters(self):
        serializer = TransactionFilterSerializer(data=self.request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data

    def get_queryset(self):
        filters = self._query_filters() if self.action == "list" else {}
        qs = self.transaction_service.get_user_transactions(self.request.user, filters)

        logger.debug(
            "Transactions queryset prepared",
            extra={
                "user_id": self.request.user.id,
                "filters_applied": {key: str(value) for key, value in filters.items()},
                "action": "transactions_queryset_prepared",
                "component": "TransactionViewSet",
            },
        )
        return qs

    def perform_destroy(self, instance):
        self.handle_service_call(self.transaction_service.delete_transaction, instance)

    @action(detail=False, methods=["get"])
    def recent(self, request):
        transactions = self.transaction_service.get_recent_transactions(request.user)
        return Response(self.get_serializer(transactions, many=True).data)

    @action(detail=False, methods=["get"])
    def balance(self, request):
        balance = self.handle_service_call(BalanceService.get_balance, request.user)
        return Response({"balance": str(balance)})

    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        return Response(
            self.handle_service_call(self.transaction_service.get_dashboard, request.user)
        )

    @action(detail=False, methods=["get"])
    def statistics(self, request):
        filters = self._query_filters()
        return Response(
            self.handle_service_call(
                self.transaction_service.get_statistics,
                request.user,
                start_date=filters.get("start_date"),
                end_date=filters.get("end_date"),
            )
        )


# -------------------------------------------------------------------
# SCHEDULED TRANSACTIONS
# -------------------------------------------------------------------


class ScheduledTransactionViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    mixins.DestroyModelMixin,
    BaseUserViewSet,
):
    """THIN ViewSet for recurring transaction definitions."""

    serializer_class = ScheduledTransactionSerializer
    not_found_message = "Scheduled transaction not found"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.scheduled_service = ScheduledTransactionService()

    def get_queryset(self):
        return self.scheduled_service.get_user_definitions(self.request.user)

    def perform_destroy(self, instance):
        self.handle_service_call(self.scheduled_service.delete_definition, instance)

    @action(detail=True, methods=["patch"], url_path="status")
    def set_status(self, request, pk=None):
        definition = self.get_object()
        serializer = ScheduledTransactionStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        definition = self.handle_service_call(
            self.scheduled_service.set_status,
            definition,
            serializer.validated_data["status"],
        )
        return Response(
            ScheduledTransactionSerializer(definition).data, status=status.HTTP_200_OK
        )
