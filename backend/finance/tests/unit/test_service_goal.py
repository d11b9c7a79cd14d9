# finance/tests/unit/test_service_goal.py

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.core.exceptions import ValidationError
from django.db import DatabaseError

from finance.exceptions import InsufficientFundsError
from finance.models import EXPENSE, INCOME, OTHER_EXPENSE, OTHER_INCOME, Goal, Transaction
from finance.services.balance_service import BalanceService
from finance.services.goal_service import GoalService

from ..factories import GoalFactory, TransactionFactory


@pytest.fixture
def service():
    return GoalService()


@pytest.fixture
def empty_goal(test_user):
    """Goal 0/1000"""
    return GoalFactory(
        user=test_user, name="New car", target_amount=Decimal("1000.00"), progress=Decimal("0.00")
    )


def fund(user, amount):
    TransactionFactory(user=user, income=True, amount=Decimal(amount))


@pytest.mark.django_db
class TestContribute:
    def test_contribution_paid_from_balance(self, service, test_user, empty_goal):
        fund(test_user, "500.00")

        result = service.contribute(test_user, empty_goal.id, Decimal("500.00"))

        assert result["new_progress"] == Decimal("500.00")
        assert result["is_completed"] is False
        assert BalanceService.get_balance(test_user) == Decimal("0.00")

        expense = Transaction.objects.get(id=result["transaction_id"])
        assert expense.type == EXPENSE
        assert expense.category == OTHER_EXPENSE
        assert expense.amount == Decimal("500.00")
        assert expense.goal_id == empty_goal.id
        assert expense.description == "Contribution to goal: New car"
        assert expense.status == Transaction.COMPLETED

        empty_goal.refresh_from_db()
        assert empty_goal.progress == Decimal("500.00")
        assert empty_goal.status == Goal.ACTIVE

    def test_insufficient_funds_writes_nothing(self, service, test_user, empty_goal):
        fund(test_user, "500.00")
        service.contribute(test_user, empty_goal.id, Decimal("500.00"))
        ledger_size = Transaction.objects.filter(user=test_user).count()

        with pytest.raises(InsufficientFundsError) as exc_info:
            service.contribute(test_user, empty_goal.id, Decimal("600.00"))

        assert exc_info.value.current_balance == Decimal("0.00")
        empty_goal.refresh_from_db()
        assert empty_goal.progress == Decimal("500.00")
        assert Transaction.objects.filter(user=test_user).count() == ledger_size

    def test_balance_decreases_by_exactly_the_amount(self, service, funded_user):
        goal = GoalFactory(user=funded_user, target_amount=Decimal("5000.00"))
        before = BalanceService.get_balance(funded_user)

        service.contribute(funded_user, goal.id, "123.45")

        assert BalanceService.get_balance(funded_user) == before - Decimal("123.45")

    def test_direct_contribution_leaves_balance_untouched(self, service, test_user, empty_goal):
        before = BalanceService.get_balance(test_user)

        result = service.contribute(
            test_user, empty_goal.id, Decimal("250.00"), is_direct_contribution=True
        )

        assert result["transaction_id"] is None
        assert result["new_progress"] == Decimal("250.00")
        assert BalanceService.get_balance(test_user) == before
        assert not Transaction.objects.filter(user=test_user).exists()

    def test_reaching_target_completes_goal(self, service, test_user, test_goal):
        fund(test_user, "500.00")

        result = service.contribute(test_user, test_goal.id, Decimal("500.00"))

        test_goal.refresh_from_db()
        assert result["is_completed"] is True
        assert test_goal.status == Goal.COMPLETED
        assert test_goal.progress == test_goal.target_amount

    def test_overshooting_target_is_allowed(self, service, test_user, test_goal):
        result = service.contribute(
            test_user, test_goal.id, Decimal("700.00"), is_direct_contribution=True
        )

        assert result["new_progress"] == Decimal("1200.00")
        assert result["is_completed"] is True

    def test_below_target_stays_active(self, service, test_user, test_goal):
        service.contribute(test_user, test_goal.id, "499.99", is_direct_contribution=True)

        test_goal.refresh_from_db()
        assert test_goal.progress == Decimal("999.99")
        assert test_goal.status == Goal.ACTIVE

    def test_progress_is_rounded_half_up_to_cents(self, service, test_user, empty_goal):
        result = service.contribute(
            test_user, empty_goal.id, "10.005", is_direct_contribution=True
        )

        assert result["new_progress"] == Decimal("10.01")

    @pytest.mark.parametrize("amount", [0, "0", "-5", "abc", None, "", "NaN", True])
    def test_invalid_amount_rejected(self, service, test_user, empty_goal, amount):
        with pytest.raises(ValidationError):
            service.contribute(test_user, empty_goal.id, amount, is_direct_contribution=True)

        empty_goal.refresh_from_db()
        assert empty_goal.progress == Decimal("0.00")

    def test_goal_of_another_user_is_not_found(self, service, test_user, test_user2, empty_goal):
        fund(test_user2, "1000.00")

        with pytest.raises(Goal.DoesNotExist):
            service.contribute(test_user2, empty_goal.id, Decimal("10.00"))

        assert not Transaction.objects.filter(user=test_user2, type=EXPENSE).exists()

    def test_missing_goal_is_not_found(self, service, test_user):
        with pytest.raises(Goal.DoesNotExist):
            service.contribute(test_user, 999999, Decimal("10.00"), is_direct_contribution=True)

    def test_sequential_contributions_accumulate(self, service, test_user, empty_goal):
        fund(test_user, "300.00")

        service.contribute(test_user, empty_goal.id, "120.00")
        second = service.contribute(test_user, empty_goal.id, "80.00")

        stored = service.get_user_goals(test_user).get(id=empty_goal.id)
        assert second["new_progress"] == Decimal("200.00")
        assert stored.progress == Decimal("200.00")
        assert BalanceService.get_balance(test_user) == Decimal("100.00")

    @pytest.mark.parametrize("goal_id", ["abc", "1.5", None])
    def test_non_numeric_goal_id_is_not_found(self, service, test_user, goal_id):
        with pytest.raises(Goal.DoesNotExist):
            service.contribute(test_user, goal_id, "10.00", is_direct_contribution=True)

    def test_payment_method_recorded_on_expense(self, service, test_user, empty_goal):
        fund(test_user, "100.00")

        result = service.contribute(
            test_user, empty_goal.id, "50.00", payment_method="Debit Card"
        )

        assert Transaction.objects.get(id=result["transaction_id"]).payment_method == "Debit Card"

    def test_store_failure_rolls_back_progress(self, service, test_user, empty_goal):
        fund(test_user, "500.00")

        with patch.object(
            Transaction.objects, "create", side_effect=DatabaseError("disk full")
        ), patch("finance.services.goal_service.logger") as mock_logger:
            with pytest.raises(DatabaseError):
                service.contribute(test_user, empty_goal.id, Decimal("200.00"))

        empty_goal.refresh_from_db()
        assert empty_goal.progress == Decimal("0.00")
        assert empty_goal.status == Goal.ACTIVE
        assert BalanceService.get_balance(test_user) == Decimal("500.00")
        assert mock_logger.error.call_args[1]["extra"]["action"] == "goal_contribution_failed"


@pytest.mark.django_db
class TestDeleteGoal:
    def test_refund_restores_progress_to_balance(self, service, test_user):
        goal = GoalFactory(user=test_user, name="Holiday", progress=Decimal("300.00"))
        before = BalanceService.get_balance(test_user)

        result = service.delete_goal(test_user, goal.id)

        assert result["refunded_amount"] == Decimal("300.00")
        assert BalanceService.get_balance(test_user) == before + Decimal("300.00")
        assert not Goal.objects.filter(id=goal.id).exists()

        refund = Transaction.objects.get(id=result["refund_transaction_id"])
        assert refund.type == INCOME
        assert refund.category == OTHER_INCOME
        assert refund.amount == Decimal("300.00")
        assert refund.goal is None
        assert refund.description == "Refund from deleted goal: Holiday"

    def test_contribute_then_delete_restores_balance(self, service, funded_user):
        goal = GoalFactory(user=funded_user, target_amount=Decimal("2000.00"))
        before = BalanceService.get_balance(funded_user)

        service.contribute(funded_user, goal.id, "400.00")
        service.delete_goal(funded_user, goal.id)

        assert BalanceService.get_balance(funded_user) == before

    def test_funding_rows_are_kept_and_detached(self, service, funded_user):
        goal = GoalFactory(user=funded_user, target_amount=Decimal("2000.00"))
        contribution = service.contribute(funded_user, goal.id, "400.00")

        service.delete_goal(funded_user, goal.id)

        expense = Transaction.objects.get(id=contribution["transaction_id"])
        assert expense.goal_id is None
        assert not Transaction.objects.filter(goal_id=goal.id).exists()

    def test_zero_progress_writes_no_refund(self, service, test_user, empty_goal):
        result = service.delete_goal(test_user, empty_goal.id)

        assert result["refunded_amount"] == Decimal("0.00")
        assert result["refund_transaction_id"] is None
        assert not Transaction.objects.filter(user=test_user).exists()
        assert not Goal.objects.filter(id=empty_goal.id).exists()

    def test_goal_of_another_user_is_not_deleted(self, service, test_user2, test_goal):
        with pytest.raises(Goal.DoesNotExist):
            service.delete_goal(test_user2, test_goal.id)

        assert Goal.objects.filter(id=test_goal.id).exists()
        assert not Transaction.objects.exists()

    def test_non_numeric_goal_id_is_not_found(self, service, test_user, test_goal):
        with pytest.raises(Goal.DoesNotExist):
            service.delete_goal(test_user, "abc")

        assert Goal.objects.filter(id=test_goal.id).exists()

    def test_store_failure_keeps_goal(self, service, test_user, test_goal):
        with patch.object(
            Transaction.objects, "create", side_effect=DatabaseError("connection lost")
        ):
            with pytest.raises(DatabaseError):
                service.delete_goal(test_user, test_goal.id)

        test_goal.refresh_from_db()
        assert test_goal.progress == Decimal("500.00")
        assert not Transaction.objects.filter(user=test_user).exists()


@pytest.mark.django_db
class TestGoalLifecycle:
    def test_create_goal_already_reached_is_completed(self, service, test_user):
        goal = service.create_goal(
            test_user,
            name="Paid off",
            type=Goal.SAVING,
            target_amount=Decimal("100.00"),
            progress=Decimal("100.00"),
        )

        assert goal.status == Goal.COMPLETED

    def test_create_goal_rejects_short_name(self, service, test_user):
        with pytest.raises(ValidationError):
            service.create_goal(
                test_user, name="x", type=Goal.SAVING, target_amount=Decimal("100.00")
            )

    def test_create_goal_ignores_requested_completed_status(self, service, test_user):
        goal = service.create_goal(
            test_user,
            name="Sneaky",
            type=Goal.SAVING,
            target_amount=Decimal("1000.00"),
            status=Goal.COMPLETED,
        )

        assert goal.status == Goal.ACTIVE

        result = service.contribute(
            test_user, goal.id, "10.00", is_direct_contribution=True
        )
        goal.refresh_from_db()
        assert result["is_completed"] is False
        assert (goal.status == Goal.COMPLETED) == (goal.progress >= goal.target_amount)

    def test_set_progress_non_numeric_goal_id(self, service, test_user):
        with pytest.raises(Goal.DoesNotExist):
            service.set_progress(test_user, "abc", "10.00")

    def test_set_progress_completes_goal(self, service, test_user, test_goal):
        goal = service.set_progress(test_user, test_goal.id, Decimal("1000.00"))

        assert goal.status == Goal.COMPLETED
        assert not Transaction.objects.exists()

    def test_set_progress_never_reverts_completion(self, service, test_user, test_goal):
        service.set_progress(test_user, test_goal.id, Decimal("1000.00"))

        goal = service.set_progress(test_user, test_goal.id, Decimal("10.00"))

        assert goal.progress == Decimal("10.00")
        assert goal.status == Goal.COMPLETED

    def test_set_progress_rejects_negative(self, service, test_user, test_goal):
        with pytest.raises(ValidationError):
            service.set_progress(test_user, test_goal.id, "-1")

    def test_active_goals_ordered_by_end_date_and_limited(self, service, test_user):
        GoalFactory(user=test_user, name="late", end_date=date(2031, 1, 1))
        GoalFactory(user=test_user, name="soon", end_date=date(2029, 1, 1))
        GoalFactory(user=test_user, name="mid", end_date=date(2030, 1, 1))
        GoalFactory(user=test_user, name="later", end_date=date(2032, 1, 1))
        GoalFactory(user=test_user, name="done", end_date=date(2028, 1, 1), status=Goal.COMPLETED)

        names = [goal.name for goal in service.get_active_goals(test_user)]

        assert names == ["soon", "mid", "late"]
