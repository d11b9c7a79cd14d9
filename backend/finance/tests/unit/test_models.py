# finance/tests/unit/test_models.py

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from finance.models import (
    EXPENSE,
    INCOME,
    Goal,
    ScheduledTransaction,
    Transaction,
    validate_category_for_type,
)

from ..factories import GoalFactory, ScheduledTransactionFactory, TransactionFactory


class TestCategoryValidation:
    def test_valid_pairs(self):
        validate_category_for_type(INCOME, "Salary")
        validate_category_for_type(EXPENSE, "Other-Expense")

    @pytest.mark.parametrize(
        "transaction_type, category",
        [(INCOME, "Food"), (EXPENSE, "Salary"), ("Scheduled", "Food"), (None, None)],
    )
    def test_invalid_pairs(self, transaction_type, category):
        with pytest.raises(ValidationError):
            validate_category_for_type(transaction_type, category)


@pytest.mark.django_db
class TestGoalModel:
    def test_mark_completed_if_reached(self, test_user):
        goal = GoalFactory.build(
            user=test_user, target_amount=Decimal("100.00"), progress=Decimal("100.00")
        )

        assert goal.mark_completed_if_reached() == Goal.COMPLETED

    def test_mark_completed_never_reverts(self, test_user):
        goal = GoalFactory.build(
            user=test_user,
            target_amount=Decimal("100.00"),
            progress=Decimal("10.00"),
            status=Goal.COMPLETED,
        )

        assert goal.mark_completed_if_reached() == Goal.COMPLETED

    def test_negative_progress_rejected_by_database(self, test_user):
        with pytest.raises(IntegrityError), transaction.atomic():
            GoalFactory(user=test_user, progress=Decimal("-1.00"))

    def test_clean_rejects_short_name(self, test_user):
        goal = GoalFactory.build(user=test_user, name=" ")
        with pytest.raises(ValidationError):
            goal.clean()


@pytest.mark.django_db
class TestTransactionModel:
    def test_signed_amount(self, test_user):
        assert TransactionFactory(user=test_user, income=True, amount=Decimal("5.00")).signed_amount == Decimal("5.00")
        assert TransactionFactory(user=test_user, amount=Decimal("5.00")).signed_amount == Decimal("-5.00")

    def test_zero_amount_rejected_by_database(self, test_user):
        with pytest.raises(IntegrityError), transaction.atomic():
            TransactionFactory(user=test_user, amount=Decimal("0.00"))

    def test_deleting_goal_keeps_transactions(self, test_user):
        goal = GoalFactory(user=test_user)
        row = TransactionFactory(user=test_user, goal=goal)

        goal.delete()

        row.refresh_from_db()
        assert row.goal_id is None


@pytest.mark.django_db
class TestScheduledTransactionModel:
    def test_clean_rejects_end_before_start(self, test_user):
        definition = ScheduledTransactionFactory.build(
            user=test_user, start_date=date(2024, 5, 1), end_date=date(2024, 4, 1)
        )
        with pytest.raises(ValidationError):
            definition.clean()

    def test_default_ordering_by_next_execution(self, test_user):
        later = ScheduledTransactionFactory(user=test_user, next_execution=date(2024, 6, 1))
        sooner = ScheduledTransactionFactory(user=test_user, next_execution=date(2024, 5, 1))

        assert list(ScheduledTransaction.objects.all()) == [sooner, later]
