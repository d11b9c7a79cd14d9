"""
Goal contribution and deletion engines.

Both operations move money between the ledger and a goal's progress inside a
single atomic scope. Row locks are always taken in the same order (user row,
then goal row) so concurrent contributions for one user are serialized and
the balance check cannot be raced.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction
from django.utils import timezone

from ..exceptions import InsufficientFundsError
from ..models import EXPENSE, INCOME, OTHER_EXPENSE, OTHER_INCOME, Goal, Transaction
from .balance_service import ZERO, BalanceService, quantize_amount

logger = logging.getLogger(__name__)

REFUND_PAYMENT_METHOD = "Cash"
ACTIVE_GOALS_LIMIT = 3


class GoalService:
    """
    Goal lifecycle service.

    Keeps ``goal.progress`` and the ledger consistent: every non-direct
    contribution is mirrored by an Expense row and deleting a goal refunds
    its progress as an Income row.
    """

    # -------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------

    def get_user_goals(self, user):
        return Goal.objects.filter(user=user)

    def get_active_goals(self, user, limit: int = ACTIVE_GOALS_LIMIT):
        """Active goals closest to their end date first."""
        return Goal.objects.filter(user=user, status=Goal.ACTIVE).order_by(
            "end_date", "id"
        )[:limit]

    # -------------------------------------------------------------------
    # CREATION / ADMINISTRATIVE UPDATES
    # -------------------------------------------------------------------

    @transaction.atomic
    def create_goal(self, user, **goal_data) -> Goal:
        """
        Create a goal owned by ``user``.

        Status is derived from the initial progress: Completed when it
        already reaches the target, Active otherwise. A requested status is
        ignored.

        Raises:
            ValidationError: If the goal data violates model rules
        """
        requested_status = goal_data.pop("status", None)
        goal = Goal(user=user, **goal_data)
        goal.full_clean(exclude=["user"])
        goal.status = Goal.COMPLETED if goal.is_completed else Goal.ACTIVE
        goal.save()

        if requested_status and requested_status != goal.status:
            logger.warning(
                "Requested goal status ignored",
                extra={
                    "user_id": user.id,
                    "goal_id": goal.id,
                    "requested_status": requested_status,
                    "status": goal.status,
                    "action": "goal_status_overridden",
                    "component": "GoalService",
                    "severity": "low",
                },
            )

        logger.info(
            "Goal created",
            extra={
                "user_id": user.id,
                "goal_id": goal.id,
                "goal_type": goal.type,
                "target_amount": str(goal.target_amount),
                "status": goal.status,
                "action": "goal_created",
                "component": "GoalService",
            },
        )
        return goal

    def set_progress(self, user, goal_id: int, progress) -> Goal:
        """
        Overwrite a goal's progress without touching the ledger.

        Status only moves forward to Completed; lowering progress below the
        target leaves a Completed goal Completed.

        Raises:
            Goal.DoesNotExist: If the goal is missing or owned by someone else
            ValidationError: If progress is negative or not a number
        """
        new_progress = self._parse_amount(progress, allow_zero=True, field="Progress")

        with transaction.atomic():
            goal = self._lock_goal(user, goal_id, lock_owner=False)
            previous_progress = goal.progress
            goal.progress = new_progress
            goal.mark_completed_if_reached()
            goal.save(update_fields=["progress", "status", "updated_at"])

        logger.info(
            "Goal progress overwritten",
            extra={
                "user_id": user.id,
                "goal_id": goal.id,
                "previous_progress": str(previous_progress),
                "new_progress": str(goal.progress),
                "status": goal.status,
                "action": "goal_progress_set",
                "component": "GoalService",
            },
        )
        return goal

    # -------------------------------------------------------------------
    # CONTRIBUTION ENGINE
    # -------------------------------------------------------------------

    def contribute(
        self,
        user,
        goal_id: int,
        amount,
        is_direct_contribution: bool = False,
        payment_method: str = None,
    ) -> dict:
        """
        Add funds to a goal.

        A regular contribution is paid from the user's balance: it requires
        ``balance >= amount`` and writes an Expense row linked to the goal.
        A direct contribution only raises progress (money that never passed
        through the ledger).

        Args:
            user: Goal owner
            goal_id: Goal primary key
            amount: Positive amount, anything ``Decimal`` accepts
            is_direct_contribution: Skip balance check and ledger write
            payment_method: Payment method recorded on the Expense row

        Returns:
            dict: ``new_progress``, ``is_completed`` and ``transaction_id``
                (``None`` for direct contributions)

        Raises:
            ValidationError: If amount is not a positive number
            Goal.DoesNotExist: If the goal is missing or owned by someone else
            InsufficientFundsError: If the balance does not cover the amount
            DatabaseError: If persisting fails; nothing is written

        Example:
            >>> GoalService().contribute(user, goal.id, "100.00")
            {'new_progress': Decimal('600.00'), 'is_completed': False, 'transaction_id': 42}
        """
        amount = self._parse_amount(amount)
        payment_method = payment_method or settings.FINANCE_DEFAULT_PAYMENT_METHOD

        logger.info(
            "Goal contribution initiated",
            extra={
                "user_id": user.id,
                "goal_id": goal_id,
                "amount": str(amount),
                "is_direct_contribution": is_direct_contribution,
                "action": "goal_contribution_start",
                "component": "GoalService",
            },
        )

        try:
            with transaction.atomic():
                goal = self._lock_goal(user, goal_id)

                if not is_direct_contribution:
                    current_balance = BalanceService.get_balance(user)
                    if current_balance < amount:
                        logger.warning(
                            "Goal contribution rejected - insufficient funds",
                            extra={
                                "user_id": user.id,
                                "goal_id": goal.id,
                                "amount": str(amount),
                                "current_balance": str(current_balance),
                                "action": "goal_contribution_insufficient_funds",
                                "component": "GoalService",
                                "severity": "low",
                            },
                        )
                        raise InsufficientFundsError(
                            "Insufficient balance for this contribution",
                            current_balance=current_balance,
                            requested_amount=amount,
                        )

                goal.progress = quantize_amount(goal.progress + amount)
                goal.mark_completed_if_reached()
                goal.save(update_fields=["progress", "status", "updated_at"])

                ledger_entry = None
                if not is_direct_contribution:
                    ledger_entry = Transaction.objects.create(
                        user=user,
                        type=EXPENSE,
                        category=OTHER_EXPENSE,
                        amount=amount,
                        date=timezone.localdate(),
                        description=f"Contribution to goal: {goal.name}",
                        payment_method=payment_method,
                        status=Transaction.COMPLETED,
                        goal=goal,
                    )

        except (ValidationError, InsufficientFundsError, Goal.DoesNotExist):
            raise
        except DatabaseError as e:
            logger.error(
                "Goal contribution rolled back",
                extra={
                    "user_id": user.id,
                    "goal_id": goal_id,
                    "amount": str(amount),
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "action": "goal_contribution_failed",
                    "component": "GoalService",
                    "severity": "high",
                },
                exc_info=True,
            )
            raise

        logger.info(
            "Goal contribution committed",
            extra={
                "user_id": user.id,
                "goal_id": goal.id,
                "amount": str(amount),
                "new_progress": str(goal.progress),
                "status": goal.status,
                "transaction_id": ledger_entry.id if ledger_entry else None,
                "action": "goal_contribution_success",
                "component": "GoalService",
            },
        )

        return {
            "new_progress": goal.progress,
            "is_completed": goal.is_completed,
            "transaction_id": ledger_entry.id if ledger_entry else None,
        }

    # -------------------------------------------------------------------
    # DELETION ENGINE
    # -------------------------------------------------------------------

    def delete_goal(self, user, goal_id: int) -> dict:
        """
        Delete a goal and refund its accumulated progress to the balance.

        The refund is an Income row for exactly ``progress`` that is not
        linked to any goal. Ledger rows that referenced the goal are kept and
        detached.

        Returns:
            dict: ``refunded_amount`` and ``refund_transaction_id`` (``None``
                when progress was zero)

        Raises:
            Goal.DoesNotExist: If the goal is missing or owned by someone else
            DatabaseError: If persisting fails; the goal is left untouched
        """
        try:
            with transaction.atomic():
                goal = self._lock_goal(user, goal_id)
                goal_name = goal.name
                refunded_amount = quantize_amount(goal.progress)

                refund = None
                if refunded_amount > ZERO:
                    refund = Transaction.objects.create(
                        user=user,
                        type=INCOME,
                        category=OTHER_INCOME,
                        amount=refunded_amount,
                        date=timezone.localdate(),
                        description=f"Refund from deleted goal: {goal_name}",
                        payment_method=REFUND_PAYMENT_METHOD,
                        status=Transaction.COMPLETED,
                        goal=None,
                    )

                detached_count = Transaction.objects.filter(goal=goal).update(goal=None)
                goal.delete()

        except Goal.DoesNotExist:
            raise
        except DatabaseError as e:
            logger.error(
                "Goal deletion rolled back",
                extra={
                    "user_id": user.id,
                    "goal_id": goal_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "action": "goal_delete_failed",
                    "component": "GoalService",
                    "severity": "high",
                },
                exc_info=True,
            )
            raise

        logger.info(
            "Goal deleted with refund",
            extra={
                "user_id": user.id,
                "goal_id": goal_id,
                "goal_name": goal_name,
                "refunded_amount": str(refunded_amount),
                "refund_transaction_id": refund.id if refund else None,
                "detached_transactions": detached_count,
                "action": "goal_deleted",
                "component": "GoalService",
            },
        )

        return {
            "refunded_amount": refunded_amount,
            "refund_transaction_id": refund.id if refund else None,
        }

    # -------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------

    def _lock_goal(self, user, goal_id, lock_owner: bool = True) -> Goal:
        """
        Lock the owner row, then the goal row. Must run inside an atomic block.

        An id that is not an integer is treated like a missing goal.
        """
        if lock_owner:
            get_user_model().objects.select_for_update().only("id").get(pk=user.pk)
        try:
            return Goal.objects.select_for_update().get(pk=int(goal_id), user=user)
        except (Goal.DoesNotExist, ValueError, TypeError):
            logger.warning(
                "Goal not found or not owned by user",
                extra={
                    "user_id": user.id,
                    "goal_id": goal_id,
                    "action": "goal_not_found",
                    "component": "GoalService",
                    "severity": "low",
                },
            )
            raise Goal.DoesNotExist(f"Goal {goal_id!r} not found") from None

    @staticmethod
    def _parse_amount(value, allow_zero: bool = False, field: str = "Amount") -> Decimal:
        """Parse a monetary input into a cent-rounded Decimal."""
        if isinstance(value, bool) or value is None or value == "":
            raise ValidationError(f"{field} is required and must be a number")
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError(f"{field} must be a valid number")

        if not amount.is_finite():
            raise ValidationError(f"{field} must be a valid number")
        amount = quantize_amount(amount)
        if amount < 0 or (amount == 0 and not allow_zero):
            raise ValidationError(
                f"{field} cannot be negative" if allow_zero else f"{field} must be positive"
            )
        return amount
