"""
Balance calculator for the personal finance ledger.

The balance is never stored: it is always the sum of a user's Income rows
minus the sum of their Expense rows, computed in a single aggregate query.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.db.models import DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce

from ..models import AMOUNT_DECIMAL_PLACES, AMOUNT_MAX_DIGITS, EXPENSE, INCOME, Transaction

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_amount(value) -> Decimal:
    """Round a monetary value to cents, half-up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def _sum_for(transaction_type):
    return Coalesce(
        Sum("amount", filter=Q(type=transaction_type)),
        Value(ZERO),
        output_field=DecimalField(
            max_digits=AMOUNT_MAX_DIGITS + 4, decimal_places=AMOUNT_DECIMAL_PLACES
        ),
    )


class BalanceService:
    """Read-only aggregate queries over a user's ledger."""

    @staticmethod
    def get_totals(user) -> dict:
        """
        Sum a user's ledger by type.

        Args:
            user: Owner of the ledger

        Returns:
            dict: ``total_income``, ``total_expenses`` and ``balance`` as Decimals
        """
        totals = Transaction.objects.filter(user=user).aggregate(
            total_income=_sum_for(INCOME),
            total_expenses=_sum_for(EXPENSE),
        )
        total_income = quantize_amount(totals["total_income"])
        total_expenses = quantize_amount(totals["total_expenses"])
        balance = total_income - total_expenses

        logger.debug(
            "Ledger totals computed",
            extra={
                "user_id": user.id,
                "total_income": str(total_income),
                "total_expenses": str(total_expenses),
                "balance": str(balance),
                "action": "balance_computed",
                "component": "BalanceService",
            },
        )

        return {
            "total_income": total_income,
            "total_expenses": total_expenses,
            "balance": balance,
        }

    @staticmethod
    def get_balance(user) -> Decimal:
        """Current balance; 0.00 for an empty ledger. May be negative."""
        return BalanceService.get_totals(user)["balance"]
