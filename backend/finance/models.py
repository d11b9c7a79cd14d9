"""
Database models for the personal finance ledger.

This module defines the ledger (Transaction), savings / spending-reduction
goals (Goal) and recurring transaction templates (ScheduledTransaction).
A user's balance is never stored; it is always derived from the ledger.
"""

import logging
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

# Get structured logger for this module
logger = logging.getLogger(__name__)

AMOUNT_MAX_DIGITS = 12
AMOUNT_DECIMAL_PLACES = 2
MIN_AMOUNT = Decimal("0.01")

# -------------------------------------------------------------------
# LEDGER VOCABULARY
# -------------------------------------------------------------------
# Shared by manual transactions and scheduled definitions

INCOME = "Income"
EXPENSE = "Expense"

TRANSACTION_TYPES = [
    (INCOME, "Income"),
    (EXPENSE, "Expense"),
]

OTHER_INCOME = "Other-Income"
OTHER_EXPENSE = "Other-Expense"

CATEGORIES_BY_TYPE = {
    INCOME: ["Salary", "Gift", "Investments", OTHER_INCOME],
    EXPENSE: [
        "Food",
        "Utilities",
        "Health",
        "Housing",
        "Education",
        "Transportation",
        "Clothing",
        "Insurance",
        "Maintenance",
        "Entertainment",
        "Hobbies",
        "Restaurants",
        "Shopping",
        "Travel",
        OTHER_EXPENSE,
    ],
}

PAYMENT_METHODS = [
    ("Cash", "Cash"),
    ("Debit Card", "Debit Card"),
    ("Credit Card", "Credit Card"),
    ("Bank Transfer", "Bank Transfer"),
]


def validate_category_for_type(transaction_type, category):
    """Raise ValidationError unless ``category`` belongs to ``transaction_type``."""
    valid_categories = CATEGORIES_BY_TYPE.get(transaction_type)
    if valid_categories is None:
        raise ValidationError(
            f"Type must be one of: {', '.join(CATEGORIES_BY_TYPE)}"
        )
    if category not in valid_categories:
        raise ValidationError(
            f"Invalid category for {transaction_type}. "
            f"Valid categories: {', '.join(valid_categories)}"
        )


# -------------------------------------------------------------------
# GOALS
# -------------------------------------------------------------------
# Savings targets linked to the ledger through contributions


class Goal(models.Model):
    """
    Savings or spending-reduction target.

    ``progress`` accumulates contributions and only moves forward while the
    goal exists. Status flips to Completed once progress reaches the target
    and is never reverted automatically.
    """

    SAVING = "Saving"
    SPENDING_REDUCTION = "Spending Reduction"
    GOAL_TYPES = [
        (SAVING, "Saving"),
        (SPENDING_REDUCTION, "Spending Reduction"),
    ]

    ACTIVE = "Active"
    COMPLETED = "Completed"
    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (COMPLETED, "Completed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="goals"
    )
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=20, choices=GOAL_TYPES)
    target_amount = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        validators=[MinValueValidator(MIN_AMOUNT)],
    )
    progress = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=ACTIVE)
    payment_schedule = models.JSONField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "status"], name="finance_goa_user_id_5c1f3e_idx"),
            models.Index(fields=["user", "end_date"], name="finance_goa_user_id_9d02a7_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(progress__gte=0), name="goal_progress_non_negative"
            ),
            models.CheckConstraint(
                condition=models.Q(target_amount__gt=0), name="goal_target_positive"
            ),
        ]

    def __str__(self):
        """String representation of Goal."""
        return f"{self.name} ({self.progress}/{self.target_amount})"

    @property
    def is_completed(self):
        return self.progress >= self.target_amount

    def mark_completed_if_reached(self):
        """Move to Completed when progress reaches the target; never back."""
        if self.is_completed:
            self.status = self.COMPLETED
        return self.status

    def clean(self):
        """Validate goal data."""
        super().clean()

        if not self.name or len(self.name.strip()) < 2:
            raise ValidationError("Goal name must be at least 2 characters long.")

        if self.target_amount is not None and self.target_amount <= 0:
            logger.warning(
                "Goal validation failed - non-positive target",
                extra={
                    "goal_id": self.id if self.id else "new",
                    "target_amount": str(self.target_amount),
                    "action": "goal_validation_failed",
                    "component": "Goal",
                    "severity": "medium",
                },
            )
            raise ValidationError("Target amount must be positive")

        if self.progress is not None and self.progress < 0:
            raise ValidationError("Progress cannot be negative")


# -------------------------------------------------------------------
# SCHEDULED TRANSACTIONS
# -------------------------------------------------------------------
# Recurring templates materialized into the ledger by the advancer


class ScheduledTransaction(models.Model):
    """
    Recurring transaction definition.

    ``next_execution`` always points at the earliest occurrence that has not
    been written to the ledger yet.
    """

    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"
    YEARLY = "Yearly"
    FREQUENCY_CHOICES = [
        (DAILY, "Daily"),
        (WEEKLY, "Weekly"),
        (MONTHLY, "Monthly"),
        (YEARLY, "Yearly"),
    ]

    ACTIVE = "Active"
    PAUSED = "Paused"
    COMPLETED = "Completed"
    STATUS_CHOICES = [
        (ACTIVE, "Active"),
        (PAUSED, "Paused"),
        (COMPLETED, "Completed"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="scheduled_transactions",
    )
    description = models.CharField(max_length=255)
    amount = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        validators=[MinValueValidator(MIN_AMOUNT)],
    )
    type = models.CharField(max_length=10, choices=TRANSACTION_TYPES)
    category = models.CharField(max_length=50)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS)
    frequency = models.CharField(max_length=10, choices=FREQUENCY_CHOICES)
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=ACTIVE)
    last_execution = models.DateField(null=True, blank=True)
    next_execution = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["next_execution", "id"]
        indexes = [
            models.Index(fields=["status", "next_execution"], name="finance_sch_status_4b8e21_idx"),
            models.Index(fields=["user", "next_execution"], name="finance_sch_user_id_7a3c90_idx"),
        ]

    def __str__(self):
        """String representation of ScheduledTransaction."""
        return f"{self.description} | {self.frequency} | {self.amount} ({self.status})"

    def clean(self):
        """Validate definition data and business rules."""
        super().clean()

        validate_category_for_type(self.type, self.category)

        if self.amount is not None and self.amount <= 0:
            raise ValidationError("Amount must be positive")

        if self.end_date and self.start_date and self.end_date < self.start_date:
            raise ValidationError("End date cannot be before start date")


# -------------------------------------------------------------------
# TRANSACTIONS
# -------------------------------------------------------------------
# The ledger: every balance is derived from these rows


class Transaction(models.Model):
    """
    Ledger entry.

    Income rows add to the owner's balance, Expense rows subtract from it.
    ``goal`` is an association only: deleting the goal never deletes the
    transactions that funded it.
    """

    COMPLETED = "Completed"
    PENDING = "Pending"
    STATUS_CHOICES = [
        (COMPLETED, "Completed"),
        (PENDING, "Pending"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="transactions"
    )
    type = models.CharField(max_length=10, choices=TRANSACTION_TYPES)
    category = models.CharField(max_length=50)
    amount = models.DecimalField(
        max_digits=AMOUNT_MAX_DIGITS,
        decimal_places=AMOUNT_DECIMAL_PLACES,
        validators=[MinValueValidator(MIN_AMOUNT)],
    )
    date = models.DateField()
    description = models.CharField(max_length=255)
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=COMPLETED)
    goal = models.ForeignKey(
        Goal,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="transactions",
    )
    scheduled_transaction = models.ForeignKey(
        ScheduledTransaction,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="occurrences",
    )
    is_scheduled = models.BooleanField(default=False)
    recurrence = models.CharField(max_length=10, blank=True, default="")
    schedule = models.CharField(max_length=20, blank=True, default="")
    end_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["user", "date"], name="finance_tra_user_id_2e6b14_idx"),
            models.Index(fields=["user", "type"], name="finance_tra_user_id_8f4d52_idx"),
            models.Index(fields=["user", "category"], name="finance_tra_user_id_c71a09_idx"),
            models.Index(fields=["goal"], name="finance_tra_goal_id_3b9e67_idx"),
        ]
        ordering = ["-date", "-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0), name="transaction_amount_positive"
            ),
        ]

    @property
    def signed_amount(self):
        """Amount as it affects the balance."""
        return self.amount if self.type == INCOME else -self.amount

    def clean(self):
        """Validate transaction data and business rules."""
        super().clean()

        try:
            validate_category_for_type(self.type, self.category)
        except ValidationError:
            logger.warning(
                "Transaction validation failed - category does not match type",
                extra={
                    "transaction_id": self.id if self.id else "new",
                    "transaction_type": self.type,
                    "category": self.category,
                    "action": "transaction_validation_failed",
                    "component": "Transaction",
                    "severity": "medium",
                },
            )
            raise

        if self.amount is not None and self.amount <= 0:
            logger.warning(
                "Transaction validation failed - invalid amount",
                extra={
                    "transaction_id": self.id if self.id else "new",
                    "amount": str(self.amount),
                    "action": "transaction_validation_failed",
                    "component": "Transaction",
                    "severity": "medium",
                },
            )
            raise ValidationError("Transaction amount must be positive")

    def __str__(self):
        """String representation of Transaction."""
        return f"{self.user} | {self.type} | {self.category} | {self.amount}"
