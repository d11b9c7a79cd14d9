# tests/conftest.py
from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from finance.models import EXPENSE, INCOME, Goal, ScheduledTransaction, Transaction

User = get_user_model()

# =============================================================================
# USER FIXTURES
# =============================================================================


@pytest.fixture
def test_user(db):
    """Primary test user"""
    return User.objects.create_user(
        username="testuser", email="test@example.com", password="testpass123"
    )


@pytest.fixture
def test_user2(db):
    """Second user, used for ownership checks"""
    return User.objects.create_user(
        username="testuser2", email="test2@example.com", password="testpass123"
    )


# =============================================================================
# LEDGER FIXTURES
# =============================================================================


def _make_transaction(user, type_, amount, category=None, on=None, **kwargs):
    """Create a ledger row with sensible defaults."""
    return Transaction.objects.create(
        user=user,
        type=type_,
        category=category or ("Salary" if type_ == INCOME else "Food"),
        amount=Decimal(amount),
        date=on or timezone.localdate(),
        description=kwargs.pop("description", f"{type_} {amount}"),
        payment_method=kwargs.pop("payment_method", "Cash"),
        **kwargs,
    )


@pytest.fixture
def funded_user(test_user):
    """User with income 1500.00 and expense 500.00, balance 1000.00"""
    _make_transaction(test_user, INCOME, "1500.00")
    _make_transaction(test_user, EXPENSE, "500.00")
    return test_user


# =============================================================================
# GOAL FIXTURES
# =============================================================================


@pytest.fixture
def test_goal(test_user):
    """Saving goal 500/1000 owned by test_user"""
    return Goal.objects.create(
        user=test_user,
        name="Emergency fund",
        type=Goal.SAVING,
        target_amount=Decimal("1000.00"),
        progress=Decimal("500.00"),
        end_date=date(2030, 12, 31),
    )


# =============================================================================
# SCHEDULED TRANSACTION FIXTURES
# =============================================================================


@pytest.fixture
def monthly_rent(test_user):
    """Monthly rent definition starting on Jan 31st of a leap year"""
    return ScheduledTransaction.objects.create(
        user=test_user,
        description="Rent",
        amount=Decimal("750.00"),
        type=EXPENSE,
        category="Housing",
        payment_method="Bank Transfer",
        frequency=ScheduledTransaction.MONTHLY,
        start_date=date(2024, 1, 31),
        next_execution=date(2024, 1, 31),
    )


# =============================================================================
# API FIXTURES
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def auth_client(api_client, test_user):
    """APIClient authenticated as test_user"""
    api_client.force_authenticate(user=test_user)
    return api_client
