"""
Date arithmetic for recurring (scheduled) transactions.

Monthly and yearly steps keep the day of month of the definition's start date
and clamp it to the last day of shorter months, so a definition starting on
the 31st runs on Jan 31, Feb 29 (leap year), Mar 31, Apr 30 and so on.
"""

import logging
from calendar import monthrange
from datetime import date, timedelta
from typing import Optional

# Get structured logger for this module
logger = logging.getLogger(__name__)

DAILY = "Daily"
WEEKLY = "Weekly"
MONTHLY = "Monthly"
YEARLY = "Yearly"

FREQUENCIES = (DAILY, WEEKLY, MONTHLY, YEARLY)


class UnknownFrequencyError(ValueError):
    """Raised for a frequency outside Daily/Weekly/Monthly/Yearly."""

    def __init__(self, frequency: str):
        self.frequency = frequency
        super().__init__(
            f"Unknown frequency '{frequency}'. Choose from: {', '.join(FREQUENCIES)}"
        )


def add_months(base: date, months: int, anchor_day: Optional[int] = None) -> date:
    """
    Shift ``base`` by a number of calendar months.

    Args:
        base: Date to shift
        months: Number of months to add (may be negative)
        anchor_day: Preferred day of month; defaults to ``base.day``

    Returns:
        date: ``anchor_day`` of the target month, clamped to its last day
    """
    month_index = base.year * 12 + (base.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(anchor_day or base.day, monthrange(year, month)[1])
    return date(year, month, day)


def advance_date(base: date, frequency: str, anchor_day: Optional[int] = None) -> date:
    """
    Compute the occurrence that follows ``base`` for the given frequency.

    Args:
        base: Current occurrence date
        frequency: One of Daily, Weekly, Monthly, Yearly
        anchor_day: Day of month monthly/yearly steps aim for

    Returns:
        date: Next occurrence date

    Raises:
        UnknownFrequencyError: If the frequency is not supported

    Example:
        >>> advance_date(date(2024, 1, 31), "Monthly")
        datetime.date(2024, 2, 29)
    """
    if frequency == DAILY:
        return base + timedelta(days=1)
    if frequency == WEEKLY:
        return base + timedelta(days=7)
    if frequency == MONTHLY:
        return add_months(base, 1, anchor_day)
    if frequency == YEARLY:
        return add_months(base, 12, anchor_day)

    logger.error(
        "Unsupported schedule frequency",
        extra={
            "frequency": frequency,
            "base_date": base.isoformat(),
            "action": "advance_date_unknown_frequency",
            "component": "advance_date",
            "severity": "high",
        },
    )
    raise UnknownFrequencyError(frequency)
