from .balance_service import BalanceService
from .goal_service import GoalService
from .scheduled_transaction_service import ScheduledTransactionService
from .transaction_service import TransactionService

__all__ = [
    "BalanceService",
    "GoalService",
    "ScheduledTransactionService",
    "TransactionService",
]
