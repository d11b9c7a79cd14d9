"""
Domain exceptions raised by the finance services and their HTTP counterparts.

Services raise the plain Python / Django exceptions; the
ServiceExceptionHandlerMixin translates them into the DRF exceptions below so
every error body carries a ``message`` field.
"""

from decimal import Decimal

from rest_framework import status
from rest_framework.exceptions import APIException


class InsufficientFundsError(Exception):
    """Balance is lower than the requested contribution."""

    def __init__(self, message: str, current_balance: Decimal, requested_amount: Decimal = None):
        self.message = message
        self.current_balance = current_balance
        self.requested_amount = requested_amount
        super().__init__(self.message)


class ResourceNotFound(APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = {"message": "Resource not found"}
    default_code = "not_found"

    def __init__(self, message=None):
        detail = {"message": message} if message else None
        super().__init__(detail=detail, code=self.default_code)


class InsufficientFunds(APIException):
    """400 response that exposes the current balance to the client."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "insufficient_funds"

    def __init__(self, message, current_balance):
        super().__init__(
            detail={"message": message, "current_balance": str(current_balance)},
            code=self.default_code,
        )


class StoreFailure(APIException):
    """The atomic scope was rolled back; nothing was written."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = {
        "message": "The operation could not be saved. No changes were applied."
    }
    default_code = "store_failure"
