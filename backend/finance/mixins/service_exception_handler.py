"""
Service exception handler mixin.
Translates service layer exceptions into DRF exceptions with structured
logging, so every error response body carries a ``message`` field.
"""

import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework.exceptions import APIException
from rest_framework.exceptions import PermissionDenied as DRFPermissionDenied
from rest_framework.exceptions import ValidationError as DRFValidationError

from ..exceptions import (
    InsufficientFunds,
    InsufficientFundsError,
    ResourceNotFound,
    StoreFailure,
)

logger = logging.getLogger(__name__)


class ServiceExceptionHandlerMixin:
    """
    Mixin for handling service layer exceptions in views.

    Mapping:
    - ObjectDoesNotExist -> 404 ResourceNotFound
    - Django / DRF ValidationError -> 400
    - InsufficientFundsError -> 400 InsufficientFunds (with current balance)
    - PermissionError -> 403
    - DatabaseError -> 500 StoreFailure (the atomic block has rolled back)
    - anything else -> generic 500

    Usage:
        result = self.handle_service_call(
            self.goal_service.contribute, request.user, goal_id, amount
        )
    """

    def handle_service_call(self, service_call, *args, **kwargs):
        """
        Execute service call with exception translation and logging.

        Args:
            service_call: Service method to execute
            *args: Positional arguments for service call
            **kwargs: Keyword arguments for service call

        Returns:
            Any: Result from service call
        """
        # Extract context for logging
        service_name = getattr(service_call, "__self__", self).__class__.__name__
        method_name = getattr(service_call, "__name__", str(service_call))
        request = getattr(self, "request", None)
        user_id = getattr(getattr(request, "user", None), "id", None) if request else None

        log_context = {
            "service_name": service_name,
            "method_name": method_name,
            "user_id": user_id,
            "component": "ServiceExceptionHandlerMixin",
        }

        logger.debug(
            "Service call execution initiated",
            extra={
                **log_context,
                "args_count": len(args),
                "kwargs_keys": list(kwargs.keys()),
                "action": "service_call_start",
            },
        )

        try:
            result = service_call(*args, **kwargs)

            logger.debug(
                "Service call completed successfully",
                extra={
                    **log_context,
                    "result_type": type(result).__name__,
                    "action": "service_call_success",
                },
            )

            return result

        except InsufficientFundsError as e:
            logger.info(
                "Service rejected operation - insufficient funds",
                extra={
                    **log_context,
                    "current_balance": str(e.current_balance),
                    "requested_amount": str(e.requested_amount),
                    "action": "service_insufficient_funds",
                    "severity": "low",
                },
            )
            raise InsufficientFunds(e.message, e.current_balance)

        except ObjectDoesNotExist as e:
            logger.warning(
                "Service resource not found",
                extra={
                    **log_context,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "action": "service_not_found",
                    "severity": "low",
                },
            )
            raise ResourceNotFound(self._not_found_message(e))

        except DRFValidationError as e:
            # Re-raise DRF validation errors directly
            logger.warning(
                "Service validation error (DRF)",
                extra={
                    **log_context,
                    "error_type": "DRFValidationError",
                    "error_detail": e.detail,
                    "action": "service_validation_error_drf",
                    "severity": "medium",
                },
            )
            raise

        except DjangoValidationError as e:
            # Convert Django ValidationError to DRF ValidationError
            error_messages = e.messages if hasattr(e, "messages") else [str(e)]

            logger.warning(
                "Service validation error (Django)",
                extra={
                    **log_context,
                    "error_type": "DjangoValidationError",
                    "error_messages": error_messages,
                    "action": "service_validation_error_django",
                    "severity": "medium",
                },
            )

            raise DRFValidationError({"message": " ".join(error_messages)})

        except PermissionError as e:
            logger.warning(
                "Service permission denied",
                extra={
                    **log_context,
                    "error_type": "PermissionError",
                    "error_message": str(e),
                    "action": "service_permission_denied",
                    "severity": "high",
                },
            )

            raise DRFPermissionDenied({"message": str(e)})

        except DatabaseError as e:
            logger.error(
                "Service store failure",
                extra={
                    **log_context,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "action": "service_store_failure",
                    "severity": "critical",
                },
                exc_info=True,
            )
            raise StoreFailure()

        except APIException as e:
            # Re-raise DRF API exceptions directly
            logger.error(
                "Service API exception",
                extra={
                    **log_context,
                    "error_type": "APIException",
                    "error_detail": e.detail,
                    "status_code": e.status_code,
                    "action": "service_api_exception",
                    "severity": "high",
                },
            )
            raise

        except Exception as e:
            # Handle unexpected service errors
            logger.error(
                "Service operation failed unexpectedly",
                extra={
                    **log_context,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                    "action": "service_unexpected_error",
                    "severity": "critical",
                },
                exc_info=True,  # Include full stack trace
            )

            # Generic error to prevent information leakage
            raise APIException(
                detail={"message": "Service operation failed"}, code="service_error"
            )

    @staticmethod
    def _not_found_message(exc):
        # Model.DoesNotExist classes are qualified by their model, e.g. "Goal.DoesNotExist"
        qualname = type(exc).__qualname__
        if "." in qualname:
            return f"{qualname.split('.')[0]} not found"
        return "Resource not found"
