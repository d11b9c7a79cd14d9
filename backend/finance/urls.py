"""
URL configuration for the personal finance API.

All finance resources are exposed through a DefaultRouter; custom endpoints
(contribute, progress, balance, dashboard, statistics, status) are viewset
actions.
"""

import logging

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

# Get structured logger for this module
logger = logging.getLogger(__name__)

# Initialize DefaultRouter for RESTful API endpoints
router = DefaultRouter()

# Goals with contribution and refund-on-delete
router.register(r"goals", views.GoalViewSet, basename="goal")

# Ledger endpoints and reports
router.register(r"transactions", views.TransactionViewSet, basename="transaction")

# Recurring transaction definitions
router.register(
    r"scheduled-transactions",
    views.ScheduledTransactionViewSet,
    basename="scheduled-transaction",
)

urlpatterns = [
    # Include all router-generated URLs
    path("", include(router.urls)),
]

# Log URL configuration on startup
logger.info(
    "Finance API URLs configured successfully",
    extra={
        "total_routes": len(router.urls),
        "viewset_endpoints": len(router.registry),
        "action": "url_configuration_loaded",
        "component": "urls",
    },
)

logger.debug(
    "Detailed route configuration",
    extra={
        "registered_viewsets": [
            {"prefix": prefix, "viewset": viewset.__name__, "basename": basename}
            for prefix, viewset, basename in router.registry
        ],
        "action": "route_detailed_log",
        "component": "urls",
    },
)
