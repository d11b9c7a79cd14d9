import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class FinanceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    # Application name (Python path)
    name = "finance"

    def ready(self):
        logger.debug(
            "Finance app ready",
            extra={
                "action": "app_ready",
                "component": "FinanceConfig",
            },
        )
