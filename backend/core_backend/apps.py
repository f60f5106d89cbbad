from django.apps import AppConfig
import logging

logger = logging.getLogger(__name__)


class CoreBackendConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core_backend"

    def ready(self):
        """
        Connect the audit receivers for fulfillment events.

        The signals themselves are declared in the inventory, orders and
        production apps; importing core_backend.signals registers the
        receivers that write them to the audit log.
        """
        import core_backend.signals  # noqa: F401

        logger.debug("Fulfillment audit receivers connected")
