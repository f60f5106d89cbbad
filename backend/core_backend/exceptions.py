"""
Error taxonomy for the fulfillment engine.

Services raise these exceptions; the DRF exception handler at the bottom of
this module turns them into JSON responses with a stable error code so API
clients can react to the precise reason (e.g. which ingredient ran out).
"""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class FulfillmentError(Exception):
    """Base exception for order, production and inventory errors."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message=None):
        self.message = message or self.__class__.__doc__ or self.code
        super().__init__(self.message)

    def get_extra(self):
        """Additional structured fields included in API error responses."""
        return {}


class NotFoundError(FulfillmentError):
    """Requested order, product or inventory item does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource, identifier, message=None):
        self.resource = resource
        self.identifier = identifier
        if message is None:
            message = f"{resource} '{identifier}' not found"
        super().__init__(message)


class InactiveItemError(NotFoundError):
    """Inventory item exists but has been disabled."""

    code = "inactive"

    def __init__(self, resource, identifier, name=None):
        label = f"'{name}'" if name else f"'{identifier}'"
        super().__init__(resource, identifier, message=f"{resource} {label} is inactive")


class InvalidOrderError(FulfillmentError):
    """Order input is empty or malformed."""

    code = "invalid_order"
    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientStockError(FulfillmentError):
    """
    Stock cannot satisfy a deduction.

    Carries every offending ingredient so callers can report all shortages,
    while the message names the first one with required vs available amounts.
    """

    code = "insufficient_stock"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, shortages, message=None):
        self.shortages = list(shortages)
        if message is None:
            message = "; ".join(self._describe(s) for s in self.shortages) or "Insufficient stock"
        super().__init__(message)

    @staticmethod
    def _describe(shortage):
        if shortage.get("reason") and shortage.get("reason") != "insufficient":
            return f"{shortage['name']} is unavailable ({shortage['reason']})"
        unit = shortage.get("unit") or ""
        return (
            f"Insufficient stock for {shortage['name']}: "
            f"required {shortage['required']}{unit}, available {shortage['available']}{unit}"
        )

    def get_extra(self):
        return {
            "shortages": [
                {key: str(value) if value is not None else None for key, value in shortage.items()}
                for shortage in self.shortages
            ]
        }


class InvalidTransitionError(FulfillmentError):
    """Illegal order status or production stage move."""

    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, current, attempted, message=None):
        self.current = current
        self.attempted = attempted
        if message is None:
            message = f"Cannot transition from '{current}' to '{attempted}'"
        super().__init__(message)

    def get_extra(self):
        return {"current": self.current, "attempted": self.attempted}


class InvalidAdjustmentError(FulfillmentError):
    """Manual stock adjustment would break the item's stock bounds."""

    code = "invalid_adjustment"
    status_code = status.HTTP_400_BAD_REQUEST


class AlreadyCompletedError(FulfillmentError):
    """Completed orders are immutable and cannot be cancelled."""

    code = "already_completed"
    status_code = status.HTTP_409_CONFLICT


class InternalError(FulfillmentError):
    """Unexpected persistence failure."""

    code = "internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InventoryBusyError(InternalError):
    """Inventory rows are locked by a concurrent operation."""

    code = "inventory_busy"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


def fulfillment_exception_handler(exc, context):
    """
    DRF exception handler that renders FulfillmentError subclasses.

    Anything else is delegated to the default DRF handler.
    """
    if isinstance(exc, FulfillmentError):
        request = context.get("request")
        log = logger.error if exc.status_code >= 500 else logger.info
        log(
            f"{exc.__class__.__name__} on {getattr(request, 'method', '?')} "
            f"{getattr(request, 'path', '?')}: {exc.message}"
        )
        data = {"error": exc.code, "detail": exc.message}
        data.update(exc.get_extra())
        return Response(data, status=exc.status_code)

    return exception_handler(exc, context)
