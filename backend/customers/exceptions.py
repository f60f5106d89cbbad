"""
Membership-specific exceptions.
"""
from rest_framework import status

from core_backend.exceptions import FulfillmentError


class InsufficientPointsError(FulfillmentError):
    """Member does not have enough points for the requested redemption."""

    code = "insufficient_points"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, customer_id, requested, available):
        self.customer_id = customer_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Customer {customer_id} has {available} points, cannot redeem {requested}"
        )

    def get_extra(self):
        return {"requested": self.requested, "available": self.available}
