"""
Orders serializers package.
"""

from .order_serializers import (
    MemberInfoSerializer,
    OrderCreateSerializer,
    OrderItemInputSerializer,
    OrderItemSerializer,
    OrderSerializer,
)
from .status_serializers import CancelOrderSerializer, UpdateOrderStatusSerializer

__all__ = [
    "MemberInfoSerializer",
    "OrderCreateSerializer",
    "OrderItemInputSerializer",
    "OrderItemSerializer",
    "OrderSerializer",
    "CancelOrderSerializer",
    "UpdateOrderStatusSerializer",
]
