"""
Orders services package.

- OrderService: order lifecycle (create, status transitions, cancel)
"""

from .order_service import OrderService

__all__ = [
    "OrderService",
]
