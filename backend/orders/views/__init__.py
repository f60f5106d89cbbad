"""
Orders views package - viewset composed with action mixins.
"""

from .order_viewset import OrderViewSet

__all__ = [
    "OrderViewSet",
]
