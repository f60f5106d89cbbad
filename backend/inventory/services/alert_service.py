import math
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from inventory.models import InventoryItem

PRIORITY_ORDER = {"HIGH": 3, "MEDIUM": 2, "LOW": 1}


class InventoryAlertService:
    """
    Read-only projections over active inventory items: low stock,
    overstock and upcoming expiry, plus summary statistics.
    """

    @staticmethod
    def low_stock_items():
        return InventoryItem.objects.filter(current_stock__lte=F("min_stock"))

    @staticmethod
    def overstock_items():
        return InventoryItem.objects.filter(current_stock__gt=F("max_stock"))

    @staticmethod
    def expiring_items(days=None):
        if days is None:
            days = settings.FULFILLMENT["EXPIRY_WARNING_DAYS"]
        today = timezone.now().date()
        return InventoryItem.objects.filter(
            expiry_date__isnull=False,
            expiry_date__gte=today,
            expiry_date__lte=today + timedelta(days=days),
        ).order_by("expiry_date", "name")

    # ------------------------------------------------------------------
    # Alert helpers
    # ------------------------------------------------------------------

    @staticmethod
    def days_until_reorder(item):
        """
        Days of stock left above the reorder threshold, assuming a daily
        consumption of 10% of ``min_stock``. None when consumption is unknown.
        """
        daily_consumption = item.min_stock * Decimal("0.1")
        if daily_consumption <= 0:
            return None
        remaining = item.current_stock - item.min_stock
        return max(0, math.ceil(remaining / daily_consumption))

    @staticmethod
    def alert_priority(item):
        if item.min_stock <= 0:
            return "HIGH" if item.current_stock <= 0 else "LOW"
        ratio = item.current_stock / item.min_stock
        if ratio <= Decimal("0.2"):
            return "HIGH"
        if ratio <= Decimal("0.5"):
            return "MEDIUM"
        return "LOW"

    @staticmethod
    def waste_risk(days_until_expiry):
        if days_until_expiry <= 1:
            return "HIGH"
        if days_until_expiry <= 3:
            return "MEDIUM"
        return "LOW"

    # ------------------------------------------------------------------
    # Alerts
    # ------------------------------------------------------------------

    @classmethod
    def low_stock_alerts(cls):
        return [
            {
                "item_id": item.pk,
                "name": item.name,
                "category": item.category,
                "current_stock": item.current_stock,
                "min_stock": item.min_stock,
                "max_stock": item.max_stock,
                "unit": item.unit,
                "supplier": item.supplier,
                "days_until_reorder": cls.days_until_reorder(item),
                "recommended_reorder_quantity": item.recommended_reorder_quantity,
                "priority": cls.alert_priority(item),
                "alert_type": "LOW_STOCK",
            }
            for item in cls.low_stock_items()
        ]

    @classmethod
    def overstock_alerts(cls):
        return [
            {
                "item_id": item.pk,
                "name": item.name,
                "category": item.category,
                "current_stock": item.current_stock,
                "max_stock": item.max_stock,
                "unit": item.unit,
                "excess_amount": item.current_stock - item.max_stock,
                "priority": "MEDIUM",
                "alert_type": "OVERSTOCK",
            }
            for item in cls.overstock_items()
        ]

    @classmethod
    def expiring_alerts(cls, days=None):
        today = timezone.now().date()
        alerts = []
        for item in cls.expiring_items(days):
            days_left = (item.expiry_date - today).days
            alerts.append(
                {
                    "item_id": item.pk,
                    "name": item.name,
                    "category": item.category,
                    "current_stock": item.current_stock,
                    "unit": item.unit,
                    "expiry_date": item.expiry_date,
                    "days_until_expiry": days_left,
                    "priority": "HIGH" if days_left <= 1 else "MEDIUM",
                    "waste_risk": cls.waste_risk(days_left),
                    "alert_type": "EXPIRY",
                }
            )
        return alerts

    @classmethod
    def get_all_alerts(cls, days=None):
        """All alerts, highest priority first."""
        alerts = cls.low_stock_alerts() + cls.overstock_alerts() + cls.expiring_alerts(days)
        return sorted(alerts, key=lambda alert: -PRIORITY_ORDER[alert["priority"]])

    @classmethod
    def get_inventory_statistics(cls):
        items = list(InventoryItem.objects.all())

        categories = {}
        total_value = Decimal("0")
        for item in items:
            value = item.stock_value
            total_value += value
            stats = categories.setdefault(
                item.category, {"count": 0, "total_value": Decimal("0"), "low_stock_count": 0}
            )
            stats["count"] += 1
            stats["total_value"] += value
            if item.needs_reorder:
                stats["low_stock_count"] += 1

        return {
            "total_items": len(items),
            "low_stock_items": sum(1 for item in items if item.needs_reorder),
            "overstock_items": sum(1 for item in items if item.current_stock > item.max_stock),
            "expiring_items": sum(1 for item in items if item.is_expiring_soon()),
            "expired_items": sum(1 for item in items if item.is_expired),
            "total_value": total_value,
            "categories": categories,
            "last_updated": timezone.now(),
        }
