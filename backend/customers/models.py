"""
Member profiles and their points ledger.

Only what the fulfillment engine needs: tier, points balance and lifetime
spend. Profile management (registration, contact preferences...) lives
outside this backend.
"""
from decimal import Decimal

from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import SoftDeleteMixin


class Customer(SoftDeleteMixin):

    class Tier(models.TextChoices):
        BRONZE = "bronze", _("Bronze")
        SILVER = "silver", _("Silver")
        GOLD = "gold", _("Gold")
        PLATINUM = "platinum", _("Platinum")

    name = models.CharField(max_length=150)
    phone = models.CharField(max_length=20, blank=True, db_index=True)
    email = models.EmailField(blank=True)
    tier = models.CharField(max_length=20, choices=Tier.choices, default=Tier.BRONZE)
    points = models.PositiveIntegerField(default=0, help_text=_("Points available to redeem"))
    points_used = models.PositiveIntegerField(default=0, help_text=_("Points redeemed to date"))
    total_spent = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text=_("Lifetime spend; drives the tier"),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Customer")
        verbose_name_plural = _("Customers")
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.get_tier_display()})"


class PointsTransaction(models.Model):
    """Every change to a member's points balance."""

    customer = models.ForeignKey(
        Customer, on_delete=models.PROTECT, related_name="points_transactions"
    )
    delta = models.IntegerField()
    balance_after = models.PositiveIntegerField()
    reason = models.CharField(max_length=255)
    reference_id = models.CharField(max_length=100, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Points Transaction")
        verbose_name_plural = _("Points Transactions")
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.customer.name}: {self.delta:+d} ({self.reason})"
