import math
import uuid
from datetime import timedelta
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from customers.models import Customer
from products.models import Product


class Order(models.Model):
    """
    A customer order and its position in the production pipeline.

    Orders are never deleted. Financial fields are fixed at creation by
    orders.services.OrderService; ``production_stage``, ``assigned_to`` and
    the stage timestamps belong to production.services.ProductionService.
    """

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending")
        MAKING = "making", _("Making")
        READY = "ready", _("Ready")
        COMPLETED = "completed", _("Completed")
        CANCELLED = "cancelled", _("Cancelled")

    class ProductionStage(models.TextChoices):
        NOT_STARTED = "not_started", _("Not Started")
        PREPARING = "preparing", _("Preparing")
        MIXING = "mixing", _("Mixing")
        FINISHING = "finishing", _("Finishing")
        QUALITY_CHECK = "quality_check", _("Quality Check")
        READY_FOR_PICKUP = "ready_for_pickup", _("Ready for Pickup")

    class Priority(models.TextChoices):
        NORMAL = "normal", _("Normal")
        URGENT = "urgent", _("Urgent")
        RUSH = "rush", _("Rush")

    TERMINAL_STATUSES = (Status.COMPLETED, Status.CANCELLED)

    # Linear stage order; position drives progress and next-stage checks.
    STAGE_SEQUENCE = (
        ProductionStage.NOT_STARTED,
        ProductionStage.PREPARING,
        ProductionStage.MIXING,
        ProductionStage.FINISHING,
        ProductionStage.QUALITY_CHECK,
        ProductionStage.READY_FOR_PICKUP,
    )

    # Stages an order may be in for each non-terminal status.
    STATUS_STAGES = {
        Status.PENDING: (ProductionStage.NOT_STARTED,),
        Status.MAKING: (
            ProductionStage.PREPARING,
            ProductionStage.MIXING,
            ProductionStage.FINISHING,
            ProductionStage.QUALITY_CHECK,
        ),
        Status.READY: (ProductionStage.READY_FOR_PICKUP,),
        Status.COMPLETED: (ProductionStage.READY_FOR_PICKUP,),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=40, unique=True, editable=False)
    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="orders",
        null=True,
        blank=True,
    )
    staff = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders_taken",
        help_text=_("Staff member who took the order"),
    )

    total_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    final_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    points_used = models.PositiveIntegerField(default=0)
    points_earned = models.PositiveIntegerField(default=0)

    status = models.CharField(
        max_length=20, choices=Status.choices, default=Status.PENDING, db_index=True
    )
    production_stage = models.CharField(
        max_length=20, choices=ProductionStage.choices, default=ProductionStage.NOT_STARTED
    )
    priority = models.CharField(max_length=10, choices=Priority.choices, default=Priority.NORMAL)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    making_started_at = models.DateTimeField(null=True, blank=True)
    making_completed_at = models.DateTimeField(null=True, blank=True)
    ready_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        related_name="assigned_orders",
        null=True,
        blank=True,
    )
    estimated_wait_time = models.PositiveIntegerField(
        null=True, blank=True, help_text=_("Minutes")
    )
    actual_wait_time = models.PositiveIntegerField(null=True, blank=True, help_text=_("Minutes"))

    notes = models.TextField(blank=True)
    quality_notes = models.TextField(blank=True)
    rating = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    loyalty_applied_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("Set once the member's points and spend were updated"),
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("Order")
        verbose_name_plural = _("Orders")
        indexes = [
            models.Index(fields=["status", "created_at"], name="order_status_created_idx"),
            models.Index(fields=["assigned_to", "status"], name="order_assignee_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(final_amount__gte=0),
                name="order_final_amount_non_negative",
            ),
        ]

    def __str__(self):
        return f"Order {self.order_number} ({self.get_status_display()})"

    @property
    def is_terminal(self):
        return self.status in self.TERMINAL_STATUSES

    @property
    def total_items(self):
        return sum(item.quantity for item in self.items.all())

    @property
    def wait_time_minutes(self):
        """Minutes since the order was placed, up to completion or cancellation."""
        if not self.created_at:
            return 0
        end = self.completed_at or self.cancelled_at or timezone.now()
        return max(0, math.floor((end - self.created_at).total_seconds() / 60))

    def is_overdue_at(self, now=None):
        if self.is_terminal or not self.created_at:
            return False
        now = now or timezone.now()
        wait = self.estimated_wait_time or settings.FULFILLMENT["DEFAULT_WAIT_MINUTES"]
        return now > self.created_at + timedelta(minutes=wait)

    @property
    def is_overdue(self):
        return self.is_overdue_at()

    @property
    def stage_index(self):
        return self.STAGE_SEQUENCE.index(self.production_stage)

    @property
    def next_stage(self):
        index = self.stage_index
        if index + 1 < len(self.STAGE_SEQUENCE):
            return self.STAGE_SEQUENCE[index + 1]
        return None

    @property
    def progress_percentage(self):
        """0 before production starts, then 20 per working stage."""
        working_stages = len(self.STAGE_SEQUENCE) - 1
        index = self.stage_index
        if index == 0:
            return 0
        return round(index / working_stages * 100)


class OrderItem(models.Model):
    """
    A product line of an order with the name and price at order time.
    Immutable once the order is created.
    """

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.PROTECT, related_name="order_items")
    product_name = models.CharField(max_length=200)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveIntegerField(default=1)
    subtotal = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        ordering = ["id"]
        verbose_name = _("Order Item")
        verbose_name_plural = _("Order Items")

    def __str__(self):
        return f"{self.quantity} x {self.product_name} @ {self.unit_price}"

    def save(self, *args, **kwargs):
        self.subtotal = self.unit_price * self.quantity
        super().save(*args, **kwargs)
