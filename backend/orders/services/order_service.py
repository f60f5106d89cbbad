import logging
from collections.abc import Mapping

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from core_backend.events import publish_event
from core_backend.exceptions import (
    AlreadyCompletedError,
    InternalError,
    InvalidOrderError,
    InvalidTransitionError,
    NotFoundError,
)
from core_backend.utils.money import to_decimal
from customers.services import MembershipService
from customers.tasks import apply_order_loyalty
from inventory.services import InventoryService
from orders import signals
from orders.calculators import LineItem, PricingCalculator, generate_order_number
from orders.models import Order, OrderItem
from products.services import ProductService

logger = logging.getLogger(__name__)


class OrderService:
    """Core service for order lifecycle management - creating, transitioning, cancelling orders."""

    ORDER_NUMBER_ATTEMPTS = 3

    # Valid status transitions for the order state machine. Only forward
    # moves are listed; terminal statuses have none.
    VALID_STATUS_TRANSITIONS = {
        Order.Status.PENDING: [
            Order.Status.MAKING,
            Order.Status.READY,
            Order.Status.COMPLETED,
            Order.Status.CANCELLED,
        ],
        Order.Status.MAKING: [
            Order.Status.READY,
            Order.Status.COMPLETED,
            Order.Status.CANCELLED,
        ],
        Order.Status.READY: [
            Order.Status.COMPLETED,
            Order.Status.CANCELLED,
        ],
        Order.Status.COMPLETED: [],
        Order.Status.CANCELLED: [],
    }

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @staticmethod
    def get_order(order_id) -> Order:
        try:
            return (
                Order.objects.select_related("customer", "staff", "assigned_to")
                .prefetch_related("items")
                .get(pk=order_id)
            )
        except (Order.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError("Order", order_id)

    @staticmethod
    def lock_order(order_id) -> Order:
        """
        Fetch an order with its row locked for the rest of the transaction.
        Status and stage changes of one order are serialized through this lock.
        """
        try:
            return Order.objects.select_for_update().get(pk=order_id)
        except (Order.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError("Order", order_id)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def _field(item, name, default=None):
        if isinstance(item, Mapping):
            return item.get(name, default)
        return getattr(item, name, default)

    @classmethod
    def _build_line_items(cls, items):
        """Validate the requested lines and snapshot catalog names/prices."""
        line_items = []
        for index, item in enumerate(items, start=1):
            product_id = cls._field(item, "product_id")
            if product_id is None:
                product = cls._field(item, "product")
                product_id = getattr(product, "pk", product)
            if product_id is None:
                raise InvalidOrderError(f"Item {index} has no product")

            try:
                quantity = to_decimal(cls._field(item, "quantity", 0))
            except (ArithmeticError, ValueError, TypeError):
                raise InvalidOrderError(f"Item {index} has an invalid quantity")
            if not quantity.is_finite() or quantity != quantity.to_integral_value():
                raise InvalidOrderError(f"Item {index}: quantity must be a whole number")
            quantity = int(quantity)
            if quantity <= 0:
                raise InvalidOrderError(f"Item {index}: quantity must be greater than zero")

            product = ProductService.get_product(product_id)

            unit_price = cls._field(item, "unit_price")
            try:
                unit_price = product.price if unit_price is None else to_decimal(unit_price)
            except (ArithmeticError, ValueError, TypeError):
                raise InvalidOrderError(f"Item {index} has an invalid unit price")
            if unit_price <= 0:
                raise InvalidOrderError(f"Item {index}: unit price must be greater than zero")

            line_items.append(
                LineItem(
                    product_id=product.pk,
                    quantity=quantity,
                    unit_price=unit_price,
                    product_name=product.name,
                )
            )
        return line_items

    @classmethod
    def create_order(cls, staff, items, customer=None, member_info=None, notes="", calculator=None) -> Order:
        """
        Prices the items, commits their ingredients and persists the order.

        Stock deduction and the order rows are written in one transaction:
        an InsufficientStockError leaves neither stock changes nor an order.
        """
        items = list(items or [])
        if not items:
            raise InvalidOrderError("Order must contain at least one item")

        line_items = cls._build_line_items(items)

        if customer is not None:
            customer = MembershipService.get_customer(customer)
            if member_info is None:
                member_info = MembershipService.get_member_tier_and_points(customer)

        calculator = calculator or PricingCalculator()
        result = calculator.calculate(line_items, member_info)

        for attempt in range(1, cls.ORDER_NUMBER_ATTEMPTS + 1):
            order_number = generate_order_number()
            try:
                order = cls._persist_order(staff, customer, notes, line_items, result, order_number)
                break
            except IntegrityError as e:
                if attempt < cls.ORDER_NUMBER_ATTEMPTS and Order.objects.filter(order_number=order_number).exists():
                    logger.warning(f"Order number {order_number} already taken, retrying")
                    continue
                logger.error(f"Failed to persist order {order_number}: {e}")
                raise InternalError(f"Could not save order {order_number}") from e

        logger.info(
            f"Order {order.order_number} created by {staff}: {len(line_items)} line(s), "
            f"final {order.final_amount}"
        )
        return order

    @staticmethod
    def _persist_order(staff, customer, notes, line_items, result, order_number) -> Order:
        """Deduct ingredients and write the order rows in one transaction."""
        with transaction.atomic():
            InventoryService.deduct_for_order(line_items, user=staff, reference_id=order_number)

            order = Order.objects.create(
                order_number=order_number,
                customer=customer,
                staff=staff,
                total_amount=result.total_amount,
                discount_amount=result.discount_amount,
                final_amount=result.final_amount,
                points_used=result.points_used,
                points_earned=result.points_earned,
                status=Order.Status.PENDING,
                production_stage=Order.ProductionStage.NOT_STARTED,
                notes=notes or "",
            )
            OrderItem.objects.bulk_create(
                [
                    OrderItem(
                        order=order,
                        product_id=line.product_id,
                        product_name=line.product_name,
                        unit_price=line.unit_price,
                        quantity=line.quantity,
                        subtotal=line.subtotal,
                    )
                    for line in line_items
                ]
            )

            publish_event(
                signals.order_created,
                sender=Order,
                order_id=order.pk,
                order_number=order.order_number,
                staff_id=getattr(staff, "pk", None),
                customer_id=order.customer_id,
                final_amount=order.final_amount,
                item_count=sum(line.quantity for line in line_items),
            )
        return order

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @staticmethod
    def _schedule_loyalty(order: Order):
        """Queue the member's loyalty update once the completion has committed."""
        if not order.customer_id:
            return
        order_id = str(order.pk)
        order_number = order.order_number

        def dispatch():
            try:
                apply_order_loyalty.delay(order_id)
            except Exception as e:
                logger.error(f"Failed to dispatch loyalty update for order {order_number}: {e}")

        transaction.on_commit(dispatch)

    @classmethod
    def _check_transition(cls, order: Order, new_status):
        if order.status == Order.Status.COMPLETED and new_status == Order.Status.CANCELLED:
            raise AlreadyCompletedError(
                f"Order {order.order_number} is completed and cannot be cancelled"
            )
        if new_status not in cls.VALID_STATUS_TRANSITIONS.get(order.status, []):
            logger.warning(
                f"Rejected status change of order {order.order_number}: {order.status} -> {new_status}"
            )
            raise InvalidTransitionError(order.status, new_status)

    @classmethod
    def update_status(cls, order_id, new_status, user=None) -> Order:
        if new_status not in Order.Status.values:
            raise InvalidOrderError(f"'{new_status}' is not a valid order status")
        new_status = Order.Status(new_status)

        with transaction.atomic():
            order = cls.lock_order(order_id)
            cls._check_transition(order, new_status)

            previous_status = order.status
            now = timezone.now()
            update_fields = ["status", "production_stage", "updated_at"]

            if new_status == Order.Status.CANCELLED:
                InventoryService.restore_for_order(
                    list(order.items.all()), user=user, reference_id=order.order_number
                )
                order.cancelled_at = now
                update_fields.append("cancelled_at")

            elif new_status == Order.Status.MAKING:
                if order.production_stage not in Order.STATUS_STAGES[Order.Status.MAKING]:
                    order.production_stage = Order.ProductionStage.PREPARING
                if order.making_started_at is None:
                    order.making_started_at = now
                    update_fields.append("making_started_at")

            elif new_status == Order.Status.READY:
                order.production_stage = Order.ProductionStage.READY_FOR_PICKUP
                order.ready_at = now
                update_fields.append("ready_at")
                if order.making_completed_at is None and order.making_started_at is not None:
                    order.making_completed_at = now
                    update_fields.append("making_completed_at")
                if order.making_started_at is not None:
                    order.actual_wait_time = int((now - order.making_started_at).total_seconds() // 60)
                    update_fields.append("actual_wait_time")

            elif new_status == Order.Status.COMPLETED:
                order.production_stage = Order.ProductionStage.READY_FOR_PICKUP
                order.completed_at = now
                update_fields.append("completed_at")
                cls._schedule_loyalty(order)

            order.status = new_status
            order.save(update_fields=update_fields)

            publish_event(
                signals.order_status_changed,
                sender=Order,
                order_id=order.pk,
                order_number=order.order_number,
                previous_status=previous_status,
                new_status=new_status.value,
                production_stage=order.production_stage,
            )

        logger.info(f"Order {order.order_number} status {previous_status} -> {new_status}")
        return order

    @classmethod
    def cancel_order(cls, order_id, reason="", user=None) -> Order:
        """Cancels the order (returning its ingredients) and records the reason."""
        with transaction.atomic():
            order = cls.update_status(order_id, Order.Status.CANCELLED, user=user)
            if reason:
                line = f"Cancel reason: {reason}"
                order.notes = f"{order.notes}\n{line}" if order.notes else line
                order.save(update_fields=["notes", "updated_at"])
        return order
