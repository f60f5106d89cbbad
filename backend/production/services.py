"""
Production scheduler: moves created orders through the preparation stages.

Stages are linear (not_started -> preparing -> mixing -> finishing ->
quality_check -> ready_for_pickup) and can only advance one step at a time.
Every mutation locks the order row through OrderService.lock_order, so two
baristas pressing "next" on the same order cannot both succeed, while
different orders progress in parallel.
"""
import logging
import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import List

from django.db import transaction
from django.utils import timezone

from core_backend.events import publish_event
from core_backend.exceptions import (
    FulfillmentError,
    InsufficientStockError,
    InvalidOrderError,
    InvalidTransitionError,
)
from inventory.services import RecipeService
from orders import signals as order_signals
from orders.models import Order
from orders.services import OrderService
from . import signals

logger = logging.getLogger(__name__)

Stage = Order.ProductionStage

# Minutes each stage is expected to take.
STAGE_ESTIMATES = {
    Stage.PREPARING: 2,
    Stage.MIXING: 5,
    Stage.FINISHING: 2,
    Stage.QUALITY_CHECK: 1,
    Stage.READY_FOR_PICKUP: 0,
}

PRIORITY_RANK = {
    Order.Priority.RUSH: 0,
    Order.Priority.URGENT: 1,
    Order.Priority.NORMAL: 2,
}

ACTIVE_STATUSES = (Order.Status.PENDING, Order.Status.MAKING, Order.Status.READY)


@dataclass
class OrderQueue:
    pending: List[Order] = field(default_factory=list)
    making: List[Order] = field(default_factory=list)
    ready: List[Order] = field(default_factory=list)
    overdue: List[Order] = field(default_factory=list)


@dataclass
class BatchStartResult:
    started: List[Order] = field(default_factory=list)
    failures: List[dict] = field(default_factory=list)


@dataclass(frozen=True)
class ProductionProgress:
    order_id: str
    current_stage: str
    percentage: int
    estimated_time_remaining: int
    time_spent: int
    can_advance: bool
    blockers: List[str] = field(default_factory=list)


def queue_sort_key(order: Order):
    """rush before urgent before normal, then oldest first."""
    return (PRIORITY_RANK.get(order.priority, len(PRIORITY_RANK)), order.created_at)


class ProductionService:

    @staticmethod
    def _append_note(order: Order, line: str):
        order.notes = f"{order.notes}\n{line}" if order.notes else line

    @staticmethod
    def _publish_stage(order: Order, previous_stage, staff=None):
        publish_event(
            signals.production_stage_advanced,
            sender=Order,
            order_id=order.pk,
            order_number=order.order_number,
            previous_stage=previous_stage,
            new_stage=order.production_stage,
            status=order.status,
            staff_id=getattr(staff, "pk", None),
        )

    @staticmethod
    def _publish_status(order: Order, previous_status):
        publish_event(
            order_signals.order_status_changed,
            sender=Order,
            order_id=order.pk,
            order_number=order.order_number,
            previous_status=previous_status,
            new_status=order.status,
            production_stage=order.production_stage,
        )

    @staticmethod
    def estimate_wait_minutes(order_items) -> int:
        """``max(5, 3 * total items + sum of recipe sizes of the lines)``."""
        order_items = list(order_items)
        counts = RecipeService.recipe_counts(item.product_id for item in order_items)
        total_items = sum(item.quantity for item in order_items)
        complexity = sum(counts.get(item.product_id, 0) for item in order_items)
        return max(5, 3 * total_items + complexity)

    # ------------------------------------------------------------------
    # Stage transitions
    # ------------------------------------------------------------------

    @classmethod
    def start_production(cls, order_id, staff) -> Order:
        with transaction.atomic():
            order = OrderService.lock_order(order_id)
            if order.status != Order.Status.PENDING or order.production_stage != Stage.NOT_STARTED:
                logger.warning(
                    f"Cannot start production of order {order.order_number}: "
                    f"status {order.status}, stage {order.production_stage}"
                )
                raise InvalidTransitionError(
                    order.production_stage,
                    Stage.PREPARING.value,
                    message=(
                        f"Order {order.order_number} has already started production or is not pending "
                        f"(status '{order.status}', stage '{order.production_stage}')"
                    ),
                )

            order_items = list(order.items.all())
            readiness = RecipeService.check_order_readiness(order_items)
            if not readiness.available:
                raise InsufficientStockError(readiness.shortages)

            order.status = Order.Status.MAKING
            order.production_stage = Stage.PREPARING
            order.making_started_at = timezone.now()
            order.assigned_to = staff
            order.estimated_wait_time = cls.estimate_wait_minutes(order_items)
            order.save(
                update_fields=[
                    "status",
                    "production_stage",
                    "making_started_at",
                    "assigned_to",
                    "estimated_wait_time",
                    "updated_at",
                ]
            )
            cls._publish_status(order, Order.Status.PENDING.value)
            cls._publish_stage(order, Stage.NOT_STARTED.value, staff)

        logger.info(
            f"Production started for order {order.order_number} by {staff}, "
            f"estimated {order.estimated_wait_time} min"
        )
        return order

    @classmethod
    def advance_stage(cls, order_id, target_stage, notes=None, staff=None) -> Order:
        """Moves a making order to exactly the next stage."""
        if target_stage not in Stage.values:
            raise InvalidOrderError(f"'{target_stage}' is not a production stage")
        target_stage = Stage(target_stage)

        with transaction.atomic():
            order = OrderService.lock_order(order_id)
            if order.status != Order.Status.MAKING:
                logger.warning(
                    f"Rejected stage change of order {order.order_number} to {target_stage}: "
                    f"status is {order.status}"
                )
                raise InvalidTransitionError(
                    order.production_stage,
                    target_stage.value,
                    message=(
                        f"Order {order.order_number} is '{order.status}'; "
                        f"stages can only advance while making"
                    ),
                )

            expected = order.next_stage
            if target_stage != expected:
                logger.warning(
                    f"Rejected stage change of order {order.order_number}: "
                    f"{order.production_stage} -> {target_stage}"
                )
                raise InvalidTransitionError(
                    order.production_stage,
                    target_stage.value,
                    message=(
                        f"Cannot move order {order.order_number} from '{order.production_stage}' "
                        f"to '{target_stage}'; next stage is '{expected}'"
                    ),
                )

            now = timezone.now()
            previous_stage = order.production_stage
            previous_status = order.status
            order.production_stage = target_stage
            update_fields = ["production_stage", "updated_at"]

            if target_stage == Stage.QUALITY_CHECK:
                order.making_completed_at = now
                update_fields.append("making_completed_at")
            elif target_stage == Stage.READY_FOR_PICKUP:
                order.status = Order.Status.READY
                order.ready_at = now
                update_fields += ["status", "ready_at"]
                if order.making_started_at:
                    order.actual_wait_time = math.floor(
                        (now - order.making_started_at) / timedelta(seconds=60)
                    )
                    update_fields.append("actual_wait_time")

            if notes:
                cls._append_note(order, f"[production] {target_stage}: {notes}")
                update_fields.append("notes")

            order.save(update_fields=update_fields)
            cls._publish_stage(order, previous_stage, staff)
            if order.status != previous_status:
                cls._publish_status(order, previous_status)

        logger.info(f"Order {order.order_number} stage {previous_stage} -> {target_stage}")
        return order

    @classmethod
    def complete_order(cls, order_id, quality_notes=None, rating=None, user=None) -> Order:
        """Hands a ready order to the customer and records the quality check."""
        if rating is not None:
            try:
                rating = int(rating)
            except (TypeError, ValueError):
                raise InvalidOrderError(f"Rating must be an integer between 1 and 5, got {rating!r}")
            if not 1 <= rating <= 5:
                raise InvalidOrderError(f"Rating must be between 1 and 5, got {rating}")

        with transaction.atomic():
            order = OrderService.lock_order(order_id)
            if order.status != Order.Status.READY:
                raise InvalidTransitionError(
                    order.status,
                    Order.Status.COMPLETED.value,
                    message=f"Order {order.order_number} is '{order.status}'; only ready orders can be completed",
                )

            order = OrderService.update_status(order_id, Order.Status.COMPLETED, user=user)

            update_fields = []
            if quality_notes:
                order.quality_notes = quality_notes
                update_fields.append("quality_notes")
            if rating is not None:
                order.rating = rating
                update_fields.append("rating")
            if update_fields:
                order.save(update_fields=update_fields + ["updated_at"])

        return order

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @staticmethod
    def assign_order(order_id, staff) -> Order:
        with transaction.atomic():
            order = OrderService.lock_order(order_id)
            if order.status != Order.Status.PENDING:
                raise InvalidTransitionError(
                    order.status,
                    "assign",
                    message=f"Order {order.order_number} is '{order.status}'; only pending orders can be assigned",
                )
            order.assigned_to = staff
            order.save(update_fields=["assigned_to", "updated_at"])

        logger.info(f"Order {order.order_number} assigned to {staff}")
        return order

    @staticmethod
    def set_priority(order_id, priority) -> Order:
        if priority not in Order.Priority.values:
            raise InvalidOrderError(f"'{priority}' is not a valid priority")

        with transaction.atomic():
            order = OrderService.lock_order(order_id)
            order.priority = priority
            order.save(update_fields=["priority", "updated_at"])

        logger.info(f"Order {order.order_number} priority set to {priority}")
        return order

    # ------------------------------------------------------------------
    # Queues
    # ------------------------------------------------------------------

    @staticmethod
    def _active_orders():
        return (
            Order.objects.filter(status__in=ACTIVE_STATUSES)
            .select_related("customer", "assigned_to")
            .prefetch_related("items")
        )

    @classmethod
    def get_queue(cls, now=None) -> OrderQueue:
        """
        Active orders by status. An overdue order is listed under ``overdue``
        only, whatever its status.
        """
        now = now or timezone.now()
        queue = OrderQueue()
        for order in cls._active_orders():
            if order.is_overdue_at(now):
                queue.overdue.append(order)
            elif order.status == Order.Status.PENDING:
                queue.pending.append(order)
            elif order.status == Order.Status.MAKING:
                queue.making.append(order)
            else:
                queue.ready.append(order)

        for bucket in (queue.pending, queue.making, queue.ready, queue.overdue):
            bucket.sort(key=queue_sort_key)
        return queue

    @classmethod
    def get_staff_queue(cls, staff) -> List[Order]:
        orders = cls._active_orders().filter(
            assigned_to=staff,
            status__in=(Order.Status.PENDING, Order.Status.MAKING),
        )
        return sorted(orders, key=queue_sort_key)

    @classmethod
    def batch_start(cls, order_ids, staff) -> BatchStartResult:
        """
        Starts each order independently; a failing order does not stop the
        others and is reported in ``failures``.
        """
        result = BatchStartResult()
        for order_id in order_ids:
            try:
                result.started.append(cls.start_production(order_id, staff))
            except FulfillmentError as e:
                logger.warning(f"Batch start: order {order_id} failed: {e.message}")
                result.failures.append(
                    {"order_id": str(order_id), "error": e.code, "detail": e.message}
                )

        logger.info(
            f"Batch start by {staff}: {len(result.started)} started, {len(result.failures)} failed"
        )
        return result

    # ------------------------------------------------------------------
    # Progress, estimates and statistics
    # ------------------------------------------------------------------

    @staticmethod
    def get_progress(order_id, now=None) -> ProductionProgress:
        order = OrderService.get_order(order_id)
        now = now or timezone.now()

        index = order.stage_index
        remaining = sum(STAGE_ESTIMATES[stage] for stage in Order.STAGE_SEQUENCE[index + 1:])

        time_spent = 0
        if order.making_started_at:
            end = order.ready_at or now
            time_spent = max(0, math.floor((end - order.making_started_at) / timedelta(seconds=60)))

        blockers = []
        if order.status == Order.Status.CANCELLED:
            blockers.append("Order was cancelled")
        elif order.status == Order.Status.COMPLETED:
            blockers.append("Order is already completed")
        elif order.status == Order.Status.READY:
            blockers.append("Order is waiting for pickup")

        return ProductionProgress(
            order_id=str(order.pk),
            current_stage=order.production_stage,
            percentage=order.progress_percentage,
            estimated_time_remaining=remaining,
            time_spent=time_spent,
            can_advance=not blockers and order.next_stage is not None,
            blockers=blockers,
        )

    @staticmethod
    def estimate_production_time(items) -> float:
        """
        Minutes to make ``items`` (objects or dicts with product_id/quantity):
        3 minutes per unit plus half a minute per recipe line, at least 5.
        """
        lines = [
            (
                item["product_id"] if isinstance(item, dict) else item.product_id,
                item["quantity"] if isinstance(item, dict) else item.quantity,
            )
            for item in items
        ]
        counts = RecipeService.recipe_counts(product_id for product_id, _ in lines)
        total = sum((3 + 0.5 * counts.get(product_id, 0)) * quantity for product_id, quantity in lines)
        return max(5.0, float(total))

    @staticmethod
    def get_production_stats(days=30, now=None) -> dict:
        now = now or timezone.now()
        orders = list(Order.objects.filter(created_at__gte=now - timedelta(days=days)))

        completed = [order for order in orders if order.status == Order.Status.COMPLETED]
        cancelled = [order for order in orders if order.status == Order.Status.CANCELLED]
        overdue = [order for order in orders if order.is_overdue_at(now)]
        total = len(orders)

        average_wait = (
            sum(order.actual_wait_time or 0 for order in completed) / len(completed) if completed else 0
        )
        return {
            "period_days": days,
            "total_orders": total,
            "completed_orders": len(completed),
            "cancelled_orders": len(cancelled),
            "average_wait_time": round(average_wait),
            "overdue_rate": round(len(overdue) / total * 100, 2) if total else 0,
            "completion_rate": round(len(completed) / total * 100) if total else 0,
        }
