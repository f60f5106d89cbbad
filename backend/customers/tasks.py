import logging

from celery import shared_task
from django.db import transaction
from django.utils import timezone

from .services import MembershipService

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def apply_order_loyalty(self, order_id):
    """
    Loyalty side-effects of a completed order.

    Redeems the points used on the order, adds the paid amount to the
    member's lifetime spend, awards the earned points and re-evaluates the
    tier. Runs after the completion has committed; the order stays completed
    whatever happens here.

    Idempotent: ``Order.loyalty_applied_at`` is stamped in the same
    transaction, and a stamped order is skipped.

    Args:
        order_id: UUID of the completed order

    Returns:
        dict: Status and details of the loyalty processing
    """
    from orders.models import Order

    try:
        with transaction.atomic():
            order = Order.objects.select_for_update().get(pk=order_id)

            if order.loyalty_applied_at is not None:
                logger.info(f"Loyalty already applied for order {order.order_number}")
                return {"status": "skipped", "reason": "already_applied", "order_number": order.order_number}

            if order.status != Order.Status.COMPLETED:
                logger.warning(
                    f"Loyalty requested for order {order.order_number} in status {order.status}"
                )
                return {"status": "skipped", "reason": "not_completed", "order_number": order.order_number}

            if order.customer_id is None:
                return {"status": "skipped", "reason": "no_customer", "order_number": order.order_number}

            reference = order.order_number
            if order.points_used:
                MembershipService.apply_points_delta(
                    order.customer_id, -order.points_used, f"Redeemed on order {reference}", reference
                )
            MembershipService.add_spend(order.customer_id, order.final_amount)
            if order.points_earned:
                MembershipService.apply_points_delta(
                    order.customer_id, order.points_earned, f"Earned on order {reference}", reference
                )
            tier = MembershipService.reevaluate_tier(order.customer_id)

            order.loyalty_applied_at = timezone.now()
            order.save(update_fields=["loyalty_applied_at", "updated_at"])

        logger.info(f"Loyalty applied for order {order.order_number}")
        return {
            "status": "completed",
            "order_id": str(order_id),
            "order_number": order.order_number,
            "points_used": order.points_used,
            "points_earned": order.points_earned,
            "tier": tier,
        }

    except Order.DoesNotExist:
        logger.error(f"Order {order_id} not found for loyalty processing")
        return {"status": "failed", "error": "Order not found", "order_id": str(order_id)}
    except Exception as exc:
        logger.error(f"Error applying loyalty for order {order_id}: {exc}", exc_info=True)
        return {"status": "failed", "error": str(exc), "order_id": str(order_id)}
