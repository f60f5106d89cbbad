import logging
from typing import Optional

from django.db import transaction

from core_backend.exceptions import InactiveItemError, InvalidOrderError, NotFoundError
from core_backend.utils.money import quantize_money, to_decimal
from orders.calculators import LoyaltyConfig, MemberInfo
from .exceptions import InsufficientPointsError
from .models import Customer, PointsTransaction

logger = logging.getLogger(__name__)


class MembershipService:
    """
    Points balance, lifetime spend and tier of members.

    Every write locks the customer row, so concurrent completions of two
    orders of the same member cannot lose an update.
    """

    @staticmethod
    def _customer_id(customer):
        return getattr(customer, "pk", customer)

    @classmethod
    def _get(cls, customer, lock=False) -> Customer:
        customer_id = cls._customer_id(customer)
        queryset = Customer.all_objects.all()
        if lock:
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=customer_id)
        except (Customer.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Customer", customer_id)

    @classmethod
    def get_customer(cls, customer) -> Customer:
        """Active customer or NotFoundError / InactiveItemError."""
        instance = cls._get(customer)
        if not instance.is_active:
            raise InactiveItemError("Customer", instance.pk, name=instance.name)
        return instance

    @classmethod
    def get_member_tier_and_points(cls, customer) -> Optional[MemberInfo]:
        """
        Tier and redeemable points of a member, or None for walk-in orders.
        """
        if customer is None:
            return None
        instance = cls.get_customer(customer)
        return MemberInfo(tier=instance.tier, available_points=instance.points)

    @classmethod
    def apply_points_delta(cls, customer, delta, reason, reference_id="") -> Customer:
        """
        Add (positive ``delta``) or redeem (negative ``delta``) points.

        Raises InsufficientPointsError when a redemption exceeds the balance.
        """
        delta = int(delta)
        if delta == 0:
            return cls._get(customer)

        with transaction.atomic():
            instance = cls._get(customer, lock=True)
            new_balance = instance.points + delta
            if new_balance < 0:
                raise InsufficientPointsError(instance.pk, -delta, instance.points)

            instance.points = new_balance
            update_fields = ["points", "updated_at"]
            if delta < 0:
                instance.points_used += -delta
                update_fields.append("points_used")
            instance.save(update_fields=update_fields)

            PointsTransaction.objects.create(
                customer=instance,
                delta=delta,
                balance_after=new_balance,
                reason=reason[:255],
                reference_id=reference_id or "",
            )

        logger.info(f"Customer {instance.pk} points {delta:+d} ({reason}), balance {new_balance}")
        return instance

    @classmethod
    def add_spend(cls, customer, amount) -> Customer:
        amount = quantize_money(to_decimal(amount))
        if amount < 0:
            raise InvalidOrderError(f"Spend amount cannot be negative: {amount}")

        with transaction.atomic():
            instance = cls._get(customer, lock=True)
            instance.total_spent = instance.total_spent + amount
            instance.save(update_fields=["total_spent", "updated_at"])

        logger.info(f"Customer {instance.pk} spend +{amount}, lifetime {instance.total_spent}")
        return instance

    @classmethod
    def reevaluate_tier(cls, customer, config: LoyaltyConfig = None) -> str:
        """
        Sets the tier matching the member's lifetime spend and returns it.
        """
        config = config or LoyaltyConfig.from_settings()
        with transaction.atomic():
            instance = cls._get(customer, lock=True)
            tier = config.tier_for_spend(instance.total_spent)
            if tier != instance.tier:
                logger.info(f"Customer {instance.pk} tier {instance.tier} -> {tier}")
                instance.tier = tier
                instance.save(update_fields=["tier", "updated_at"])
        return tier
