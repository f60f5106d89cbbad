"""
Order pricing and loyalty calculator.

Pure functions over plain values: no database access, no clock (except for
``generate_order_number``), no settings lookups once a ``LoyaltyConfig`` has
been built. The same inputs always produce the same ``CalculationResult``.

Usage:
    from orders.calculators import LineItem, MemberInfo, PricingCalculator

    calculator = PricingCalculator()  # LoyaltyConfig.from_settings()
    result = calculator.calculate(
        [LineItem(product_id=1, quantity=2, unit_price=Decimal("18.50"))],
        MemberInfo(tier="gold", available_points=2000),
    )
"""

import secrets
import string
import time
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from django.conf import settings

from core_backend.utils.money import ZERO, floor_int, quantize_money, to_decimal

ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def _frozen(mapping) -> Mapping:
    return MappingProxyType({key: to_decimal(value) for key, value in dict(mapping).items()})


@dataclass(frozen=True)
class LoyaltyConfig:
    """
    Immutable rate tables for discounts, points and tiers.

    ``discount_rates`` maps tier -> fraction of the subtotal;
    ``tier_thresholds`` maps tier -> minimum lifetime spend.
    """

    discount_rates: Mapping = field(
        default_factory=lambda: _frozen(
            {"bronze": "0", "silver": "0.05", "gold": "0.08", "platinum": "0.10"}
        )
    )
    tier_thresholds: Mapping = field(
        default_factory=lambda: _frozen(
            {"bronze": "0", "silver": "1000", "gold": "5000", "platinum": "10000"}
        )
    )
    points_per_currency_unit: int = 100

    @classmethod
    def from_settings(cls) -> "LoyaltyConfig":
        conf = settings.FULFILLMENT
        return cls(
            discount_rates=_frozen(conf["DISCOUNT_RATES"]),
            tier_thresholds=_frozen(conf["TIER_THRESHOLDS"]),
            points_per_currency_unit=int(conf["POINTS_PER_CURRENCY_UNIT"]),
        )

    def discount_rate(self, tier: Optional[str]) -> Decimal:
        """Unknown, missing and non-member tiers get no discount."""
        if not tier:
            return ZERO
        return self.discount_rates.get(str(tier).lower(), ZERO)

    def tier_for_spend(self, total_spent) -> str:
        """Highest tier whose threshold the lifetime spend has reached."""
        total_spent = to_decimal(total_spent)
        reached = [
            (threshold, tier)
            for tier, threshold in self.tier_thresholds.items()
            if total_spent >= threshold
        ]
        if not reached:
            return min(self.tier_thresholds.items(), key=lambda item: item[1])[0]
        return max(reached)[1]


@dataclass(frozen=True)
class LineItem:
    """A validated order line: what is bought, how many, at what unit price."""

    product_id: int
    quantity: int
    unit_price: Decimal
    product_name: str = ""

    @property
    def subtotal(self) -> Decimal:
        return to_decimal(self.unit_price) * self.quantity


@dataclass(frozen=True)
class MemberInfo:
    tier: Optional[str] = None
    available_points: int = 0


@dataclass(frozen=True)
class CalculationResult:
    subtotal: Decimal
    total_amount: Decimal
    member_discount: Decimal
    points_discount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    points_earned: int
    points_used: int


class PricingCalculator:

    def __init__(self, config: LoyaltyConfig = None):
        self.config = config or LoyaltyConfig.from_settings()

    def subtotal(self, items: Iterable[LineItem]) -> Decimal:
        return quantize_money(sum((item.subtotal for item in items), ZERO))

    def member_discount(self, subtotal, tier: Optional[str]) -> Decimal:
        return quantize_money(to_decimal(subtotal) * self.config.discount_rate(tier))

    def points_discount(self, available_points, remaining) -> Tuple[int, Decimal]:
        """
        Redeem as many points as the remaining amount allows.

        Returns ``(points_used, discount)``; the discount never exceeds
        ``remaining``.
        """
        rate = self.config.points_per_currency_unit
        remaining = to_decimal(remaining)
        available = max(0, int(available_points or 0))
        if remaining <= 0 or available == 0:
            return 0, ZERO
        used = min(available, floor_int(remaining * rate))
        return used, quantize_money(Decimal(used) / rate)

    def calculate(self, items, member_info: Optional[MemberInfo] = None) -> CalculationResult:
        items = list(items)
        subtotal = self.subtotal(items)

        tier = member_info.tier if member_info else None
        available_points = member_info.available_points if member_info else 0

        member_discount = self.member_discount(subtotal, tier)
        points_used, points_discount = self.points_discount(
            available_points, subtotal - member_discount
        )
        discount_amount = member_discount + points_discount
        final_amount = quantize_money(max(ZERO, subtotal - discount_amount))

        return CalculationResult(
            subtotal=subtotal,
            total_amount=subtotal,
            member_discount=member_discount,
            points_discount=points_discount,
            discount_amount=discount_amount,
            final_amount=final_amount,
            points_earned=floor_int(subtotal),
            points_used=points_used,
        )


def generate_order_number() -> str:
    """
    ``ORD-<epoch milliseconds>-<5 random uppercase alphanumerics>``.

    Uniqueness is best-effort; the database unique constraint is the backstop.
    """
    suffix = "".join(secrets.choice(ORDER_NUMBER_ALPHABET) for _ in range(5))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"
