"""
Pricing calculator tests. Pure computation: no database needed.
"""
import re
from decimal import Decimal

import pytest

from orders.calculators import (
    LineItem,
    LoyaltyConfig,
    MemberInfo,
    PricingCalculator,
    generate_order_number,
)


@pytest.fixture
def calculator():
    return PricingCalculator(LoyaltyConfig())


class TestPricing:

    def test_walk_in_order(self, calculator):
        """18.50 x 2 + 15.00 x 1, no member"""
        result = calculator.calculate(
            [
                LineItem(product_id=1, quantity=2, unit_price=Decimal("18.50")),
                LineItem(product_id=2, quantity=1, unit_price=Decimal("15.00")),
            ]
        )

        assert result.subtotal == Decimal("52.00")
        assert result.total_amount == Decimal("52.00")
        assert result.discount_amount == Decimal("0.00")
        assert result.final_amount == Decimal("52.00")
        assert result.points_earned == 52
        assert result.points_used == 0

    def test_gold_member_with_points(self, calculator):
        """100.00 subtotal, gold 8%, 2000 points worth 20.00"""
        result = calculator.calculate(
            [LineItem(product_id=1, quantity=4, unit_price=Decimal("25.00"))],
            MemberInfo(tier="gold", available_points=2000),
        )

        assert result.member_discount == Decimal("8.00")
        assert result.points_discount == Decimal("20.00")
        assert result.discount_amount == Decimal("28.00")
        assert result.final_amount == Decimal("72.00")
        assert result.points_used == 2000
        assert result.points_earned == 100

    def test_points_capped_at_remaining_amount(self, calculator):
        result = calculator.calculate(
            [LineItem(product_id=1, quantity=1, unit_price=Decimal("10.00"))],
            MemberInfo(tier="silver", available_points=5000),
        )

        # 10.00 - 0.50 member discount leaves 9.50 = 950 points
        assert result.points_used == 950
        assert result.final_amount == Decimal("0.00")

    def test_points_used_never_exceed_available(self, calculator):
        used, discount = calculator.points_discount(120, Decimal("50.00"))
        assert (used, discount) == (120, Decimal("1.20"))

    def test_fractional_points_are_floored(self, calculator):
        used, discount = calculator.points_discount(10000, Decimal("0.015"))
        assert (used, discount) == (1, Decimal("0.01"))

    @pytest.mark.parametrize("tier", [None, "", "diamond", "BRONZE"])
    def test_unknown_or_missing_tier_gets_no_discount(self, calculator, tier):
        assert calculator.member_discount(Decimal("80.00"), tier) == Decimal("0.00")

    def test_member_discount_rounds_half_up(self, calculator):
        # 12.50 * 0.05 = 0.625
        assert calculator.member_discount(Decimal("12.50"), "silver") == Decimal("0.63")

    def test_points_earned_floor_of_subtotal(self, calculator):
        result = calculator.calculate([LineItem(product_id=1, quantity=3, unit_price=Decimal("3.33"))])
        assert result.subtotal == Decimal("9.99")
        assert result.points_earned == 9

    def test_same_input_same_result(self, calculator):
        items = [LineItem(product_id=1, quantity=3, unit_price=Decimal("17.90"))]
        member = MemberInfo(tier="platinum", available_points=777)

        assert calculator.calculate(items, member) == calculator.calculate(items, member)

    def test_custom_rate_table(self):
        config = LoyaltyConfig(discount_rates={"vip": Decimal("0.5")}, points_per_currency_unit=10)
        calculator = PricingCalculator(config)

        result = calculator.calculate(
            [LineItem(product_id=1, quantity=1, unit_price=Decimal("20.00"))],
            MemberInfo(tier="vip", available_points=50),
        )

        assert result.member_discount == Decimal("10.00")
        assert result.points_discount == Decimal("5.00")
        assert result.final_amount == Decimal("5.00")


class TestLoyaltyConfig:

    def test_settings_tables_are_read_only(self, settings):
        config = LoyaltyConfig.from_settings()

        with pytest.raises(TypeError):
            config.discount_rates["gold"] = Decimal("1")
        assert config.discount_rate("gold") == Decimal("0.08")

    @pytest.mark.parametrize(
        "spend, tier",
        [
            ("0", "bronze"),
            ("999.99", "bronze"),
            ("1000", "silver"),
            ("4999.99", "silver"),
            ("5000", "gold"),
            ("10000", "platinum"),
        ],
    )
    def test_tier_for_spend(self, spend, tier):
        assert LoyaltyConfig().tier_for_spend(Decimal(spend)) == tier


class TestOrderNumber:

    def test_format(self):
        assert re.fullmatch(r"ORD-\d{13}-[A-Z0-9]{5}", generate_order_number())

    def test_numbers_differ(self):
        assert len({generate_order_number() for _ in range(50)}) == 50
