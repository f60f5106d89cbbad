import pytest
from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from inventory.models import InventoryItem
from inventory.services import RecipeService
from orders.calculators import LineItem


@pytest.mark.django_db
class TestRequiredIngredients:

    def test_scales_recipe_by_quantity_in_sort_order(self, pearl_milk_tea, ingredients):
        required = RecipeService.required_ingredients(pearl_milk_tea.pk, 3)

        assert [r.ingredient_id for r in required] == [
            ingredients["black_tea"].pk,
            ingredients["milk"].pk,
            ingredients["pearls"].pk,
            ingredients["cups"].pk,
        ]
        assert required[2].required_amount == Decimal("1.5")
        assert required[2].unit == "kg"

    def test_usage_percentage_scales_the_amount(self, lemon_tea, ingredients):
        required = RecipeService.required_ingredients(lemon_tea.pk, 2)

        tea = next(r for r in required if r.ingredient_id == ingredients["black_tea"].pk)
        assert tea.required_amount == Decimal("0.02")

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity_requires_nothing(self, pearl_milk_tea, quantity):
        assert RecipeService.required_ingredients(pearl_milk_tea.pk, quantity) == []

    def test_product_without_recipe_requires_nothing(self, bottled_water):
        assert RecipeService.required_ingredients(bottled_water.pk, 5) == []

    def test_aggregate_sums_shared_ingredients(self, pearl_milk_tea, brown_sugar_latte, ingredients):
        totals = RecipeService.aggregate_requirements(
            [
                LineItem(pearl_milk_tea.pk, 1, pearl_milk_tea.price),
                LineItem(brown_sugar_latte.pk, 2, brown_sugar_latte.price),
            ]
        )

        assert totals[ingredients["pearls"].pk] == Decimal("1.5")
        assert totals[ingredients["milk"].pk] == Decimal("0.7")
        assert totals[ingredients["cups"].pk] == Decimal("3")

    def test_recipe_counts(self, pearl_milk_tea, lemon_tea, bottled_water):
        counts = RecipeService.recipe_counts([pearl_milk_tea.pk, lemon_tea.pk, bottled_water.pk])

        assert counts == {pearl_milk_tea.pk: 4, lemon_tea.pk: 2, bottled_water.pk: 0}


@pytest.mark.django_db
class TestAvailability:

    def test_available_when_stock_suffices(self, pearl_milk_tea):
        report = RecipeService.check_availability(pearl_milk_tea.pk, 10)

        assert report.available
        assert report.shortages == []

    def test_insufficient_stock_is_reported(self, pearl_milk_tea, ingredients):
        report = RecipeService.check_availability(pearl_milk_tea.pk, 11)

        assert not report.available
        assert report.shortages[0]["ingredient_id"] == ingredients["pearls"].pk
        assert report.shortages[0]["reason"] == "insufficient"

    def test_expired_ingredient_blocks_availability(self, pearl_milk_tea, ingredients):
        milk = ingredients["milk"]
        milk.expiry_date = timezone.now().date() - timedelta(days=1)
        milk.save()

        report = RecipeService.check_availability(pearl_milk_tea.pk, 1)

        assert not report.available
        assert report.shortages[0]["reason"] == "expired"

    def test_readiness_ignores_quantities_already_committed(self, pearl_milk_tea, ingredients):
        InventoryItem.objects.filter(pk=ingredients["pearls"].pk).update(current_stock=Decimal("0"))

        report = RecipeService.check_order_readiness([LineItem(pearl_milk_tea.pk, 4, pearl_milk_tea.price)])

        assert report.available

    def test_readiness_flags_archived_ingredient(self, pearl_milk_tea, ingredients):
        ingredients["pearls"].archive()

        report = RecipeService.check_order_readiness([LineItem(pearl_milk_tea.pk, 1, pearl_milk_tea.price)])

        assert not report.available
        assert report.shortages[0]["reason"] == "inactive"
