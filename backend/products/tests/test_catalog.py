import pytest
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError

from core_backend.exceptions import InactiveItemError, NotFoundError
from products.models import Product, Recipe
from products.services import ProductService


@pytest.mark.django_db
class TestProductService:

    def test_get_product(self, pearl_milk_tea):
        assert ProductService.get_product(pearl_milk_tea.pk) == pearl_milk_tea

    @pytest.mark.parametrize("product_id", [424242, "not-a-number", None])
    def test_unknown_product(self, db, product_id):
        with pytest.raises(NotFoundError):
            ProductService.get_product(product_id)

    def test_archived_product_is_inactive(self, pearl_milk_tea):
        pearl_milk_tea.archive()

        with pytest.raises(InactiveItemError) as exc_info:
            ProductService.get_product(pearl_milk_tea.pk)
        assert "Pearl Milk Tea" in exc_info.value.message

    def test_get_products_skips_archived(self, pearl_milk_tea, lemon_tea):
        lemon_tea.archive()

        products = ProductService.get_products([pearl_milk_tea.pk, lemon_tea.pk, pearl_milk_tea.pk])

        assert list(products) == [pearl_milk_tea.pk]

    def test_recipe_follows_sort_order(self, pearl_milk_tea, ingredients):
        recipe = ProductService.get_recipe(pearl_milk_tea.pk)

        assert [line.ingredient.name for line in recipe] == [
            "Black Tea Leaves",
            "Fresh Milk",
            "Tapioca Pearls",
            "Paper Cups",
        ]

    def test_delete_archives_instead(self, bottled_water):
        bottled_water.delete()

        assert not Product.objects.filter(pk=bottled_water.pk).exists()
        assert Product.all_objects.get(pk=bottled_water.pk).is_archived


@pytest.mark.django_db
class TestRecipeModel:

    def test_adjusted_quantity(self, lemon_tea, ingredients):
        line = Recipe.objects.get(product=lemon_tea, ingredient=ingredients["black_tea"])
        assert line.adjusted_quantity == Decimal("0.01")

    def test_ingredient_listed_once_per_product(self, pearl_milk_tea, ingredients):
        with pytest.raises(IntegrityError):
            Recipe.objects.create(
                product=pearl_milk_tea, ingredient=ingredients["milk"], quantity=Decimal("0.1"), unit="L"
            )

    def test_clean_rejects_non_positive_quantity(self, bottled_water, cups):
        line = Recipe(product=bottled_water, ingredient=cups, quantity=Decimal("0"), unit="pcs")

        with pytest.raises(ValidationError) as exc_info:
            line.clean()
        assert "quantity" in exc_info.value.message_dict
