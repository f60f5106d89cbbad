"""
Shared test fixtures for all backend tests.

A small tea shop: a handful of ingredients, drinks with recipes, staff
users and loyalty members.

Stock levels (unit, current / min / max):
    pearls      kg    5.000 / 1.000 / 10.000
    milk        L    20.000 / 5.000 / 40.000
    black_tea   kg    3.000 / 0.500 /  5.000
    cups        pcs 200     / 50    / 500
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from customers.models import Customer
from inventory.models import InventoryItem
from products.models import Product, Recipe

User = get_user_model()


# ============================================================================
# USER FIXTURES
# ============================================================================

@pytest.fixture
def staff_user(db):
    """Barista taking and making orders"""
    return User.objects.create_user(
        username="barista",
        email="barista@teashop.test",
        password="password123",
        is_staff=True,
    )


@pytest.fixture
def other_staff_user(db):
    return User.objects.create_user(
        username="barista2",
        email="barista2@teashop.test",
        password="password123",
        is_staff=True,
    )


# ============================================================================
# INVENTORY FIXTURES
# ============================================================================

@pytest.fixture
def pearls(db):
    return InventoryItem.objects.create(
        name="Tapioca Pearls",
        category=InventoryItem.Category.TOPPING,
        unit="kg",
        current_stock=Decimal("5.000"),
        min_stock=Decimal("1.000"),
        max_stock=Decimal("10.000"),
        unit_cost=Decimal("8.00"),
        supplier="Pearl Co",
    )


@pytest.fixture
def milk(db):
    return InventoryItem.objects.create(
        name="Fresh Milk",
        category=InventoryItem.Category.MILK,
        unit="L",
        current_stock=Decimal("20.000"),
        min_stock=Decimal("5.000"),
        max_stock=Decimal("40.000"),
        unit_cost=Decimal("3.50"),
        expiry_date=timezone.now().date() + timedelta(days=30),
    )


@pytest.fixture
def black_tea(db):
    return InventoryItem.objects.create(
        name="Black Tea Leaves",
        category=InventoryItem.Category.TEA,
        unit="kg",
        current_stock=Decimal("3.000"),
        min_stock=Decimal("0.500"),
        max_stock=Decimal("5.000"),
        unit_cost=Decimal("40.00"),
    )


@pytest.fixture
def cups(db):
    return InventoryItem.objects.create(
        name="Paper Cups",
        category=InventoryItem.Category.PACKAGING,
        unit="pcs",
        current_stock=Decimal("200"),
        min_stock=Decimal("50"),
        max_stock=Decimal("500"),
        unit_cost=Decimal("0.10"),
    )


@pytest.fixture
def ingredients(pearls, milk, black_tea, cups):
    return {"pearls": pearls, "milk": milk, "black_tea": black_tea, "cups": cups}


# ============================================================================
# PRODUCT FIXTURES
# ============================================================================

def _recipe(product, ingredient, quantity, unit, sort_order, usage_percentage=Decimal("100")):
    return Recipe.objects.create(
        product=product,
        ingredient=ingredient,
        quantity=Decimal(quantity),
        unit=unit,
        usage_percentage=usage_percentage,
        sort_order=sort_order,
    )


@pytest.fixture
def pearl_milk_tea(ingredients):
    """18.50 each: 10g tea, 200ml milk, 500g pearls, 1 cup"""
    product = Product.objects.create(name="Pearl Milk Tea", price=Decimal("18.50"))
    _recipe(product, ingredients["black_tea"], "0.010", "kg", 1)
    _recipe(product, ingredients["milk"], "0.200", "L", 2)
    _recipe(product, ingredients["pearls"], "0.500", "kg", 3)
    _recipe(product, ingredients["cups"], "1", "pcs", 4)
    return product


@pytest.fixture
def brown_sugar_latte(ingredients):
    """15.00 each: 250ml milk, 500g pearls, 1 cup"""
    product = Product.objects.create(name="Brown Sugar Latte", price=Decimal("15.00"))
    _recipe(product, ingredients["milk"], "0.250", "L", 1)
    _recipe(product, ingredients["pearls"], "0.500", "kg", 2)
    _recipe(product, ingredients["cups"], "1", "pcs", 3)
    return product


@pytest.fixture
def lemon_tea(ingredients):
    """12.00 each: half of a 20g tea portion, 1 cup"""
    product = Product.objects.create(name="Lemon Tea", price=Decimal("12.00"))
    _recipe(product, ingredients["black_tea"], "0.020", "kg", 1, usage_percentage=Decimal("50"))
    _recipe(product, ingredients["cups"], "1", "pcs", 2)
    return product


@pytest.fixture
def bottled_water(db):
    """No recipe: selling it never touches inventory"""
    return Product.objects.create(name="Bottled Water", price=Decimal("5.00"))


# ============================================================================
# CUSTOMER FIXTURES
# ============================================================================

@pytest.fixture
def gold_member(db):
    return Customer.objects.create(
        name="Mei Lin",
        phone="0912000111",
        tier=Customer.Tier.GOLD,
        points=2000,
        total_spent=Decimal("5200.00"),
    )


@pytest.fixture
def bronze_member(db):
    return Customer.objects.create(
        name="Alex Chen",
        phone="0912000222",
        tier=Customer.Tier.BRONZE,
        points=0,
        total_spent=Decimal("950.00"),
    )


# ============================================================================
# ORDER FIXTURES
# ============================================================================

@pytest.fixture
def pending_order(staff_user, pearl_milk_tea, brown_sugar_latte):
    """Scenario A basket: 2 pearl milk teas and 1 brown sugar latte, walk-in."""
    from orders.services import OrderService

    return OrderService.create_order(
        staff_user,
        [
            {"product_id": pearl_milk_tea.pk, "quantity": 2},
            {"product_id": brown_sugar_latte.pk, "quantity": 1},
        ],
    )


@pytest.fixture
def member_order(staff_user, gold_member, pearl_milk_tea):
    from orders.services import OrderService

    return OrderService.create_order(
        staff_user,
        [{"product_id": pearl_milk_tea.pk, "quantity": 2}],
        customer=gold_member,
    )
