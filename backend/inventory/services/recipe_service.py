import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List

from core_backend.utils.money import to_decimal
from inventory.models import InventoryItem
from products.services import ProductService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequiredIngredient:
    ingredient_id: int
    name: str
    required_amount: Decimal
    unit: str
    is_required: bool = True


@dataclass
class AvailabilityReport:
    available: bool
    shortages: List[dict] = field(default_factory=list)


class RecipeService:
    """
    Resolves products to ingredient requirements through their recipes.

    Read-only: nothing here changes stock.
    """

    @staticmethod
    def required_ingredients(product_id, quantity) -> List[RequiredIngredient]:
        quantity = to_decimal(quantity)
        if quantity <= 0:
            return []
        return [
            RequiredIngredient(
                ingredient_id=line.ingredient_id,
                name=line.ingredient.name,
                required_amount=line.adjusted_quantity * quantity,
                unit=line.unit,
                is_required=line.is_required,
            )
            for line in ProductService.get_recipe(product_id)
        ]

    @classmethod
    def aggregate_requirements(cls, line_items: Iterable) -> Dict[int, Decimal]:
        """
        Total amount per ingredient across all line items.

        Line items are any objects exposing ``product_id`` and ``quantity``.
        """
        totals: Dict[int, Decimal] = {}
        for line in line_items:
            for requirement in cls.required_ingredients(line.product_id, line.quantity):
                totals[requirement.ingredient_id] = (
                    totals.get(requirement.ingredient_id, Decimal("0"))
                    + requirement.required_amount
                )
        return totals

    @staticmethod
    def _shortage(item, ingredient_id, required, reason):
        return {
            "ingredient_id": ingredient_id,
            "name": item.name if item else f"#{ingredient_id}",
            "required": required,
            "available": item.current_stock if item else Decimal("0"),
            "unit": item.unit if item else "",
            "reason": reason,
        }

    @classmethod
    def check_availability(cls, product_id, quantity) -> AvailabilityReport:
        """Can ``quantity`` units of the product be made from current stock?"""
        requirements = cls.aggregate_requirements(
            [_Line(product_id=product_id, quantity=quantity)]
        )
        items = InventoryItem.all_objects.in_bulk(list(requirements))

        shortages = []
        for ingredient_id, required in sorted(requirements.items()):
            item = items.get(ingredient_id)
            if item is None:
                shortages.append(cls._shortage(None, ingredient_id, required, "missing"))
            elif not item.is_active:
                shortages.append(cls._shortage(item, ingredient_id, required, "inactive"))
            elif item.is_expired:
                shortages.append(cls._shortage(item, ingredient_id, required, "expired"))
            elif item.current_stock < required:
                shortages.append(cls._shortage(item, ingredient_id, required, "insufficient"))

        return AvailabilityReport(available=not shortages, shortages=shortages)

    @classmethod
    def check_order_readiness(cls, line_items) -> AvailabilityReport:
        """
        Readiness check used when production starts.

        Stock for an order is committed when the order is created, so this
        does not compare quantities again; it only verifies that every
        ingredient still exists, is active, has not expired and that its
        stock is not negative.
        """
        requirements = cls.aggregate_requirements(line_items)
        items = InventoryItem.all_objects.in_bulk(list(requirements))

        shortages = []
        for ingredient_id, required in sorted(requirements.items()):
            item = items.get(ingredient_id)
            if item is None:
                shortages.append(cls._shortage(None, ingredient_id, required, "missing"))
            elif not item.is_active:
                shortages.append(cls._shortage(item, ingredient_id, required, "inactive"))
            elif item.is_expired:
                shortages.append(cls._shortage(item, ingredient_id, required, "expired"))
            elif item.current_stock < 0:
                shortages.append(cls._shortage(item, ingredient_id, required, "insufficient"))

        if shortages:
            logger.warning(
                "Order not ready for production: "
                + ", ".join(f"{s['name']} ({s['reason']})" for s in shortages)
            )
        return AvailabilityReport(available=not shortages, shortages=shortages)

    @staticmethod
    def recipe_counts(product_ids) -> Dict[int, int]:
        return ProductService.recipe_counts(product_ids)


@dataclass(frozen=True)
class _Line:
    product_id: int
    quantity: Decimal
