"""
Read-only catalog contract consumed by the fulfillment engine.

Catalog CRUD lives elsewhere; the engine only needs a product's current
name/price and its recipe lines.
"""
from typing import Dict, Iterable, List

from django.db.models import Count

from core_backend.exceptions import InactiveItemError, NotFoundError
from .models import Product, Recipe


class ProductService:

    @staticmethod
    def get_product(product_id) -> Product:
        """Return an active product; NotFoundError / InactiveItemError otherwise."""
        try:
            product = Product.all_objects.get(pk=product_id)
        except (Product.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Product", product_id)
        if not product.is_active:
            raise InactiveItemError("Product", product_id, name=product.name)
        return product

    @staticmethod
    def get_products(product_ids: Iterable) -> Dict[int, Product]:
        """Active products keyed by id; unknown ids are simply absent."""
        return Product.objects.in_bulk(list(set(product_ids)))

    @staticmethod
    def get_recipe(product_id) -> List[Recipe]:
        """
        Recipe lines for a product in preparation order.

        An empty list means the product has no inventory impact.
        """
        return list(
            Recipe.objects.filter(product_id=product_id)
            .select_related("ingredient")
            .order_by("sort_order", "id")
        )

    @staticmethod
    def recipe_counts(product_ids: Iterable) -> Dict[int, int]:
        """Number of recipe lines per product (0 for products without a recipe)."""
        ids = list(set(product_ids))
        counts = dict(
            Recipe.objects.filter(product_id__in=ids)
            .values("product_id")
            .annotate(n=Count("id"))
            .values_list("product_id", "n")
        )
        return {product_id: counts.get(product_id, 0) for product_id in ids}
