from django.contrib import admin

from core_backend.admin_mixins import ArchivingAdminMixin
from .models import Product, Recipe


class RecipeInline(admin.TabularInline):
    """
    Recipe lines edited directly on the product page.
    """

    model = Recipe
    autocomplete_fields = ("ingredient",)
    extra = 1
    ordering = ("sort_order", "id")


@admin.register(Product)
class ProductAdmin(ArchivingAdminMixin, admin.ModelAdmin):
    list_display = ("name", "price", "recipe_line_count", "updated_at")
    search_fields = ("name",)
    inlines = [RecipeInline]

    @admin.display(description="Recipe lines")
    def recipe_line_count(self, obj):
        return obj.recipes.count()
