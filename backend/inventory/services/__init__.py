from .alert_service import InventoryAlertService
from .ledger_service import InventoryService, RestorationOutcome, StockMovement
from .recipe_service import AvailabilityReport, RecipeService, RequiredIngredient

__all__ = [
    "InventoryService",
    "InventoryAlertService",
    "RecipeService",
    "RestorationOutcome",
    "StockMovement",
    "AvailabilityReport",
    "RequiredIngredient",
]
