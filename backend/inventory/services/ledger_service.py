"""
Inventory ledger: the only code allowed to change ``InventoryItem.current_stock``.

Every mutation is a locked read-modify-write inside ``transaction.atomic``.
Batches lock their rows in ascending id order so two orders sharing
ingredients can never deadlock each other, and a busy row fails fast
(``select_for_update(nowait=True)``) instead of queueing behind it.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.conf import settings
from django.db import DatabaseError, transaction

from core_backend.events import publish_event
from core_backend.exceptions import (
    InactiveItemError,
    InsufficientStockError,
    InvalidAdjustmentError,
    InventoryBusyError,
    NotFoundError,
)
from core_backend.utils.money import to_decimal
from inventory import signals
from inventory.models import InventoryItem, StockHistoryEntry
from .recipe_service import RecipeService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockMovement:
    """One applied deduction."""

    item_id: int
    name: str
    quantity: Decimal
    previous_stock: Decimal
    new_stock: Decimal
    unit: str = ""


@dataclass(frozen=True)
class RestorationOutcome:
    """
    Result of returning stock for one ingredient.

    ``applied`` is zero and ``skipped_reason`` is set when the restoration was
    dropped because it would push the item over its restore ceiling.
    """

    item_id: int
    name: str
    requested: Decimal
    applied: Decimal
    new_stock: Decimal
    skipped_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skipped_reason is not None


class InventoryService:

    # ------------------------------------------------------------------
    # Locking and history helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _lock_items(item_ids: Iterable[int]) -> Dict[int, InventoryItem]:
        """
        Lock the given rows (archived ones included) in ascending id order.

        Must be called inside ``transaction.atomic``. Unknown ids are simply
        absent from the returned mapping.
        """
        ids = sorted(set(item_ids))
        nowait = settings.FULFILLMENT.get("INVENTORY_LOCK_NOWAIT", True)
        try:
            items = list(
                InventoryItem.all_objects.select_for_update(nowait=nowait)
                .filter(pk__in=ids)
                .order_by("pk")
            )
        except DatabaseError as e:
            logger.warning(f"Inventory rows {ids} are locked by another operation: {e}")
            raise InventoryBusyError(
                "Inventory is being updated by another operation, please retry"
            ) from e
        return {item.pk: item for item in items}

    @staticmethod
    def _require_active(items: Dict[int, InventoryItem], item_id) -> InventoryItem:
        item = items.get(item_id)
        if item is None:
            raise NotFoundError("Inventory item", item_id)
        if not item.is_active:
            raise InactiveItemError("Inventory item", item_id, name=item.name)
        return item

    @staticmethod
    def _log_stock_operation(
        item: InventoryItem,
        operation_type: str,
        quantity_change: Decimal,
        previous_quantity: Decimal,
        new_quantity: Decimal,
        user=None,
        reason: str = "",
        reference_id: str = "",
    ) -> StockHistoryEntry:
        """Write the history row in the same transaction as the stock change."""
        return StockHistoryEntry.objects.create(
            item=item,
            user=user if getattr(user, "pk", None) else None,
            operation_type=operation_type,
            quantity_change=quantity_change,
            previous_quantity=previous_quantity,
            new_quantity=new_quantity,
            reason=reason[:255],
            reference_id=reference_id or "",
        )

    @staticmethod
    def _set_stock(item: InventoryItem, new_stock: Decimal):
        item.current_stock = new_stock
        item.save(update_fields=["current_stock", "updated_at"])

    @staticmethod
    def _positive_amount(amount) -> Decimal:
        try:
            amount = to_decimal(amount)
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidAdjustmentError(f"Invalid quantity: {amount}")
        if amount <= 0:
            raise InvalidAdjustmentError(f"Quantity must be greater than zero, got {amount}")
        return amount

    @classmethod
    def _apply_deduction(cls, item, amount, user=None, reason="", reference_id="") -> StockMovement:
        previous = item.current_stock
        new_stock = previous - amount
        cls._set_stock(item, new_stock)
        cls._log_stock_operation(
            item,
            StockHistoryEntry.OperationType.ORDER_DEDUCTION,
            -amount,
            previous,
            new_stock,
            user=user,
            reason=reason,
            reference_id=reference_id,
        )
        publish_event(
            signals.stock_deducted,
            sender=InventoryItem,
            item_id=item.pk,
            name=item.name,
            quantity=amount,
            previous_stock=previous,
            new_stock=new_stock,
            user=user,
            reference_id=reference_id,
        )
        return StockMovement(
            item_id=item.pk,
            name=item.name,
            quantity=amount,
            previous_stock=previous,
            new_stock=new_stock,
            unit=item.unit,
        )

    @classmethod
    def _apply_restoration(cls, item, amount, user=None, reason="", reference_id="") -> RestorationOutcome:
        previous = item.current_stock
        ceiling = item.restore_ceiling
        if previous + amount > ceiling:
            cls._log_stock_operation(
                item,
                StockHistoryEntry.OperationType.RESTORATION_SKIPPED,
                Decimal("0"),
                previous,
                previous,
                user=user,
                reason=f"Skipped restoring {amount}{item.unit}: would exceed ceiling {ceiling}{item.unit}",
                reference_id=reference_id,
            )
            logger.warning(
                f"Restoration of {amount}{item.unit} {item.name} skipped for {reference_id or 'manual restore'}: "
                f"stock {previous} would exceed ceiling {ceiling}"
            )
            publish_event(
                signals.stock_restoration_skipped,
                sender=InventoryItem,
                item_id=item.pk,
                name=item.name,
                requested=amount,
                current_stock=previous,
                ceiling=ceiling,
                reference_id=reference_id,
            )
            return RestorationOutcome(
                item_id=item.pk,
                name=item.name,
                requested=amount,
                applied=Decimal("0"),
                new_stock=previous,
                skipped_reason="ceiling_exceeded",
            )

        new_stock = previous + amount
        cls._set_stock(item, new_stock)
        cls._log_stock_operation(
            item,
            StockHistoryEntry.OperationType.ORDER_RESTORATION,
            amount,
            previous,
            new_stock,
            user=user,
            reason=reason,
            reference_id=reference_id,
        )
        publish_event(
            signals.stock_restored,
            sender=InventoryItem,
            item_id=item.pk,
            name=item.name,
            quantity=amount,
            previous_stock=previous,
            new_stock=new_stock,
            user=user,
            reference_id=reference_id,
        )
        return RestorationOutcome(
            item_id=item.pk,
            name=item.name,
            requested=amount,
            applied=amount,
            new_stock=new_stock,
        )

    # ------------------------------------------------------------------
    # Single item operations
    # ------------------------------------------------------------------

    @staticmethod
    def get_stock_level(item_id) -> Decimal:
        try:
            item = InventoryItem.all_objects.get(pk=item_id)
        except InventoryItem.DoesNotExist:
            raise NotFoundError("Inventory item", item_id)
        return item.current_stock

    @classmethod
    def deduct(cls, item_id, amount, user=None, reason="", reference_id="") -> Decimal:
        """
        Removes ``amount`` from an item's stock and returns the new level.
        """
        amount = cls._positive_amount(amount)
        with transaction.atomic():
            item = cls._require_active(cls._lock_items([item_id]), item_id)
            if item.current_stock < amount:
                raise InsufficientStockError(
                    [
                        {
                            "ingredient_id": item.pk,
                            "name": item.name,
                            "required": amount,
                            "available": item.current_stock,
                            "unit": item.unit,
                            "reason": "insufficient",
                        }
                    ]
                )
            movement = cls._apply_deduction(item, amount, user, reason, reference_id)

        logger.info(f"Deducted {amount}{item.unit} of {item.name}, new stock {movement.new_stock}")
        return movement.new_stock

    @classmethod
    def restore(cls, item_id, amount, user=None, reason="", reference_id="") -> RestorationOutcome:
        """
        Returns ``amount`` to an item's stock, unless that would exceed
        ``max_stock * RESTORE_CEILING_FACTOR``; in that case nothing changes
        and the outcome reports the skip.
        """
        amount = cls._positive_amount(amount)
        with transaction.atomic():
            item = cls._require_active(cls._lock_items([item_id]), item_id)
            outcome = cls._apply_restoration(item, amount, user, reason, reference_id)

        if not outcome.skipped:
            logger.info(f"Restored {amount}{item.unit} of {item.name}, new stock {outcome.new_stock}")
        return outcome

    @classmethod
    def adjust(cls, item_id, delta, reason, actor=None) -> InventoryItem:
        """
        Manual stock correction (delivery received, spillage, count fix).

        The result may never go negative. An increase may not take stock
        above ``max_stock``; a decrease is always allowed down to zero.
        """
        try:
            delta = to_decimal(delta)
        except (ArithmeticError, ValueError, TypeError):
            raise InvalidAdjustmentError(f"Invalid adjustment: {delta}")
        if delta == 0:
            raise InvalidAdjustmentError("Adjustment must not be zero")

        with transaction.atomic():
            item = cls._require_active(cls._lock_items([item_id]), item_id)
            previous = item.current_stock
            new_stock = previous + delta
            if new_stock < 0:
                raise InvalidAdjustmentError(
                    f"Adjusting {item.name} by {delta}{item.unit} would make stock negative "
                    f"(current {previous}{item.unit})"
                )
            if delta > 0 and new_stock > item.max_stock:
                raise InvalidAdjustmentError(
                    f"Adjusting {item.name} by {delta}{item.unit} would exceed maximum stock "
                    f"{item.max_stock}{item.unit} (current {previous}{item.unit})"
                )

            cls._set_stock(item, new_stock)
            operation = (
                StockHistoryEntry.OperationType.ADJUSTED_ADD
                if delta > 0
                else StockHistoryEntry.OperationType.ADJUSTED_SUBTRACT
            )
            cls._log_stock_operation(
                item, operation, delta, previous, new_stock, user=actor, reason=reason or ""
            )
            publish_event(
                signals.stock_adjusted,
                sender=InventoryItem,
                item_id=item.pk,
                name=item.name,
                delta=delta,
                previous_stock=previous,
                new_stock=new_stock,
                reason=reason or "",
                user=actor,
            )

        logger.info(f"Adjusted {item.name} by {delta}{item.unit}: {previous} -> {new_stock} ({reason})")
        return item

    # ------------------------------------------------------------------
    # Order level operations
    # ------------------------------------------------------------------

    @classmethod
    def deduct_for_order(cls, line_items, user=None, reference_id="") -> List[StockMovement]:
        """
        Deducts the aggregated recipe requirements of ``line_items``.

        All-or-nothing: every ingredient is checked under lock before any stock
        changes, and a single InsufficientStockError lists all shortages.
        """
        requirements = RecipeService.aggregate_requirements(line_items)
        if not requirements:
            return []

        with transaction.atomic():
            items = cls._lock_items(requirements.keys())

            shortages = []
            for ingredient_id, required in sorted(requirements.items()):
                item = items.get(ingredient_id)
                if item is None:
                    shortages.append(
                        {
                            "ingredient_id": ingredient_id,
                            "name": f"#{ingredient_id}",
                            "required": required,
                            "available": Decimal("0"),
                            "unit": "",
                            "reason": "missing",
                        }
                    )
                elif not item.is_active or item.current_stock < required:
                    shortages.append(
                        {
                            "ingredient_id": item.pk,
                            "name": item.name,
                            "required": required,
                            "available": item.current_stock,
                            "unit": item.unit,
                            "reason": "inactive" if not item.is_active else "insufficient",
                        }
                    )
            if shortages:
                logger.info(
                    f"Stock check failed for {reference_id or 'order'}: "
                    + ", ".join(s["name"] for s in shortages)
                )
                raise InsufficientStockError(shortages)

            movements = [
                cls._apply_deduction(
                    items[ingredient_id],
                    required,
                    user=user,
                    reason="Order deduction",
                    reference_id=reference_id,
                )
                for ingredient_id, required in sorted(requirements.items())
            ]

        logger.info(f"Deducted {len(movements)} ingredient(s) for {reference_id or 'order'}")
        return movements

    @classmethod
    def restore_for_order(cls, line_items, user=None, reference_id="") -> List[RestorationOutcome]:
        """
        Returns the aggregated recipe requirements of ``line_items`` to stock.

        Missing or archived ingredients are skipped with a warning; each
        remaining ingredient is subject to the restore ceiling on its own.
        """
        requirements = RecipeService.aggregate_requirements(line_items)
        if not requirements:
            return []

        outcomes = []
        with transaction.atomic():
            items = cls._lock_items(requirements.keys())
            for ingredient_id, amount in sorted(requirements.items()):
                item = items.get(ingredient_id)
                if item is None or not item.is_active:
                    logger.warning(
                        f"Skipping restoration of ingredient {ingredient_id} for "
                        f"{reference_id or 'order'}: item is {'missing' if item is None else 'inactive'}"
                    )
                    continue
                outcomes.append(
                    cls._apply_restoration(
                        item,
                        amount,
                        user=user,
                        reason="Order cancellation",
                        reference_id=reference_id,
                    )
                )

        restored = sum(1 for outcome in outcomes if not outcome.skipped)
        logger.info(
            f"Restored {restored} of {len(requirements)} ingredient(s) for {reference_id or 'order'}"
        )
        return outcomes
