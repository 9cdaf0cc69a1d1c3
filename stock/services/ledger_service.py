"""
StockLedger - every change to an inventory quantity goes through here.

Each public operation runs in one database transaction. Affected inventory
rows are locked (SELECT ... FOR UPDATE, in primary key order) and every delta
is applied with a guarded UPDATE that refuses to take a quantity below zero,
then recorded as a StockTransaction. For any item, its quantity equals the
sum of its StockTransaction rows.
"""

import logging
import re
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import F, Model
from django.utils import timezone

from main.models import Machine
from stock.models import (
    InventoryItem, Recipe, ProductionOrder, ProductionItem,
    PurchaseEntry, PurchaseItem, StockTransaction,
)
from stock.services.base_service import (
    ValidationError, NotFoundError, BusinessRuleError, InsufficientStockError,
    InvalidItemCodeError, DanglingReferenceError, generate_number,
)

logger = logging.getLogger(__name__)

SUMMARY_CACHE_KEY = "stock:inventory_summary"

Movement = StockTransaction.MovementType


def normalize_item_code(code) -> str:
    """
    Canonical item code: trimmed, uppercased, numeric codes prefixed.

    "101" -> "MSK-101", " msk-5 " -> "MSK-5"; anything that does not end up as
    PREFIX-<digits> raises InvalidItemCodeError.
    """
    if isinstance(code, bool) or not isinstance(code, (str, int)):
        raise InvalidItemCodeError(code)

    prefix = settings.STOCK_ITEM_CODE_PREFIX.upper()
    value = str(code).strip().upper()
    if re.fullmatch(r"[0-9]+", value):
        value = f"{prefix}-{value}"
    if not re.fullmatch(rf"{re.escape(prefix)}-[0-9]+", value):
        raise InvalidItemCodeError(code)
    if len(value) > InventoryItem._meta.get_field("item_code").max_length:
        raise InvalidItemCodeError(code)
    return value


def invalidate_summary_cache():
    cache.delete(SUMMARY_CACHE_KEY)


def _reference_type(owner: Model) -> str:
    return owner._meta.model_name


class StockLedger:

    # ------------------------------------------------------------------
    # primitives
    # ------------------------------------------------------------------

    @classmethod
    def _lock_items(cls, item_ids: Iterable[int]) -> Dict[int, InventoryItem]:
        items = InventoryItem.objects.select_for_update().filter(
            id__in=list(item_ids)
        ).order_by("id")
        return {item.id: item for item in items}

    @classmethod
    def _apply(cls, item: InventoryItem, delta: Decimal, movement_type: str,
               owner: Model = None, notes: str = "") -> StockTransaction:
        """Apply one signed delta; never lets the stored quantity go negative."""
        queryset = InventoryItem.objects.filter(pk=item.pk)
        if delta < 0:
            queryset = queryset.filter(quantity__gte=-delta)
        updated = queryset.update(quantity=F("quantity") + delta, updated_at=timezone.now())

        if not updated:
            available = InventoryItem.objects.filter(pk=item.pk).values_list("quantity", flat=True).first()
            if available is None:
                raise DanglingReferenceError("InventoryItem", item.item_code)
            raise InsufficientStockError(item.item_code, -delta, available)

        after = InventoryItem.objects.values_list("quantity", flat=True).get(pk=item.pk)
        item.quantity = after

        entry = StockTransaction.objects.create(
            inventory_item=item,
            movement_type=movement_type,
            quantity=delta,
            quantity_before=after - delta,
            quantity_after=after,
            reference_type=_reference_type(owner) if owner else "",
            reference_id=owner.pk if owner else None,
            notes=notes,
        )
        transaction.on_commit(invalidate_summary_cache)
        logger.debug("%s %+f on %s (%s)", movement_type, delta, item.item_code, entry.reference_type or "manual")
        return entry

    @classmethod
    def shortfalls(cls, requirements: Dict[int, Decimal],
                   items: Dict[int, InventoryItem]) -> List[Dict]:
        result = []
        for item_id, required in requirements.items():
            item = items[item_id]
            if item.quantity < required:
                result.append({
                    "itemId": item.id,
                    "itemCode": item.item_code,
                    "name": item.name,
                    "required": str(required),
                    "available": str(item.quantity),
                    "shortfall": str(required - item.quantity),
                })
        return result

    @classmethod
    def recipe_requirements(cls, recipe: Recipe, target_qty: int) -> Dict[int, Decimal]:
        """Item id -> quantity needed to produce ``target_qty`` units."""
        materials = list(recipe.materials.all())
        if not materials:
            raise ValidationError(f"Recipe {recipe.design_code} has no materials", "recipeId")
        return {m.inventory_item_id: m.quantity_required * target_qty for m in materials}

    # ------------------------------------------------------------------
    # production
    # ------------------------------------------------------------------

    @classmethod
    @transaction.atomic
    def reserve_and_consume(cls, draft) -> ProductionOrder:
        """
        Create a production order and deduct its materials, all or nothing.

        Every material is checked against its locked row first; if any one is
        short nothing is deducted and no order is created.
        """
        try:
            recipe = Recipe.objects.get(id=draft.recipe_id)
        except Recipe.DoesNotExist:
            raise NotFoundError("Recipe", draft.recipe_id)
        if not recipe.is_active:
            raise BusinessRuleError(f"Recipe {recipe.design_code} is inactive", "recipe_inactive")

        try:
            machine = Machine.objects.get(id=draft.machine_id)
        except Machine.DoesNotExist:
            raise NotFoundError("Machine", draft.machine_id)
        if not machine.is_active:
            raise BusinessRuleError(f"Machine {machine.model_name} is inactive", "machine_inactive")

        requirements = cls.recipe_requirements(recipe, draft.target_qty)
        items = cls._lock_items(requirements)

        inactive = [item.item_code for item in items.values() if not item.is_active]
        if inactive:
            raise BusinessRuleError(f"Inactive materials in recipe: {', '.join(inactive)}", "material_inactive")

        shortfalls = cls.shortfalls(requirements, items)
        if shortfalls:
            first = shortfalls[0]
            logger.warning(
                "Production refused for recipe %s x %s: %d material(s) short",
                recipe.design_code, draft.target_qty, len(shortfalls)
            )
            raise InsufficientStockError(
                first["itemCode"], Decimal(first["required"]), Decimal(first["available"]),
                {"shortfalls": shortfalls}
            )

        order = ProductionOrder.objects.create(
            order_number=generate_number("production_order", ProductionOrder, "order_number"),
            recipe=recipe,
            machine=machine,
            target_qty=draft.target_qty,
            started_at=draft.started_at,
            notes=draft.notes,
        )
        for item_id, required in requirements.items():
            cls._apply(items[item_id], -required, Movement.PRODUCTION_OUT, order)
            ProductionItem.objects.create(
                production_order=order,
                inventory_item=items[item_id],
                quantity_consumed=required,
            )

        logger.info("Production order %s created, %d material(s) consumed", order.order_number, len(requirements))
        return order

    # ------------------------------------------------------------------
    # purchasing
    # ------------------------------------------------------------------

    @classmethod
    def normalize_lines(cls, lines) -> List:
        """Normalize codes of purchase lines; a code may appear only once."""
        seen = set()
        for line in lines:
            line.item_code = normalize_item_code(line.item_code)
            if line.item_code in seen:
                raise ValidationError(f"Item {line.item_code} is listed twice", "items")
            seen.add(line.item_code)
        return lines

    @classmethod
    def resolve_purchase_items(cls, lines) -> Dict[str, InventoryItem]:
        """
        Map each line's code to its inventory row, creating unknown items with
        zero quantity. get_or_create keeps concurrent submissions of the same
        new code down to one row.
        """
        existing = {
            item.item_code: item
            for item in InventoryItem.objects.filter(item_code__in=[l.item_code for l in lines])
        }
        missing = [l for l in lines if l.item_code not in existing]
        for line in missing:
            if not (line.name and line.item_type and line.unit):
                raise ValidationError(
                    f"name, itemType and unit are required for new item {line.item_code}", "items"
                )

        for line in missing:
            item, created = InventoryItem.objects.get_or_create(
                item_code=line.item_code,
                defaults={
                    "name": line.name,
                    "item_type": line.item_type,
                    "unit": line.unit,
                    "quantity": Decimal("0"),
                    "price_per_unit": line.price_per_unit,
                },
            )
            if created:
                logger.info("Inventory item %s created from purchase", item.item_code)
            existing[line.item_code] = item
        return existing

    @classmethod
    def record_purchase_lines(cls, purchase: PurchaseEntry, lines, items: Dict[str, InventoryItem],
                              reactivate: bool = False):
        """
        Write the purchase lines and refresh supplier and price on their items.

        Only a new purchase (``reactivate``) brings a deactivated item back;
        edits leave the active flag alone.
        """
        for line in lines:
            item = items[line.item_code]
            changes = {
                "supplier": purchase.supplier,
                "bill_number": purchase.bill_number,
                "price_per_unit": line.price_per_unit,
                "last_purchase_date": purchase.purchase_date,
            }
            if reactivate:
                changes["is_active"] = True
            InventoryItem.objects.filter(pk=item.pk).update(**changes)
            PurchaseItem.objects.create(
                purchase=purchase,
                inventory_item_id=item.pk,
                quantity=line.qty,
                price_per_unit=line.price_per_unit,
            )

    @classmethod
    @transaction.atomic
    def receive_and_adjust(cls, draft) -> PurchaseEntry:
        """Book a purchase: stock in for every line, unknown codes created."""
        lines = cls.normalize_lines(draft.items)
        resolved = cls.resolve_purchase_items(lines)

        purchase = PurchaseEntry.objects.create(
            purchase_number=generate_number("purchase_entry", PurchaseEntry, "purchase_number"),
            supplier=draft.supplier,
            bill_number=draft.bill_number,
            contact=draft.contact,
            total_amount=draft.total_amount,
            purchase_date=draft.purchase_date,
        )

        items = cls._lock_items(item.pk for item in resolved.values())
        for line in lines:
            cls._apply(items[resolved[line.item_code].pk], line.qty, Movement.PURCHASE_IN, purchase)
        cls.record_purchase_lines(purchase, lines, resolved, reactivate=True)

        logger.info("Purchase %s booked: %d line(s) from %s", purchase.purchase_number, len(lines), purchase.supplier)
        return purchase

    # ------------------------------------------------------------------
    # edits and deletes
    # ------------------------------------------------------------------

    @classmethod
    @transaction.atomic
    def reverse_and_reapply(cls, old_lines: Dict[int, Decimal], new_lines: Dict[int, Decimal],
                            movement_type: str, owner: Model = None,
                            notes: str = "") -> List[StockTransaction]:
        """
        Move stock from the old version of a document to the new one.

        Lines map item id to the signed delta the document applied. Each
        touched item receives exactly one ``new - old`` delta; items whose net
        is zero are left alone.
        """
        net = {}
        for item_id in sorted(set(old_lines) | set(new_lines)):
            delta = new_lines.get(item_id, Decimal("0")) - old_lines.get(item_id, Decimal("0"))
            if delta:
                net[item_id] = delta

        items = cls._lock_items(net)
        cls._check_references(net, items)

        applied = [cls._apply(items[item_id], delta, movement_type, owner, notes) for item_id, delta in net.items()]
        if owner is not None:
            logger.info("%s %s re-applied: %d net delta(s)", _reference_type(owner), owner.pk, len(applied))
        return applied

    @classmethod
    @transaction.atomic
    def reverse_on_delete(cls, owner: Model, lines: Dict[int, Decimal],
                          movement_type: str) -> List[StockTransaction]:
        """
        Undo every delta ``owner`` applied, then delete it.

        Fails without touching stock when a referenced item is gone.
        """
        items = cls._lock_items(lines)
        cls._check_references(lines, items)

        applied = [cls._apply(items[item_id], -delta, movement_type, owner) for item_id, delta in lines.items() if delta]
        label = str(owner)
        owner.delete()
        logger.info("%s deleted, %d delta(s) reversed", label, len(applied))
        return applied

    @classmethod
    def _check_references(cls, lines: Dict[int, Decimal], items: Dict[int, InventoryItem]):
        for item_id in lines:
            item = items.get(item_id)
            if item is None:
                raise DanglingReferenceError("InventoryItem", item_id)
            if not item.is_active:
                raise DanglingReferenceError("InventoryItem", item.item_code)

    # ------------------------------------------------------------------
    # manual
    # ------------------------------------------------------------------

    @classmethod
    @transaction.atomic
    def open_balance(cls, item: InventoryItem, quantity: Decimal) -> Optional[StockTransaction]:
        if not quantity:
            return None
        return cls._apply(item, quantity, Movement.OPENING_BALANCE, notes="Opening balance")

    @classmethod
    @transaction.atomic
    def adjust_manual(cls, item_id: int, qty: Decimal, direction: str, notes: str = "") -> StockTransaction:
        items = cls._lock_items([item_id])
        if item_id not in items:
            raise NotFoundError("InventoryItem", item_id)
        item = items[item_id]

        if direction == "add":
            return cls._apply(item, qty, Movement.ADJUSTMENT_PLUS, notes=notes)
        if direction == "subtract":
            return cls._apply(item, -qty, Movement.ADJUSTMENT_MINUS, notes=notes)
        raise ValidationError("operation must be 'add' or 'subtract'", "operation")
