from typing import Dict, Any
from decimal import Decimal

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Count, F, Q, Sum

from stock.models import InventoryItem, StockTransaction
from stock.services.base_service import (
    BaseService, success_response, paginate_queryset, persist, iso,
    ValidationError, NotFoundError, DuplicateIdentifierError,
)
from stock.services.ledger_service import (
    StockLedger, normalize_item_code, invalidate_summary_cache, SUMMARY_CACHE_KEY,
)


class InventoryItemService(BaseService):
    model = InventoryItem

    @classmethod
    def serialize(cls, item: InventoryItem) -> Dict[str, Any]:
        return {
            "id": item.id,
            "itemCode": item.item_code,
            "itemType": item.item_type,
            "name": item.name,
            "quantity": str(item.quantity),
            "unit": item.unit,
            "supplier": item.supplier,
            "billNumber": item.bill_number,
            "pricePerUnit": str(item.price_per_unit),
            "lastPurchaseDate": iso(item.last_purchase_date),
            "isActive": item.is_active,
            "createdAt": iso(item.created_at),
            "updatedAt": iso(item.updated_at),
        }

    @classmethod
    def serialize_brief(cls, item: InventoryItem) -> Dict[str, Any]:
        return {
            "id": item.id,
            "itemCode": item.item_code,
            "name": item.name,
            "unit": item.unit,
        }

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 50,
             item_type: str = None,
             search: str = None,
             active_only: bool = True) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if active_only:
            queryset = queryset.filter(is_active=True)

        if item_type:
            valid_types = [c[0] for c in InventoryItem.ItemType.choices]
            item_type = item_type.capitalize()
            if item_type not in valid_types:
                raise ValidationError(f"Invalid type. Valid: {valid_types}", "itemType")
            queryset = queryset.filter(item_type=item_type)

        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(item_code__icontains=search) |
                Q(supplier__icontains=search)
            )

        items, pagination = paginate_queryset(queryset.order_by("item_code"), page, per_page)

        return success_response({
            "items": [cls.serialize(item) for item in items],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, item_id: int) -> Dict[str, Any]:
        item = cls.get_or_404(item_id)
        return success_response(cls.serialize(item))

    @classmethod
    def get_by_code(cls, item_code: str) -> Dict[str, Any]:
        code = normalize_item_code(item_code)
        item = cls.model.objects.filter(item_code=code).first()
        if not item:
            raise NotFoundError("InventoryItem", code)
        return success_response(cls.serialize(item))

    @classmethod
    @transaction.atomic
    def create(cls, draft) -> Dict[str, Any]:
        code = normalize_item_code(draft.item_code)
        if cls.model.objects.filter(item_code=code).exists():
            raise DuplicateIdentifierError("InventoryItem", "itemCode", code)

        item = persist(cls.model(
            item_code=code,
            item_type=draft.item_type,
            name=draft.name,
            quantity=Decimal("0"),
            unit=draft.unit,
            supplier=draft.supplier,
            bill_number=draft.bill_number,
            price_per_unit=draft.price_per_unit,
        ), unique_field="item_code")

        # Starting stock is booked through the ledger like any other delta
        StockLedger.open_balance(item, draft.quantity)
        transaction.on_commit(invalidate_summary_cache)

        return success_response(cls.serialize(item), f"Inventory item {code} created")

    @classmethod
    @transaction.atomic
    def update(cls, item_id: int, command) -> Dict[str, Any]:
        item = cls.lock_or_404(item_id)
        changes = command.changes()
        if not changes:
            raise ValidationError("No fields to update")

        for field, value in changes.items():
            setattr(item, field, value)
        persist(item, update_fields=list(changes) + ["updated_at"])
        transaction.on_commit(invalidate_summary_cache)

        return success_response(cls.serialize(item), "Inventory item updated")

    @classmethod
    def adjust_stock(cls, item_id: int, adjustment) -> Dict[str, Any]:
        entry = StockLedger.adjust_manual(
            item_id, adjustment.qty, adjustment.operation, notes=adjustment.notes
        )
        item = entry.inventory_item
        return success_response(
            cls.serialize(item),
            f"Stock adjusted: {entry.quantity:+} {item.unit} {item.item_code}"
        )

    @classmethod
    @transaction.atomic
    def delete(cls, item_id: int) -> Dict[str, Any]:
        item = cls.lock_or_404(item_id)
        # Purchases, orders, recipes and the ledger all protect the row
        removed = cls.delete_or_deactivate(item)
        transaction.on_commit(invalidate_summary_cache)

        if removed:
            return success_response({"id": item_id}, "Inventory item deleted")
        return success_response({"id": item_id}, "Inventory item is referenced by history and was deactivated")

    @classmethod
    def get_summary(cls) -> Dict[str, Any]:
        summary = cache.get(SUMMARY_CACHE_KEY)
        if summary is None:
            rows = cls.model.objects.filter(is_active=True).values("item_type").annotate(
                items=Count("id"),
                total_quantity=Sum("quantity"),
                stock_value=Sum(F("quantity") * F("price_per_unit")),
            ).order_by("item_type")
            summary = {
                "byType": [
                    {
                        "itemType": row["item_type"],
                        "items": row["items"],
                        "totalQuantity": str(row["total_quantity"] or 0),
                        "stockValue": str(row["stock_value"] or 0),
                    }
                    for row in rows
                ],
                "outOfStock": cls.model.objects.filter(is_active=True, quantity=0).count(),
            }
            cache.set(SUMMARY_CACHE_KEY, summary, settings.STOCK_SUMMARY_CACHE_TIMEOUT)
        return success_response(summary)


class StockTransactionService(BaseService):
    model = StockTransaction

    @classmethod
    def serialize(cls, tx: StockTransaction) -> Dict[str, Any]:
        return {
            "id": tx.id,
            "itemId": tx.inventory_item_id,
            "movementType": tx.movement_type,
            "movementTypeDisplay": tx.get_movement_type_display(),
            "quantity": str(tx.quantity),
            "quantityBefore": str(tx.quantity_before),
            "quantityAfter": str(tx.quantity_after),
            "referenceType": tx.reference_type,
            "referenceId": tx.reference_id,
            "notes": tx.notes,
            "createdAt": iso(tx.created_at),
        }

    @classmethod
    def get_item_history(cls, item_id: int, page: int = 1, per_page: int = 50) -> Dict[str, Any]:
        item = InventoryItemService.get_or_404(item_id)
        queryset = cls.model.objects.filter(inventory_item=item).order_by("-created_at", "-id")
        transactions, pagination = paginate_queryset(queryset, page, per_page)

        return success_response({
            "item": InventoryItemService.serialize_brief(item),
            "transactions": [cls.serialize(tx) for tx in transactions],
            "pagination": pagination,
        })

    @classmethod
    def get_by_reference(cls, reference_type: str, reference_id: int):
        return cls.model.objects.filter(
            reference_type=reference_type,
            reference_id=reference_id
        ).order_by("created_at", "id")
