import logging
from typing import Dict, Any
from decimal import Decimal

from django.db import transaction
from django.db.models import Q

from stock.models import PurchaseEntry, PurchaseItem, StockTransaction
from stock.services.base_service import (
    BaseService, success_response, paginate_queryset, iso,
    ValidationError,
)
from stock.services.ledger_service import StockLedger

logger = logging.getLogger(__name__)


class PurchaseEntryService(BaseService):
    model = PurchaseEntry

    @classmethod
    def serialize(cls, purchase: PurchaseEntry, include_items: bool = True) -> Dict[str, Any]:
        data = {
            "id": purchase.id,
            "purchaseNumber": purchase.purchase_number,
            "supplier": purchase.supplier,
            "billNumber": purchase.bill_number,
            "contact": purchase.contact,
            "totalAmount": str(purchase.total_amount),
            "purchaseDate": iso(purchase.purchase_date),
            "createdAt": iso(purchase.created_at),
            "updatedAt": iso(purchase.updated_at),
        }

        if include_items:
            data["items"] = [
                {
                    "id": line.id,
                    "itemId": line.inventory_item_id,
                    "itemCode": line.inventory_item.item_code,
                    "name": line.inventory_item.name,
                    "qty": str(line.quantity),
                    "pricePerUnit": str(line.price_per_unit),
                    "lineTotal": str(line.line_total),
                }
                for line in purchase.items.select_related("inventory_item")
            ]

        return data

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 50,
             supplier: str = None,
             search: str = None) -> Dict[str, Any]:
        queryset = cls.model.objects.all()

        if supplier:
            queryset = queryset.filter(supplier__icontains=supplier)

        if search:
            queryset = queryset.filter(
                Q(purchase_number__icontains=search) |
                Q(bill_number__icontains=search) |
                Q(supplier__icontains=search)
            )

        purchases, pagination = paginate_queryset(
            queryset.order_by("-purchase_date", "-id"), page, per_page
        )

        return success_response({
            "purchases": [cls.serialize(p) for p in purchases],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, purchase_id: int) -> Dict[str, Any]:
        purchase = cls.get_or_404(purchase_id)
        return success_response(cls.serialize(purchase))

    @classmethod
    def create(cls, draft) -> Dict[str, Any]:
        purchase = StockLedger.receive_and_adjust(draft)
        return success_response(
            cls.serialize(purchase),
            f"Purchase {purchase.purchase_number} recorded"
        )

    @staticmethod
    def _line_deltas(purchase: PurchaseEntry) -> Dict[int, Decimal]:
        deltas = {}
        for line in purchase.items.all():
            deltas[line.inventory_item_id] = deltas.get(line.inventory_item_id, Decimal("0")) + line.quantity
        return deltas

    @classmethod
    @transaction.atomic
    def update(cls, purchase_id: int, command) -> Dict[str, Any]:
        """
        Update purchase details and, when ``items`` is given, its lines.

        Stock moves by the difference between the old and new lines only.
        """
        purchase = cls.lock_or_404(purchase_id)
        changes = command.changes()
        if not changes:
            raise ValidationError("No fields to update")

        changes.pop("items", None)
        update_fields = ["updated_at"]
        for field, value in changes.items():
            setattr(purchase, field, value)
            update_fields.append(field)
        purchase.save(update_fields=update_fields)

        if command.items is not None:
            lines = StockLedger.normalize_lines(command.items)
            resolved = StockLedger.resolve_purchase_items(lines)

            old_deltas = cls._line_deltas(purchase)
            new_deltas = {resolved[line.item_code].pk: line.qty for line in lines}
            StockLedger.reverse_and_reapply(
                old_deltas, new_deltas,
                StockTransaction.MovementType.PURCHASE_EDIT,
                owner=purchase,
                notes=f"Edit of {purchase.purchase_number}",
            )

            purchase.items.all().delete()
            StockLedger.record_purchase_lines(purchase, lines, resolved)

        logger.info("Purchase %s updated", purchase.purchase_number)
        return success_response(cls.serialize(purchase), "Purchase updated")

    @classmethod
    @transaction.atomic
    def delete(cls, purchase_id: int) -> Dict[str, Any]:
        purchase = cls.lock_or_404(purchase_id)
        number = purchase.purchase_number
        StockLedger.reverse_on_delete(
            purchase,
            cls._line_deltas(purchase),
            StockTransaction.MovementType.PURCHASE_REVERSAL,
        )
        return success_response({"id": purchase_id, "purchaseNumber": number}, f"Purchase {number} deleted")
