import logging
from typing import Dict, Any
from decimal import Decimal

from django.db import transaction
from django.db.models import Prefetch

from stock.models import ProductionOrder, ProductionItem, Recipe, StockTransaction
from stock.services.base_service import (
    BaseService, success_response, paginate_queryset, iso,
    ValidationError, NotFoundError, BusinessRuleError, ConflictError,
    OrderAlreadyCompletedError,
)
from stock.services.ledger_service import StockLedger

logger = logging.getLogger(__name__)

Status = ProductionOrder.Status


class ProductionOrderService(BaseService):
    model = ProductionOrder

    @classmethod
    def serialize(cls, order: ProductionOrder, include_items: bool = True) -> Dict[str, Any]:
        data = {
            "id": order.id,
            "orderNumber": order.order_number,
            "recipeId": order.recipe_id,
            "recipe": {
                "id": order.recipe.id,
                "designCode": order.recipe.design_code,
                "name": order.recipe.name,
            },
            "machineId": order.machine_id,
            "machine": {
                "id": order.machine.id,
                "modelName": order.machine.model_name,
            },
            "targetQty": order.target_qty,
            "status": order.status,
            "startedAt": iso(order.started_at),
            "completedAt": iso(order.completed_at),
            "actualQtyProduced": order.actual_qty_produced,
            "wastageQty": str(order.wastage_qty),
            "notes": order.notes,
            "createdAt": iso(order.created_at),
            "updatedAt": iso(order.updated_at),
        }

        if include_items:
            data["items"] = [
                {
                    "id": line.id,
                    "itemId": line.inventory_item_id,
                    "itemCode": line.inventory_item.item_code,
                    "name": line.inventory_item.name,
                    "quantityConsumed": str(line.quantity_consumed),
                    "wastageQty": str(line.wastage_qty),
                }
                for line in order.items.all()
            ]

        return data

    @classmethod
    def _queryset(cls):
        return cls.model.objects.select_related("recipe", "machine").prefetch_related(
            Prefetch("items", queryset=ProductionItem.objects.select_related("inventory_item"))
        )

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 50,
             status: str = None,
             machine_id: int = None) -> Dict[str, Any]:
        queryset = cls._queryset()

        if status:
            valid = [c[0] for c in Status.choices]
            if status not in valid:
                raise ValidationError(f"Invalid status. Valid: {valid}", "status")
            queryset = queryset.filter(status=status)

        if machine_id:
            queryset = queryset.filter(machine_id=machine_id)

        orders, pagination = paginate_queryset(queryset.order_by("-created_at", "-id"), page, per_page)

        return success_response({
            "orders": [cls.serialize(o) for o in orders],
            "pagination": pagination,
        })

    @classmethod
    def get_open(cls) -> Dict[str, Any]:
        orders = cls._queryset().filter(
            status__in=ProductionOrder.OPEN_STATUSES
        ).order_by("started_at", "id")

        return success_response({
            "orders": [cls.serialize(o, include_items=False) for o in orders],
            "count": len(orders),
        })

    @classmethod
    def get(cls, order_id: int) -> Dict[str, Any]:
        order = cls._queryset().filter(id=order_id).first()
        if not order:
            raise NotFoundError("ProductionOrder", order_id)
        return success_response(cls.serialize(order))

    @classmethod
    def create(cls, draft) -> Dict[str, Any]:
        order = StockLedger.reserve_and_consume(draft)
        order = cls._queryset().get(id=order.id)
        return success_response(cls.serialize(order), f"Production order {order.order_number} created")

    @classmethod
    def check_availability(cls, recipe_id: int, target_qty: int) -> Dict[str, Any]:
        """Read-only preview of what an order for ``target_qty`` would consume."""
        recipe = Recipe.objects.filter(id=recipe_id).prefetch_related("materials__inventory_item").first()
        if not recipe:
            raise NotFoundError("Recipe", recipe_id)

        requirements = StockLedger.recipe_requirements(recipe, target_qty)
        items = {m.inventory_item_id: m.inventory_item for m in recipe.materials.all()}
        shortfalls = StockLedger.shortfalls(requirements, items)

        return success_response({
            "recipeId": recipe.id,
            "targetQty": target_qty,
            "canProduce": not shortfalls,
            "materials": [
                {
                    "itemId": item_id,
                    "itemCode": items[item_id].item_code,
                    "required": str(required),
                    "available": str(items[item_id].quantity),
                }
                for item_id, required in requirements.items()
            ],
            "shortfalls": shortfalls,
        })

    @staticmethod
    def _consumption(order: ProductionOrder) -> Dict[int, Decimal]:
        # Consumption is stored positive; as a stock delta it is negative
        deltas = {}
        for line in order.items.all():
            deltas[line.inventory_item_id] = deltas.get(line.inventory_item_id, Decimal("0")) - line.quantity_consumed
        return deltas

    @classmethod
    def _guard_mutable(cls, order: ProductionOrder):
        if order.status == Status.COMPLETED:
            raise OrderAlreadyCompletedError(order.order_number)
        if order.status == Status.CANCELLED:
            raise BusinessRuleError(
                f"Production order {order.order_number} is cancelled", "order_cancelled"
            )

    @classmethod
    @transaction.atomic
    def update(cls, order_id: int, command) -> Dict[str, Any]:
        order = cls.lock_or_404(order_id)
        changes = command.changes()
        if not changes:
            raise ValidationError("No fields to update")

        cls._guard_mutable(order)

        if changes.get("status") == Status.COMPLETED:
            raise ValidationError(
                "Orders are completed through machine-logs/fulfill", "status"
            )

        if "target_qty" in changes and changes["target_qty"] != order.target_qty:
            cls._rescale(order, changes["target_qty"])

        update_fields = ["updated_at"]
        for field, value in changes.items():
            setattr(order, field, value)
            update_fields.append(field)
        order.save(update_fields=update_fields)

        logger.info("Production order %s updated: %s", order.order_number, ", ".join(sorted(changes)))
        return success_response(cls.serialize(cls._queryset().get(id=order.id)), "Production order updated")

    @classmethod
    def _rescale(cls, order: ProductionOrder, target_qty: int):
        """Re-compute consumption for a new target from the current recipe."""
        requirements = StockLedger.recipe_requirements(order.recipe, target_qty)
        StockLedger.reverse_and_reapply(
            cls._consumption(order),
            {item_id: -required for item_id, required in requirements.items()},
            StockTransaction.MovementType.PRODUCTION_EDIT,
            owner=order,
            notes=f"Target changed {order.target_qty} -> {target_qty}",
        )

        order.items.all().delete()
        ProductionItem.objects.bulk_create([
            ProductionItem(
                production_order=order,
                inventory_item_id=item_id,
                quantity_consumed=required,
            )
            for item_id, required in requirements.items()
        ])

    @classmethod
    @transaction.atomic
    def delete(cls, order_id: int) -> Dict[str, Any]:
        order = cls.lock_or_404(order_id)
        if order.status == Status.COMPLETED:
            raise OrderAlreadyCompletedError(order.order_number)
        if order.operator_entries.exists():
            raise ConflictError(
                f"Production order {order.order_number} has operator entries",
                {"orderNumber": order.order_number}
            )

        number = order.order_number
        StockLedger.reverse_on_delete(
            order,
            cls._consumption(order),
            StockTransaction.MovementType.PRODUCTION_REVERSAL,
        )
        return success_response({"id": order_id, "orderNumber": number}, f"Production order {number} deleted")

    @classmethod
    def lock_open_order(cls, order_id: int) -> ProductionOrder:
        """Lock an order that can still take work or be fulfilled."""
        order = cls.lock_or_404(order_id)
        cls._guard_mutable(order)
        return order

