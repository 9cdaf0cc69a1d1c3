from typing import Dict, Any, List

from django.db import transaction
from django.db.models import Prefetch, Q

from stock.models import Recipe, RecipeMaterial, InventoryItem
from stock.services.base_service import (
    BaseService, success_response, paginate_queryset, persist, iso,
    ValidationError, NotFoundError, DuplicateIdentifierError,
)


class RecipeService(BaseService):
    model = Recipe

    @classmethod
    def serialize(cls, recipe: Recipe, include_materials: bool = True) -> Dict[str, Any]:
        data = {
            "id": recipe.id,
            "designCode": recipe.design_code,
            "name": recipe.name,
            "description": recipe.description,
            "stitchesRequired": recipe.stitches_required,
            "frontDetail": recipe.front_detail,
            "backDetail": recipe.back_detail,
            "isActive": recipe.is_active,
            "createdAt": iso(recipe.created_at),
            "updatedAt": iso(recipe.updated_at),
        }

        if include_materials:
            data["materials"] = [
                RecipeMaterialService.serialize(material)
                for material in recipe.materials.all()
            ]

        return data

    @classmethod
    def _queryset(cls):
        return cls.model.objects.prefetch_related(
            Prefetch("materials", queryset=RecipeMaterial.objects.select_related("inventory_item"))
        )

    @classmethod
    def list(cls,
             page: int = 1,
             per_page: int = 50,
             search: str = None,
             active_only: bool = True) -> Dict[str, Any]:
        queryset = cls._queryset()

        if active_only:
            queryset = queryset.filter(is_active=True)

        if search:
            queryset = queryset.filter(
                Q(name__icontains=search) |
                Q(design_code__icontains=search)
            )

        recipes, pagination = paginate_queryset(queryset.order_by("design_code"), page, per_page)

        return success_response({
            "recipes": [cls.serialize(r) for r in recipes],
            "pagination": pagination,
        })

    @classmethod
    def get(cls, recipe_id: int) -> Dict[str, Any]:
        recipe = cls._queryset().filter(id=recipe_id).first()
        if not recipe:
            raise NotFoundError("Recipe", recipe_id)
        return success_response(cls.serialize(recipe))

    @classmethod
    @transaction.atomic
    def create(cls, draft) -> Dict[str, Any]:
        if cls.model.objects.filter(design_code=draft.design_code).exists():
            raise DuplicateIdentifierError("Recipe", "designCode", draft.design_code)

        recipe = persist(cls.model(
            design_code=draft.design_code,
            name=draft.name,
            description=draft.description,
            stitches_required=draft.stitches_required,
            front_detail=draft.front_detail,
            back_detail=draft.back_detail,
        ), unique_field="design_code")

        if draft.materials:
            RecipeMaterialService.replace(recipe, draft.materials)

        return success_response(cls.serialize(recipe), f"Recipe {recipe.design_code} created")

    @classmethod
    @transaction.atomic
    def update(cls, recipe_id: int, command) -> Dict[str, Any]:
        recipe = cls.lock_or_404(recipe_id)
        changes = command.changes()
        if not changes:
            raise ValidationError("No fields to update")

        for field, value in changes.items():
            setattr(recipe, field, value)
        persist(recipe, update_fields=list(changes) + ["updated_at"])

        return success_response(cls.serialize(recipe), "Recipe updated")

    @classmethod
    @transaction.atomic
    def delete(cls, recipe_id: int) -> Dict[str, Any]:
        recipe = cls.lock_or_404(recipe_id)
        if cls.delete_or_deactivate(recipe):
            return success_response({"id": recipe_id}, "Recipe deleted")
        return success_response({"id": recipe_id}, "Recipe is used by production orders and was deactivated")

    @classmethod
    @transaction.atomic
    def set_materials(cls, recipe_id: int, lines: List) -> Dict[str, Any]:
        recipe = cls.lock_or_404(recipe_id)
        RecipeMaterialService.replace(recipe, lines)
        return success_response(cls.serialize(recipe), "Recipe materials updated")


class RecipeMaterialService(BaseService):
    model = RecipeMaterial

    @classmethod
    def serialize(cls, material: RecipeMaterial) -> Dict[str, Any]:
        item = material.inventory_item
        return {
            "id": material.id,
            "itemId": item.id,
            "itemCode": item.item_code,
            "name": item.name,
            "unit": item.unit,
            "quantityRequired": str(material.quantity_required),
        }

    @classmethod
    def replace(cls, recipe: Recipe, lines: List) -> List[RecipeMaterial]:
        """Swap the whole bill of materials for ``lines``."""
        item_ids = [line.item_id for line in lines]
        items = InventoryItem.objects.filter(id__in=item_ids, is_active=True).in_bulk()
        for item_id in item_ids:
            if item_id not in items:
                raise NotFoundError("InventoryItem", item_id)

        cls.model.objects.filter(recipe=recipe).delete()
        materials = cls.model.objects.bulk_create([
            cls.model(
                recipe=recipe,
                inventory_item=items[line.item_id],
                quantity_required=line.quantity_required,
            )
            for line in lines
        ])
        return materials
