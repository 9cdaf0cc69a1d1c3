"""
Request commands for the stock app.

Each command is built from a decoded JSON body with ``from_dict`` and
validated there, so services only ever receive well-formed input. Update
commands enumerate the fields a client may change; any other key is
rejected instead of being merged into the stored record.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from stock.models import InventoryItem, ProductionOrder
from stock.services.base_service import ValidationError


# =============================================================================
# FIELD PARSERS
# =============================================================================

def ensure_dict(data: Any) -> Dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def reject_unknown(data: Dict, allowed, protected=()) -> None:
    for key in data:
        if key in protected:
            raise ValidationError(f"{key} cannot be changed", key)
        if key not in allowed:
            raise ValidationError(f"Unknown field: {key}", key)


def parse_str(data: Dict, key: str, required: bool = True, max_length: int = None) -> Optional[str]:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationError(f"{key} is required", key)
        return None if value is None else ""
    if not isinstance(value, (str, int)):
        raise ValidationError(f"{key} must be a string", key)
    value = str(value).strip()
    if max_length and len(value) > max_length:
        raise ValidationError(f"{key} must be at most {max_length} characters", key)
    return value


def parse_decimal(data: Dict, key: str, required: bool = True,
                  minimum: Decimal = None, positive: bool = False,
                  max_digits: int = 15, decimal_places: int = 4) -> Optional[Decimal]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required", key)
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number", key)
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{key} must be a number", key)
    if not number.is_finite():
        raise ValidationError(f"{key} must be a number", key)
    # Must fit the DecimalField it is stored in
    if -number.normalize().as_tuple().exponent > decimal_places:
        raise ValidationError(f"{key} must have at most {decimal_places} decimal places", key)
    if number and number.adjusted() + 1 > max_digits - decimal_places:
        raise ValidationError(f"{key} is too large", key)
    if positive and number <= 0:
        raise ValidationError(f"{key} must be greater than 0", key)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{key} must be at least {minimum}", key)
    return number


def parse_int(data: Dict, key: str, required: bool = True,
              minimum: int = None) -> Optional[int]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required", key)
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer", key)
    try:
        number = int(str(value))
    except ValueError:
        raise ValidationError(f"{key} must be an integer", key)
    if minimum is not None and number < minimum:
        raise ValidationError(f"{key} must be at least {minimum}", key)
    return number


def parse_timestamp(data: Dict, key: str, required: bool = True) -> Optional[datetime]:
    value = data.get(key)
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required", key)
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO 8601 date or datetime", key)

    parsed = parse_datetime(value)
    if parsed is None:
        day = parse_date(value)
        if day is None:
            raise ValidationError(f"{key} must be an ISO 8601 date or datetime", key)
        parsed = datetime(day.year, day.month, day.day)
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def parse_choice(data: Dict, key: str, choices, required: bool = True,
                 normalize=None) -> Optional[str]:
    value = parse_str(data, key, required=required)
    if value is None:
        return None
    if normalize:
        value = normalize(value)
    allowed = [c for c, _ in choices]
    if value not in allowed:
        raise ValidationError(f"{key} must be one of: {', '.join(allowed)}", key)
    return value


def _item_type(value: str) -> str:
    return value.capitalize()


class UpdateCommand:
    def changes(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def __bool__(self):
        return bool(self.changes())


# =============================================================================
# INVENTORY
# =============================================================================

@dataclass
class InventoryItemDraft:
    item_code: str
    item_type: str
    name: str
    quantity: Decimal
    unit: str
    supplier: str = ""
    bill_number: str = ""
    price_per_unit: Decimal = Decimal("0")

    @classmethod
    def from_dict(cls, data: Dict) -> "InventoryItemDraft":
        data = ensure_dict(data)
        return cls(
            item_code=parse_str(data, "itemCode", max_length=30),
            item_type=parse_choice(data, "itemType", InventoryItem.ItemType.choices, normalize=_item_type),
            name=parse_str(data, "name", max_length=200),
            quantity=parse_decimal(data, "quantity", minimum=Decimal("0")),
            unit=parse_str(data, "unit", max_length=20),
            supplier=parse_str(data, "supplier", required=False, max_length=200) or "",
            bill_number=parse_str(data, "billNumber", required=False, max_length=100) or "",
            price_per_unit=parse_decimal(data, "pricePerUnit", required=False, minimum=Decimal("0")) or Decimal("0"),
        )


@dataclass
class InventoryItemUpdate(UpdateCommand):
    name: Optional[str] = None
    item_type: Optional[str] = None
    unit: Optional[str] = None
    supplier: Optional[str] = None
    bill_number: Optional[str] = None
    price_per_unit: Optional[Decimal] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "InventoryItemUpdate":
        data = ensure_dict(data)
        reject_unknown(
            data,
            allowed={"name", "itemType", "unit", "supplier", "billNumber", "pricePerUnit"},
            protected={"id", "itemCode", "quantity"},
        )
        return cls(
            name=parse_str(data, "name", required=False, max_length=200) or None,
            item_type=parse_choice(data, "itemType", InventoryItem.ItemType.choices,
                                   required=False, normalize=_item_type),
            unit=parse_str(data, "unit", required=False, max_length=20) or None,
            supplier=parse_str(data, "supplier", required=False, max_length=200),
            bill_number=parse_str(data, "billNumber", required=False, max_length=100),
            price_per_unit=parse_decimal(data, "pricePerUnit", required=False, minimum=Decimal("0")),
        )


@dataclass
class StockAdjustment:
    ADD = "add"
    SUBTRACT = "subtract"

    qty: Decimal
    operation: str
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "StockAdjustment":
        data = ensure_dict(data)
        operation = (parse_str(data, "operation") or "").lower()
        if operation not in (cls.ADD, cls.SUBTRACT):
            raise ValidationError("operation must be 'add' or 'subtract'", "operation")
        return cls(
            qty=parse_decimal(data, "qty", positive=True),
            operation=operation,
            notes=parse_str(data, "notes", required=False) or "",
        )


# =============================================================================
# RECIPES
# =============================================================================

@dataclass
class RecipeMaterialLine:
    item_id: int
    quantity_required: Decimal

    @classmethod
    def list_from(cls, data: Any) -> List["RecipeMaterialLine"]:
        if isinstance(data, dict):
            data = data.get("materials")
        if not isinstance(data, list):
            raise ValidationError("materials must be a list", "materials")

        lines, seen = [], set()
        for index, raw in enumerate(data):
            raw = ensure_dict(raw)
            line = cls(
                item_id=parse_int(raw, "itemId", minimum=1),
                quantity_required=parse_decimal(raw, "quantityRequired", positive=True),
            )
            if line.item_id in seen:
                raise ValidationError(f"Item {line.item_id} is listed twice", f"materials[{index}].itemId")
            seen.add(line.item_id)
            lines.append(line)
        return lines


@dataclass
class RecipeDraft:
    design_code: str
    name: str
    description: str = ""
    stitches_required: Optional[int] = None
    front_detail: str = ""
    back_detail: str = ""
    materials: List[RecipeMaterialLine] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict) -> "RecipeDraft":
        data = ensure_dict(data)
        return cls(
            design_code=parse_str(data, "designCode", max_length=50).upper(),
            name=parse_str(data, "name", max_length=200),
            description=parse_str(data, "description", required=False) or "",
            stitches_required=parse_int(data, "stitchesRequired", required=False, minimum=0),
            front_detail=parse_str(data, "frontDetail", required=False) or "",
            back_detail=parse_str(data, "backDetail", required=False) or "",
            materials=RecipeMaterialLine.list_from(data["materials"]) if data.get("materials") else [],
        )


@dataclass
class RecipeUpdate(UpdateCommand):
    name: Optional[str] = None
    description: Optional[str] = None
    stitches_required: Optional[int] = None
    front_detail: Optional[str] = None
    back_detail: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "RecipeUpdate":
        data = ensure_dict(data)
        reject_unknown(
            data,
            allowed={"name", "description", "stitchesRequired", "frontDetail", "backDetail"},
            protected={"id", "designCode", "materials"},
        )
        return cls(
            name=parse_str(data, "name", required=False, max_length=200) or None,
            description=parse_str(data, "description", required=False),
            stitches_required=parse_int(data, "stitchesRequired", required=False, minimum=0),
            front_detail=parse_str(data, "frontDetail", required=False),
            back_detail=parse_str(data, "backDetail", required=False),
        )


# =============================================================================
# PURCHASES
# =============================================================================

@dataclass
class PurchaseLine:
    item_code: str
    qty: Decimal
    price_per_unit: Decimal
    # Only used when the code is new to the catalog
    name: Optional[str] = None
    item_type: Optional[str] = None
    unit: Optional[str] = None

    @classmethod
    def list_from(cls, data: Any) -> List["PurchaseLine"]:
        if not isinstance(data, list) or not data:
            raise ValidationError("items must be a non-empty list", "items")
        lines = []
        for raw in data:
            raw = ensure_dict(raw)
            lines.append(cls(
                item_code=parse_str(raw, "itemCode", max_length=30),
                qty=parse_decimal(raw, "qty", positive=True),
                price_per_unit=parse_decimal(raw, "pricePerUnit", minimum=Decimal("0")),
                name=parse_str(raw, "name", required=False, max_length=200) or None,
                item_type=parse_choice(raw, "itemType", InventoryItem.ItemType.choices,
                                       required=False, normalize=_item_type),
                unit=parse_str(raw, "unit", required=False, max_length=20) or None,
            ))
        return lines


@dataclass
class PurchaseDraft:
    supplier: str
    bill_number: str
    items: List[PurchaseLine]
    total_amount: Decimal
    contact: str = ""
    purchase_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "PurchaseDraft":
        data = ensure_dict(data)
        return cls(
            supplier=parse_str(data, "supplier", max_length=200),
            bill_number=parse_str(data, "billNumber", max_length=100),
            items=PurchaseLine.list_from(data.get("items")),
            total_amount=parse_decimal(data, "totalAmount", minimum=Decimal("0"), decimal_places=2),
            contact=parse_str(data, "contact", required=False, max_length=100) or "",
            purchase_date=parse_timestamp(data, "purchaseDate", required=False) or timezone.now(),
        )


@dataclass
class PurchaseUpdate(UpdateCommand):
    supplier: Optional[str] = None
    bill_number: Optional[str] = None
    contact: Optional[str] = None
    total_amount: Optional[Decimal] = None
    purchase_date: Optional[datetime] = None
    items: Optional[List[PurchaseLine]] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "PurchaseUpdate":
        data = ensure_dict(data)
        reject_unknown(
            data,
            allowed={"supplier", "billNumber", "contact", "totalAmount", "purchaseDate", "items"},
            protected={"id", "purchaseNumber"},
        )
        return cls(
            supplier=parse_str(data, "supplier", required=False, max_length=200) or None,
            bill_number=parse_str(data, "billNumber", required=False, max_length=100) or None,
            contact=parse_str(data, "contact", required=False, max_length=100),
            total_amount=parse_decimal(data, "totalAmount", required=False, minimum=Decimal("0"), decimal_places=2),
            purchase_date=parse_timestamp(data, "purchaseDate", required=False),
            items=PurchaseLine.list_from(data["items"]) if "items" in data else None,
        )


# =============================================================================
# PRODUCTION
# =============================================================================

@dataclass
class ProductionOrderDraft:
    recipe_id: int
    target_qty: int
    machine_id: int
    started_at: datetime
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "ProductionOrderDraft":
        data = ensure_dict(data)
        return cls(
            recipe_id=parse_int(data, "recipeId", minimum=1),
            target_qty=parse_int(data, "targetQty", minimum=1),
            machine_id=parse_int(data, "machineId", minimum=1),
            started_at=parse_timestamp(data, "startedAt", required=False) or timezone.now(),
            notes=parse_str(data, "notes", required=False) or "",
        )


@dataclass
class ProductionOrderUpdate(UpdateCommand):
    status: Optional[str] = None
    actual_qty_produced: Optional[int] = None
    target_qty: Optional[int] = None
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "ProductionOrderUpdate":
        data = ensure_dict(data)
        reject_unknown(
            data,
            allowed={"status", "actualQtyProduced", "targetQty", "notes"},
            protected={"id", "orderNumber", "recipeId", "machineId"},
        )
        return cls(
            status=parse_choice(data, "status", ProductionOrder.Status.choices, required=False),
            actual_qty_produced=parse_int(data, "actualQtyProduced", required=False, minimum=0),
            target_qty=parse_int(data, "targetQty", required=False, minimum=1),
            notes=parse_str(data, "notes", required=False),
        )
