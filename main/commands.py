"""
Request commands for machines, operators and shop floor logs.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Optional

from django.utils.dateparse import parse_date

from main.models import Machine, Operator, MachineLog
from stock.commands import (
    UpdateCommand, ensure_dict, reject_unknown,
    parse_str, parse_int, parse_decimal, parse_timestamp, parse_choice,
)
from stock.services.base_service import ValidationError


def parse_day(data: Dict, key: str) -> Optional[date]:
    value = data.get(key)
    if value in (None, ""):
        return None
    parsed = parse_date(value) if isinstance(value, str) else None
    if parsed is None:
        raise ValidationError(f"{key} must be a date (YYYY-MM-DD)", key)
    return parsed


# =============================================================================
# MACHINES & OPERATORS
# =============================================================================

@dataclass
class MachineDraft:
    model_name: str
    capacity: int
    status: str = Machine.Status.OPERATIONAL
    notes: str = ""
    purchase_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "MachineDraft":
        data = ensure_dict(data)
        return cls(
            model_name=parse_str(data, "modelName", max_length=100),
            capacity=parse_int(data, "capacity", minimum=1),
            status=parse_choice(data, "status", Machine.Status.choices, required=False)
            or Machine.Status.OPERATIONAL,
            notes=parse_str(data, "notes", required=False) or "",
            purchase_date=parse_day(data, "purchaseDate"),
        )


@dataclass
class MachineUpdate(UpdateCommand):
    model_name: Optional[str] = None
    capacity: Optional[int] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    purchase_date: Optional[date] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "MachineUpdate":
        data = ensure_dict(data)
        reject_unknown(
            data,
            allowed={"modelName", "capacity", "status", "notes", "purchaseDate"},
            protected={"id", "isActive"},
        )
        return cls(
            model_name=parse_str(data, "modelName", required=False, max_length=100) or None,
            capacity=parse_int(data, "capacity", required=False, minimum=1),
            status=parse_choice(data, "status", Machine.Status.choices, required=False),
            notes=parse_str(data, "notes", required=False),
            purchase_date=parse_day(data, "purchaseDate"),
        )


@dataclass
class OperatorDraft:
    employee_id: str
    name: str
    role: str = Operator.RoleChoices.OPERATOR

    @classmethod
    def from_dict(cls, data: Dict) -> "OperatorDraft":
        data = ensure_dict(data)
        return cls(
            employee_id=parse_str(data, "employeeId", max_length=30).upper(),
            name=parse_str(data, "name", max_length=100),
            role=parse_choice(data, "role", Operator.RoleChoices.choices, required=False,
                              normalize=str.capitalize) or Operator.RoleChoices.OPERATOR,
        )


@dataclass
class OperatorUpdate(UpdateCommand):
    name: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> "OperatorUpdate":
        data = ensure_dict(data)
        reject_unknown(data, allowed={"name", "role"}, protected={"id", "employeeId", "isActive"})
        return cls(
            name=parse_str(data, "name", required=False, max_length=100) or None,
            role=parse_choice(data, "role", Operator.RoleChoices.choices, required=False,
                              normalize=str.capitalize),
        )


# =============================================================================
# SHOP FLOOR
# =============================================================================

@dataclass
class FulfillmentCommand:
    production_order_id: int
    actual_qty_produced: int
    wastage_qty: Decimal
    completed_at: datetime
    shift: str
    operator_id: Optional[int] = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "FulfillmentCommand":
        data = ensure_dict(data)
        return cls(
            production_order_id=parse_int(data, "productionOrderId", minimum=1),
            actual_qty_produced=parse_int(data, "actualQtyProduced", minimum=0),
            wastage_qty=parse_decimal(data, "wastageQty", minimum=Decimal("0")),
            completed_at=parse_timestamp(data, "completedAt"),
            shift=parse_choice(data, "shift", MachineLog.Shift.choices, normalize=str.upper),
            operator_id=parse_int(data, "operatorId", required=False, minimum=1),
            notes=parse_str(data, "notes", required=False) or "",
        )


@dataclass
class StartWorkCommand:
    production_order_id: int
    operator_id: int
    activity_type: str = "Production"
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "StartWorkCommand":
        data = ensure_dict(data)
        return cls(
            production_order_id=parse_int(data, "productionOrderId", minimum=1),
            operator_id=parse_int(data, "operatorId", minimum=1),
            activity_type=parse_str(data, "activityType", required=False, max_length=50) or "Production",
            notes=parse_str(data, "notes", required=False) or "",
        )


@dataclass
class StopWorkCommand:
    entry_id: int
    notes: str = ""

    @classmethod
    def from_dict(cls, data: Dict) -> "StopWorkCommand":
        data = ensure_dict(data)
        return cls(
            entry_id=parse_int(data, "entryId", minimum=1),
            notes=parse_str(data, "notes", required=False) or "",
        )
