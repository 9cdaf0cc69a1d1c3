import logging
from typing import Dict, Any, Optional, List, Tuple
from decimal import Decimal

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Model, ProtectedError

from stock.models import DocumentSequence

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    def __init__(self, message: str, code: str = "ERROR", details: Dict = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ServiceError):
    def __init__(self, message: str, field: str = None, details: Dict = None):
        super().__init__(message, "VALIDATION_ERROR", details)
        self.field = field
        if field:
            self.details.setdefault("field", field)


class InvalidItemCodeError(ValidationError):
    def __init__(self, code: Any):
        super().__init__(
            f"Invalid item code: {code!r}. Expected a number or PREFIX-<digits>",
            "itemCode",
            {"value": str(code)}
        )
        self.code = "INVALID_ITEM_CODE"


class NotFoundError(ServiceError):
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"{resource} not found: {identifier}",
            "NOT_FOUND",
            {"resource": resource, "identifier": str(identifier)}
        )


class BusinessRuleError(ServiceError):
    def __init__(self, message: str, rule: str = None):
        super().__init__(message, "BUSINESS_RULE_VIOLATION", {"rule": rule})


class ConflictError(ServiceError):
    def __init__(self, message: str, details: Dict = None):
        super().__init__(message, "CONFLICT", details)


class InsufficientStockError(ServiceError):
    def __init__(self, item_name: str, required: Decimal, available: Decimal, details: Dict = None):
        shortfall = required - available
        super().__init__(
            f"Insufficient stock for {item_name}: required {required}, available {available}",
            "INSUFFICIENT_STOCK",
            {
                "item": item_name,
                "required": str(required),
                "available": str(available),
                "shortfall": str(shortfall),
                **(details or {}),
            }
        )
        self.shortfall = shortfall


class DuplicateIdentifierError(ServiceError):
    def __init__(self, resource: str, field: str, value: Any):
        super().__init__(
            f"{resource} with {field} {value!r} already exists",
            "DUPLICATE_IDENTIFIER",
            {"resource": resource, "field": field, "value": str(value)}
        )


class OrderAlreadyCompletedError(ServiceError):
    def __init__(self, order_number: str):
        super().__init__(
            f"Production order {order_number} is already completed",
            "ORDER_ALREADY_COMPLETED",
            {"order_number": order_number}
        )


class DanglingReferenceError(ServiceError):
    def __init__(self, resource: str, identifier: Any):
        super().__init__(
            f"Cannot reverse stock: {resource} {identifier} no longer exists",
            "DANGLING_REFERENCE",
            {"resource": resource, "identifier": str(identifier)}
        )


class PersistenceError(ServiceError):
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, "PERSISTENCE_FAILURE")


def success_response(data: Any = None, message: str = "Success") -> Dict:
    response = {"success": True, "message": message}
    if data is not None:
        response["data"] = data
    return response


def paginate_queryset(queryset, page: int = 1, per_page: int = 50) -> Tuple[List, Dict]:
    page = max(1, page)
    per_page = min(max(1, per_page), 200)

    total = queryset.count()
    total_pages = (total + per_page - 1) // per_page

    offset = (page - 1) * per_page
    items = list(queryset[offset:offset + per_page])

    return items, {
        "page": page,
        "perPage": per_page,
        "totalItems": total,
        "totalPages": total_pages,
    }


def iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _highest_existing_number(model_class, field: str, prefix: str) -> int:
    highest = 0
    numbers = model_class.objects.filter(
        **{f"{field}__startswith": prefix}
    ).values_list(field, flat=True)
    for number in numbers:
        suffix = number[len(prefix):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def generate_number(sequence: str, model_class, field: str) -> str:
    """
    Next document number for ``sequence`` (e.g. PROD-001, PUR001).

    The counter row is seeded from the highest existing number the first time
    it is used and incremented with an UPDATE, which holds the row lock until
    the caller's transaction ends, so concurrent callers never share a number.
    When two callers race to seed the row, get_or_create keeps the first one
    and the loser increments it.
    """
    config = settings.STOCK_DOCUMENT_NUMBERS[sequence]
    prefix, width = config["prefix"], config["width"]

    with transaction.atomic():
        DocumentSequence.objects.get_or_create(
            name=sequence,
            defaults={"last_value": lambda: _highest_existing_number(model_class, field, prefix)}
        )
        DocumentSequence.objects.filter(name=sequence).update(last_value=F("last_value") + 1)
        value = DocumentSequence.objects.values_list("last_value", flat=True).get(name=sequence)

    return f"{prefix}{value:0{width}d}"


def persist(instance: Model, unique_field: str = None, update_fields: List[str] = None) -> Model:
    """Save inside a savepoint, translating database errors to service errors."""
    try:
        with transaction.atomic():
            instance.save(update_fields=update_fields)
    except IntegrityError as e:
        if unique_field:
            raise DuplicateIdentifierError(
                instance.__class__.__name__, unique_field, getattr(instance, unique_field)
            ) from e
        logger.exception("Integrity error saving %s", instance.__class__.__name__)
        raise PersistenceError() from e
    except DatabaseError as e:
        logger.exception("Database error saving %s", instance.__class__.__name__)
        raise PersistenceError() from e
    return instance


class BaseService:
    model = None

    @classmethod
    def get_by_id(cls, id: int) -> Optional[Model]:
        try:
            return cls.model.objects.get(id=id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            return None

    @classmethod
    def get_or_404(cls, id: int) -> Model:
        obj = cls.get_by_id(id)
        if not obj:
            raise NotFoundError(cls.model.__name__, id)
        return obj

    @classmethod
    def lock_or_404(cls, id: int) -> Model:
        """Fetch and row-lock for the rest of the enclosing transaction."""
        try:
            return cls.model.objects.select_for_update().get(id=id)
        except (cls.model.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(cls.model.__name__, id)

    @classmethod
    def exists(cls, id: int) -> bool:
        return cls.model.objects.filter(id=id).exists()

    @classmethod
    def get_active(cls):
        if hasattr(cls.model, 'is_active'):
            return cls.model.objects.filter(is_active=True)
        return cls.model.objects.all()

    @classmethod
    def delete_or_deactivate(cls, obj: Model) -> bool:
        """
        Delete ``obj``; when history still references it, deactivate instead.
        Returns True when the row was removed.
        """
        try:
            with transaction.atomic():
                obj.delete()
            return True
        except ProtectedError:
            obj.is_active = False
            obj.save(update_fields=["is_active", "updated_at"])
            logger.info("%s %s is referenced by history; deactivated", cls.model.__name__, obj.pk)
            return False
