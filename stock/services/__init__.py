"""
Stock Services - inventory, purchasing and production business logic

Usage:
    from stock.services import StockLedger, InventoryItemService

    # Book a purchase (creates unknown items, increments known ones)
    purchase = StockLedger.receive_and_adjust(PurchaseDraft.from_dict(body))

    # Manual correction
    InventoryItemService.adjust_stock(item_id=1, adjustment=StockAdjustment.from_dict(body))
"""

# Base utilities
from stock.services.base_service import (
    ServiceError,
    ValidationError,
    InvalidItemCodeError,
    NotFoundError,
    BusinessRuleError,
    ConflictError,
    InsufficientStockError,
    DuplicateIdentifierError,
    OrderAlreadyCompletedError,
    DanglingReferenceError,
    PersistenceError,
    success_response,
    paginate_queryset,
    generate_number,
    persist,
    BaseService,
)

# Ledger
from .ledger_service import StockLedger, normalize_item_code

# Catalog
from .item_service import InventoryItemService, StockTransactionService
from .recipe_service import RecipeService, RecipeMaterialService

# Purchasing & Production
from .purchase_service import PurchaseEntryService
from .production_service import ProductionOrderService


__all__ = [
    # Base
    "ServiceError",
    "ValidationError",
    "InvalidItemCodeError",
    "NotFoundError",
    "BusinessRuleError",
    "ConflictError",
    "InsufficientStockError",
    "DuplicateIdentifierError",
    "OrderAlreadyCompletedError",
    "DanglingReferenceError",
    "PersistenceError",
    "success_response",
    "paginate_queryset",
    "generate_number",
    "persist",
    "BaseService",

    # Ledger
    "StockLedger",
    "normalize_item_code",

    # Catalog
    "InventoryItemService",
    "StockTransactionService",
    "RecipeService",
    "RecipeMaterialService",

    # Purchasing & Production
    "PurchaseEntryService",
    "ProductionOrderService",
]
