import json

from django.http import JsonResponse
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from django.utils.decorators import method_decorator

from main.helpers.response import APIResponse
from stock.commands import (
    InventoryItemDraft, InventoryItemUpdate, StockAdjustment,
    RecipeDraft, RecipeUpdate, RecipeMaterialLine,
    PurchaseDraft, PurchaseUpdate,
    ProductionOrderDraft, ProductionOrderUpdate,
)
from stock.services import (
    ValidationError, InsufficientStockError,
    InventoryItemService, StockTransactionService,
    RecipeService,
    PurchaseEntryService,
    ProductionOrderService,
)


def handle_service_error(e: Exception, status: int = None):
    return APIResponse.from_exception(e, status)


class BaseStockView(View):
    @method_decorator(csrf_exempt)
    def dispatch(self, request, *args, **kwargs):
        return super().dispatch(request, *args, **kwargs)

    def get_json_body(self, request):
        if not request.body:
            return {}
        try:
            return json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Request body is not valid JSON")

    def query_int(self, request, key: str, default: int = None):
        value = request.GET.get(key)
        if value in (None, ""):
            return default
        try:
            return int(value)
        except ValueError:
            raise ValidationError(f"{key} must be an integer", key)

    def query_bool(self, request, key: str, default: bool = False) -> bool:
        value = request.GET.get(key)
        if value is None:
            return default
        return value.lower() in ("1", "true", "yes")

    def success(self, data: dict, status: int = 200):
        return JsonResponse(data, status=status)


# ==================== INVENTORY ====================

class InventoryListView(BaseStockView):

    def get(self, request):
        try:
            result = InventoryItemService.list(
                page=self.query_int(request, "page", 1),
                per_page=self.query_int(request, "perPage", 50),
                item_type=request.GET.get("itemType"),
                search=request.GET.get("search"),
                active_only=not self.query_bool(request, "includeInactive"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            draft = InventoryItemDraft.from_dict(self.get_json_body(request))
            result = InventoryItemService.create(draft)
            return self.success(result, 201)
        except Exception as e:
            return handle_service_error(e)


class InventorySummaryView(BaseStockView):

    def get(self, request):
        try:
            return self.success(InventoryItemService.get_summary())
        except Exception as e:
            return handle_service_error(e)


class InventoryByCodeView(BaseStockView):

    def get(self, request, item_code):
        try:
            return self.success(InventoryItemService.get_by_code(item_code))
        except Exception as e:
            return handle_service_error(e)


class InventoryDetailView(BaseStockView):

    def get(self, request, item_id):
        try:
            return self.success(InventoryItemService.get(item_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, item_id):
        try:
            command = InventoryItemUpdate.from_dict(self.get_json_body(request))
            return self.success(InventoryItemService.update(item_id, command))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, item_id):
        try:
            return self.success(InventoryItemService.delete(item_id))
        except Exception as e:
            return handle_service_error(e)


class InventoryStockView(BaseStockView):

    def put(self, request, item_id):
        try:
            adjustment = StockAdjustment.from_dict(self.get_json_body(request))
            return self.success(InventoryItemService.adjust_stock(item_id, adjustment))
        except InsufficientStockError as e:
            # Manual corrections report a shortfall as a bad request
            return handle_service_error(e, status=400)
        except Exception as e:
            return handle_service_error(e)


class InventoryTransactionsView(BaseStockView):

    def get(self, request, item_id):
        try:
            result = StockTransactionService.get_item_history(
                item_id,
                page=self.query_int(request, "page", 1),
                per_page=self.query_int(request, "perPage", 50),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)


# ==================== RECIPES ====================

class RecipeListView(BaseStockView):

    def get(self, request):
        try:
            result = RecipeService.list(
                page=self.query_int(request, "page", 1),
                per_page=self.query_int(request, "perPage", 50),
                search=request.GET.get("search"),
                active_only=not self.query_bool(request, "includeInactive"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            draft = RecipeDraft.from_dict(self.get_json_body(request))
            return self.success(RecipeService.create(draft), 201)
        except Exception as e:
            return handle_service_error(e)


class RecipeDetailView(BaseStockView):

    def get(self, request, recipe_id):
        try:
            return self.success(RecipeService.get(recipe_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, recipe_id):
        try:
            command = RecipeUpdate.from_dict(self.get_json_body(request))
            return self.success(RecipeService.update(recipe_id, command))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, recipe_id):
        try:
            return self.success(RecipeService.delete(recipe_id))
        except Exception as e:
            return handle_service_error(e)


class RecipeMaterialsView(BaseStockView):

    def put(self, request, recipe_id):
        try:
            lines = RecipeMaterialLine.list_from(self.get_json_body(request))
            return self.success(RecipeService.set_materials(recipe_id, lines))
        except Exception as e:
            return handle_service_error(e)


# ==================== PURCHASES ====================

class PurchaseListView(BaseStockView):

    def get(self, request):
        try:
            result = PurchaseEntryService.list(
                page=self.query_int(request, "page", 1),
                per_page=self.query_int(request, "perPage", 50),
                supplier=request.GET.get("supplier"),
                search=request.GET.get("search"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            draft = PurchaseDraft.from_dict(self.get_json_body(request))
            return self.success(PurchaseEntryService.create(draft), 201)
        except Exception as e:
            return handle_service_error(e)


class PurchaseDetailView(BaseStockView):

    def get(self, request, purchase_id):
        try:
            return self.success(PurchaseEntryService.get(purchase_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, purchase_id):
        try:
            command = PurchaseUpdate.from_dict(self.get_json_body(request))
            return self.success(PurchaseEntryService.update(purchase_id, command))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, purchase_id):
        try:
            return self.success(PurchaseEntryService.delete(purchase_id))
        except Exception as e:
            return handle_service_error(e)


# ==================== PRODUCTION ====================

class ProductionOrderListView(BaseStockView):

    def get(self, request):
        try:
            result = ProductionOrderService.list(
                page=self.query_int(request, "page", 1),
                per_page=self.query_int(request, "perPage", 50),
                status=request.GET.get("status"),
                machine_id=self.query_int(request, "machineId"),
            )
            return self.success(result)
        except Exception as e:
            return handle_service_error(e)

    def post(self, request):
        try:
            draft = ProductionOrderDraft.from_dict(self.get_json_body(request))
            return self.success(ProductionOrderService.create(draft), 201)
        except Exception as e:
            return handle_service_error(e)


class ProductionOrderOpenView(BaseStockView):

    def get(self, request):
        try:
            return self.success(ProductionOrderService.get_open())
        except Exception as e:
            return handle_service_error(e)


class ProductionAvailabilityView(BaseStockView):

    def get(self, request):
        try:
            recipe_id = self.query_int(request, "recipeId")
            target_qty = self.query_int(request, "targetQty")
            if not recipe_id:
                raise ValidationError("recipeId is required", "recipeId")
            if not target_qty or target_qty < 1:
                raise ValidationError("targetQty must be greater than 0", "targetQty")
            return self.success(ProductionOrderService.check_availability(recipe_id, target_qty))
        except Exception as e:
            return handle_service_error(e)


class ProductionOrderDetailView(BaseStockView):

    def get(self, request, order_id):
        try:
            return self.success(ProductionOrderService.get(order_id))
        except Exception as e:
            return handle_service_error(e)

    def put(self, request, order_id):
        try:
            command = ProductionOrderUpdate.from_dict(self.get_json_body(request))
            return self.success(ProductionOrderService.update(order_id, command))
        except Exception as e:
            return handle_service_error(e)

    def delete(self, request, order_id):
        try:
            return self.success(ProductionOrderService.delete(order_id))
        except Exception as e:
            return handle_service_error(e)
