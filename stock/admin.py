from django.contrib import admin
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin, TabularInline
from unfold.decorators import display
from unfold.contrib.filters.admin import (
    RangeDateFilter,
    RangeDateTimeFilter,
    RangeNumericFilter,
)

from .models import (
    InventoryItem, StockTransaction, Recipe, RecipeMaterial,
    PurchaseEntry, PurchaseItem, ProductionOrder, ProductionItem,
)


class ReadOnlyAdminMixin:
    """Documents that move stock are only created and edited through the API."""

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class RecipeMaterialInline(TabularInline):
    model = RecipeMaterial
    extra = 0
    fields = ('inventory_item', 'quantity_required')
    autocomplete_fields = ('inventory_item',)


class PurchaseItemInline(ReadOnlyAdminMixin, TabularInline):
    model = PurchaseItem
    extra = 0
    fields = ('inventory_item', 'quantity', 'price_per_unit', 'line_total_display')
    readonly_fields = fields

    @display(description=_("Line Total"))
    def line_total_display(self, obj):
        return f"{obj.line_total:.2f}"


class ProductionItemInline(ReadOnlyAdminMixin, TabularInline):
    model = ProductionItem
    extra = 0
    fields = ('inventory_item', 'quantity_consumed', 'wastage_qty')
    readonly_fields = fields


@admin.register(InventoryItem)
class InventoryItemAdmin(ModelAdmin):
    list_display = ['item_code', 'name', 'type_badge', 'quantity_display', 'price_per_unit',
                    'supplier', 'active_badge', 'last_purchase_date']
    list_filter = [
        'item_type',
        'is_active',
        ('quantity', RangeNumericFilter),
        ('last_purchase_date', RangeDateTimeFilter),
    ]
    search_fields = ['item_code', 'name', 'supplier']
    list_filter_submit = True
    list_fullwidth = True
    # Quantity only moves through the stock ledger
    readonly_fields = ['quantity', 'last_purchase_date', 'created_at', 'updated_at']

    fieldsets = (
        (_('Item'), {
            'fields': ('item_code', 'item_type', 'name', 'unit', 'is_active')
        }),
        (_('Stock'), {
            'fields': ('quantity', 'price_per_unit')
        }),
        (_('Supply'), {
            'fields': ('supplier', 'bill_number', 'last_purchase_date')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at')
        }),
    )

    @display(description=_("Type"), label=True)
    def type_badge(self, obj):
        colors = {
            InventoryItem.ItemType.FABRIC: 'info',
            InventoryItem.ItemType.THREAD: 'warning',
        }
        return colors.get(obj.item_type, 'info'), obj.get_item_type_display()

    @display(description=_("Quantity"), ordering='quantity')
    def quantity_display(self, obj):
        return f"{obj.quantity.normalize():f} {obj.unit}"

    @display(description=_("Active"), label=True)
    def active_badge(self, obj):
        if obj.is_active:
            return 'success', _("Active")
        return 'danger', _("Inactive")


@admin.register(StockTransaction)
class StockTransactionAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = ['id', 'inventory_item', 'movement_badge', 'quantity', 'quantity_before',
                    'quantity_after', 'reference_display', 'created_at']
    list_filter = [
        'movement_type',
        'reference_type',
        ('created_at', RangeDateTimeFilter),
    ]
    search_fields = ['inventory_item__item_code', 'inventory_item__name', 'notes']
    list_filter_submit = True
    list_fullwidth = True
    list_select_related = ['inventory_item']

    @display(description=_("Movement"), label=True)
    def movement_badge(self, obj):
        color = 'success' if obj.quantity > 0 else 'danger'
        return color, obj.get_movement_type_display()

    @display(description=_("Reference"))
    def reference_display(self, obj):
        if obj.reference_type:
            return f"{obj.reference_type} #{obj.reference_id}"
        return "-"


@admin.register(Recipe)
class RecipeAdmin(ModelAdmin):
    list_display = ['design_code', 'name', 'stitches_required', 'materials_count', 'is_active', 'created_at']
    list_filter = [
        'is_active',
        ('created_at', RangeDateFilter),
    ]
    search_fields = ['design_code', 'name', 'description']
    list_filter_submit = True
    inlines = [RecipeMaterialInline]
    readonly_fields = ['created_at', 'updated_at']

    @display(description=_("Materials"))
    def materials_count(self, obj):
        return obj.materials.count()


@admin.register(PurchaseEntry)
class PurchaseEntryAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = ['purchase_number', 'supplier', 'bill_number', 'total_amount', 'items_count', 'purchase_date']
    list_filter = [
        ('purchase_date', RangeDateTimeFilter),
        ('total_amount', RangeNumericFilter),
    ]
    search_fields = ['purchase_number', 'supplier', 'bill_number']
    list_filter_submit = True
    list_fullwidth = True
    inlines = [PurchaseItemInline]

    @display(description=_("Items"))
    def items_count(self, obj):
        return obj.items.count()


@admin.register(ProductionOrder)
class ProductionOrderAdmin(ReadOnlyAdminMixin, ModelAdmin):
    list_display = ['order_number', 'recipe', 'machine', 'target_qty', 'status_badge',
                    'actual_qty_produced', 'started_at', 'completed_at']
    list_filter = [
        'status',
        'machine',
        ('started_at', RangeDateTimeFilter),
    ]
    search_fields = ['order_number', 'recipe__design_code', 'recipe__name']
    list_filter_submit = True
    list_fullwidth = True
    list_select_related = ['recipe', 'machine']
    inlines = [ProductionItemInline]

    @display(description=_("Status"), label=True)
    def status_badge(self, obj):
        colors = {
            ProductionOrder.Status.SCHEDULED: 'info',
            ProductionOrder.Status.IN_PROGRESS: 'warning',
            ProductionOrder.Status.ON_HOLD: 'warning',
            ProductionOrder.Status.COMPLETED: 'success',
            ProductionOrder.Status.CANCELLED: 'danger',
        }
        return colors.get(obj.status, 'info'), obj.get_status_display()
