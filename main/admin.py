from django.contrib import admin
from django.urls import reverse
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _
from unfold.admin import ModelAdmin
from unfold.decorators import display
from unfold.contrib.filters.admin import (
    RangeDateFilter,
    RangeDateTimeFilter,
)
from .models import Machine, Operator, MachineLog, OperatorEntry


@admin.register(Machine)
class MachineAdmin(ModelAdmin):
    list_display = ['id', 'model_name', 'capacity', 'status_badge', 'is_active', 'purchase_date']
    list_filter = [
        'status',
        'is_active',
        ('purchase_date', RangeDateFilter),
    ]
    search_fields = ['model_name', 'notes']
    list_filter_submit = True
    readonly_fields = ['created_at', 'updated_at']

    @display(description=_("Status"), label=True)
    def status_badge(self, obj):
        colors = {
            Machine.Status.OPERATIONAL: 'success',
            Machine.Status.MAINTENANCE: 'warning',
            Machine.Status.OUT_OF_SERVICE: 'danger',
        }
        return colors.get(obj.status, 'info'), obj.get_status_display()


@admin.register(Operator)
class OperatorAdmin(ModelAdmin):
    list_display = ['employee_id', 'name', 'role_badge', 'is_active', 'created_at']
    list_filter = ['role', 'is_active']
    search_fields = ['employee_id', 'name']
    list_filter_submit = True
    readonly_fields = ['created_at', 'updated_at']

    @display(description=_("Role"), label=True)
    def role_badge(self, obj):
        colors = {
            Operator.RoleChoices.MANAGER: 'danger',
            Operator.RoleChoices.SUPERVISOR: 'warning',
            Operator.RoleChoices.OPERATOR: 'info',
        }
        return colors.get(obj.role, 'info'), obj.get_role_display()


@admin.register(MachineLog)
class MachineLogAdmin(ModelAdmin):
    list_display = ['id', 'order_link', 'machine', 'operator', 'shift', 'actual_qty_produced',
                    'wastage_qty', 'log_date']
    list_filter = [
        'shift',
        'machine',
        ('log_date', RangeDateTimeFilter),
    ]
    search_fields = ['production_order__order_number', 'machine__model_name', 'notes']
    list_filter_submit = True
    list_fullwidth = True
    list_select_related = ['production_order', 'machine', 'operator']
    readonly_fields = ['production_order', 'machine', 'log_date', 'shift',
                       'actual_qty_produced', 'wastage_qty', 'created_at']

    def has_add_permission(self, request):
        # Logs are written by order fulfillment
        return False

    @display(description=_("Order"))
    def order_link(self, obj):
        url = reverse('admin:stock_productionorder_change', args=[obj.production_order_id])
        return format_html('<a href="{}">{}</a>', url, obj.production_order.order_number)


@admin.register(OperatorEntry)
class OperatorEntryAdmin(ModelAdmin):
    list_display = ['id', 'operator', 'production_order', 'activity_type', 'start_time',
                    'end_time', 'duration_minutes', 'open_badge']
    list_filter = [
        'activity_type',
        ('start_time', RangeDateTimeFilter),
    ]
    search_fields = ['operator__name', 'operator__employee_id', 'production_order__order_number']
    list_filter_submit = True
    list_select_related = ['operator', 'production_order']
    readonly_fields = ['production_order', 'operator', 'start_time', 'end_time', 'duration_minutes', 'created_at']

    def has_add_permission(self, request):
        return False

    @display(description=_("Open"), label=True)
    def open_badge(self, obj):
        if obj.is_open:
            return 'warning', _("Open")
        return 'success', _("Closed")
