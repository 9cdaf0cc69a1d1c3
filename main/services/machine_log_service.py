import logging

from django.core.paginator import Paginator
from django.db import transaction

from main.models import MachineLog, Operator
from stock.models import ProductionOrder
from stock.services import ProductionOrderService
from stock.services.base_service import iso, ValidationError, NotFoundError, BusinessRuleError

logger = logging.getLogger(__name__)


class MachineLogService:

    @staticmethod
    def serialize(log):
        return {
            'id': log.id,
            'productionOrderId': log.production_order_id,
            'orderNumber': log.production_order.order_number,
            'machineId': log.machine_id,
            'machine': log.machine.model_name,
            'operatorId': log.operator_id,
            'operator': log.operator.name if log.operator else None,
            'logDate': iso(log.log_date),
            'shift': log.shift,
            'workingHours': str(log.working_hours),
            'idleHours': str(log.idle_hours),
            'downtimeHours': str(log.downtime_hours),
            'actualQtyProduced': log.actual_qty_produced,
            'wastageQty': str(log.wastage_qty),
            'notes': log.notes,
            'createdAt': iso(log.created_at),
        }

    @staticmethod
    @transaction.atomic
    def fulfill(command):
        """
        Close a production order with its output and book the machine log.

        The order row stays locked until the log is written, so two
        fulfillments of the same order cannot both succeed.
        """
        order = ProductionOrderService.lock_open_order(command.production_order_id)

        operator = None
        if command.operator_id:
            operator = Operator.objects.filter(id=command.operator_id).first()
            if operator is None:
                raise NotFoundError('Operator', command.operator_id)
            if not operator.is_active:
                raise BusinessRuleError(f"Operator {operator.employee_id} is inactive", 'operator_inactive')

        order.status = ProductionOrder.Status.COMPLETED
        order.actual_qty_produced = command.actual_qty_produced
        order.wastage_qty = command.wastage_qty
        order.completed_at = command.completed_at
        order.save(update_fields=[
            'status', 'actual_qty_produced', 'wastage_qty', 'completed_at', 'updated_at'
        ])

        log = MachineLog.objects.create(
            production_order=order,
            machine_id=order.machine_id,
            operator=operator,
            log_date=command.completed_at,
            shift=command.shift,
            actual_qty_produced=command.actual_qty_produced,
            wastage_qty=command.wastage_qty,
            notes=command.notes or (
                f"Order fulfillment recorded on {command.shift} shift. "
                f"Actual output: {command.actual_qty_produced}. Wastage: {command.wastage_qty}."
            ),
        )

        logger.info(
            "Production order %s completed: %s produced, %s wasted (%s shift)",
            order.order_number, command.actual_qty_produced, command.wastage_qty, command.shift
        )
        return MachineLogService.serialize(log)

    @staticmethod
    def get_logs(page=1, per_page=50, shift=None, machine_id=None):
        queryset = MachineLog.objects.select_related('production_order', 'machine', 'operator')

        if shift:
            shift = shift.upper()
            if shift not in MachineLog.Shift.values:
                raise ValidationError(f"shift must be one of: {', '.join(MachineLog.Shift.values)}", 'shift')
            queryset = queryset.filter(shift=shift)

        if machine_id:
            queryset = queryset.filter(machine_id=machine_id)

        paginator = Paginator(queryset.order_by('-log_date', '-id'), per_page)
        page_obj = paginator.get_page(page)

        return {
            'logs': [MachineLogService.serialize(log) for log in page_obj.object_list],
            'pagination': {
                'page': page_obj.number,
                'perPage': per_page,
                'totalItems': paginator.count,
                'totalPages': paginator.num_pages,
            }
        }
