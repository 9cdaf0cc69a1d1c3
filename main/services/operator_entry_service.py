import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from main.models import Operator, OperatorEntry
from stock.services import ProductionOrderService
from stock.services.base_service import iso, NotFoundError, BusinessRuleError, ConflictError

logger = logging.getLogger(__name__)


class OperatorEntryService:

    @staticmethod
    def serialize(entry):
        return {
            'id': entry.id,
            'productionOrderId': entry.production_order_id,
            'orderNumber': entry.production_order.order_number,
            'operatorId': entry.operator_id,
            'operator': entry.operator.name,
            'activityType': entry.activity_type,
            'startTime': iso(entry.start_time),
            'endTime': iso(entry.end_time),
            'durationMinutes': entry.duration_minutes,
            'notes': entry.notes,
            'isOpen': entry.is_open,
        }

    @staticmethod
    @transaction.atomic
    def start_work(command):
        order = ProductionOrderService.lock_open_order(command.production_order_id)

        try:
            operator = Operator.objects.select_for_update().get(id=command.operator_id)
        except Operator.DoesNotExist:
            raise NotFoundError('Operator', command.operator_id)
        if not operator.is_active:
            raise BusinessRuleError(f"Operator {operator.employee_id} is inactive", 'operator_inactive')

        open_entry = operator.entries.filter(end_time__isnull=True).first()
        if open_entry:
            raise ConflictError(
                f"Operator {operator.name} already has an open entry; stop it first",
                {'entryId': open_entry.id, 'productionOrderId': open_entry.production_order_id}
            )

        try:
            with transaction.atomic():
                entry = OperatorEntry.objects.create(
                    production_order=order,
                    operator=operator,
                    activity_type=command.activity_type,
                    start_time=timezone.now(),
                    notes=command.notes,
                )
        except IntegrityError:
            raise ConflictError(
                f"Operator {operator.name} already has an open entry; stop it first",
                {'operatorId': operator.id}
            )

        logger.info("Operator %s started %s on %s", operator.employee_id, entry.activity_type, order.order_number)
        return OperatorEntryService.serialize(entry)

    @staticmethod
    @transaction.atomic
    def stop_work(command):
        try:
            entry = OperatorEntry.objects.select_for_update().select_related(
                'production_order', 'operator'
            ).get(id=command.entry_id)
        except OperatorEntry.DoesNotExist:
            raise NotFoundError('OperatorEntry', command.entry_id)

        if not entry.is_open:
            raise ConflictError(f"Entry {entry.id} is already stopped", {'entryId': entry.id})

        entry.end_time = timezone.now()
        entry.duration_minutes = int((entry.end_time - entry.start_time).total_seconds() // 60)
        if command.notes:
            stop_note = f"Stop Note: {command.notes}"
            entry.notes = f"{entry.notes}; {stop_note}" if entry.notes else stop_note
        entry.save(update_fields=['end_time', 'duration_minutes', 'notes'])

        logger.info("Operator %s stopped after %s min", entry.operator.employee_id, entry.duration_minutes)
        return OperatorEntryService.serialize(entry)

    @staticmethod
    def get_open_entries():
        entries = OperatorEntry.objects.filter(end_time__isnull=True).select_related(
            'production_order', 'operator'
        ).order_by('start_time', 'id')
        return {
            'entries': [OperatorEntryService.serialize(e) for e in entries],
            'count': len(entries),
        }
