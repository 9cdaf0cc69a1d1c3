import logging

from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Q

from main.models import Machine
from stock.services.base_service import (
    BaseService, persist, iso, ValidationError, DuplicateIdentifierError,
)

logger = logging.getLogger(__name__)


class MachineService(BaseService):
    model = Machine

    @staticmethod
    def serialize(machine):
        return {
            'id': machine.id,
            'modelName': machine.model_name,
            'capacity': machine.capacity,
            'status': machine.status,
            'notes': machine.notes,
            'purchaseDate': iso(machine.purchase_date),
            'isActive': machine.is_active,
            'createdAt': iso(machine.created_at),
            'updatedAt': iso(machine.updated_at),
        }

    @staticmethod
    def get_all_machines(page=1, per_page=20, search=None, status=None, include_inactive=False):
        queryset = Machine.objects.all() if include_inactive else Machine.objects.active()

        if search:
            queryset = queryset.filter(Q(model_name__icontains=search) | Q(notes__icontains=search))

        if status:
            queryset = queryset.filter(status=status)

        paginator = Paginator(queryset.order_by('model_name'), per_page)
        page_obj = paginator.get_page(page)

        return {
            'machines': [MachineService.serialize(m) for m in page_obj.object_list],
            'pagination': {
                'page': page_obj.number,
                'perPage': per_page,
                'totalItems': paginator.count,
                'totalPages': paginator.num_pages,
            }
        }

    @classmethod
    def get_machine(cls, machine_id):
        return cls.serialize(cls.get_or_404(machine_id))

    @classmethod
    def create_machine(cls, draft):
        if Machine.objects.filter(model_name__iexact=draft.model_name).exists():
            raise DuplicateIdentifierError('Machine', 'modelName', draft.model_name)

        machine = persist(Machine(
            model_name=draft.model_name,
            capacity=draft.capacity,
            status=draft.status,
            notes=draft.notes,
            purchase_date=draft.purchase_date,
        ), unique_field='model_name')

        logger.info("Machine %s registered", machine.model_name)
        return cls.serialize(machine)

    @classmethod
    @transaction.atomic
    def update_machine(cls, machine_id, command):
        machine = cls.lock_or_404(machine_id)
        changes = command.changes()
        if not changes:
            raise ValidationError("No fields to update")

        name = changes.get('model_name')
        if name and Machine.objects.filter(model_name__iexact=name).exclude(id=machine.id).exists():
            raise DuplicateIdentifierError('Machine', 'modelName', name)

        for field, value in changes.items():
            setattr(machine, field, value)
        persist(machine, unique_field='model_name', update_fields=list(changes) + ['updated_at'])

        return cls.serialize(machine)

    @classmethod
    @transaction.atomic
    def delete_machine(cls, machine_id):
        machine = cls.lock_or_404(machine_id)
        if cls.delete_or_deactivate(machine):
            return {'id': machine_id, 'deleted': True}, 'Machine deleted'
        return {'id': machine_id, 'deleted': False}, 'Machine has production history and was deactivated'
