import logging

from django.core.paginator import Paginator
from django.db import transaction
from django.db.models import Q

from main.models import Operator
from stock.services.base_service import (
    BaseService, persist, iso, ValidationError, ConflictError, DuplicateIdentifierError,
)

logger = logging.getLogger(__name__)


class OperatorService(BaseService):
    model = Operator

    @staticmethod
    def serialize(operator):
        return {
            'id': operator.id,
            'employeeId': operator.employee_id,
            'name': operator.name,
            'role': operator.role,
            'isActive': operator.is_active,
            'createdAt': iso(operator.created_at),
            'updatedAt': iso(operator.updated_at),
        }

    @staticmethod
    def get_all_operators(page=1, per_page=20, search=None, role=None, include_inactive=False):
        queryset = Operator.objects.all() if include_inactive else Operator.objects.active()

        if search:
            queryset = queryset.filter(Q(name__icontains=search) | Q(employee_id__icontains=search))

        if role:
            queryset = queryset.filter(role__iexact=role)

        paginator = Paginator(queryset.order_by('name'), per_page)
        page_obj = paginator.get_page(page)

        return {
            'operators': [OperatorService.serialize(o) for o in page_obj.object_list],
            'pagination': {
                'page': page_obj.number,
                'perPage': per_page,
                'totalItems': paginator.count,
                'totalPages': paginator.num_pages,
            }
        }

    @classmethod
    def get_operator(cls, operator_id):
        return cls.serialize(cls.get_or_404(operator_id))

    @classmethod
    def create_operator(cls, draft):
        if Operator.objects.filter(employee_id=draft.employee_id).exists():
            raise DuplicateIdentifierError('Operator', 'employeeId', draft.employee_id)

        operator = persist(Operator(
            employee_id=draft.employee_id,
            name=draft.name,
            role=draft.role,
        ), unique_field='employee_id')

        logger.info("Operator %s added", operator.employee_id)
        return cls.serialize(operator)

    @classmethod
    @transaction.atomic
    def update_operator(cls, operator_id, command):
        operator = cls.lock_or_404(operator_id)
        changes = command.changes()
        if not changes:
            raise ValidationError("No fields to update")

        for field, value in changes.items():
            setattr(operator, field, value)
        persist(operator, update_fields=list(changes) + ['updated_at'])

        return cls.serialize(operator)

    @classmethod
    @transaction.atomic
    def delete_operator(cls, operator_id):
        operator = cls.lock_or_404(operator_id)
        if operator.entries.filter(end_time__isnull=True).exists():
            raise ConflictError("Operator has open work entries; stop them first", {'operatorId': operator_id})

        if cls.delete_or_deactivate(operator):
            return {'id': operator_id, 'deleted': True}, 'Operator deleted'
        return {'id': operator_id, 'deleted': False}, 'Operator has work history and was deactivated'
