from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from main.commands import OperatorDraft, OperatorUpdate
from main.helpers.request import parse_json_body, query_int
from main.helpers.response import APIResponse
from main.services.operator_service import OperatorService


@csrf_exempt
@api_view(["GET", "POST"])
def operators(request):
    if request.method == "POST":
        return _create_operator(request)
    return _list_operators(request)


def _list_operators(request):
    try:
        result = OperatorService.get_all_operators(
            page=query_int(request, 'page', 1),
            per_page=query_int(request, 'perPage', 20),
            search=request.query_params.get('search'),
            role=request.query_params.get('role'),
            include_inactive=request.query_params.get('includeInactive', 'false').lower() == 'true',
        )
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.success(data=result)


def _create_operator(request):
    data, error = parse_json_body(request)
    if error:
        return error

    try:
        operator = OperatorService.create_operator(OperatorDraft.from_dict(data))
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.created(data=operator, message=f"Operator {operator['employeeId']} added")


@csrf_exempt
@api_view(["GET", "PUT", "DELETE"])
def operator_detail(request, operator_id):
    try:
        if request.method == "GET":
            return APIResponse.success(data=OperatorService.get_operator(operator_id))

        if request.method == "DELETE":
            result, message = OperatorService.delete_operator(operator_id)
            return APIResponse.success(data=result, message=message)

        data, error = parse_json_body(request)
        if error:
            return error
        operator = OperatorService.update_operator(operator_id, OperatorUpdate.from_dict(data))
        return APIResponse.success(data=operator, message='Operator updated')
    except Exception as e:
        return APIResponse.from_exception(e)
