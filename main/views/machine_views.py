from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from main.commands import MachineDraft, MachineUpdate
from main.helpers.request import parse_json_body, query_int
from main.helpers.response import APIResponse
from main.services.machine_service import MachineService


@csrf_exempt
@api_view(["GET", "POST"])
def machines(request):
    if request.method == "POST":
        return _create_machine(request)
    return _list_machines(request)


def _list_machines(request):
    try:
        result = MachineService.get_all_machines(
            page=query_int(request, 'page', 1),
            per_page=query_int(request, 'perPage', 20),
            search=request.query_params.get('search'),
            status=request.query_params.get('status'),
            include_inactive=request.query_params.get('includeInactive', 'false').lower() == 'true',
        )
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.success(data=result)


def _create_machine(request):
    data, error = parse_json_body(request)
    if error:
        return error

    try:
        machine = MachineService.create_machine(MachineDraft.from_dict(data))
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.created(data=machine, message=f"Machine {machine['modelName']} registered")


@csrf_exempt
@api_view(["GET", "PUT", "DELETE"])
def machine_detail(request, machine_id):
    try:
        if request.method == "GET":
            return APIResponse.success(data=MachineService.get_machine(machine_id))

        if request.method == "DELETE":
            result, message = MachineService.delete_machine(machine_id)
            return APIResponse.success(data=result, message=message)

        data, error = parse_json_body(request)
        if error:
            return error
        machine = MachineService.update_machine(machine_id, MachineUpdate.from_dict(data))
        return APIResponse.success(data=machine, message='Machine updated')
    except Exception as e:
        return APIResponse.from_exception(e)
