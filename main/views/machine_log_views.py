from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from main.commands import FulfillmentCommand
from main.helpers.request import parse_json_body, query_int
from main.helpers.response import APIResponse
from main.services.machine_log_service import MachineLogService


@csrf_exempt
@api_view(["PUT"])
def fulfill_order(request):
    data, error = parse_json_body(request)
    if error:
        return error

    try:
        log = MachineLogService.fulfill(FulfillmentCommand.from_dict(data))
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.success(data=log, message=f"Production order {log['orderNumber']} completed")


@csrf_exempt
@api_view(["GET"])
def list_machine_logs(request):
    try:
        result = MachineLogService.get_logs(
            page=query_int(request, 'page', 1),
            per_page=query_int(request, 'perPage', 50),
            shift=request.query_params.get('shift'),
            machine_id=query_int(request, 'machineId'),
        )
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.success(data=result)
