from django.views.decorators.csrf import csrf_exempt
from rest_framework.decorators import api_view

from main.commands import StartWorkCommand, StopWorkCommand
from main.helpers.request import parse_json_body
from main.helpers.response import APIResponse
from main.services.operator_entry_service import OperatorEntryService


@csrf_exempt
@api_view(["POST"])
def start_work(request):
    data, error = parse_json_body(request)
    if error:
        return error

    try:
        entry = OperatorEntryService.start_work(StartWorkCommand.from_dict(data))
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.created(
        data=entry,
        message=f"{entry['operator']} started work on {entry['orderNumber']}"
    )


@csrf_exempt
@api_view(["PUT"])
def stop_work(request):
    data, error = parse_json_body(request)
    if error:
        return error

    try:
        entry = OperatorEntryService.stop_work(StopWorkCommand.from_dict(data))
    except Exception as e:
        return APIResponse.from_exception(e)
    return APIResponse.success(data=entry, message=f"Work entry {entry['id']} stopped")


@csrf_exempt
@api_view(["GET"])
def open_entries(request):
    return APIResponse.success(data=OperatorEntryService.get_open_entries())
