from rest_framework.exceptions import APIException

from main.helpers.response import APIResponse
from stock.services.base_service import ValidationError


def parse_json_body(request):
    """Return ``(data, error_response)`` for a DRF request."""
    try:
        data = request.data
    except APIException as e:
        return None, APIResponse.error(
            message=f"Request body could not be read: {e.detail}",
            code="VALIDATION_ERROR",
            status_code=e.status_code,
        )
    if not data:
        return {}, None
    return data, None


def query_int(request, key, default=None):
    value = request.query_params.get(key)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except ValueError:
        raise ValidationError(f"{key} must be an integer", key)
