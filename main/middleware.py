import logging

from main.helpers.response import APIResponse

logger = logging.getLogger(__name__)


class JSONErrorMiddleware:
    """Keep /api/ responses in the JSON envelope, including errors that escape a view."""

    API_PREFIX = "/api/"

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)
        if (
            response.status_code == 404
            and request.path.startswith(self.API_PREFIX)
            and not response.get("Content-Type", "").startswith("application/json")
        ):
            return APIResponse.not_found(message=f"No endpoint at {request.path}")
        return response

    def process_exception(self, request, exception):
        if not request.path.startswith(self.API_PREFIX):
            return None
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return APIResponse.server_error(exception)
