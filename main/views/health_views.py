import logging

from django.conf import settings
from django.db import DatabaseError, connection
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger(__name__)


class HealthView(APIView):
    authentication_classes = []
    permission_classes = []

    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            database = 'ok'
        except DatabaseError as e:
            logger.error("Health check database failure: %s", e)
            database = 'unavailable'

        healthy = database == 'ok'
        return Response(
            {
                'success': healthy,
                'message': 'ok' if healthy else 'degraded',
                'data': {
                    'status': 'ok' if healthy else 'degraded',
                    'mode': getattr(settings, 'DEPLOYMENT_MODE', 'unknown'),
                    'database': database,
                },
            },
            status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        )
