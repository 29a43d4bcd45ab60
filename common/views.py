"""
common.views
~~~~~~~~~~~~
Base class for the project's API views.
"""
from rest_framework.views import APIView

from common.middleware import bind_user


class ContextAPIView(APIView):
    """
    ``APIView`` that binds the DRF-authenticated ``user_id`` into the
    structlog context, so service events logged during the request carry it.
    """

    def perform_authentication(self, request):
        super().perform_authentication(request)
        bind_user(request)
