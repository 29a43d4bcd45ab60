"""
common.middleware
~~~~~~~~~~~~~~~~~
Structured JSON request-logging middleware powered by structlog.

Binds ``request_id`` (from ``X-Request-ID`` or freshly generated) into
structlog contextvars for the duration of the request, so every event the
services log carries it.  ``user_id`` is bound as soon as it is known:
here for session-authenticated views, and by
:class:`common.views.ContextAPIView` once DRF has authenticated the caller.
"""
import time
import uuid

import structlog

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class StructuredLoggingMiddleware:
    """
    WSGI middleware that emits one structured log record per HTTP request.

    Log record fields:
        event       – "http_request"
        request_id  – Correlation id, echoed in the ``X-Request-ID`` header
        user_id     – Authenticated user id, or ``None``
        method      – HTTP verb (GET, POST, …)
        path        – URL path
        status      – HTTP response status code (int)
        duration_ms – Round-trip duration in milliseconds (float, 2 dp)
    """

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.monotonic()
        try:
            response = self.get_response(request)
            duration_ms = round((time.monotonic() - start) * 1000, 2)

            logger.info(
                "http_request",
                user_id=_user_id(request),
                method=request.method,
                path=request.get_full_path(),
                status=response.status_code,
                duration_ms=duration_ms,
            )
            response[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    def process_view(self, request, view_func, view_args, view_kwargs):
        # Session auth only; API views bind after DRF authentication.
        bind_user(request)
        return None


def bind_user(request) -> None:
    """Bind the authenticated user's id into the structlog context, if any."""
    user_id = _user_id(request)
    if user_id is not None:
        structlog.contextvars.bind_contextvars(user_id=user_id)


def _user_id(request):
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return user.pk
    return None
