"""
common.health
~~~~~~~~~~~~~
GET /health/ – liveness and database readiness probe for load balancers.

Returns:
    200  {"status": "healthy",   "checks": {"database": "healthy"}}
    503  {"status": "unhealthy", "checks": {"database": "failed: <msg>"}}

Authentication is not required.
"""
import structlog
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = structlog.get_logger(__name__)


def health_check(request):
    checks: dict[str, str] = {}
    try:
        connection.ensure_connection()
        checks["database"] = "healthy"
    except DatabaseError as exc:
        checks["database"] = f"failed: {exc}"
        logger.error("health_check_db_failure", error=str(exc))

    healthy = all(value == "healthy" for value in checks.values())
    return JsonResponse(
        {"status": "healthy" if healthy else "unhealthy", "checks": checks},
        status=200 if healthy else 503,
    )
