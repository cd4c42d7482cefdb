"""Health check endpoint for monitoring."""

from django.db import DatabaseError, connection
from django.http import JsonResponse

from core.logging import get_logger

logger = get_logger(__name__)


def health_check(_request: object) -> JsonResponse:
    """
    Health check endpoint.

    Reports database connectivity and how much pricing configuration is
    loaded. Missing configuration does not make the service unhealthy:
    quotes still price through their documented fallbacks.

    Args:
        _request: Django HTTP request object (unused but required by Django).

    Returns:
        JsonResponse with health status.
    """
    checks: dict[str, dict[str, str | int]] = {
        "database": _check_database(),
    }
    if checks["database"]["status"] == "healthy":
        checks["pricing"] = _check_pricing_config()

    all_healthy = all(check.get("status") == "healthy" for check in checks.values())

    health_status = {
        "status": "healthy" if all_healthy else "degraded",
        "checks": checks,
    }

    return JsonResponse(
        health_status,
        status=200 if all_healthy else 503,
    )


def _check_database() -> dict[str, str | int]:
    """Check database connectivity."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return {"status": "healthy"}
    except DatabaseError as e:
        logger.error("Health check database failure", error=str(e))
        return {"status": "unhealthy", "error": str(e)}


def _check_pricing_config() -> dict[str, str | int]:
    """Count configured countries, active routes and active customs tiers."""
    from apps.pricing.models import CountrySettings, CustomsTier, ShippingRoute

    try:
        return {
            "status": "healthy",
            "countries": CountrySettings.objects.count(),
            "routes": ShippingRoute.objects.filter(is_active=True).count(),
            "customs_tiers": CustomsTier.objects.filter(is_active=True).count(),
        }
    except DatabaseError as e:
        logger.error("Health check pricing tables unreadable", error=str(e))
        return {"status": "unhealthy", "error": str(e)}
