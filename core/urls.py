"""
URL configuration for the crossborder pricing project.

The `urlpatterns` list routes URLs to views. For more information please see:
    https://docs.djangoproject.com/en/5.1/topics/http/urls/
"""

from django.conf import settings
from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView

urlpatterns = [
    # Admin (routes, country settings, customs tiers, ledger)
    path("admin/", admin.site.urls),
    # API Documentation
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger"),
    # API
    path("api/v1/", include("apps.api.urls", namespace="api")),
    # Health check
    path("health/", include("core.health_urls")),
]

# Debug toolbar (development only)
if settings.DEBUG and "debug_toolbar" in settings.INSTALLED_APPS:
    import debug_toolbar
    from django.urls import URLResolver

    debug_patterns: list[URLResolver] = [
        path("__debug__/", include(debug_toolbar.urls)),
    ]
    urlpatterns = [*debug_patterns, *urlpatterns]
