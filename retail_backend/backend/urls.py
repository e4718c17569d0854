# backend/urls.py
"""
PROJECT URLS

All API routes live under /api/

- /api/store/       branch master data
- /api/inventory/   items, per-store stock levels, movement ledger
- /api/stock-ops/   the stock operation engine (submit, preview, reverse,
                    transfers, lorry returns, reports, catalog, trips)

Operational maturity:
- /api/health/ (AllowAny) checks DB connectivity.

Security hardening:
- Django admin path is configurable via env var (ADMIN_PATH).
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.db import connections
from django.db.utils import DatabaseError, OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from stockops.catalog import CATALOG_VERSION


# ------------------ API ROOT (PUBLIC) ------------------
@extend_schema(
    responses={
        200: {
            "type": "object",
            "properties": {
                "message": {"type": "string"},
                "auth": {"type": "object"},
                "docs": {"type": "object"},
                "modules": {"type": "object"},
                "catalog_version": {"type": "integer"},
            },
        }
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request):
    return Response(
        {
            "message": "Retail Stock Operations API is running",
            "auth": {
                "jwt_create": "/api/auth/jwt/create/",
                "jwt_refresh": "/api/auth/jwt/refresh/",
            },
            "docs": {
                "swagger": "/api/docs/",
                "schema": "/api/schema/",
            },
            "modules": {
                "stores": "/api/store/stores/",
                "items": "/api/inventory/items/",
                "operations": "/api/stock-ops/operations/",
                "transfers": "/api/stock-ops/transfers/",
                "operation_kinds": "/api/stock-ops/kinds/",
                "next_trip_id": "/api/stock-ops/trips/next/",
            },
            "catalog_version": CATALOG_VERSION,
        }
    )


# ------------------ HEALTH CHECK (PUBLIC) ------------------
@extend_schema(
    responses={
        200: {
            "type": "object",
            "properties": {
                "status": {"type": "string"},
                "db": {"type": "string"},
                "catalog_version": {"type": "integer"},
            },
        },
        503: {
            "type": "object",
            "properties": {
                "status": {"type": "string"},
                "db": {"type": "string"},
                "error": {"type": "string"},
            },
        },
    },
)
@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """
    Answers 200 only when the database accepts a query; terminals poll this
    before submitting queued operations.
    """
    try:
        with connections["default"].cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except OperationalError as exc:
        return Response({"status": "degraded", "db": "down", "error": str(exc)}, status=503)
    except DatabaseError as exc:
        return Response({"status": "degraded", "db": "error", "error": str(exc)}, status=503)

    return Response({"status": "ok", "db": "ok", "catalog_version": CATALOG_VERSION})


# ------------------ ADMIN PATH (HARDENED) ------------------
# Keep the trailing slash. In production pick something non-obvious.
ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"


# ------------------ API ROUTES (ALL UNDER /api/) ------------------
api_urlpatterns = [
    # Health check / root
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    # OpenAPI / Swagger
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    # JWT (SimpleJWT)
    path("auth/jwt/create/", TokenObtainPairView.as_view(), name="jwt-create"),
    path("auth/jwt/refresh/", TokenRefreshView.as_view(), name="jwt-refresh"),
    # App modules
    path("store/", include("store.urls")),
    path("inventory/", include("inventory.urls")),
    path("stock-ops/", include("stockops.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    # Root convenience: visiting / takes you to Swagger docs
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
