"""
apps.template_registry.views
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Thin DRF API views for configuration templates.
All business logic is delegated to
:class:`~apps.documents.services.ConfigService`.

Endpoints
---------
GET    /templates/        – List templates (category, search, page, limit)
POST   /templates/        – Create template (staff only)
GET    /templates/{id}/   – Template detail with variables
PATCH  /templates/{id}/   – Update template (staff only)
DELETE /templates/{id}/   – Delete template (staff only)
"""
from __future__ import annotations

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import SAFE_METHODS, IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from apps.documents.services import get_config_service
from common.pagination import parse_page_request
from common.views import ContextAPIView
from .serializers import (
    ConfigTemplateSerializer,
    TemplateCreateSerializer,
    TemplateListResponseSerializer,
    TemplateUpdateSerializer,
)


class _TemplatePermissionMixin:
    """Any authenticated user may read; writes require staff."""

    def get_permissions(self):
        if self.request.method in SAFE_METHODS:
            return [IsAuthenticated()]
        return [IsAdminUser()]


class TemplateListCreateView(_TemplatePermissionMixin, ContextAPIView):
    """GET /templates/ – list; POST /templates/ – create."""

    @extend_schema(
        summary="List Templates",
        parameters=[
            OpenApiParameter("category", str, description="Exact category match."),
            OpenApiParameter("search", str, description="Substring of name, display name or description."),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses={200: TemplateListResponseSerializer},
        tags=["Templates"],
    )
    def get(self, request: Request) -> Response:
        page = parse_page_request(
            request.query_params,
            default_limit=settings.CONFIGS_DEFAULT_PAGE_SIZE,
            max_limit=settings.CONFIGS_MAX_PAGE_SIZE,
        )
        templates, total = get_config_service().list_templates(
            category=request.query_params.get("category") or None,
            search=request.query_params.get("search") or None,
            page=page.page,
            limit=page.limit,
        )
        return Response(
            {
                "templates": ConfigTemplateSerializer(templates, many=True).data,
                "pagination": page.envelope(total),
            }
        )

    @extend_schema(
        summary="Create Template",
        description=(
            "Creates a template and its variables.  ``default_content`` must "
            "parse under ``format`` and ``schema``, when given, must be a valid "
            "JSON schema."
        ),
        request=TemplateCreateSerializer,
        responses={
            201: ConfigTemplateSerializer,
            422: OpenApiResponse(description="Invalid content, schema, or duplicate name."),
        },
        tags=["Templates"],
    )
    def post(self, request: Request) -> Response:
        serializer = TemplateCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        template = get_config_service().create_template(**serializer.validated_data)
        return Response(
            ConfigTemplateSerializer(template).data,
            status=status.HTTP_201_CREATED,
        )


class TemplateDetailView(_TemplatePermissionMixin, ContextAPIView):
    """GET / PATCH / DELETE /templates/{id}/"""

    @extend_schema(
        summary="Get Template",
        responses={200: ConfigTemplateSerializer, 404: OpenApiResponse(description="Not found.")},
        tags=["Templates"],
    )
    def get(self, request: Request, template_id: int) -> Response:
        template = get_config_service().get_template(template_id)
        return Response(ConfigTemplateSerializer(template).data)

    @extend_schema(
        summary="Update Template",
        description="Partial update.  The template format cannot change.",
        request=TemplateUpdateSerializer,
        responses={
            200: ConfigTemplateSerializer,
            404: OpenApiResponse(description="Not found."),
            422: OpenApiResponse(description="Format change or invalid content."),
        },
        tags=["Templates"],
    )
    def patch(self, request: Request, template_id: int) -> Response:
        serializer = TemplateUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        template = get_config_service().update_template(template_id, **serializer.validated_data)
        return Response(ConfigTemplateSerializer(template).data)

    @extend_schema(
        summary="Delete Template",
        description="Documents created from the template are kept and unlinked.",
        responses={204: None, 404: OpenApiResponse(description="Not found.")},
        tags=["Templates"],
    )
    def delete(self, request: Request, template_id: int) -> Response:
        get_config_service().delete_template(template_id)
        return Response(status=status.HTTP_204_NO_CONTENT)
