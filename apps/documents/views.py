"""
apps.documents.views
~~~~~~~~~~~~~~~~~~~~~
Thin DRF API views for user configuration documents, their versions, the
stateless format utilities, and imports.
All business logic is delegated to
:class:`~apps.documents.services.ConfigService`.

Endpoints
---------
GET    /configs/                                – List own documents
POST   /configs/                                – Create (template or custom)
GET    /configs/{id}/                           – Document detail
PUT    /configs/{id}/                           – Update content, append version
DELETE /configs/{id}/                           – Delete with history
GET    /configs/{id}/versions/                  – Version history
GET    /configs/{id}/versions/{vid}/            – One version
POST   /configs/{id}/versions/{vid}/restore/    – Restore as a new version
GET    /configs/{id}/export/?format=            – Download in a format
POST   /configs/detect-format/                  – Detect format of content
POST   /configs/convert/                        – Convert between formats
POST   /configs/validate/                       – Validate content
POST   /imports/                                – Record an import
GET    /imports/{id}/                           – Import detail
PATCH  /imports/{id}/                           – Advance import status (staff)
"""
from __future__ import annotations

from django.conf import settings
from django.http import HttpResponse
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from apps.config_core.services import ConfigFormat
from apps.documents.services import get_config_service
from common.exceptions import NotFoundError
from common.pagination import parse_page_request
from common.views import ContextAPIView
from .serializers import (
    ConfigImportSerializer,
    ConfigVersionListResponseSerializer,
    ConfigVersionSerializer,
    ConvertFormatRequestSerializer,
    DetectFormatRequestSerializer,
    ImportCreateSerializer,
    ImportStatusUpdateSerializer,
    UserConfigCreateSerializer,
    UserConfigListResponseSerializer,
    UserConfigSerializer,
    UserConfigUpdateSerializer,
    ValidateConfigRequestSerializer,
    ValidationErrorResponseSerializer,
)

EXPORT_CONTENT_TYPES = {
    ConfigFormat.JSON: "application/json",
    ConfigFormat.YAML: "application/x-yaml",
    ConfigFormat.TOML: "application/toml",
    ConfigFormat.ENV: "text/plain",
}

NOT_FOUND = OpenApiResponse(description="Not found, or owned by another user.")
INVALID = OpenApiResponse(response=ValidationErrorResponseSerializer, description="Validation failed.")


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class ConfigListCreateView(ContextAPIView):
    """GET /configs/ – list own documents; POST /configs/ – create one."""

    @extend_schema(
        summary="List Configurations",
        parameters=[
            OpenApiParameter("template_id", int, description="Only documents built from this template."),
            OpenApiParameter("page", int),
            OpenApiParameter("limit", int),
        ],
        responses={200: UserConfigListResponseSerializer},
        tags=["Configurations"],
    )
    def get(self, request: Request) -> Response:
        page = parse_page_request(
            request.query_params,
            default_limit=settings.CONFIGS_DEFAULT_PAGE_SIZE,
            max_limit=settings.CONFIGS_MAX_PAGE_SIZE,
        )
        raw_template_id = request.query_params.get("template_id")
        template_id = int(raw_template_id) if raw_template_id and raw_template_id.isdigit() else None

        configs, total = get_config_service().list_configs(
            request.user.id, template_id=template_id, page=page.page, limit=page.limit
        )
        return Response(
            {
                "configs": UserConfigSerializer(configs, many=True).data,
                "pagination": page.envelope(total),
            }
        )

    @extend_schema(
        summary="Create Configuration",
        description=(
            "With ``template_id``, copies the template's default content and "
            "format.  Without it, ``format`` and ``content`` define a custom "
            "document.  Either way version 1 is recorded."
        ),
        request=UserConfigCreateSerializer,
        responses={201: UserConfigSerializer, 404: NOT_FOUND, 422: INVALID},
        tags=["Configurations"],
    )
    def post(self, request: Request) -> Response:
        serializer = UserConfigCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        service = get_config_service()

        if vd["template_id"] is not None:
            config = service.create_from_template(request.user.id, vd["template_id"], vd["name"])
        else:
            config = service.create_custom_config(
                request.user.id,
                vd["name"],
                vd["format"],
                vd["content"],
                description=vd["description"],
            )
        return Response(UserConfigSerializer(config).data, status=status.HTTP_201_CREATED)


class ConfigDetailView(ContextAPIView):
    """GET / PUT / DELETE /configs/{id}/"""

    @extend_schema(
        summary="Get Configuration",
        responses={200: UserConfigSerializer, 404: NOT_FOUND},
        tags=["Configurations"],
    )
    def get(self, request: Request, config_id: int) -> Response:
        config = get_config_service().get_config(config_id, request.user.id)
        return Response(UserConfigSerializer(config).data)

    @extend_schema(
        summary="Update Configuration",
        description=(
            "Replaces the content (optionally changing the format) and appends "
            "the next version.  Content that does not parse is rejected and "
            "nothing is stored."
        ),
        request=UserConfigUpdateSerializer,
        responses={
            200: UserConfigSerializer,
            404: NOT_FOUND,
            409: OpenApiResponse(description="Concurrent update; retry."),
            422: INVALID,
        },
        tags=["Configurations"],
    )
    def put(self, request: Request, config_id: int) -> Response:
        serializer = UserConfigUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        config = get_config_service().update_config(
            config_id,
            request.user.id,
            vd["content"],
            vd["change_note"],
            format=vd["format"],
        )
        return Response(UserConfigSerializer(config).data)

    @extend_schema(
        summary="Delete Configuration",
        description="Deletes the document together with its version history.",
        responses={204: None, 404: NOT_FOUND},
        tags=["Configurations"],
    )
    def delete(self, request: Request, config_id: int) -> Response:
        get_config_service().delete_config(config_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

class ConfigVersionListView(ContextAPIView):
    """GET /configs/{id}/versions/ – most recent first."""

    @extend_schema(
        summary="List Versions",
        parameters=[OpenApiParameter("page", int), OpenApiParameter("limit", int)],
        responses={200: ConfigVersionListResponseSerializer, 404: NOT_FOUND},
        tags=["Versions"],
    )
    def get(self, request: Request, config_id: int) -> Response:
        page = parse_page_request(
            request.query_params,
            default_limit=settings.VERSIONS_DEFAULT_PAGE_SIZE,
            max_limit=settings.VERSIONS_MAX_PAGE_SIZE,
        )
        versions, total = get_config_service().list_versions(
            config_id, request.user.id, page=page.page, limit=page.limit
        )
        return Response(
            {
                "versions": ConfigVersionSerializer(versions, many=True).data,
                "pagination": page.envelope(total),
            }
        )


class ConfigVersionDetailView(ContextAPIView):
    """GET /configs/{id}/versions/{vid}/"""

    @extend_schema(
        summary="Get Version",
        responses={200: ConfigVersionSerializer, 404: NOT_FOUND},
        tags=["Versions"],
    )
    def get(self, request: Request, config_id: int, version_id: int) -> Response:
        version = get_config_service().get_version(version_id, request.user.id)
        if version.config_id != config_id:
            raise NotFoundError(f"Version {version_id} not found for configuration {config_id}.")
        return Response(ConfigVersionSerializer(version).data)


class ConfigVersionRestoreView(ContextAPIView):
    """POST /configs/{id}/versions/{vid}/restore/"""

    @extend_schema(
        summary="Restore Version",
        description=(
            "Makes the selected version's content current by appending a new "
            "version noted ``Restored to version <N>``.  History is unchanged."
        ),
        request=None,
        responses={200: UserConfigSerializer, 404: NOT_FOUND, 409: OpenApiResponse(description="Conflict."), 422: INVALID},
        tags=["Versions"],
    )
    def post(self, request: Request, config_id: int, version_id: int) -> Response:
        config = get_config_service().restore_version(config_id, version_id, request.user.id)
        return Response(UserConfigSerializer(config).data)


# ---------------------------------------------------------------------------
# Export and format utilities
# ---------------------------------------------------------------------------

class ConfigExportView(ContextAPIView):
    """GET /configs/{id}/export/?format=yaml – download as an attachment."""

    @extend_schema(
        summary="Export Configuration",
        parameters=[
            OpenApiParameter(
                "format",
                str,
                enum=[fmt.value for fmt in ConfigFormat],
                description="Target format; defaults to the server's export default.",
            )
        ],
        responses={(200, "text/plain"): str, 404: NOT_FOUND, 422: INVALID},
        tags=["Configurations"],
    )
    def get(self, request: Request, config_id: int) -> HttpResponse:
        content, fmt = get_config_service().export_config(
            config_id, request.user.id, request.query_params.get("format") or None
        )
        response = HttpResponse(content, content_type=EXPORT_CONTENT_TYPES[fmt])
        response["Content-Disposition"] = f"attachment; filename=config.{fmt.value}"
        return response


class DetectFormatView(ContextAPIView):
    """POST /configs/detect-format/"""

    @extend_schema(
        summary="Detect Format",
        request=DetectFormatRequestSerializer,
        responses={200: OpenApiResponse(description='{"format": "yaml"}'), 422: INVALID},
        tags=["Formats"],
    )
    def post(self, request: Request) -> Response:
        serializer = DetectFormatRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        fmt = get_config_service().detect_format(serializer.validated_data["content"])
        return Response({"format": fmt.value})


class ConvertFormatView(ContextAPIView):
    """POST /configs/convert/"""

    @extend_schema(
        summary="Convert Format",
        description="Parse-then-reserialize; values may change type between formats.",
        request=ConvertFormatRequestSerializer,
        responses={200: OpenApiResponse(description='{"content": "..."}'), 422: INVALID},
        tags=["Formats"],
    )
    def post(self, request: Request) -> Response:
        serializer = ConvertFormatRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        converted = get_config_service().convert_format(
            vd["content"], vd["from_format"], vd["to_format"]
        )
        return Response({"content": converted})


class ValidateConfigView(ContextAPIView):
    """POST /configs/validate/"""

    @extend_schema(
        summary="Validate Configuration",
        description=(
            "Checks the content parses under ``format``.  With ``template_id`` "
            "the template's JSON schema and variables are enforced too; every "
            "violation is listed in ``errors``."
        ),
        request=ValidateConfigRequestSerializer,
        responses={200: OpenApiResponse(description='{"valid": true}'), 404: NOT_FOUND, 422: INVALID},
        tags=["Formats"],
    )
    def post(self, request: Request) -> Response:
        serializer = ValidateConfigRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        get_config_service().validate_config(vd["content"], vd["format"], template_id=vd["template_id"])
        return Response({"valid": True, "message": "Configuration is valid"})


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

class ImportCreateView(ContextAPIView):
    """POST /imports/ – record a pending import."""

    @extend_schema(
        summary="Create Import",
        request=ImportCreateSerializer,
        responses={201: ConfigImportSerializer, 422: INVALID},
        tags=["Imports"],
    )
    def post(self, request: Request) -> Response:
        serializer = ImportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        record = get_config_service().import_config(
            request.user.id, vd["source_type"], vd["source_url"]
        )
        return Response(ConfigImportSerializer(record).data, status=status.HTTP_201_CREATED)


class ImportDetailView(ContextAPIView):
    """GET /imports/{id}/ – owner view; PATCH /imports/{id}/ – status (staff)."""

    def get_permissions(self):
        if self.request.method == "PATCH":
            return [IsAdminUser()]
        return [IsAuthenticated()]

    @extend_schema(
        summary="Get Import",
        responses={200: ConfigImportSerializer, 404: NOT_FOUND},
        tags=["Imports"],
    )
    def get(self, request: Request, import_id: int) -> Response:
        record = get_config_service().get_import(import_id, request.user.id)
        return Response(ConfigImportSerializer(record).data)

    @extend_schema(
        summary="Update Import Status",
        description="Allowed moves: pending → processing → completed | failed.",
        request=ImportStatusUpdateSerializer,
        responses={200: ConfigImportSerializer, 404: NOT_FOUND, 422: INVALID},
        tags=["Imports"],
    )
    def patch(self, request: Request, import_id: int) -> Response:
        serializer = ImportStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vd = serializer.validated_data
        record = get_config_service().update_import_status(
            import_id,
            vd["status"],
            error_message=vd["error_message"],
            config_id=vd["config_id"],
        )
        return Response(ConfigImportSerializer(record).data)
