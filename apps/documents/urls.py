"""
apps.documents.urls
~~~~~~~~~~~~~~~~~~~~
URL routing for the Configurations, Versions, Formats and Imports APIs.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import (
    ConfigDetailView,
    ConfigExportView,
    ConfigListCreateView,
    ConfigVersionDetailView,
    ConfigVersionListView,
    ConfigVersionRestoreView,
    ConvertFormatView,
    DetectFormatView,
    ImportCreateView,
    ImportDetailView,
    ValidateConfigView,
)

urlpatterns = [
    # Format utilities come first so they are not read as a config id.
    path("configs/detect-format/", DetectFormatView.as_view(), name="config-detect-format"),
    path("configs/convert/", ConvertFormatView.as_view(), name="config-convert"),
    path("configs/validate/", ValidateConfigView.as_view(), name="config-validate"),
    # GET, POST /api/v1/configs/
    path("configs/", ConfigListCreateView.as_view(), name="config-list"),
    # GET, PUT, DELETE /api/v1/configs/<config_id>/
    path("configs/<int:config_id>/", ConfigDetailView.as_view(), name="config-detail"),
    path(
        "configs/<int:config_id>/versions/",
        ConfigVersionListView.as_view(),
        name="config-version-list",
    ),
    path(
        "configs/<int:config_id>/versions/<int:version_id>/",
        ConfigVersionDetailView.as_view(),
        name="config-version-detail",
    ),
    path(
        "configs/<int:config_id>/versions/<int:version_id>/restore/",
        ConfigVersionRestoreView.as_view(),
        name="config-version-restore",
    ),
    path("configs/<int:config_id>/export/", ConfigExportView.as_view(), name="config-export"),
    # POST /api/v1/imports/
    path("imports/", ImportCreateView.as_view(), name="import-create"),
    # GET, PATCH /api/v1/imports/<import_id>/
    path("imports/<int:import_id>/", ImportDetailView.as_view(), name="import-detail"),
]
