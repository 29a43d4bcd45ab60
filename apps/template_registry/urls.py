"""
apps.template_registry.urls
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
URL routing for the Templates API.
Mounted at /api/v1/ by the root URLconf.
"""
from django.urls import path

from .views import TemplateDetailView, TemplateListCreateView

urlpatterns = [
    # GET, POST /api/v1/templates/
    path("templates/", TemplateListCreateView.as_view(), name="template-list"),
    # GET, PATCH, DELETE /api/v1/templates/<template_id>/
    path(
        "templates/<int:template_id>/",
        TemplateDetailView.as_view(),
        name="template-detail",
    ),
]
