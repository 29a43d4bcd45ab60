"""
apps.template_registry.admin
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Django admin registrations for the Template Registry application.
"""
from django.contrib import admin

from .models import ConfigTemplate, ConfigVariable


class ConfigVariableInline(admin.TabularInline):
    model = ConfigVariable
    extra = 0
    fields = ["name", "path", "type", "required", "default_value", "validation_rule"]


@admin.register(ConfigTemplate)
class ConfigTemplateAdmin(admin.ModelAdmin):
    """
    Admin interface for templates.

    ``format`` is read-only on existing rows; documents already built from
    the template depend on it.  Content and schema are checked by
    :meth:`ConfigTemplate.clean` on save.
    """

    list_display = ["name", "display_name", "category", "format", "version", "updated_at"]
    list_filter = ["category", "format"]
    search_fields = ["name", "display_name", "description"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["category", "name"]
    inlines = [ConfigVariableInline]

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return list(self.readonly_fields) + ["format"]
        return self.readonly_fields
