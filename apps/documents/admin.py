"""
apps.documents.admin
~~~~~~~~~~~~~~~~~~~~~
Django admin registrations for documents, versions and imports.

Versions are append-only, so their admin is read-only.
"""
from django.contrib import admin

from .models import ConfigImport, ConfigVersion, UserConfig


@admin.register(UserConfig)
class UserConfigAdmin(admin.ModelAdmin):
    list_display = ["name", "user", "template", "format", "is_shared", "updated_at"]
    list_filter = ["format", "is_shared"]
    search_fields = ["name", "user__username", "template__name"]
    readonly_fields = ["id", "created_at", "updated_at"]
    ordering = ["-updated_at"]


@admin.register(ConfigVersion)
class ConfigVersionAdmin(admin.ModelAdmin):
    list_display = ["config", "version", "change_note", "created_by", "created_at"]
    search_fields = ["config__name", "change_note"]
    ordering = ["config", "-version"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(ConfigImport)
class ConfigImportAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "source_type", "status", "config", "created_at", "completed_at"]
    list_filter = ["status", "source_type"]
    search_fields = ["source_url", "user__username"]
    readonly_fields = ["id", "created_at", "completed_at"]
    ordering = ["-created_at"]
