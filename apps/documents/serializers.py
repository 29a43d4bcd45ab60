"""
apps.documents.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O-only serializers for the Configurations and Imports APIs.
No business logic; shape validation only.  Whether content actually parses
is decided by the service, not here.
"""
from rest_framework import serializers

from apps.config_core.services import FORMAT_CHOICES
from .models import ConfigImport, ConfigVersion, UserConfig


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class UserConfigSerializer(serializers.ModelSerializer):
    class Meta:
        model = UserConfig
        fields = [
            "id",
            "user_id",
            "template_id",
            "name",
            "description",
            "format",
            "content",
            "is_shared",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class UserConfigCreateSerializer(serializers.Serializer):
    """
    Validates POST /configs/ request body.

    Either ``template_id`` (build from a template) or ``format`` plus
    ``content`` (custom document) must be given.
    """

    name = serializers.CharField(max_length=255)
    template_id = serializers.IntegerField(required=False, allow_null=True, default=None)
    format = serializers.ChoiceField(choices=FORMAT_CHOICES, required=False)
    content = serializers.CharField(required=False, trim_whitespace=False, allow_blank=True)
    description = serializers.CharField(required=False, default="", allow_blank=True)

    def validate(self, attrs):
        if attrs.get("template_id") is None and ("format" not in attrs or "content" not in attrs):
            raise serializers.ValidationError(
                "Provide template_id, or format and content for a custom configuration."
            )
        return attrs


class UserConfigUpdateSerializer(serializers.Serializer):
    """Validates PUT /configs/{id}/ request body."""

    content = serializers.CharField(trim_whitespace=False, allow_blank=True)
    change_note = serializers.CharField(required=False, default="", allow_blank=True)
    format = serializers.ChoiceField(choices=FORMAT_CHOICES, required=False, allow_null=True, default=None)


class UserConfigListResponseSerializer(serializers.Serializer):
    configs = UserConfigSerializer(many=True)
    pagination = serializers.DictField()


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

class ConfigVersionSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConfigVersion
        fields = [
            "id",
            "config_id",
            "version",
            "content",
            "change_note",
            "created_by_id",
            "created_at",
        ]
        read_only_fields = fields


class ConfigVersionListResponseSerializer(serializers.Serializer):
    versions = ConfigVersionSerializer(many=True)
    pagination = serializers.DictField()


# ---------------------------------------------------------------------------
# Format utilities
# ---------------------------------------------------------------------------

class DetectFormatRequestSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=False, allow_blank=True)


class ConvertFormatRequestSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=False, allow_blank=True)
    from_format = serializers.ChoiceField(choices=FORMAT_CHOICES)
    to_format = serializers.ChoiceField(choices=FORMAT_CHOICES)


class ValidateConfigRequestSerializer(serializers.Serializer):
    content = serializers.CharField(trim_whitespace=False, allow_blank=True)
    format = serializers.ChoiceField(choices=FORMAT_CHOICES)
    template_id = serializers.IntegerField(required=False, allow_null=True, default=None)


class ValidationErrorResponseSerializer(serializers.Serializer):
    """Response shape for a 422 failure."""

    code = serializers.CharField()
    detail = serializers.CharField()
    errors = serializers.ListField(child=serializers.DictField(), required=False)


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

class ConfigImportSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConfigImport
        fields = [
            "id",
            "user_id",
            "source_type",
            "source_url",
            "status",
            "error_message",
            "config_id",
            "created_at",
            "completed_at",
        ]
        read_only_fields = fields


class ImportCreateSerializer(serializers.Serializer):
    source_type = serializers.ChoiceField(choices=ConfigImport.SourceType.choices)
    source_url = serializers.CharField()


class ImportStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ConfigImport.Status.choices)
    error_message = serializers.CharField(required=False, allow_null=True, default=None)
    config_id = serializers.IntegerField(required=False, allow_null=True, default=None)
