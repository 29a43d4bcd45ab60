"""
apps.template_registry.serializers
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
I/O-only serializers for the Templates API.
No business logic; shape validation only.
"""
from rest_framework import serializers

from apps.config_core.services import FORMAT_CHOICES, ConfigFormat
from .models import ConfigTemplate, ConfigVariable


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------

class ConfigVariableSerializer(serializers.ModelSerializer):
    class Meta:
        model = ConfigVariable
        fields = [
            "id",
            "name",
            "path",
            "type",
            "description",
            "default_value",
            "required",
            "validation_rule",
        ]
        read_only_fields = ["id"]


class ConfigTemplateSerializer(serializers.ModelSerializer):
    """Read serializer for a template including its variables."""

    variables = ConfigVariableSerializer(many=True, read_only=True)
    supported_formats = serializers.SerializerMethodField()

    class Meta:
        model = ConfigTemplate
        fields = [
            "id",
            "name",
            "display_name",
            "description",
            "version",
            "category",
            "format",
            "supported_formats",
            "default_content",
            "schema",
            "variables",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_supported_formats(self, obj) -> list[str]:
        # Any document can be exported to every format.
        return [fmt.value for fmt in ConfigFormat]


# ---------------------------------------------------------------------------
# Write
# ---------------------------------------------------------------------------

class ConfigVariableWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    path = serializers.CharField(max_length=500)
    type = serializers.ChoiceField(
        choices=ConfigVariable.VariableType.choices,
        default=ConfigVariable.VariableType.STRING,
    )
    description = serializers.CharField(required=False, default="", allow_blank=True)
    default_value = serializers.CharField(required=False, allow_null=True, default=None)
    required = serializers.BooleanField(default=False)
    validation_rule = serializers.CharField(required=False, allow_null=True, default=None)


class TemplateCreateSerializer(serializers.Serializer):
    """Validates POST /templates/ request body."""

    name = serializers.CharField(max_length=255)
    display_name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, default="", allow_blank=True)
    version = serializers.CharField(max_length=50, default="1.0.0")
    category = serializers.CharField(max_length=100)
    format = serializers.ChoiceField(choices=FORMAT_CHOICES)
    default_content = serializers.CharField(trim_whitespace=False, allow_blank=True)
    schema = serializers.CharField(required=False, allow_null=True, allow_blank=True, default=None)
    variables = ConfigVariableWriteSerializer(many=True, required=False, default=list)


class TemplateUpdateSerializer(serializers.Serializer):
    """Validates PATCH /templates/{id}/ request body."""

    display_name = serializers.CharField(max_length=255, required=False)
    description = serializers.CharField(required=False, allow_blank=True)
    version = serializers.CharField(max_length=50, required=False)
    category = serializers.CharField(max_length=100, required=False)
    format = serializers.ChoiceField(choices=FORMAT_CHOICES, required=False)
    default_content = serializers.CharField(required=False, trim_whitespace=False, allow_blank=True)
    schema = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class TemplateListResponseSerializer(serializers.Serializer):
    templates = ConfigTemplateSerializer(many=True)
    pagination = serializers.DictField()
