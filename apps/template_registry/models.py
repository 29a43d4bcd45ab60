"""
apps.template_registry.models
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Models for the Template Registry application.

Models
------
ConfigTemplate
    Administrator-authored starting point for user configurations.

ConfigVariable
    A variable declared by a template (path into the parsed content, type,
    required flag, default and validation rule).
"""
from django.core.exceptions import ValidationError
from django.db import models

from apps.config_core.services import FORMAT_CHOICES, ConfigParser, FormatError, VariableRule
from apps.config_core.services.content_validator import load_schema


class ConfigTemplate(models.Model):
    """
    A reusable configuration template, e.g. the default ``cross-seed`` YAML.

    Fields
    ------
    name
        Unique machine name (``"cross-seed"``).
    display_name
        Human-readable name (``"Cross-Seed"``).
    version
        Template version string, independent of user document versions.
    category
        Free-form grouping such as ``"torrenting"`` or ``"media"``.
    format
        Canonical format of ``default_content``.  Immutable once created.
    default_content
        Text copied into every document created from this template.  Must
        parse under ``format``; checked in :meth:`clean`.
    schema
        Optional JSON schema (as text) used by content validation.
    """

    name = models.CharField(max_length=255, unique=True)
    display_name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    version = models.CharField(max_length=50, default="1.0.0")
    category = models.CharField(max_length=100, db_index=True)
    format = models.CharField(max_length=10, choices=FORMAT_CHOICES)
    default_content = models.TextField()
    schema = models.TextField(
        null=True,
        blank=True,
        help_text="JSON schema used to validate configurations built from this template.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["category", "name"]
        verbose_name = "Config Template"
        verbose_name_plural = "Config Templates"

    def __str__(self) -> str:
        return f"{self.name}@{self.version} [{self.format}]"

    def clean(self) -> None:
        """
        Validate ``default_content`` against ``format`` and, when present,
        check that ``schema`` is a usable JSON schema.

        Raises:
            django.core.exceptions.ValidationError: With one message list per
                offending field so the admin can display them.
        """
        errors: dict[str, list[str]] = {}
        try:
            ConfigParser.parse_config(self.default_content, self.format)
        except FormatError as exc:
            errors["default_content"] = [str(exc)]

        if self.schema:
            _, schema_errors = load_schema(self.schema)
            if schema_errors:
                errors["schema"] = [err["message"] for err in schema_errors]

        if errors:
            raise ValidationError(errors)


class ConfigVariable(models.Model):
    """A variable declared by a :class:`ConfigTemplate`."""

    class VariableType(models.TextChoices):
        STRING = "string", "String"
        NUMBER = "number", "Number"
        BOOLEAN = "boolean", "Boolean"
        ARRAY = "array", "Array"
        OBJECT = "object", "Object"

    template = models.ForeignKey(
        ConfigTemplate,
        on_delete=models.CASCADE,
        related_name="variables",
    )
    name = models.CharField(max_length=255)
    path = models.CharField(
        max_length=500,
        help_text="Dot-separated path into the parsed content, e.g. 'torznab.0.url'.",
    )
    type = models.CharField(
        max_length=20,
        choices=VariableType.choices,
        default=VariableType.STRING,
    )
    description = models.TextField(blank=True, default="")
    default_value = models.TextField(null=True, blank=True)
    required = models.BooleanField(default=False)
    validation_rule = models.TextField(
        null=True,
        blank=True,
        help_text="Regular expression the value must fully match.",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["template", "name"]
        constraints = [
            models.UniqueConstraint(
                fields=["template", "name"],
                name="unique_variable_name_per_template",
            ),
        ]
        verbose_name = "Config Variable"
        verbose_name_plural = "Config Variables"

    def __str__(self) -> str:
        return f"{self.template.name}:{self.name}"

    def as_rule(self) -> VariableRule:
        """Return this variable as a pure-Python ``VariableRule``."""
        return VariableRule(
            name=self.name,
            path=self.path,
            type=self.type,
            required=self.required,
            validation_rule=self.validation_rule,
        )
