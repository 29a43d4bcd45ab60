"""
apps.documents.models
~~~~~~~~~~~~~~~~~~~~~~
User-owned configuration documents, their version history, and import
records.

Models
------
UserConfig
    The current content of a user's configuration.  Its ``content`` always
    parses under its ``format``; the service never stores anything else.

ConfigVersion
    Immutable, append-only snapshot.  ``(config, version)`` is unique and
    version numbers run 1, 2, 3… without gaps.

ConfigImport
    An external-source import moving through
    ``pending → processing → completed | failed``.
"""
from django.conf import settings
from django.db import models

from apps.config_core.services import FORMAT_CHOICES


class UserConfig(models.Model):
    """
    A configuration document owned by exactly one user.

    ``name`` is unique per owner.  ``template`` is ``NULL`` for custom
    documents and for documents whose template has since been deleted.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="configs",
    )
    template = models.ForeignKey(
        "template_registry.ConfigTemplate",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="user_configs",
    )
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    format = models.CharField(max_length=10, choices=FORMAT_CHOICES)
    content = models.TextField()
    is_shared = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "name"],
                name="unique_config_name_per_user",
            ),
        ]
        verbose_name = "User Config"
        verbose_name_plural = "User Configs"

    def __str__(self) -> str:
        return f"{self.name} [{self.format}]"


class ConfigVersion(models.Model):
    """
    One entry of a document's audit trail.

    Rows are written by the document service only and never updated.  They
    are deleted together with their document.
    """

    config = models.ForeignKey(
        UserConfig,
        on_delete=models.CASCADE,
        related_name="versions",
    )
    version = models.PositiveIntegerField()
    content = models.TextField()
    change_note = models.TextField(blank=True, default="")
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="config_versions",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["config", "-version"]
        constraints = [
            models.UniqueConstraint(
                fields=["config", "version"],
                name="unique_config_version",
            ),
        ]
        indexes = [
            models.Index(fields=["config", "-version"], name="config_version_desc_idx"),
        ]
        verbose_name = "Config Version"
        verbose_name_plural = "Config Versions"

    def __str__(self) -> str:
        return f"config #{self.config_id} v{self.version}"


class ConfigImport(models.Model):
    """An import of configuration content from an external source."""

    class SourceType(models.TextChoices):
        LOCAL = "local", "Local file"
        URL = "url", "URL"
        GITHUB = "github", "GitHub"
        GITLAB = "gitlab", "GitLab"

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PROCESSING = "processing", "Processing"
        COMPLETED = "completed", "Completed"
        FAILED = "failed", "Failed"

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="config_imports",
    )
    source_type = models.CharField(max_length=20, choices=SourceType.choices)
    source_url = models.TextField()
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True,
    )
    error_message = models.TextField(null=True, blank=True)
    config = models.ForeignKey(
        UserConfig,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="imports",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        verbose_name = "Config Import"
        verbose_name_plural = "Config Imports"

    def __str__(self) -> str:
        return f"{self.source_type}:{self.source_url} [{self.status}]"
