"""
apps.documents.repositories
~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Storage contract consumed by :class:`~apps.documents.services.ConfigService`
and its Django ORM implementation.

The contract is a :class:`typing.Protocol` so tests and alternative stores
can supply their own implementation.  Lookups return ``None`` for missing
rows; the service decides what "missing" means to the caller.

Uniqueness violations are translated into :class:`DuplicateEntryError`
(or :class:`VersionConflictError` for ``(config, version)``) inside a
savepoint, so the caller's enclosing transaction stays usable and a retry
is possible.
"""
from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from django.db import IntegrityError, transaction
from django.db.models import Max, Q

from apps.template_registry.models import ConfigTemplate, ConfigVariable
from .models import ConfigImport, ConfigVersion, UserConfig


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class DuplicateEntryError(Exception):
    """A uniqueness constraint rejected the write."""


class VersionConflictError(DuplicateEntryError):
    """``(config, version)`` already exists."""


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------

class ConfigRepository(Protocol):
    """Storage operations required by the document service."""

    def atomic(self) -> AbstractContextManager:
        """Return a context manager scoping one all-or-nothing unit of work."""

    # Templates
    def save_template(self, template: ConfigTemplate, variables: list[ConfigVariable]) -> ConfigTemplate: ...
    def get_template(self, template_id: int) -> ConfigTemplate | None: ...
    def list_templates(
        self, *, category: str | None, search: str | None, page: int, limit: int
    ) -> tuple[list[ConfigTemplate], int]: ...
    def update_template(self, template: ConfigTemplate, fields: list[str]) -> ConfigTemplate: ...
    def delete_template(self, template: ConfigTemplate) -> None: ...

    # Documents
    def save_config(self, config: UserConfig) -> UserConfig: ...
    def get_config(self, config_id: int) -> UserConfig | None: ...
    def list_configs(
        self, *, user_id: int, template_id: int | None, page: int, limit: int
    ) -> tuple[list[UserConfig], int]: ...
    def update_config(self, config: UserConfig, fields: list[str]) -> UserConfig: ...
    def delete_config(self, config: UserConfig) -> None: ...

    # Versions
    def append_version(self, version: ConfigVersion) -> ConfigVersion: ...
    def get_version(self, version_id: int) -> ConfigVersion | None: ...
    def list_versions(self, config_id: int, *, page: int, limit: int) -> tuple[list[ConfigVersion], int]: ...
    def latest_version_number(self, config_id: int) -> int: ...

    # Imports
    def save_import(self, record: ConfigImport) -> ConfigImport: ...
    def get_import(self, import_id: int) -> ConfigImport | None: ...
    def update_import(self, record: ConfigImport, fields: list[str]) -> ConfigImport: ...


# ---------------------------------------------------------------------------
# Django ORM implementation
# ---------------------------------------------------------------------------

def _paginate(qs, page: int, limit: int) -> tuple[list, int]:
    offset = (page - 1) * limit
    return list(qs[offset:offset + limit]), qs.count()


class DjangoConfigRepository:
    """:class:`ConfigRepository` backed by the default database."""

    def atomic(self) -> AbstractContextManager:
        return transaction.atomic()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def save_template(self, template: ConfigTemplate, variables: list[ConfigVariable]) -> ConfigTemplate:
        try:
            with transaction.atomic():
                template.save()
                for variable in variables:
                    variable.template = template
                ConfigVariable.objects.bulk_create(variables)
        except IntegrityError as exc:
            raise DuplicateEntryError(str(exc)) from exc
        return template

    def get_template(self, template_id: int) -> ConfigTemplate | None:
        return (
            ConfigTemplate.objects.prefetch_related("variables")
            .filter(pk=template_id)
            .first()
        )

    def list_templates(
        self, *, category: str | None, search: str | None, page: int, limit: int
    ) -> tuple[list[ConfigTemplate], int]:
        qs = ConfigTemplate.objects.prefetch_related("variables").all()
        if category:
            qs = qs.filter(category=category)
        if search:
            qs = qs.filter(
                Q(name__icontains=search)
                | Q(display_name__icontains=search)
                | Q(description__icontains=search)
            )
        return _paginate(qs, page, limit)

    def update_template(self, template: ConfigTemplate, fields: list[str]) -> ConfigTemplate:
        template.save(update_fields=[*fields, "updated_at"])
        return template

    def delete_template(self, template: ConfigTemplate) -> None:
        template.delete()

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def save_config(self, config: UserConfig) -> UserConfig:
        try:
            with transaction.atomic():
                config.save(force_insert=True)
        except IntegrityError as exc:
            raise DuplicateEntryError(str(exc)) from exc
        return config

    def get_config(self, config_id: int) -> UserConfig | None:
        return UserConfig.objects.filter(pk=config_id).first()

    def list_configs(
        self, *, user_id: int, template_id: int | None, page: int, limit: int
    ) -> tuple[list[UserConfig], int]:
        qs = UserConfig.objects.filter(user_id=user_id)
        if template_id is not None:
            qs = qs.filter(template_id=template_id)
        return _paginate(qs, page, limit)

    def update_config(self, config: UserConfig, fields: list[str]) -> UserConfig:
        config.save(update_fields=[*fields, "updated_at"])
        return config

    def delete_config(self, config: UserConfig) -> None:
        # ConfigVersion rows cascade.
        config.delete()

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def append_version(self, version: ConfigVersion) -> ConfigVersion:
        try:
            with transaction.atomic():
                version.save(force_insert=True)
        except IntegrityError as exc:
            raise VersionConflictError(
                f"config {version.config_id} already has version {version.version}"
            ) from exc
        return version

    def get_version(self, version_id: int) -> ConfigVersion | None:
        return ConfigVersion.objects.filter(pk=version_id).first()

    def list_versions(self, config_id: int, *, page: int, limit: int) -> tuple[list[ConfigVersion], int]:
        qs = ConfigVersion.objects.filter(config_id=config_id).order_by("-version")
        return _paginate(qs, page, limit)

    def latest_version_number(self, config_id: int) -> int:
        result = ConfigVersion.objects.filter(config_id=config_id).aggregate(latest=Max("version"))
        return result["latest"] or 0

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def save_import(self, record: ConfigImport) -> ConfigImport:
        record.save(force_insert=True)
        return record

    def get_import(self, import_id: int) -> ConfigImport | None:
        return ConfigImport.objects.filter(pk=import_id).first()

    def update_import(self, record: ConfigImport, fields: list[str]) -> ConfigImport:
        record.save(update_fields=fields)
        return record
