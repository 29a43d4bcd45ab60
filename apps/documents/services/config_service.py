"""
apps.documents.services.config_service
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
All business logic for templates, user configuration documents, their
version history and imports.

Views must call only :class:`ConfigService`.  No business logic lives in
views or serializers.

Responsibilities
----------------
- Template CRUD (admin surface).
- Creating documents from templates or from scratch, each seeded with
  version 1.
- Atomic content update + version append, with one retry on a version
  number race.
- Ownership enforcement for every per-document operation.
- Export, conversion, detection and validation through
  :class:`~apps.config_core.services.ConfigParser`.
- Import records and their status lifecycle.

Engine errors (``FormatError``, ``DetectionError``,
``SchemaViolationError``) are re-raised as
:class:`~common.exceptions.ValidationError` with the operation and entity
id in the message; the original exception is chained.
"""
from __future__ import annotations

from collections.abc import Iterable

import structlog
from django.utils import timezone

from apps.config_core.services import (
    ConfigFormat,
    ConfigFormatError,
    ConfigParser,
    FormatError,
    KeyedData,
    SchemaViolationError,
)
from apps.config_core.services.content_validator import load_schema
from apps.documents.models import ConfigImport, ConfigVersion, UserConfig
from apps.documents.repositories import (
    ConfigRepository,
    DuplicateEntryError,
    VersionConflictError,
)
from apps.template_registry.models import ConfigTemplate, ConfigVariable
from common.exceptions import (
    ConflictError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

INITIAL_VERSION_NOTE = "Initial version"
RESTORE_NOTE = "Restored to version {version}"

#: Template fields that may change after creation.  ``format`` is absent on
#: purpose: documents already created from the template rely on it.
TEMPLATE_MUTABLE_FIELDS = (
    "display_name",
    "description",
    "version",
    "category",
    "default_content",
    "schema",
)

_IMPORT_TRANSITIONS: dict[str, frozenset[str]] = {
    ConfigImport.Status.PENDING: frozenset({ConfigImport.Status.PROCESSING}),
    ConfigImport.Status.PROCESSING: frozenset(
        {ConfigImport.Status.COMPLETED, ConfigImport.Status.FAILED}
    ),
    ConfigImport.Status.COMPLETED: frozenset(),
    ConfigImport.Status.FAILED: frozenset(),
}
_TERMINAL_IMPORT_STATUSES = frozenset(
    {ConfigImport.Status.COMPLETED, ConfigImport.Status.FAILED}
)


def _format_error(exc: ConfigFormatError, field: str = "content") -> list[dict]:
    """Error dicts for an engine exception, in the validator's shape."""
    if isinstance(exc, SchemaViolationError):
        return exc.errors
    code = "invalid_format" if isinstance(exc, FormatError) else "undetectable_format"
    return [{"field": field, "code": code, "message": str(exc)}]


def _wrap(operation: str, exc: ConfigFormatError, field: str = "content") -> ValidationError:
    return ValidationError(f"{operation}: {exc}", errors=_format_error(exc, field))


class ConfigService:
    """
    Document service over a :class:`~apps.documents.repositories.ConfigRepository`.

    Build once per process (see :func:`apps.documents.services.get_config_service`)
    and share; the instance holds no per-request state.

    Args:
        repository: Storage collaborator.
        export_default_format: Format used by :meth:`export_config` when the
            caller names none.
    """

    def __init__(
        self,
        repository: ConfigRepository,
        export_default_format: ConfigFormat | str = ConfigFormat.YAML,
    ) -> None:
        self._repository = repository
        self._export_default_format = ConfigFormat.from_value(export_default_format)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _template(self, template_id: int) -> ConfigTemplate:
        template = self._repository.get_template(template_id)
        if template is None:
            raise NotFoundError(f"Template {template_id} not found.")
        return template

    def _owned_config(self, config_id: int, user_id: int) -> UserConfig:
        config = self._repository.get_config(config_id)
        if config is None:
            raise NotFoundError(f"Configuration {config_id} not found.")
        if config.user_id != user_id:
            logger.warning("config_access_denied", config_id=config_id, user_id=user_id)
            raise OwnershipError(f"Configuration {config_id} is not owned by user {user_id}.")
        return config

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @staticmethod
    def _check_template(default_content: str, format: ConfigFormat | str, schema: str | None) -> None:
        errors: list[dict] = []
        try:
            ConfigParser.parse_config(default_content, format)
        except FormatError as exc:
            errors.extend(_format_error(exc, field="default_content"))
        if schema:
            _, schema_errors = load_schema(schema)
            errors.extend({**err, "field": "schema"} for err in schema_errors)
        if errors:
            raise ValidationError("Template content is invalid.", errors=errors)

    def create_template(
        self,
        *,
        name: str,
        display_name: str,
        category: str,
        format: ConfigFormat | str,
        default_content: str,
        description: str = "",
        version: str = "1.0.0",
        schema: str | None = None,
        variables: Iterable[dict] = (),
    ) -> ConfigTemplate:
        """
        Create a template together with its variables.

        Raises:
            ValidationError: Unknown format, unparsable ``default_content``,
                unusable ``schema``, duplicate template name or duplicate
                variable name.
        """
        try:
            fmt = ConfigFormat.from_value(format)
        except FormatError as exc:
            raise _wrap("create_template", exc, field="format") from exc
        self._check_template(default_content, fmt, schema)

        template = ConfigTemplate(
            name=name,
            display_name=display_name,
            description=description,
            version=version,
            category=category,
            format=fmt.value,
            default_content=default_content,
            schema=schema or None,
        )
        rows = [ConfigVariable(**variable) for variable in variables]
        try:
            self._repository.save_template(template, rows)
        except DuplicateEntryError as exc:
            raise ValidationError(
                f"Template '{name}' already exists or declares a variable twice."
            ) from exc

        logger.info("template_created", template_id=template.pk, name=name, format=fmt.value)
        return template

    def get_template(self, template_id: int) -> ConfigTemplate:
        return self._template(template_id)

    def list_templates(
        self,
        *,
        category: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[ConfigTemplate], int]:
        return self._repository.list_templates(
            category=category, search=search, page=page, limit=limit
        )

    def update_template(self, template_id: int, **changes) -> ConfigTemplate:
        """
        Apply *changes* to a template.

        ``format`` may be passed only if it equals the current format.

        Raises:
            NotFoundError: No such template.
            ValidationError: Format change, unknown field, or content/schema
                that no longer validates.
        """
        template = self._template(template_id)

        new_format = changes.pop("format", None)
        if new_format is not None and str(new_format).lower() != template.format:
            raise ValidationError(
                "Template format is immutable.",
                errors=[{"field": "format", "code": "immutable", "message": "format cannot be changed"}],
            )
        unknown = sorted(set(changes) - set(TEMPLATE_MUTABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown template fields: {', '.join(unknown)}.")
        if not changes:
            return template

        for field, value in changes.items():
            setattr(template, field, value)
        if "schema" in changes:
            template.schema = template.schema or None
        self._check_template(template.default_content, template.format, template.schema)

        self._repository.update_template(template, list(changes))
        logger.info("template_updated", template_id=template.pk, fields=sorted(changes))
        return template

    def delete_template(self, template_id: int) -> None:
        """Delete a template; documents created from it keep existing unlinked."""
        template = self._template(template_id)
        self._repository.delete_template(template)
        logger.info("template_deleted", template_id=template_id)

    # ------------------------------------------------------------------
    # Document creation
    # ------------------------------------------------------------------

    def _create(self, config: UserConfig, operation: str) -> UserConfig:
        if not config.name or not config.name.strip():
            raise ValidationError(
                f"{operation}: name is required.",
                errors=[{"field": "name", "code": "required", "message": "name is required"}],
            )
        with self._repository.atomic():
            try:
                self._repository.save_config(config)
            except DuplicateEntryError as exc:
                raise ValidationError(
                    f"{operation}: a configuration named '{config.name}' already exists.",
                    errors=[{"field": "name", "code": "duplicate", "message": "name already in use"}],
                ) from exc
            self._repository.append_version(
                ConfigVersion(
                    config=config,
                    version=1,
                    content=config.content,
                    change_note=INITIAL_VERSION_NOTE,
                    created_by_id=config.user_id,
                )
            )
        logger.info(
            "config_created",
            config_id=config.pk,
            user_id=config.user_id,
            template_id=config.template_id,
            format=config.format,
        )
        return config

    def create_from_template(self, user_id: int, template_id: int, name: str) -> UserConfig:
        """
        Create a document for *user_id* from a template's default content.

        Raises:
            NotFoundError: No such template.
            ValidationError: Empty name, or *user_id* already has a document
                called *name*.
        """
        template = self._template(template_id)
        config = UserConfig(
            user_id=user_id,
            template=template,
            name=name,
            format=template.format,
            content=template.default_content,
        )
        return self._create(config, "create_from_template")

    def create_custom_config(
        self,
        user_id: int,
        name: str,
        format: ConfigFormat | str,
        content: str,
        description: str = "",
    ) -> UserConfig:
        """
        Create a document that is not based on a template.

        Raises:
            ValidationError: Unknown format, unparsable content, empty or
                duplicate name.
        """
        try:
            fmt = ConfigFormat.from_value(format)
            ConfigParser.parse_config(content, fmt)
        except FormatError as exc:
            raise _wrap("create_custom_config", exc) from exc

        config = UserConfig(
            user_id=user_id,
            name=name,
            description=description,
            format=fmt.value,
            content=content,
        )
        return self._create(config, "create_custom_config")

    # ------------------------------------------------------------------
    # Document access
    # ------------------------------------------------------------------

    def get_config(self, config_id: int, user_id: int) -> UserConfig:
        """
        Return a document owned by *user_id*.

        Raises:
            NotFoundError: No such document.
            OwnershipError: The document belongs to someone else.
        """
        return self._owned_config(config_id, user_id)

    def list_configs(
        self,
        user_id: int,
        template_id: int | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[UserConfig], int]:
        return self._repository.list_configs(
            user_id=user_id, template_id=template_id, page=page, limit=limit
        )

    def delete_config(self, config_id: int, user_id: int) -> None:
        """Delete a document and its whole version history."""
        config = self._owned_config(config_id, user_id)
        self._repository.delete_config(config)
        logger.info("config_deleted", config_id=config_id, user_id=user_id)

    # ------------------------------------------------------------------
    # Update and versioning
    # ------------------------------------------------------------------

    def _append_next_version(
        self, config: UserConfig, content: str, change_note: str, user_id: int
    ) -> ConfigVersion:
        # Two attempts: the first read may be stale under concurrent updates.
        for attempt in (1, 2):
            number = self._repository.latest_version_number(config.pk) + 1
            try:
                return self._repository.append_version(
                    ConfigVersion(
                        config=config,
                        version=number,
                        content=content,
                        change_note=change_note,
                        created_by_id=user_id,
                    )
                )
            except VersionConflictError:
                logger.warning(
                    "config_version_conflict",
                    config_id=config.pk,
                    version=number,
                    attempt=attempt,
                )
        raise ConflictError(
            f"update_config {config.pk}: version number conflict persisted after retry."
        )

    def update_config(
        self,
        config_id: int,
        user_id: int,
        content: str,
        change_note: str = "",
        format: ConfigFormat | str | None = None,
    ) -> UserConfig:
        """
        Replace a document's content and append the next version.

        The content update and the version row are written in one
        transaction; if either fails neither is kept.

        Args:
            config_id: Target document.
            user_id: Caller; must own the document.
            content: New content, which must parse under the effective format.
            change_note: Free text stored on the new version.
            format: New format, or ``None`` to keep the current one.

        Raises:
            NotFoundError / OwnershipError: See :meth:`get_config`.
            ValidationError: *content* does not parse under the effective
                format.
            ConflictError: The version number collided twice.
        """
        operation = f"update_config {config_id}"
        config = self._owned_config(config_id, user_id)
        try:
            fmt = ConfigFormat.from_value(format) if format else ConfigFormat.from_value(config.format)
            ConfigParser.parse_config(content, fmt)
        except FormatError as exc:
            raise _wrap(operation, exc) from exc

        with self._repository.atomic():
            config.content = content
            config.format = fmt.value
            self._repository.update_config(config, ["content", "format"])
            version = self._append_next_version(config, content, change_note, user_id)

        logger.info(
            "config_updated",
            config_id=config_id,
            user_id=user_id,
            version=version.version,
            format=fmt.value,
        )
        return config

    def list_versions(
        self, config_id: int, user_id: int, page: int = 1, limit: int = 10
    ) -> tuple[list[ConfigVersion], int]:
        """Versions of an owned document, most recent first."""
        self._owned_config(config_id, user_id)
        return self._repository.list_versions(config_id, page=page, limit=limit)

    def get_version(self, version_id: int, user_id: int) -> ConfigVersion:
        """
        Return one version; ownership is checked through its document.

        Raises:
            NotFoundError: No such version.
            OwnershipError: The parent document belongs to someone else.
        """
        version = self._repository.get_version(version_id)
        if version is None:
            raise NotFoundError(f"Version {version_id} not found.")
        self._owned_config(version.config_id, user_id)
        return version

    def restore_version(self, config_id: int, version_id: int, user_id: int) -> UserConfig:
        """
        Make an old version's content current by appending a new version.

        History is never rewritten; the new version's note is
        ``"Restored to version <N>"``.

        Raises:
            NotFoundError: No such version, or it belongs to another document.
        """
        self._owned_config(config_id, user_id)
        version = self._repository.get_version(version_id)
        if version is None or version.config_id != config_id:
            raise NotFoundError(f"Version {version_id} not found for configuration {config_id}.")

        config = self.update_config(
            config_id,
            user_id,
            version.content,
            RESTORE_NOTE.format(version=version.version),
        )
        logger.info(
            "config_restored",
            config_id=config_id,
            user_id=user_id,
            restored_version=version.version,
        )
        return config

    # ------------------------------------------------------------------
    # Format utilities
    # ------------------------------------------------------------------

    def export_config(
        self, config_id: int, user_id: int, format: ConfigFormat | str | None = None
    ) -> tuple[str, ConfigFormat]:
        """
        Render a document in *format*.

        Returns:
            ``(content, format)``.  Content is returned verbatim when the
            document is already stored in *format*.
        """
        operation = f"export_config {config_id}"
        config = self._owned_config(config_id, user_id)
        try:
            target = ConfigFormat.from_value(format) if format else self._export_default_format
            if target.value == config.format:
                return config.content, target
            return ConfigParser.convert_format(config.content, config.format, target), target
        except FormatError as exc:
            raise _wrap(operation, exc) from exc

    def detect_format(self, content: str) -> ConfigFormat:
        try:
            return ConfigParser.detect_format(content)
        except ConfigFormatError as exc:
            raise _wrap("detect_format", exc) from exc

    def convert_format(
        self,
        content: str,
        from_format: ConfigFormat | str,
        to_format: ConfigFormat | str,
    ) -> str:
        try:
            return ConfigParser.convert_format(content, from_format, to_format)
        except FormatError as exc:
            raise _wrap("convert_format", exc) from exc

    def validate_config(
        self,
        content: str,
        format: ConfigFormat | str,
        template_id: int | None = None,
    ) -> KeyedData:
        """
        Check *content* parses under *format*; with *template_id*, also
        enforce the template's schema and variables.

        Returns:
            The parsed content.

        Raises:
            NotFoundError: *template_id* names no template.
            ValidationError: Any violation; ``exc.errors`` lists them all.
        """
        schema = None
        rules = []
        if template_id is not None:
            template = self._template(template_id)
            schema = template.schema
            rules = [variable.as_rule() for variable in template.variables.all()]
        try:
            return ConfigParser.validate_config(content, format, schema=schema, variables=rules)
        except ConfigFormatError as exc:
            raise _wrap("validate_config", exc) from exc

    # ------------------------------------------------------------------
    # Imports
    # ------------------------------------------------------------------

    def import_config(self, user_id: int, source_type: str, source_url: str) -> ConfigImport:
        """Record a pending import; fetching the source happens elsewhere."""
        if source_type not in ConfigImport.SourceType.values:
            raise ValidationError(
                f"Unsupported import source type: {source_type}.",
                errors=[{"field": "source_type", "code": "invalid_choice", "message": source_type}],
            )
        if not source_url or not source_url.strip():
            raise ValidationError(
                "Import source URL is required.",
                errors=[{"field": "source_url", "code": "required", "message": "source_url is required"}],
            )
        record = self._repository.save_import(
            ConfigImport(user_id=user_id, source_type=source_type, source_url=source_url)
        )
        logger.info("import_created", import_id=record.pk, user_id=user_id, source_type=source_type)
        return record

    def get_import(self, import_id: int, user_id: int) -> ConfigImport:
        record = self._repository.get_import(import_id)
        if record is None:
            raise NotFoundError(f"Import {import_id} not found.")
        if record.user_id != user_id:
            logger.warning("import_access_denied", import_id=import_id, user_id=user_id)
            raise OwnershipError(f"Import {import_id} is not owned by user {user_id}.")
        return record

    def update_import_status(
        self,
        import_id: int,
        status: str,
        error_message: str | None = None,
        config_id: int | None = None,
    ) -> ConfigImport:
        """
        Move an import along ``pending → processing → completed | failed``.

        Terminal states stamp ``completed_at``.  *config_id*, when given,
        must name a document owned by the import's user.

        Raises:
            NotFoundError: No such import or document.
            ValidationError: Unknown status or a transition the lifecycle
                does not allow.
        """
        record = self._repository.get_import(import_id)
        if record is None:
            raise NotFoundError(f"Import {import_id} not found.")
        if status not in _IMPORT_TRANSITIONS:
            raise ValidationError(f"Unknown import status: {status}.")
        if status not in _IMPORT_TRANSITIONS[record.status]:
            raise ValidationError(
                f"Import {import_id} cannot move from {record.status} to {status}.",
                errors=[{
                    "field": "status",
                    "code": "invalid_transition",
                    "message": f"{record.status} -> {status}",
                }],
            )

        fields = ["status"]
        previous = record.status
        record.status = status
        if error_message is not None:
            record.error_message = error_message
            fields.append("error_message")
        if config_id is not None:
            record.config = self._owned_config(config_id, record.user_id)
            fields.append("config")
        if status in _TERMINAL_IMPORT_STATUSES:
            record.completed_at = timezone.now()
            fields.append("completed_at")

        self._repository.update_import(record, fields)
        logger.info(
            "import_status_changed",
            import_id=import_id,
            from_status=previous,
            to_status=status,
            config_id=record.config_id,
        )
        return record
