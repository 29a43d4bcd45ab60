"""
apps.config_core.services.config_parser
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Facade over the codecs, the format detector and the content validator.

This is the single contract the document service uses for anything
format-related.  Conversion is parse-then-reserialize and is **not**
guaranteed to preserve values: a JSON ``42`` parses as ``42.0`` and is
written to TOML as a float, a JSON ``null`` is dropped on the way to TOML,
and every ENV value becomes a string.  That lossiness is documented
behaviour, not an error.

This module is **pure Python**: it has zero Django view, serializer,
or ORM imports.

Public API
----------
ConfigParser.detect_format(content) -> ConfigFormat
ConfigParser.parse_config(content, format) -> KeyedData
ConfigParser.serialize_config(data, format) -> str
ConfigParser.convert_format(content, from_format, to_format) -> str
ConfigParser.validate_config(content, format, schema=None, variables=None) -> KeyedData
"""
from __future__ import annotations

from collections.abc import Iterable

from .codecs import get_codec
from .content_validator import (
    ContentValidationRequest,
    ContentValidationService,
    VariableRule,
)
from .errors import FormatError, SchemaViolationError
from .format_detector import FormatDetector
from .formats import ConfigFormat, KeyedData


class ConfigParser:
    """
    Stateless dispatcher from :class:`ConfigFormat` to codec.

    Example::

        ConfigParser.convert_format('{"key": "value"}', "json", "yaml")
        # → "key: value\\n"
    """

    @staticmethod
    def detect_format(content: str) -> ConfigFormat:
        """Delegate to :meth:`FormatDetector.detect`."""
        return FormatDetector.detect(content)

    @staticmethod
    def parse_config(content: str, format: ConfigFormat | str) -> KeyedData:
        """
        Parse *content* under *format*.

        Raises:
            FormatError: If *format* is unsupported or *content* is malformed.
        """
        return get_codec(format).parse(content)

    @staticmethod
    def serialize_config(data: KeyedData, format: ConfigFormat | str) -> str:
        """
        Render *data* in *format*.

        Raises:
            FormatError: If *format* is unsupported or a value cannot be
                represented in it.
        """
        return get_codec(format).serialize(data)

    @staticmethod
    def convert_format(
        content: str,
        from_format: ConfigFormat | str,
        to_format: ConfigFormat | str,
    ) -> str:
        """
        Parse *content* as *from_format* and re-serialize it as *to_format*.

        Raises:
            FormatError: If parsing or serialization fails.  A source parse
                failure is reported as ``failed to parse source format: …``.
        """
        try:
            data = ConfigParser.parse_config(content, from_format)
        except FormatError as exc:
            raise FormatError(
                f"failed to parse source format: {exc}", format=exc.format
            ) from exc
        return ConfigParser.serialize_config(data, to_format)

    @staticmethod
    def validate_config(
        content: str,
        format: ConfigFormat | str,
        schema: str | None = None,
        variables: Iterable[VariableRule] | None = None,
    ) -> KeyedData:
        """
        Syntax-check *content* and, optionally, check it against a JSON
        schema and template variables.

        Args:
            content: Raw configuration text.
            format: Format *content* claims to be in.
            schema: JSON schema document as text, or ``None`` for a pure
                syntax check.
            variables: Template variables to enforce.

        Returns:
            The parsed content.

        Raises:
            FormatError: If *content* does not parse.
            SchemaViolationError: If the schema or any variable rule is
                violated.  ``exc.errors`` lists every violation.
        """
        fmt = ConfigFormat.from_value(format)
        data = ConfigParser.parse_config(content, fmt)

        rules = list(variables or [])
        if not schema and not rules:
            return data

        result = ContentValidationService.validate(
            ContentValidationRequest(data=data, format=fmt, schema=schema, variables=rules)
        )
        if not result.valid:
            raise SchemaViolationError(result.errors)
        return data
