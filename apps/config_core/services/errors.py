"""
apps.config_core.services.errors
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Exceptions raised by the format engine (codecs, detector, parser facade).

This module is **pure Python** (no Django imports), so the engine can be
exercised without any Django setup.  The document service translates these
into :mod:`common.exceptions` types with operation context attached.
"""
from __future__ import annotations


class ConfigFormatError(Exception):
    """Base class for every error raised by the format engine."""


class FormatError(ConfigFormatError):
    """
    Content is malformed for the format it claims to be in, or a value
    cannot be represented in the target format.

    Attributes:
        format: The format name involved (``"json"``, ``"env"``, …) or
            ``None`` when the format itself is unknown.
    """

    def __init__(self, message: str, format: str | None = None) -> None:
        self.format = format
        super().__init__(message)


class DetectionError(ConfigFormatError):
    """No supported format matched, or the content was empty."""


class SchemaViolationError(ConfigFormatError):
    """
    Content parses but violates the declared JSON schema and/or template
    variable rules.

    All violations are collected before this exception is raised.

    Attributes:
        errors (list[dict]): Non-empty list of error dicts, each with the
            keys ``"field"``, ``"code"`` and ``"message"``.
    """

    def __init__(self, errors: list[dict]) -> None:
        self.errors: list[dict] = errors
        super().__init__("; ".join(f"{e['field']}: {e['message']}" for e in errors))
