"""
apps.config_core.services.content_validator
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Validates parsed configuration content against a template's JSON schema
and declared variables.

This module is **pure Python**: it has zero Django view, serializer, or ORM
imports and can be exercised in plain ``pytest`` tests without any Django
setup.

Public API
----------
VariableRule                – One declared template variable
ContentValidationRequest    – Input dataclass
ContentValidationResult     – Output dataclass
ContentValidationService    – Single-entry-point validator
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from .formats import ConfigFormat, ConfigValue, KeyedData


# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

#: A single validation error dict with "field", "code", and "message" keys.
ErrorDict = dict[str, str]


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VariableRule:
    """
    A variable declared by a template.

    Attributes:
        name: Variable name, e.g. ``"DELAY"``.
        path: Dot-separated path into the parsed content, e.g.
            ``"torznab.0.url"``.  Integer segments index sequences.
        type: One of ``string``, ``number``, ``boolean``, ``array``,
            ``object``.
        required: Whether the path must resolve.
        validation_rule: Optional regular expression the value's text form
            must fully match.
    """

    name: str
    path: str
    type: str = "string"
    required: bool = False
    validation_rule: str | None = None


@dataclass
class ContentValidationRequest:
    """
    Encapsulates all inputs required to validate parsed content.

    Attributes:
        data: Parsed content.
        format: Format the content was parsed from.  ENV values are always
            strings, so declared variable types are not checked for ENV.
        schema: Optional JSON schema document as text.
        variables: Template variables to enforce.
    """

    data: KeyedData
    format: ConfigFormat
    schema: str | None = None
    variables: list[VariableRule] = field(default_factory=list)


@dataclass
class ContentValidationResult:
    """
    Result of a validation run performed by
    :class:`ContentValidationService`.

    Attributes:
        valid: ``True`` iff no errors were found.
        errors: List of error dicts, each with keys:

            - ``"field"``   – dot-separated path, e.g. ``"torznab.0.url"``
              (``"$"`` for the document root)
            - ``"code"``    – machine-readable error code (see below)
            - ``"message"`` – human-readable description

            Error codes used by this service:

            =====================  ==============================================
            Code                   Meaning
            =====================  ==============================================
            ``invalid_schema``     Schema text is not JSON or not a valid schema.
            ``schema_violation``   Content violates the JSON schema.
            ``missing_required``   Required variable path does not resolve.
            ``type_mismatch``      Variable value type ≠ declared type.
            ``invalid_rule``       ``validation_rule`` is not a valid regex.
            ``rule_violation``     Value does not match ``validation_rule``.
            =====================  ==============================================
    """

    valid: bool
    errors: list[ErrorDict] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_MISSING = object()


def _type_matches(declared_type: str, value: object) -> bool:
    """
    Return ``True`` if *value* is compatible with *declared_type*.

    ``"number"`` accepts ``int`` and ``float`` but rejects :class:`bool`.
    Unknown declared types never match.
    """
    if declared_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if declared_type == "string":
        return isinstance(value, str)
    if declared_type == "boolean":
        return isinstance(value, bool)
    if declared_type == "array":
        return isinstance(value, list)
    if declared_type == "object":
        return isinstance(value, dict)
    return False


def resolve_path(data: ConfigValue, path: str) -> object:
    """
    Walk *path* through *data*, returning ``_MISSING`` if any segment is
    absent.  Integer segments index lists.
    """
    current: object = data
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return _MISSING
            current = current[index]
        else:
            return _MISSING
    return current


def load_schema(schema: str) -> tuple[dict | None, list[ErrorDict]]:
    """
    Parse and check a JSON schema document.

    Returns:
        ``(schema_dict, [])`` on success, ``(None, errors)`` otherwise.
    """
    try:
        schema_doc = json.loads(schema)
    except ValueError as exc:
        return None, [{
            "field": "schema",
            "code": "invalid_schema",
            "message": f"Schema is not valid JSON: {exc}.",
        }]
    try:
        Draft202012Validator.check_schema(schema_doc)
    except SchemaError as exc:
        return None, [{
            "field": "schema",
            "code": "invalid_schema",
            "message": f"Schema is not a valid JSON schema: {exc.message}.",
        }]
    return schema_doc, []


# ---------------------------------------------------------------------------
# Validator
# ---------------------------------------------------------------------------

class ContentValidationService:
    """
    Validates parsed configuration content against a JSON schema and a set
    of template variables.

    All rules are evaluated and **all errors are accumulated** before
    returning; the validator never short-circuits on the first failure.

    Usage::

        request = ContentValidationRequest(
            data={"delay": 30},
            format=ConfigFormat.YAML,
            schema='{"type": "object", "required": ["delay"]}',
            variables=[VariableRule(name="DELAY", path="delay", type="number")],
        )
        result = ContentValidationService.validate(request)
        if not result.valid:
            for err in result.errors:
                print(err["field"], err["code"], err["message"])
    """

    @staticmethod
    def validate(request: ContentValidationRequest) -> ContentValidationResult:
        """
        Validate *request.data*.

        Enforces, in order:

        1. JSON schema (Draft 2020-12), when ``request.schema`` is given.
        2. Required variable paths.
        3. Declared variable types (skipped for ENV content).
        4. ``validation_rule`` regular expressions.

        Returns:
            A :class:`ContentValidationResult` where ``valid`` is ``True``
            iff no errors were found.
        """
        errors: list[ErrorDict] = []

        # ── Rule 1: JSON schema ───────────────────────────────────────────
        if request.schema:
            ContentValidationService._validate_schema(request.data, request.schema, errors)

        # ── Rules 2-4: template variables ────────────────────────────────
        for variable in request.variables:
            ContentValidationService._validate_variable(
                variable=variable,
                data=request.data,
                check_type=request.format is not ConfigFormat.ENV,
                errors=errors,
            )

        return ContentValidationResult(valid=len(errors) == 0, errors=errors)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_schema(data: KeyedData, schema: str, errors: list[ErrorDict]) -> None:
        schema_doc, schema_errors = load_schema(schema)
        if schema_doc is None:
            errors.extend(schema_errors)
            return

        validator = Draft202012Validator(schema_doc)
        for err in sorted(validator.iter_errors(data), key=lambda e: list(map(str, e.absolute_path))):
            path = ".".join(str(p) for p in err.absolute_path)
            errors.append({
                "field": path or "$",
                "code": "schema_violation",
                "message": err.message,
            })

    @staticmethod
    def _validate_variable(
        variable: VariableRule,
        data: KeyedData,
        check_type: bool,
        errors: list[ErrorDict],
    ) -> None:
        """
        Run rules 2-4 for a single variable.

        Appends any errors found to *errors*; does not raise.
        """
        value = resolve_path(data, variable.path)

        # ── Rule 2: required ─────────────────────────────────────────────
        if value is _MISSING:
            if variable.required:
                errors.append({
                    "field": variable.path,
                    "code": "missing_required",
                    "message": (
                        f'Variable "{variable.name}" is required but '
                        f'"{variable.path}" was not found.'
                    ),
                })
            return

        # ── Rule 3: type consistency ──────────────────────────────────────
        if check_type and not _type_matches(variable.type, value):
            errors.append({
                "field": variable.path,
                "code": "type_mismatch",
                "message": (
                    f'Variable "{variable.name}" expects type "{variable.type}"; '
                    f"got {type(value).__name__}."
                ),
            })
            # The rule check assumes a value of the declared type.
            return

        # ── Rule 4: validation rule ───────────────────────────────────────
        if not variable.validation_rule:
            return
        try:
            pattern = re.compile(variable.validation_rule)
        except re.error as exc:
            errors.append({
                "field": variable.path,
                "code": "invalid_rule",
                "message": f'Validation rule for "{variable.name}" is not a valid regex: {exc}.',
            })
            return

        text = value if isinstance(value, str) else json.dumps(value)
        if pattern.fullmatch(text) is None:
            errors.append({
                "field": variable.path,
                "code": "rule_violation",
                "message": (
                    f'Value {value!r} of "{variable.name}" does not match '
                    f"{variable.validation_rule!r}."
                ),
            })
