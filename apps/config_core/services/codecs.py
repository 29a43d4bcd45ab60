"""
apps.config_core.services.codecs
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Format-specific parse/serialize pairs.

Every codec is stateless and exposes three static methods:

``load(text)``
    Syntax check returning whatever top-level value the format allows.
    Used by the format detector, which accepts any well-formed document.
``parse(text) -> KeyedData``
    Parse into the shared value model; the top-level value must be a
    mapping.
``serialize(data) -> str``
    Render a :data:`~apps.config_core.services.formats.KeyedData` mapping.

All failures are reported as :class:`~.errors.FormatError`; codecs never
let a library exception escape.

Number policy
-------------
JSON integers parse as ``float`` (``{"n": 42}`` → ``42.0``).  YAML and TOML
integers parse as ``int``.  Converting between them is therefore not
value-preserving, and that is intentional.  JSON numbers too large for a
float are rejected rather than read as infinity.
"""
from __future__ import annotations

import json
import math
import re
import tomllib

import tomli_w
import yaml

from .errors import FormatError
from .formats import ConfigFormat, ConfigValue, KeyedData, normalize_value, scalar_to_string


def _require_mapping(value: object, format: ConfigFormat) -> dict:
    if not isinstance(value, dict):
        raise FormatError(
            f"{format.value} document must be a mapping at the top level; "
            f"got {type(value).__name__}",
            format=format.value,
        )
    return value


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------

def _reject_constant(name: str) -> float:
    raise ValueError(f"invalid JSON constant: {name}")


def _finite_number(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number out of range: {text[:32]}")
    return value


class JsonCodec:
    """Standard JSON; numbers parse as floating point."""

    format = ConfigFormat.JSON

    @staticmethod
    def load(text: str) -> ConfigValue:
        try:
            return json.loads(
                text,
                parse_int=_finite_number,
                parse_float=_finite_number,
                parse_constant=_reject_constant,
            )
        except (ValueError, RecursionError) as exc:
            raise FormatError(f"invalid json: {exc}", format="json") from exc

    @staticmethod
    def parse(text: str) -> KeyedData:
        return _require_mapping(JsonCodec.load(text), ConfigFormat.JSON)

    @staticmethod
    def serialize(data: KeyedData) -> str:
        try:
            return json.dumps(data, indent=2, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError, RecursionError) as exc:
            raise FormatError(f"cannot serialize json: {exc}", format="json") from exc


# ---------------------------------------------------------------------------
# YAML
# ---------------------------------------------------------------------------

class YamlCodec:
    """YAML via PyYAML's safe loader; integers stay ``int``."""

    format = ConfigFormat.YAML

    @staticmethod
    def load(text: str) -> object:
        try:
            return yaml.safe_load(text)
        except (yaml.YAMLError, RecursionError) as exc:
            raise FormatError(f"invalid yaml: {exc}", format="yaml") from exc

    @staticmethod
    def parse(text: str) -> KeyedData:
        value = YamlCodec.load(text)
        if value is None:
            # Empty or comment-only document.
            return {}
        return normalize_value(_require_mapping(value, ConfigFormat.YAML), "yaml")

    @staticmethod
    def serialize(data: KeyedData) -> str:
        try:
            return yaml.safe_dump(
                data,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        except (yaml.YAMLError, RecursionError) as exc:
            raise FormatError(f"cannot serialize yaml: {exc}", format="yaml") from exc


# ---------------------------------------------------------------------------
# TOML
# ---------------------------------------------------------------------------

def _strip_nulls(value: ConfigValue) -> object:
    """TOML has no null: drop ``None`` table values, reject ``None`` array items."""
    if isinstance(value, dict):
        return {k: _strip_nulls(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        if any(item is None for item in value):
            raise FormatError("toml arrays cannot contain null values", format="toml")
        return [_strip_nulls(item) for item in value]
    return value


class TomlCodec:
    """TOML via ``tomllib`` (read) and ``tomli_w`` (write); integers stay ``int``."""

    format = ConfigFormat.TOML

    @staticmethod
    def load(text: str) -> dict:
        try:
            return tomllib.loads(text)
        except (tomllib.TOMLDecodeError, RecursionError) as exc:
            raise FormatError(f"invalid toml: {exc}", format="toml") from exc

    @staticmethod
    def parse(text: str) -> KeyedData:
        return normalize_value(TomlCodec.load(text), "toml")

    @staticmethod
    def serialize(data: KeyedData) -> str:
        try:
            return tomli_w.dumps(_strip_nulls(data))
        except (TypeError, ValueError, RecursionError) as exc:
            raise FormatError(f"cannot serialize toml: {exc}", format="toml") from exc


# ---------------------------------------------------------------------------
# ENV
# ---------------------------------------------------------------------------

#: Values matching this pattern are written double-quoted.
_NEEDS_QUOTING = re.compile(r"[\s\"'\\]")

_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "r": "\r", "t": "\t"}
_ESCAPE_PATTERN = re.compile(r'\\(["\\nrt])')
_REVERSE_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _unquote(value: str) -> str:
    """Strip one layer of matching quotes; decode escapes inside double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        inner = value[1:-1]
        if value[0] == '"':
            return _ESCAPE_PATTERN.sub(lambda m: _ESCAPES[m.group(1)], inner)
        return inner
    return value


def _quote(value: str) -> str:
    return '"' + "".join(_REVERSE_ESCAPES.get(ch, ch) for ch in value) + '"'


def _is_env_key(key: str) -> bool:
    return (
        bool(key)
        and key == key.strip()
        and not key.startswith("#")
        and not any(ch in key for ch in "=\n\r")
    )


def is_env_line(line: str) -> bool:
    """Return ``True`` if *line* is blank, a ``#`` comment, or contains ``=``."""
    stripped = line.strip()
    return not stripped or stripped.startswith("#") or "=" in stripped


class EnvCodec:
    """
    Line-oriented ``KEY=VALUE`` format.

    - Blank lines and lines starting with ``#`` are skipped.
    - Each other line is split on the **first** ``=``; a line without one is
      a :class:`FormatError` (``invalid env line: <line>``).
    - Keys and values are trimmed; one layer of matching quotes is removed.
    - Every value parses as a string; there is no type coercion.

    Keys that would read back differently (empty, padded, containing
    ``=`` or a line break, or starting with ``#``) cannot be serialized.
    """

    format = ConfigFormat.ENV

    @staticmethod
    def load(text: str) -> KeyedData:
        return EnvCodec.parse(text)

    @staticmethod
    def parse(text: str) -> KeyedData:
        data: KeyedData = {}
        for raw_line in text.split("\n"):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            key, sep, value = line.partition("=")
            if not sep:
                raise FormatError(f"invalid env line: {line}", format="env")
            data[key.strip()] = _unquote(value.strip())
        return data

    @staticmethod
    def serialize(data: KeyedData) -> str:
        lines: list[str] = []
        for key, value in data.items():
            if not _is_env_key(key):
                raise FormatError(f"invalid env key: {key!r}", format="env")
            if isinstance(value, (dict, list)):
                # Composite values are embedded as compact JSON.
                text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
            else:
                text = scalar_to_string(value)
            if _NEEDS_QUOTING.search(text):
                text = _quote(text)
            lines.append(f"{key}={text}")
        return "\n".join(lines)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

CODECS: dict[ConfigFormat, type] = {
    ConfigFormat.JSON: JsonCodec,
    ConfigFormat.YAML: YamlCodec,
    ConfigFormat.TOML: TomlCodec,
    ConfigFormat.ENV: EnvCodec,
}


def get_codec(format: ConfigFormat | str) -> type:
    """Return the codec class for *format*, raising :class:`FormatError` if unknown."""
    return CODECS[ConfigFormat.from_value(format)]
