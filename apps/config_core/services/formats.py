"""
apps.config_core.services.formats
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
The ``ConfigFormat`` discriminator and the generic value model shared by
every codec.

Value model
-----------
Parsed configuration content is a :data:`KeyedData` mapping whose values
are drawn from exactly this union::

    str | int | float | bool | None | list[ConfigValue] | dict[str, ConfigValue]

``int`` and ``float`` are kept distinct on purpose: JSON numbers always
parse as ``float`` while YAML and TOML integers parse as ``int``, and that
asymmetry is observable through :func:`value_kind`.

Library output that falls outside the union is coerced by
:func:`normalize_value`:

- ``datetime`` / ``date`` / ``time`` values → ISO-8601 strings.
- Non-string mapping keys → their scalar string form (``true``, ``42``).
- Anything else (binary blobs, sets, custom objects) → :class:`FormatError`.

YAML aliases arrive as shared references.  They are normalized once and
stay shared, and a document whose alias-expanded size exceeds
:data:`MAX_EXPANDED_NODES` is rejected, as is one that refers to itself.
"""
from __future__ import annotations

import datetime
import enum
from typing import Union

from .errors import FormatError

ConfigValue = Union[str, int, float, bool, None, list["ConfigValue"], dict[str, "ConfigValue"]]

#: Top-level parsed configuration content.
KeyedData = dict[str, ConfigValue]


class ConfigFormat(str, enum.Enum):
    """Serialization formats understood by the engine."""

    JSON = "json"
    YAML = "yaml"
    TOML = "toml"
    ENV = "env"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_value(cls, value: "ConfigFormat | str") -> "ConfigFormat":
        """
        Coerce *value* into a :class:`ConfigFormat`.

        Raises:
            FormatError: If *value* names no supported format.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise FormatError(f"unsupported format: {value}") from None


#: Django ``choices`` for model and serializer fields.
FORMAT_CHOICES: list[tuple[str, str]] = [(f.value, f.name) for f in ConfigFormat]


class ValueKind(str, enum.Enum):
    """Tag of a :data:`ConfigValue`."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    MAPPING = "mapping"


def value_kind(value: ConfigValue) -> ValueKind:
    """
    Return the tag of *value*.

    ``bool`` is checked before ``int`` because it is an ``int`` subclass.

    Raises:
        FormatError: If *value* is outside the value model.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, int):
        return ValueKind.INTEGER
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.MAPPING
    raise FormatError(f"unsupported value type: {type(value).__name__}")


def scalar_to_string(value: ConfigValue) -> str:
    """
    Render a scalar in its natural text form.

    Booleans become ``true``/``false``, ``None`` becomes ``null`` and
    integral floats drop their fractional part (``42.0`` → ``42``).
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


#: Largest node count a document may reach once its aliases are expanded.
MAX_EXPANDED_NODES = 1_000_000


def normalize_value(value: object, format: str | None = None) -> ConfigValue:
    """
    Coerce a parser library's output into the shared value model.

    Args:
        value: Raw output of ``json`` / ``yaml`` / ``tomllib``.
        format: Format name used in error messages.

    Returns:
        A new value built only from the :data:`ConfigValue` union.
        Containers shared in *value* are shared in the result.

    Raises:
        FormatError: If *value* contains a type the model cannot hold,
            refers to itself, nests too deeply, or expands past
            :data:`MAX_EXPANDED_NODES`.
    """
    try:
        converted, _ = _Normalizer(format).convert(value)
    except RecursionError as exc:
        raise FormatError(f"{format or 'document'} nesting is too deep", format=format) from exc
    return converted


class _Normalizer:
    """One normalization pass; remembers every container it has converted."""

    def __init__(self, format: str | None) -> None:
        self.format = format
        self._done: dict[int, tuple[ConfigValue, int]] = {}
        self._open: set[int] = set()

    def convert(self, value: object) -> tuple[ConfigValue, int]:
        """Return ``(normalized value, expanded node count)``."""
        if value is None or isinstance(value, (str, bool, int, float)):
            return value, 1
        if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            return value.isoformat(), 1
        if not isinstance(value, (list, tuple, dict)):
            raise FormatError(
                f"unsupported value type: {type(value).__name__}", format=self.format
            )

        # The raw tree outlives this pass, so ids stay unique.
        node_id = id(value)
        if node_id in self._done:
            return self._done[node_id]
        if node_id in self._open:
            raise FormatError(f"{self.format or 'document'} value refers to itself", format=self.format)

        self._open.add(node_id)
        try:
            size = 1
            if isinstance(value, dict):
                result: ConfigValue = {}
                for key, item in value.items():
                    converted, item_size = self.convert(item)
                    result[key if isinstance(key, str) else _normalize_key(key, self.format)] = converted
                    size += item_size
            else:
                result = []
                for item in value:
                    converted, item_size = self.convert(item)
                    result.append(converted)
                    size += item_size
        finally:
            self._open.discard(node_id)

        if size > MAX_EXPANDED_NODES:
            raise FormatError(
                f"{self.format or 'document'} expands to more than {MAX_EXPANDED_NODES} values",
                format=self.format,
            )
        self._done[node_id] = (result, size)
        return result, size


def _normalize_key(key: object, format: str | None) -> str:
    if key is None or isinstance(key, (bool, int, float)):
        return scalar_to_string(key)
    if isinstance(key, (datetime.datetime, datetime.date, datetime.time)):
        return key.isoformat()
    raise FormatError(
        f"unsupported mapping key type: {type(key).__name__}", format=format
    )
