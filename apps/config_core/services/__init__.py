"""
apps.config_core.services package.
"""
from .config_parser import ConfigParser  # noqa: F401
from .content_validator import VariableRule  # noqa: F401
from .errors import (  # noqa: F401
    ConfigFormatError,
    DetectionError,
    FormatError,
    SchemaViolationError,
)
from .formats import (  # noqa: F401
    FORMAT_CHOICES,
    ConfigFormat,
    ConfigValue,
    KeyedData,
    ValueKind,
    value_kind,
)
