"""
apps.config_core.services.format_detector
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Deterministic format detection for raw configuration text.

Detection order (first success wins):

    1. Empty / whitespace-only content → :class:`DetectionError`.
    2. JSON   – any well-formed JSON value.
    3. YAML   – any well-formed YAML document.
    4. TOML   – any well-formed TOML document.
    5. ENV    – every non-blank, non-comment line contains ``=`` and at
       least one such line exists.
    6. Otherwise → :class:`DetectionError`.

Strict formats are tried before permissive ones.  YAML accepts most plain
text (``"A=1\\nB=2"`` is a valid YAML scalar), so it claims many inputs that
look like ENV or TOML.  Stored content has been detected with this order,
so it must not change.

This module is **pure Python**.
"""
from __future__ import annotations

from .codecs import JsonCodec, TomlCodec, YamlCodec, is_env_line
from .errors import DetectionError, FormatError
from .formats import ConfigFormat

#: Syntax-checked formats, in precedence order.
_DETECTION_ORDER = (JsonCodec, YamlCodec, TomlCodec)


class FormatDetector:
    """Stateless detector; see the module docstring for the algorithm."""

    @staticmethod
    def detect(content: str) -> ConfigFormat:
        """
        Return the format of *content*.

        Raises:
            DetectionError: ``"empty content"`` for blank input, or
                ``"unable to detect configuration format"`` when nothing
                matched.
        """
        content = content.strip()
        if not content:
            raise DetectionError("empty content")

        for codec in _DETECTION_ORDER:
            try:
                codec.load(content)
            except FormatError:
                continue
            return codec.format

        if FormatDetector.looks_like_env(content):
            return ConfigFormat.ENV

        raise DetectionError("unable to detect configuration format")

    @staticmethod
    def looks_like_env(content: str) -> bool:
        """Heuristic ENV check: all meaningful lines contain ``=``, and one exists."""
        meaningful = [
            line for line in content.split("\n")
            if line.strip() and not line.strip().startswith("#")
        ]
        return bool(meaningful) and all(is_env_line(line) for line in meaningful)
