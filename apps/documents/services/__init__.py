"""
apps.documents.services package.

:func:`get_config_service` builds the process-wide :class:`ConfigService`
from settings on first use.
"""
from functools import lru_cache

from django.conf import settings

from apps.documents.repositories import DjangoConfigRepository
from .config_service import ConfigService  # noqa: F401


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    return ConfigService(
        DjangoConfigRepository(),
        export_default_format=settings.EXPORT_DEFAULT_FORMAT,
    )
