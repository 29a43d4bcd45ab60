"""
apps.template_registry.apps
"""
from django.apps import AppConfig


class TemplateRegistryConfig(AppConfig):
    name = "apps.template_registry"
    label = "template_registry"
    verbose_name = "Template Registry"
