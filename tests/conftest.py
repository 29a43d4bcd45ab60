"""
Shared fixtures for the conflux test suite.
"""
from __future__ import annotations

import pytest
from rest_framework.test import APIClient

from apps.documents.repositories import DjangoConfigRepository
from apps.documents.services import ConfigService
from apps.template_registry.models import ConfigTemplate, ConfigVariable


# ===========================================================================
# Realistic content
# ===========================================================================

REALISTIC_YAML = """\
# Cross-seed configuration
delay: 30
outputDir: "/downloads/torrents"
torznab:
  - name: "prowlarr"
    url: "http://prowlarr:9696/1/api"
    apikey: "your-api-key"
action: "inject"
includeEpisodes: false
"""

REALISTIC_SCHEMA = """\
{
  "type": "object",
  "required": ["delay", "action"],
  "properties": {
    "delay": {"type": "integer", "minimum": 0},
    "action": {"enum": ["inject", "save"]},
    "torznab": {
      "type": "array",
      "items": {"type": "object", "required": ["url"]}
    }
  }
}
"""


# ===========================================================================
# Fixtures
# ===========================================================================

@pytest.fixture
def api_client() -> APIClient:
    """Return an unauthenticated DRF APIClient."""
    return APIClient()


@pytest.fixture
def alice(django_user_model):
    return django_user_model.objects.create_user(username="alice", password="pw-alice")


@pytest.fixture
def bob(django_user_model):
    return django_user_model.objects.create_user(username="bob", password="pw-bob")


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_user(
        username="admin", password="pw-admin", is_staff=True
    )


@pytest.fixture
def alice_client(alice) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=alice)
    return client


@pytest.fixture
def bob_client(bob) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=bob)
    return client


@pytest.fixture
def admin_client(admin_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def service(db) -> ConfigService:
    """A service over the real ORM repository."""
    return ConfigService(DjangoConfigRepository())


@pytest.fixture
def seedbox_template(db) -> ConfigTemplate:
    """
    A YAML template with a JSON schema and three variables: a required
    number, a required URL with a regex rule, and an optional string.
    """
    template = ConfigTemplate.objects.create(
        name="seedbox",
        display_name="Seedbox",
        description="Cross-seed settings for a seedbox",
        category="torrenting",
        format="yaml",
        default_content=REALISTIC_YAML,
        schema=REALISTIC_SCHEMA,
    )
    ConfigVariable.objects.bulk_create([
        ConfigVariable(template=template, name="DELAY", path="delay", type="number", required=True),
        ConfigVariable(
            template=template,
            name="INDEXER_URL",
            path="torznab.0.url",
            type="string",
            required=True,
            validation_rule=r"https?://\S+",
        ),
        ConfigVariable(template=template, name="OUTPUT_DIR", path="outputDir", type="string"),
    ])
    return template
