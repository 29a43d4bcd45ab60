from django.db import migrations

CROSS_SEED_CONTENT = """\
# Cross-seed configuration
delay: 30
outputDir: "/downloads/torrents"
torrentDir: "/watch/folders"
duplicateCategories: true

# Torrent client settings
torznab:
  - name: "prowlarr"
    url: "http://prowlarr:9696/1/api"
    apikey: "your-api-key"

# Action settings
action: "inject"
includeEpisodes: false
includeSingleEpisodes: true
includeNonVideos: false

# Matching settings
matchMode: "safe"
skipRecheck: false
maxDataDepth: 1

# Logging
verbose: false
"""


def seed_cross_seed(apps, schema_editor):
    ConfigTemplate = apps.get_model("template_registry", "ConfigTemplate")
    ConfigTemplate.objects.get_or_create(
        name="cross-seed",
        defaults={
            "display_name": "Cross-Seed",
            "description": "Automatic cross-seeding configuration for torrent clients",
            "category": "torrenting",
            "format": "yaml",
            "default_content": CROSS_SEED_CONTENT,
        },
    )


def unseed_cross_seed(apps, schema_editor):
    ConfigTemplate = apps.get_model("template_registry", "ConfigTemplate")
    ConfigTemplate.objects.filter(name="cross-seed").delete()


class Migration(migrations.Migration):

    dependencies = [
        ("template_registry", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_cross_seed, unseed_cross_seed),
    ]
