from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("template_registry", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="UserConfig",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("format", models.CharField(choices=[("json", "JSON"), ("yaml", "YAML"), ("toml", "TOML"), ("env", "ENV")], max_length=10)),
                ("content", models.TextField()),
                ("is_shared", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("template", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="user_configs", to="template_registry.configtemplate")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="configs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "User Config",
                "verbose_name_plural": "User Configs",
                "ordering": ["-updated_at", "-id"],
                "constraints": [
                    models.UniqueConstraint(fields=("user", "name"), name="unique_config_name_per_user"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ConfigVersion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("version", models.PositiveIntegerField()),
                ("content", models.TextField()),
                ("change_note", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("config", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="versions", to="documents.userconfig")),
                ("created_by", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="config_versions", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Config Version",
                "verbose_name_plural": "Config Versions",
                "ordering": ["config", "-version"],
                "indexes": [
                    models.Index(fields=["config", "-version"], name="config_version_desc_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("config", "version"), name="unique_config_version"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ConfigImport",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("source_type", models.CharField(choices=[("local", "Local file"), ("url", "URL"), ("github", "GitHub"), ("gitlab", "GitLab")], max_length=20)),
                ("source_url", models.TextField()),
                ("status", models.CharField(choices=[("pending", "Pending"), ("processing", "Processing"), ("completed", "Completed"), ("failed", "Failed")], db_index=True, default="pending", max_length=20)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("config", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="imports", to="documents.userconfig")),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="config_imports", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name": "Config Import",
                "verbose_name_plural": "Config Imports",
                "ordering": ["-created_at", "-id"],
            },
        ),
    ]
