from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ConfigTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255, unique=True)),
                ("display_name", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("version", models.CharField(default="1.0.0", max_length=50)),
                ("category", models.CharField(db_index=True, max_length=100)),
                ("format", models.CharField(choices=[("json", "JSON"), ("yaml", "YAML"), ("toml", "TOML"), ("env", "ENV")], max_length=10)),
                ("default_content", models.TextField()),
                ("schema", models.TextField(blank=True, help_text="JSON schema used to validate configurations built from this template.", null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Config Template",
                "verbose_name_plural": "Config Templates",
                "ordering": ["category", "name"],
            },
        ),
        migrations.CreateModel(
            name="ConfigVariable",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("path", models.CharField(help_text="Dot-separated path into the parsed content, e.g. 'torznab.0.url'.", max_length=500)),
                ("type", models.CharField(choices=[("string", "String"), ("number", "Number"), ("boolean", "Boolean"), ("array", "Array"), ("object", "Object")], default="string", max_length=20)),
                ("description", models.TextField(blank=True, default="")),
                ("default_value", models.TextField(blank=True, null=True)),
                ("required", models.BooleanField(default=False)),
                ("validation_rule", models.TextField(blank=True, help_text="Regular expression the value must fully match.", null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="variables", to="template_registry.configtemplate")),
            ],
            options={
                "verbose_name": "Config Variable",
                "verbose_name_plural": "Config Variables",
                "ordering": ["template", "name"],
                "constraints": [
                    models.UniqueConstraint(fields=("template", "name"), name="unique_variable_name_per_template"),
                ],
            },
        ),
    ]
