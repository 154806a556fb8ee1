from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Employee",
            fields=[
                (
                    "id",
                    models.CharField(
                        help_text="External-facing identifier chosen at creation; immutable afterwards",
                        max_length=64,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=255)),
                ("area", models.CharField(help_text="Free-text department", max_length=255)),
                ("barcode", models.CharField(max_length=128, unique=True)),
                ("photo_url", models.CharField(blank=True, max_length=500, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Employee",
                "verbose_name_plural": "Employees",
                "db_table": "employees",
                "ordering": ["name"],
                "indexes": [models.Index(fields=["area"], name="employees_area_idx")],
            },
        ),
    ]
