import uuid

import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("employees", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Schedule",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("name", models.CharField(max_length=255)),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField()),
                ("breakfast_start", models.TimeField(blank=True, null=True)),
                ("breakfast_end", models.TimeField(blank=True, null=True)),
                ("lunch_start", models.TimeField(blank=True, null=True)),
                ("lunch_end", models.TimeField(blank=True, null=True)),
                (
                    "tolerance_minutes",
                    models.IntegerField(default=15, validators=[django.core.validators.MinValueValidator(0)]),
                ),
                ("is_default", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name": "Schedule",
                "verbose_name_plural": "Schedules",
                "db_table": "schedules",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("is_default", True)),
                        fields=("is_default",),
                        name="uniq_default_schedule",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendanceEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("timestamp", models.DateTimeField()),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("entrada", "Entrada"),
                            ("salida_desayuno", "Salida desayuno"),
                            ("entrada_desayuno", "Entrada desayuno"),
                            ("salida_comida", "Salida comida"),
                            ("entrada_comida", "Entrada comida"),
                            ("salida_general", "Salida general"),
                            ("auto_checkout", "Salida automática"),
                        ],
                        max_length=20,
                    ),
                ),
                ("date", models.DateField(help_text="Local calendar day the event belongs to")),
                (
                    "sequence",
                    models.PositiveSmallIntegerField(
                        blank=True,
                        help_text="Ordinal position within the day; null for automatic checkouts",
                        null=True,
                        validators=[django.core.validators.MaxValueValidator(5)],
                    ),
                ),
                ("notes", models.TextField(blank=True, default="")),
                ("is_automatic", models.BooleanField(default=False)),
                (
                    "employee",
                    models.ForeignKey(
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="attendance_events",
                        to="employees.employee",
                    ),
                ),
            ],
            options={
                "verbose_name": "Attendance Event",
                "verbose_name_plural": "Attendance Events",
                "db_table": "attendance",
                "ordering": ["-timestamp"],
                "indexes": [
                    models.Index(fields=["date", "type"], name="attendance_date_type_idx"),
                    models.Index(fields=["employee", "date"], name="attendance_employee_date_idx"),
                    models.Index(fields=["timestamp"], name="attendance_timestamp_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("employee", "date", "sequence"),
                        name="uniq_attendance_sequence_per_day",
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(("type", "auto_checkout")),
                        fields=("employee", "date"),
                        name="uniq_auto_checkout_per_day",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AttendanceDay",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("position", models.PositiveSmallIntegerField(default=0)),
                (
                    "last_event_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("entrada", "Entrada"),
                            ("salida_desayuno", "Salida desayuno"),
                            ("entrada_desayuno", "Entrada desayuno"),
                            ("salida_comida", "Salida comida"),
                            ("entrada_comida", "Entrada comida"),
                            ("salida_general", "Salida general"),
                            ("auto_checkout", "Salida automática"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("last_event_at", models.DateTimeField(blank=True, null=True)),
                ("closed_automatically", models.BooleanField(default=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "employee",
                    models.ForeignKey(
                        db_constraint=False,
                        on_delete=django.db.models.deletion.DO_NOTHING,
                        related_name="attendance_days",
                        to="employees.employee",
                    ),
                ),
            ],
            options={
                "verbose_name": "Attendance Day",
                "verbose_name_plural": "Attendance Days",
                "db_table": "attendance_days",
                "constraints": [
                    models.UniqueConstraint(fields=("employee", "date"), name="uniq_attendance_day"),
                ],
            },
        ),
    ]
