import uuid

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.db.models import Q


class Schedule(models.Model):
    """
    Named working schedule with optional breakfast and lunch windows.
    Used for display; scan times are not checked against it.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    start_time = models.TimeField()
    end_time = models.TimeField()
    breakfast_start = models.TimeField(blank=True, null=True)
    breakfast_end = models.TimeField(blank=True, null=True)
    lunch_start = models.TimeField(blank=True, null=True)
    lunch_end = models.TimeField(blank=True, null=True)
    tolerance_minutes = models.IntegerField(default=15, validators=[MinValueValidator(0)])
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "schedules"
        verbose_name = "Schedule"
        verbose_name_plural = "Schedules"
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(
                fields=["is_default"],
                condition=Q(is_default=True),
                name="uniq_default_schedule",
            )
        ]

    def __str__(self):
        return f"{self.name} ({self.start_time:%H:%M}-{self.end_time:%H:%M})"


class AttendanceEvent(models.Model):
    """
    One row of the append-only attendance ledger.
    """

    TYPE_ENTRADA = "entrada"
    TYPE_SALIDA_DESAYUNO = "salida_desayuno"
    TYPE_ENTRADA_DESAYUNO = "entrada_desayuno"
    TYPE_SALIDA_COMIDA = "salida_comida"
    TYPE_ENTRADA_COMIDA = "entrada_comida"
    TYPE_SALIDA_GENERAL = "salida_general"
    TYPE_AUTO_CHECKOUT = "auto_checkout"
    TYPE_CHOICES = [
        (TYPE_ENTRADA, "Entrada"),
        (TYPE_SALIDA_DESAYUNO, "Salida desayuno"),
        (TYPE_ENTRADA_DESAYUNO, "Entrada desayuno"),
        (TYPE_SALIDA_COMIDA, "Salida comida"),
        (TYPE_ENTRADA_COMIDA, "Entrada comida"),
        (TYPE_SALIDA_GENERAL, "Salida general"),
        (TYPE_AUTO_CHECKOUT, "Salida automática"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    # No database constraint: ledger rows outlive the employee they reference.
    employee = models.ForeignKey(
        "employees.Employee",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="attendance_events",
    )
    timestamp = models.DateTimeField()
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    date = models.DateField(help_text="Local calendar day the event belongs to")
    sequence = models.PositiveSmallIntegerField(
        blank=True,
        null=True,
        validators=[MaxValueValidator(5)],
        help_text="Ordinal position within the day; null for automatic checkouts",
    )
    notes = models.TextField(blank=True, default="")
    is_automatic = models.BooleanField(default=False)

    class Meta:
        db_table = "attendance"
        verbose_name = "Attendance Event"
        verbose_name_plural = "Attendance Events"
        ordering = ["-timestamp"]
        constraints = [
            models.UniqueConstraint(
                fields=["employee", "date", "sequence"],
                name="uniq_attendance_sequence_per_day",
            ),
            models.UniqueConstraint(
                fields=["employee", "date"],
                condition=Q(type="auto_checkout"),
                name="uniq_auto_checkout_per_day",
            ),
        ]
        indexes = [
            models.Index(fields=["date", "type"], name="attendance_date_type_idx"),
            models.Index(fields=["employee", "date"], name="attendance_employee_date_idx"),
            models.Index(fields=["timestamp"], name="attendance_timestamp_idx"),
        ]

    def __str__(self):
        return f"{self.employee_id} {self.type} @ {self.timestamp}"


class AttendanceDay(models.Model):
    """
    Check-in state for one employee on one day. Locked for every scan and
    sweep of that day so the ordinal position advances one step at a time.
    """

    employee = models.ForeignKey(
        "employees.Employee",
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        related_name="attendance_days",
    )
    date = models.DateField()
    position = models.PositiveSmallIntegerField(default=0)
    last_event_type = models.CharField(
        max_length=20, choices=AttendanceEvent.TYPE_CHOICES, blank=True, null=True
    )
    last_event_at = models.DateTimeField(blank=True, null=True)
    closed_automatically = models.BooleanField(default=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "attendance_days"
        verbose_name = "Attendance Day"
        verbose_name_plural = "Attendance Days"
        constraints = [
            models.UniqueConstraint(fields=["employee", "date"], name="uniq_attendance_day"),
        ]

    @property
    def is_complete(self) -> bool:
        return self.closed_automatically or self.position >= 6

    def __str__(self):
        return f"{self.employee_id} {self.date} ({self.position}/6)"
