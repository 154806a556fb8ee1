from django.db import models


class Employee(models.Model):
    """Employee directory record. The id doubles as the scanner payload."""

    id = models.CharField(
        primary_key=True,
        max_length=64,
        help_text='External-facing identifier chosen at creation; immutable afterwards',
    )
    name = models.CharField(max_length=255)
    area = models.CharField(max_length=255, help_text='Free-text department')
    schedule = models.ForeignKey(
        'attendance.Schedule',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='employees',
    )
    barcode = models.CharField(max_length=128, unique=True)
    photo_url = models.CharField(max_length=500, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'employees'
        verbose_name = 'Employee'
        verbose_name_plural = 'Employees'
        ordering = ['name']
        indexes = [
            models.Index(fields=['area'], name='employees_area_idx'),
        ]

    def __str__(self):
        return f"{self.name} ({self.id})"
