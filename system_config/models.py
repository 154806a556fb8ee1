from django.db import models


class SystemConfig(models.Model):
    """
    Stored value of one front-end setting. Keys and value types are
    described in system_config.services.SETTING_DEFINITIONS.
    """

    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "system_config"
        verbose_name = "System Setting"
        verbose_name_plural = "System Settings"
        ordering = ["key"]

    def __str__(self):
        return f"{self.key}={self.value!r}"
