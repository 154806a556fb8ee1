import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from rest_framework.exceptions import NotFound, ValidationError

from .models import SystemConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SettingDefinition:
    key: str
    type: type
    default: Any
    min_value: Optional[int] = None
    max_value: Optional[int] = None

    def validate(self, value):
        # bool is a subclass of int; a flag is never a valid number.
        if self.type is int and (isinstance(value, bool) or not isinstance(value, int)):
            raise ValidationError({"value": [f"{self.key} must be an integer."]})
        if self.type is bool and not isinstance(value, bool):
            raise ValidationError({"value": [f"{self.key} must be true or false."]})
        if self.min_value is not None and value < self.min_value:
            raise ValidationError({"value": [f"{self.key} must be at least {self.min_value}."]})
        if self.max_value is not None and value > self.max_value:
            raise ValidationError({"value": [f"{self.key} must be at most {self.max_value}."]})
        return value


SETTING_DEFINITIONS = {
    definition.key: definition
    for definition in (
        SettingDefinition("autoScan", bool, True),
        SettingDefinition("cameraFallback", bool, False),
        SettingDefinition("lockoutTime", int, 60, min_value=0, max_value=3600),
        SettingDefinition("soundAlerts", bool, True),
        SettingDefinition("showPhoto", bool, True),
        SettingDefinition("notificationDuration", int, 3, min_value=1, max_value=60),
        SettingDefinition("toleranceMinutes", int, 15, min_value=0, max_value=240),
    )
}


@dataclass
class SystemSettings:
    """Resolved front-end settings: stored values over defaults."""

    autoScan: bool = True
    cameraFallback: bool = False
    lockoutTime: int = 60
    soundAlerts: bool = True
    showPhoto: bool = True
    notificationDuration: int = 3
    toleranceMinutes: int = 15

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def get_definition(key: str) -> SettingDefinition:
    try:
        return SETTING_DEFINITIONS[key]
    except KeyError:
        raise ValidationError({"key": [f"Unknown setting: {key}"]})


def validate_setting(key: str, value) -> Any:
    return get_definition(key).validate(value)


def get_config(key: str) -> SystemConfig:
    """Stored setting row; NotFound for unknown keys and keys never saved."""
    if key not in SETTING_DEFINITIONS:
        raise NotFound("Configuration not found")
    try:
        return SystemConfig.objects.get(key=key)
    except SystemConfig.DoesNotExist:
        raise NotFound("Configuration not found")


def set_config(key: str, value) -> SystemConfig:
    """Validate and upsert a setting."""
    value = validate_setting(key, value)
    config, created = SystemConfig.objects.update_or_create(key=key, defaults={"value": value})
    logger.info("%s setting %s=%r", "Created" if created else "Updated", key, value)
    return config


def load_system_settings() -> SystemSettings:
    values = {key: definition.default for key, definition in SETTING_DEFINITIONS.items()}
    for config in SystemConfig.objects.filter(key__in=SETTING_DEFINITIONS.keys()):
        definition = SETTING_DEFINITIONS[config.key]
        try:
            values[config.key] = definition.validate(config.value)
        except ValidationError:
            # Rows written outside the API keep their default.
            logger.warning("Ignoring invalid stored value for %s: %r", config.key, config.value)
    return SystemSettings(**values)
