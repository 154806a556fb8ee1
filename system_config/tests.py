from django.test import TestCase
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from .models import SystemConfig
from .services import SystemSettings, load_system_settings, set_config, validate_setting


class SettingValidationTests(TestCase):
    def test_accepts_typed_values(self):
        self.assertIs(validate_setting("autoScan", False), False)
        self.assertEqual(validate_setting("lockoutTime", 120), 120)
        self.assertEqual(validate_setting("notificationDuration", 1), 1)

    def test_rejects_unknown_key(self):
        with self.assertRaises(ValidationError):
            validate_setting("theme", "dark")

    def test_rejects_wrong_types(self):
        for key, value in [
            ("autoScan", "true"),
            ("autoScan", 1),
            ("lockoutTime", True),
            ("lockoutTime", "60"),
            ("lockoutTime", 1.5),
        ]:
            with self.subTest(key=key, value=value):
                with self.assertRaises(ValidationError):
                    validate_setting(key, value)

    def test_rejects_out_of_range(self):
        with self.assertRaises(ValidationError):
            validate_setting("notificationDuration", 0)
        with self.assertRaises(ValidationError):
            validate_setting("toleranceMinutes", 241)


class LoadSystemSettingsTests(TestCase):
    def test_defaults_when_nothing_stored(self):
        self.assertEqual(load_system_settings(), SystemSettings())

    def test_stored_values_override_defaults(self):
        set_config("soundAlerts", False)
        set_config("lockoutTime", 90)

        settings = load_system_settings()
        self.assertFalse(settings.soundAlerts)
        self.assertEqual(settings.lockoutTime, 90)
        self.assertTrue(settings.autoScan)

    def test_invalid_stored_value_falls_back_to_default(self):
        SystemConfig.objects.create(key="notificationDuration", value="slow")
        self.assertEqual(load_system_settings().notificationDuration, 3)

    def test_set_config_upserts(self):
        set_config("showPhoto", False)
        set_config("showPhoto", True)
        self.assertEqual(SystemConfig.objects.filter(key="showPhoto").count(), 1)
        self.assertIs(SystemConfig.objects.get(key="showPhoto").value, True)


class SystemConfigApiTests(APITestCase):
    def test_unset_key_is_not_found(self):
        response = self.client.get("/api/config/autoScan")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["message"], "Configuration not found")

    def test_unknown_key_is_not_found(self):
        response = self.client.get("/api/config/theme")
        self.assertEqual(response.status_code, 404)

    def test_post_then_get(self):
        response = self.client.post("/api/config", {"key": "lockoutTime", "value": 45}, format="json")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["key"], "lockoutTime")
        self.assertEqual(response.data["value"], 45)
        self.assertIn("updatedAt", response.data)

        response = self.client.get("/api/config/lockoutTime")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["value"], 45)

    def test_post_overwrites_existing_value(self):
        self.client.post("/api/config", {"key": "cameraFallback", "value": True}, format="json")
        self.client.post("/api/config", {"key": "cameraFallback", "value": False}, format="json")

        response = self.client.get("/api/config/cameraFallback")
        self.assertIs(response.data["value"], False)

    def test_post_rejects_bad_input(self):
        cases = [
            {"key": "theme", "value": "dark"},
            {"key": "lockoutTime", "value": True},
            {"key": "autoScan", "value": "yes"},
            {"key": "lockoutTime"},
            {"value": 3},
        ]
        for payload in cases:
            with self.subTest(payload=payload):
                response = self.client.post("/api/config", payload, format="json")
                self.assertEqual(response.status_code, 400)
        self.assertFalse(SystemConfig.objects.exists())

    def test_resolved_settings(self):
        self.client.post("/api/config", {"key": "autoScan", "value": False}, format="json")

        response = self.client.get("/api/config")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.data,
            {
                "autoScan": False,
                "cameraFallback": False,
                "lockoutTime": 60,
                "soundAlerts": True,
                "showPhoto": True,
                "notificationDuration": 3,
                "toleranceMinutes": 15,
            },
        )
