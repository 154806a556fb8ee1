from rest_framework import serializers

from .models import SystemConfig
from .services import validate_setting


class SystemConfigSerializer(serializers.ModelSerializer):
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = SystemConfig
        fields = ("key", "value", "updatedAt")


class SystemConfigWriteSerializer(serializers.Serializer):
    key = serializers.CharField(max_length=100)
    value = serializers.JSONField()

    def validate(self, attrs):
        attrs["value"] = validate_setting(attrs["key"], attrs["value"])
        return attrs
