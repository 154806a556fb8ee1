from django.conf import settings
from rest_framework import serializers

from attendance.models import Schedule

from .models import Employee
from .utils import store_employee_photo


class EmployeeSerializer(serializers.ModelSerializer):
    """Employee directory record using the camelCase wire names of the scanner UI"""

    # Relational fields read an empty string as null, which is what forms send.
    scheduleId = serializers.PrimaryKeyRelatedField(
        source='schedule',
        queryset=Schedule.objects.all(),
        required=False,
        allow_null=True,
    )
    photoUrl = serializers.CharField(
        source='photo_url', required=False, allow_null=True, allow_blank=True, max_length=500
    )
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    photo = serializers.FileField(write_only=True, required=False)

    class Meta:
        model = Employee
        fields = ['id', 'name', 'area', 'scheduleId', 'barcode', 'photoUrl', 'photo', 'createdAt']

    def validate_id(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Employee id is required.')
        if self.instance is not None and value != self.instance.id:
            raise serializers.ValidationError('Employee id cannot be changed.')
        return value

    def validate_barcode(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Barcode is required.')
        return value

    def validate_photo(self, value):
        content_type = getattr(value, 'content_type', '') or ''
        if not content_type.startswith('image/'):
            raise serializers.ValidationError('Only image files are allowed.')
        if value.size > settings.EMPLOYEE_PHOTO_MAX_BYTES:
            raise serializers.ValidationError('Photo exceeds the 5MB limit.')
        return value

    def _apply_photo(self, validated_data):
        photo = validated_data.pop('photo', None)
        if photo is not None:
            validated_data['photo_url'] = store_employee_photo(photo)
        return validated_data

    def create(self, validated_data):
        return super().create(self._apply_photo(validated_data))

    def update(self, instance, validated_data):
        validated_data.pop('id', None)
        return super().update(instance, self._apply_photo(validated_data))
