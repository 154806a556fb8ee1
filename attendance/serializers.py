from rest_framework import serializers

from employees.serializers import EmployeeSerializer

from .models import AttendanceEvent, Schedule


class ScheduleSerializer(serializers.ModelSerializer):
    startTime = serializers.TimeField(source="start_time")
    endTime = serializers.TimeField(source="end_time")
    breakfastStart = serializers.TimeField(source="breakfast_start", required=False, allow_null=True)
    breakfastEnd = serializers.TimeField(source="breakfast_end", required=False, allow_null=True)
    lunchStart = serializers.TimeField(source="lunch_start", required=False, allow_null=True)
    lunchEnd = serializers.TimeField(source="lunch_end", required=False, allow_null=True)
    toleranceMinutes = serializers.IntegerField(source="tolerance_minutes", required=False, min_value=0)
    isDefault = serializers.BooleanField(source="is_default", required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Schedule
        fields = (
            "id",
            "name",
            "startTime",
            "endTime",
            "breakfastStart",
            "breakfastEnd",
            "lunchStart",
            "lunchEnd",
            "toleranceMinutes",
            "isDefault",
            "createdAt",
        )
        read_only_fields = ("id", "createdAt")

    def _resolved(self, attrs, field):
        if field in attrs:
            return attrs[field]
        if self.instance is not None:
            return getattr(self.instance, field)
        return None

    def validate(self, attrs):
        start = self._resolved(attrs, "start_time")
        end = self._resolved(attrs, "end_time")
        if start and end and end <= start:
            raise serializers.ValidationError({"endTime": "End time must be after start time."})

        for meal in ("breakfast", "lunch"):
            meal_start = self._resolved(attrs, f"{meal}_start")
            meal_end = self._resolved(attrs, f"{meal}_end")
            if (meal_start is None) != (meal_end is None):
                raise serializers.ValidationError(
                    {f"{meal}Start": f"Provide both start and end of the {meal} window, or neither."}
                )
            if meal_start is not None and meal_end <= meal_start:
                raise serializers.ValidationError({f"{meal}End": f"The {meal} window must end after it starts."})
        return attrs


class AttendanceEventSerializer(serializers.ModelSerializer):
    employeeId = serializers.CharField(source="employee_id", read_only=True)
    isAutomatic = serializers.BooleanField(source="is_automatic", read_only=True)

    class Meta:
        model = AttendanceEvent
        fields = ("id", "employeeId", "timestamp", "type", "date", "sequence", "notes", "isAutomatic")
        read_only_fields = fields


class CheckInSerializer(serializers.Serializer):
    employeeId = serializers.CharField(
        required=True,
        allow_blank=False,
        error_messages={
            "required": "Employee ID is required",
            "blank": "Employee ID is required",
            "null": "Employee ID is required",
        },
    )


class CheckInResultSerializer(serializers.Serializer):
    attendance = AttendanceEventSerializer(source="event")
    employee = EmployeeSerializer()
    type = serializers.CharField(source="event.type")
    hoursWorked = serializers.CharField(source="hours_worked")
    message = serializers.SerializerMethodField()

    def get_message(self, obj):
        return f"{obj.label} exitosa"


class AttendanceQuerySerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    employeeId = serializers.CharField(required=False, allow_blank=True)

    def validate(self, attrs):
        start = attrs.get("startDate")
        end = attrs.get("endDate")
        if start and end and start > end:
            raise serializers.ValidationError({"startDate": "startDate must be on or before endDate."})
        return attrs


class DailyStatsSerializer(serializers.Serializer):
    checkIns = serializers.IntegerField(source="check_ins")
    checkOuts = serializers.IntegerField(source="check_outs")
    activeEmployees = serializers.IntegerField(source="active_employees")
