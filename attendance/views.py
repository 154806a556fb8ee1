import logging

from django.conf import settings
from django.db import transaction
from django.utils.decorators import method_decorator
from django_ratelimit.decorators import ratelimit
from rest_framework import status, viewsets
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Schedule
from .serializers import (
    AttendanceEventSerializer,
    AttendanceQuerySerializer,
    CheckInResultSerializer,
    CheckInSerializer,
    DailyStatsSerializer,
    ScheduleSerializer,
)
from .services import attendance_for_date, check_in, clear_default_schedules, get_today_stats, list_attendance

logger = logging.getLogger(__name__)


def checkin_rate(group, request):
    return settings.CHECKIN_RATE_LIMIT


@method_decorator(ratelimit(key="ip", rate=checkin_rate, method="POST", block=True), name="post")
class CheckInView(APIView):
    """Scanner and manual check-in endpoint."""

    def post(self, request):
        serializer = CheckInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        result = check_in(serializer.validated_data["employeeId"])
        payload = CheckInResultSerializer(result, context={"request": request}).data
        return Response(payload, status=status.HTTP_201_CREATED)


class AttendanceListView(APIView):
    def get(self, request):
        query = AttendanceQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        params = query.validated_data
        events = list_attendance(
            start_date=params.get("startDate"),
            end_date=params.get("endDate"),
            employee_id=params.get("employeeId") or None,
        )
        return Response(AttendanceEventSerializer(events, many=True).data, status=status.HTTP_200_OK)


class TodayAttendanceView(APIView):
    def get(self, request):
        events = attendance_for_date()
        return Response(AttendanceEventSerializer(events, many=True).data, status=status.HTTP_200_OK)


class AttendanceStatsView(APIView):
    def get(self, request):
        return Response(DailyStatsSerializer(get_today_stats()).data, status=status.HTTP_200_OK)


class ScheduleViewSet(viewsets.ModelViewSet):
    """Schedule catalog. Marking a schedule as default clears the flag elsewhere."""

    serializer_class = ScheduleSerializer
    queryset = Schedule.objects.all().order_by("name")

    def update(self, request, *args, **kwargs):
        kwargs["partial"] = True
        return super().update(request, *args, **kwargs)

    @transaction.atomic
    def perform_create(self, serializer):
        if serializer.validated_data.get("is_default"):
            clear_default_schedules()
        schedule = serializer.save()
        logger.info("Created schedule %s (%s)", schedule.pk, schedule.name)

    @transaction.atomic
    def perform_update(self, serializer):
        if serializer.validated_data.get("is_default"):
            clear_default_schedules(exclude=serializer.instance)
        serializer.save()

    def perform_destroy(self, instance):
        logger.info("Deleting schedule %s (%s)", instance.pk, instance.name)
        instance.delete()
