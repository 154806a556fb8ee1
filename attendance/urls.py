from django.urls import path
from rest_framework.routers import DefaultRouter

from .views import (
    AttendanceListView,
    AttendanceStatsView,
    CheckInView,
    ScheduleViewSet,
    TodayAttendanceView,
)

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register(r"schedules", ScheduleViewSet, basename="schedule")

urlpatterns = [
    path("checkin", CheckInView.as_view(), name="attendance-checkin"),
    path("attendance", AttendanceListView.as_view(), name="attendance-list"),
    path("attendance/today", TodayAttendanceView.as_view(), name="attendance-today"),
    path("attendance/stats", AttendanceStatsView.as_view(), name="attendance-stats"),
]
urlpatterns += router.urls
